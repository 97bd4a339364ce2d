"""Archive extraction for downloaded release bundles."""
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import List, Union

from bundle_deps.errors import ArchiveError
from bundle_deps.logging import get_logger
from bundle_deps.types import ArchiveKind

logger = get_logger(__name__)

Archive = Union[zipfile.ZipFile, tarfile.TarFile]


def open_archive(archive_path: Path, kind: ArchiveKind) -> Archive:
    try:
        if kind == ArchiveKind.ZIP:
            return zipfile.ZipFile(archive_path)
        if kind == ArchiveKind.TAR_GZ:
            return tarfile.open(archive_path, "r:gz")
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as e:
        raise ArchiveError(
            f"Failed to read {kind.value} archive {archive_path.name}",
            archive=str(archive_path)
        ) from e
    raise ArchiveError(f"Unsupported archive format: {kind.value}", archive=str(archive_path))


def get_archive_files(archive: Archive) -> List[str]:
    """Get list of files from archive handling different archive types."""
    if isinstance(archive, zipfile.ZipFile):
        return archive.namelist()
    return archive.getnames()


def _normalize(name: str) -> str:
    return name.removeprefix("./")


def extract_entry(
    archive_path: Path,
    kind: ArchiveKind,
    entry_name: str,
    dest: Path
) -> Path:
    """Extract the single entry ``entry_name`` from an archive to ``dest``."""
    with open_archive(archive_path, kind) as archive:
        wanted = _normalize(entry_name)
        matching = [n for n in get_archive_files(archive) if _normalize(n) == wanted]
        if not matching:
            logger.error(
                "Entry not found in archive",
                archive=str(archive_path),
                entry=entry_name,
                available_files=get_archive_files(archive),
            )
            raise ArchiveError(
                f"Entry {entry_name} not found in {archive_path.name}",
                archive=str(archive_path),
                entry=entry_name
            )

        try:
            if isinstance(archive, zipfile.ZipFile):
                source = archive.open(matching[0])
            else:
                source = archive.extractfile(matching[0])
                if source is None:
                    raise ArchiveError(
                        f"Entry {entry_name} in {archive_path.name} is not a regular file",
                        archive=str(archive_path),
                        entry=entry_name
                    )
            with source, open(dest, "wb") as out:
                shutil.copyfileobj(source, out)
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as e:
            dest.unlink(missing_ok=True)
            raise ArchiveError(
                f"Failed to extract {entry_name} from {archive_path.name}",
                archive=str(archive_path),
                entry=entry_name
            ) from e

    logger.debug(
        "Entry extracted",
        archive=str(archive_path),
        entry=entry_name,
        extracted_to=str(dest),
    )
    return dest


def extract_all(archive_path: Path, kind: ArchiveKind, dest_dir: Path) -> Path:
    """Extract a whole archive into ``dest_dir``."""
    with open_archive(archive_path, kind) as archive:
        try:
            if isinstance(archive, tarfile.TarFile) and hasattr(tarfile, "data_filter"):
                archive.extractall(dest_dir, filter="data")
            else:
                archive.extractall(dest_dir)
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as e:
            raise ArchiveError(
                f"Failed to extract {archive_path.name}",
                archive=str(archive_path)
            ) from e

    logger.info(
        "Archive extracted",
        archive=str(archive_path),
        extracted_to=str(dest_dir),
    )
    return dest_dir
