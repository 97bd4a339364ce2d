"""Downloading, verifying and placing a single tool."""
import asyncio
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

import aiohttp

from bundle_deps.archives import extract_entry
from bundle_deps.checksums import find_checksum, first_token, new_hash, verify_digest
from bundle_deps.errors import InstallError, NetworkError
from bundle_deps.logging import get_logger
from bundle_deps.types import ArchiveKind, ChecksumKind, ToolSpec

logger = get_logger(__name__)

CHUNK_SIZE = 65536


async def fetch_text(session: aiohttp.ClientSession, url: str) -> str:
    """Fetch a small text resource such as a checksum file or version marker."""
    try:
        async with session.get(url) as response:
            if response.status != 200:
                logger.error("Request failed", url=url, status=response.status)
                raise NetworkError(url, response.status, response.reason or "")
            return await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error("Request failed", url=url, error=str(e))
        raise NetworkError(url, reason=str(e) or e.__class__.__name__) from e


async def download_url(
    session: aiohttp.ClientSession,
    url: str,
    dest: Path,
    algorithm: str = "sha256"
) -> str:
    """Stream ``url`` into ``dest`` and return the hex digest of the bytes."""
    digest = new_hash(algorithm)
    downloaded = 0
    try:
        async with session.get(url) as response:
            if response.status != 200:
                logger.error(
                    "Download request failed",
                    url=url,
                    status=response.status,
                    reason=response.reason,
                )
                raise NetworkError(url, response.status, response.reason or "")

            with open(dest, "wb") as f:
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    f.write(chunk)
                    digest.update(chunk)
                    downloaded += len(chunk)

    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        dest.unlink(missing_ok=True)
        logger.error("Download failed", url=url, error=str(e))
        raise NetworkError(url, reason=str(e) or e.__class__.__name__) from e
    except OSError as e:
        if dest.is_file():
            dest.unlink()
        logger.error("Failed to write download", url=url, path=str(dest), error=str(e))
        raise InstallError(str(dest), e) from e

    logger.debug("Download complete", url=url, size=downloaded)
    return digest.hexdigest()


async def resolve_checksum(
    session: aiohttp.ClientSession, spec: ToolSpec
) -> Optional[str]:
    """Expected digest for a tool, or None for a documented unverified download."""
    source = spec.checksum
    if source.kind == ChecksumKind.VALUE:
        return source.digest
    if source.kind == ChecksumKind.UNVERIFIED:
        logger.warning(
            "Skipping checksum verification",
            tool=spec.name,
            url=spec.url,
            reason=source.reason,
        )
        return None

    checksum_url = spec.checksum_url
    text = await fetch_text(session, checksum_url)
    if source.kind == ChecksumKind.SIDECAR:
        return first_token(text)
    return find_checksum(text, spec.checksum_match, source=checksum_url)


def install_file(source: Path, dest: Path, executable: bool = True) -> Path:
    """Move a verified file into place, replacing whatever was there."""
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        if dest.is_symlink() or dest.exists():
            dest.unlink()
        shutil.move(str(source), str(dest))
        if executable:
            os.chmod(dest, 0o755)
    except OSError as e:
        logger.error("Failed to install", path=str(dest), error=str(e))
        raise InstallError(str(dest), e) from e
    return dest


async def fetch_one(
    session: aiohttp.ClientSession,
    spec: ToolSpec,
    overwrite: bool = False
) -> Path:
    """Download, verify and place one tool; return its destination."""
    dest = spec.destination
    if not overwrite and dest.exists():
        logger.info("Already present, not re-downloading", tool=spec.name, path=str(dest))
        return dest

    url = spec.url
    logger.info("Fetching tool", tool=spec.name, version=spec.version, url=url)
    expected = await resolve_checksum(session, spec)

    with tempfile.TemporaryDirectory(prefix=f"{spec.name}-") as tmpdir:
        download_path = Path(tmpdir) / url.rsplit("/", 1)[-1]
        actual = await download_url(session, url, download_path, spec.algorithm)
        if expected is not None:
            verify_digest(url, expected, actual, spec.algorithm)

        if spec.archive == ArchiveKind.NONE:
            staged = download_path
        else:
            staged = extract_entry(
                download_path,
                spec.archive,
                spec.archive_entry,
                Path(tmpdir) / f".{dest.name}.extracted",
            )
        install_file(staged, dest, spec.executable)

    logger.info("Tool installed", tool=spec.name, path=str(dest), verified=expected is not None)
    return dest
