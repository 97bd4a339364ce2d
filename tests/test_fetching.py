"""Tests for downloading and placing a single tool."""
import os
import stat
from unittest.mock import AsyncMock, patch

import pytest
from structlog.testing import capture_logs

from bundle_deps.errors import (
    ChecksumAmbiguityError,
    ChecksumMismatchError,
    InstallError,
    NetworkError,
)
from bundle_deps.fetching import (
    download_url,
    fetch_one,
    fetch_text,
    install_file,
    resolve_checksum,
)
from bundle_deps.types import ArchiveKind, ChecksumSource, ToolSpec


def make_spec(release_server, tmp_path, **overrides) -> ToolSpec:
    values = dict(
        name="tool",
        version="1.2.3",
        url_template=release_server.base + "/download/v{version}/{executable}",
        url_values={"executable": "tool-linux-amd64"},
        checksum=ChecksumSource.manifest(
            release_server.base + "/download/v{version}/checksums.txt", "{executable}"
        ),
        destination=tmp_path / "bin" / "tool",
    )
    values.update(overrides)
    return ToolSpec(**values)


@pytest.mark.asyncio
async def test_fetch_text(release_server, session):
    url = release_server.add("/release/stable.txt", "v1.24.3\n")
    assert await fetch_text(session, url) == "v1.24.3\n"


@pytest.mark.asyncio
async def test_fetch_text_not_found(release_server, session):
    with pytest.raises(NetworkError, match="HTTP 404") as excinfo:
        await fetch_text(session, release_server.url("/missing.txt"))
    assert excinfo.value.status == 404


@pytest.mark.asyncio
async def test_download_url_returns_digest(release_server, session, tmp_path, archives):
    content = b"binary content" * 10000
    url = release_server.add("/tool", content)
    dest = tmp_path / "tool"

    actual = await download_url(session, url, dest, "sha512")

    assert dest.read_bytes() == content
    assert actual == archives.digest(content, "sha512")


@pytest.mark.asyncio
async def test_download_url_connection_refused(tmp_path, session):
    dest = tmp_path / "tool"
    with pytest.raises(NetworkError):
        await download_url(session, "http://127.0.0.1:9/tool", dest)
    assert not dest.exists()


@pytest.mark.asyncio
async def test_resolve_checksum_value(session, release_server, tmp_path):
    spec = make_spec(release_server, tmp_path, checksum=ChecksumSource.value("abc"))
    assert await resolve_checksum(session, spec) == "abc"


@pytest.mark.asyncio
async def test_resolve_checksum_sidecar(session, release_server, tmp_path):
    release_server.add(
        "/download/v1.2.3/tool-linux-amd64.sha256sum",
        "feedface  tool-linux-amd64\n",
    )
    spec = make_spec(release_server, tmp_path, checksum=ChecksumSource.sidecar("{url}.sha256sum"))

    assert await resolve_checksum(session, spec) == "feedface"


@pytest.mark.asyncio
async def test_resolve_checksum_manifest(session, release_server, tmp_path):
    release_server.add(
        "/download/v1.2.3/checksums.txt",
        "aaa  tool-darwin-amd64\nbbb  tool-linux-amd64\n",
    )
    spec = make_spec(release_server, tmp_path)

    assert await resolve_checksum(session, spec) == "bbb"


@pytest.mark.asyncio
async def test_resolve_checksum_unverified_logs_reason(session, release_server, tmp_path):
    spec = make_spec(
        release_server, tmp_path, checksum=ChecksumSource.unverified("upstream publishes none")
    )

    with capture_logs() as logs:
        assert await resolve_checksum(session, spec) is None

    assert release_server.requests == []
    warnings = [e for e in logs if e["log_level"] == "warning"]
    assert warnings[0]["reason"] == "upstream publishes none"


def test_unverified_requires_reason():
    with pytest.raises(ValueError):
        ChecksumSource.unverified("")


@pytest.mark.asyncio
async def test_fetch_one_plain_file(session, release_server, tmp_path, archives):
    content = b"#!/bin/sh\necho tool\n"
    release_server.add("/download/v1.2.3/tool-linux-amd64", content)
    release_server.add(
        "/download/v1.2.3/checksums.txt",
        f"{archives.digest(content)}  tool-linux-amd64\n",
    )
    spec = make_spec(release_server, tmp_path)

    dest = await fetch_one(session, spec)

    assert dest == tmp_path / "bin" / "tool"
    assert dest.read_bytes() == content
    if os.name != "nt":
        assert stat.S_IMODE(dest.stat().st_mode) == 0o755


@pytest.mark.asyncio
async def test_fetch_one_tar_entry(session, release_server, tmp_path, archives):
    tarball = archives.tar_gz({"linux-amd64/tool": b"from tar", "linux-amd64/LICENSE": b"MIT"})
    release_server.add("/download/v1.2.3/tool.tar.gz", tarball)
    release_server.add("/download/v1.2.3/tool.tar.gz.sha512sum", archives.digest(tarball, "sha512"))
    spec = make_spec(
        release_server,
        tmp_path,
        url_values={"executable": "tool.tar.gz"},
        checksum=ChecksumSource.sidecar("{url}.sha512sum"),
        algorithm="sha512",
        archive=ArchiveKind.TAR_GZ,
        entry_name="linux-amd64/tool",
    )

    dest = await fetch_one(session, spec)

    assert dest.read_bytes() == b"from tar"


@pytest.mark.asyncio
async def test_fetch_one_zip_default_entry(session, release_server, tmp_path, archives):
    """Without an entry name the destination file name is extracted"""
    archive = archives.zip({"tool.exe": b"from zip"})
    release_server.add("/download/v1.2.3/tool.zip", archive)
    spec = make_spec(
        release_server,
        tmp_path,
        url_values={"executable": "tool.zip"},
        checksum=ChecksumSource.value(archives.digest(archive)),
        archive=ArchiveKind.ZIP,
        destination=tmp_path / "bin" / "tool.exe",
    )

    dest = await fetch_one(session, spec)

    assert dest.read_bytes() == b"from zip"


@pytest.mark.asyncio
async def test_fetch_one_checksum_mismatch(session, release_server, tmp_path):
    """Nothing lands at the destination when the digest is wrong"""
    release_server.add("/download/v1.2.3/tool-linux-amd64", b"tampered")
    release_server.add("/download/v1.2.3/checksums.txt", "0000  tool-linux-amd64\n")
    spec = make_spec(release_server, tmp_path)

    with pytest.raises(ChecksumMismatchError):
        await fetch_one(session, spec)

    assert not spec.destination.exists()


@pytest.mark.asyncio
async def test_fetch_one_ambiguous_manifest(session, release_server, tmp_path):
    release_server.add("/download/v1.2.3/checksums.txt", "1  tool-linux-amd64\n2  tool-linux-amd64.sig\n")
    spec = make_spec(release_server, tmp_path)

    with pytest.raises(ChecksumAmbiguityError, match="Matched 2 hits"):
        await fetch_one(session, spec)

    assert "/download/v1.2.3/tool-linux-amd64" not in release_server.requests


@pytest.mark.asyncio
async def test_fetch_one_missing_binary(session, release_server, tmp_path):
    release_server.add("/download/v1.2.3/checksums.txt", "1  tool-linux-amd64\n")
    spec = make_spec(release_server, tmp_path)

    with pytest.raises(NetworkError, match="HTTP 404"):
        await fetch_one(session, spec)


@pytest.mark.asyncio
async def test_fetch_one_skips_existing(session, tmp_path, release_server):
    spec = make_spec(release_server, tmp_path)
    spec.destination.parent.mkdir(parents=True)
    spec.destination.write_bytes(b"already here")

    with patch("bundle_deps.fetching.download_url", new_callable=AsyncMock) as download:
        assert await fetch_one(session, spec) == spec.destination
        download.assert_not_called()

    assert spec.destination.read_bytes() == b"already here"


@pytest.mark.asyncio
async def test_fetch_one_overwrite(session, release_server, tmp_path, archives):
    content = b"new build"
    release_server.add("/download/v1.2.3/tool-linux-amd64", content)
    spec = make_spec(release_server, tmp_path, checksum=ChecksumSource.value(archives.digest(content)))
    spec.destination.parent.mkdir(parents=True)
    spec.destination.write_bytes(b"old build")

    await fetch_one(session, spec, overwrite=True)

    assert spec.destination.read_bytes() == content


@pytest.mark.asyncio
async def test_fetch_one_destination_under_regular_file(session, release_server, tmp_path, archives):
    """A resources tree that cannot be created is reported as a fetch error"""
    content = b"tool"
    release_server.add("/download/v1.2.3/tool-linux-amd64", content)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    spec = make_spec(
        release_server,
        tmp_path,
        checksum=ChecksumSource.value(archives.digest(content)),
        destination=blocker / "tool",
    )

    with pytest.raises(InstallError) as excinfo:
        await fetch_one(session, spec)

    assert excinfo.value.path == str(blocker / "tool")
    assert isinstance(excinfo.value.__cause__, OSError)
    assert blocker.read_text() == "not a directory"


@pytest.mark.asyncio
async def test_download_url_unwritable_destination(session, release_server, tmp_path):
    url = release_server.add("/tool", b"payload")
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(InstallError):
        await download_url(session, url, blocker / "tool")


def test_install_file_wraps_os_errors(tmp_path):
    source = tmp_path / "staged"
    source.write_bytes(b"tool")
    dest = tmp_path / "bin"
    dest.mkdir()
    (dest / "tool").mkdir()

    with pytest.raises(InstallError, match="Failed to write"):
        install_file(source, dest / "tool")
