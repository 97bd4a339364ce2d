import hashlib
import io
import tarfile
import zipfile
from types import SimpleNamespace
from typing import Dict, List, Union

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from bundle_deps.platforms import create_download_context


def make_tar_gz(entries: Dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, content in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tf.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def make_zip(entries: Dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buf.getvalue()


def digest(content: bytes, algorithm: str = "sha256") -> str:
    return hashlib.new(algorithm, content).hexdigest()


class ReleaseServer:
    """Local stand-in for a release host serving fixed files"""

    def __init__(self, server: TestServer, files: Dict[str, bytes], requests: List[str]):
        self.server = server
        self.files = files
        self.requests = requests

    def add(self, path: str, body: Union[bytes, str]) -> str:
        self.files[path] = body.encode() if isinstance(body, str) else body
        return self.url(path)

    @property
    def base(self) -> str:
        return f"http://{self.server.host}:{self.server.port}"

    def url(self, path: str) -> str:
        return self.base + path


@pytest.fixture
def archives():
    """Archive builders and digest helper"""
    return SimpleNamespace(tar_gz=make_tar_gz, zip=make_zip, digest=digest)


@pytest_asyncio.fixture
async def release_server():
    """Serve release files over HTTP for the duration of a test"""
    files: Dict[str, bytes] = {}
    requests: List[str] = []

    async def handler(request: web.Request) -> web.Response:
        requests.append(request.path)
        if request.path not in files:
            raise web.HTTPNotFound()
        return web.Response(body=files[request.path])

    app = web.Application()
    app.router.add_get("/{tail:.*}", handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield ReleaseServer(server, files, requests)
    finally:
        await server.close()


@pytest_asyncio.fixture
async def session():
    async with aiohttp.ClientSession() as client_session:
        yield client_session


@pytest.fixture
def linux_context(tmp_path):
    return create_download_context("linux", tmp_path / "resources", "amd64")


@pytest.fixture
def darwin_context(tmp_path):
    return create_download_context("darwin", tmp_path / "resources", "arm64")


@pytest.fixture
def windows_context(tmp_path):
    return create_download_context("win32", tmp_path / "resources", "amd64")
