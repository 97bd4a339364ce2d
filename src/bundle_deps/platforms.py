"""Platform detection and mapping."""
import os
import platform
from pathlib import Path
from typing import List, Optional, Union

from bundle_deps.errors import HomeDirectoryError, UnsupportedPlatformError
from bundle_deps.logging import get_logger
from bundle_deps.types import (
    DependencyPlatform,
    DownloadContext,
    KubePlatform,
    Platform,
)

logger = get_logger(__name__)

KUBE_PLATFORMS = {
    Platform.DARWIN: KubePlatform.DARWIN,
    Platform.LINUX: KubePlatform.LINUX,
    Platform.WIN32: KubePlatform.WINDOWS,
}

HOST_PLATFORMS = {
    "Linux": Platform.LINUX,
    "Darwin": Platform.DARWIN,
    "Windows": Platform.WIN32,
}

# Architecture names used by the different upstream release pages
ARCH_MAPPINGS = {
    "amd64": {
        "default": "amd64",
        "compose": "x86_64",
        "trivy": "Linux-64bit",
    },
    "arm64": {
        "default": "arm64",
        "compose": "aarch64",
        "trivy": "Linux-ARM64",
    },
}

MACHINE_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def get_kube_platform(target: Platform) -> KubePlatform:
    return KUBE_PLATFORMS[target]


def get_host_platform() -> Platform:
    """Get the OS family of the machine we are running on."""
    system = platform.system()
    if system not in HOST_PLATFORMS:
        raise UnsupportedPlatformError(system)
    return HOST_PLATFORMS[system]


def is_host_platform(target: Platform) -> bool:
    """Whether ``target`` is the machine we are running on; unknown hosts never match."""
    return HOST_PLATFORMS.get(platform.system()) == target


def get_host_arch() -> str:
    machine = platform.machine().lower()
    if machine not in MACHINE_ALIASES:
        raise UnsupportedPlatformError(machine, kind="architecture")
    return MACHINE_ALIASES[machine]


def arch_name(arch: str, flavour: str = "default") -> str:
    """Name of ``arch`` in a given upstream's vocabulary."""
    if arch not in ARCH_MAPPINGS:
        raise UnsupportedPlatformError(arch, kind="architecture")
    return ARCH_MAPPINGS[arch][flavour]


def create_download_context(
    raw_platform: Union[DependencyPlatform, str],
    resources_dir: Path,
    arch: str = "amd64",
) -> DownloadContext:
    """Resolve a build platform into a download context.

    ``wsl`` targets use the linux layout and binaries, except where a tool
    ships a dedicated wsl build.
    """
    try:
        dependency_platform = DependencyPlatform(raw_platform)
    except ValueError:
        raise UnsupportedPlatformError(str(raw_platform)) from None
    if arch not in ARCH_MAPPINGS:
        raise UnsupportedPlatformError(arch, kind="architecture")

    if dependency_platform == DependencyPlatform.WSL:
        target = Platform.LINUX
    else:
        target = Platform(dependency_platform.value)

    platform_dir = resources_dir / target.value
    return DownloadContext(
        dependency_platform=dependency_platform,
        platform=target,
        kube_platform=get_kube_platform(target),
        arch=arch,
        resources_dir=resources_dir,
        bin_dir=platform_dir / "bin",
        internal_dir=platform_dir / "internal",
    )


def exe_name(context: DownloadContext, name: str) -> str:
    """Executable file name for ``name`` on the target platform."""
    return f"{name}.exe" if context.on_windows else name


def _accessible(path: Optional[str]) -> bool:
    return bool(path) and os.access(path, os.F_OK)


def find_home(on_windows: bool) -> Path:
    """Find the home directory the same way kuberlr does."""
    candidates: List[Optional[str]] = [
        os.path.expanduser("~"),
        os.environ.get("HOME"),
    ]
    if on_windows:
        candidates.append(os.environ.get("USERPROFILE"))
        drive = os.environ.get("HOMEDRIVE")
        home_path = os.environ.get("HOMEPATH")
        if drive and home_path:
            candidates.append(os.path.join(drive, home_path))

    for candidate in candidates:
        # expanduser hands back "~" unchanged when it cannot resolve it
        if candidate and candidate != "~" and _accessible(candidate):
            return Path(candidate)

    logger.error("No accessible home directory", candidates=candidates)
    raise HomeDirectoryError([c for c in candidates if c])
