"""Core type definitions"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


class DependencyPlatform(str, Enum):
    """Platform the bundle is built for, as named by the build scripts"""
    WSL = "wsl"
    LINUX = "linux"
    DARWIN = "darwin"
    WIN32 = "win32"


class Platform(str, Enum):
    """OS family of the target, with wsl folded into linux"""
    LINUX = "linux"
    DARWIN = "darwin"
    WIN32 = "win32"


class KubePlatform(str, Enum):
    """OS name as used in Kubernetes-style release URLs"""
    LINUX = "linux"
    DARWIN = "darwin"
    WINDOWS = "windows"


class ArchiveKind(str, Enum):
    NONE = "none"
    ZIP = "zip"
    TAR_GZ = "tar.gz"


class ChecksumKind(str, Enum):
    VALUE = "value"
    SIDECAR = "sidecar"
    MANIFEST = "manifest"
    UNVERIFIED = "unverified"


@dataclass(frozen=True)
class ChecksumSource:
    """Where the expected digest of a download comes from.

    Build instances with the classmethods rather than the constructor.
    ``url`` may reference ``{url}`` (the tool URL) and any of the tool's
    ``url_values``; ``match`` is formatted the same way.
    """
    kind: ChecksumKind
    digest: Optional[str] = None
    url: Optional[str] = None
    match: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def value(cls, digest: str) -> "ChecksumSource":
        return cls(kind=ChecksumKind.VALUE, digest=digest)

    @classmethod
    def sidecar(cls, url: str) -> "ChecksumSource":
        return cls(kind=ChecksumKind.SIDECAR, url=url)

    @classmethod
    def manifest(cls, url: str, match: str) -> "ChecksumSource":
        return cls(kind=ChecksumKind.MANIFEST, url=url, match=match)

    @classmethod
    def unverified(cls, reason: str) -> "ChecksumSource":
        if not reason:
            raise ValueError("An unverified download needs a reason")
        return cls(kind=ChecksumKind.UNVERIFIED, reason=reason)


@dataclass(frozen=True)
class ToolSpec:
    """One downloadable third-party binary and how to verify and place it"""
    name: str
    version: str
    url_template: str
    destination: Path
    checksum: ChecksumSource
    archive: ArchiveKind = ArchiveKind.NONE
    algorithm: str = "sha256"
    entry_name: Optional[str] = None
    url_values: Dict[str, str] = field(default_factory=dict)
    executable: bool = True

    def _values(self) -> Dict[str, str]:
        return {"version": self.version, **self.url_values}

    @property
    def url(self) -> str:
        return self.url_template.format(**self._values())

    @property
    def checksum_url(self) -> Optional[str]:
        if self.checksum.url is None:
            return None
        return self.checksum.url.format(url=self.url, **self._values())

    @property
    def checksum_match(self) -> Optional[str]:
        if self.checksum.match is None:
            return None
        return self.checksum.match.format(**self._values())

    @property
    def archive_entry(self) -> str:
        return self.entry_name or self.destination.name


@dataclass(frozen=True)
class DownloadContext:
    """Resolved target platform and destination roots"""
    dependency_platform: DependencyPlatform
    platform: Platform
    kube_platform: KubePlatform
    arch: str
    resources_dir: Path
    # binaries the user runs
    bin_dir: Path
    # binaries the application runs behind the scenes
    internal_dir: Path

    @property
    def on_windows(self) -> bool:
        return self.platform == Platform.WIN32


@dataclass(frozen=True)
class DependencyVersions:
    """Version pins for every bundled tool"""
    kuberlr: str = "0.4.2"
    helm: str = "3.9.0"
    docker_cli: str = "20.10.17"
    docker_buildx: str = "0.8.2"
    docker_compose: str = "2.6.1"
    trivy: str = "0.30.0"
    steve: str = "v0.1.0-beta8"
    rancher_dashboard: str = "desktop-v2.6.3.beta.12"
    docker_credential_helpers: str = "0.6.4"
    ecr_credential_helper: str = "0.6.0"
