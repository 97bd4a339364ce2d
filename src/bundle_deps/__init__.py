"""Checksum-verified fetcher for bundled third-party binaries."""

from bundle_deps.types import (
    ArchiveKind,
    ChecksumSource,
    DependencyPlatform,
    DependencyVersions,
    DownloadContext,
    ToolSpec,
)
from bundle_deps.fetching import fetch_one
from bundle_deps.fetcher import download_dependencies, fetch_all
from bundle_deps.errors import (
    ArchiveError,
    ChecksumAmbiguityError,
    ChecksumMismatchError,
    ConfigError,
    FetchError,
    HomeDirectoryError,
    InstallError,
    NetworkError,
    UnsupportedPlatformError,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "ArchiveKind",
    "ChecksumSource",
    "DependencyPlatform",
    "DependencyVersions",
    "DownloadContext",
    "ToolSpec",

    # Fetching
    "fetch_one",
    "fetch_all",
    "download_dependencies",

    # Error types
    "FetchError",
    "NetworkError",
    "ChecksumAmbiguityError",
    "ChecksumMismatchError",
    "HomeDirectoryError",
    "ArchiveError",
    "UnsupportedPlatformError",
    "ConfigError",
    "InstallError",
]
