"""Settings and version pin loading."""
import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import appdirs
import tomli

from bundle_deps.constants import APP_NAME, DEFAULT_VERSIONS_FILE
from bundle_deps.errors import ConfigError
from bundle_deps.logging import get_logger
from bundle_deps.types import DependencyVersions

logger = get_logger(__name__)

RESOURCES_DIR_ENV = "BUNDLE_DEPS_RESOURCES_DIR"
ARCH_ENV = "BUNDLE_DEPS_ARCH"
# Release builds for Apple silicon set M1 in the environment
M1_ENV = "M1"
LOG_LEVEL_ENV = "BUNDLE_DEPS_LOG_LEVEL"
TIMEOUT_ENV = "BUNDLE_DEPS_TIMEOUT"
OVERWRITE_ENV = "BUNDLE_DEPS_OVERWRITE"
VERSIONS_ENV = "BUNDLE_DEPS_VERSIONS"

TRUTHY = {"1", "true", "yes", "on"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class FetchSettings:
    """Runtime settings for a fetch run"""
    resources_dir: Path
    arch: str = "amd64"
    log_level: str = "INFO"
    timeout: float = 600.0
    overwrite: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FetchSettings":
        env = os.environ if environ is None else environ

        if env.get(ARCH_ENV):
            arch = env[ARCH_ENV]
        else:
            arch = "arm64" if env.get(M1_ENV) else "amd64"

        try:
            timeout = float(env.get(TIMEOUT_ENV, "600"))
        except ValueError:
            raise ConfigError(
                f"{TIMEOUT_ENV} must be a number of seconds",
                details={"value": env.get(TIMEOUT_ENV)}
            ) from None

        log_level = env.get(LOG_LEVEL_ENV, "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(
                f"{LOG_LEVEL_ENV} must be one of {', '.join(LOG_LEVELS)}",
                details={"value": log_level}
            )

        return cls(
            resources_dir=Path(env.get(RESOURCES_DIR_ENV) or Path.cwd() / "resources"),
            arch=arch,
            log_level=log_level,
            timeout=timeout,
            overwrite=env.get(OVERWRITE_ENV, "").lower() in TRUTHY,
        )


def default_versions_path() -> Path:
    return Path(appdirs.user_config_dir(APP_NAME)) / DEFAULT_VERSIONS_FILE


def parse_versions(data: Mapping[str, object], source: str = "") -> DependencyVersions:
    """Build version pins from a ``[versions]`` table, defaults filling the gaps."""
    table = data.get("versions", {})
    if not isinstance(table, dict):
        raise ConfigError("[versions] must be a table", details={"source": source})

    known = {f.name for f in dataclasses.fields(DependencyVersions)}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ConfigError(
            f"Unknown tools in version pins: {', '.join(unknown)}",
            details={"source": source, "unknown": unknown}
        )
    for key, value in table.items():
        if not isinstance(value, str) or not value:
            raise ConfigError(
                f"Version for {key} must be a non-empty string",
                details={"source": source, "tool": key}
            )
    return DependencyVersions(**table)


def load_versions(path: Optional[Path] = None) -> DependencyVersions:
    """Load version pins.

    Resolution order: ``path``, ``$BUNDLE_DEPS_VERSIONS``, the per-user
    config file if it exists, then the built-in pins.
    """
    if path is None and os.environ.get(VERSIONS_ENV):
        path = Path(os.environ[VERSIONS_ENV])
    if path is None:
        candidate = default_versions_path()
        if not candidate.is_file():
            return DependencyVersions()
        path = candidate

    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Version file not found: {path}", details={"source": str(path)}) from None
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"Invalid version file {path}: {e}", details={"source": str(path)}) from e

    versions = parse_versions(data, source=str(path))
    logger.debug("Loaded version pins", source=str(path), versions=dataclasses.asdict(versions))
    return versions
