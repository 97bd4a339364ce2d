"""Error handling for the dependency fetcher."""
from typing import Any, Dict, Optional

import structlog


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[structlog.stdlib.BoundLogger] = None
) -> None:
    """Log an error with context."""
    logger = logger or structlog.get_logger(__name__)

    error_info: Dict[str, Any] = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, FetchError):
        error_info["details"] = error.details

    logger.error("Dependency fetch failed", **error_info)


class FetchError(Exception):
    """Base error class for dependency fetching."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
            "details": self.details
        }


class NetworkError(FetchError):
    """Transport failure or unexpected HTTP status."""
    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        message = f"Failed to download {url}"
        if status is not None:
            message += f": HTTP {status}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, details={"url": url, "status": status})
        self.url = url
        self.status = status


class ChecksumAmbiguityError(FetchError):
    """A checksum manifest did not yield exactly one line for a target."""
    def __init__(self, target: str, count: int, source: str = ""):
        if count == 0:
            message = f"Couldn't find a matching checksum for [{target}]"
        else:
            message = f"Matched {count} hits, not exactly 1, for [{target}]"
        if source:
            message += f" in {source}"
        super().__init__(
            message,
            details={"target": target, "count": count, "source": source}
        )
        self.target = target
        self.count = count


class ChecksumMismatchError(FetchError):
    """Downloaded bytes do not match the published digest."""
    def __init__(self, url: str, expected: str, actual: str, algorithm: str):
        super().__init__(
            f"Checksum mismatch for {url}: expected {expected}, got {actual}",
            details={
                "url": url,
                "expected": expected,
                "actual": actual,
                "algorithm": algorithm
            }
        )
        self.expected = expected
        self.actual = actual


class HomeDirectoryError(FetchError):
    """No usable home directory could be found."""
    def __init__(self, candidates: Optional[list] = None):
        super().__init__(
            "Failed to find home directory",
            details={"candidates": candidates or []}
        )


class ArchiveError(FetchError):
    """Archive could not be read or lacks the wanted entry."""
    def __init__(self, message: str, archive: str, entry: Optional[str] = None):
        super().__init__(message, details={"archive": archive, "entry": entry})


class UnsupportedPlatformError(FetchError):
    """Platform or architecture the fetcher has no mapping for."""
    def __init__(self, value: str, kind: str = "platform"):
        super().__init__(
            f"Unsupported {kind}: {value}",
            details={"kind": kind, "value": value}
        )


class ConfigError(FetchError):
    """Invalid configuration or version pin file."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class InstallError(FetchError):
    """A file or directory in the resources tree could not be written."""
    def __init__(self, path: str, error: OSError):
        super().__init__(
            f"Failed to write {path}: {error.strerror or error}",
            details={"path": path, "errno": error.errno}
        )
        self.path = path
