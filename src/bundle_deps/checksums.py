"""Checksum computation and manifest lookup."""
import hashlib
import re

from bundle_deps.errors import ChecksumAmbiguityError, ChecksumMismatchError, FetchError
from bundle_deps.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_ALGORITHMS = ("sha256", "sha512")
LINE_SPLIT = re.compile(r"\r?\n")


def new_hash(algorithm: str):
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise FetchError(
            f"Unsupported checksum algorithm: {algorithm}",
            details={"algorithm": algorithm}
        )
    return hashlib.new(algorithm)


def first_token(text: str) -> str:
    """First whitespace-delimited token of a sidecar checksum file."""
    parts = text.split()
    if not parts:
        raise FetchError("Empty checksum file")
    return parts[0]


def find_checksum(manifest: str, match: str, source: str = "") -> str:
    """Pick the checksum for ``match`` out of a multi-line manifest.

    Exactly one line may contain ``match``; zero or several is an error,
    since ambiguous integrity data must never be accepted.
    """
    candidates = [line for line in LINE_SPLIT.split(manifest) if match in line]
    if len(candidates) != 1:
        logger.error(
            "Checksum manifest lookup failed",
            target=match,
            count=len(candidates),
            source=source,
        )
        raise ChecksumAmbiguityError(match, len(candidates), source)
    return first_token(candidates[0])


def verify_digest(url: str, expected: str, actual: str, algorithm: str) -> None:
    """Raise if two hex digests differ."""
    if expected.strip().lower() != actual.strip().lower():
        logger.error(
            "Checksum verification failed",
            url=url,
            expected=expected,
            computed=actual,
            algorithm=algorithm,
        )
        raise ChecksumMismatchError(url, expected, actual, algorithm)

