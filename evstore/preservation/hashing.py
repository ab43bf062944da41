"""SHA-256 hashing utilities for evidence integrity."""

import hashlib
from typing import BinaryIO

from evstore.types import IntegrityMetadata
from evstore.utils import utc_timestamp


HASH_ALGORITHM = "sha256"
HASH_PREFIX = "0x"
BUFFER_SIZE = 65536  # 64KB chunks for memory efficiency


def _as_bytes(payload: bytes | str) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return bytes(payload)


def compute_digest(payload: bytes | str) -> str:
    """Compute the self-describing SHA-256 digest of a payload.

    Args:
        payload: Bytes to hash (strings are encoded as UTF-8)

    Returns:
        ``0x`` followed by the lowercase hexadecimal SHA-256 digest
    """
    return HASH_PREFIX + hashlib.sha256(_as_bytes(payload)).hexdigest()


def compute_sha256_stream(stream: BinaryIO) -> str:
    """Compute the SHA-256 digest of a binary stream.

    Args:
        stream: Binary file-like object

    Returns:
        ``0x`` prefixed lowercase hexadecimal SHA-256 digest
    """
    sha256_hash = hashlib.sha256()

    for chunk in iter(lambda: stream.read(BUFFER_SIZE), b""):
        sha256_hash.update(chunk)

    return HASH_PREFIX + sha256_hash.hexdigest()


def verify_hash(payload: bytes | str, expected_hash: str) -> bool:
    """Verify a payload against an expected digest.

    The comparison is exact and case-sensitive. Malformed expected values
    simply fail to match.

    Args:
        payload: Bytes to verify
        expected_hash: Expected ``0x`` prefixed digest

    Returns:
        True if hash matches, False otherwise
    """
    if not isinstance(expected_hash, str):
        return False
    return compute_digest(payload) == expected_hash


def strip_prefix(digest: str) -> str:
    """Return the bare hex part of a digest."""
    if digest.startswith(HASH_PREFIX):
        return digest[len(HASH_PREFIX):]
    return digest


def generate_integrity_metadata(payload: bytes | str) -> IntegrityMetadata:
    """Build integrity metadata (hash, size, timestamp) for a payload.

    Reads the system clock; hash and size are a pure function of the bytes.

    Args:
        payload: Bytes to describe

    Returns:
        IntegrityMetadata instance
    """
    data = _as_bytes(payload)
    return IntegrityMetadata(
        hash=compute_digest(data),
        size=len(data),
        timestamp=utc_timestamp(),
    )
