"""Evidence integrity subpackage."""

from evstore.preservation.hashing import (
    compute_digest,
    compute_sha256_stream,
    generate_integrity_metadata,
    verify_hash,
)
from evstore.preservation.immutability import (
    ImmutabilityStatus,
    check_s3_object_lock,
    format_immutability_warning,
)

__all__ = [
    "compute_digest",
    "compute_sha256_stream",
    "generate_integrity_metadata",
    "verify_hash",
    "check_s3_object_lock",
    "format_immutability_warning",
    "ImmutabilityStatus",
]
