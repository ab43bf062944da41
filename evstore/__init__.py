"""Evidence store - redundant, integrity-checked storage on S3 and IPFS."""

__version__ = "0.1.0"

from evstore.errors import (
    AllBackendsFailedError,
    BackendNotConfiguredError,
    ConfigurationError,
    EvidenceNotFoundError,
    EvidenceStoreError,
    IntegrityError,
    NoSourceAvailableError,
)
from evstore.preservation.hashing import compute_digest, generate_integrity_metadata, verify_hash
from evstore.store import EvidenceStore
from evstore.types import (
    EvidenceMetadata,
    EvidenceStoreConfig,
    ExistsResult,
    IntegrityMetadata,
    IPFSConfig,
    RetrieveResult,
    S3Config,
    SourceSelector,
    StoreResult,
)

__all__ = [
    "__version__",
    "EvidenceStore",
    "EvidenceStoreConfig",
    "S3Config",
    "IPFSConfig",
    "IntegrityMetadata",
    "StoreResult",
    "RetrieveResult",
    "EvidenceMetadata",
    "SourceSelector",
    "ExistsResult",
    "compute_digest",
    "verify_hash",
    "generate_integrity_metadata",
    "EvidenceStoreError",
    "ConfigurationError",
    "AllBackendsFailedError",
    "NoSourceAvailableError",
    "IntegrityError",
    "BackendNotConfiguredError",
    "EvidenceNotFoundError",
]
