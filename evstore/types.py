"""Core type definitions for the evidence store."""

from dataclasses import dataclass, field
from typing import Any


OBJECT_STORE = "s3"
CONTENT_STORE = "ipfs"


@dataclass(frozen=True)
class IntegrityMetadata:
    """Hash, size and creation time of a payload."""

    hash: str
    size: int
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"hash": self.hash, "size": self.size, "timestamp": self.timestamp}


@dataclass
class StoreResult:
    """Outcome of a dual-backend write.

    Backend identifiers are only set for backends whose write succeeded.
    ``failures`` maps each failed backend name to its error message.
    """

    hash: str
    size: int
    timestamp: str
    object_store_key: str | None = None
    content_address: str | None = None
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        """Return True if at least one backend write failed."""
        return bool(self.failures)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "hash": self.hash,
            "size": self.size,
            "timestamp": self.timestamp,
        }
        if self.object_store_key is not None:
            result["object_store_key"] = self.object_store_key
        if self.content_address is not None:
            result["content_address"] = self.content_address
        if self.failures:
            result["failures"] = dict(self.failures)
        return result


@dataclass
class RetrieveResult:
    """Bytes read back from a backend together with their metadata."""

    data: bytes
    metadata: IntegrityMetadata
    source: str = ""  # backend that served the bytes


@dataclass
class EvidenceMetadata:
    """Metadata of stored evidence plus a freshly computed verification flag."""

    hash: str
    size: int
    timestamp: str
    verified: bool
    object_store_key: str | None = None
    content_address: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "hash": self.hash,
            "size": self.size,
            "timestamp": self.timestamp,
        }
        if self.object_store_key is not None:
            result["object_store_key"] = self.object_store_key
        if self.content_address is not None:
            result["content_address"] = self.content_address
        result["verified"] = self.verified
        return result


@dataclass(frozen=True)
class SourceSelector:
    """Identifiers used to locate previously stored evidence."""

    object_store_key: str | None = None
    content_address: str | None = None

    @property
    def is_empty(self) -> bool:
        """Return True if no identifier is set."""
        return not self.object_store_key and not self.content_address


@dataclass(frozen=True)
class ExistsResult:
    """Per-backend existence of a piece of evidence."""

    object_store: bool = False
    content_address: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {OBJECT_STORE: self.object_store, CONTENT_STORE: self.content_address}


@dataclass
class S3Config:
    """Configuration for the S3-compatible object store backend."""

    bucket: str
    access_key_id: str | None = None
    secret_access_key: str | None = None
    endpoint: str | None = None  # None means the AWS default endpoint
    region: str = "us-east-1"
    object_lock_enabled: bool = False
    timeout: float = 30.0


@dataclass
class IPFSConfig:
    """Configuration for the IPFS (Kubo RPC) backend."""

    endpoint: str
    timeout: float = 30.0


@dataclass
class EvidenceStoreConfig:
    """Main configuration for the evidence store.

    At least one backend section must be present for a store to be built.
    """

    s3: S3Config | None = None
    ipfs: IPFSConfig | None = None

    @property
    def configured_backends(self) -> list[str]:
        """Return names of configured backends."""
        names = []
        if self.s3 is not None:
            names.append(OBJECT_STORE)
        if self.ipfs is not None:
            names.append(CONTENT_STORE)
        return names
