"""Storage backends for the evidence store."""

from evstore.backends.base import ContentAddressedBackend, ObjectStoreBackend, StorageBackend
from evstore.backends.ipfs import DEFAULT_GATEWAY, IPFSBackend
from evstore.backends.s3 import S3Backend

__all__ = [
    "StorageBackend",
    "ObjectStoreBackend",
    "ContentAddressedBackend",
    "S3Backend",
    "IPFSBackend",
    "DEFAULT_GATEWAY",
]
