"""Abstract backend interfaces consumed by the evidence store."""

from abc import ABC, abstractmethod

from evstore.types import IntegrityMetadata


class StorageBackend(ABC):
    """Common base for storage backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend name (e.g., 's3', 'ipfs')."""
        pass

    async def aclose(self) -> None:
        """Release any client resources held by the backend."""


class ObjectStoreBackend(StorageBackend):
    """Key/value blob store that keeps integrity metadata as object attributes."""

    @abstractmethod
    async def put(self, data: bytes, key: str, metadata: IntegrityMetadata) -> str:
        """Write bytes under a key.

        Args:
            data: Payload to write
            key: Object key
            metadata: Integrity metadata embedded as object attributes

        Returns:
            The key the object was written under
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> tuple[bytes, dict[str, str]]:
        """Read bytes and their attributes.

        Raises:
            EvidenceNotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    async def head(self, key: str) -> bool:
        """Return True if the key exists."""
        pass

    @abstractmethod
    def sign(self, key: str, expires_in: int) -> str:
        """Return a time-limited URL granting read access to the key."""
        pass


class ContentAddressedBackend(StorageBackend):
    """Store whose retrieval identifier is derived from the content."""

    @abstractmethod
    async def add(self, data: bytes, pin: bool = True) -> str:
        """Add bytes and return their content address."""
        pass

    @abstractmethod
    async def cat(self, content_address: str) -> bytes:
        """Read the bytes stored at a content address."""
        pass

    @abstractmethod
    async def pin_ls(self, content_address: str) -> bool:
        """Return True if the content address is pinned."""
        pass

    @abstractmethod
    def gateway_url(self, content_address: str, gateway: str | None = None) -> str:
        """Return a public gateway URL for the content address."""
        pass
