"""Evidence store orchestrating dual-backend writes and fallback reads."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from evstore.backends.base import ContentAddressedBackend, ObjectStoreBackend
from evstore.backends.ipfs import IPFSBackend
from evstore.backends.s3 import S3Backend
from evstore.errors import (
    AllBackendsFailedError,
    BackendNotConfiguredError,
    ConfigurationError,
    IntegrityError,
    NoSourceAvailableError,
)
from evstore.preservation.hashing import (
    compute_digest,
    generate_integrity_metadata,
    strip_prefix,
    verify_hash,
)
from evstore.types import (
    CONTENT_STORE,
    OBJECT_STORE,
    EvidenceMetadata,
    EvidenceStoreConfig,
    ExistsResult,
    IntegrityMetadata,
    RetrieveResult,
    SourceSelector,
    StoreResult,
)
from evstore.utils import utc_timestamp


logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "evidence/"
DEFAULT_SIGNED_URL_TTL = 3600


def default_object_key(digest: str) -> str:
    """Derive the object store key for a digest."""
    return DEFAULT_KEY_PREFIX + strip_prefix(digest)


class EvidenceStore:
    """Stores evidence redundantly in an object store and IPFS.

    Writes fan out to every configured backend and succeed if at least one
    backend accepted the payload. Reads try the object store first and fall
    back to IPFS when both identifiers are known.

    Example:
        async with EvidenceStore(config) as store:
            result = await store.store(b"payload")
            restored = await store.retrieve(
                SourceSelector(object_store_key=result.object_store_key)
            )
    """

    def __init__(
        self,
        config: EvidenceStoreConfig | None = None,
        *,
        object_store: ObjectStoreBackend | None = None,
        content_store: ContentAddressedBackend | None = None,
    ):
        """Initialize the store.

        Args:
            config: Backend configuration; a backend is built for each section
            object_store: Object store backend, overrides ``config.s3``
            content_store: Content-addressed backend, overrides ``config.ipfs``

        Raises:
            ConfigurationError: If no backend is configured
        """
        if config is not None:
            if object_store is None and config.s3 is not None:
                object_store = S3Backend(config.s3)
            if content_store is None and config.ipfs is not None:
                content_store = IPFSBackend(config.ipfs)

        if object_store is None and content_store is None:
            raise ConfigurationError("At least one store (S3 or IPFS) must be configured")

        self.object_store = object_store
        self.content_store = content_store

    async def __aenter__(self) -> "EvidenceStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release resources held by the backends."""
        for backend in (self.object_store, self.content_store):
            if backend is not None:
                await backend.aclose()

    async def store(
        self,
        payload: bytes | str,
        object_store_key: str | None = None,
    ) -> StoreResult:
        """Write a payload to every configured backend.

        Args:
            payload: Evidence bytes (strings are encoded as UTF-8)
            object_store_key: Key override, defaults to ``evidence/<hex digest>``

        Returns:
            StoreResult with identifiers of the backends that succeeded

        Raises:
            AllBackendsFailedError: If every backend write failed
        """
        data = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
        metadata = generate_integrity_metadata(data)

        operations: dict[str, Awaitable[str]] = {}
        if self.object_store is not None:
            key = object_store_key or default_object_key(metadata.hash)
            operations[OBJECT_STORE] = self.object_store.put(data, key, metadata)
        if self.content_store is not None:
            operations[CONTENT_STORE] = self.content_store.add(data, pin=True)

        settled = await asyncio.gather(*operations.values(), return_exceptions=True)
        outcomes = dict(zip(operations.keys(), settled))

        errors = {
            name: outcome
            for name, outcome in outcomes.items()
            if isinstance(outcome, BaseException)
        }
        for error in errors.values():
            if not isinstance(error, Exception):
                # Cancellation and interpreter exits are not backend failures
                raise error

        if len(errors) == len(outcomes):
            raise AllBackendsFailedError(errors)

        result = StoreResult(
            hash=metadata.hash,
            size=metadata.size,
            timestamp=metadata.timestamp,
            object_store_key=outcomes.get(OBJECT_STORE) if OBJECT_STORE not in errors else None,
            content_address=outcomes.get(CONTENT_STORE) if CONTENT_STORE not in errors else None,
            failures={name: str(error) for name, error in errors.items()},
        )

        for name, error in errors.items():
            logger.warning(f"{name} write failed for {metadata.hash}, kept in remaining backend: {error}")
        logger.info(f"Stored {metadata.size} bytes as {metadata.hash}")
        return result

    def _candidates(
        self,
        selector: SourceSelector,
        enforce_integrity: bool,
    ) -> list[tuple[str, Callable[[], Awaitable[RetrieveResult]]]]:
        candidates: list[tuple[str, Callable[[], Awaitable[RetrieveResult]]]] = []
        if selector.object_store_key and self.object_store is not None:
            key = selector.object_store_key
            candidates.append(
                (OBJECT_STORE, lambda: self._read_object_store(key, enforce_integrity))
            )
        if selector.content_address and self.content_store is not None:
            address = selector.content_address
            candidates.append((CONTENT_STORE, lambda: self._read_content_store(address)))
        return candidates

    async def _read_object_store(self, key: str, enforce_integrity: bool) -> RetrieveResult:
        data, attributes = await self.object_store.get(key)
        stored_hash = attributes.get("content-hash")

        if stored_hash and enforce_integrity and not verify_hash(data, stored_hash):
            raise IntegrityError(f"object {key}", stored_hash, compute_digest(data))

        return RetrieveResult(
            data=data,
            metadata=IntegrityMetadata(
                hash=stored_hash or compute_digest(data),
                size=len(data),
                timestamp=attributes.get("upload-timestamp") or utc_timestamp(),
            ),
            source=OBJECT_STORE,
        )

    async def _read_content_store(self, address: str) -> RetrieveResult:
        data = await self.content_store.cat(address)
        return RetrieveResult(
            data=data,
            metadata=generate_integrity_metadata(data),
            source=CONTENT_STORE,
        )

    async def _retrieve(self, selector: SourceSelector, enforce_integrity: bool) -> RetrieveResult:
        candidates = self._candidates(selector, enforce_integrity)
        if not candidates:
            raise NoSourceAvailableError()

        # Only the last candidate's error reaches the caller
        *fallbacks, (_, read_last) = candidates
        for name, read in fallbacks:
            try:
                return await read()
            except Exception as e:
                logger.warning(f"{name} read failed, falling back: {e}")
        return await read_last()

    async def retrieve(self, selector: SourceSelector) -> RetrieveResult:
        """Read evidence, preferring the object store over IPFS.

        Args:
            selector: Identifiers of the stored evidence

        Returns:
            RetrieveResult from the first backend that served the bytes

        Raises:
            NoSourceAvailableError: If no configured backend matches the selector
            IntegrityError: If object store bytes do not match their stored hash
                and no fallback is available
        """
        return await self._retrieve(selector, enforce_integrity=True)

    def verify(self, payload: bytes | str, expected_hash: str) -> bool:
        """Check a payload against an expected digest."""
        return verify_hash(payload, expected_hash)

    async def get_metadata(self, selector: SourceSelector) -> EvidenceMetadata:
        """Retrieve evidence and report its metadata with a fresh verification.

        A tampered object is reported with ``verified=False`` instead of
        raising.
        """
        result = await self._retrieve(selector, enforce_integrity=False)
        verified = verify_hash(result.data, result.metadata.hash)

        return EvidenceMetadata(
            hash=result.metadata.hash,
            size=result.metadata.size,
            timestamp=result.metadata.timestamp,
            object_store_key=selector.object_store_key,
            content_address=selector.content_address,
            verified=verified,
        )

    async def exists(self, selector: SourceSelector) -> ExistsResult:
        """Probe each named backend for the evidence. Never raises."""
        probes: dict[str, Awaitable[bool]] = {}
        if selector.object_store_key and self.object_store is not None:
            probes[OBJECT_STORE] = self.object_store.head(selector.object_store_key)
        if selector.content_address and self.content_store is not None:
            probes[CONTENT_STORE] = self.content_store.pin_ls(selector.content_address)

        settled = await asyncio.gather(*probes.values(), return_exceptions=True)
        found: dict[str, bool] = {}
        for name, outcome in zip(probes.keys(), settled):
            if isinstance(outcome, Exception):
                logger.debug(f"{name} existence check failed: {outcome}")
                found[name] = False
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                found[name] = bool(outcome)

        return ExistsResult(
            object_store=found.get(OBJECT_STORE, False),
            content_address=found.get(CONTENT_STORE, False),
        )

    def get_signed_url(self, object_store_key: str, expires_in: int | None = None) -> str:
        """Return a time-limited read URL for an object store key.

        Raises:
            BackendNotConfiguredError: If no object store is configured
        """
        if self.object_store is None:
            raise BackendNotConfiguredError("S3")
        return self.object_store.sign(object_store_key, expires_in or DEFAULT_SIGNED_URL_TTL)

    def get_gateway_url(self, content_address: str, gateway: str | None = None) -> str:
        """Return a gateway URL for a content address.

        Raises:
            BackendNotConfiguredError: If no IPFS backend is configured
        """
        if self.content_store is None:
            raise BackendNotConfiguredError("IPFS")
        return self.content_store.gateway_url(content_address, gateway)
