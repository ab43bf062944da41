"""Shared fixtures: in-memory backends standing in for S3 and IPFS."""

import asyncio

import pytest

from evstore.backends.base import ContentAddressedBackend, ObjectStoreBackend
from evstore.errors import EvidenceNotFoundError
from evstore.preservation.hashing import compute_digest
from evstore.types import IntegrityMetadata


class FakeObjectStore(ObjectStoreBackend):
    """Dict-backed object store with switchable failures."""

    def __init__(self, delay: float = 0.0):
        self.objects: dict[str, tuple[bytes, dict[str, str]]] = {}
        self.delay = delay
        self.put_error: Exception | None = None
        self.get_error: Exception | None = None
        self.head_error: Exception | None = None
        self.put_calls: list[tuple[bytes, str, IntegrityMetadata]] = []
        self.get_calls: list[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "s3"

    async def aclose(self) -> None:
        self.closed = True

    async def put(self, data, key, metadata):
        self.put_calls.append((data, key, metadata))
        await asyncio.sleep(self.delay)
        if self.put_error:
            raise self.put_error
        self.objects[key] = (data, {
            "content-hash": metadata.hash,
            "content-size": str(metadata.size),
            "upload-timestamp": metadata.timestamp,
        })
        return key

    async def get(self, key):
        self.get_calls.append(key)
        if self.get_error:
            raise self.get_error
        if key not in self.objects:
            raise EvidenceNotFoundError(key)
        data, attributes = self.objects[key]
        return data, dict(attributes)

    async def head(self, key):
        if self.head_error:
            raise self.head_error
        return key in self.objects

    def sign(self, key, expires_in):
        return f"https://s3.example.com/{key}?X-Amz-Expires={expires_in}"


class FakeContentStore(ContentAddressedBackend):
    """Dict-backed content-addressed store using the digest as address."""

    def __init__(self, delay: float = 0.0):
        self.blobs: dict[str, bytes] = {}
        self.pins: set[str] = set()
        self.delay = delay
        self.add_error: Exception | None = None
        self.cat_error: Exception | None = None
        self.pin_error: Exception | None = None
        self.cat_calls: list[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "ipfs"

    async def aclose(self) -> None:
        self.closed = True

    async def add(self, data, pin=True):
        await asyncio.sleep(self.delay)
        if self.add_error:
            raise self.add_error
        address = "Qm" + compute_digest(data)[2:46]
        self.blobs[address] = data
        if pin:
            self.pins.add(address)
        return address

    async def cat(self, content_address):
        self.cat_calls.append(content_address)
        if self.cat_error:
            raise self.cat_error
        if content_address not in self.blobs:
            raise EvidenceNotFoundError(content_address)
        return self.blobs[content_address]

    async def pin_ls(self, content_address):
        if self.pin_error:
            raise self.pin_error
        return content_address in self.pins

    def gateway_url(self, content_address, gateway=None):
        return f"{gateway or 'https://ipfs.io'}/ipfs/{content_address}"


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def content_store():
    return FakeContentStore()
