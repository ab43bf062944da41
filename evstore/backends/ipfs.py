"""IPFS backend talking to a Kubo node over its HTTP RPC API."""

import json
import logging

import httpx

from evstore.backends.base import ContentAddressedBackend
from evstore.errors import EvidenceNotFoundError
from evstore.types import CONTENT_STORE, IPFSConfig
from evstore.utils import with_retry


logger = logging.getLogger(__name__)

DEFAULT_GATEWAY = "https://ipfs.io"

# Kubo reports every command error as HTTP 500; only these messages mean
# the content itself is missing.
MISSING_CONTENT_MESSAGES = (
    "not found",
    "could not find",
    "no link named",
)


def _is_missing_content(response: httpx.Response) -> bool:
    if response.status_code == 404:
        return True
    try:
        payload = response.json()
    except ValueError:
        return False
    if not isinstance(payload, dict):
        return False
    message = str(payload.get("Message", ""))
    return any(marker in message.lower() for marker in MISSING_CONTENT_MESSAGES)


class IPFSBackend(ContentAddressedBackend):
    """Content-addressed backend for an IPFS node.

    All RPC calls are POST requests against ``<endpoint>/api/v0/...``.
    Added content is pinned so the node does not garbage collect it.
    """

    def __init__(self, config: IPFSConfig, client: httpx.AsyncClient | None = None):
        """Initialize the backend.

        Args:
            config: IPFS configuration
            client: Pre-built httpx client, mainly for tests
        """
        self.config = config
        self.timeout = config.timeout
        self._client = client or httpx.AsyncClient(
            base_url=config.endpoint.rstrip("/"),
            timeout=config.timeout,
        )

    @property
    def name(self) -> str:
        return CONTENT_STORE

    async def aclose(self) -> None:
        await self._client.aclose()

    @with_retry()
    async def _rpc(self, command: str, **params: str) -> httpx.Response:
        response = await self._client.post(f"/api/v0/{command}", params=params)
        response.raise_for_status()
        return response

    @with_retry()
    async def add(self, data: bytes, pin: bool = True) -> str:
        response = await self._client.post(
            "/api/v0/add",
            params={"pin": "true" if pin else "false", "cid-version": "0"},
            files={"file": ("evidence", data, "application/octet-stream")},
        )
        response.raise_for_status()
        # Newline-delimited JSON; the last entry describes the root object
        lines = [line for line in response.text.splitlines() if line.strip()]
        content_address = json.loads(lines[-1])["Hash"]
        logger.debug(f"Added {len(data)} bytes to IPFS as {content_address} (pin={pin})")
        return content_address

    async def cat(self, content_address: str) -> bytes:
        try:
            response = await self._rpc("cat", arg=content_address)
        except httpx.HTTPStatusError as e:
            if _is_missing_content(e.response):
                raise EvidenceNotFoundError(f"ipfs://{content_address}") from e
            raise
        return response.content

    async def pin_ls(self, content_address: str) -> bool:
        try:
            response = await self._rpc("pin/ls", arg=content_address)
        except httpx.HTTPStatusError:
            # Kubo answers "not pinned" with an error status
            return False
        keys = response.json().get("Keys") or {}
        return content_address in keys

    async def pin(self, content_address: str) -> None:
        """Pin content so it is retained indefinitely."""
        await self._rpc("pin/add", arg=content_address)

    async def unpin(self, content_address: str) -> None:
        """Remove the pin, allowing the node to garbage collect the content."""
        await self._rpc("pin/rm", arg=content_address)

    async def version(self) -> str:
        """Return the node's version string."""
        response = await self._rpc("version")
        return response.json().get("Version", "unknown")

    def gateway_url(self, content_address: str, gateway: str | None = None) -> str:
        base = (gateway or DEFAULT_GATEWAY).rstrip("/")
        return f"{base}/ipfs/{content_address}"
