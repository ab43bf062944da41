"""S3-compatible object store backend."""

import asyncio
import base64
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from evstore.backends.base import ObjectStoreBackend
from evstore.errors import EvidenceNotFoundError
from evstore.preservation.immutability import ImmutabilityCheckResult, check_s3_object_lock
from evstore.types import OBJECT_STORE, IntegrityMetadata, S3Config
from evstore.utils import with_retry


logger = logging.getLogger(__name__)

HASH_ATTRIBUTE = "content-hash"
SIZE_ATTRIBUTE = "content-size"
TIMESTAMP_ATTRIBUTE = "upload-timestamp"

OBJECT_LOCK_MODE = "GOVERNANCE"
OBJECT_LOCK_RETENTION = timedelta(days=365)

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class S3Backend(ObjectStoreBackend):
    """Object store backend for S3 and S3-compatible services (MinIO, R2, ...).

    boto3 is blocking, so every request runs in a worker thread and the
    backend stays awaitable from the event loop.
    """

    def __init__(self, config: S3Config, client: Any = None):
        """Initialize the backend.

        Args:
            config: S3 configuration
            client: Pre-built boto3 S3 client, mainly for tests
        """
        self.config = config
        self.bucket = config.bucket
        self.object_lock_enabled = config.object_lock_enabled
        self._client = client or self._create_client(config)

    @staticmethod
    def _create_client(config: S3Config) -> Any:
        client_config = Config(
            connect_timeout=config.timeout,
            read_timeout=config.timeout,
            s3={"addressing_style": "path"} if config.endpoint else None,
        )
        return boto3.client(
            "s3",
            endpoint_url=config.endpoint,
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            config=client_config,
        )

    @property
    def name(self) -> str:
        return OBJECT_STORE

    def _put_kwargs(self, data: bytes, key: str, metadata: IntegrityMetadata) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
            "ContentType": "application/octet-stream",
            "ContentMD5": base64.b64encode(hashlib.md5(data).digest()).decode("ascii"),
            "Metadata": {
                HASH_ATTRIBUTE: metadata.hash,
                SIZE_ATTRIBUTE: str(metadata.size),
                TIMESTAMP_ATTRIBUTE: metadata.timestamp,
            },
        }
        if self.object_lock_enabled:
            kwargs["ObjectLockMode"] = OBJECT_LOCK_MODE
            kwargs["ObjectLockRetainUntilDate"] = (
                datetime.now(timezone.utc) + OBJECT_LOCK_RETENTION
            )
        return kwargs

    @with_retry()
    def _put_sync(self, kwargs: dict[str, Any]) -> None:
        self._client.put_object(**kwargs)

    async def put(self, data: bytes, key: str, metadata: IntegrityMetadata) -> str:
        kwargs = self._put_kwargs(data, key, metadata)
        await asyncio.to_thread(self._put_sync, kwargs)
        logger.debug(f"Stored {metadata.size} bytes at s3://{self.bucket}/{key}")
        return key

    @with_retry()
    def _get_sync(self, key: str) -> tuple[bytes, dict[str, str]]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise EvidenceNotFoundError(f"s3://{self.bucket}/{key}") from e
            raise

        body = response.get("Body")
        if body is None:
            raise EvidenceNotFoundError(f"s3://{self.bucket}/{key}")
        return body.read(), dict(response.get("Metadata") or {})

    async def get(self, key: str) -> tuple[bytes, dict[str, str]]:
        return await asyncio.to_thread(self._get_sync, key)

    @with_retry()
    def _head_sync(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return False
            raise

    async def head(self, key: str) -> bool:
        return await asyncio.to_thread(self._head_sync, key)

    def sign(self, key: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    def check_bucket(self) -> None:
        """Raise if the bucket is missing or not accessible."""
        self._client.head_bucket(Bucket=self.bucket)

    def check_object_lock(self) -> ImmutabilityCheckResult:
        """Report whether the bucket has Object Lock enabled."""
        return check_s3_object_lock(self._client, self.bucket)
