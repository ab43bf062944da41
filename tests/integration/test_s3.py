"""Integration tests for the S3 backend using Moto."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from evstore.backends.s3 import S3Backend
from evstore.errors import EvidenceNotFoundError
from evstore.preservation.hashing import generate_integrity_metadata
from evstore.preservation.immutability import ImmutabilityStatus
from evstore.store import EvidenceStore
from evstore.types import S3Config, SourceSelector

BUCKET = "evidence-test"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Keep boto3 away from any real credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3_backend(aws_credentials):
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield S3Backend(S3Config(bucket=BUCKET))


@pytest.fixture
def locked_bucket(aws_credentials):
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET, ObjectLockEnabledForBucket=True)
        yield client


@pytest.mark.asyncio
async def test_put_and_get_round_trip_with_attributes(s3_backend):
    data = b"hello world"
    metadata = generate_integrity_metadata(data)

    key = await s3_backend.put(data, "evidence/hello", metadata)
    body, attributes = await s3_backend.get(key)

    assert key == "evidence/hello"
    assert body == data
    assert attributes["content-hash"] == metadata.hash
    assert attributes["content-size"] == "11"
    assert attributes["upload-timestamp"] == metadata.timestamp


@pytest.mark.asyncio
async def test_get_missing_key_raises_not_found(s3_backend):
    with pytest.raises(EvidenceNotFoundError):
        await s3_backend.get("evidence/missing")


@pytest.mark.asyncio
async def test_head(s3_backend):
    await s3_backend.put(b"x", "evidence/x", generate_integrity_metadata(b"x"))

    assert await s3_backend.head("evidence/x") is True
    assert await s3_backend.head("evidence/missing") is False


def test_sign_returns_presigned_url(s3_backend):
    url = s3_backend.sign("evidence/x", 120)

    assert BUCKET in url
    assert "evidence/x" in url


def test_check_object_lock_disabled(s3_backend):
    result = s3_backend.check_object_lock()
    assert result.status == ImmutabilityStatus.DISABLED


def test_check_object_lock_enabled(locked_bucket):
    backend = S3Backend(S3Config(bucket=BUCKET, object_lock_enabled=True))
    result = backend.check_object_lock()
    assert result.status == ImmutabilityStatus.ENABLED


def test_object_lock_adds_governance_retention():
    client = MagicMock()
    backend = S3Backend(S3Config(bucket=BUCKET, object_lock_enabled=True), client=client)

    kwargs = backend._put_kwargs(b"data", "evidence/k", generate_integrity_metadata(b"data"))

    assert kwargs["ObjectLockMode"] == "GOVERNANCE"
    retention = kwargs["ObjectLockRetainUntilDate"] - datetime.now(timezone.utc)
    assert 364 <= retention.days <= 365


def test_no_object_lock_by_default():
    backend = S3Backend(S3Config(bucket=BUCKET), client=MagicMock())

    kwargs = backend._put_kwargs(b"data", "evidence/k", generate_integrity_metadata(b"data"))

    assert "ObjectLockMode" not in kwargs
    assert kwargs["ContentType"] == "application/octet-stream"


@pytest.mark.asyncio
async def test_evidence_store_with_s3_only(s3_backend):
    evidence = EvidenceStore(object_store=s3_backend)

    stored = await evidence.store(b"hello world")
    restored = await evidence.retrieve(SourceSelector(object_store_key=stored.object_store_key))
    metadata = await evidence.get_metadata(SourceSelector(object_store_key=stored.object_store_key))

    assert stored.content_address is None
    assert restored.data == b"hello world"
    assert restored.metadata.hash == stored.hash
    assert metadata.verified is True
    assert (await evidence.exists(SourceSelector(object_store_key=stored.object_store_key))).object_store


@pytest.mark.asyncio
async def test_evidence_store_locked_bucket_write(locked_bucket):
    backend = S3Backend(S3Config(bucket=BUCKET, object_lock_enabled=True))
    evidence = EvidenceStore(object_store=backend)

    stored = await evidence.store(b"immutable evidence")

    head = locked_bucket.head_object(Bucket=BUCKET, Key=stored.object_store_key)
    assert head["ObjectLockMode"] == "GOVERNANCE"
