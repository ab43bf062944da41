"""Immutability detection for the object store bucket."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError


class ImmutabilityStatus(Enum):
    """Status of immutability configuration."""

    ENABLED = "enabled"         # Object Lock is enabled on the bucket
    DISABLED = "disabled"       # Object Lock not configured
    UNKNOWN = "unknown"         # Could not determine status


@dataclass
class ImmutabilityCheckResult:
    """Result of immutability check."""

    status: ImmutabilityStatus
    bucket_name: str
    message: str
    details: dict[str, Any]


def check_s3_object_lock(s3_client: Any, bucket_name: str) -> ImmutabilityCheckResult:
    """Check S3 Object Lock configuration of a bucket.

    Writes made with object locking requested only get WORM protection if
    the bucket itself was created with Object Lock enabled.

    Args:
        s3_client: boto3 S3 client
        bucket_name: Name of the bucket

    Returns:
        ImmutabilityCheckResult with status and details
    """
    try:
        response = s3_client.get_object_lock_configuration(Bucket=bucket_name)
        config = response.get("ObjectLockConfiguration", {})

        if config.get("ObjectLockEnabled") == "Enabled":
            return ImmutabilityCheckResult(
                status=ImmutabilityStatus.ENABLED,
                bucket_name=bucket_name,
                message=f"S3 Object Lock is ENABLED on bucket '{bucket_name}'.",
                details={"config": config},
            )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") != "ObjectLockConfigurationNotFoundError":
            return ImmutabilityCheckResult(
                status=ImmutabilityStatus.UNKNOWN,
                bucket_name=bucket_name,
                message=f"Error checking S3 immutability: {e}",
                details={"error": str(e)},
            )
    except BotoCoreError as e:
        return ImmutabilityCheckResult(
            status=ImmutabilityStatus.UNKNOWN,
            bucket_name=bucket_name,
            message=f"Error checking S3 immutability: {e}",
            details={"error": str(e)},
        )

    return ImmutabilityCheckResult(
        status=ImmutabilityStatus.DISABLED,
        bucket_name=bucket_name,
        message=f"S3 bucket '{bucket_name}' does NOT have Object Lock enabled. "
                f"Evidence integrity cannot be guaranteed.",
        details={},
    )


OBJECT_LOCK_DOCS = "https://docs.aws.amazon.com/AmazonS3/latest/userguide/object-lock.html"


def format_immutability_warning(result: ImmutabilityCheckResult, lock_requested: bool) -> str:
    """Describe an Object Lock check for the preflight table.

    A bucket without Object Lock is only a problem when retention is
    requested on writes; otherwise the status is reported as informational.
    """
    if result.status == ImmutabilityStatus.ENABLED:
        return result.message

    if not lock_requested:
        return f"Not requested ({result.status.value})"

    if result.status == ImmutabilityStatus.DISABLED:
        return (
            f"{result.message} Writes request GOVERNANCE retention "
            f"and will be rejected. See: {OBJECT_LOCK_DOCS}"
        )

    return result.message
