"""Preflight connectivity checks for the configured backends."""

import asyncio
import logging

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
import httpx
from rich.console import Console
from rich.table import Table

from evstore.backends.ipfs import IPFSBackend
from evstore.backends.s3 import S3Backend
from evstore.preservation.immutability import ImmutabilityStatus, format_immutability_warning
from evstore.store import EvidenceStore


console = Console(stderr=True)
logger = logging.getLogger(__name__)


async def run_preflight_checks(store: EvidenceStore) -> bool:
    """Run preflight checks for every configured backend.

    Args:
        store: Evidence store whose backends are checked

    Returns:
        True if every configured backend is reachable, False otherwise
    """
    results: list[tuple[str, bool, str]] = []

    if isinstance(store.object_store, S3Backend):
        results.extend(await asyncio.to_thread(_check_s3, store.object_store))
    if isinstance(store.content_store, IPFSBackend):
        results.extend(await _check_ipfs(store.content_store))

    _print_check_results(results)
    return all(passed for _, passed, _ in results)


def _check_s3(backend: S3Backend) -> list[tuple[str, bool, str]]:
    """Check bucket access and Object Lock status."""
    results: list[tuple[str, bool, str]] = []

    try:
        backend.check_bucket()
        results.append(("S3 HeadBucket", True, f"Bucket: {backend.bucket}"))
    except NoCredentialsError:
        results.append(("S3 Credentials", False, "No credentials found"))
        return results
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        if code in ("403", "AccessDenied"):
            results.append(("S3 HeadBucket", False, "Access denied"))
        else:
            results.append(("S3 HeadBucket", False, str(e)))
        return results
    except BotoCoreError as e:
        results.append(("S3 HeadBucket", False, str(e)))
        return results

    lock = backend.check_object_lock()
    # Retention is requested on every write, so the bucket must support it
    passed = lock.status == ImmutabilityStatus.ENABLED or not backend.object_lock_enabled
    results.append((
        "S3 Object Lock",
        passed,
        format_immutability_warning(lock, backend.object_lock_enabled),
    ))

    return results


async def _check_ipfs(backend: IPFSBackend) -> list[tuple[str, bool, str]]:
    """Check the IPFS node answers RPC calls."""
    try:
        version = await backend.version()
        return [("IPFS Version", True, f"Kubo {version}")]
    except httpx.HTTPError as e:
        logger.debug(f"IPFS preflight failed: {e}")
        return [("IPFS Version", False, str(e))]


def _print_check_results(results: list[tuple[str, bool, str]]) -> None:
    """Print preflight check results as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Details", style="dim")

    for check, passed, details in results:
        status = "[green]✓[/green]" if passed else "[red]✗[/red]"
        table.add_row(check, status, details or "")

    console.print(table)
