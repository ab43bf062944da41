"""CLI commands for the evidence store."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from evstore import __version__
from evstore.config import get_default_config, load_config, load_config_from_env
from evstore.preservation.hashing import compute_sha256_stream
from evstore.store import EvidenceStore
from evstore.types import EvidenceStoreConfig, SourceSelector


# Results go to stdout as JSON, everything human-facing goes to stderr
console = Console(stderr=True)

T = TypeVar("T")


def setup_logging(verbose: bool) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_store_config(config_path: Optional[str]) -> EvidenceStoreConfig:
    if config_path:
        return load_config(Path(config_path))
    return load_config_from_env()


def _run(ctx: click.Context, action: str, operation: Callable[[EvidenceStore], Awaitable[T]]) -> T:
    """Build the store, run one async operation against it and close it.

    Any error is printed and terminates the process with status 1.
    """
    logger = logging.getLogger(__name__)

    async def runner() -> T:
        async with EvidenceStore(_load_store_config(ctx.obj["config"])) as store:
            return await operation(store)

    try:
        return asyncio.run(runner())
    except Exception as e:
        logger.debug(f"{action} failed", exc_info=True)
        console.print(f"[red]Error {action}:[/red] {e}")
        sys.exit(1)


def _selector(s3_key: Optional[str], ipfs_hash: Optional[str]) -> SourceSelector:
    selector = SourceSelector(object_store_key=s3_key, content_address=ipfs_hash)
    if selector.is_empty:
        raise click.ClickException("Either --s3-key or --ipfs-hash must be provided")
    return selector


def _echo_json(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2))


source_options = [
    click.option("--s3-key", help="S3 key of the evidence"),
    click.option("--ipfs-hash", help="IPFS content address (CID) of the evidence"),
]


def with_source_options(func: Callable) -> Callable:
    for option in reversed(source_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="evstore")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to YAML/JSON configuration file (defaults to EVSTORE_* environment variables)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Evidence store - redundant, integrity-checked storage on S3 and IPFS."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--s3-key", help="Custom S3 key (defaults to evidence/<sha256>)")
@click.pass_context
def store(ctx: click.Context, file: str, s3_key: Optional[str]) -> None:
    """Store a file as evidence.

    Examples:

        evstore store report.pdf

        evstore -c config.yaml store capture.pcap --s3-key cases/IR-2025-001/capture.pcap
    """
    data = Path(file).read_bytes()
    result = _run(ctx, "storing file", lambda evidence: evidence.store(data, object_store_key=s3_key))

    for backend, error in result.failures.items():
        console.print(f"[yellow]⚠[/yellow] {backend} write failed: {error}")
    _echo_json(result.to_dict())


@cli.command()
@with_source_options
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (stdout if not given)")
@click.pass_context
def retrieve(ctx: click.Context, s3_key: Optional[str], ipfs_hash: Optional[str], output: Optional[str]) -> None:
    """Retrieve evidence by S3 key or IPFS hash."""
    selector = _selector(s3_key, ipfs_hash)
    result = _run(ctx, "retrieving evidence", lambda evidence: evidence.retrieve(selector))

    if output:
        Path(output).write_bytes(result.data)
        console.print(f"File written to: {output} (from {result.source})")
        _echo_json(result.metadata.to_dict())
    else:
        stdout = sys.stdout.buffer
        stdout.write(result.data)
        stdout.flush()


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--hash", "expected_hash", required=True, help="Expected hash (0x prefixed)")
@click.pass_context
def verify(ctx: click.Context, file: str, expected_hash: str) -> None:
    """Verify a file against its expected hash."""
    with open(file, "rb") as f:
        actual_hash = compute_sha256_stream(f)

    is_valid = actual_hash == expected_hash
    click.echo(f"File verification: {'PASSED' if is_valid else 'FAILED'}")
    if not is_valid:
        console.print(f"[dim]Computed {actual_hash}[/dim]")
    ctx.exit(0 if is_valid else 1)


@cli.command()
@with_source_options
@click.pass_context
def metadata(ctx: click.Context, s3_key: Optional[str], ipfs_hash: Optional[str]) -> None:
    """Get metadata for stored evidence, re-verifying its hash."""
    selector = _selector(s3_key, ipfs_hash)
    result = _run(ctx, "getting metadata", lambda evidence: evidence.get_metadata(selector))
    _echo_json(result.to_dict())


@cli.command()
@with_source_options
@click.pass_context
def exists(ctx: click.Context, s3_key: Optional[str], ipfs_hash: Optional[str]) -> None:
    """Check if evidence exists in storage."""
    selector = _selector(s3_key, ipfs_hash)
    result = _run(ctx, "checking existence", lambda evidence: evidence.exists(selector))
    _echo_json(result.to_dict())


@cli.command("signed-url")
@click.argument("s3_key")
@click.option("--expires-in", type=int, default=3600, show_default=True, help="URL lifetime in seconds")
@click.pass_context
def signed_url(ctx: click.Context, s3_key: str, expires_in: int) -> None:
    """Print a time-limited download URL for an S3 key."""

    async def sign(evidence: EvidenceStore) -> str:
        return evidence.get_signed_url(s3_key, expires_in)

    click.echo(_run(ctx, "signing URL", sign))


@cli.command("gateway-url")
@click.argument("ipfs_hash")
@click.option("--gateway", help="Gateway base URL (default https://ipfs.io)")
@click.pass_context
def gateway_url(ctx: click.Context, ipfs_hash: str, gateway: Optional[str]) -> None:
    """Print a public gateway URL for an IPFS hash."""

    async def compose(evidence: EvidenceStore) -> str:
        return evidence.get_gateway_url(ipfs_hash, gateway)

    click.echo(_run(ctx, "building gateway URL", compose))


@cli.command()
@click.pass_context
def preflight(ctx: click.Context) -> None:
    """Check that the configured backends are reachable."""
    from evstore.cli.preflight import run_preflight_checks

    console.print("[bold]Running preflight checks...[/bold]")
    ok = _run(ctx, "running preflight checks", run_preflight_checks)

    if not ok:
        console.print("[red]Preflight checks failed.[/red]")
        ctx.exit(1)
    console.print("[green]✓ Preflight checks passed[/green]")


@cli.command()
@click.option("--output", "-o", type=click.Path(), default="./evstore.yaml")
def init(output: str) -> None:
    """Generate a sample configuration file."""
    config = get_default_config()
    config["s3"]["bucket"] = "YOUR_BUCKET"

    output_path = Path(output)
    with open(output_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    console.print(f"[green]Generated configuration file: {output_path}[/green]")
    console.print(f"[dim]Edit the file and run: evstore --config {output_path} store <file>[/dim]")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
