"""CLI entry point for the auto-collector service and the approval report."""

import asyncio
import logging
import sys

import click

from .adapters.evm.adapter import EVMLedgerClient
from .adapters.evm.constants import DEFAULT_SCAN_BLOCKS
from .adapters.evm.ERC20_ABI import get_erc20_abi
from .config import load_settings
from .engine.exceptions import BlockchainInteractionError, ConfigurationError
from .reports.approvals import ApprovalScanner
from .servers.apps import AutoCollectorServer


def _load(ctx: click.Context, require_signer: bool):
    """Load settings or exit with the configuration error."""
    try:
        return load_settings(env_file=ctx.obj["env_file"], require_signer=require_signer)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("-e", "--env-file", default=None, help="Path to a .env file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, env_file, verbose: bool) -> None:
    """auto-collector - ERC-20 allowance collection and gas funding service."""
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Service ────────────────────────────────────────────


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides HOST)")
@click.option("--port", default=None, type=int, help="Bind port (overrides PORT)")
@click.pass_context
def serve(ctx: click.Context, host, port) -> None:
    """Start the HTTP service."""
    import uvicorn

    settings = _load(ctx, require_signer=True)
    try:
        app = AutoCollectorServer.from_settings(settings, title="auto-collector")
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    host = host or settings.host
    port = port or settings.port
    click.echo(f"Backend running on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="debug" if ctx.obj.get("verbose") else "info")


# ── Report ─────────────────────────────────────────────


@cli.command("scan-approvals")
@click.option(
    "--blocks", default=DEFAULT_SCAN_BLOCKS, show_default=True, type=click.IntRange(min=1),
    help="How many recent blocks to scan",
)
@click.pass_context
def scan_approvals(ctx: click.Context, blocks: int) -> None:
    """List addresses that approved the collector, with live allowance and balance."""
    settings = _load(ctx, require_signer=False)
    ledger = EVMLedgerClient(
        private_key=None,
        rpc_url=settings.scan_rpc_url or settings.rpc_url,
        chain_id=settings.chain_id,
        request_timeout=settings.request_timeout,
        contracts={settings.token_address: get_erc20_abi()},
    )
    scanner = ApprovalScanner(
        ledger,
        token_address=settings.token_address,
        spender=settings.collector_address,
        decimals=settings.token_decimals,
        symbol=settings.token_symbol,
    )

    click.echo(f"Scanning approvals for spender {settings.collector_address} over {blocks} blocks...")
    try:
        report = asyncio.run(scanner.scan(blocks))
    except BlockchainInteractionError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("The RPC may limit log ranges; try a lower --blocks value.", err=True)
        sys.exit(1)

    click.echo(scanner.format_report(report))


if __name__ == "__main__":
    cli()
