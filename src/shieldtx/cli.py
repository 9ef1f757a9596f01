"""CLI entry point for shieldtx."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from shieldtx.config import load_config
from shieldtx.errors import ShieldTxError
from shieldtx.models.relayer import ChainFamily
from shieldtx.proving.backend import read_proving_key
from shieldtx.relayer.info import fetch_capabilities
from shieldtx.relayer.session import RelaySession
from shieldtx.service import WithdrawalRequest, WithdrawalService
from shieldtx.storage.sqlite import SQLiteSubmissionStore
from shieldtx.substrate.leaves import HttpLeafRpc, LeafFetcher


def _short(value: str | None, n: int = 18) -> str:
    if not value:
        return "-"
    return value if len(value) <= n else f"{value[:n]}..."


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """shieldtx - shielded withdrawals on Substrate mixers."""
    ctx.ensure_object(dict)
    cfg = load_config(config_path)
    ctx.obj["config"] = cfg

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show client configuration."""
    cfg = ctx.obj["config"]
    click.echo(f"Node (ws):     {cfg.chain.ws_url}")
    click.echo(f"Node (http):   {cfg.chain.http_rpc_url}")
    click.echo(f"Chain:         {cfg.chain.chain_name}")
    click.echo(f"Tree:          {cfg.chain.tree_id}")
    click.echo(f"Relayer:       {cfg.relayer.endpoint or '(direct submission)'}")
    click.echo(f"Backend:       {cfg.proving.backend or '(not set)'}")
    click.echo(f"Proving key:   {cfg.proving.proving_key_path or '(not set)'}")
    click.echo(f"DB path:       {cfg.db_path}")
    click.echo(f"Keypair:       {'***configured***' if cfg.chain.keypair_uri else '(not set)'}")


@cli.command()
@click.argument("tree_id", type=int)
@click.option("--show", is_flag=True, help="Print every leaf as hex")
@click.pass_context
def leaves(ctx: click.Context, tree_id: int, show: bool) -> None:
    """Fetch all leaves of a merkle tree."""
    cfg = ctx.obj["config"]

    async def _leaves():
        rpc = HttpLeafRpc(cfg.chain.http_rpc_url)
        try:
            return await LeafFetcher(rpc).fetch_leaves(tree_id)
        finally:
            await rpc.close()

    try:
        result = asyncio.run(_leaves())
    except ShieldTxError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Tree {tree_id}: {len(result)} leaves")
    if show:
        for i, leaf in enumerate(result):
            click.echo(f"  {i:>6}  0x{leaf.hex()}")


@cli.command("relayer-info")
@click.argument("endpoint", required=False)
@click.pass_context
def relayer_info(ctx: click.Context, endpoint: str | None) -> None:
    """Show chains and contracts a relayer supports."""
    cfg = ctx.obj["config"]
    endpoint = endpoint or cfg.relayer.endpoint
    if not endpoint:
        click.echo("Error: No relayer endpoint given or configured.", err=True)
        sys.exit(1)

    try:
        caps = asyncio.run(fetch_capabilities(endpoint))
    except ShieldTxError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Relayer:     {endpoint}")
    click.echo(f"IP service:  {caps.has_ip_service}")
    for family in ChainFamily:
        chains = caps.chains(family)
        if not chains:
            continue
        click.echo(f"\n{family.value}:")
        for name, chain in chains.items():
            click.echo(f"  {name}  account={_short(chain.account)}")
            for contract in chain.contracts:
                click.echo(
                    f"    {contract.contract:<10} {_short(contract.address)}"
                    f"  fee={contract.withdraw_fee_percentage:.2%}"
                )


# ── Withdraw ───────────────────────────────────────────


@cli.command()
@click.argument("note")
@click.option("--recipient", required=True, help="Recipient address (SS58)")
@click.option("--leaf-index", type=int, required=True, help="Index of the note's leaf in the tree")
@click.option("--fee", type=int, default=0, help="Relayer fee")
@click.option("--refund", type=int, default=0, help="Refund amount")
@click.option("--relayer", "relayer_endpoint", default=None, help="Relay through this endpoint")
@click.pass_context
def withdraw(
    ctx: click.Context,
    note: str,
    recipient: str,
    leaf_index: int,
    fee: int,
    refund: int,
    relayer_endpoint: str | None,
) -> None:
    """Prove and submit a withdrawal for NOTE."""
    cfg = ctx.obj["config"]
    if relayer_endpoint:
        cfg.relayer.endpoint = relayer_endpoint
    if not cfg.proving.proving_key_path:
        click.echo("Error: No proving key configured ([proving] proving_key_path).", err=True)
        sys.exit(1)

    def _progress(session: RelaySession) -> None:
        click.echo(f"  relayer: {session.state.value}")

    async def _withdraw():
        service = WithdrawalService.from_config(cfg)
        await service.initialize()
        try:
            return await service.withdraw(
                WithdrawalRequest(
                    note=note,
                    recipient=recipient,
                    leaf_index=leaf_index,
                    fee=fee,
                    refund=refund,
                ),
                read_proving_key(cfg.proving.proving_key_path),
                on_update=_progress,
            )
        finally:
            await service.aclose()

    try:
        outcome = asyncio.run(_withdraw())
    except (ShieldTxError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if outcome.ok:
        click.echo(f"Withdrawal finalized: {outcome.tx_hash}")
    else:
        click.echo(f"Withdrawal failed: {outcome.reason}", err=True)
        sys.exit(1)


# ── History ────────────────────────────────────────────


@cli.command()
@click.option("--limit", type=int, default=20)
@click.pass_context
def history(ctx: click.Context, limit: int) -> None:
    """List recent submissions from the journal."""
    cfg = ctx.obj["config"]

    async def _history():
        store = SQLiteSubmissionStore(cfg.db_path)
        await store.initialize()
        try:
            return await store.get_recent_submissions(limit)
        finally:
            await store.close()

    records = asyncio.run(_history())
    if not records:
        click.echo("No submissions yet.")
        return
    for r in records:
        detail = r.tx_hash if r.status == "success" else r.reason
        click.echo(f"#{r.id:<4} {r.created_at[:19]}  {r.mode:<8} {r.status:<8} {_short(detail, 40)}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
