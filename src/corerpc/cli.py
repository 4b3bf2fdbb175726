"""
corerpc CLI - Query a Bitcoin Core node and print the decoded results.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import typer
from loguru import logger

from corerpc.client import BitcoindClient
from corerpc.config import RpcSettings, get_settings
from corerpc.errors import DecodeError, RPCError
from corerpc.fees import EstimateMode
from corerpc.models import NetworkType

app = typer.Typer(
    name="corerpc",
    help="Typed Bitcoin Core RPC queries",
    add_completion=False,
)

T = TypeVar("T")


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _load_settings(
    rpc_url: str | None,
    rpc_user: str | None,
    rpc_password: str | None,
    network: NetworkType | None,
    log_level: str | None,
) -> RpcSettings:
    """Environment/.env settings, overridden by whatever was given on the command line."""
    settings = get_settings()
    overrides = {
        "rpc_url": rpc_url,
        "rpc_user": rpc_user,
        "rpc_password": rpc_password,
        "network": network,
        "log_level": log_level,
    }
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def _run(settings: RpcSettings, query: Callable[[BitcoindClient], Awaitable[T]]) -> T:
    async def _query() -> T:
        async with BitcoindClient.from_settings(settings) as client:
            return await query(client)

    try:
        return asyncio.run(_query())
    except DecodeError as e:
        logger.error(f"Could not decode node response: {e}")
        raise typer.Exit(1) from e
    except RPCError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e
    except httpx.HTTPError as e:
        logger.error(f"Could not reach node at {settings.rpc_url}: {e}")
        raise typer.Exit(1) from e


RpcUrl = typer.Option(None, "--rpc-url", envvar="BITCOIND_RPC_URL", help="Node RPC URL")
RpcUser = typer.Option(None, "--rpc-user", envvar="BITCOIND_RPC_USER")
RpcPassword = typer.Option(None, "--rpc-password", envvar="BITCOIND_RPC_PASSWORD")
Network = typer.Option(None, "--network", "-n", help="Bitcoin network")
LogLevel = typer.Option(None, "--log-level", "-l")


@app.command()
def tip(
    rpc_url: str | None = RpcUrl,
    rpc_user: str | None = RpcUser,
    rpc_password: str | None = RpcPassword,
    network: NetworkType | None = Network,
    log_level: str | None = LogLevel,
) -> None:
    """Show the current chain tip."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, network, log_level)
    setup_logging(settings.log_level)

    info = _run(settings, lambda client: client.get_blockchain_info())
    print(f"Chain:   {info.chain}")
    print(f"Height:  {info.latest_height}")
    print(f"Hash:    {info.latest_blockhash_hex}")


@app.command()
def estimate_fee(
    target: int = typer.Option(6, "--target", "-t", min=1, help="Confirmation target in blocks"),
    mode: EstimateMode = typer.Option(EstimateMode.ECONOMICAL, "--mode", "-m"),
    rpc_url: str | None = RpcUrl,
    rpc_user: str | None = RpcUser,
    rpc_password: str | None = RpcPassword,
    network: NetworkType | None = Network,
    log_level: str | None = LogLevel,
) -> None:
    """Estimate the fee rate for a confirmation target."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, network, log_level)
    setup_logging(settings.log_level)

    fee = _run(settings, lambda client: client.estimate_smart_fee(target, mode.value))
    if fee.feerate_sat_per_kw is None:
        print(f"No estimate available for {target} blocks (errored: {fee.errored})")
        raise typer.Exit(2)
    print(f"Fee rate: {fee.feerate_sat_per_kw} sat/kW")
    if fee.errored:
        print("Node reported estimation errors")


@app.command()
def mempool_min_fee(
    rpc_url: str | None = RpcUrl,
    rpc_user: str | None = RpcUser,
    rpc_password: str | None = RpcPassword,
    network: NetworkType | None = Network,
    log_level: str | None = LogLevel,
) -> None:
    """Show the minimum fee rate the node's mempool accepts."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, network, log_level)
    setup_logging(settings.log_level)

    fee = _run(settings, lambda client: client.get_mempool_min_fee())
    if fee.feerate_sat_per_kw is None:
        print("Mempool minimum fee unavailable")
        raise typer.Exit(2)
    print(f"Mempool minimum: {fee.feerate_sat_per_kw} sat/kW")


@app.command()
def list_unspent(
    min_conf: int = typer.Option(0, "--min-conf", min=0, help="Minimum confirmations"),
    rpc_url: str | None = RpcUrl,
    rpc_user: str | None = RpcUser,
    rpc_password: str | None = RpcPassword,
    network: NetworkType | None = Network,
    log_level: str | None = LogLevel,
) -> None:
    """List the wallet's unspent outputs."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, network, log_level)
    setup_logging(settings.log_level)

    utxos = _run(settings, lambda client: client.list_unspent(min_conf))
    for utxo in utxos:
        print(f"{utxo.outpoint}  {utxo.amount:>15,} sats  {utxo.address}")
    total = utxos.total_amount
    print(f"\n{len(utxos)} UTXOs, total {total:,} sats ({total / 1e8:.8f} BTC)")


@app.command()
def new_address(
    label: str = typer.Option("", "--label", help="Wallet label for the address"),
    rpc_url: str | None = RpcUrl,
    rpc_user: str | None = RpcUser,
    rpc_password: str | None = RpcPassword,
    network: NetworkType | None = Network,
    log_level: str | None = LogLevel,
) -> None:
    """Get a fresh receive address from the node's wallet."""
    settings = _load_settings(rpc_url, rpc_user, rpc_password, network, log_level)
    setup_logging(settings.log_level)

    new = _run(settings, lambda client: client.get_new_address(label))
    print(new.address)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
