from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import fields, is_dataclass
from typing import Any, NoReturn

import click
from loguru import logger
from pydantic import BaseModel

from leverage_paths.core.adapters.models import QuoteFn, QuoteRequest
from leverage_paths.core.boundary import ChainBoundary, Web3ChainBoundary
from leverage_paths.core.clients import CoinGeckoClient
from leverage_paths.core.config import get_default_slippage_bps, load_config
from leverage_paths.core.errors import (
    MissingChainConfigError,
    PlanningError,
    QuoteOrchestrationError,
)
from leverage_paths.core.utils.units import to_erc20_raw
from leverage_paths.planner.mint import plan_mint
from leverage_paths.planner.redeem import plan_redeem
from leverage_paths.planner.slippage import bps_to_percent_string, parse_slippage
from leverage_paths.quotes.orchestrator import QuoteResolution, resolve_quote
from leverage_paths.registry import (
    LeverageTokenConfig,
    get_contract_addresses,
    get_leverage_token_config,
    list_leverage_token_configs,
)
from leverage_paths.yields.aggregator import YieldSources, aggregate_apy


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, Exception):
        return str(value)
    return value


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(_jsonable(data), indent=2, default=str))


def _fail(error: Exception | str) -> NoReturn:
    _echo_json({"ok": False, "error": str(error)})
    raise SystemExit(1)


def _token_config(token: str, chain_id: int | None) -> LeverageTokenConfig:
    config = get_leverage_token_config(token, chain_id)
    if config is None:
        raise click.BadParameter(f"Unknown leverage token {token}", param_hint="--token")
    return config


def _run(ctx: click.Context, work: Callable[[ChainBoundary], Awaitable[Any]]) -> Any:
    """Run ``work`` against the injected boundary, or a web3 one owned by this call."""
    boundary = ctx.obj.get("boundary")
    if boundary is not None:
        return asyncio.run(work(boundary))

    async def _owned() -> Any:
        web3_boundary = Web3ChainBoundary()
        try:
            return await work(web3_boundary)
        finally:
            await web3_boundary.close()

    return asyncio.run(_owned())


def _slippage_bps(text: str | None) -> int:
    if text is None:
        return get_default_slippage_bps()
    return parse_slippage(text).value_bps


def _unavailable(resolution: QuoteResolution) -> QuoteFn:
    async def _quote(request: QuoteRequest):
        raise QuoteOrchestrationError(
            f"Swap quote unavailable ({resolution.status})", original=resolution.error
        )

    return _quote


def _resolve_quote(
    boundary: ChainBoundary,
    config: LeverageTokenConfig,
    *,
    slippage_bps: int,
    direction: str,
    from_address: str | None,
) -> QuoteResolution:
    router = get_contract_addresses(config.chain_id).leverage_router
    swap = (
        config.swaps.debt_to_collateral
        if direction == "mint"
        else config.swaps.collateral_to_debt
    )
    resolution = resolve_quote(
        chain_id=config.chain_id,
        router_address=router,
        swap=swap,
        slippage_bps=slippage_bps,
        requires_quote=config.requires_swap,
        get_client=lambda _chain_id: boundary,
        from_address=from_address,
        direction=direction,
    )
    if resolution.status not in ("ready", "not-required"):
        logger.warning(f"No swap quote for {config.symbol} {direction}: {resolution.status}")
    return resolution


@click.group(name="leverage-paths", help="Plan leverage token mints and redeems.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.option("--config", "config_path", default=None, help="Path to config.json.")
@click.pass_context
def cli(ctx: click.Context, log_level: str, config_path: str | None) -> None:
    ctx.ensure_object(dict)
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())
    if config_path:
        load_config(config_path, require_exists=True)


@cli.command(name="tokens", help="List known leverage tokens.")
@click.option("--chain-id", type=int, default=None)
def tokens_cmd(chain_id: int | None) -> None:
    _echo_json(
        [
            {
                "address": c.address,
                "chainId": c.chain_id,
                "symbol": c.symbol,
                "leverageRatio": c.leverage_ratio,
                "collateral": c.collateral_asset.symbol,
                "debt": c.debt_asset.symbol,
            }
            for c in list_leverage_token_configs(chain_id)
        ]
    )


@cli.command(name="slippage", help="Resolve a typed slippage percent into basis points.")
@click.argument("value", required=False, default="")
def slippage_cmd(value: str) -> None:
    slippage = parse_slippage(value)
    _echo_json(
        {
            "input": slippage.display,
            "bps": slippage.value_bps,
            "percent": bps_to_percent_string(slippage.value_bps),
        }
    )


@cli.command(name="plan-mint", help="Build a mint plan for an equity deposit.")
@click.option("--token", required=True, help="Leverage token address.")
@click.option("--chain-id", type=int, default=None)
@click.option("--amount", required=True, help="Equity in collateral asset units.")
@click.option("--slippage", default=None, help="Slippage tolerance in percent.")
@click.option("--block", "block_number", type=int, default=None)
@click.option("--from-address", default=None)
@click.pass_context
def plan_mint_cmd(
    ctx: click.Context,
    token: str,
    chain_id: int | None,
    amount: str,
    slippage: str | None,
    block_number: int | None,
    from_address: str | None,
) -> None:
    config = _token_config(token, chain_id)
    slippage_bps = _slippage_bps(slippage)

    async def _work(boundary: ChainBoundary):
        resolution = _resolve_quote(
            boundary,
            config,
            slippage_bps=slippage_bps,
            direction="mint",
            from_address=from_address,
        )
        return await plan_mint(
            boundary,
            config,
            equity_in_collateral_asset=to_erc20_raw(amount, config.collateral_asset.decimals),
            slippage_bps=slippage_bps,
            quote_debt_to_collateral=resolution.quote,
            block_number=block_number,
        )

    try:
        plan = _run(ctx, _work)
    except (PlanningError, MissingChainConfigError, ValueError) as exc:
        _fail(exc)
    _echo_json({"ok": True, "result": plan})


@cli.command(name="plan-redeem", help="Build a redeem plan for a share amount.")
@click.option("--token", required=True, help="Leverage token address.")
@click.option("--chain-id", type=int, default=None)
@click.option("--shares", required=True, help="Shares to redeem, in token units.")
@click.option("--slippage", default=None, help="Slippage tolerance in percent.")
@click.option(
    "--output-asset",
    type=click.Choice(["collateral", "debt"], case_sensitive=False),
    default="collateral",
    show_default=True,
)
@click.option("--prices/--no-prices", "use_prices", default=True, show_default=True)
@click.option("--block", "block_number", type=int, default=None)
@click.option("--from-address", default=None)
@click.pass_context
def plan_redeem_cmd(
    ctx: click.Context,
    token: str,
    chain_id: int | None,
    shares: str,
    slippage: str | None,
    output_asset: str,
    use_prices: bool,
    block_number: int | None,
    from_address: str | None,
) -> None:
    config = _token_config(token, chain_id)
    slippage_bps = _slippage_bps(slippage)
    payout = config.debt_asset.address if output_asset.lower() == "debt" else None

    async def _work(boundary: ChainBoundary):
        resolution = _resolve_quote(
            boundary,
            config,
            slippage_bps=slippage_bps,
            direction="redeem",
            from_address=from_address,
        )
        price_source = ctx.obj.get("price_source")
        owned = None
        if price_source is None and use_prices:
            price_source = owned = CoinGeckoClient()
        try:
            return await plan_redeem(
                boundary,
                config,
                shares_to_redeem=to_erc20_raw(shares, config.decimals),
                slippage_bps=slippage_bps,
                quote_collateral_to_debt=resolution.quote or _unavailable(resolution),
                intent=resolution.intent or "exactOut",
                block_number=block_number,
                price_source=price_source if use_prices else None,
                output_asset=payout,
            )
        finally:
            if owned is not None:
                await owned.close()

    try:
        plan = _run(ctx, _work)
    except (PlanningError, MissingChainConfigError, ValueError) as exc:
        _fail(exc)
    _echo_json({"ok": True, "result": plan})


@cli.command(name="apy", help="Composite APY breakdown for leverage tokens.")
@click.option("--token", "tokens", multiple=True, required=True)
@click.option("--chain-id", type=int, default=None)
@click.pass_context
def apy_cmd(ctx: click.Context, tokens: tuple[str, ...], chain_id: int | None) -> None:
    configs = [_token_config(token, chain_id) for token in tokens]

    async def _work(boundary: ChainBoundary):
        sources = ctx.obj.get("yield_sources") or YieldSources.default(boundary)
        results = await asyncio.gather(*(aggregate_apy(c, sources) for c in configs))
        return {c.address: r.to_dict() for c, r in zip(configs, results, strict=True)}

    _echo_json({"ok": True, "result": _run(ctx, _work)})
