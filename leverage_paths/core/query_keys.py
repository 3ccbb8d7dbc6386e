"""Hierarchical cache keys for leverage token queries.

Keys are tuples so that invalidating a prefix covers every key below it, e.g.
``token(addr)`` covers that token's state, collateral and user positions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leverage_paths.core.query import QueryClient, RefetchType

QueryKey = tuple[str, ...]

ALL: QueryKey = ("leverage-tokens",)


def _addr(address: str) -> str:
    return str(address).lower()


def tokens() -> QueryKey:
    return (*ALL, "tokens")


def token(address: str) -> QueryKey:
    return (*tokens(), _addr(address))


def user(address: str, owner: str) -> QueryKey:
    return (*token(address), "user", _addr(owner))


def state(address: str) -> QueryKey:
    return (*token(address), "state")


def collateral(address: str) -> QueryKey:
    return (*token(address), "collateral")


def apy(address: str) -> QueryKey:
    return (*token(address), "apy")


def simulate_mint(address: str, amount: int) -> QueryKey:
    return (*token(address), "simulate", "mint", str(int(amount)))


def simulate_redeem(address: str, amount: int) -> QueryKey:
    return (*token(address), "simulate", "redeem", str(int(amount)))


def protocol_tvl() -> QueryKey:
    return (*ALL, "protocol-tvl")


def table_data() -> QueryKey:
    return (*ALL, "table-data")


def leverage_ratios(address: str) -> QueryKey:
    return (*ALL, "external", "leverage-ratios", _addr(address))


def staking_apr(address: str) -> QueryKey:
    return (*ALL, "external", "staking-apr", _addr(address))


def borrow_apy(address: str) -> QueryKey:
    return (*ALL, "external", "borrow-apy", _addr(address))


def rewards_apr(address: str) -> QueryKey:
    return (*ALL, "external", "rewards-apr", _addr(address))


async def invalidate_leverage_token_queries(
    client: QueryClient,
    *,
    token_address: str,
    owner: str | None = None,
    refetch_type: RefetchType = "active",
) -> list[QueryKey]:
    """Invalidate everything a mint or redeem of ``token_address`` changes.

    The owner's position is only touched when an owner is given.
    """
    keys = [
        state(token_address),
        collateral(token_address),
        table_data(),
        protocol_tvl(),
    ]
    if owner:
        keys.append(user(token_address, owner))
    for key in keys:
        await client.invalidate(key, refetch_type=refetch_type)
    return keys
