"""Sends mint and redeem plans through the leverage router.

Each write is simulated first, then sent and awaited. Failures surface as the
typed errors from ``core.errors``; nothing is retried here. After a successful
receipt the affected queries are invalidated and actively refetched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger

from leverage_paths.core.boundary import ChainBoundary
from leverage_paths.core.constants.erc20_abi import ERC20_ABI
from leverage_paths.core.constants.leverage_abi import LEVERAGE_ROUTER_ABI
from leverage_paths.core.errors import (
    ExecutionError,
    MissingChainConfigError,
    TransactionRevertedError,
    WalletNotConnectedError,
    classify_error,
)
from leverage_paths.core.query import QueryClient
from leverage_paths.core.query_keys import invalidate_leverage_token_queries
from leverage_paths.planner.mint import MintPlan
from leverage_paths.planner.redeem import RedeemPlan
from leverage_paths.registry import LeverageTokenConfig, get_contract_addresses

PlanKind = Literal["mint", "redeem"]


@dataclass(frozen=True)
class ExecutionResult:
    kind: PlanKind
    txn_hash: str
    receipt: dict[str, Any]
    approval_hash: str | None = None


class LeverageTokenExecutor:
    def __init__(
        self,
        boundary: ChainBoundary,
        config: LeverageTokenConfig,
        *,
        query_client: QueryClient | None = None,
        router: str | None = None,
        multicall_executor: str | None = None,
    ):
        self.boundary = boundary
        self.config = config
        self.query_client = query_client
        if router is None or multicall_executor is None:
            addresses = get_contract_addresses(config.chain_id)
            router = router or addresses.leverage_router
            multicall_executor = multicall_executor or addresses.multicall_executor
        if not router:
            raise MissingChainConfigError(
                config.chain_id, f"No leverage router configured for chain {config.chain_id}"
            )
        if not multicall_executor:
            raise MissingChainConfigError(
                config.chain_id,
                f"No multicall executor configured for chain {config.chain_id}",
            )
        self.router = router
        self.multicall_executor = multicall_executor

    @property
    def chain_id(self) -> int:
        return self.config.chain_id

    async def execute_mint(self, plan: MintPlan, *, account: str | None) -> ExecutionResult:
        account = self._require_account(account)
        approval = await self.ensure_allowance(
            self.config.collateral_asset.address,
            account=account,
            amount=plan.equity_in_collateral_asset,
        )
        args = [
            self.config.address,
            plan.equity_in_collateral_asset,
            plan.flash_loan_amount,
            plan.min_shares,
            self.multicall_executor,
            [call.as_router_tuple() for call in plan.calls],
        ]
        return await self._execute("mint", "deposit", args, account, approval)

    async def execute_redeem(self, plan: RedeemPlan, *, account: str | None) -> ExecutionResult:
        account = self._require_account(account)
        approval = await self.ensure_allowance(
            self.config.address, account=account, amount=plan.shares_to_redeem
        )
        args = [
            self.config.address,
            plan.shares_to_redeem,
            plan.min_collateral_for_sender,
            self.multicall_executor,
            [call.as_router_tuple() for call in plan.calls],
        ]
        return await self._execute("redeem", "redeem", args, account, approval)

    async def ensure_allowance(self, token: str, *, account: str, amount: int) -> str | None:
        """Approve the router for ``amount`` when the current allowance is short."""
        try:
            allowance = await self.boundary.read(
                token, ERC20_ABI, "allowance", [account, self.router], chain_id=self.chain_id
            )
            if int(allowance) >= int(amount):
                return None
            request = await self.boundary.simulate(
                token,
                ERC20_ABI,
                "approve",
                [self.router, int(amount)],
                chain_id=self.chain_id,
                account=account,
            )
            txn_hash = await self.boundary.write(request)
            receipt = await self.boundary.wait_for_receipt(txn_hash, chain_id=self.chain_id)
        except Exception as exc:
            raise self._report("approve", exc) from exc
        if receipt.get("status") != "success":
            raise self._report("approve", TransactionRevertedError(txn_hash, receipt))
        logger.info(f"Approved router for {amount} of {token}: {txn_hash}")
        return txn_hash

    async def _execute(
        self,
        kind: PlanKind,
        fn_name: str,
        args: list[Any],
        account: str,
        approval_hash: str | None,
    ) -> ExecutionResult:
        try:
            request = await self.boundary.simulate(
                self.router,
                LEVERAGE_ROUTER_ABI,
                fn_name,
                args,
                chain_id=self.chain_id,
                account=account,
            )
            txn_hash = await self.boundary.write(request)
            receipt = await self.boundary.wait_for_receipt(txn_hash, chain_id=self.chain_id)
        except Exception as exc:
            raise self._report(kind, exc) from exc

        if receipt.get("status") != "success":
            raise self._report(kind, TransactionRevertedError(txn_hash, receipt))

        logger.info(f"{kind} of {self.config.symbol} confirmed: {txn_hash}")
        if self.query_client is not None:
            await invalidate_leverage_token_queries(
                self.query_client, token_address=self.config.address, owner=account
            )
        return ExecutionResult(
            kind=kind, txn_hash=txn_hash, receipt=receipt, approval_hash=approval_hash
        )

    def _require_account(self, account: str | None) -> str:
        if not account:
            raise self._report("connect", WalletNotConnectedError())
        return account

    def _report(self, action: str, exc: Any) -> ExecutionError:
        error = classify_error(exc)
        if error.actionable:
            logger.error(f"{action} of {self.config.symbol} failed: {error}")
        else:
            logger.debug(f"{action} of {self.config.symbol} not completed: {error}")
        return error


async def execute_plan(
    boundary: ChainBoundary,
    config: LeverageTokenConfig,
    kind: PlanKind,
    plan: MintPlan | RedeemPlan,
    *,
    account: str | None,
    query_client: QueryClient | None = None,
    router: str | None = None,
    multicall_executor: str | None = None,
) -> ExecutionResult:
    executor = LeverageTokenExecutor(
        boundary,
        config,
        query_client=query_client,
        router=router,
        multicall_executor=multicall_executor,
    )
    if kind == "mint":
        return await executor.execute_mint(plan, account=account)
    return await executor.execute_redeem(plan, account=account)
