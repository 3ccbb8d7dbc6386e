import math
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

from leverage_paths.core.constants.base import DEFAULT_TRANSACTION_TIMEOUT
from leverage_paths.core.errors import TransactionRevertedError

GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

SignCallback = Callable[[dict[str, Any]], Awaitable[bytes]]


def get_transaction_chain_id(transaction: dict) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


async def nonce_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()
    transaction["nonce"] = await web3.eth.get_transaction_count(
        _get_transaction_from_address(transaction), block_identifier="pending"
    )
    return transaction


async def gas_price_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()

    latest_block = await web3.eth.get_block("latest")
    base_fee = int(latest_block.get("baseFeePerGas") or 0)
    fee_history = await web3.eth.fee_history(10, "latest", [80])
    rewards = [int(r[0]) for r in fee_history.get("reward") or [] if r]
    priority_fee = sum(rewards) // len(rewards) if rewards else 0

    transaction["maxFeePerGas"] = int(
        base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER
        + priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    transaction["maxPriorityFeePerGas"] = int(
        priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    return transaction


async def gas_limit_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()

    # prevents RPCs from taking this as a serious limit
    transaction.pop("gas", None)

    gas_limit = await web3.eth.estimate_gas(transaction, block_identifier="latest")
    transaction["gas"] = int(math.ceil(gas_limit * GAS_BUFFER_MULTIPLIER))
    return transaction


async def wait_for_transaction_receipt(
    web3: AsyncWeb3,
    txn_hash: str,
    poll_interval: float = 0.5,
    timeout: int = DEFAULT_TRANSACTION_TIMEOUT,
) -> dict:
    if isinstance(txn_hash, str) and not txn_hash.startswith("0x"):
        txn_hash = f"0x{txn_hash}"
    receipt = dict(
        await web3.eth.wait_for_transaction_receipt(
            txn_hash, poll_latency=poll_interval, timeout=timeout
        )
    )
    if receipt.get("status") == 0:
        raise TransactionRevertedError(
            txn_hash, receipt, f"Transaction reverted (status=0): {txn_hash}"
        )
    return receipt


async def send_transaction(
    web3: AsyncWeb3, transaction: dict, sign_callback: SignCallback
) -> str:
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    logger.info(f"Broadcasting transaction to {transaction.get('to')}...")
    transaction = await gas_limit_transaction(web3, transaction)
    transaction = await nonce_transaction(web3, transaction)
    transaction = await gas_price_transaction(web3, transaction)
    signed_transaction = await sign_callback(transaction)
    txn_hash = (await web3.eth.send_raw_transaction(signed_transaction)).hex()
    if not txn_hash.startswith("0x"):
        txn_hash = f"0x{txn_hash}"
    logger.info(f"Transaction broadcasted: {txn_hash}")
    return txn_hash
