"""
Allowance revocation: set a spender's ERC-20 allowance back to zero.

Best-effort cleanup, invoked explicitly by the user, never as part of the
payment flow.
"""

import asyncio
import logging

from galaksio.x402.exceptions import (
    RevocationFailedError,
    RevocationTimeoutError,
    X402Error,
)
from galaksio.x402.signers.wallet import WalletSigner
from galaksio.x402.types import PaymentInfo

logger = logging.getLogger(__name__)

# approve(address,uint256)
APPROVE_SELECTOR = "0x095ea7b3"

RECEIPT_MAX_ATTEMPTS = 30
RECEIPT_POLL_INTERVAL = 2.0


def build_revoke_calldata(spender: str) -> str:
    """Calldata for ``approve(spender, 0)``"""
    padded_spender = spender.lower().removeprefix("0x").rjust(64, "0")
    padded_amount = "0" * 64
    return APPROVE_SELECTOR + padded_spender + padded_amount


async def revoke_approval(
    payment_info: PaymentInfo,
    signer: WalletSigner,
    max_attempts: int = RECEIPT_MAX_ATTEMPTS,
    poll_interval: float = RECEIPT_POLL_INTERVAL,
) -> str:
    """
    Revoke the allowance granted to ``payment_info.spender`` on ``payment_info.asset``.

    Args:
        payment_info: Summary of the payment whose spender is revoked
        signer: Wallet signer adapter
        max_attempts: Receipt polling attempts
        poll_interval: Seconds between polling attempts

    Returns:
        Revocation transaction hash

    Raises:
        RevocationTimeoutError: No receipt after *max_attempts* polls
        RevocationFailedError: Transaction reverted
    """
    async with signer.prompt_lock:
        accounts = await signer.request_accounts()
        user_address = accounts[0]

        tx = {
            "from": user_address,
            "to": payment_info.asset,
            "data": build_revoke_calldata(payment_info.spender),
            "value": "0x0",
        }
        logger.info(
            "Revoking allowance: token=%s, spender=%s, owner=%s",
            payment_info.asset,
            payment_info.spender,
            user_address,
        )
        try:
            tx_hash = await signer.send_transaction(tx)
        except X402Error as e:
            raise RevocationFailedError(f"Revocation transaction rejected: {e}") from e

    logger.info("Revocation transaction sent: %s", tx_hash)
    receipt = await _wait_for_receipt(signer, tx_hash, max_attempts, poll_interval)

    if receipt is None:
        raise RevocationTimeoutError(
            f"No receipt for revocation transaction {tx_hash} after {max_attempts} attempts"
        )

    status = receipt.get("status")
    if status in ("0x0", 0, "0"):
        raise RevocationFailedError(f"Revocation transaction {tx_hash} failed")

    logger.info("Allowance revoked: %s", tx_hash)
    return tx_hash


async def _wait_for_receipt(
    signer: WalletSigner,
    tx_hash: str,
    max_attempts: int,
    poll_interval: float,
) -> dict | None:
    for attempt in range(1, max_attempts + 1):
        try:
            receipt = await signer.get_transaction_receipt(tx_hash)
        except Exception as e:
            logger.warning("Receipt poll %d/%d failed: %s", attempt, max_attempts, e)
            receipt = None
        if receipt:
            return receipt
        if attempt < max_attempts:
            await asyncio.sleep(poll_interval)
    return None
