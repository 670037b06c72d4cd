"""
Tests for allowance revocation
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from galaksio.x402.exceptions import (
    ProviderRpcError,
    RevocationFailedError,
    RevocationTimeoutError,
)
from galaksio.x402.revocation import APPROVE_SELECTOR, build_revoke_calldata, revoke_approval
from galaksio.x402.types import PaymentInfo

OWNER = "0x1111111111111111111111111111111111111111"
SPENDER = "0xAbCdEf0000000000000000000000000000000002"
ASSET = "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E"
TX_HASH = "0x" + "ee" * 32


@pytest.fixture
def payment_info():
    return PaymentInfo(network="avalanche", spender=SPENDER, asset=ASSET, userAddress=OWNER)


@pytest.fixture
def mock_signer():
    signer = MagicMock()
    signer.prompt_lock = asyncio.Lock()
    signer.request_accounts = AsyncMock(return_value=[OWNER])
    signer.send_transaction = AsyncMock(return_value=TX_HASH)
    signer.get_transaction_receipt = AsyncMock(return_value={"status": "0x1"})
    return signer


def test_calldata():
    data = build_revoke_calldata(SPENDER)

    assert data.startswith(APPROVE_SELECTOR)
    assert len(data) == 2 + 8 + 64 + 64
    assert data[10:74] == "0" * 24 + SPENDER.lower()[2:]
    assert data[74:] == "0" * 64


class TestRevokeApproval:
    @pytest.mark.anyio
    async def test_success(self, mock_signer, payment_info):
        tx_hash = await revoke_approval(payment_info, mock_signer, poll_interval=0)

        assert tx_hash == TX_HASH
        tx = mock_signer.send_transaction.call_args.args[0]
        assert tx == {
            "from": OWNER,
            "to": ASSET,
            "data": build_revoke_calldata(SPENDER),
            "value": "0x0",
        }
        mock_signer.get_transaction_receipt.assert_awaited_with(TX_HASH)

    @pytest.mark.anyio
    async def test_waits_for_pending_receipt(self, mock_signer, payment_info):
        mock_signer.get_transaction_receipt.side_effect = [None, None, {"status": "0x1"}]

        await revoke_approval(payment_info, mock_signer, poll_interval=0)

        assert mock_signer.get_transaction_receipt.await_count == 3

    @pytest.mark.anyio
    async def test_poll_errors_count_as_attempts(self, mock_signer, payment_info):
        mock_signer.get_transaction_receipt.side_effect = [ConnectionError("rpc down"), {"status": 1}]

        assert await revoke_approval(payment_info, mock_signer, poll_interval=0) == TX_HASH

    @pytest.mark.anyio
    async def test_timeout(self, mock_signer, payment_info):
        mock_signer.get_transaction_receipt.return_value = None

        with pytest.raises(RevocationTimeoutError):
            await revoke_approval(payment_info, mock_signer, max_attempts=30, poll_interval=0)

        assert mock_signer.get_transaction_receipt.await_count == 30

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", ["0x0", 0])
    async def test_reverted(self, mock_signer, payment_info, status):
        mock_signer.get_transaction_receipt.return_value = {"status": status}

        with pytest.raises(RevocationFailedError):
            await revoke_approval(payment_info, mock_signer, poll_interval=0)

    @pytest.mark.anyio
    async def test_user_rejects_transaction(self, mock_signer, payment_info):
        mock_signer.send_transaction.side_effect = ProviderRpcError(
            ProviderRpcError.USER_REJECTED, "User rejected the request."
        )

        with pytest.raises(RevocationFailedError, match="rejected"):
            await revoke_approval(payment_info, mock_signer, poll_interval=0)
        mock_signer.get_transaction_receipt.assert_not_awaited()
        assert not mock_signer.prompt_lock.locked()
