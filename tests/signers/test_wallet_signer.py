"""
Tests for WalletSigner
"""

import json

import pytest

from galaksio.x402.exceptions import (
    NetworkAddRejectedError,
    NetworkSwitchRejectedError,
    NoAccountsError,
    ProviderRpcError,
    SigningRejectedError,
    WalletUnavailableError,
)
from galaksio.x402.signers import EventfulWalletProvider, WalletProvider
from galaksio.x402.signers.wallet import WalletSigner, eip712_domain_type_from_keys

DOMAIN = {
    "name": "USD Coin",
    "version": "2",
    "chainId": 43114,
    "verifyingContract": "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
}
TYPES = {"Mail": [{"name": "contents", "type": "string"}]}


class TestAccounts:
    @pytest.mark.anyio
    async def test_get_accounts(self, scripted_provider, payer_address):
        signer = WalletSigner(scripted_provider)
        assert await signer.get_accounts() == [payer_address]
        assert scripted_provider.methods == ["eth_accounts"]

    @pytest.mark.anyio
    async def test_no_accounts(self, scripted_provider):
        scripted_provider.responses["eth_accounts"] = []
        signer = WalletSigner(scripted_provider)

        with pytest.raises(NoAccountsError, match="Wallet not connected"):
            await signer.get_accounts()

    @pytest.mark.anyio
    async def test_no_provider(self):
        signer = WalletSigner(None)
        with pytest.raises(WalletUnavailableError):
            await signer.get_accounts()

    @pytest.mark.anyio
    async def test_request_accounts(self, scripted_provider, payer_address):
        signer = WalletSigner(scripted_provider)
        assert await signer.request_accounts() == [payer_address]
        assert scripted_provider.methods == ["eth_requestAccounts"]


class TestEnsureNetwork:
    @pytest.mark.anyio
    async def test_already_on_chain(self, scripted_provider):
        signer = WalletSigner(scripted_provider)
        await signer.ensure_network(43114)
        assert scripted_provider.methods == ["eth_chainId"]

    @pytest.mark.anyio
    async def test_switches_chain(self, scripted_provider):
        scripted_provider.responses["eth_chainId"] = "0x2105"
        scripted_provider.responses["wallet_switchEthereumChain"] = None
        signer = WalletSigner(scripted_provider)

        await signer.ensure_network(43114)

        assert scripted_provider.methods == ["eth_chainId", "wallet_switchEthereumChain"]
        assert scripted_provider.calls[1][1] == [{"chainId": "0xa86a"}]

    @pytest.mark.anyio
    async def test_adds_unrecognized_chain(self, scripted_provider):
        scripted_provider.responses["eth_chainId"] = "0x1"
        scripted_provider.responses["wallet_switchEthereumChain"] = ProviderRpcError(
            ProviderRpcError.UNRECOGNIZED_CHAIN, "Unrecognized chain ID"
        )
        scripted_provider.responses["wallet_addEthereumChain"] = None
        signer = WalletSigner(scripted_provider)

        await signer.ensure_network(43114)

        assert scripted_provider.methods == [
            "eth_chainId",
            "wallet_switchEthereumChain",
            "wallet_addEthereumChain",
        ]
        params = scripted_provider.calls[2][1][0]
        assert params["chainId"] == "0xa86a"
        assert params["chainName"] == "Avalanche C-Chain"
        assert params["nativeCurrency"]["symbol"] == "AVAX"

    @pytest.mark.anyio
    async def test_switch_rejected(self, scripted_provider):
        scripted_provider.responses["eth_chainId"] = "0x1"
        scripted_provider.responses["wallet_switchEthereumChain"] = ProviderRpcError(
            ProviderRpcError.USER_REJECTED, "User rejected the request."
        )
        signer = WalletSigner(scripted_provider)

        with pytest.raises(NetworkSwitchRejectedError):
            await signer.ensure_network(43114)
        assert "wallet_addEthereumChain" not in scripted_provider.methods

    @pytest.mark.anyio
    async def test_add_rejected(self, scripted_provider):
        scripted_provider.responses["eth_chainId"] = "0x1"
        scripted_provider.responses["wallet_switchEthereumChain"] = ProviderRpcError(
            ProviderRpcError.UNRECOGNIZED_CHAIN, "Unrecognized chain ID"
        )
        scripted_provider.responses["wallet_addEthereumChain"] = ProviderRpcError(
            ProviderRpcError.USER_REJECTED, "User rejected the request."
        )
        signer = WalletSigner(scripted_provider)

        with pytest.raises(NetworkAddRejectedError):
            await signer.ensure_network(43114)

    @pytest.mark.anyio
    async def test_decimal_chain_id(self, scripted_provider):
        scripted_provider.responses["eth_chainId"] = 43114
        signer = WalletSigner(scripted_provider)
        assert await signer.get_chain_id() == 43114


class TestSignTypedData:
    @pytest.mark.anyio
    async def test_sends_v4_document(self, scripted_provider, payer_address):
        signer = WalletSigner(scripted_provider)
        signature = await signer.sign_typed_data(DOMAIN, TYPES, {"contents": "hi"}, payer_address)

        assert signature == "0x" + "ab" * 65
        method, params = scripted_provider.calls[0]
        assert method == "eth_signTypedData_v4"
        assert params[0] == payer_address

        document = json.loads(params[1])
        assert document["primaryType"] == "Mail"
        assert document["domain"] == DOMAIN
        assert [f["name"] for f in document["types"]["EIP712Domain"]] == [
            "name",
            "version",
            "chainId",
            "verifyingContract",
        ]

    @pytest.mark.anyio
    async def test_adds_hex_prefix(self, scripted_provider, payer_address):
        scripted_provider.responses["eth_signTypedData_v4"] = "cd" * 65
        signer = WalletSigner(scripted_provider)

        signature = await signer.sign_typed_data(DOMAIN, TYPES, {"contents": "hi"}, payer_address)
        assert signature == "0x" + "cd" * 65

    @pytest.mark.anyio
    async def test_user_rejects(self, scripted_provider, payer_address):
        scripted_provider.responses["eth_signTypedData_v4"] = ProviderRpcError(
            ProviderRpcError.USER_REJECTED, "User rejected the request."
        )
        signer = WalletSigner(scripted_provider)

        with pytest.raises(SigningRejectedError) as exc_info:
            await signer.sign_typed_data(DOMAIN, TYPES, {"contents": "hi"}, payer_address)
        assert exc_info.value.__cause__.code == 4001

    @pytest.mark.anyio
    async def test_empty_signature(self, scripted_provider, payer_address):
        scripted_provider.responses["eth_signTypedData_v4"] = ""
        signer = WalletSigner(scripted_provider)

        with pytest.raises(SigningRejectedError):
            await signer.sign_typed_data(DOMAIN, TYPES, {"contents": "hi"}, payer_address)


def test_domain_type_follows_canonical_order():
    domain = {"verifyingContract": "0x0", "chainId": 1, "name": "X"}
    assert eip712_domain_type_from_keys(domain) == [
        {"name": "name", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ]


def test_accounts_changed_subscription(scripted_provider):
    signer = WalletSigner(scripted_provider)
    seen = []

    unsubscribe = signer.on_accounts_changed(seen.append)
    scripted_provider.emit("accountsChanged", ["0xabc"])
    unsubscribe()
    scripted_provider.emit("accountsChanged", [])

    assert seen == [["0xabc"]]


def test_providers_satisfy_protocols(scripted_provider, local_provider):
    assert isinstance(scripted_provider, EventfulWalletProvider)
    assert isinstance(local_provider, EventfulWalletProvider)
    assert isinstance(local_provider, WalletProvider)


def test_accounts_changed_without_events():
    assert WalletSigner(None).on_accounts_changed(lambda accounts: None)() is None
