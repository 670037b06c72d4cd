"""
WalletSigner - signer adapter over an injected wallet provider
"""

import asyncio
import json
import logging
from typing import Any, Callable

from galaksio.x402.config import NetworkConfig
from galaksio.x402.exceptions import (
    NetworkAddRejectedError,
    NetworkSwitchRejectedError,
    NoAccountsError,
    ProviderRpcError,
    SigningRejectedError,
    WalletUnavailableError,
)
from galaksio.x402.signers.base import WalletProvider

logger = logging.getLogger(__name__)

# Canonical EIP-712 domain field order and types
_EIP712_DOMAIN_FIELDS: list[tuple[str, str]] = [
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
]


def eip712_domain_type_from_keys(domain: dict[str, Any]) -> list[dict[str, str]]:
    """Build an EIP712Domain type array from the keys present in *domain*.

    Preserves the canonical field order defined in EIP-712.
    """
    return [{"name": name, "type": typ} for name, typ in _EIP712_DOMAIN_FIELDS if name in domain]


class WalletSigner:
    """
    Signer adapter for a browser-style wallet provider.

    Exposes account discovery, network switching/registration, typed-data
    signing and transaction submission. The provider is treated as a single
    exclusively-prompted resource: callers that prompt the user hold
    ``prompt_lock`` so overlapping payment attempts queue instead of
    interleaving wallet prompts.
    """

    def __init__(self, provider: WalletProvider | None) -> None:
        self._provider = provider
        self.prompt_lock = asyncio.Lock()

    @property
    def provider(self) -> WalletProvider | None:
        return self._provider

    async def _request(self, method: str, params: list[Any] | None = None) -> Any:
        if self._provider is None:
            raise WalletUnavailableError("No wallet provider found. Please connect your wallet.")
        logger.debug("Wallet request: %s", method)
        return await self._provider.request(method, params or [])

    async def get_accounts(self) -> list[str]:
        """Return connected accounts without prompting.

        Raises:
            WalletUnavailableError: No provider injected
            NoAccountsError: Provider has no connected accounts
        """
        accounts = await self._request("eth_accounts")
        if not accounts:
            raise NoAccountsError("Wallet not connected. Please connect your wallet first.")
        return list(accounts)

    async def request_accounts(self) -> list[str]:
        """Ask the wallet to connect and return its accounts (may prompt)"""
        accounts = await self._request("eth_requestAccounts")
        if not accounts:
            raise NoAccountsError("Wallet returned no accounts")
        return list(accounts)

    async def get_chain_id(self) -> int:
        """Return the wallet's current chain ID"""
        chain_id = await self._request("eth_chainId")
        if isinstance(chain_id, str):
            return int(chain_id, 16) if chain_id.startswith("0x") else int(chain_id)
        return int(chain_id)

    async def ensure_network(self, chain_id: int) -> None:
        """Switch the wallet to *chain_id*, registering the chain if the wallet lacks it.

        Raises:
            NetworkSwitchRejectedError: Switch refused or failed
            NetworkAddRejectedError: Chain registration refused or failed
        """
        current = await self.get_chain_id()
        if current == chain_id:
            return

        target = hex(chain_id)
        logger.info("Current network: %s, switching to %s", hex(current), target)
        try:
            await self._request("wallet_switchEthereumChain", [{"chainId": target}])
            return
        except ProviderRpcError as e:
            if e.code != ProviderRpcError.UNRECOGNIZED_CHAIN:
                raise NetworkSwitchRejectedError(f"Network switch rejected: {e}") from e
        except WalletUnavailableError:
            raise
        except Exception as e:
            raise NetworkSwitchRejectedError(f"Network switch failed: {e}") from e

        chain = NetworkConfig.get_chain(chain_id)
        logger.info("Adding %s to wallet...", chain.name)
        try:
            await self._request("wallet_addEthereumChain", [chain.to_wallet_params()])
        except Exception as e:
            raise NetworkAddRejectedError(f"Adding {chain.name} rejected: {e}") from e

    async def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, Any],
        message: dict[str, Any],
        signer_address: str,
        primary_type: str | None = None,
    ) -> str:
        """Sign EIP-712 typed data with ``eth_signTypedData_v4``.

        Args:
            domain: EIP-712 domain
            types: Type definitions (without EIP712Domain)
            message: JSON-serializable message
            signer_address: Account that signs
            primary_type: Primary type; defaults to the last entry of *types*

        Returns:
            Signature string (0x-prefixed hex)

        Raises:
            SigningRejectedError: Wallet refused or failed to sign
        """
        document = {
            "types": {"EIP712Domain": eip712_domain_type_from_keys(domain), **types},
            "domain": domain,
            "primaryType": primary_type or list(types.keys())[-1],
            "message": message,
        }
        try:
            signature = await self._request(
                "eth_signTypedData_v4", [signer_address, json.dumps(document)]
            )
        except WalletUnavailableError:
            raise
        except Exception as e:
            raise SigningRejectedError(f"Failed to sign typed data: {e}") from e

        if not isinstance(signature, str) or not signature:
            raise SigningRejectedError("Wallet returned an empty signature")
        return signature if signature.startswith("0x") else "0x" + signature

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        """Submit a transaction through the wallet and return its hash"""
        return await self._request("eth_sendTransaction", [tx])

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """Fetch a transaction receipt, or None while pending"""
        return await self._request("eth_getTransactionReceipt", [tx_hash])

    def on_accounts_changed(self, handler: Callable[[list[str]], Any]) -> Callable[[], None]:
        """Subscribe to account changes; returns an unsubscribe callable"""
        provider = self._provider
        if provider is None or not hasattr(provider, "on"):
            return lambda: None

        provider.on("accountsChanged", handler)

        def unsubscribe() -> None:
            if hasattr(provider, "remove_listener"):
                provider.remove_listener("accountsChanged", handler)

        return unsubscribe
