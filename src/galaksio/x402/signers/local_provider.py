"""
LocalAccountProvider - headless wallet provider backed by a private key
"""

import json
import logging
from typing import Any, Callable

from galaksio.x402.config import NetworkConfig
from galaksio.x402.exceptions import ProviderRpcError

logger = logging.getLogger(__name__)


def _coerce_field(type_name: str, value: Any, types: dict[str, Any]) -> Any:
    """Convert JSON-friendly EIP-712 values into what eth_account expects"""
    if type_name in types and isinstance(value, dict):
        return _coerce_struct(type_name, value, types)
    if type_name.startswith(("uint", "int")) and isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    if type_name.startswith("bytes") and type_name != "bytes" and isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return value


def _coerce_struct(type_name: str, data: dict[str, Any], types: dict[str, Any]) -> dict[str, Any]:
    fields = {f["name"]: f["type"] for f in types.get(type_name, [])}
    return {k: _coerce_field(fields.get(k, ""), v, types) for k, v in data.items()}


class LocalAccountProvider:
    """
    Wallet provider for scripts and servers.

    Answers the account, chain and signing methods a browser wallet would,
    using eth_account for signatures and web3 for anything that needs a node
    (transaction submission, receipts and other read calls).

    Args:
        private_key: Hex private key (with or without 0x)
        chain_id: Chain the wallet starts on
        rpc_urls: Known chains and their RPC endpoints; defaults to NetworkConfig
        auto_approve: When False every prompt is rejected with code 4001
    """

    def __init__(
        self,
        private_key: str,
        chain_id: int = NetworkConfig.DEFAULT_CHAIN_ID,
        rpc_urls: dict[int, str] | None = None,
        auto_approve: bool = True,
        connected: bool = True,
    ) -> None:
        from eth_account import Account

        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        self._account = Account.from_key(private_key)
        self._chain_id = chain_id
        if rpc_urls is None:
            rpc_urls = {
                cid: chain.rpc_urls[0]
                for cid, chain in NetworkConfig.CHAINS.items()
                if chain.rpc_urls
            }
        self._rpc_urls: dict[int, str] = dict(rpc_urls)
        self._rpc_urls.setdefault(chain_id, NetworkConfig.get_rpc_url(chain_id) or "")
        self._async_web3_clients: dict[int, Any] = {}
        self._listeners: dict[str, list[Callable[..., Any]]] = {}
        self.auto_approve = auto_approve
        self.connected = connected
        logger.info(
            "LocalAccountProvider initialized: address=%s, chain=%s", self.address, chain_id
        )

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def chain_id(self) -> int:
        return self._chain_id

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    def disconnect(self) -> None:
        self.connected = False
        self._emit("accountsChanged", [])

    # ------------------------------------------------------------------
    # EIP-1193
    # ------------------------------------------------------------------

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        params = params or []
        handler = getattr(self, "_rpc_" + method, None)
        if handler is not None:
            return await handler(params)
        return await self._forward(method, params)

    def _check_approval(self) -> None:
        if not self.auto_approve:
            raise ProviderRpcError(ProviderRpcError.USER_REJECTED, "User rejected the request.")

    def _check_account(self, address: str) -> None:
        if not self.connected:
            raise ProviderRpcError(ProviderRpcError.UNAUTHORIZED, "Wallet is not connected")
        if address.lower() != self.address.lower():
            raise ProviderRpcError(
                ProviderRpcError.UNAUTHORIZED, f"Account {address} is not managed by this wallet"
            )

    async def _rpc_eth_accounts(self, params: list[Any]) -> list[str]:
        return [self.address] if self.connected else []

    async def _rpc_eth_requestAccounts(self, params: list[Any]) -> list[str]:
        if not self.connected:
            self._check_approval()
            self.connected = True
            self._emit("accountsChanged", [self.address])
        return [self.address]

    async def _rpc_eth_chainId(self, params: list[Any]) -> str:
        return hex(self._chain_id)

    async def _rpc_wallet_switchEthereumChain(self, params: list[Any]) -> None:
        target = int(params[0]["chainId"], 16)
        if target == self._chain_id:
            return None
        if target not in self._rpc_urls:
            raise ProviderRpcError(
                ProviderRpcError.UNRECOGNIZED_CHAIN,
                f"Unrecognized chain ID {hex(target)}. Try adding the chain first.",
            )
        self._check_approval()
        self._chain_id = target
        self._emit("chainChanged", hex(target))
        return None

    async def _rpc_wallet_addEthereumChain(self, params: list[Any]) -> None:
        chain = params[0]
        target = int(chain["chainId"], 16)
        self._check_approval()
        rpc_urls = chain.get("rpcUrls") or []
        self._rpc_urls[target] = rpc_urls[0] if rpc_urls else ""
        self._chain_id = target
        self._emit("chainChanged", hex(target))
        return None

    async def _rpc_eth_signTypedData_v4(self, params: list[Any]) -> str:
        from eth_account.messages import encode_typed_data

        address, raw = params[0], params[1]
        self._check_account(address)
        self._check_approval()

        data = json.loads(raw) if isinstance(raw, str) else dict(raw)
        types = data["types"]
        full_data = {
            "types": types,
            "domain": _coerce_struct("EIP712Domain", data["domain"], types),
            "primaryType": data["primaryType"],
            "message": _coerce_struct(data["primaryType"], data["message"], types),
        }

        encoded = encode_typed_data(full_message=full_data)
        signed = self._account.sign_message(encoded)
        return "0x" + bytes(signed.signature).hex()

    async def _rpc_eth_sendTransaction(self, params: list[Any]) -> str:
        tx = dict(params[0])
        self._check_account(tx.get("from", self.address))
        self._check_approval()

        w3 = self._ensure_async_web3_client()
        value = tx.get("value", 0)
        if isinstance(value, str):
            value = int(value, 16) if value.startswith("0x") else int(value)

        built: dict[str, Any] = {
            "from": self.address,
            "to": w3.to_checksum_address(tx["to"]),
            "data": tx.get("data", "0x"),
            "value": value,
            "chainId": self._chain_id,
            "nonce": await w3.eth.get_transaction_count(self.address),
        }
        built["gas"] = await w3.eth.estimate_gas(built)
        built["gasPrice"] = await w3.eth.gas_price

        signed_tx = self._account.sign_transaction(built)
        tx_hash = await w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        logger.info("Transaction sent: %s", tx_hash.hex())
        return "0x" + bytes(tx_hash).hex()

    # ------------------------------------------------------------------
    # Node access
    # ------------------------------------------------------------------

    def _ensure_async_web3_client(self) -> Any:
        """Lazy initialize async web3 client for the current chain."""
        chain_id = self._chain_id
        if chain_id not in self._async_web3_clients:
            rpc_url = self._rpc_urls.get(chain_id)
            if not rpc_url:
                raise ProviderRpcError(
                    ProviderRpcError.UNSUPPORTED_METHOD, f"No RPC endpoint for chain {chain_id}"
                )
            from web3 import AsyncHTTPProvider, AsyncWeb3

            self._async_web3_clients[chain_id] = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        return self._async_web3_clients[chain_id]

    async def _forward(self, method: str, params: list[Any]) -> Any:
        w3 = self._ensure_async_web3_client()
        response = await w3.provider.make_request(method, params)
        if "error" in response:
            error = response["error"]
            raise ProviderRpcError(error.get("code", -32000), error.get("message", "RPC error"))
        return response.get("result")
