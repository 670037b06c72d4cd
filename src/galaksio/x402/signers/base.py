"""
Wallet provider interface
"""

from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class WalletProvider(Protocol):
    """
    EIP-1193 style chain provider.

    The sole boundary to the user's wallet. Requests may prompt the user
    and are not bounded by any client-side timeout.
    """

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """Send a JSON-RPC request to the wallet"""
        ...


@runtime_checkable
class EventfulWalletProvider(WalletProvider, Protocol):
    """Provider that also emits events such as ``accountsChanged``"""

    def on(self, event: str, handler: Callable[..., Any]) -> None: ...

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> None: ...
