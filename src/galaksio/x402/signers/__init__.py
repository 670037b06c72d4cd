"""
Wallet signers and providers
"""

from galaksio.x402.signers.base import EventfulWalletProvider, WalletProvider
from galaksio.x402.signers.local_provider import LocalAccountProvider
from galaksio.x402.signers.wallet import WalletSigner

__all__ = ["EventfulWalletProvider", "LocalAccountProvider", "WalletProvider", "WalletSigner"]
