"""
galaksio x402 - Client-side x402 payments for the Galaksio broker

Answers HTTP 402 challenges with EIP-3009 transfer authorizations signed by
an EIP-1193 wallet, and retries the request once with the payment attached.
"""

__version__ = "0.1.0"

from galaksio.x402.clients import PAYMENT_HEADER, X402HttpClient
from galaksio.x402.config import BrokerSettings, ChainInfo, NetworkConfig
from galaksio.x402.exceptions import (
    BrokerRequestError,
    ChallengeError,
    ConfigurationError,
    InvalidChallengeError,
    MalformedChallengeError,
    NetworkAddRejectedError,
    NetworkSwitchRejectedError,
    NoAccountsError,
    PaymentRetryFailedError,
    ProviderRpcError,
    RevocationError,
    RevocationFailedError,
    RevocationTimeoutError,
    SigningRejectedError,
    UnsupportedNetworkError,
    WalletError,
    WalletNotConnectedError,
    WalletUnavailableError,
    X402Error,
)
from galaksio.x402.fees import relay_fee, total_amount
from galaksio.x402.mechanisms import ExactClientMechanism
from galaksio.x402.revocation import revoke_approval
from galaksio.x402.signers import LocalAccountProvider, WalletProvider, WalletSigner
from galaksio.x402.tokens import TokenInfo, TokenRegistry
from galaksio.x402.types import (
    PaymentChallenge,
    PaymentInfo,
    PaymentOption,
    PaymentOutcome,
    PaymentState,
    SignedPayment,
    TransferAuthorization,
)

__all__ = [
    "__version__",
    # Client
    "PAYMENT_HEADER",
    "X402HttpClient",
    "ExactClientMechanism",
    "WalletSigner",
    "WalletProvider",
    "LocalAccountProvider",
    "revoke_approval",
    "relay_fee",
    "total_amount",
    # Config
    "BrokerSettings",
    "ChainInfo",
    "NetworkConfig",
    "TokenInfo",
    "TokenRegistry",
    # Types
    "PaymentChallenge",
    "PaymentOption",
    "PaymentInfo",
    "PaymentOutcome",
    "PaymentState",
    "SignedPayment",
    "TransferAuthorization",
    # Exceptions
    "X402Error",
    "ProviderRpcError",
    "WalletError",
    "WalletUnavailableError",
    "WalletNotConnectedError",
    "NoAccountsError",
    "NetworkSwitchRejectedError",
    "NetworkAddRejectedError",
    "SigningRejectedError",
    "ChallengeError",
    "MalformedChallengeError",
    "InvalidChallengeError",
    "PaymentRetryFailedError",
    "RevocationError",
    "RevocationTimeoutError",
    "RevocationFailedError",
    "ConfigurationError",
    "UnsupportedNetworkError",
    "BrokerRequestError",
]
