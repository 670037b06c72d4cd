"""
x402 custom exception hierarchy
"""


class X402Error(Exception):
    """x402 base exception"""

    pass


class ProviderRpcError(X402Error):
    """Error returned by a wallet provider request (EIP-1193)"""

    USER_REJECTED = 4001
    UNAUTHORIZED = 4100
    UNSUPPORTED_METHOD = 4200
    UNRECOGNIZED_CHAIN = 4902

    def __init__(self, code: int, message: str, data: object | None = None):
        self.code = code
        self.data = data
        super().__init__(f"{message} (code {code})")


class WalletError(X402Error):
    """Wallet-related error"""

    pass


class WalletUnavailableError(WalletError):
    """No chain provider is available"""

    pass


class WalletNotConnectedError(WalletError):
    """Payment required but no connected wallet account"""

    pass


class NoAccountsError(WalletNotConnectedError):
    """Provider has no connected accounts"""

    pass


class NetworkSwitchRejectedError(WalletError):
    """Wallet refused or failed to switch network"""

    pass


class NetworkAddRejectedError(WalletError):
    """Wallet refused or failed to register a network"""

    pass


class SigningRejectedError(WalletError):
    """Wallet refused or failed to sign"""

    pass


class ChallengeError(X402Error):
    """402 challenge-related error"""

    pass


class MalformedChallengeError(ChallengeError):
    """402 body could not be parsed as a payment challenge"""

    pass


class InvalidChallengeError(ChallengeError):
    """Payment challenge parsed but cannot be paid"""

    pass


class PaymentRetryFailedError(X402Error):
    """Paid retry returned a non-2xx response"""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Payment retry failed ({status_code}): {body}")


class RevocationError(X402Error):
    """Allowance revocation error"""

    pass


class RevocationTimeoutError(RevocationError):
    """No revocation receipt within the polling budget"""

    pass


class RevocationFailedError(RevocationError):
    """Revocation transaction reverted"""

    pass


class ConfigurationError(X402Error):
    """Configuration-related error"""

    pass


class UnsupportedNetworkError(ConfigurationError):
    """Unsupported network"""

    pass


class BrokerRequestError(X402Error):
    """Broker answered with a terminal error status"""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Broker request failed ({status_code}): {body}")
