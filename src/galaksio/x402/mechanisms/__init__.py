"""
Payment scheme mechanisms.
"""

from galaksio.x402.mechanisms.exact import (
    DEFAULT_VALIDITY_SECONDS,
    TRANSFER_AUTH_EIP712_TYPES,
    TRANSFER_AUTH_PRIMARY_TYPE,
    ExactClientMechanism,
    build_authorization,
    build_eip712_domain,
    build_eip712_message,
    create_nonce,
    create_validity_window,
    resolve_token_domain,
    select_payment_option,
)

__all__ = [
    "DEFAULT_VALIDITY_SECONDS",
    "TRANSFER_AUTH_EIP712_TYPES",
    "TRANSFER_AUTH_PRIMARY_TYPE",
    "ExactClientMechanism",
    "build_authorization",
    "build_eip712_domain",
    "build_eip712_message",
    "create_nonce",
    "create_validity_window",
    "resolve_token_domain",
    "select_payment_option",
]
