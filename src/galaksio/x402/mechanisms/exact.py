"""
Exact payment scheme: EIP-3009 TransferWithAuthorization.

Builds a time-boxed, nonce-unique transfer authorization for the first
payment option of a challenge and has the wallet sign it.
"""

import logging
import secrets
import time
from typing import Any

from galaksio.x402.config import NetworkConfig
from galaksio.x402.encoding import encode_payment_payload
from galaksio.x402.exceptions import InvalidChallengeError
from galaksio.x402.signers.wallet import WalletSigner
from galaksio.x402.tokens import TokenRegistry
from galaksio.x402.types import (
    SCHEME_EXACT,
    ExactPayload,
    PaymentChallenge,
    PaymentInfo,
    PaymentOption,
    SignedPayment,
    TransferAuthorization,
)

logger = logging.getLogger(__name__)

# Authorization validity window (15 minutes)
DEFAULT_VALIDITY_SECONDS = 900

TRANSFER_AUTH_PRIMARY_TYPE = "TransferWithAuthorization"

TRANSFER_AUTH_EIP712_TYPES = {
    TRANSFER_AUTH_PRIMARY_TYPE: [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "bytes32"},
    ],
}


def create_nonce() -> str:
    """Generate a random 32-byte nonce (0x-prefixed hex)."""
    return "0x" + secrets.token_hex(32)


def create_validity_window(
    duration: int = DEFAULT_VALIDITY_SECONDS,
    now: int | None = None,
) -> tuple[int, int]:
    """Create (validAfter, validBefore) timestamps starting at *now*."""
    if now is None:
        now = int(time.time())
    return now, now + duration


def select_payment_option(challenge: PaymentChallenge) -> PaymentOption:
    """Return the authoritative (first) option of a challenge."""
    if not challenge.accepts:
        raise InvalidChallengeError("Invalid x402 payment requirements: missing 'accepts' array")
    return challenge.accepts[0]


def build_authorization(
    option: PaymentOption,
    payer: str,
    now: int | None = None,
    validity_seconds: int = DEFAULT_VALIDITY_SECONDS,
) -> TransferAuthorization:
    """
    Build a fresh transfer authorization for *option*.

    ``value`` and ``to`` are copied verbatim from the option; the amount is
    never negotiated down.

    Raises:
        InvalidChallengeError: asset, payTo or maxAmountRequired missing or invalid
    """
    missing = [
        alias
        for alias, value in (
            ("asset", option.asset),
            ("payTo", option.pay_to),
            ("maxAmountRequired", option.max_amount_required),
        )
        if not value
    ]
    if missing:
        raise InvalidChallengeError(f"Payment option missing required fields: {', '.join(missing)}")

    amount = option.max_amount_required.strip()
    if not (amount.isascii() and amount.isdigit()):
        raise InvalidChallengeError(f"Invalid maxAmountRequired: {option.max_amount_required!r}")

    valid_after, valid_before = create_validity_window(validity_seconds, now)

    return TransferAuthorization(
        **{
            "from": payer,
            "to": option.pay_to,
            "value": amount,
            "validAfter": str(valid_after),
            "validBefore": str(valid_before),
            "nonce": create_nonce(),
        }
    )


def build_eip712_domain(
    token_name: str,
    token_version: str,
    chain_id: int,
    verifying_contract: str,
) -> dict[str, Any]:
    """Build EIP-712 domain dict for exact."""
    return {
        "name": token_name,
        "version": token_version,
        "chainId": chain_id,
        "verifyingContract": verifying_contract,
    }


def build_eip712_message(auth: TransferAuthorization) -> dict[str, Any]:
    """Build a JSON-serializable EIP-712 message from an authorization."""
    return {
        "from": auth.from_address,
        "to": auth.to,
        "value": int(auth.value),
        "validAfter": int(auth.valid_after),
        "validBefore": int(auth.valid_before),
        "nonce": auth.nonce,
    }


def resolve_token_domain(option: PaymentOption, chain_id: int) -> tuple[str, str]:
    """Token name/version for the EIP-712 domain: option hints, then registry, then USDC."""
    token_info = TokenRegistry.find_by_address(chain_id, option.asset or "")
    name = token_info.name if token_info else TokenRegistry.DEFAULT_NAME
    version = token_info.version if token_info else TokenRegistry.DEFAULT_VERSION
    if option.extra is not None:
        name = option.extra.name or name
        version = option.extra.version or version
    return name, version


class ExactClientMechanism:
    """TransferWithAuthorization client mechanism.

    Args:
        signer: Wallet signer adapter
        strict_network: Fail on unrecognized network labels instead of
            falling back to ``default_chain_id``
        default_chain_id: Chain used for unrecognized labels
    """

    def __init__(
        self,
        signer: WalletSigner,
        strict_network: bool = False,
        default_chain_id: int | None = NetworkConfig.DEFAULT_CHAIN_ID,
    ) -> None:
        self._signer = signer
        self._strict_network = strict_network
        self._default_chain_id = default_chain_id

    def scheme(self) -> str:
        return SCHEME_EXACT

    def get_signer(self) -> WalletSigner:
        return self._signer

    def resolve_chain_id(self, network: str) -> int:
        return NetworkConfig.resolve_chain_id(
            network,
            strict=self._strict_network,
            default_chain_id=self._default_chain_id,
        )

    async def create_payment(
        self,
        challenge: PaymentChallenge,
        payer: str,
    ) -> tuple[str, PaymentInfo]:
        """
        Sign the first option of *challenge* and encode it for the payment header.

        Args:
            challenge: Parsed 402 challenge
            payer: Connected wallet account

        Returns:
            (encoded payment token, payment info)
        """
        option = select_payment_option(challenge)
        signed_payment, payment_info = await self.create_signed_payment(option, payer)
        return encode_payment_payload(signed_payment), payment_info

    async def create_signed_payment(
        self,
        option: PaymentOption,
        payer: str,
    ) -> tuple[SignedPayment, PaymentInfo]:
        """
        Build and sign a transfer authorization for *option*.

        Raises:
            InvalidChallengeError: Unsupported scheme or incomplete option
            UnsupportedNetworkError: Network label rejected by the chain policy
        """
        if option.scheme != SCHEME_EXACT:
            raise InvalidChallengeError(f"Unsupported payment scheme: {option.scheme}")

        authorization = build_authorization(option, payer)
        chain_id = self.resolve_chain_id(option.network)

        await self._signer.ensure_network(chain_id)

        token_name, token_version = resolve_token_domain(option, chain_id)
        domain = build_eip712_domain(token_name, token_version, chain_id, option.asset)

        logger.info(
            "[EXACT] Signing TransferWithAuthorization: from=%s, to=%s, value=%s, token=%s, chain=%s",
            authorization.from_address,
            authorization.to,
            authorization.value,
            option.asset,
            chain_id,
        )

        signature = await self._signer.sign_typed_data(
            domain=domain,
            types=TRANSFER_AUTH_EIP712_TYPES,
            message=build_eip712_message(authorization),
            signer_address=payer,
            primary_type=TRANSFER_AUTH_PRIMARY_TYPE,
        )

        signed_payment = SignedPayment(
            scheme=option.scheme,
            network=option.network,
            payload=ExactPayload(signature=signature, authorization=authorization),
        )
        payment_info = PaymentInfo(
            network=option.network,
            spender=authorization.to,
            asset=option.asset,
            userAddress=authorization.from_address,
        )
        return signed_payment, payment_info
