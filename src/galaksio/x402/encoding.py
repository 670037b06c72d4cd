"""
Encoding utilities for x402 protocol
"""

import base64
import binascii
import json
from typing import Any, TypeVar

from pydantic import ValidationError

from galaksio.x402.exceptions import X402Error
from galaksio.x402.types import (
    SCHEME_EXACT,
    ExactPayload,
    PaymentInfo,
    SignedPayment,
    TransferAuthorization,
)

T = TypeVar("T")


def encode_base64(data: str | bytes) -> str:
    """Encode data to base64"""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("utf-8")


def decode_base64(data: str) -> str:
    """Decode base64 to string"""
    return base64.b64decode(data, validate=True).decode("utf-8")


def canonical_json(data: Any) -> str:
    """Serialize to compact JSON with sorted keys"""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def encode_payment_payload(payload: Any) -> str:
    """Encode payment payload to base64 for HTTP header"""
    if hasattr(payload, "model_dump"):
        json_str = canonical_json(payload.model_dump(by_alias=True))
    else:
        json_str = canonical_json(payload)
    return encode_base64(json_str)


def decode_payment_payload(encoded: str, model_class: type[T] | None = None) -> T | dict[str, Any]:
    """Decode payment payload from base64 HTTP header"""
    json_str = decode_base64(encoded)
    data = json.loads(json_str)
    if model_class is not None:
        return model_class(**data)
    return data


def encode_payment(
    signature: str,
    authorization: TransferAuthorization,
    scheme: str = SCHEME_EXACT,
    network: str = "avalanche",
) -> str:
    """Build the payment header value for a signed transfer authorization"""
    payment = SignedPayment(
        scheme=scheme,
        network=network,
        payload=ExactPayload(signature=signature, authorization=authorization),
    )
    return encode_payment_payload(payment)


def decode_payment(token: str) -> SignedPayment:
    """Decode a payment header value

    Raises:
        X402Error: If the token is not base64 JSON of a signed payment
    """
    try:
        return decode_payment_payload(token, SignedPayment)
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError, ValidationError) as e:
        raise X402Error(f"Invalid payment token: {e}") from e


def payment_info_from_token(token: str, asset: str) -> PaymentInfo:
    """Extract the display/revocation summary from a payment header value"""
    payment = decode_payment(token)
    authorization = payment.payload.authorization
    return PaymentInfo(
        network=payment.network,
        spender=authorization.to,
        asset=asset,
        userAddress=authorization.from_address,
    )
