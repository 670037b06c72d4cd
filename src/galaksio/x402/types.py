"""
Type definitions for x402 protocol
"""

from enum import Enum
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

X402_VERSION = 1

SCHEME_EXACT = "exact"


class PaymentOptionExtra(BaseModel):
    """Token domain hints carried in a payment option"""

    name: Optional[str] = None
    version: Optional[str] = None

    class Config:
        extra = "allow"


class PaymentOption(BaseModel):
    """One accepted way to pay, as advertised by the server.

    ``pay_to``, ``asset`` and ``max_amount_required`` are optional here so
    that a challenge missing them still parses and can be rejected with a
    precise reason when the authorization is built.
    """

    scheme: str
    network: str
    pay_to: Optional[str] = Field(None, alias="payTo")
    asset: Optional[str] = None
    max_amount_required: Optional[str] = Field(None, alias="maxAmountRequired")
    resource: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = Field(None, alias="mimeType")
    max_timeout_seconds: Optional[int] = Field(None, alias="maxTimeoutSeconds")
    output_schema: Optional[dict[str, Any]] = Field(None, alias="outputSchema")
    extra: Optional[PaymentOptionExtra] = None

    class Config:
        populate_by_name = True


class PaymentChallenge(BaseModel):
    """Payment required response (402)"""

    x402_version: int = Field(alias="x402Version")
    error: Optional[str] = None
    accepts: list[PaymentOption]

    class Config:
        populate_by_name = True


class TransferAuthorization(BaseModel):
    """TransferWithAuthorization parameters"""

    from_address: str = Field(alias="from")
    to: str
    value: str
    valid_after: str = Field(alias="validAfter")
    valid_before: str = Field(alias="validBefore")
    nonce: str  # 32-byte hex string (0x...)

    class Config:
        populate_by_name = True


class ExactPayload(BaseModel):
    """Signature plus the authorization it covers"""

    signature: str
    authorization: TransferAuthorization


class SignedPayment(BaseModel):
    """Payment payload sent by client in the payment header"""

    x402_version: int = Field(X402_VERSION, alias="x402Version")
    scheme: str
    network: str
    payload: ExactPayload

    class Config:
        populate_by_name = True


class PaymentInfo(BaseModel):
    """Summary of a completed signing, used for display and revocation"""

    network: str
    spender: str
    asset: str
    user_address: str = Field(alias="userAddress")

    class Config:
        populate_by_name = True
        frozen = True


class PaymentState(str, Enum):
    """States of a payment-gated request"""

    INITIAL = "INITIAL"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAYING = "PAYING"
    RETRYING = "RETRYING"
    DONE = "DONE"
    FAILED = "FAILED"


class PaymentOutcome(BaseModel):
    """Final response of a payment-gated request and how it got there"""

    response: httpx.Response
    state: PaymentState
    payment_info: Optional[PaymentInfo] = None

    class Config:
        arbitrary_types_allowed = True

    @property
    def paid(self) -> bool:
        return self.payment_info is not None
