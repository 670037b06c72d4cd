"""
X402HttpClient - HTTP client adapter with automatic 402 payment handling
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from galaksio.x402.exceptions import (
    MalformedChallengeError,
    NoAccountsError,
    PaymentRetryFailedError,
    WalletNotConnectedError,
    WalletUnavailableError,
)
from galaksio.x402.mechanisms.exact import ExactClientMechanism
from galaksio.x402.signers.wallet import WalletSigner
from galaksio.x402.types import PaymentChallenge, PaymentOutcome, PaymentState

logger = logging.getLogger(__name__)


PAYMENT_HEADER = "X-PAYMENT"


class X402HttpClient:
    """
    HTTP client adapter with automatic 402 payment handling.

    Wraps httpx.AsyncClient. A request answered with 402 Payment Required is
    paid for once and retried once; any other response is returned as-is.

    States: INITIAL -> (DONE | FAILED) for non-402 responses, otherwise
    INITIAL -> AWAITING_PAYMENT -> PAYING -> RETRYING -> DONE. At most one
    payment attempt is made per call, even if the paid retry answers 402.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        signer: WalletSigner | None = None,
        mechanism: ExactClientMechanism | None = None,
    ) -> None:
        """
        Initialize HTTP client adapter.

        Args:
            http_client: httpx.AsyncClient instance
            signer: Wallet signer adapter; None means no wallet is connected
            mechanism: Payment mechanism (defaults to exact over *signer*)
        """
        self._http_client = http_client
        self._signer = signer
        if mechanism is None and signer is not None:
            mechanism = ExactClientMechanism(signer)
        self._mechanism = mechanism

    async def execute(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> PaymentOutcome:
        """
        Make HTTP request with automatic 402 payment handling.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            **kwargs: Additional httpx request parameters. A body is sent twice
                when the request is paid for, so ``content`` must be str or bytes;
                streaming iterators are rejected before the first request.

        Returns:
            PaymentOutcome with the final response

        Raises:
            TypeError: ``content`` is a stream that cannot be resent
            MalformedChallengeError: 402 body is not a payment challenge
            InvalidChallengeError: Challenge cannot be paid
            WalletNotConnectedError: No wallet account to pay with
            PaymentRetryFailedError: Paid retry was not successful
        """
        content = kwargs.get("content")
        if content is not None and not isinstance(content, (str, bytes)):
            raise TypeError(
                f"content must be str or bytes to be resent with payment, got {type(content).__name__}"
            )

        state = PaymentState.INITIAL
        logger.info(f"Making {method} request to {url}")
        response = await self._http_client.request(method, url, **kwargs)
        logger.info(f"Received response: status={response.status_code}")

        if response.status_code != 402:
            state = self._transition(
                state, PaymentState.DONE if response.is_success else PaymentState.FAILED
            )
            return PaymentOutcome(response=response, state=state)

        state = self._transition(state, PaymentState.AWAITING_PAYMENT)
        logger.info("Received 402 Payment Required, processing payment...")
        challenge = self._parse_challenge(response)
        logger.info(f"Parsed payment challenge with {len(challenge.accepts)} payment options")

        payer = await self._get_payer()
        logger.info(f"Paying from {payer}")

        state = self._transition(state, PaymentState.PAYING)
        async with self._signer.prompt_lock:
            try:
                token, payment_info = await self._mechanism.create_payment(challenge, payer)
            except Exception as e:
                logger.error(f"Failed to create payment: {e}")
                raise

        state = self._transition(state, PaymentState.RETRYING)
        response = await self._retry_with_payment(method, url, token, kwargs)

        if not response.is_success:
            self._transition(state, PaymentState.FAILED)
            raise PaymentRetryFailedError(response.status_code, response.text[:500])

        state = self._transition(state, PaymentState.DONE)
        return PaymentOutcome(response=response, state=state, payment_info=payment_info)

    async def request_with_payment(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make HTTP request with payment handling and return the final response"""
        outcome = await self.execute(method, url, **kwargs)
        return outcome.response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET request with payment handling"""
        return await self.request_with_payment("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST request with payment handling"""
        return await self.request_with_payment("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        """PUT request with payment handling"""
        return await self.request_with_payment("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """DELETE request with payment handling"""
        return await self.request_with_payment("DELETE", url, **kwargs)

    def _transition(self, current: PaymentState, new: PaymentState) -> PaymentState:
        logger.debug(f"Payment state: {current.value} -> {new.value}")
        return new

    def _parse_challenge(self, response: httpx.Response) -> PaymentChallenge:
        """Parse PaymentChallenge from 402 response body"""
        logger.debug(f"Response body: {response.text[:500]}")
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse 402 response: {e}")
            raise MalformedChallengeError("Invalid payment requirements from broker") from e

        if not isinstance(body, dict):
            raise MalformedChallengeError("Invalid payment requirements from broker: not an object")

        try:
            return PaymentChallenge(**body)
        except ValidationError as e:
            logger.error(f"402 response does not match the payment challenge schema: {e}")
            raise MalformedChallengeError(f"Invalid payment requirements from broker: {e}") from e

    async def _get_payer(self) -> str:
        """Return the connected account that pays"""
        if self._signer is None or self._mechanism is None:
            raise WalletNotConnectedError(
                "Payment required but wallet not connected. Please connect your wallet."
            )
        try:
            accounts = await self._signer.get_accounts()
        except (WalletUnavailableError, NoAccountsError) as e:
            raise WalletNotConnectedError(str(e)) from e
        return accounts[0]

    async def _retry_with_payment(
        self,
        method: str,
        url: str,
        token: str,
        kwargs: dict[str, Any],
    ) -> httpx.Response:
        """Retry request with payment token"""
        logger.info("Retrying request with payment")
        logger.debug(f"Encoded payment length: {len(token)} chars")

        headers = httpx.Headers(kwargs.get("headers"))
        headers[PAYMENT_HEADER] = token
        retry_kwargs = {**kwargs, "headers": headers}

        response = await self._http_client.request(method, url, **retry_kwargs)
        logger.info(f"Payment retry response: status={response.status_code}")

        if response.status_code >= 400:
            logger.error(f"Payment retry failed with body: {response.text[:500]}")

        return response
