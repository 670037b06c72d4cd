"""
BrokerClient - Paid job submission to a Galaksio broker
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from galaksio.x402.broker.jobs import JobRecord, JobStore
from galaksio.x402.broker.types import (
    BrokerCacheResponse,
    BrokerRunResponse,
    BrokerStoreResponse,
    CacheRequest,
    JobKind,
    RunRequest,
    StoreOptions,
    StoreRequest,
)
from galaksio.x402.clients.x402_http_client import X402HttpClient
from galaksio.x402.config import BrokerSettings
from galaksio.x402.encoding import encode_base64
from galaksio.x402.exceptions import BrokerRequestError
from galaksio.x402.mechanisms.exact import ExactClientMechanism
from galaksio.x402.signers.wallet import WalletSigner

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "data.txt"
JSON_HEADERS = {"Content-Type": "application/json"}

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class BrokerClient:
    """
    Client for the broker's paid endpoints (/run, /store, /cache).

    Every call goes through X402HttpClient, so a 402 challenge is paid with
    the connected wallet and retried once. Job status is never queried from
    here; see ``apply_status_update`` for the server-side refresh path.
    """

    def __init__(
        self,
        base_url: str,
        signer: WalletSigner | None = None,
        job_store: JobStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        settings: BrokerSettings | None = None,
    ) -> None:
        """
        Initialize broker client.

        Args:
            base_url: Broker base URL
            signer: Wallet signer adapter; None means no wallet is connected
            job_store: Receives a JobRecord for every successful job
            http_client: Shared httpx.AsyncClient (not closed by this client)
            settings: Timeout, strict network and extra header settings
        """
        self._settings = settings or BrokerSettings(base_url=base_url)
        self._base_url = base_url.rstrip("/")
        self._signer = signer
        self._job_store = job_store
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._x402_client: X402HttpClient | None = None

    @classmethod
    def from_settings(
        cls,
        settings: BrokerSettings,
        signer: WalletSigner | None = None,
        job_store: JobStore | None = None,
    ) -> "BrokerClient":
        """Create a client from BrokerSettings (e.g. ``BrokerSettings.from_env()``)"""
        return cls(settings.base_url, signer=signer, job_store=job_store, settings=settings)

    async def __aenter__(self) -> "BrokerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_client(self) -> X402HttpClient:
        """Get or create the payment-aware HTTP client"""
        if self._x402_client is None:
            if self._http_client is None:
                self._http_client = httpx.AsyncClient(
                    headers=self._settings.extra_headers,
                    timeout=self._settings.timeout,
                )
            mechanism = None
            if self._signer is not None:
                mechanism = ExactClientMechanism(
                    self._signer, strict_network=self._settings.strict_network
                )
            self._x402_client = X402HttpClient(
                self._http_client, signer=self._signer, mechanism=mechanism
            )
        return self._x402_client

    async def close(self) -> None:
        """Close HTTP client if this client created it"""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
        self._x402_client = None

    async def run(self, request: RunRequest) -> BrokerRunResponse:
        """
        Submit a compute job (POST /run).

        Args:
            request: Code, language and optional GPU/timeout settings

        Returns:
            BrokerRunResponse with stdout, stderr, exitCode, executionTime
        """
        return await self._post("run", BrokerRunResponse, json=request.model_dump(exclude_none=True))

    async def store(
        self,
        data: bytes | str,
        filename: str | None = None,
        options: StoreOptions | None = None,
        encoded: bool = False,
    ) -> BrokerStoreResponse:
        """
        Store data on decentralized storage (POST /store).

        Args:
            data: File content; text is UTF-8 encoded before base64
            filename: Stored filename (default: data.txt)
            options: Permanence, TTL and provider options
            encoded: *data* is already base64 and is sent as-is

        Returns:
            BrokerStoreResponse with cid, url, provider, size
        """
        if encoded and isinstance(data, str):
            payload = data
        else:
            payload = encode_base64(data)

        request = StoreRequest(data=payload, filename=filename or DEFAULT_FILENAME, options=options)
        return await self._post("store", BrokerStoreResponse, json=request.model_dump(exclude_none=True))

    async def cache(
        self,
        data: bytes | str,
        ttl: int | None = None,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> BrokerCacheResponse:
        """
        Create a cache entry (POST /cache).

        Text is sent as JSON; bytes are uploaded as a multipart ``file`` field.

        Args:
            data: Text or file content
            ttl: Time to live in seconds
            content_type: MIME type of the content
            filename: Upload filename for bytes content

        Returns:
            BrokerCacheResponse with cacheId, endpoint, region, provider
        """
        if isinstance(data, bytes):
            form: dict[str, str] = {}
            if ttl:
                form["ttl"] = str(ttl)
            if content_type:
                form["contentType"] = content_type
            files = {"file": (filename or DEFAULT_FILENAME, data)}
            return await self._post("cache", BrokerCacheResponse, data=form, files=files)
        request = CacheRequest(data=data, ttl=ttl, content_type=content_type or "text/plain")
        return await self._post("cache", BrokerCacheResponse, json=request.model_dump(by_alias=True))

    async def _post(self, kind: JobKind, response_model: type[ResponseT], **kwargs: Any) -> ResponseT:
        url = f"{self._base_url}/{kind}"
        if "json" in kwargs:
            kwargs["headers"] = JSON_HEADERS

        logger.info(f"[Broker] Calling /{kind}...")
        response = await self._get_client().request_with_payment("POST", url, **kwargs)
        logger.info(f"[Broker] Response status: {response.status_code}")

        if not response.is_success:
            logger.error(f"[Broker] Error response: {response.text[:500]}")
            raise BrokerRequestError(response.status_code, response.text)

        # ValidationError and JSONDecodeError are both ValueError
        try:
            body = response.json()
            parsed = response_model.model_validate(body)
        except ValueError as e:
            logger.error(f"[Broker] Unexpected /{kind} response: {e}")
            raise BrokerRequestError(
                response.status_code, f"Invalid /{kind} response: {response.text[:500]}"
            ) from e

        if self._job_store is not None:
            record = JobRecord.from_broker_response(kind, body)
            await self._job_store.save(record)
            logger.debug(f"[Broker] Saved job record {record.broker_job_id}")
        return parsed
