"""
Pytest configuration and test fixtures
"""

from typing import Any

import httpx
import pytest
from eth_account import Account
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from galaksio.x402.signers import LocalAccountProvider

TEST_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
MERCHANT_PRIVATE_KEY = "0x" + "22" * 32
USDC_AVALANCHE = "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E"
BROKER_URL = "http://broker.test"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def payer_address():
    """Address of the test wallet"""
    return Account.from_key(TEST_PRIVATE_KEY).address


@pytest.fixture
def merchant_address():
    """Address the broker asks to be paid at"""
    return Account.from_key(MERCHANT_PRIVATE_KEY).address


@pytest.fixture
def usdc_address():
    return USDC_AVALANCHE


@pytest.fixture
def challenge_body(merchant_address):
    """A 402 body with one valid exact option on Avalanche"""
    return {
        "x402Version": 1,
        "error": "X-PAYMENT header is required",
        "accepts": [
            {
                "scheme": "exact",
                "network": "avalanche",
                "maxAmountRequired": "10000",
                "resource": f"{BROKER_URL}/run",
                "description": "Compute job",
                "mimeType": "application/json",
                "payTo": merchant_address,
                "maxTimeoutSeconds": 60,
                "asset": USDC_AVALANCHE,
                "extra": {"name": "USD Coin", "version": "2"},
            }
        ],
    }


class ScriptedProvider:
    """Wallet provider double answering from a method -> result table.

    A result may be a value, an exception instance (raised) or a callable
    taking the params list.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, list[Any]]] = []
        self._listeners: dict[str, list[Any]] = {}

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        self.calls.append((method, params or []))
        if method not in self.responses:
            raise AssertionError(f"Unexpected wallet call: {method}")
        result = self.responses[method]
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(params or [])
        return result

    def on(self, event: str, handler: Any) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Any) -> None:
        self._listeners.get(event, []).remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    @property
    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


@pytest.fixture
def scripted_provider(payer_address):
    """Connected wallet on Avalanche that signs with a fixed signature"""
    return ScriptedProvider(
        {
            "eth_accounts": [payer_address],
            "eth_requestAccounts": [payer_address],
            "eth_chainId": "0xa86a",
            "eth_signTypedData_v4": "0x" + "ab" * 65,
        }
    )


@pytest.fixture
def local_provider():
    """Private-key wallet that knows Avalanche and Base, without a reachable node"""
    return LocalAccountProvider(
        TEST_PRIVATE_KEY,
        chain_id=43114,
        rpc_urls={43114: "http://127.0.0.1:9650", 8453: "http://127.0.0.1:8545"},
    )


def create_broker_app(challenge: dict[str, Any] | str) -> FastAPI:
    """In-process broker that charges for /run, /store and /cache.

    ``app.state`` knobs:
        require_payment: answer unpaid requests with the challenge
        paid_status: status for requests carrying X-PAYMENT
        unpaid_status: status for unpaid requests when payment is not required
        results: per-kind ``result`` objects
        paid_body: raw body that replaces the job JSON on success
        requests: log of every request received
    """
    app = FastAPI()
    app.state.challenge = challenge
    app.state.require_payment = True
    app.state.paid_status = 200
    app.state.unpaid_status = 200
    app.state.results = {
        "run": {"stdout": "hi"},
        "store": {"cid": "bafy123", "url": "https://ipfs.io/ipfs/bafy123", "provider": "ipfs", "size": 5},
        "cache": {"cacheId": "c-1", "endpoint": "redis://cache", "region": "us-east", "provider": "redis"},
    }
    app.state.requests = []
    app.state.paid_body = None

    def _challenge_response() -> Response:
        if isinstance(app.state.challenge, str):
            return Response(content=app.state.challenge, status_code=402, media_type="application/json")
        return JSONResponse(app.state.challenge, status_code=402)

    @app.get("/health")
    async def health():
        return JSONResponse({"ok": True}, headers={"X-Broker": "fake"})

    @app.post("/{kind}")
    async def submit(kind: str, request: Request):
        payment = request.headers.get("x-payment")
        app.state.requests.append(
            {
                "kind": kind,
                "payment": payment,
                "headers": dict(request.headers),
                "body": await request.body(),
            }
        )

        if payment is None:
            if app.state.require_payment:
                return _challenge_response()
            if app.state.unpaid_status != 200:
                return JSONResponse({"error": "broker unavailable"}, status_code=app.state.unpaid_status)
        elif app.state.paid_status == 402:
            return _challenge_response()
        elif app.state.paid_status != 200:
            return JSONResponse({"error": "settlement failed"}, status_code=app.state.paid_status)

        if app.state.paid_body is not None:
            return Response(content=app.state.paid_body, media_type="application/json")
        return JSONResponse(
            {"jobId": "abc", "status": "completed", "result": app.state.results.get(kind, {})}
        )

    return app


@pytest.fixture
def broker_app(challenge_body):
    return create_broker_app(challenge_body)


@pytest.fixture
def broker_http(broker_app):
    """httpx client wired to the in-process broker"""
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=broker_app), base_url=BROKER_URL)


@pytest.fixture
def broker_url():
    return BROKER_URL
