"""
Local stand-in for a Galaksio broker.

Charges for /run, /store and /cache with an x402 exact challenge and checks
the signature of the authorization it receives. Nothing is settled on-chain.
"""

import logging
import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from eth_account import Account
from eth_account.messages import encode_typed_data
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from galaksio.x402.config import NetworkConfig
from galaksio.x402.encoding import decode_payment
from galaksio.x402.exceptions import X402Error
from galaksio.x402.mechanisms.exact import TRANSFER_AUTH_EIP712_TYPES, TRANSFER_AUTH_PRIMARY_TYPE
from galaksio.x402.signers.wallet import eip712_domain_type_from_keys
from galaksio.x402.tokens import TokenRegistry

load_dotenv(Path(__file__).parent.parent.parent / ".env")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logging.getLogger("galaksio.x402").setLevel(logging.DEBUG)

logger = logging.getLogger(__name__)

PAY_TO_ADDRESS = os.getenv("PAY_TO_ADDRESS") or "0x000000000000000000000000000000000000dEaD"
NETWORK = os.getenv("BROKER_NETWORK", "avalanche")
PRICE = os.getenv("BROKER_PRICE", "10000")  # 0.01 USDC
SERVER_HOST = "0.0.0.0"
SERVER_PORT = 8000

CHAIN_ID = NetworkConfig.resolve_chain_id(NETWORK)
USDC = TokenRegistry.get_network_tokens(CHAIN_ID)["USDC"]

app = FastAPI(title="Galaksio Broker (local)", description="Paid compute, storage and cache jobs")


def payment_required(resource: str) -> JSONResponse:
    return JSONResponse(
        {
            "x402Version": 1,
            "error": "X-PAYMENT header is required",
            "accepts": [
                {
                    "scheme": "exact",
                    "network": NETWORK,
                    "maxAmountRequired": PRICE,
                    "resource": resource,
                    "description": "Galaksio broker job",
                    "mimeType": "application/json",
                    "payTo": PAY_TO_ADDRESS,
                    "maxTimeoutSeconds": 60,
                    "asset": USDC.address,
                    "extra": {"name": USDC.name, "version": USDC.version},
                }
            ],
        },
        status_code=402,
    )


def recover_payer(token: str) -> str:
    """Recover the signer of a payment header and check it matches ``from``"""
    payment = decode_payment(token)
    auth = payment.payload.authorization
    domain = {
        "name": USDC.name,
        "version": USDC.version,
        "chainId": CHAIN_ID,
        "verifyingContract": USDC.address,
    }
    full_message = {
        "types": {"EIP712Domain": eip712_domain_type_from_keys(domain), **TRANSFER_AUTH_EIP712_TYPES},
        "domain": domain,
        "primaryType": TRANSFER_AUTH_PRIMARY_TYPE,
        "message": {
            "from": auth.from_address,
            "to": auth.to,
            "value": int(auth.value),
            "validAfter": int(auth.valid_after),
            "validBefore": int(auth.valid_before),
            "nonce": bytes.fromhex(auth.nonce[2:]),
        },
    }
    signer = Account.recover_message(
        encode_typed_data(full_message=full_message), signature=payment.payload.signature
    )
    if signer.lower() != auth.from_address.lower():
        raise X402Error(f"Signature does not match payer {auth.from_address}")
    if int(auth.value) < int(PRICE) or auth.to.lower() != PAY_TO_ADDRESS.lower():
        raise X402Error("Authorization does not cover the price")
    return signer


@app.post("/{kind}")
async def submit(kind: str, request: Request):
    if kind not in ("run", "store", "cache"):
        return JSONResponse({"error": f"Unknown endpoint /{kind}"}, status_code=404)

    token = request.headers.get("x-payment")
    if token is None:
        logger.info("Unpaid /%s request, sending challenge", kind)
        return payment_required(str(request.url))

    try:
        payer = recover_payer(token)
    except (X402Error, ValueError) as e:
        logger.warning("Rejected payment: %s", e)
        return payment_required(str(request.url))

    logger.info("Paid /%s request from %s", kind, payer)
    job_id = uuid.uuid4().hex
    results = {
        "run": {"stdout": "Hello from Galaksio\n", "stderr": "", "exitCode": 0, "executionTime": 42},
        "store": {"cid": f"bafy{job_id[:16]}", "url": f"https://ipfs.io/ipfs/bafy{job_id[:16]}", "provider": "ipfs", "size": len(await request.body())},
        "cache": {"cacheId": job_id[:12], "endpoint": "redis://localhost:6379", "region": "local", "provider": "redis"},
    }
    return {"jobId": job_id, "status": "completed", "result": results[kind]}


if __name__ == "__main__":
    import uvicorn

    print("Broker Configuration:")
    print(f"  Network: {NETWORK} (chain {CHAIN_ID})")
    print(f"  Pay To: {PAY_TO_ADDRESS}")
    print(f"  Token: {USDC.symbol} {USDC.address}")
    print(f"  Price: {PRICE}")

    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)
