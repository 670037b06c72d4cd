import asyncio
import logging
import os
from pathlib import Path

import httpx
from dotenv import load_dotenv

from galaksio.x402 import (
    BrokerSettings,
    LocalAccountProvider,
    NetworkConfig,
    WalletSigner,
    X402HttpClient,
)
from galaksio.x402.broker import BrokerClient, InMemoryJobStore, RunRequest
from galaksio.x402.fees import total_amount
from galaksio.x402.logging_config import setup_logging
from galaksio.x402.revocation import revoke_approval

setup_logging(logging.INFO, debug_payments=True)

load_dotenv(Path(__file__).parent.parent.parent / ".env")

EVM_PRIVATE_KEY = os.getenv("EVM_PRIVATE_KEY", "")
REVOKE_AFTER_PAYMENT = os.getenv("REVOKE_AFTER_PAYMENT", "").lower() in ("1", "true", "yes")

if not EVM_PRIVATE_KEY:
    print("\n❌ Error: EVM_PRIVATE_KEY not set in .env file")
    print("\nPlease add your wallet private key to .env file\n")
    exit(1)


async def main():
    settings = BrokerSettings.from_env()
    provider = LocalAccountProvider(EVM_PRIVATE_KEY, chain_id=NetworkConfig.DEFAULT_CHAIN_ID)
    signer = WalletSigner(provider)
    jobs = InMemoryJobStore()

    print("Initializing broker client...")
    print(f"  Broker: {settings.base_url}")
    print(f"  Wallet: {provider.address}")
    print(f"  Strict network: {settings.strict_network}")
    print(f"  Relay total for a $0.01 job: ${total_amount(0.01):.3f}")

    # High-level helper: pays, retries and records the job
    async with BrokerClient.from_settings(settings, signer=signer, job_store=jobs) as broker:
        try:
            response = await broker.run(
                RunRequest(code='print("Hello from Galaksio")', language="python", timeout=60)
            )
        except Exception as e:
            print(f"\n❌ Error: {e}")
            import traceback
            traceback.print_exc()
            return

        print("\n✅ Success!")
        print(f"  Job: {response.job_id} ({response.status})")
        print(f"  stdout: {response.result.stdout}")
        print(f"  exit code: {response.result.exit_code}")
        for record in await jobs.list():
            print(f"  recorded: {record.broker_job_id} [{record.kind}] {record.status}")

    # Low-level executor: exposes the payment that was made
    async with httpx.AsyncClient(timeout=settings.timeout) as http_client:
        client = X402HttpClient(http_client, signer=signer)
        outcome = await client.execute(
            "POST", f"{settings.base_url}/cache", json={"data": "hello", "ttl": 60}
        )
        print(f"\nCache request: status={outcome.response.status_code}, state={outcome.state.value}")

    if outcome.payment_info is None:
        return
    info = outcome.payment_info
    print("\n📋 Payment:")
    print(f"  Network: {info.network}")
    print(f"  Spender: {info.spender}")
    print(f"  Token: {info.asset}")

    if REVOKE_AFTER_PAYMENT:
        tx_hash = await revoke_approval(info, signer)
        print(f"\nAllowance revoked: {tx_hash}")


if __name__ == "__main__":
    asyncio.run(main())
