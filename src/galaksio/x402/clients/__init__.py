"""
x402 Client SDK
"""

from galaksio.x402.clients.x402_http_client import PAYMENT_HEADER, X402HttpClient

__all__ = ["PAYMENT_HEADER", "X402HttpClient"]
