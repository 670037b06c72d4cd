from galaksio.x402.tokens.registry import TokenInfo, TokenRegistry

__all__ = ["TokenInfo", "TokenRegistry"]
