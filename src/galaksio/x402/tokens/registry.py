"""
Token registry - EIP-712 domain metadata for stablecoins accepted by brokers
"""

from dataclasses import dataclass

from galaksio.x402.config import NetworkConfig


@dataclass
class TokenInfo:
    """Token information"""

    address: str
    decimals: int
    name: str
    symbol: str
    version: str = "1"


class TokenRegistry:
    """Token registry keyed by chain ID"""

    DEFAULT_NAME = "USD Coin"
    DEFAULT_VERSION = "2"

    _tokens: dict[int, dict[str, TokenInfo]] = {
        NetworkConfig.AVALANCHE: {
            "USDC": TokenInfo(
                address="0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
                decimals=6,
                name="USD Coin",
                symbol="USDC",
                version="2",
            ),
        },
        NetworkConfig.BASE: {
            "USDC": TokenInfo(
                address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
                decimals=6,
                name="USD Coin",
                symbol="USDC",
                version="2",
            ),
        },
        NetworkConfig.BASE_SEPOLIA: {
            "USDC": TokenInfo(
                address="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
                decimals=6,
                name="USDC",
                symbol="USDC",
                version="2",
            ),
        },
        NetworkConfig.ETHEREUM: {
            "USDC": TokenInfo(
                address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
                decimals=6,
                name="USD Coin",
                symbol="USDC",
                version="2",
            ),
        },
        NetworkConfig.POLYGON: {
            "USDC": TokenInfo(
                address="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
                decimals=6,
                name="USD Coin",
                symbol="USDC",
                version="2",
            ),
        },
        NetworkConfig.ARBITRUM: {
            "USDC": TokenInfo(
                address="0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
                decimals=6,
                name="USD Coin",
                symbol="USDC",
                version="2",
            ),
        },
        NetworkConfig.OPTIMISM: {
            "USDC": TokenInfo(
                address="0x0b2C639c533813f4Aa9D7837Caf62653d097Ff85",
                decimals=6,
                name="USD Coin",
                symbol="USDC",
                version="2",
            ),
        },
    }

    @classmethod
    def register_token(cls, chain_id: int, token: TokenInfo) -> None:
        """Register a custom token for the given chain"""
        if chain_id not in cls._tokens:
            cls._tokens[chain_id] = {}
        cls._tokens[chain_id][token.symbol.upper()] = token

    @classmethod
    def find_by_address(cls, chain_id: int, address: str) -> TokenInfo | None:
        """Find token information by contract address (case-insensitive)"""
        tokens = cls._tokens.get(chain_id, {})
        normalized = address.lower()
        for info in tokens.values():
            if info.address.lower() == normalized:
                return info
        return None

    @classmethod
    def get_network_tokens(cls, chain_id: int) -> dict[str, TokenInfo]:
        """Get all tokens for the given chain"""
        return cls._tokens.get(chain_id, {})
