"""
X402 Network Configuration
Centralized configuration for chain IDs, wallet chain parameters and broker settings
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict

from galaksio.x402.exceptions import UnsupportedNetworkError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainInfo:
    """Parameters needed to register a chain with a wallet (EIP-3085)"""

    chain_id: int
    name: str
    currency_name: str
    currency_symbol: str
    rpc_urls: tuple[str, ...]
    explorer_urls: tuple[str, ...] = ()
    currency_decimals: int = 18

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    def to_wallet_params(self) -> dict:
        """Build the ``wallet_addEthereumChain`` parameter object"""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.name,
            "nativeCurrency": {
                "name": self.currency_name,
                "symbol": self.currency_symbol,
                "decimals": self.currency_decimals,
            },
            "rpcUrls": list(self.rpc_urls),
            "blockExplorerUrls": list(self.explorer_urls),
        }


class NetworkConfig:
    """Network configuration for chain IDs and wallet chain parameters"""

    AVALANCHE = 43114
    BASE = 8453
    BASE_SEPOLIA = 84532
    ETHEREUM = 1
    POLYGON = 137
    ARBITRUM = 42161
    OPTIMISM = 10

    # Unrecognized network labels resolve here unless strict resolution is requested
    DEFAULT_CHAIN_ID = AVALANCHE

    # Network labels used by brokers in x402 v1 challenges
    CHAIN_IDS: Dict[str, int] = {
        "avalanche": AVALANCHE,
        "avalanche-c": AVALANCHE,
        "avalanche-c-chain": AVALANCHE,
        "avax": AVALANCHE,
        "base": BASE,
        "base-mainnet": BASE,
        "base-sepolia": BASE_SEPOLIA,
        "ethereum": ETHEREUM,
        "eth-mainnet": ETHEREUM,
        "polygon": POLYGON,
        "polygon-mainnet": POLYGON,
        "arbitrum": ARBITRUM,
        "optimism": OPTIMISM,
    }

    CHAINS: Dict[int, ChainInfo] = {
        AVALANCHE: ChainInfo(
            chain_id=AVALANCHE,
            name="Avalanche C-Chain",
            currency_name="AVAX",
            currency_symbol="AVAX",
            rpc_urls=("https://api.avax.network/ext/bc/C/rpc",),
            explorer_urls=("https://snowtrace.io/",),
        ),
        BASE: ChainInfo(
            chain_id=BASE,
            name="Base",
            currency_name="Ether",
            currency_symbol="ETH",
            rpc_urls=("https://mainnet.base.org",),
            explorer_urls=("https://basescan.org/",),
        ),
        BASE_SEPOLIA: ChainInfo(
            chain_id=BASE_SEPOLIA,
            name="Base Sepolia",
            currency_name="Ether",
            currency_symbol="ETH",
            rpc_urls=("https://sepolia.base.org",),
            explorer_urls=("https://sepolia.basescan.org/",),
        ),
        ETHEREUM: ChainInfo(
            chain_id=ETHEREUM,
            name="Ethereum Mainnet",
            currency_name="Ether",
            currency_symbol="ETH",
            rpc_urls=("https://eth.llamarpc.com",),
            explorer_urls=("https://etherscan.io/",),
        ),
        POLYGON: ChainInfo(
            chain_id=POLYGON,
            name="Polygon",
            currency_name="POL",
            currency_symbol="POL",
            rpc_urls=("https://polygon-rpc.com",),
            explorer_urls=("https://polygonscan.com/",),
        ),
        ARBITRUM: ChainInfo(
            chain_id=ARBITRUM,
            name="Arbitrum One",
            currency_name="Ether",
            currency_symbol="ETH",
            rpc_urls=("https://arb1.arbitrum.io/rpc",),
            explorer_urls=("https://arbiscan.io/",),
        ),
        OPTIMISM: ChainInfo(
            chain_id=OPTIMISM,
            name="OP Mainnet",
            currency_name="Ether",
            currency_symbol="ETH",
            rpc_urls=("https://mainnet.optimism.io",),
            explorer_urls=("https://optimistic.etherscan.io/",),
        ),
    }

    @classmethod
    def resolve_chain_id(
        cls,
        network: str,
        strict: bool = False,
        default_chain_id: int | None = DEFAULT_CHAIN_ID,
    ) -> int:
        """Resolve a challenge network label to a chain ID

        Args:
            network: Network label (e.g. "avalanche", "base-sepolia", "eip155:8453")
            strict: Fail instead of falling back to the default chain
            default_chain_id: Chain used for unrecognized labels; None disables the fallback

        Returns:
            Chain ID as integer

        Raises:
            UnsupportedNetworkError: If the label is unknown and no fallback applies
        """
        label = network.strip().lower()

        if label.startswith("eip155:"):
            try:
                return int(label.split(":", 1)[1])
            except ValueError:
                raise UnsupportedNetworkError(f"Invalid EVM network: {network}")

        chain_id = cls.CHAIN_IDS.get(label)
        if chain_id is not None:
            return chain_id

        if strict or default_chain_id is None:
            raise UnsupportedNetworkError(f"Unsupported network: {network}")

        logger.warning(
            "Unrecognized network '%s', falling back to default chain %s",
            network,
            default_chain_id,
        )
        return default_chain_id

    @classmethod
    def get_chain(cls, chain_id: int) -> ChainInfo:
        """Get wallet registration parameters for a chain

        Raises:
            UnsupportedNetworkError: If the chain has no registered parameters
        """
        chain = cls.CHAINS.get(chain_id)
        if chain is None:
            raise UnsupportedNetworkError(f"No chain parameters for chain {chain_id}")
        return chain

    @classmethod
    def get_rpc_url(cls, chain_id: int) -> str | None:
        """Get the first RPC URL for a chain, or None if not configured"""
        chain = cls.CHAINS.get(chain_id)
        if chain is None or not chain.rpc_urls:
            return None
        return chain.rpc_urls[0]


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BrokerSettings:
    """Broker endpoint settings"""

    base_url: str = "http://localhost:8000"
    strict_network: bool = False
    timeout: float = 60.0
    extra_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "BrokerSettings":
        """Read settings from GALAKSIO_* environment variables"""
        return cls(
            base_url=os.getenv("GALAKSIO_BROKER_URL", cls.base_url).rstrip("/"),
            strict_network=_env_flag("GALAKSIO_STRICT_NETWORK"),
            timeout=float(os.getenv("GALAKSIO_HTTP_TIMEOUT", str(cls.timeout))),
        )
