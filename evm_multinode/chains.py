"""
Per-chain configuration records

One ChainConfig carries everything that differs between chains: node
endpoints, ABI source, gas price policy and the signer's replay-protection
id. It is selected once when a ChainClient is built.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from .config import config as global_config, get_env_nodes
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .infra.abi_fetcher import AbiFetcher
    from .infra.gas_price import GasPriceStrategy
    from .infra.reader import RedundantReader


class ExplorerType(Enum):
    ETHERSCAN = "etherscan"
    TOMOSCAN = "tomoscan"
    NONE = "none"


class GasPriceSource(Enum):
    FIXED = "fixed"
    GAS_STATION = "gas_station"
    NODE = "node"


@dataclass(frozen=True)
class ChainConfig:
    """
    Attributes:
        name: Chain name, also the ``<NAME>_NODES`` env prefix
        chain_id: Network chain id
        nodes: Default provider name -> URL
        explorer: ABI source kind
        explorer_domain: API host for etherscan-compatible explorers
        explorer_key: Which configured API key to use ("etherscan" or "bscscan")
        gas_price_source: Gas price policy
        fixed_gas_price_gwei: Price for the fixed policy
        replay_protection_id: EIP-155 id used by signers, None for unprotected
    """
    name: str
    chain_id: int
    nodes: Dict[str, str] = field(default_factory=dict)
    explorer: ExplorerType = ExplorerType.NONE
    explorer_domain: Optional[str] = None
    explorer_key: str = "etherscan"
    gas_price_source: GasPriceSource = GasPriceSource.NODE
    fixed_gas_price_gwei: Optional[float] = None
    replay_protection_id: Optional[int] = None

    def resolved_nodes(self) -> Dict[str, str]:
        """Nodes from ``<NAME>_NODES`` if set, otherwise the defaults"""
        env_key = self.name.upper().replace("-", "_") + "_NODES"
        return get_env_nodes(env_key) or dict(self.nodes)

    def with_nodes(self, nodes: Dict[str, str]) -> "ChainConfig":
        return replace(self, nodes=dict(nodes))

    def make_abi_fetcher(self) -> Optional["AbiFetcher"]:
        from .infra.abi_fetcher import EtherscanAbiFetcher, TomoScanAbiFetcher

        if self.explorer == ExplorerType.ETHERSCAN:
            if self.explorer_key == "bscscan":
                api_key = global_config.explorer.bscscan_api_key
            else:
                api_key = global_config.explorer.etherscan_api_key
            return EtherscanAbiFetcher(self.explorer_domain, api_key)
        if self.explorer == ExplorerType.TOMOSCAN:
            return TomoScanAbiFetcher()
        return None

    def make_gas_price(self, reader: "RedundantReader") -> "GasPriceStrategy":
        from .infra.gas_price import FixedGasPrice, GasStationGasPrice, NodeGasPrice

        if self.gas_price_source == GasPriceSource.FIXED:
            if self.fixed_gas_price_gwei is None:
                raise ConfigurationError.missing(f"fixed_gas_price_gwei for {self.name}")
            return FixedGasPrice(self.fixed_gas_price_gwei)
        if self.gas_price_source == GasPriceSource.GAS_STATION:
            return GasStationGasPrice()
        return NodeGasPrice(reader)


ETHEREUM = ChainConfig(
    name="ethereum",
    chain_id=1,
    nodes={
        "mainnet-cloudflare": "https://cloudflare-eth.com",
        "mainnet-ankr": "https://rpc.ankr.com/eth",
    },
    explorer=ExplorerType.ETHERSCAN,
    explorer_domain="api.etherscan.io",
    gas_price_source=GasPriceSource.GAS_STATION,
    replay_protection_id=1,
)

ROPSTEN = ChainConfig(
    name="ropsten",
    chain_id=3,
    nodes={"ropsten-infura": "https://ropsten.infura.io"},
    explorer=ExplorerType.ETHERSCAN,
    explorer_domain="api-ropsten.etherscan.io",
    gas_price_source=GasPriceSource.FIXED,
    fixed_gas_price_gwei=5.0,
    replay_protection_id=3,
)

RINKEBY = ChainConfig(
    name="rinkeby",
    chain_id=4,
    nodes={"rinkeby-infura": "https://rinkeby.infura.io"},
    explorer=ExplorerType.ETHERSCAN,
    explorer_domain="api-rinkeby.etherscan.io",
    replay_protection_id=4,
)

KOVAN = ChainConfig(
    name="kovan",
    chain_id=42,
    nodes={"kovan-infura": "https://kovan.infura.io"},
    explorer=ExplorerType.ETHERSCAN,
    explorer_domain="api-kovan.etherscan.io",
    replay_protection_id=42,
)

TOMO = ChainConfig(
    name="tomo",
    chain_id=88,
    nodes={"mainnet-tomo": "https://rpc.tomochain.com"},
    explorer=ExplorerType.TOMOSCAN,
    gas_price_source=GasPriceSource.FIXED,
    fixed_gas_price_gwei=1.0,
    replay_protection_id=88,
)

BSC = ChainConfig(
    name="bsc",
    chain_id=56,
    nodes={
        "bsc-dataseed": "https://bsc-dataseed.binance.org",
        "bsc-defibit": "https://bsc-dataseed1.defibit.io",
    },
    explorer=ExplorerType.ETHERSCAN,
    explorer_domain="api.bscscan.com",
    explorer_key="bscscan",
    replay_protection_id=56,
)

BSC_TESTNET = ChainConfig(
    name="bsc-test",
    chain_id=97,
    nodes={"bsc-test-binance": "https://data-seed-prebsc-1-s1.binance.org:8545"},
    explorer=ExplorerType.ETHERSCAN,
    explorer_domain="api-testnet.bscscan.com",
    explorer_key="bscscan",
    replay_protection_id=97,
)

CHAINS: Dict[str, ChainConfig] = {
    chain.name: chain
    for chain in (ETHEREUM, ROPSTEN, RINKEBY, KOVAN, TOMO, BSC, BSC_TESTNET)
}

_ALIASES = {
    "eth": "ethereum",
    "mainnet": "ethereum",
    "tomochain": "tomo",
    "bnb": "bsc",
    "bsc-testnet": "bsc-test",
}


def get_chain(name: str) -> ChainConfig:
    """
    Look up a built-in chain by name (case-insensitive, common aliases accepted)

    Raises:
        ConfigurationError: Unknown chain
    """
    key = name.lower()
    key = _ALIASES.get(key, key)
    if key not in CHAINS:
        raise ConfigurationError.invalid(
            "chain", f"Unknown chain: {name}. Supported: {', '.join(sorted(CHAINS))}"
        )
    return CHAINS[key]
