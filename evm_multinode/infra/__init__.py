"""
Infrastructure layer for evm_multinode

Provides:
- Provider: one JSON-RPC endpoint over httpx
- RedundantReader: first-success fan-out over all providers
- Broadcaster: send-to-all transaction submission
- Gas price strategies: fixed, gas station feed, node suggestion
- ABI fetchers: etherscan-compatible, tomoscan, static
- Signers: local key (eth_account), hardware device wrapper
"""

from .provider import Provider, create_providers, block_param
from .reader import RedundantReader
from .broadcaster import Broadcaster, raw_tx_to_hash
from .gas_price import (
    GasPriceStrategy,
    FixedGasPrice,
    GasStationGasPrice,
    NodeGasPrice,
)
from .abi_fetcher import (
    AbiFetcher,
    EtherscanAbiFetcher,
    TomoScanAbiFetcher,
    StaticAbiFetcher,
)
from .signer import (
    Signer,
    LocalKeySigner,
    HardwareDevice,
    HardwareSigner,
    create_local_signer,
    encode_legacy_transaction,
)

__all__ = [
    "Provider",
    "create_providers",
    "block_param",
    "RedundantReader",
    "Broadcaster",
    "raw_tx_to_hash",
    "GasPriceStrategy",
    "FixedGasPrice",
    "GasStationGasPrice",
    "NodeGasPrice",
    "AbiFetcher",
    "EtherscanAbiFetcher",
    "TomoScanAbiFetcher",
    "StaticAbiFetcher",
    "Signer",
    "LocalKeySigner",
    "HardwareDevice",
    "HardwareSigner",
    "create_local_signer",
    "encode_legacy_transaction",
]
