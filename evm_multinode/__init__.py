"""
evm_multinode - redundant multi-provider EVM client

Reads race every configured JSON-RPC provider and take the first success;
writes are broadcast to all of them. On top of that: transaction
composition and signing, confirmation monitoring, and ABI-driven decoding
of transactions and logs.

Usage:
    from evm_multinode import ChainClient

    with ChainClient("ethereum") as client:
        print(client.reader.get_balance("0x..."))
        result = client.analyzer.analyze("0x...")
"""

from .client import ChainClient
from .chains import ChainConfig, CHAINS, get_chain
from .config import config, reload_config, setup_logging
from .errors import (
    ErrorCode,
    EvmClientError,
    ProviderError,
    AggregateError,
    EncodeError,
    DecodeError,
    ValidationError,
    SignerError,
    AbiFetchError,
    ConfigurationError,
)
from .infra import (
    Provider,
    RedundantReader,
    Broadcaster,
    FixedGasPrice,
    GasStationGasPrice,
    NodeGasPrice,
    EtherscanAbiFetcher,
    TomoScanAbiFetcher,
    StaticAbiFetcher,
    Signer,
    LocalKeySigner,
    HardwareSigner,
    create_local_signer,
)
from .modules import (
    ContractAbi,
    DefaultAddressBook,
    TxComposer,
    Account,
    TxMonitor,
    TxAnalyzer,
)
from .types import (
    TxStatus,
    TxInfo,
    UnsignedTransaction,
    SignedTransaction,
    BroadcastOutcome,
    AnalysisResult,
    float_to_fixed_point,
    fixed_point_to_float,
    gwei_to_wei,
    eth_to_wei,
)

__version__ = "0.1.0"

__all__ = [
    "ChainClient",
    "ChainConfig",
    "CHAINS",
    "get_chain",
    "config",
    "reload_config",
    "setup_logging",
    # Errors
    "ErrorCode",
    "EvmClientError",
    "ProviderError",
    "AggregateError",
    "EncodeError",
    "DecodeError",
    "ValidationError",
    "SignerError",
    "AbiFetchError",
    "ConfigurationError",
    # Infra
    "Provider",
    "RedundantReader",
    "Broadcaster",
    "FixedGasPrice",
    "GasStationGasPrice",
    "NodeGasPrice",
    "EtherscanAbiFetcher",
    "TomoScanAbiFetcher",
    "StaticAbiFetcher",
    "Signer",
    "LocalKeySigner",
    "HardwareSigner",
    "create_local_signer",
    # Modules
    "ContractAbi",
    "DefaultAddressBook",
    "TxComposer",
    "Account",
    "TxMonitor",
    "TxAnalyzer",
    # Types
    "TxStatus",
    "TxInfo",
    "UnsignedTransaction",
    "SignedTransaction",
    "BroadcastOutcome",
    "AnalysisResult",
    "float_to_fixed_point",
    "fixed_point_to_float",
    "gwei_to_wei",
    "eth_to_wei",
]
