"""
Type definitions for evm_multinode
"""

from .units import (
    ETH_DECIMALS,
    GWEI_DECIMALS,
    float_to_fixed_point,
    fixed_point_to_float,
    gwei_to_wei,
    eth_to_wei,
    wei_to_gwei,
    wei_to_eth,
    hex_to_int,
)
from .transaction import (
    TxStatus,
    UnsignedTransaction,
    SignedTransaction,
    Transaction,
    Log,
    Receipt,
    BlockHeader,
    TxInfo,
    BroadcastOutcome,
)
from .analysis import (
    TX_TYPE_NORMAL,
    TX_TYPE_CONTRACT_CALL,
    AddressResult,
    ParamResult,
    TopicResult,
    LogResult,
    WrappedCallResult,
    AnalysisResult,
)

__all__ = [
    # Units
    "ETH_DECIMALS",
    "GWEI_DECIMALS",
    "float_to_fixed_point",
    "fixed_point_to_float",
    "gwei_to_wei",
    "eth_to_wei",
    "wei_to_gwei",
    "wei_to_eth",
    "hex_to_int",
    # Transactions
    "TxStatus",
    "UnsignedTransaction",
    "SignedTransaction",
    "Transaction",
    "Log",
    "Receipt",
    "BlockHeader",
    "TxInfo",
    "BroadcastOutcome",
    # Analysis
    "TX_TYPE_NORMAL",
    "TX_TYPE_CONTRACT_CALL",
    "AddressResult",
    "ParamResult",
    "TopicResult",
    "LogResult",
    "WrappedCallResult",
    "AnalysisResult",
]
