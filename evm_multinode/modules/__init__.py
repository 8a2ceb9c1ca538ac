"""
Functional modules for evm_multinode

- abi: ABI model, selector index, encode/decode
- address_book: address display names
- composer: unsigned transaction assembly
- account: sending operations for one signer
- monitor: polling to a terminal transaction state
- analyzer: human-readable transaction/log decoding
"""

from .abi import ContractAbi, AbiFunction, AbiEvent, AbiParam, ERC20_ABI
from .address_book import AddressBook, DefaultAddressBook, UNKNOWN_NAME
from .composer import TxComposer
from .account import Account
from .monitor import TxMonitor
from .analyzer import TxAnalyzer

__all__ = [
    "ContractAbi",
    "AbiFunction",
    "AbiEvent",
    "AbiParam",
    "ERC20_ABI",
    "AddressBook",
    "DefaultAddressBook",
    "UNKNOWN_NAME",
    "TxComposer",
    "Account",
    "TxMonitor",
    "TxAnalyzer",
]
