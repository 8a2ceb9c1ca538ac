"""
Human-readable transaction analysis results
"""

from dataclasses import dataclass, field
from typing import List, Optional

TX_TYPE_NORMAL = "normal"
TX_TYPE_CONTRACT_CALL = "contract call"


@dataclass
class AddressResult:
    address: str = ""
    name: str = ""


@dataclass
class ParamResult:
    """One decoded argument: name, canonical type and rendered value"""
    name: str
    type: str
    value: str


@dataclass
class TopicResult:
    name: str
    value: str


@dataclass
class LogResult:
    """Decoded event: indexed arguments in topics, the rest in data"""
    name: str
    topics: List[TopicResult] = field(default_factory=list)
    data: List[ParamResult] = field(default_factory=list)


@dataclass
class WrappedCallResult:
    """Call embedded in a multisig submitTransaction, decoded one level deep"""
    contract: AddressResult = field(default_factory=AddressResult)
    method: str = ""
    params: List[ParamResult] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """
    Decoded view of a transaction

    Decoding problems are appended to ``error`` and never discard fields
    that were already filled in.
    """
    hash: str = ""
    status: str = ""
    tx_type: str = ""
    from_address: AddressResult = field(default_factory=AddressResult)
    to: AddressResult = field(default_factory=AddressResult)
    value: str = ""
    nonce: str = ""
    gas_price: str = ""
    gas_limit: str = ""
    contract: AddressResult = field(default_factory=AddressResult)
    method: str = ""
    params: List[ParamResult] = field(default_factory=list)
    logs: List[LogResult] = field(default_factory=list)
    wrapped_call: Optional[WrappedCallResult] = None
    error: str = ""

    def add_error(self, message: str) -> None:
        if self.error:
            self.error = f"{self.error}; {message}"
        else:
            self.error = message

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @classmethod
    def failed(cls, message: str) -> "AnalysisResult":
        return cls(error=message)
