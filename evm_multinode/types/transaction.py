"""
Transaction, receipt and status types
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .units import hex_to_int, wei_to_eth, wei_to_gwei


def _hex_to_bytes(value: Optional[str]) -> bytes:
    if not value:
        return b""
    if value.startswith("0x"):
        value = value[2:]
    return bytes.fromhex(value)


class TxStatus(Enum):
    """Derived transaction lifecycle status"""
    ERROR = "error"
    NOTFOUND = "notfound"
    PENDING = "pending"
    REVERTED = "reverted"
    DONE = "done"
    LOST = "lost"

    @property
    def is_terminal(self) -> bool:
        return self in (TxStatus.DONE, TxStatus.REVERTED, TxStatus.LOST)


@dataclass(frozen=True)
class UnsignedTransaction:
    """
    Legacy (gas price) transaction before signing

    Attributes:
        nonce: Sender nonce
        to: Destination address, None for contract creation
        value: Amount in wei
        gas_limit: Gas limit
        gas_price: Gas price in wei
        data: Call payload
    """
    nonce: int
    to: Optional[str]
    value: int
    gas_limit: int
    gas_price: int
    data: bytes = b""

    @property
    def is_contract_creation(self) -> bool:
        return self.to is None

    def to_dict(self, chain_id: Optional[int] = None) -> Dict[str, Any]:
        """Transaction dict in the shape eth_account signs"""
        tx: Dict[str, Any] = {
            "nonce": self.nonce,
            "gasPrice": self.gas_price,
            "gas": self.gas_limit,
            "value": self.value,
            "data": self.data,
        }
        if self.to is not None:
            tx["to"] = self.to
        if chain_id is not None:
            tx["chainId"] = chain_id
        return tx


@dataclass(frozen=True)
class SignedTransaction:
    """UnsignedTransaction plus its signature and wire encoding"""
    unsigned: UnsignedTransaction
    v: int
    r: int
    s: int
    raw: bytes
    hash: str

    @property
    def raw_hex(self) -> str:
        return "0x" + self.raw.hex()

    @property
    def nonce(self) -> int:
        return self.unsigned.nonce


@dataclass(frozen=True)
class Transaction:
    """Transaction as returned by eth_getTransactionByHash"""
    hash: str
    from_address: Optional[str]
    to: Optional[str]
    value: int
    nonce: int
    gas: int
    gas_price: int
    input: bytes
    v: int
    r: int
    s: int
    block_number: Optional[int] = None
    block_hash: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.block_number is None

    @property
    def value_eth(self) -> float:
        return wei_to_eth(self.value)

    @property
    def gas_price_gwei(self) -> float:
        return wei_to_gwei(self.gas_price)

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "Transaction":
        block_number = data.get("blockNumber")
        return cls(
            hash=data["hash"],
            from_address=data.get("from"),
            to=data.get("to"),
            value=hex_to_int(data.get("value")),
            nonce=hex_to_int(data.get("nonce")),
            gas=hex_to_int(data.get("gas")),
            gas_price=hex_to_int(data.get("gasPrice")),
            input=_hex_to_bytes(data.get("input")),
            v=hex_to_int(data.get("v")),
            r=hex_to_int(data.get("r")),
            s=hex_to_int(data.get("s")),
            block_number=hex_to_int(block_number) if block_number is not None else None,
            block_hash=data.get("blockHash"),
        )


@dataclass(frozen=True)
class Log:
    """Event log entry"""
    address: str
    topics: List[str]
    data: bytes
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "Log":
        return cls(
            address=data["address"],
            topics=list(data.get("topics") or []),
            data=_hex_to_bytes(data.get("data")),
            block_number=hex_to_int(data["blockNumber"]) if data.get("blockNumber") else None,
            transaction_hash=data.get("transactionHash"),
            log_index=hex_to_int(data["logIndex"]) if data.get("logIndex") else None,
        )


@dataclass(frozen=True)
class Receipt:
    """
    Mined outcome of a transaction

    ``status`` is None on pre-Byzantium chains, which report a post-state
    root in ``post_state`` instead.
    """
    status: Optional[int]
    gas_used: int
    logs: List[Log] = field(default_factory=list)
    post_state: Optional[str] = None
    block_number: Optional[int] = None
    contract_address: Optional[str] = None
    transaction_hash: Optional[str] = None

    @property
    def has_post_state(self) -> bool:
        """True when the receipt carries a 32-byte state root"""
        return len(_hex_to_bytes(self.post_state)) == 32

    @property
    def is_success(self) -> bool:
        return self.has_post_state or self.status == 1

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "Receipt":
        status = data.get("status")
        return cls(
            status=hex_to_int(status) if status is not None else None,
            gas_used=hex_to_int(data.get("gasUsed")),
            logs=[Log.from_rpc(entry) for entry in data.get("logs") or []],
            post_state=data.get("root"),
            block_number=hex_to_int(data["blockNumber"]) if data.get("blockNumber") else None,
            contract_address=data.get("contractAddress"),
            transaction_hash=data.get("transactionHash"),
        )


@dataclass(frozen=True)
class BlockHeader:
    """Subset of an eth_getBlockByNumber response"""
    number: int
    hash: str
    parent_hash: str
    timestamp: int
    gas_limit: int
    gas_used: int
    miner: Optional[str] = None
    base_fee: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "BlockHeader":
        base_fee = data.get("baseFeePerGas")
        return cls(
            number=hex_to_int(data.get("number")),
            hash=data.get("hash"),
            parent_hash=data.get("parentHash"),
            timestamp=hex_to_int(data.get("timestamp")),
            gas_limit=hex_to_int(data.get("gasLimit")),
            gas_used=hex_to_int(data.get("gasUsed")),
            miner=data.get("miner"),
            base_fee=hex_to_int(base_fee) if base_fee is not None else None,
        )


@dataclass(frozen=True)
class TxInfo:
    """
    Derived view of a transaction hash

    done/reverted always carry a receipt; pending/notfound never do.
    """
    status: TxStatus
    transaction: Optional[Transaction] = None
    receipt: Optional[Receipt] = None

    def __post_init__(self):
        if self.status in (TxStatus.DONE, TxStatus.REVERTED) and self.receipt is None:
            raise ValueError(f"TxInfo with status {self.status.value} requires a receipt")
        if self.status in (TxStatus.PENDING, TxStatus.NOTFOUND) and self.receipt is not None:
            raise ValueError(f"TxInfo with status {self.status.value} cannot carry a receipt")

    @property
    def gas_cost(self) -> Optional[int]:
        """Fee paid in wei, None until mined"""
        if self.receipt is None or self.transaction is None:
            return None
        return self.receipt.gas_used * self.transaction.gas_price

    @classmethod
    def notfound(cls) -> "TxInfo":
        return cls(TxStatus.NOTFOUND)

    @classmethod
    def error(cls) -> "TxInfo":
        return cls(TxStatus.ERROR)

    @classmethod
    def pending(cls, transaction: Transaction) -> "TxInfo":
        return cls(TxStatus.PENDING, transaction)

    @classmethod
    def mined(cls, transaction: Transaction, receipt: Receipt) -> "TxInfo":
        """done for a successful or pre-Byzantium receipt, reverted otherwise"""
        status = TxStatus.DONE if receipt.is_success else TxStatus.REVERTED
        return cls(status, transaction, receipt)

    def __str__(self) -> str:
        tx_hash = self.transaction.hash if self.transaction else None
        return f"TxInfo({self.status.value}, hash={tx_hash})"


@dataclass
class BroadcastOutcome:
    """
    Result of sending one signed transaction to every provider

    Attributes:
        tx_hash: keccak-256 of the raw bytes, independent of provider success
        broadcasted: At least one provider is configured and accepted the tx
        errors: Provider name -> error, for rejecting providers only
        transaction: The signed transaction, when the caller built it here
    """
    tx_hash: str
    broadcasted: bool
    errors: Dict[str, Exception] = field(default_factory=dict)
    transaction: Optional[SignedTransaction] = None

    @property
    def error_messages(self) -> Dict[str, str]:
        return {name: getattr(err, "message", str(err)) for name, err in self.errors.items()}

    def __str__(self) -> str:
        return f"BroadcastOutcome({self.tx_hash}, broadcasted={self.broadcasted}, errors={self.error_messages})"
