"""
Contract ABI model

Parses standard ABI JSON, indexes functions by 4-byte selector and events
by topic, and encodes/decodes call data with eth_abi.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from eth_abi import encode as abi_encode, decode as abi_decode
from web3 import Web3

from ..errors import EncodeError, DecodeError

logger = logging.getLogger(__name__)


def canonical_type(param: Dict[str, Any]) -> str:
    """Canonical type string of an ABI parameter, expanding tuples"""
    type_str = param["type"]
    if type_str.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){type_str[len('tuple'):]}"
    return type_str


def split_array_type(type_str: str) -> Optional[Tuple[str, str]]:
    """
    Split the outermost array dimension off a type.

    ``uint256[3]`` -> ("uint256", "3"); ``address[]`` -> ("address", "");
    non-array types -> None.
    """
    if not type_str.endswith("]"):
        return None
    start = type_str.rindex("[")
    return type_str[:start], type_str[start + 1:-1]


def fixed_bytes_width(type_str: str) -> Optional[int]:
    """Declared width of a ``bytesN`` type, None for anything else"""
    if type_str.startswith("bytes") and type_str[5:].isdigit():
        return int(type_str[5:])
    return None


def tuple_components(type_str: str) -> List[str]:
    """Top-level component types of ``(t1,t2,...)``"""
    inner = type_str[1:-1]
    parts, depth, current = [], 0, ""
    for ch in inner:
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        current += ch
    if current:
        parts.append(current)
    return parts


def is_hashed_when_indexed(type_str: str) -> bool:
    """Indexed event args of these types are stored as their keccak hash"""
    return (
        type_str in ("string", "bytes")
        or type_str.endswith("]")
        or type_str.startswith("(")
    )


def _codec_type(type_str: str) -> str:
    # eth_abi has no "function" type; it is a 24-byte address+selector
    return type_str.replace("function", "bytes24")


def checksum_decoded(type_str: str, value: Any) -> Any:
    """Checksum every address inside a decoded value of ``type_str``"""
    array = split_array_type(type_str)
    if array is not None:
        return tuple(checksum_decoded(array[0], item) for item in value)
    if type_str.startswith("("):
        return tuple(checksum_decoded(t, item) for t, item in zip(tuple_components(type_str), value))
    if type_str == "address":
        return Web3.to_checksum_address(value)
    return value


@dataclass(frozen=True)
class AbiParam:
    name: str
    type: str
    indexed: bool = False

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AbiParam":
        return cls(
            name=data.get("name", ""),
            type=canonical_type(data),
            indexed=bool(data.get("indexed", False)),
        )


def _signature(name: str, params: Sequence[AbiParam]) -> str:
    return f"{name}({','.join(p.type for p in params)})"


@dataclass(frozen=True)
class AbiFunction:
    name: str
    inputs: List[AbiParam] = field(default_factory=list)
    outputs: List[AbiParam] = field(default_factory=list)
    state_mutability: str = "nonpayable"

    @property
    def signature(self) -> str:
        return _signature(self.name, self.inputs)

    @property
    def selector(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature)[:4])

    @property
    def input_types(self) -> List[str]:
        return [p.type for p in self.inputs]

    @property
    def output_types(self) -> List[str]:
        return [p.type for p in self.outputs]

    @property
    def input_names(self) -> List[str]:
        return [p.name for p in self.inputs]

    @property
    def is_constant(self) -> bool:
        return self.state_mutability in ("view", "pure")


@dataclass(frozen=True)
class AbiEvent:
    name: str
    inputs: List[AbiParam] = field(default_factory=list)
    anonymous: bool = False

    @property
    def signature(self) -> str:
        return _signature(self.name, self.inputs)

    @property
    def topic(self) -> str:
        return "0x" + bytes(Web3.keccak(text=self.signature)).hex()

    def split_inputs(self) -> Tuple[List[AbiParam], List[AbiParam]]:
        """(indexed, non-indexed) inputs, each in declaration order"""
        indexed = [p for p in self.inputs if p.indexed]
        non_indexed = [p for p in self.inputs if not p.indexed]
        return indexed, non_indexed


class ContractAbi:
    """
    Parsed contract ABI

    Usage:
        abi = ContractAbi.from_json(abi_json_string)
        data = abi.encode_call("transfer", "0x...", 10**18)
        method, values = abi.decode_input(data)
    """

    def __init__(self, entries: List[Dict[str, Any]]):
        self.entries = entries
        self.functions: List[AbiFunction] = []
        self.events: List[AbiEvent] = []

        for entry in entries:
            kind = entry.get("type", "function")
            if kind == "function":
                mutability = entry.get("stateMutability")
                if mutability is None:
                    mutability = "view" if entry.get("constant") else (
                        "payable" if entry.get("payable") else "nonpayable"
                    )
                self.functions.append(AbiFunction(
                    name=entry["name"],
                    inputs=[AbiParam.from_json(p) for p in entry.get("inputs", [])],
                    outputs=[AbiParam.from_json(p) for p in entry.get("outputs", [])],
                    state_mutability=mutability,
                ))
            elif kind == "event":
                self.events.append(AbiEvent(
                    name=entry["name"],
                    inputs=[AbiParam.from_json(p) for p in entry.get("inputs", [])],
                    anonymous=bool(entry.get("anonymous", False)),
                ))

        self._by_selector: Dict[bytes, AbiFunction] = {}
        for fn in self.functions:
            self._by_selector.setdefault(fn.selector, fn)
        self._by_topic: Dict[str, AbiEvent] = {
            ev.topic: ev for ev in self.events if not ev.anonymous
        }

    @classmethod
    def from_json(cls, abi: Union[str, bytes, List[Dict[str, Any]]]) -> "ContractAbi":
        """
        Parse ABI JSON text or an already-loaded list

        Raises:
            DecodeError: If the text is not a JSON ABI array
        """
        if isinstance(abi, (str, bytes)):
            try:
                abi = json.loads(abi)
            except ValueError as e:
                raise DecodeError(f"invalid ABI JSON: {e}", original_error=e)
        if not isinstance(abi, list):
            raise DecodeError(f"ABI must be a JSON array, got {type(abi).__name__}")
        return cls(abi)

    def function(self, name: str) -> AbiFunction:
        """First function with this name (overloads resolve in declaration order)"""
        for fn in self.functions:
            if fn.name == name:
                return fn
        raise EncodeError(f"method '{name}' not found in ABI")

    def method_by_selector(self, data: bytes) -> AbiFunction:
        if len(data) < 4:
            raise DecodeError.unknown_selector("0x" + data.hex())
        fn = self._by_selector.get(bytes(data[:4]))
        if fn is None:
            raise DecodeError.unknown_selector("0x" + data[:4].hex())
        return fn

    def event_by_topic(self, topic: str) -> AbiEvent:
        event = self._by_topic.get(topic.lower())
        if event is None:
            raise DecodeError(f"no event with id: {topic}")
        return event

    def encode_call(self, name: str, *args: Any) -> bytes:
        """
        ABI-encode a call: selector followed by the encoded arguments

        Raises:
            EncodeError: Unknown method, wrong arity or unencodable argument
        """
        fn = self.function(name)
        if len(args) != len(fn.inputs):
            raise EncodeError(
                f"{fn.signature} takes {len(fn.inputs)} arguments, got {len(args)}"
            )
        try:
            encoded = abi_encode([_codec_type(t) for t in fn.input_types], list(args))
        except Exception as e:
            raise EncodeError(f"cannot pack {fn.signature}: {e}", original_error=e)
        return fn.selector + encoded

    def decode_values(self, types: Sequence[str], data: bytes) -> List[Any]:
        if not types:
            return []
        try:
            values = abi_decode([_codec_type(t) for t in types], bytes(data))
        except Exception as e:
            raise DecodeError(f"Cannot parse params: {e}", original_error=e)
        return [checksum_decoded(t, v) for t, v in zip(types, values)]

    def decode_input(self, data: bytes) -> Tuple[AbiFunction, List[Any]]:
        """Method and argument values of a call payload"""
        fn = self.method_by_selector(data)
        return fn, self.decode_values(fn.input_types, data[4:])

    def decode_output(self, name: str, data: bytes) -> List[Any]:
        fn = self.function(name)
        return self.decode_values(fn.output_types, data)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"ContractAbi(functions={len(self.functions)}, events={len(self.events)})"


ERC20_ABI = ContractAbi([
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "_owner", "type": "address"},
            {"name": "_spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
        "name": "Transfer",
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": True, "name": "spender", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
        "name": "Approval",
        "type": "event",
    },
])
