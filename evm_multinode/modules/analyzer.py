"""
Transaction Analyzer

Turns a mined transaction into an AnalysisResult: basic fields, the called
method with rendered arguments, decoded event logs, and one level of the
multisig ``submitTransaction`` wrapped call.

Decoding problems never abort an analysis. They are appended to
``AnalysisResult.error`` and whatever was decoded so far is kept.
"""

import logging
from typing import Any, List, Optional, TYPE_CHECKING

from web3 import Web3

from ..errors import AbiFetchError, DecodeError, EvmClientError
from ..types import (
    AddressResult,
    AnalysisResult,
    LogResult,
    ParamResult,
    TopicResult,
    TxInfo,
    TxStatus,
    WrappedCallResult,
    TX_TYPE_CONTRACT_CALL,
    TX_TYPE_NORMAL,
    wei_to_eth,
    wei_to_gwei,
)
from .abi import (
    AbiFunction,
    AbiParam,
    ContractAbi,
    fixed_bytes_width,
    is_hashed_when_indexed,
    split_array_type,
    tuple_components,
)
from .address_book import AddressBook, DefaultAddressBook

if TYPE_CHECKING:
    from ..infra.reader import RedundantReader
    from ..infra.abi_fetcher import AbiFetcher
    from ..types import Log

logger = logging.getLogger(__name__)

WRAPPED_CALL_METHOD = "submitTransaction"
WRAPPED_CALL_INPUTS = ["destination", "value", "data"]


def is_wrapped_call(fn: AbiFunction) -> bool:
    """
    Multisig submit pattern, matched on method and parameter names only
    """
    return fn.name == WRAPPED_CALL_METHOD and fn.input_names == WRAPPED_CALL_INPUTS


class TxAnalyzer:
    """
    Usage:
        analyzer = TxAnalyzer(reader, abi_fetcher, DefaultAddressBook())
        result = analyzer.analyze("0x...")
        print(result.method, [p.value for p in result.params])
    """

    def __init__(
        self,
        reader: Optional["RedundantReader"],
        abi_fetcher: Optional["AbiFetcher"] = None,
        address_book: Optional[AddressBook] = None,
    ):
        self.reader = reader
        self.abi_fetcher = abi_fetcher
        self.address_book = address_book if address_book is not None else DefaultAddressBook()

    # Rendering

    def address_result(self, address: Optional[str]) -> AddressResult:
        if not address:
            return AddressResult()
        checksum = Web3.to_checksum_address(address)
        return AddressResult(address=checksum, name=self.address_book.get_name(checksum))

    def non_array_param_as_string(self, type_str: str, value: Any) -> str:
        if type_str == "string":
            return str(value)
        if type_str.startswith("int") or type_str.startswith("uint"):
            sign = "-" if value < 0 else ""
            return f"{value} ({sign}0x{abs(value):x})"
        if type_str == "bool":
            return "true" if value else "false"
        if type_str == "address":
            checksum = Web3.to_checksum_address(value)
            return f"{checksum} - ({self.address_book.get_name(checksum)})"
        if type_str in ("bytes", "function"):
            return "0x" + bytes(value).hex()
        width = fixed_bytes_width(type_str)
        if width is not None:
            word = bytes(value)[:width].ljust(width, b"\x00")
            return "0x" + word.hex()
        if type_str.startswith("("):
            rendered = [
                self.param_as_string(component, item)
                for component, item in zip(tuple_components(type_str), value)
            ]
            return "(" + ", ".join(rendered) + ")"
        return str(value)

    def param_as_string(self, type_str: str, value: Any) -> str:
        """Human-readable rendering of one decoded ABI value"""
        array = split_array_type(type_str)
        if array is not None:
            inner, size = array
            items = " ".join(self.param_as_string(inner, item) for item in value)
            kind = "slice" if size == "" else "array"
            return f"[{items}] ({kind})"
        return self.non_array_param_as_string(type_str, value)

    def _params(self, inputs: List[AbiParam], values: List[Any]) -> List[ParamResult]:
        return [
            ParamResult(name=p.name, type=p.type, value=self.param_as_string(p.type, v))
            for p, v in zip(inputs, values)
        ]

    # Decoding

    def decode_log(self, abi: ContractAbi, log: "Log", result: AnalysisResult) -> Optional[LogResult]:
        """Decode one log; problems are appended to ``result.error``"""
        if not log.topics:
            result.add_error(f"Log from {log.address} has no topics")
            return None
        try:
            event = abi.event_by_topic(log.topics[0])
        except DecodeError:
            result.add_error(f"Cannot find event of topic {log.topics[0]} in the abi.")
            return None

        log_result = LogResult(name=event.name)
        indexed, non_indexed = event.split_inputs()

        for param, topic in zip(indexed, log.topics[1:]):
            if is_hashed_when_indexed(param.type):
                value = topic
            else:
                try:
                    word = bytes.fromhex(topic[2:] if topic.startswith("0x") else topic)
                    decoded = abi.decode_values([param.type], word)[0]
                    value = self.param_as_string(param.type, decoded)
                except Exception as e:
                    result.add_error(f"Cannot parse topic {param.name}: {e}")
                    value = topic
            log_result.topics.append(TopicResult(name=param.name, value=value))

        try:
            values = abi.decode_values([p.type for p in non_indexed], log.data)
        except DecodeError as e:
            result.add_error(e.message)
        else:
            log_result.data = self._params(non_indexed, values)

        return log_result

    def _set_wrapped_call(self, values: List[Any], result: AnalysisResult) -> None:
        destination, data = values[0], bytes(values[2])
        wrapped = WrappedCallResult(contract=self.address_result(destination))
        result.wrapped_call = wrapped

        if self.abi_fetcher is None:
            result.add_error("Cannot get abi of the contract: no ABI source configured")
            return
        try:
            abi = self.abi_fetcher.fetch_abi(destination)
        except AbiFetchError as e:
            result.add_error(f"Cannot get abi of the contract: {e.message}")
            return

        try:
            fn = abi.method_by_selector(data)
        except DecodeError as e:
            result.add_error(f"Cannot get corresponding method from the ABI: {e.message}")
            return
        wrapped.method = fn.name

        try:
            params = abi.decode_values(fn.input_types, data[4:])
        except DecodeError as e:
            result.add_error(e.message)
            return
        wrapped.params = self._params(fn.inputs, params)

    def _analyze_contract_tx(self, tx_info: TxInfo, abi: ContractAbi, result: AnalysisResult) -> None:
        tx = tx_info.transaction
        try:
            fn = abi.method_by_selector(tx.input)
        except DecodeError as e:
            result.add_error(f"Cannot get corresponding method from the ABI: {e.message}")
            return

        result.contract = self.address_result(tx.to)
        result.method = fn.name
        try:
            values = abi.decode_values(fn.input_types, tx.input[4:])
        except DecodeError as e:
            result.add_error(e.message)
            return
        result.params = self._params(fn.inputs, values)

        if tx_info.receipt is not None:
            for log in tx_info.receipt.logs:
                log_result = self.decode_log(abi, log, result)
                if log_result is not None:
                    result.logs.append(log_result)

        if is_wrapped_call(fn):
            self._set_wrapped_call(values, result)

    def _set_basic_tx_info(self, tx_info: TxInfo, result: AnalysisResult) -> None:
        tx = tx_info.transaction
        result.from_address = self.address_result(tx.from_address)
        result.value = f"{wei_to_eth(tx.value):f}"
        result.to = self.address_result(tx.to)
        result.nonce = str(tx.nonce)
        result.gas_price = f"{wei_to_gwei(tx.gas_price):f}"
        result.gas_limit = str(tx.gas)

    def analyze_offline(
        self,
        tx_info: TxInfo,
        abi: Optional[ContractAbi],
        is_contract: bool,
    ) -> AnalysisResult:
        """
        Analyze already-fetched data without network access

        Args:
            tx_info: Transaction and receipt
            abi: Destination contract ABI (ignored when not a contract)
            is_contract: Destination has code
        """
        result = AnalysisResult(status=tx_info.status.value)
        if tx_info.transaction is not None:
            result.hash = tx_info.transaction.hash

        if tx_info.status in (TxStatus.DONE, TxStatus.REVERTED):
            self._set_basic_tx_info(tx_info, result)
            if not is_contract:
                result.tx_type = TX_TYPE_NORMAL
            else:
                result.tx_type = TX_TYPE_CONTRACT_CALL
                if abi is None:
                    result.add_error("Cannot decode contract call: no ABI")
                else:
                    self._analyze_contract_tx(tx_info, abi, result)
        return result

    def analyze(self, tx_hash: str) -> AnalysisResult:
        """Fetch and analyze a transaction by hash"""
        try:
            tx_info = self.reader.tx_info_from_hash(tx_hash)
        except EvmClientError as e:
            return AnalysisResult.failed(f"getting tx info failed: {e}")

        tx = tx_info.transaction
        if tx is None:
            return AnalysisResult(hash=tx_hash, status=tx_info.status.value)

        is_contract = False
        if tx.to is not None:
            try:
                is_contract = len(self.reader.get_code(tx.to)) > 0
            except EvmClientError as e:
                return AnalysisResult.failed(f"checking tx type failed: {e}")

        abi = None
        if is_contract:
            if self.abi_fetcher is None:
                return AnalysisResult.failed("Cannot get abi of the contract: no ABI source configured")
            try:
                abi = self.abi_fetcher.fetch_abi(tx.to)
            except AbiFetchError as e:
                return AnalysisResult.failed(f"Cannot get abi of the contract: {e.message}")

        return self.analyze_offline(tx_info, abi, is_contract)
