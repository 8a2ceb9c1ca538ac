"""
Redundant query engine

Every read is fanned out to all providers at once. The first provider to
answer successfully wins; the others are left to finish on their own and
their results are dropped. Only when every provider fails (or times out)
does the caller see an error, an AggregateError naming each provider.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FuturesTimeout
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar, Union, TYPE_CHECKING

from ..config import config as global_config
from ..errors import AggregateError, ProviderError, EvmClientError
from ..types import Transaction, Receipt, Log, BlockHeader, TxInfo
from .provider import Provider, BlockId

if TYPE_CHECKING:
    from ..modules.abi import ContractAbi

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedundantReader:
    """
    Fan-out reader over a set of named providers

    Usage:
        reader = RedundantReader({"a": Provider("a", url_a), "b": Provider("b", url_b)})
        balance = reader.get_balance("0x...")
    """

    def __init__(
        self,
        providers: Union[Dict[str, Provider], Iterable[Provider]],
        timeout: Optional[float] = None,
    ):
        """
        Args:
            providers: Providers keyed by name, or an iterable of providers
            timeout: Per-call bound; defaults to config.rpc.timeout_seconds
        """
        if isinstance(providers, dict):
            self._providers = dict(providers)
        else:
            self._providers = {p.name: p for p in providers}
        self.timeout = timeout if timeout is not None else global_config.rpc.timeout_seconds

    @property
    def providers(self) -> Dict[str, Provider]:
        return dict(self._providers)

    def _race(self, operation: str, fn: Callable[[Provider], T]) -> T:
        """
        Run ``fn`` against every provider concurrently; first success wins.

        Raises:
            AggregateError: Every provider failed or timed out, or there are none
        """
        if not self._providers:
            raise AggregateError(operation, {})

        errors: Dict[str, Exception] = {}
        executor = ThreadPoolExecutor(
            max_workers=len(self._providers),
            thread_name_prefix=f"race-{operation}",
        )
        futures = {
            executor.submit(fn, provider): name
            for name, provider in self._providers.items()
        }
        try:
            try:
                for future in as_completed(futures, timeout=self.timeout):
                    name = futures[future]
                    error = future.exception()
                    if error is None:
                        logger.debug(f"{operation}: answered by {name}")
                        return future.result()
                    errors[name] = error
                    logger.debug(f"{operation}: {name} failed: {error}")
            except FuturesTimeout:
                for future, name in futures.items():
                    if name in errors:
                        continue
                    if future.done() and future.exception() is None:
                        return future.result()
                    if future.done():
                        errors[name] = future.exception()
                    else:
                        errors[name] = ProviderError.timeout(name, self.timeout)
        finally:
            # Stragglers finish in the background; their results are discarded
            executor.shutdown(wait=False)

        aggregate = AggregateError(operation, errors)
        logger.warning(str(aggregate))
        raise aggregate

    # Primitives

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Generic JSON-RPC escape hatch"""
        return self._race(method, lambda p: p.call(method, params or []))

    def get_balance(self, address: str, block: BlockId = None) -> int:
        return self._race("get_balance", lambda p: p.get_balance(address, block))

    def get_mined_nonce(self, address: str) -> int:
        return self._race("get_mined_nonce", lambda p: p.get_mined_nonce(address))

    def get_pending_nonce(self, address: str) -> int:
        return self._race("get_pending_nonce", lambda p: p.get_pending_nonce(address))

    def get_code(self, address: str, block: BlockId = None) -> bytes:
        return self._race("get_code", lambda p: p.get_code(address, block))

    def transaction_by_hash(self, tx_hash: str) -> Transaction:
        return self._race("transaction_by_hash", lambda p: p.transaction_by_hash(tx_hash))

    def transaction_receipt(self, tx_hash: str) -> Receipt:
        return self._race("transaction_receipt", lambda p: p.transaction_receipt(tx_hash))

    def header_by_number(self, number: Optional[int] = None) -> BlockHeader:
        return self._race("header_by_number", lambda p: p.header_by_number(number))

    def current_block(self) -> int:
        return self._race("current_block", lambda p: p.block_number())

    def suggested_gas_price(self) -> int:
        """Node-suggested gas price in wei"""
        return self._race("suggested_gas_price", lambda p: p.gas_price())

    def get_logs(
        self,
        from_block: int,
        to_block: int,
        addresses: List[str],
        topic: Optional[str] = None,
    ) -> List[Log]:
        """Logs for ``addresses`` matching ``topic``; negative ``to_block`` is open-ended"""
        return self._race(
            "get_logs",
            lambda p: p.get_logs(from_block, to_block, addresses, topic),
        )

    def estimate_gas(
        self,
        sender: str,
        to: Optional[str],
        value: int = 0,
        data: bytes = b"",
        gas_price: Optional[int] = None,
    ) -> int:
        """
        Gas estimate for a call message

        Args:
            sender: From address
            to: Destination, None for contract creation
            value: Amount in wei
            data: Call payload
            gas_price: Gas price in wei
        """
        message: Dict[str, Any] = {
            "from": sender,
            "value": hex(value),
            "data": "0x" + data.hex(),
        }
        if to is not None:
            message["to"] = to
        if gas_price is not None:
            message["gasPrice"] = hex(gas_price)
        return self._race("estimate_gas", lambda p: p.estimate_gas(message))

    def call_contract(self, to: str, data: bytes, block: BlockId = None) -> bytes:
        return self._race("call_contract", lambda p: p.call_contract(to, data, block))

    # Derived reads

    def tx_info_from_hash(self, tx_hash: str) -> TxInfo:
        """
        Derive the lifecycle status of a hash

        Returns:
            notfound when providers report the hash missing, pending when it
            is unmined or its receipt is not yet served, done/reverted once a
            receipt is available

        Raises:
            AggregateError: The transaction lookup failed on every provider
                for reasons other than not-found
        """
        try:
            tx = self.transaction_by_hash(tx_hash)
        except AggregateError as e:
            if e.any_not_found:
                return TxInfo.notfound()
            raise

        if tx.is_pending:
            return TxInfo.pending(tx)

        try:
            receipt = self.transaction_receipt(tx_hash)
        except AggregateError as e:
            logger.debug(f"Receipt for mined tx {tx_hash} not yet available: {e}")
            return TxInfo.pending(tx)

        return TxInfo.mined(tx, receipt)

    def try_tx_info(self, tx_hash: str) -> TxInfo:
        """tx_info_from_hash, mapping read failures to an ``error`` TxInfo"""
        try:
            return self.tx_info_from_hash(tx_hash)
        except EvmClientError as e:
            logger.warning(f"Reading tx info for {tx_hash} failed: {e}")
            return TxInfo.error()

    def read_contract(
        self,
        abi: "ContractAbi",
        address: str,
        method: str,
        *args: Any,
        block: BlockId = None,
    ) -> List[Any]:
        """
        Call a constant method and decode its outputs

        Args:
            abi: Contract ABI
            address: Contract address
            method: Method name
            *args: Method arguments
            block: Historical block number, latest if None

        Returns:
            Decoded output values in declaration order
        """
        data = abi.encode_call(method, *args)
        output = self.call_contract(address, data, block)
        return abi.decode_output(method, output)

    def erc20_balance(self, token: str, owner: str, block: BlockId = None) -> int:
        from ..modules.abi import ERC20_ABI
        return self.read_contract(ERC20_ABI, token, "balanceOf", owner, block=block)[0]

    def erc20_decimals(self, token: str, block: BlockId = None) -> int:
        from ..modules.abi import ERC20_ABI
        return self.read_contract(ERC20_ABI, token, "decimals", block=block)[0]

    def erc20_allowance(self, token: str, owner: str, spender: str, block: BlockId = None) -> int:
        from ..modules.abi import ERC20_ABI
        return self.read_contract(ERC20_ABI, token, "allowance", owner, spender, block=block)[0]

    def address_from_contract(self, contract: str, abi: "ContractAbi", method: str) -> str:
        """Read an address-returning getter such as ``owner()``"""
        return self.read_contract(abi, contract, method)[0]

    def close(self):
        for provider in self._providers.values():
            provider.close()

    def __repr__(self) -> str:
        return f"RedundantReader(providers={sorted(self._providers)})"
