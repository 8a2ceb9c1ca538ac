"""
JSON-RPC Provider

One EVM node endpoint. Every method makes exactly one request bounded by
the per-call timeout; redundancy across endpoints lives in RedundantReader.
"""

from __future__ import annotations

import logging
import threading
from itertools import count
from typing import Any, Dict, List, Optional, Union

import httpx

from ..errors import ProviderError, ConfigurationError
from ..config import config as global_config
from ..types import Transaction, Receipt, Log, BlockHeader, hex_to_int

logger = logging.getLogger(__name__)

BlockId = Union[int, str, None]


def block_param(block: BlockId) -> str:
    """Translate a block number/tag into a JSON-RPC block parameter"""
    if block is None:
        return "latest"
    if isinstance(block, int):
        return hex(block)
    return block


def _hex_to_bytes(value: Optional[str]) -> bytes:
    if not value or value == "0x":
        return b""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


class Provider:
    """
    One named JSON-RPC endpoint

    Usage:
        provider = Provider("mainnet-infura", "https://mainnet.infura.io/v3/KEY")
        balance = provider.get_balance("0x...")
        provider.close()
    """

    def __init__(self, name: str, url: str, timeout: Optional[float] = None):
        if not url:
            raise ConfigurationError.missing(f"url for provider {name}")
        self.name = name
        self.url = url
        self.timeout = timeout if timeout is not None else global_config.rpc.timeout_seconds
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()
        self._ids = count(1)

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (thread-safe)"""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self.timeout,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    def call(self, method: str, params: List[Any], timeout: Optional[float] = None) -> Any:
        """
        Make one JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override

        Returns:
            The ``result`` member of the response (may be None)

        Raises:
            ProviderError: On transport failure, timeout or JSON-RPC error
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        timeout_val = timeout or self.timeout

        try:
            response = client.post(self.url, json=body, timeout=timeout_val)
            if response.status_code == 429:
                raise ProviderError.rate_limited(self.name)
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException:
            raise ProviderError.timeout(self.name, timeout_val)
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"{self.name}: HTTP error {e.response.status_code}",
                provider=self.name,
                original_error=e,
            )
        except httpx.RequestError as e:
            raise ProviderError.connection_failed(self.name, e)
        except ValueError as e:
            raise ProviderError.invalid_response(self.name, f"invalid JSON: {e}")

        if not isinstance(result, dict):
            raise ProviderError.invalid_response(self.name, f"unexpected response: {result!r}")

        if "error" in result:
            error = result["error"] or {}
            if isinstance(error, dict):
                raise ProviderError.rpc_error(
                    self.name,
                    error.get("message", str(error)),
                    rpc_code=error.get("code"),
                    data=error.get("data"),
                )
            raise ProviderError.rpc_error(self.name, str(error))

        return result.get("result")

    # Chain reads

    def get_balance(self, address: str, block: BlockId = None) -> int:
        """Balance in wei"""
        return hex_to_int(self.call("eth_getBalance", [address, block_param(block)]))

    def get_transaction_count(self, address: str, block: BlockId = None) -> int:
        return hex_to_int(self.call("eth_getTransactionCount", [address, block_param(block)]))

    def get_mined_nonce(self, address: str) -> int:
        return self.get_transaction_count(address, "latest")

    def get_pending_nonce(self, address: str) -> int:
        return self.get_transaction_count(address, "pending")

    def get_code(self, address: str, block: BlockId = None) -> bytes:
        return _hex_to_bytes(self.call("eth_getCode", [address, block_param(block)]))

    def transaction_by_hash(self, tx_hash: str) -> Transaction:
        """
        Fetch a transaction

        Raises:
            ProviderError: not-found when the node does not know the hash,
                invalid-response when it returns a transaction without signature
        """
        data = self.call("eth_getTransactionByHash", [tx_hash])
        if data is None:
            raise ProviderError.not_found(self.name, f"transaction {tx_hash}")
        if not data.get("r") or hex_to_int(data.get("r")) == 0:
            raise ProviderError.invalid_response(self.name, "server returned transaction without signature")
        return Transaction.from_rpc(data)

    def transaction_receipt(self, tx_hash: str) -> Receipt:
        data = self.call("eth_getTransactionReceipt", [tx_hash])
        if data is None:
            raise ProviderError.not_found(self.name, f"receipt {tx_hash}")
        return Receipt.from_rpc(data)

    def estimate_gas(self, tx: Dict[str, Any]) -> int:
        """
        Estimate gas for a call message

        Args:
            tx: Call object (from, to, value, gasPrice, data) with hex quantities
        """
        return hex_to_int(self.call("eth_estimateGas", [tx]))

    def get_logs(
        self,
        from_block: int,
        to_block: int,
        addresses: List[str],
        topic: Optional[str] = None,
    ) -> List[Log]:
        """Filter logs; a negative ``to_block`` queries up to the latest block"""
        query: Dict[str, Any] = {
            "fromBlock": block_param(from_block),
            "toBlock": "latest" if to_block < 0 else block_param(to_block),
            "address": list(addresses),
        }
        if topic:
            query["topics"] = [[topic]]
        result = self.call("eth_getLogs", [query]) or []
        return [Log.from_rpc(entry) for entry in result]

    def header_by_number(self, number: Optional[int] = None) -> BlockHeader:
        """Block header; ``None`` means the latest block"""
        data = self.call("eth_getBlockByNumber", [block_param(number), False])
        if data is None:
            raise ProviderError.not_found(self.name, f"block {number}")
        return BlockHeader.from_rpc(data)

    def block_number(self) -> int:
        return hex_to_int(self.call("eth_blockNumber", []))

    def gas_price(self) -> int:
        """Node-suggested gas price in wei"""
        return hex_to_int(self.call("eth_gasPrice", []))

    def call_contract(self, to: str, data: bytes, block: BlockId = None, sender: Optional[str] = None) -> bytes:
        """Raw eth_call returning the undecoded output"""
        message: Dict[str, Any] = {"to": to, "data": "0x" + data.hex()}
        if sender:
            message["from"] = sender
        return _hex_to_bytes(self.call("eth_call", [message, block_param(block)]))

    # Writes

    def send_raw_transaction(self, raw_hex: str) -> str:
        """Submit a signed transaction; returns the hash the node reports"""
        return self.call("eth_sendRawTransaction", [raw_hex])

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"Provider(name={self.name!r}, url={self.url!r})"


def create_providers(nodes: Dict[str, str], timeout: Optional[float] = None) -> Dict[str, Provider]:
    """Build a provider per ``name -> url`` entry"""
    return {name: Provider(name, url, timeout=timeout) for name, url in nodes.items()}
