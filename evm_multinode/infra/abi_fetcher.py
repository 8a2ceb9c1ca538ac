"""
ABI-by-address sources

A fetcher is bound to one chain when it is constructed; the analyzer and
composer only see ``fetch_abi(address)``.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

import httpx
from web3 import Web3

from ..config import config as global_config
from ..errors import AbiFetchError, DecodeError
from ..modules.abi import ContractAbi

logger = logging.getLogger(__name__)

ETHERSCAN_DOMAIN = "api.etherscan.io"
RINKEBY_ETHERSCAN_DOMAIN = "api-rinkeby.etherscan.io"
KOVAN_ETHERSCAN_DOMAIN = "api-kovan.etherscan.io"
ROPSTEN_ETHERSCAN_DOMAIN = "api-ropsten.etherscan.io"
BSCSCAN_DOMAIN = "api.bscscan.com"
TESTNET_BSCSCAN_DOMAIN = "api-testnet.bscscan.com"
TOMOSCAN_URL = "https://scan.tomochain.com"


@runtime_checkable
class AbiFetcher(Protocol):
    """Returns the ABI of a deployed contract"""

    def fetch_abi(self, address: str) -> ContractAbi:
        ...


class _HttpAbiFetcher(ABC):
    """Shared lazy httpx client handling for explorer-backed fetchers"""

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout if timeout is not None else global_config.explorer.timeout
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._timeout,
                        headers={"Accept": "application/json"},
                    )
        return self._client

    def _get_json(self, url: str, address: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._get_client().get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise AbiFetchError(f"request to {url} failed: {e}", address=address, original_error=e)
        except ValueError as e:
            raise AbiFetchError(f"invalid JSON from {url}: {e}", address=address, original_error=e)

    @abstractmethod
    def fetch_abi_string(self, address: str) -> str:
        """Raw ABI JSON text of ``address`` as the explorer returns it"""
        ...

    def fetch_abi(self, address: str) -> ContractAbi:
        """
        Fetch and parse the ABI of ``address``

        Raises:
            AbiFetchError: Explorer unreachable, rejected the request, or
                returned something that is not an ABI
        """
        body = self.fetch_abi_string(address)
        try:
            return ContractAbi.from_json(body)
        except DecodeError as e:
            raise AbiFetchError(f"cannot parse ABI of {address}: {e.message}", address=address, original_error=e)

    def close(self):
        if self._client:
            self._client.close()
            self._client = None


class EtherscanAbiFetcher(_HttpAbiFetcher):
    """
    Etherscan-compatible explorer API (etherscan, bscscan and their testnets)

    Usage:
        fetcher = EtherscanAbiFetcher(ETHERSCAN_DOMAIN, api_key="...")
        abi = fetcher.fetch_abi("0x...")
    """

    def __init__(self, domain: str, api_key: str = "", timeout: Optional[float] = None):
        super().__init__(timeout)
        self.domain = domain
        self.api_key = api_key

    def fetch_abi_string(self, address: str) -> str:
        data = self._get_json(
            f"https://{self.domain}/api",
            address,
            params={
                "module": "contract",
                "action": "getabi",
                "address": address,
                "apikey": self.api_key,
            },
        )
        if not isinstance(data, dict) or data.get("status") != "1":
            message = data.get("message") if isinstance(data, dict) else data
            raise AbiFetchError(f"error from {self.domain}: {message}", address=address)
        return data.get("result", "")

    def __repr__(self) -> str:
        return f"EtherscanAbiFetcher(domain={self.domain!r})"


class TomoScanAbiFetcher(_HttpAbiFetcher):
    """TomoScan account API, ABI under ``contract.abiCode``"""

    def __init__(self, base_url: str = TOMOSCAN_URL, timeout: Optional[float] = None):
        super().__init__(timeout)
        self.base_url = base_url.rstrip("/")

    def fetch_abi_string(self, address: str) -> str:
        data = self._get_json(f"{self.base_url}/api/accounts/{address}", address)
        contract = data.get("contract") if isinstance(data, dict) else None
        abi_code = (contract or {}).get("abiCode")
        if not abi_code:
            raise AbiFetchError(f"no verified ABI for {address} on {self.base_url}", address=address)
        return abi_code

    def __repr__(self) -> str:
        return f"TomoScanAbiFetcher(base_url={self.base_url!r})"


class StaticAbiFetcher:
    """
    In-memory ABI registry, for offline analysis and tests

    Lookups are by checksum address.
    """

    def __init__(self, abis: Optional[Dict[str, Union[ContractAbi, str, list]]] = None):
        self._abis: Dict[str, ContractAbi] = {}
        for address, abi in (abis or {}).items():
            self.register(address, abi)

    def register(self, address: str, abi: Union[ContractAbi, str, list]) -> None:
        if not isinstance(abi, ContractAbi):
            abi = ContractAbi.from_json(abi)
        self._abis[Web3.to_checksum_address(address)] = abi

    def fetch_abi(self, address: str) -> ContractAbi:
        abi = self._abis.get(Web3.to_checksum_address(address))
        if abi is None:
            raise AbiFetchError(f"no ABI registered for {address}", address=address)
        return abi

    def __repr__(self) -> str:
        return f"StaticAbiFetcher(contracts={len(self._abis)})"
