"""
Gas price oracle strategies

Every strategy answers ``recommended_gwei()``. Which one a chain uses is
part of its ChainConfig.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Protocol, runtime_checkable, TYPE_CHECKING

import httpx

from ..config import config as global_config
from ..errors import ErrorCode, ProviderError
from ..types import wei_to_gwei

if TYPE_CHECKING:
    from .reader import RedundantReader

logger = logging.getLogger(__name__)


@runtime_checkable
class GasPriceStrategy(Protocol):
    """Recommended gas price source for one chain"""

    def recommended_gwei(self) -> float:
        ...


class FixedGasPrice:
    """Constant price, for chains with a flat fee policy"""

    def __init__(self, gwei: float):
        self.gwei = gwei

    def recommended_gwei(self) -> float:
        return self.gwei

    def __repr__(self) -> str:
        return f"FixedGasPrice({self.gwei} gwei)"


class GasStationGasPrice:
    """
    External gas station feed, cached with a time-to-live

    The feed reports prices in tenths of a gwei; the ``fast`` tier is used.

    The cache check and the store are separate critical sections and the
    HTTP fetch runs outside the lock, so concurrent misses may each refresh.
    Every refresh stores the feed's current value.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        ttl_seconds: Optional[float] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url or global_config.gas_price.gas_station_url
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else global_config.gas_price.cache_ttl
        self.timeout = timeout if timeout is not None else global_config.gas_price.timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._latest_gwei = 0.0
        self._timestamp: Optional[float] = None

    def _cached(self) -> Optional[float]:
        with self._lock:
            if self._timestamp is None or self._latest_gwei == 0:
                return None
            if self._clock() - self._timestamp > self.ttl_seconds:
                return None
            return self._latest_gwei

    def _fetch(self) -> float:
        try:
            response = httpx.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            prices = response.json()
            return float(prices["fast"]) / 10.0
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise ProviderError(
                f"gas station {self.url} unavailable: {e}",
                ErrorCode.GAS_PRICE_UNAVAILABLE,
                provider="gas-station",
                original_error=e,
            )

    def recommended_gwei(self) -> float:
        cached = self._cached()
        if cached is not None:
            return cached

        price = self._fetch()
        with self._lock:
            self._latest_gwei = price
            self._timestamp = self._clock()
        logger.debug(f"Gas station price refreshed: {price} gwei")
        return price

    def __repr__(self) -> str:
        return f"GasStationGasPrice(url={self.url!r}, ttl={self.ttl_seconds}s)"


class NodeGasPrice:
    """eth_gasPrice through the redundant reader"""

    def __init__(self, reader: "RedundantReader"):
        self.reader = reader

    def recommended_gwei(self) -> float:
        return wei_to_gwei(self.reader.suggested_gas_price())

    def __repr__(self) -> str:
        return "NodeGasPrice()"
