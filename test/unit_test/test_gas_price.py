"""
Test gas price strategies
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fakes import FakeProvider
from evm_multinode.errors import ErrorCode, ProviderError
from evm_multinode.infra import (
    FixedGasPrice,
    GasPriceStrategy,
    GasStationGasPrice,
    NodeGasPrice,
    RedundantReader,
)


def _station_response(fast):
    response = MagicMock()
    response.json.return_value = {"fast": fast, "average": fast / 2}
    return response


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestFixedGasPrice(unittest.TestCase):

    def test_constant(self):
        strategy = FixedGasPrice(5.0)
        self.assertEqual(strategy.recommended_gwei(), 5.0)
        self.assertEqual(strategy.recommended_gwei(), 5.0)

    def test_protocol(self):
        self.assertIsInstance(FixedGasPrice(1.0), GasPriceStrategy)


class TestGasStationGasPrice(unittest.TestCase):
    """Tests for the cached gas station feed"""

    def setUp(self):
        self.clock = FakeClock()
        self.strategy = GasStationGasPrice(
            url="https://gas.example.com/api.json",
            ttl_seconds=30,
            timeout=1.0,
            clock=self.clock,
        )

    @patch("evm_multinode.infra.gas_price.httpx.get")
    def test_fast_tier_in_tenths(self, mock_get):
        mock_get.return_value = _station_response(200)

        self.assertEqual(self.strategy.recommended_gwei(), 20.0)
        mock_get.assert_called_once_with("https://gas.example.com/api.json", timeout=1.0)

    @patch("evm_multinode.infra.gas_price.httpx.get")
    def test_cached_within_ttl(self, mock_get):
        mock_get.return_value = _station_response(200)

        self.strategy.recommended_gwei()
        self.clock.now += 29
        mock_get.return_value = _station_response(500)

        self.assertEqual(self.strategy.recommended_gwei(), 20.0)
        self.assertEqual(mock_get.call_count, 1)

    @patch("evm_multinode.infra.gas_price.httpx.get")
    def test_refresh_after_ttl(self, mock_get):
        mock_get.return_value = _station_response(200)
        self.strategy.recommended_gwei()

        self.clock.now += 31
        mock_get.return_value = _station_response(500)

        self.assertEqual(self.strategy.recommended_gwei(), 50.0)
        self.assertEqual(mock_get.call_count, 2)

    @patch("evm_multinode.infra.gas_price.httpx.get")
    def test_zero_price_is_not_served_from_cache(self, mock_get):
        mock_get.return_value = _station_response(0)
        self.assertEqual(self.strategy.recommended_gwei(), 0.0)

        mock_get.return_value = _station_response(100)
        self.assertEqual(self.strategy.recommended_gwei(), 10.0)
        self.assertEqual(mock_get.call_count, 2)

    @patch("evm_multinode.infra.gas_price.httpx.get")
    def test_feed_unavailable(self, mock_get):
        mock_get.side_effect = httpx.ConnectError("refused")

        with self.assertRaises(ProviderError) as ctx:
            self.strategy.recommended_gwei()
        self.assertEqual(ctx.exception.code, ErrorCode.GAS_PRICE_UNAVAILABLE)

    @patch("evm_multinode.infra.gas_price.httpx.get")
    def test_malformed_feed(self, mock_get):
        response = MagicMock()
        response.json.return_value = {"slow": 10}
        mock_get.return_value = response

        with self.assertRaises(ProviderError) as ctx:
            self.strategy.recommended_gwei()
        self.assertEqual(ctx.exception.code, ErrorCode.GAS_PRICE_UNAVAILABLE)


class TestNodeGasPrice(unittest.TestCase):

    def test_node_suggestion_in_gwei(self):
        reader = RedundantReader([FakeProvider("a", gas_price=2_500_000_000)], timeout=1.0)
        self.assertEqual(NodeGasPrice(reader).recommended_gwei(), 2.5)


if __name__ == "__main__":
    unittest.main()
