"""
Test ABI fetchers with mocked explorer responses
"""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evm_multinode.errors import AbiFetchError
from evm_multinode.infra import EtherscanAbiFetcher, StaticAbiFetcher, TomoScanAbiFetcher
from evm_multinode.modules import ERC20_ABI

TOKEN = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
ABI_TEXT = json.dumps(ERC20_ABI.entries)


def _response(payload):
    mock_response = MagicMock()
    mock_response.json.return_value = payload
    return mock_response


def test_etherscan_success():
    """Test getabi request shape and parsing"""
    print("Testing EtherscanAbiFetcher...")

    fetcher = EtherscanAbiFetcher("api.bscscan.com", api_key="KEY", timeout=1.0)
    payload = {"status": "1", "message": "OK", "result": ABI_TEXT}
    with patch.object(httpx.Client, "get", return_value=_response(payload)) as get:
        abi = fetcher.fetch_abi(TOKEN)

    assert abi.function("transfer").selector.hex() == "a9059cbb"
    assert get.call_args.args[0] == "https://api.bscscan.com/api"
    assert get.call_args.kwargs["params"] == {
        "module": "contract",
        "action": "getabi",
        "address": TOKEN,
        "apikey": "KEY",
    }
    fetcher.close()

    print("  EtherscanAbiFetcher: PASSED")


def test_etherscan_not_verified():
    fetcher = EtherscanAbiFetcher("api.etherscan.io")
    payload = {"status": "0", "message": "NOTOK", "result": "Contract source code not verified"}
    with patch.object(httpx.Client, "get", return_value=_response(payload)):
        with pytest.raises(AbiFetchError) as exc_info:
            fetcher.fetch_abi(TOKEN)
    assert "NOTOK" in exc_info.value.message
    assert exc_info.value.address == TOKEN
    fetcher.close()


def test_etherscan_unparseable_abi():
    fetcher = EtherscanAbiFetcher("api.etherscan.io")
    with patch.object(httpx.Client, "get", return_value=_response({"status": "1", "result": "{oops"})):
        with pytest.raises(AbiFetchError):
            fetcher.fetch_abi(TOKEN)
    fetcher.close()


def test_etherscan_unreachable():
    fetcher = EtherscanAbiFetcher("api.etherscan.io")
    with patch.object(httpx.Client, "get", side_effect=httpx.ConnectError("refused")):
        with pytest.raises(AbiFetchError):
            fetcher.fetch_abi(TOKEN)
    fetcher.close()


def test_tomoscan():
    """Test TomoScan reads the ABI from contract.abiCode"""
    fetcher = TomoScanAbiFetcher("https://scan.example.com/")
    payload = {"hash": TOKEN, "contract": {"abiCode": ABI_TEXT}}
    with patch.object(httpx.Client, "get", return_value=_response(payload)) as get:
        abi = fetcher.fetch_abi(TOKEN)
    assert get.call_args.args[0] == f"https://scan.example.com/api/accounts/{TOKEN}"
    assert abi.function("balanceOf") is not None

    with patch.object(httpx.Client, "get", return_value=_response({"hash": TOKEN, "contract": None})):
        with pytest.raises(AbiFetchError):
            fetcher.fetch_abi(TOKEN)
    fetcher.close()


def test_static_fetcher():
    fetcher = StaticAbiFetcher()
    fetcher.register(TOKEN.lower(), ABI_TEXT)

    assert fetcher.fetch_abi(TOKEN).function("approve").name == "approve"
    with pytest.raises(AbiFetchError):
        fetcher.fetch_abi("0x" + "99" * 20)


def test_explorer_base_is_abstract():
    """Test an explorer fetcher must supply its own fetch_abi_string"""
    from evm_multinode.infra.abi_fetcher import _HttpAbiFetcher

    with pytest.raises(TypeError):
        _HttpAbiFetcher(timeout=1.0)

    class Incomplete(_HttpAbiFetcher):
        pass

    with pytest.raises(TypeError):
        Incomplete(timeout=1.0)
