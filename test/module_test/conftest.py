"""
Shared configuration and fixtures for live integration tests.

These tests only read chain state; nothing is signed or sent.

Environment Variables:
    ETHEREUM_NODES: name=url list of Ethereum endpoints (required)
    BSC_NODES: name=url list of BSC endpoints (optional)
    LIVE_TX_HASH: A mined Ethereum transaction hash to analyze (optional)
"""

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def skip_if_no_config(key: str = "ETHEREUM_NODES"):
    """Return a skip reason when ``key`` is not configured"""
    if not os.getenv(key):
        return f"Missing {key} environment variable"
    return None


@pytest.fixture
def eth_client():
    from evm_multinode import ChainClient

    reason = skip_if_no_config("ETHEREUM_NODES")
    if reason:
        pytest.skip(reason)
    client = ChainClient("ethereum")
    yield client
    client.close()


@pytest.fixture
def bsc_client():
    from evm_multinode import ChainClient

    reason = skip_if_no_config("BSC_NODES")
    if reason:
        pytest.skip(reason)
    client = ChainClient("bsc")
    yield client
    client.close()
