"""
Test Transaction Analyzer

Rendering of decoded values, contract call and log decoding, the
multisig wrapped call, and error accumulation.
"""

import sys
import unittest
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from eth_abi import encode as abi_encode
from web3 import Web3

from fakes import (
    FakeProvider,
    FROM_ADDRESS,
    TOKEN_ADDRESS,
    TX_HASH,
    address_topic,
    make_log,
    make_receipt,
    make_transaction,
    not_found,
)
from evm_multinode.errors import ProviderError
from evm_multinode.infra import RedundantReader, StaticAbiFetcher
from evm_multinode.modules import ERC20_ABI, ContractAbi, DefaultAddressBook, TxAnalyzer
from evm_multinode.types import TxInfo, TX_TYPE_CONTRACT_CALL, TX_TYPE_NORMAL

RECIPIENT = Web3.to_checksum_address("0x" + "22" * 20)
MULTISIG = Web3.to_checksum_address("0x" + "44" * 20)
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

MULTISIG_ABI = ContractAbi.from_json([
    {
        "type": "function",
        "name": "submitTransaction",
        "inputs": [
            {"name": "destination", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "data", "type": "bytes"},
        ],
        "outputs": [{"name": "transactionId", "type": "uint256"}],
    },
])


def _transfer_info(amount=10**18, logs=None):
    data = ERC20_ABI.encode_call("transfer", RECIPIENT, amount)
    tx = make_transaction(to=TOKEN_ADDRESS, data=data, gas=60000)
    return TxInfo.mined(tx, make_receipt(status=1, logs=logs))


def _transfer_log(amount=10**18):
    return make_log(
        TOKEN_ADDRESS,
        [TRANSFER_TOPIC, address_topic(FROM_ADDRESS), address_topic(RECIPIENT)],
        abi_encode(["uint256"], [amount]),
    )


class TestRendering(unittest.TestCase):

    def setUp(self):
        self.analyzer = TxAnalyzer(None, address_book=DefaultAddressBook({RECIPIENT: "alice"}))

    def test_integers_with_hex(self):
        self.assertEqual(
            self.analyzer.param_as_string("uint256", 10**18),
            "1000000000000000000 (0xde0b6b3a7640000)",
        )
        self.assertEqual(self.analyzer.param_as_string("int8", 5), "5 (0x5)")
        self.assertEqual(self.analyzer.param_as_string("int256", -5), "-5 (-0x5)")
        self.assertEqual(self.analyzer.param_as_string("int16", -255), "-255 (-0xff)")

    def test_address_with_name(self):
        self.assertEqual(
            self.analyzer.param_as_string("address", RECIPIENT.lower()),
            f"{RECIPIENT} - (alice)",
        )
        self.assertEqual(
            self.analyzer.param_as_string("address", FROM_ADDRESS),
            f"{FROM_ADDRESS} - (unknown)",
        )

    def test_bool_string_bytes(self):
        self.assertEqual(self.analyzer.param_as_string("bool", True), "true")
        self.assertEqual(self.analyzer.param_as_string("bool", False), "false")
        self.assertEqual(self.analyzer.param_as_string("string", "hi"), "hi")
        self.assertEqual(self.analyzer.param_as_string("bytes", b"\xde\xad"), "0xdead")
        self.assertEqual(self.analyzer.param_as_string("bytes4", b"\x01\x02\x03\x04"), "0x01020304")

    def test_arrays(self):
        self.assertEqual(self.analyzer.param_as_string("uint8[]", [1, 2]), "[1 (0x1) 2 (0x2)] (slice)")
        self.assertEqual(self.analyzer.param_as_string("bool[2]", [True, False]), "[true false] (array)")

    def test_tuple(self):
        self.assertEqual(
            self.analyzer.param_as_string("(uint8,bool)", (3, True)),
            "(3 (0x3), true)",
        )


class TestAnalyzeOffline(unittest.TestCase):

    def setUp(self):
        self.fetcher = StaticAbiFetcher({TOKEN_ADDRESS: ERC20_ABI, MULTISIG: MULTISIG_ABI})
        self.analyzer = TxAnalyzer(None, self.fetcher, DefaultAddressBook({TOKEN_ADDRESS: "USDT"}))

    def test_erc20_transfer(self):
        """Test a token transfer with its Transfer event"""
        result = self.analyzer.analyze_offline(_transfer_info(logs=[_transfer_log()]), ERC20_ABI, True)

        self.assertEqual(result.error, "")
        self.assertEqual(result.status, "done")
        self.assertEqual(result.hash, TX_HASH)
        self.assertEqual(result.tx_type, TX_TYPE_CONTRACT_CALL)
        self.assertEqual(result.value, "0.000000")
        self.assertEqual(result.gas_price, "20.000000")
        self.assertEqual(result.gas_limit, "60000")
        self.assertEqual(result.nonce, "5")
        self.assertEqual(result.contract.address, TOKEN_ADDRESS)
        self.assertEqual(result.contract.name, "USDT")
        self.assertEqual(result.method, "transfer")
        self.assertEqual([p.name for p in result.params], ["_to", "_value"])
        self.assertEqual(result.params[0].value, f"{RECIPIENT} - (unknown)")
        self.assertEqual(result.params[1].value, "1000000000000000000 (0xde0b6b3a7640000)")

        self.assertEqual(len(result.logs), 1)
        log = result.logs[0]
        self.assertEqual(log.name, "Transfer")
        self.assertEqual([t.name for t in log.topics], ["from", "to"])
        self.assertEqual(log.topics[0].value, f"{FROM_ADDRESS} - (unknown)")
        self.assertEqual(log.data[0].value, "1000000000000000000 (0xde0b6b3a7640000)")
        self.assertIsNone(result.wrapped_call)

    def test_normal_transfer(self):
        tx = make_transaction(value=10**18)
        result = self.analyzer.analyze_offline(TxInfo.mined(tx, make_receipt()), None, False)

        self.assertEqual(result.tx_type, TX_TYPE_NORMAL)
        self.assertEqual(result.value, "1.000000")
        self.assertEqual(result.from_address.address, FROM_ADDRESS)
        self.assertEqual(result.method, "")
        self.assertFalse(result.has_error)

    def test_pending_has_no_details(self):
        result = self.analyzer.analyze_offline(TxInfo.pending(make_transaction(block_number=None)), None, False)
        self.assertEqual(result.status, "pending")
        self.assertEqual(result.tx_type, "")
        self.assertEqual(result.value, "")

    def test_unknown_selector(self):
        tx = make_transaction(to=TOKEN_ADDRESS, data=bytes.fromhex("12345678"))
        result = self.analyzer.analyze_offline(TxInfo.mined(tx, make_receipt()), ERC20_ABI, True)

        self.assertTrue(result.error.startswith("Cannot get corresponding method from the ABI:"))
        # Basic fields survive the decode failure
        self.assertEqual(result.gas_price, "20.000000")
        self.assertEqual(result.method, "")

    def test_unknown_event_is_reported_and_others_kept(self):
        foreign = make_log(TOKEN_ADDRESS, ["0x" + "ee" * 32], b"")
        info = _transfer_info(logs=[foreign, _transfer_log()])

        result = self.analyzer.analyze_offline(info, ERC20_ABI, True)

        self.assertIn(f"Cannot find event of topic 0x{'ee' * 32} in the abi.", result.error)
        self.assertEqual([log.name for log in result.logs], ["Transfer"])
        self.assertEqual(result.method, "transfer")

    def test_wrapped_call(self):
        """Test the multisig submitTransaction payload is decoded one level"""
        inner = ERC20_ABI.encode_call("transfer", RECIPIENT, 42)
        data = MULTISIG_ABI.encode_call("submitTransaction", TOKEN_ADDRESS, 0, inner)
        tx = make_transaction(to=MULTISIG, data=data, gas=200000)

        result = self.analyzer.analyze_offline(TxInfo.mined(tx, make_receipt()), MULTISIG_ABI, True)

        self.assertEqual(result.error, "")
        self.assertEqual(result.method, "submitTransaction")
        wrapped = result.wrapped_call
        self.assertIsNotNone(wrapped)
        self.assertEqual(wrapped.contract.address, TOKEN_ADDRESS)
        self.assertEqual(wrapped.contract.name, "USDT")
        self.assertEqual(wrapped.method, "transfer")
        self.assertEqual(wrapped.params[1].value, "42 (0x2a)")

    def test_wrapped_call_abi_unavailable(self):
        unknown = Web3.to_checksum_address("0x" + "55" * 20)
        data = MULTISIG_ABI.encode_call("submitTransaction", unknown, 0, b"\x01\x02\x03\x04")
        tx = make_transaction(to=MULTISIG, data=data)

        result = self.analyzer.analyze_offline(TxInfo.mined(tx, make_receipt()), MULTISIG_ABI, True)

        self.assertTrue(result.error.startswith("Cannot get abi of the contract:"))
        self.assertEqual(result.wrapped_call.contract.address, unknown)
        self.assertEqual(result.wrapped_call.method, "")


class TestAnalyzeOnline(unittest.TestCase):

    def _analyzer(self, provider):
        reader = RedundantReader([provider], timeout=1.0)
        fetcher = StaticAbiFetcher({TOKEN_ADDRESS: ERC20_ABI})
        return TxAnalyzer(reader, fetcher, DefaultAddressBook())

    def test_contract_call(self):
        info = _transfer_info()
        provider = FakeProvider(
            "a",
            transaction_by_hash=info.transaction,
            transaction_receipt=info.receipt,
            get_code=b"\x60\x80",
        )
        result = self._analyzer(provider).analyze(TX_HASH)

        self.assertEqual(result.tx_type, TX_TYPE_CONTRACT_CALL)
        self.assertEqual(result.method, "transfer")

    def test_normal_transfer(self):
        tx = make_transaction(value=2 * 10**18)
        provider = FakeProvider("a", transaction_by_hash=tx, transaction_receipt=make_receipt(), get_code=b"")
        result = self._analyzer(provider).analyze(TX_HASH)

        self.assertEqual(result.tx_type, TX_TYPE_NORMAL)
        self.assertEqual(result.value, "2.000000")

    def test_notfound(self):
        provider = FakeProvider("a", transaction_by_hash=not_found("a"))
        result = self._analyzer(provider).analyze(TX_HASH)

        self.assertEqual(result.status, "notfound")
        self.assertEqual(result.hash, TX_HASH)
        self.assertEqual(result.error, "")

    def test_lookup_failure(self):
        provider = FakeProvider("a", transaction_by_hash=ProviderError.connection_failed("a", OSError("down")))
        result = self._analyzer(provider).analyze(TX_HASH)
        self.assertTrue(result.error.startswith("getting tx info failed:"))

    def test_code_lookup_failure(self):
        info = _transfer_info()
        provider = FakeProvider(
            "a",
            transaction_by_hash=info.transaction,
            transaction_receipt=info.receipt,
            get_code=ProviderError.connection_failed("a", OSError("down")),
        )
        result = self._analyzer(provider).analyze(TX_HASH)
        self.assertTrue(result.error.startswith("checking tx type failed:"))

    def test_abi_unavailable(self):
        other = Web3.to_checksum_address("0x" + "66" * 20)
        tx = make_transaction(to=other, data=b"\x01\x02\x03\x04")
        provider = FakeProvider("a", transaction_by_hash=tx, transaction_receipt=make_receipt(), get_code=b"\x60")
        result = self._analyzer(provider).analyze(TX_HASH)
        self.assertTrue(result.error.startswith("Cannot get abi of the contract:"))


if __name__ == "__main__":
    unittest.main()
