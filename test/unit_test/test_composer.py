"""
Test Transaction Composer
"""

import sys
import unittest
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fakes import FakeProvider, FROM_ADDRESS, TO_ADDRESS, TOKEN_ADDRESS
from evm_multinode.errors import EncodeError, ErrorCode, ValidationError
from evm_multinode.infra import FixedGasPrice, RedundantReader, StaticAbiFetcher
from evm_multinode.modules import ERC20_ABI, TxComposer
from evm_multinode.modules.composer import send_all_amount, validate_batch


class TestValidation(unittest.TestCase):

    def test_send_all_amount(self):
        self.assertEqual(send_all_amount(21000 * 10**9 + 1, 21000, 10**9, 1.0), 1)

    def test_send_all_exact_fee_rejected(self):
        """Nothing strictly positive left after the fee reserve"""
        with self.assertRaises(ValidationError) as ctx:
            send_all_amount(21000 * 10**9, 21000, 10**9, 1.0)
        self.assertEqual(ctx.exception.code, ErrorCode.VALIDATION_INSUFFICIENT_BALANCE)
        self.assertIn("not enough to do a tx with gas price: 1.000000 gwei", ctx.exception.message)

    def test_batch_length_mismatch(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_batch([1, 2], [TO_ADDRESS])
        self.assertEqual(ctx.exception.code, ErrorCode.VALIDATION_LENGTH_MISMATCH)

    def test_batch_negative_amount(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_batch([1, -2], [TO_ADDRESS, TO_ADDRESS])
        self.assertEqual(ctx.exception.code, ErrorCode.VALIDATION_NEGATIVE_VALUE)


class TestTxComposer(unittest.TestCase):

    def setUp(self):
        self.provider = FakeProvider("a", get_mined_nonce=7, estimate_gas=60000)
        self.reader = RedundantReader([self.provider], timeout=1.0)
        self.fetcher = StaticAbiFetcher({TOKEN_ADDRESS: ERC20_ABI})
        self.composer = TxComposer(self.reader, FixedGasPrice(2.0), self.fetcher)

    def test_build_fills_missing_fields(self):
        tx = self.composer.build(FROM_ADDRESS, TO_ADDRESS, value=5, data=b"\x01")

        self.assertEqual(tx.nonce, 7)
        self.assertEqual(tx.gas_price, 2 * 10**9)
        self.assertEqual(tx.gas_limit, 60000)
        self.assertEqual(tx.value, 5)
        self.assertEqual(tx.data, b"\x01")

    def test_build_uses_explicit_fields(self):
        tx = self.composer.build(
            FROM_ADDRESS, TO_ADDRESS, value=5, nonce=3, gas_price_gwei=1.5, gas_limit=30000,
        )
        self.assertEqual((tx.nonce, tx.gas_price, tx.gas_limit), (3, 1_500_000_000, 30000))
        self.assertEqual(self.provider.calls, [])

    def test_negative_value_rejected_before_io(self):
        with self.assertRaises(ValidationError):
            self.composer.build(FROM_ADDRESS, TO_ADDRESS, value=-1)
        self.assertEqual(self.provider.calls, [])

    def test_build_transfer_fixed_gas_limit(self):
        tx = self.composer.build_transfer(FROM_ADDRESS, TO_ADDRESS, 10**18)
        self.assertEqual(tx.gas_limit, 21000)
        self.assertEqual(self.provider.called("estimate_gas"), [])

    def test_build_contract_call(self):
        tx = self.composer.build_contract_call(FROM_ADDRESS, TOKEN_ADDRESS, "transfer", TO_ADDRESS, 100)

        fn, values = ERC20_ABI.decode_input(tx.data)
        self.assertEqual(fn.name, "transfer")
        self.assertEqual(values[1], 100)
        self.assertEqual(tx.to, TOKEN_ADDRESS)
        self.assertEqual(tx.gas_limit, 60000)

    def test_pack_call_without_abi(self):
        with self.assertRaises(EncodeError):
            self.composer.pack_call(TO_ADDRESS, "transfer", TO_ADDRESS, 1)

        composer = TxComposer(self.reader, FixedGasPrice(1.0))
        with self.assertRaises(EncodeError):
            composer.pack_call(TOKEN_ADDRESS, "transfer", TO_ADDRESS, 1)

    def test_pack_call_bad_arguments(self):
        with self.assertRaises(EncodeError):
            self.composer.pack_call(TOKEN_ADDRESS, "transfer", TO_ADDRESS)
        with self.assertRaises(EncodeError):
            self.composer.pack_call(TOKEN_ADDRESS, "mint", TO_ADDRESS, 1)

    def test_batch_transfers_consecutive_nonces(self):
        txs = self.composer.build_batch_transfers(FROM_ADDRESS, [1, 2, 3], [TO_ADDRESS] * 3)
        self.assertEqual([tx.nonce for tx in txs], [7, 8, 9])
        self.assertEqual([tx.value for tx in txs], [1, 2, 3])
        self.assertEqual(len(self.provider.called("get_mined_nonce")), 1)


if __name__ == "__main__":
    unittest.main()
