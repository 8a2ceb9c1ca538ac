"""
Transaction Composer

Assembles UnsignedTransactions: nonce, gas price, gas limit and payload,
fetching whatever the caller leaves unspecified. Input validation happens
before any network call.
"""

import logging
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

from web3 import Web3

from ..config import config as global_config
from ..errors import AbiFetchError, EncodeError, ValidationError
from ..types import UnsignedTransaction, gwei_to_wei

if TYPE_CHECKING:
    from ..infra.reader import RedundantReader
    from ..infra.gas_price import GasPriceStrategy
    from ..infra.abi_fetcher import AbiFetcher

logger = logging.getLogger(__name__)


def validate_value(value, name: str = "value") -> None:
    if value < 0:
        raise ValidationError.negative_value(name, value)


def validate_batch(amounts: Sequence, addresses: Sequence[str]) -> None:
    """Parallel amount/address lists must match and hold no negative amounts"""
    if len(amounts) != len(addresses):
        raise ValidationError.length_mismatch("amounts", len(amounts), "addresses", len(addresses))
    for amount in amounts:
        validate_value(amount, "amount")


def checksum_address(address: str, name: str = "to") -> str:
    """Checksummed form of ``address`` in any letter case"""
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError):
        raise ValidationError.invalid_address(name, address)


def send_all_amount(balance: int, gas_limit: int, gas_price: int, price_gwei: float) -> int:
    """
    Balance left after reserving the fee (gas_limit * gas_price)

    Raises:
        ValidationError: If nothing strictly positive remains
    """
    fee = gas_limit * gas_price
    amount = balance - fee
    if amount <= 0:
        raise ValidationError.insufficient_balance(balance, fee, price_gwei)
    return amount


class TxComposer:
    """
    Usage:
        composer = TxComposer(reader, FixedGasPrice(5), abi_fetcher)
        tx = composer.build_transfer(sender, to, value=10**18)
        tx = composer.build_contract_call(sender, token, "transfer", to, 10**18)
    """

    def __init__(
        self,
        reader: "RedundantReader",
        gas_price: "GasPriceStrategy",
        abi_fetcher: Optional["AbiFetcher"] = None,
        transfer_gas_limit: Optional[int] = None,
    ):
        self.reader = reader
        self.gas_price = gas_price
        self.abi_fetcher = abi_fetcher
        self.transfer_gas_limit = transfer_gas_limit or global_config.tx.transfer_gas_limit

    def recommended_gas_price_gwei(self) -> float:
        return self.gas_price.recommended_gwei()

    def resolve_nonce(self, sender: str, nonce: Optional[int]) -> int:
        return self.reader.get_mined_nonce(sender) if nonce is None else nonce

    def resolve_gas_price(self, gas_price_gwei: Optional[float]) -> int:
        """Gas price in wei, from the oracle unless given"""
        if gas_price_gwei is None:
            gas_price_gwei = self.gas_price.recommended_gwei()
        return gwei_to_wei(gas_price_gwei)

    def pack_call(self, contract: str, method: str, *args: Any) -> bytes:
        """
        ABI-encode a call using the contract's fetched ABI

        Raises:
            EncodeError: ABI unavailable, unknown method or bad arguments
        """
        if self.abi_fetcher is None:
            raise EncodeError(f"Cannot get ABI for {contract}: no ABI source configured")
        try:
            abi = self.abi_fetcher.fetch_abi(contract)
        except AbiFetchError as e:
            raise EncodeError(f"Cannot get ABI for {contract}: {e.message}", original_error=e)
        return abi.encode_call(method, *args)

    def build(
        self,
        sender: str,
        to: Optional[str],
        value: int = 0,
        data: bytes = b"",
        nonce: Optional[int] = None,
        gas_price_gwei: Optional[float] = None,
        gas_limit: Optional[int] = None,
    ) -> UnsignedTransaction:
        """
        Build an unsigned transaction

        Args:
            sender: Address whose nonce is used
            to: Destination, None for contract creation
            value: Amount in wei
            data: Call payload
            nonce: Explicit nonce, mined nonce of ``sender`` if None
            gas_price_gwei: Explicit price, oracle price if None
            gas_limit: Explicit gas limit, node estimate if None
        """
        validate_value(value)
        if to is not None:
            to = checksum_address(to)
        nonce = self.resolve_nonce(sender, nonce)
        gas_price = self.resolve_gas_price(gas_price_gwei)
        if gas_limit is None:
            gas_limit = self.reader.estimate_gas(sender, to, value, data, gas_price)

        tx = UnsignedTransaction(
            nonce=nonce,
            to=to,
            value=value,
            gas_limit=gas_limit,
            gas_price=gas_price,
            data=bytes(data),
        )
        logger.debug(f"Composed tx nonce={nonce} to={to} value={value} gas={gas_limit} price={gas_price}")
        return tx

    def build_transfer(
        self,
        sender: str,
        to: str,
        value: int,
        nonce: Optional[int] = None,
        gas_price_gwei: Optional[float] = None,
    ) -> UnsignedTransaction:
        """Plain value transfer with the fixed transfer gas limit"""
        return self.build(
            sender, to, value,
            nonce=nonce,
            gas_price_gwei=gas_price_gwei,
            gas_limit=self.transfer_gas_limit,
        )

    def build_contract_call(
        self,
        sender: str,
        contract: str,
        method: str,
        *args: Any,
        value: int = 0,
        nonce: Optional[int] = None,
        gas_price_gwei: Optional[float] = None,
        gas_limit: Optional[int] = None,
    ) -> UnsignedTransaction:
        validate_value(value)
        contract = checksum_address(contract, "contract")
        data = self.pack_call(contract, method, *args)
        return self.build(
            sender, contract, value, data,
            nonce=nonce,
            gas_price_gwei=gas_price_gwei,
            gas_limit=gas_limit,
        )

    def build_batch_transfers(
        self,
        sender: str,
        amounts: Sequence[int],
        addresses: Sequence[str],
        gas_price_gwei: Optional[float] = None,
    ) -> List[UnsignedTransaction]:
        """Transfers to many addresses with consecutive nonces from the mined nonce"""
        validate_batch(amounts, addresses)
        addresses = [checksum_address(a, "address") for a in addresses]
        nonce = self.reader.get_mined_nonce(sender)
        if gas_price_gwei is None:
            gas_price_gwei = self.gas_price.recommended_gwei()
        return [
            self.build_transfer(sender, address, amount, nonce=nonce + i, gas_price_gwei=gas_price_gwei)
            for i, (amount, address) in enumerate(zip(amounts, addresses))
        ]
