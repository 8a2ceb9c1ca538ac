"""
Account Module

Sending operations for one signer on one chain: ETH transfers (single,
send-all, batch), ERC-20 transfers and contract calls. Each operation
composes, signs and broadcasts, returning the BroadcastOutcome.
"""

import logging
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

from ..errors import EvmClientError, SignerError
from ..types import (
    BroadcastOutcome,
    UnsignedTransaction,
    eth_to_wei,
    float_to_fixed_point,
    gwei_to_wei,
)
from .abi import ERC20_ABI
from .composer import send_all_amount, validate_batch, validate_value

if TYPE_CHECKING:
    from ..client import ChainClient
    from ..infra.signer import Signer

logger = logging.getLogger(__name__)


class Account:
    """
    Usage:
        client = ChainClient("ethereum")
        account = client.account(client.local_signer("0x..."))

        outcome = account.send_eth(0.1, "0x...")
        info = client.monitor.blocking_wait(outcome.tx_hash)
    """

    def __init__(self, signer: "Signer", client: "ChainClient"):
        self._signer = signer
        self._client = client

    @property
    def address(self) -> str:
        return self._signer.address

    @property
    def signer(self) -> "Signer":
        return self._signer

    @property
    def _reader(self):
        return self._client.reader

    @property
    def _composer(self):
        return self._client.composer

    # Nonces

    def get_mined_nonce(self) -> int:
        return self._reader.get_mined_nonce(self.address)

    def get_pending_nonce(self) -> int:
        return self._reader.get_pending_nonce(self.address)

    def list_pending_nonces(self) -> List[int]:
        """Nonces submitted but not yet mined"""
        mined = self.get_mined_nonce()
        pending = self.get_pending_nonce()
        return list(range(mined, pending))

    def get_balance(self) -> int:
        """Balance in wei"""
        return self._reader.get_balance(self.address)

    # Signing and submission

    def sign_and_broadcast(self, tx: UnsignedTransaction) -> BroadcastOutcome:
        """
        Sign with this account's signer and broadcast

        Raises:
            SignerError: Signing failed; nothing was broadcast
        """
        signed = self._signer.sign(tx)
        outcome = self._client.broadcaster.broadcast_tx(signed)
        if outcome.broadcasted:
            logger.info(f"{self.address} sent {outcome.tx_hash} (nonce {tx.nonce})")
        return outcome

    # ETH transfers

    def send_eth_with_nonce_and_price(
        self,
        nonce: int,
        price_gwei: float,
        amount_wei: int,
        to: str,
    ) -> BroadcastOutcome:
        tx = self._composer.build_transfer(
            self.address, to, amount_wei, nonce=nonce, gas_price_gwei=price_gwei
        )
        return self.sign_and_broadcast(tx)

    def send_eth(self, eth_amount: float, to: str) -> BroadcastOutcome:
        validate_value(eth_amount, "eth_amount")
        nonce = self.get_mined_nonce()
        price_gwei = self._composer.recommended_gas_price_gwei()
        return self.send_eth_with_nonce_and_price(nonce, price_gwei, eth_to_wei(eth_amount), to)

    def send_all_eth_with_price(self, price_gwei: float, to: str) -> BroadcastOutcome:
        """
        Send the whole balance minus the transfer fee reserve

        Raises:
            ValidationError: If the balance does not exceed the fee reserve
        """
        nonce = self.get_mined_nonce()
        balance = self.get_balance()
        amount = send_all_amount(
            balance,
            self._composer.transfer_gas_limit,
            gwei_to_wei(price_gwei),
            price_gwei,
        )
        return self.send_eth_with_nonce_and_price(nonce, price_gwei, amount, to)

    def send_all_eth(self, to: str) -> BroadcastOutcome:
        price_gwei = self._composer.recommended_gas_price_gwei()
        return self.send_all_eth_with_price(price_gwei, to)

    def send_eth_to_multiple_addresses_with_price(
        self,
        price_gwei: float,
        amounts: Sequence[float],
        addresses: Sequence[str],
    ) -> List[BroadcastOutcome]:
        """
        One transfer per address, consecutive nonces from the mined nonce

        Returns one outcome per address, in order. An item that fails before
        reaching the providers (signing rejected, bad address) gets an outcome
        with an empty hash, broadcasted=False and the error under "signer" or
        "compose"; later items are still sent.

        Raises:
            ValidationError: Lists differ in length or an amount is negative
        """
        validate_batch(amounts, addresses)
        nonce = self.get_mined_nonce()
        outcomes = []
        for i, (amount, address) in enumerate(zip(amounts, addresses)):
            try:
                outcome = self.send_eth_with_nonce_and_price(nonce + i, price_gwei, eth_to_wei(amount), address)
            except EvmClientError as e:
                stage = "signer" if isinstance(e, SignerError) else "compose"
                logger.warning(f"Batch item {i} to {address} not sent: {e}")
                outcome = BroadcastOutcome(tx_hash="", broadcasted=False, errors={stage: e})
            outcomes.append(outcome)
        return outcomes

    def send_eth_to_multiple_addresses(
        self,
        amounts: Sequence[float],
        addresses: Sequence[str],
    ) -> List[BroadcastOutcome]:
        validate_batch(amounts, addresses)
        price_gwei = self._composer.recommended_gas_price_gwei()
        return self.send_eth_to_multiple_addresses_with_price(price_gwei, amounts, addresses)

    # Contract calls

    def pack_data(self, contract: str, method: str, *args: Any) -> bytes:
        return self._composer.pack_call(contract, method, *args)

    def call_contract_with_nonce_and_price(
        self,
        nonce: int,
        price_gwei: float,
        value: float,
        contract: str,
        method: str,
        *args: Any,
    ) -> BroadcastOutcome:
        """
        Call a contract method

        Args:
            nonce: Sender nonce
            price_gwei: Gas price in gwei
            value: ETH attached to the call
            contract: Contract address
            method: Method name from the contract's ABI
            *args: Method arguments

        Raises:
            ValidationError: Negative value
            EncodeError: ABI unavailable or arguments do not match
            AggregateError: Gas estimation failed on every provider
        """
        validate_value(value)
        tx = self._composer.build_contract_call(
            self.address, contract, method, *args,
            value=eth_to_wei(value),
            nonce=nonce,
            gas_price_gwei=price_gwei,
        )
        return self.sign_and_broadcast(tx)

    def call_contract_with_price(
        self,
        price_gwei: float,
        value: float,
        contract: str,
        method: str,
        *args: Any,
    ) -> BroadcastOutcome:
        validate_value(value)
        nonce = self.get_mined_nonce()
        return self.call_contract_with_nonce_and_price(nonce, price_gwei, value, contract, method, *args)

    def call_contract(self, value: float, contract: str, method: str, *args: Any) -> BroadcastOutcome:
        validate_value(value)
        nonce = self.get_mined_nonce()
        price_gwei = self._composer.recommended_gas_price_gwei()
        return self.call_contract_with_nonce_and_price(nonce, price_gwei, value, contract, method, *args)

    def send_erc20(
        self,
        token: str,
        amount: float,
        to: str,
        price_gwei: Optional[float] = None,
    ) -> BroadcastOutcome:
        """
        Transfer ``amount`` tokens, scaled by the token's own decimals()

        Encodes with the standard ERC-20 ABI, so no explorer lookup is needed.
        """
        validate_value(amount, "amount")
        decimals = self._reader.erc20_decimals(token)
        raw_amount = float_to_fixed_point(amount, decimals)
        data = ERC20_ABI.encode_call("transfer", to, raw_amount)
        tx = self._composer.build(
            self.address, token, 0, data,
            nonce=self.get_mined_nonce(),
            gas_price_gwei=price_gwei,
        )
        return self.sign_and_broadcast(tx)

    def __repr__(self) -> str:
        return f"Account(address={self.address})"
