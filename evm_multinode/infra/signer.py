"""
Transaction signers

A signer turns an UnsignedTransaction into a SignedTransaction. The
replay-protection scheme (EIP-155 chain id, or none) is a property of the
signer instance, never of the caller composing the transaction.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional, Protocol, Tuple, runtime_checkable

import rlp
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from ..errors import SignerError
from ..types import UnsignedTransaction, SignedTransaction

logger = logging.getLogger(__name__)


@runtime_checkable
class Signer(Protocol):
    """
    Protocol for transaction signers

    Implementations must provide:
    - address: The signing account (checksummed)
    - sign(): UnsignedTransaction -> SignedTransaction
    """

    @property
    def address(self) -> str:
        ...

    def sign(self, tx: UnsignedTransaction) -> SignedTransaction:
        ...


class LocalKeySigner:
    """
    Private-key signer using eth_account

    ``chain_id`` set: EIP-155 replay-protected signature for that chain.
    ``chain_id`` None: unprotected (homestead) signature.

    Usage:
        signer = LocalKeySigner.from_private_key("0x...", chain_id=1)
        signed = signer.sign(unsigned_tx)
    """

    def __init__(self, account: LocalAccount, chain_id: Optional[int] = None):
        self._account = account
        self.chain_id = chain_id

    @property
    def address(self) -> str:
        """Wallet address (checksummed)"""
        return self._account.address

    def sign(self, tx: UnsignedTransaction) -> SignedTransaction:
        try:
            signed = self._account.sign_transaction(tx.to_dict(self.chain_id))
        except Exception as e:
            raise SignerError.failed(str(e), original_error=e)
        return SignedTransaction(
            unsigned=tx,
            v=signed.v,
            r=signed.r,
            s=signed.s,
            raw=bytes(signed.raw_transaction),
            hash="0x" + bytes(signed.hash).hex(),
        )

    @classmethod
    def from_private_key(cls, private_key: str, chain_id: Optional[int] = None) -> "LocalKeySigner":
        """
        Create signer from a hex private key (with or without 0x prefix)
        """
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        try:
            account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise SignerError.failed(f"invalid private key: {e}", original_error=e)
        return cls(account, chain_id)

    @classmethod
    def from_env(cls, env_var: str = "EVM_PRIVATE_KEY", chain_id: Optional[int] = None) -> "LocalKeySigner":
        """
        Create signer from environment variable

        Raises:
            SignerError: If environment variable is not set
        """
        private_key = os.getenv(env_var, "")
        if not private_key:
            raise SignerError.not_configured()
        return cls.from_private_key(private_key, chain_id)

    def __repr__(self) -> str:
        return f"LocalKeySigner(address={self.address}, chain_id={self.chain_id})"


@runtime_checkable
class HardwareDevice(Protocol):
    """
    Wallet device driver (USB/HID transport lives outside this package)

    ``sign_transaction`` may block until the user confirms on the device.
    It raises on rejection or when the device is unreachable.
    """

    def sign_transaction(
        self,
        path: str,
        tx: UnsignedTransaction,
        chain_id: Optional[int],
    ) -> Tuple[int, int, int]:
        """Returns the (v, r, s) signature"""
        ...


def encode_legacy_transaction(tx: UnsignedTransaction, v: int, r: int, s: int) -> bytes:
    """RLP wire encoding of a signed legacy transaction"""
    to = bytes.fromhex(tx.to[2:]) if tx.to else b""
    return rlp.encode([
        tx.nonce,
        tx.gas_price,
        tx.gas_limit,
        to,
        tx.value,
        bytes(tx.data),
        v,
        r,
        s,
    ])


class HardwareSigner:
    """
    Signer backed by an external hardware wallet

    Requests to the device are serialized with a lock. No timeout is
    applied: the device may wait indefinitely for user confirmation.
    The returned signature must recover to ``address``.
    """

    def __init__(
        self,
        device: HardwareDevice,
        path: str,
        address: str,
        chain_id: Optional[int] = None,
    ):
        self._device = device
        self.path = path
        self._address = Web3.to_checksum_address(address)
        self.chain_id = chain_id
        self._lock = threading.Lock()

    @property
    def address(self) -> str:
        return self._address

    def sign(self, tx: UnsignedTransaction) -> SignedTransaction:
        with self._lock:
            logger.info(f"Waiting for device confirmation of nonce {tx.nonce} ({self.path})")
            try:
                v, r, s = self._device.sign_transaction(self.path, tx, self.chain_id)
            except SignerError:
                raise
            except (ConnectionError, OSError) as e:
                raise SignerError.device_unavailable(e)
            except Exception as e:
                raise SignerError.failed(str(e), original_error=e)

        raw = encode_legacy_transaction(tx, v, r, s)
        try:
            recovered = Account.recover_transaction(raw)
        except Exception as e:
            raise SignerError.failed(f"cannot recover sender: {e}", original_error=e)
        if recovered != self._address:
            raise SignerError.invalid_signature(self._address, recovered)

        return SignedTransaction(
            unsigned=tx,
            v=v,
            r=r,
            s=s,
            raw=raw,
            hash="0x" + bytes(Web3.keccak(raw)).hex(),
        )

    def __repr__(self) -> str:
        return f"HardwareSigner(address={self.address}, path={self.path!r})"


def create_local_signer(
    private_key: Optional[str] = None,
    chain_id: Optional[int] = None,
    env_var: str = "EVM_PRIVATE_KEY",
) -> LocalKeySigner:
    """
    Create a local signer

    Priority:
    1. private_key argument
    2. ``env_var`` environment variable

    Raises:
        SignerError: If no key is available
    """
    if private_key is not None:
        return LocalKeySigner.from_private_key(private_key, chain_id)

    env_key = os.getenv(env_var, "")
    if env_key:
        return LocalKeySigner.from_private_key(env_key, chain_id)

    raise SignerError.not_configured()
