"""
Broadcaster

Sends one signed transaction to every provider at once and waits for all
of them. Unlike reads this is not a race: every node gets the transaction.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, Iterable, Optional, Union

from web3 import Web3

from ..config import config as global_config
from ..errors import EncodeError, ProviderError
from ..types import BroadcastOutcome, SignedTransaction
from .provider import Provider

logger = logging.getLogger(__name__)


def raw_tx_to_hash(raw: bytes) -> str:
    """Canonical transaction hash of wire-encoded bytes"""
    return "0x" + bytes(Web3.keccak(raw)).hex()


def _decode_raw(raw_hex: str) -> bytes:
    if not isinstance(raw_hex, str):
        raise EncodeError(f"raw transaction must be a hex string, got {type(raw_hex).__name__}")
    body = raw_hex[2:] if raw_hex.startswith("0x") else raw_hex
    try:
        raw = bytes.fromhex(body)
    except ValueError as e:
        raise EncodeError(f"raw transaction is not valid hex: {e}", original_error=e)
    if not raw:
        raise EncodeError("raw transaction is empty")
    return raw


class Broadcaster:
    """
    Usage:
        broadcaster = Broadcaster(providers)
        outcome = broadcaster.broadcast_tx(signed_tx)
        if outcome.broadcasted:
            print(outcome.tx_hash)
    """

    def __init__(
        self,
        providers: Union[Dict[str, Provider], Iterable[Provider]],
        timeout: Optional[float] = None,
    ):
        if isinstance(providers, dict):
            self._providers = dict(providers)
        else:
            self._providers = {p.name: p for p in providers}
        self.timeout = timeout if timeout is not None else global_config.rpc.timeout_seconds

    @property
    def providers(self) -> Dict[str, Provider]:
        return dict(self._providers)

    def broadcast_tx(self, tx: SignedTransaction) -> BroadcastOutcome:
        """Broadcast a signed transaction"""
        if not tx.raw:
            raise EncodeError("signed transaction has no wire encoding")
        outcome = self.broadcast(tx.raw_hex)
        outcome.transaction = tx
        return outcome

    def broadcast(self, raw_hex: str) -> BroadcastOutcome:
        """
        Broadcast a hex-encoded signed transaction

        Returns:
            BroadcastOutcome; ``broadcasted`` is True iff at least one
            provider is configured and at least one accepted the tx

        Raises:
            EncodeError: ``raw_hex`` does not decode to a transaction payload
        """
        raw = _decode_raw(raw_hex)
        tx_hash = raw_tx_to_hash(raw)
        if not raw_hex.startswith("0x"):
            raw_hex = "0x" + raw_hex

        errors: Dict[str, Exception] = {}
        if self._providers:
            executor = ThreadPoolExecutor(
                max_workers=len(self._providers),
                thread_name_prefix="broadcast",
            )
            futures = {
                executor.submit(provider.send_raw_transaction, raw_hex): name
                for name, provider in self._providers.items()
            }
            try:
                done, not_done = wait(futures, timeout=self.timeout)
            finally:
                executor.shutdown(wait=False)

            for future in done:
                error = future.exception()
                if error is not None:
                    errors[futures[future]] = error
            for future in not_done:
                name = futures[future]
                errors[name] = ProviderError.timeout(name, self.timeout)

        broadcasted = len(self._providers) > 0 and len(errors) < len(self._providers)
        outcome = BroadcastOutcome(tx_hash=tx_hash, broadcasted=broadcasted, errors=errors)

        if broadcasted:
            logger.info(
                f"Broadcasted {tx_hash} to {len(self._providers) - len(errors)}/{len(self._providers)} providers"
            )
        else:
            logger.warning(f"Broadcast of {tx_hash} failed: {outcome.error_messages}")
        for name, error in errors.items():
            logger.debug(f"Broadcast {tx_hash} rejected by {name}: {error}")

        return outcome

    def close(self):
        for provider in self._providers.values():
            provider.close()

    def __repr__(self) -> str:
        return f"Broadcaster(providers={sorted(self._providers)})"
