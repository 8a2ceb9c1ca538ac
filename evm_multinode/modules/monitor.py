"""
Transaction Monitor

Polls submitted hashes until they reach a terminal state: done, reverted,
or lost (never seen by any node within the lost timeout). Each hash is
polled on its own daemon thread that resolves a Future.
"""

import logging
import threading
import time
from concurrent.futures import Future, wait
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from ..config import config as global_config
from ..types import TxInfo, TxStatus

if TYPE_CHECKING:
    from ..infra.reader import RedundantReader

logger = logging.getLogger(__name__)


class TxMonitor:
    """
    Usage:
        monitor = TxMonitor(reader)
        info = monitor.blocking_wait("0x...")
        if info.status == TxStatus.DONE:
            ...

        results = monitor.blocking_wait_many(hash_a, hash_b)

    There is no cancellation: a caller that stops waiting on a Future
    simply never reads it, and the polling thread ends on its own once the
    hash reaches a terminal state.
    """

    def __init__(
        self,
        reader: "RedundantReader",
        poll_interval: Optional[float] = None,
        lost_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.reader = reader
        self.poll_interval = poll_interval if poll_interval is not None else global_config.monitor.poll_interval
        self.lost_timeout = lost_timeout if lost_timeout is not None else global_config.monitor.lost_timeout
        self._clock = clock
        self._sleep = sleep

    def _periodic_check(self, tx_hash: str, result: Future) -> None:
        start = self._clock()
        seen_pending = False
        status = None

        while True:
            self._sleep(self.poll_interval)
            info = self.reader.try_tx_info(tx_hash)

            if info.status != status:
                logger.debug(f"{tx_hash}: {info.status.value}")
                status = info.status

            if info.status == TxStatus.ERROR:
                continue
            if info.status == TxStatus.NOTFOUND:
                if not seen_pending and self._clock() - start > self.lost_timeout:
                    logger.info(f"{tx_hash}: lost after {self.lost_timeout}s")
                    result.set_result(TxInfo(TxStatus.LOST))
                    return
                continue
            if info.status == TxStatus.PENDING:
                seen_pending = True
                continue

            logger.info(f"{tx_hash}: {info.status.value}")
            result.set_result(info)
            return

    def _run(self, tx_hash: str, result: Future) -> None:
        try:
            self._periodic_check(tx_hash, result)
        except Exception as e:
            logger.error(f"Monitoring {tx_hash} failed: {e}")
            result.set_exception(e)

    def wait_channel(self, tx_hash: str) -> "Future[TxInfo]":
        """Start polling ``tx_hash``; the Future resolves to its final TxInfo"""
        result: Future = Future()
        thread = threading.Thread(
            target=self._run,
            args=(tx_hash, result),
            name=f"tx-monitor-{tx_hash[:10]}",
            daemon=True,
        )
        thread.start()
        return result

    def blocking_wait(self, tx_hash: str, timeout: Optional[float] = None) -> TxInfo:
        return self.wait_channel(tx_hash).result(timeout=timeout)

    def wait_channels(self, *tx_hashes: str) -> List["Future[TxInfo]"]:
        return [self.wait_channel(tx_hash) for tx_hash in tx_hashes]

    def blocking_wait_many(self, *tx_hashes: str) -> Dict[str, TxInfo]:
        """
        Wait for every hash to reach a terminal state

        Returns:
            Final TxInfo keyed by the requested hash
        """
        futures = dict(zip(tx_hashes, self.wait_channels(*tx_hashes)))
        wait(list(futures.values()))
        return {tx_hash: future.result() for tx_hash, future in futures.items()}
