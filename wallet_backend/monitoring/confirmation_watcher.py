# wallet_backend/monitoring/confirmation_watcher.py
"""
Polls submitted trades until they reach a terminal status, the deadline
passes, or the watcher is stopped.
"""

import asyncio
from typing import Optional, Set, TYPE_CHECKING

from wallet_backend.transfers.models import Trade
from wallet_backend.utils.logger import get_logger

if TYPE_CHECKING:
    from wallet_backend.transfers.submission import SubmissionGateway

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_TIMEOUT_SECONDS = 300.0


class ConfirmationWatcher:
    def __init__(
        self,
        gateway: "SubmissionGateway",
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.gateway = gateway
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        # Event to signal shutdown
        self._stop_event: asyncio.Event = asyncio.Event()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    async def watch(self, trade: Trade, timeout_seconds: Optional[float] = None) -> Trade:
        """
        Refreshes `trade` every interval. Returns the last known state; on
        deadline or stop the trade is left as it was (typically `submitted`).
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (timeout_seconds or self.timeout_seconds)
        logger.info(f"Watching trade {trade.id} ({trade.transaction_hash})")

        while not self._stop_event.is_set():
            trade = await self.gateway.refresh_trade_status(trade)
            if trade.status.is_terminal:
                logger.info(f"Trade {trade.id} reached {trade.status.value}")
                return trade

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                # Single await point for both the tick and a stop request
                await asyncio.wait_for(self._stop_event.wait(), timeout=min(self.interval_seconds, remaining))
            except asyncio.TimeoutError:
                continue

        if self._stop_event.is_set():
            logger.info(f"Watcher stopped; trade {trade.id} left {trade.status.value}")
        else:
            logger.warning(
                f"Confirmation timeout after {timeout_seconds or self.timeout_seconds}s; "
                f"trade {trade.id} left {trade.status.value}"
            )
        return trade

    def start(self, trade: Trade) -> asyncio.Task:
        """Schedules watch(trade) in the background and tracks the task."""
        task = asyncio.create_task(self.watch(trade), name=f"confirm-{trade.id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Confirmation task {task.get_name()} failed: {exc}", exc_info=exc)

    async def stop(self) -> None:
        """
        Signal all watch loops to stop and wait for them. Safe to call more than once.
        """
        if not self._stop_event.is_set():
            self._stop_event.set()
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self) -> "ConfirmationWatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
