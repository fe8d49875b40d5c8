# wallet_backend/transfers/repository.py
"""
Trade persistence boundary.

Only `create`, `update` and `get_by_field` are needed by the pipeline; a
database-backed implementation lives outside this package.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from dataclasses import fields
from typing import Any, Dict, Optional

from wallet_backend.core.exceptions import BookkeepingError
from wallet_backend.transfers.models import Trade
from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)

TRADE_FIELDS = frozenset(f.name for f in fields(Trade))


class TradeRepository(ABC):
    @abstractmethod
    async def create(self, trade: Trade) -> None:
        ...

    @abstractmethod
    async def update(self, trade: Trade) -> None:
        ...

    @abstractmethod
    async def get_by_field(self, field_name: str, value: Any) -> Optional[Trade]:
        ...


class InMemoryTradeRepository(TradeRepository):
    """Dict-backed repository. Stores copies so callers cannot mutate persisted state by accident."""

    def __init__(self):
        self._trades: Dict[str, Trade] = {}
        self._lock = asyncio.Lock()

    async def create(self, trade: Trade) -> None:
        async with self._lock:
            if trade.id in self._trades:
                raise BookkeepingError(f"trade {trade.id} already exists")
            for existing in self._trades.values():
                if existing.unsigned_transaction == trade.unsigned_transaction:
                    raise BookkeepingError("unsigned_transaction must be unique per trade")
            self._trades[trade.id] = copy.deepcopy(trade)
        logger.debug(f"Trade {trade.id} created ({trade.status.value}).")

    async def update(self, trade: Trade) -> None:
        async with self._lock:
            if trade.id not in self._trades:
                raise BookkeepingError(f"trade {trade.id} does not exist")
            self._trades[trade.id] = copy.deepcopy(trade)
        logger.debug(f"Trade {trade.id} updated ({trade.status.value}).")

    async def get_by_field(self, field_name: str, value: Any) -> Optional[Trade]:
        if field_name not in TRADE_FIELDS:
            raise ValueError(f"unknown trade field: {field_name}")
        async with self._lock:
            for trade in self._trades.values():
                if getattr(trade, field_name) == value:
                    return copy.deepcopy(trade)
        return None

    def __len__(self) -> int:
        return len(self._trades)
