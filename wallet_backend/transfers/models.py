# wallet_backend/transfers/models.py
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional


class TradeStatus(Enum):
    PENDING = "pending"  # Unsigned transaction handed out, not yet submitted
    SUBMITTED = "submitted"  # Accepted by the RPC node, awaiting finality
    FINALIZED = "finalized"  # Finalized on-chain
    FAILED = "failed"  # Rejected at submission or failed on-chain

    @property
    def is_terminal(self) -> bool:
        return self in (TradeStatus.FINALIZED, TradeStatus.FAILED)


class TradeType(Enum):
    TRANSFER = "transfer"


@dataclass
class TransferRequest:
    from_address: str
    to_address: str
    asset_identifier: str  # "" or the wrapped SOL mint means native SOL
    amount: Decimal


@dataclass
class AssetInfo:
    internal_ref: str
    identifier: str
    symbol: str


@dataclass
class Trade:
    from_asset_identifier: str
    to_asset_identifier: str
    asset_symbol: str
    amount: Decimal
    fee: Decimal
    unsigned_transaction: str
    from_asset_ref: Optional[str] = None
    to_asset_ref: Optional[str] = None
    type: TradeType = TradeType.TRANSFER
    status: TradeStatus = TradeStatus.PENDING
    transaction_hash: Optional[str] = None
    error: Optional[str] = None
    completed_at: Optional[datetime] = None
    finalized: bool = False
    confirmations: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __hash__(self): return hash(self.id)

    def __eq__(self, other):
        if not isinstance(other, Trade): return NotImplemented
        return self.id == other.id


@dataclass
class Balance:
    asset_identifier: str
    amount: Decimal
