# wallet_backend/transfers/__init__.py

# Only the data model is re-exported here; the service modules import
# wallet_backend.utils.audit_logger, which itself depends on .models.
from .models import AssetInfo, Balance, Trade, TradeStatus, TradeType, TransferRequest

__all__ = [
    "AssetInfo",
    "Balance",
    "Trade",
    "TradeStatus",
    "TradeType",
    "TransferRequest",
]
