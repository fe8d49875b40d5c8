# wallet_backend/utils/audit_logger.py

import json
from datetime import datetime, timezone
from typing import Optional

from wallet_backend.transfers.models import Trade
from .logger import get_logger  # Use the main logger setup

audit_log = get_logger("AuditLogger")  # Dedicated logger instance


class AuditLogger:
    """
    Writes one JSON line per trade lifecycle event.
    Console by default, optionally appended to a file.
    """

    def __init__(self, log_to_file: bool = False, filepath: str = "transfer_audit.log"):
        self.log_to_file = log_to_file
        self.filepath = filepath
        audit_log.info("AuditLogger initialized.")

    def log_trade_event(
            self,
            event_type: str,  # e.g., "TRANSFER_PREPARED", "TRANSFER_SUBMITTED", "TRANSFER_REJECTED"
            trade: Optional[Trade],
            extra_data: Optional[dict] = None
    ) -> None:
        """Logs a trade-related event. Never raises."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type.upper(),
            "trade_id": trade.id if trade else None,
            "status": trade.status.value if trade else None,
            "asset_symbol": trade.asset_symbol if trade else "N/A",
            "asset_identifier": trade.from_asset_identifier if trade else "N/A",
            "amount": str(trade.amount) if trade else None,
            "fee": str(trade.fee) if trade else None,
            "signature": trade.transaction_hash if trade else None,
            "error": trade.error if trade else None,
        }

        if trade and trade.confirmations:
            log_entry["confirmations"] = trade.confirmations
        if trade and trade.completed_at:
            log_entry["completed_at"] = trade.completed_at.isoformat()

        if extra_data:
            log_entry.update(extra_data)

        log_message = json.dumps(log_entry, default=str)
        audit_log.info(log_message)

        if self.log_to_file:
            try:
                with open(self.filepath, "a") as f:
                    f.write(log_message + "\n")
            except OSError as e:
                audit_log.error(f"Failed to write audit log to file {self.filepath}: {e}")
