# wallet_backend/transfers/submission.py
"""
Submission of externally signed transactions and reconciliation of the
resulting Trade with on-chain status.

All post-pending status writes on a Trade go through this module.
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Union

from solders.errors import BincodeError
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from wallet_backend.core.address import is_valid_transaction_hash
from wallet_backend.core.exceptions import (
    InvalidInputError,
    SubmissionRejectedError,
    TradeNotFoundError,
    TransientNetworkError,
    WalletBackendError,
)
from wallet_backend.core.ledger import LedgerClient, SendOptions, STATUS_FAILED, STATUS_FINALIZED
from wallet_backend.transfers.models import Trade, TradeStatus
from wallet_backend.transfers.repository import TradeRepository
from wallet_backend.utils.audit_logger import AuditLogger
from wallet_backend.utils.logger import get_logger

if TYPE_CHECKING:
    from wallet_backend.monitoring.confirmation_watcher import ConfirmationWatcher

logger = get_logger(__name__)


def decode_signed_transaction(signed_b64: str) -> Union[Transaction, VersionedTransaction]:
    """Decodes a base64 signed transaction, legacy first, then versioned."""
    try:
        raw = base64.b64decode(signed_b64, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise InvalidInputError(f"failed to decode transaction: {e}") from e
    if not raw:
        raise InvalidInputError("failed to decode transaction: empty payload")

    tx: Union[Transaction, VersionedTransaction]
    try:
        tx = Transaction.from_bytes(raw)
    except (BincodeError, ValueError):
        try:
            tx = VersionedTransaction.from_bytes(raw)
        except (BincodeError, ValueError) as e:
            raise InvalidInputError(f"failed to parse transaction: {e}") from e

    default_sig = Signature.default()
    if not any(sig != default_sig for sig in tx.signatures):
        raise InvalidInputError("transaction is not signed")
    return tx


class SubmissionGateway:
    def __init__(
            self,
            ledger: LedgerClient,
            repository: TradeRepository,
            send_options: Optional[SendOptions] = None,
            audit_logger: Optional[AuditLogger] = None,
            watcher: Optional["ConfirmationWatcher"] = None,
    ):
        self.ledger = ledger
        self.repository = repository
        self.send_options = send_options or SendOptions(skip_preflight=False, commitment="confirmed", max_retries=3)
        self.audit_logger = audit_logger
        self.watcher = watcher

    async def submit_transfer(self, unsigned_b64: str, signed_b64: str) -> str:
        """
        Broadcasts `signed_b64` and moves the matching pending Trade to
        `submitted` (returning the signature) or `failed` (raising
        SubmissionRejectedError). Never retries.
        """
        tx = decode_signed_transaction(signed_b64)
        trade = await self._find_pending_trade(unsigned_b64)

        try:
            signature = await self.ledger.send_raw_transaction(bytes(tx), self.send_options)
        except WalletBackendError as e:
            # The node may have accepted it before the transport failed
            transaction_hash = str(tx.signatures[0]) if isinstance(e, TransientNetworkError) else None
            await self._mark_rejected(trade, str(e), transaction_hash)
            raise SubmissionRejectedError(str(e), trade_id=trade.id) from e

        trade.status = TradeStatus.SUBMITTED
        trade.transaction_hash = signature
        trade.error = None
        trade.completed_at = None
        trade.finalized = False
        await self._persist(trade)
        logger.info(f"Trade {trade.id} submitted: {signature}")
        self._audit("TRANSFER_SUBMITTED", trade)

        if self.watcher is not None:
            self.watcher.start(trade)
        return signature

    async def _find_pending_trade(self, unsigned_b64: str) -> Trade:
        if not unsigned_b64:
            raise InvalidInputError("unsigned transaction is required")
        try:
            trade = await self.repository.get_by_field("unsigned_transaction", unsigned_b64)
        except Exception as e:
            logger.error(f"Trade lookup by unsigned transaction failed: {e}", exc_info=True)
            raise TradeNotFoundError(f"could not look up trade: {e}") from e

        if trade is None:
            raise TradeNotFoundError("no trade found for unsigned transaction")
        if trade.status is not TradeStatus.PENDING:
            raise InvalidInputError(f"trade {trade.id} is already {trade.status.value}")
        return trade

    async def _mark_rejected(self, trade: Trade, message: str, transaction_hash: Optional[str] = None) -> None:
        trade.status = TradeStatus.FAILED
        trade.transaction_hash = transaction_hash
        trade.error = message
        trade.completed_at = None
        trade.finalized = False
        await self._persist(trade)
        logger.warning(f"Trade {trade.id} rejected at submission: {message}")
        self._audit("TRANSFER_REJECTED", trade)

    async def refresh_trade_status(self, trade: Trade) -> Trade:
        """
        Applies the current on-chain status to a submitted trade, or to a
        failed one whose send broke in transport after the signature was known.
        Status fetch errors leave the trade unchanged.
        """
        if not self._is_reconcilable(trade):
            return trade

        try:
            status = await self.ledger.get_transaction_status(trade.transaction_hash)
        except WalletBackendError as e:
            logger.warning(f"Failed to get transaction status for trade {trade.id}: {e}")
            return trade

        changed = False
        if status.confirmations != trade.confirmations:
            trade.confirmations = status.confirmations
            changed = True

        if status.status == STATUS_FAILED:
            trade.status = TradeStatus.FAILED
            trade.error = f"Transaction failed on-chain: {status.error}"
            trade.completed_at = datetime.now(timezone.utc)
            trade.finalized = True
            changed = True
            logger.warning(f"Trade {trade.id} failed on-chain: {status.error}")
            self._audit("TRANSFER_FAILED_ONCHAIN", trade)
        elif status.status == STATUS_FINALIZED:
            trade.status = TradeStatus.FINALIZED
            trade.error = None
            trade.completed_at = datetime.now(timezone.utc)
            trade.finalized = True
            changed = True
            logger.info(f"Trade {trade.id} finalized: {trade.transaction_hash}")
            self._audit("TRANSFER_FINALIZED", trade)

        if changed:
            await self._persist(trade)
        return trade

    @staticmethod
    def _is_reconcilable(trade: Trade) -> bool:
        if not trade.transaction_hash:
            return False
        if trade.status is TradeStatus.SUBMITTED:
            return True
        return trade.status is TradeStatus.FAILED and not trade.finalized

    async def get_trade_by_transaction_hash(self, transaction_hash: str) -> Trade:
        if not is_valid_transaction_hash(transaction_hash):
            raise InvalidInputError(f"invalid transaction hash: {transaction_hash}")

        trade = await self.repository.get_by_field("transaction_hash", transaction_hash)
        if trade is None:
            raise TradeNotFoundError(f"trade not found for transaction {transaction_hash}")
        return await self.refresh_trade_status(trade)

    async def _persist(self, trade: Trade) -> None:
        try:
            await self.repository.update(trade)
        except Exception as e:
            logger.error(f"Failed to update trade {trade.id} ({trade.status.value}): {e}", exc_info=True)

    def _audit(self, event_type: str, trade: Trade) -> None:
        if self.audit_logger:
            self.audit_logger.log_trade_event(event_type, trade)
