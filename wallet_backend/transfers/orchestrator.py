# wallet_backend/transfers/orchestrator.py

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from wallet_backend.core.address import parse_address
from wallet_backend.core.constants import WRAPPED_SOL_MINT
from wallet_backend.core.exceptions import InvalidInputError, WalletBackendError
from wallet_backend.core.transactions import TransactionAssembler, UnsignedTransaction
from wallet_backend.transfers.assets import AssetDirectory
from wallet_backend.transfers.models import AssetInfo, Trade, TradeStatus, TradeType, TransferRequest
from wallet_backend.transfers.repository import TradeRepository
from wallet_backend.utils.audit_logger import AuditLogger
from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)


def is_native_asset(asset_identifier: str) -> bool:
    return asset_identifier in ("", WRAPPED_SOL_MINT)


def parse_amount(amount: Union[Decimal, str, int, float]) -> Decimal:
    """Normalizes a human-unit amount and rejects non-positive or non-finite values."""
    try:
        # str() first so 0.1 stays 0.1 instead of its binary expansion
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidInputError(f"invalid amount: {amount}") from e
    if not value.is_finite():
        raise InvalidInputError(f"invalid amount: {amount}")
    if value <= 0:
        raise InvalidInputError(f"amount must be positive, got {amount}")
    return value


class TransferOrchestrator:
    """
    Prepares transfers: validates the request, builds the unsigned transaction
    and records a pending Trade keyed by its serialized form.
    """

    def __init__(
            self,
            assembler: TransactionAssembler,
            repository: TradeRepository,
            assets: AssetDirectory,
            audit_logger: Optional[AuditLogger] = None,
    ):
        self.assembler = assembler
        self.repository = repository
        self.assets = assets
        self.audit_logger = audit_logger

    async def prepare_transfer(self, request: TransferRequest) -> str:
        """
        Returns the base64 unsigned transaction for `request`.

        Validation and asset lookup happen before anything is built or stored.
        Persisting the Trade is best-effort: a repository failure is logged and
        the transaction is still returned. A request that compiles to the bytes
        of an already pending Trade returns those bytes without a second record.
        """
        amount = parse_amount(request.amount)
        sender = parse_address(request.from_address, "sender")
        recipient = parse_address(request.to_address, "recipient")

        native = is_native_asset(request.asset_identifier)
        asset = await self._resolve_asset(request.asset_identifier, native)

        if native:
            unsigned = await self.assembler.build_native_transfer(sender, recipient, amount)
        else:
            mint = parse_address(request.asset_identifier, "mint")
            unsigned = await self.assembler.build_token_transfer(sender, recipient, mint, amount)

        existing = await self._find_existing_trade(unsigned.serialized)
        if existing is not None:
            # Same request under the same blockhash compiles to the same bytes
            if existing.status is not TradeStatus.PENDING:
                raise InvalidInputError(
                    f"an identical transfer is already {existing.status.value} as trade {existing.id}; "
                    f"retry once a new blockhash is available"
                )
            logger.info(f"Identical transfer already pending as trade {existing.id}, reusing it")
            return unsigned.serialized

        trade = self._new_trade(asset, amount, unsigned)
        try:
            await self.repository.create(trade)
        except Exception as e:
            logger.error(f"Failed to create trade record for transfer {sender} -> {recipient}: {e}", exc_info=True)
        else:
            logger.info(f"Trade {trade.id} pending: {amount} {asset.symbol} {sender} -> {recipient}")
            if self.audit_logger:
                self.audit_logger.log_trade_event("TRANSFER_PREPARED", trade,
                                                  {"instruction_count": unsigned.instruction_count})

        return unsigned.serialized

    async def _resolve_asset(self, asset_identifier: str, native: bool) -> AssetInfo:
        try:
            if native:
                return await self.assets.get_native_asset()
            return await self.assets.get_asset_by_identifier(asset_identifier)
        except InvalidInputError:
            raise
        except WalletBackendError as e:
            raise InvalidInputError(f"failed to resolve asset {asset_identifier or 'SOL'}: {e}") from e

    async def _find_existing_trade(self, unsigned_b64: str) -> Optional[Trade]:
        try:
            return await self.repository.get_by_field("unsigned_transaction", unsigned_b64)
        except Exception as e:
            logger.error(f"Trade lookup by unsigned transaction failed: {e}", exc_info=True)
            return None

    @staticmethod
    def _new_trade(asset: AssetInfo, amount: Decimal, unsigned: UnsignedTransaction) -> Trade:
        identifier = WRAPPED_SOL_MINT if is_native_asset(asset.identifier) else asset.identifier
        return Trade(
            from_asset_identifier=identifier,
            to_asset_identifier=identifier,
            from_asset_ref=asset.internal_ref,
            to_asset_ref=asset.internal_ref,
            asset_symbol=asset.symbol,
            type=TradeType.TRANSFER,
            amount=amount,
            fee=unsigned.fee_sol,
            status=TradeStatus.PENDING,
            unsigned_transaction=unsigned.serialized,
        )
