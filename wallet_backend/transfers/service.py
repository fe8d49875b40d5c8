# wallet_backend/transfers/service.py

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from solana.rpc.commitment import Commitment

from wallet_backend.core.client import SolanaClient
from wallet_backend.core.ledger import LedgerClient, SendOptions
from wallet_backend.core.transactions import TransactionAssembler
from wallet_backend.data.balances import BalanceAggregator
from wallet_backend.monitoring.confirmation_watcher import ConfirmationWatcher
from wallet_backend.transfers.assets import AssetDirectory, StaticAssetDirectory
from wallet_backend.transfers.models import Balance, Trade, TransferRequest
from wallet_backend.transfers.orchestrator import TransferOrchestrator
from wallet_backend.transfers.repository import InMemoryTradeRepository, TradeRepository
from wallet_backend.transfers.submission import SubmissionGateway
from wallet_backend.utils.audit_logger import AuditLogger
from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)


class WalletService:
    """Entry point for prepare / submit / balances / trade lookup."""

    def __init__(
        self,
        ledger: LedgerClient,
        repository: TradeRepository,
        assets: AssetDirectory,
        config: Optional[Dict[str, Any]] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.ledger = ledger
        self.repository = repository
        self.assets = assets
        self.config = config or {}
        self.audit_logger = audit_logger or AuditLogger(
            log_to_file=bool(self.config.get("AUDIT_LOG_TO_FILE", False)),
            filepath=self.config.get("AUDIT_LOG_PATH", "transfer_audit.log"),
        )

        # Core services
        self.assembler = TransactionAssembler(self.ledger)
        self.orchestrator = TransferOrchestrator(
            assembler=self.assembler,
            repository=self.repository,
            assets=self.assets,
            audit_logger=self.audit_logger,
        )
        self.gateway = SubmissionGateway(
            ledger=self.ledger,
            repository=self.repository,
            send_options=SendOptions(
                skip_preflight=bool(self.config.get("SEND_SKIP_PREFLIGHT", False)),
                commitment=self.config.get("SOLANA_COMMITMENT", "confirmed"),
                max_retries=int(self.config.get("SEND_MAX_RETRIES", 3)),
            ),
            audit_logger=self.audit_logger,
        )
        self.balances = BalanceAggregator(
            self.ledger,
            token_accounts_timeout=float(self.config.get("TOKEN_ACCOUNTS_TIMEOUT_SECONDS", 45.0)),
        )

        self.watcher: Optional[ConfirmationWatcher] = None
        if self.config.get("CONFIRMATION_WATCH_ENABLED", False):
            self.watcher = ConfirmationWatcher(
                self.gateway,
                interval_seconds=float(self.config.get("CONFIRMATION_POLL_INTERVAL_SECONDS", 2.0)),
                timeout_seconds=float(self.config.get("CONFIRMATION_TIMEOUT_SECONDS", 300.0)),
            )
            self.gateway.watcher = self.watcher

        logger.info(f"WalletService initialized (confirmation watcher: {self.watcher is not None})")

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        repository: Optional[TradeRepository] = None,
        assets: Optional[AssetDirectory] = None,
    ) -> "WalletService":
        client = SolanaClient(
            config["SOLANA_NODE_RPC_ENDPOINT"],
            commitment=Commitment(config.get("SOLANA_COMMITMENT", "confirmed")),
            timeout_seconds=int(config.get("RPC_TIMEOUT_SECONDS", 30)),
        )
        return cls(
            ledger=client,
            repository=repository or InMemoryTradeRepository(),
            assets=assets or StaticAssetDirectory(),
            config=config,
        )

    async def prepare_transfer(
        self,
        from_address: str,
        to_address: str,
        asset_identifier: str,
        amount: Union[Decimal, str, int, float],
    ) -> str:
        request = TransferRequest(
            from_address=from_address,
            to_address=to_address,
            asset_identifier=asset_identifier or "",
            amount=amount,
        )
        return await self.orchestrator.prepare_transfer(request)

    async def submit_transfer(self, unsigned_transaction: str, signed_transaction: str) -> str:
        return await self.gateway.submit_transfer(unsigned_transaction, signed_transaction)

    async def get_balances(self, address: str) -> List[Balance]:
        return await self.balances.get_balances(address)

    async def get_trade_by_transaction_hash(self, transaction_hash: str) -> Trade:
        return await self.gateway.get_trade_by_transaction_hash(transaction_hash)

    async def close(self) -> None:
        if self.watcher is not None:
            await self.watcher.stop()
        await self.ledger.close()
        logger.info("WalletService closed.")

    async def __aenter__(self) -> "WalletService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
