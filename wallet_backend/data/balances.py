# wallet_backend/data/balances.py

import asyncio
from decimal import Decimal
from typing import List

from wallet_backend.core.address import parse_wallet_address
from wallet_backend.core.asset_metadata import from_raw_units
from wallet_backend.core.constants import NATIVE_SOL_IDENTIFIER, SOL_DECIMALS
from wallet_backend.core.exceptions import ResourceNotFoundError, TransientNetworkError
from wallet_backend.core.ledger import LedgerClient
from wallet_backend.transfers.models import Balance
from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TOKEN_ACCOUNTS_TIMEOUT_SECONDS = 45.0


class BalanceAggregator:
    """Read-only view of a wallet's native and SPL token holdings."""

    def __init__(self, ledger: LedgerClient, token_accounts_timeout: float = DEFAULT_TOKEN_ACCOUNTS_TIMEOUT_SECONDS):
        self.ledger = ledger
        self.token_accounts_timeout = token_accounts_timeout

    async def get_balances(self, address: str) -> List[Balance]:
        """
        Native SOL first (if non-zero), then token holdings with a positive amount.

        An address the ledger has never seen yields an empty list. If the token
        listing fails or times out, only the native balance is returned.
        """
        owner = parse_wallet_address(address)

        try:
            lamports = await self.ledger.get_balance(owner)
        except ResourceNotFoundError:
            logger.info(f"Account {owner} not found on-chain, returning empty balances.")
            return []

        balances: List[Balance] = []
        if lamports > 0:
            balances.append(Balance(asset_identifier=NATIVE_SOL_IDENTIFIER,
                                    amount=from_raw_units(lamports, SOL_DECIMALS)))

        try:
            holdings = await asyncio.wait_for(
                self.ledger.get_token_accounts_by_owner(owner),
                timeout=self.token_accounts_timeout,
            )
        except (TransientNetworkError, asyncio.TimeoutError) as e:
            logger.warning(f"Token accounts for {owner} unavailable ({str(e) or 'timeout'}), returning native balance only.")
            return balances

        for holding in holdings:
            if holding.ui_amount > Decimal(0):
                balances.append(Balance(asset_identifier=holding.mint, amount=holding.ui_amount))

        logger.debug(f"Balances for {owner}: {len(balances)} entries")
        return balances
