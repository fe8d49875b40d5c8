# wallet_backend/core/ledger.py
"""
Narrow ledger interface consumed by the transfer pipeline.

The distinction between "account does not exist" and "could not find out" is
made once, by the concrete client, and returned as a tagged lookup result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from solders.hash import Hash
from solders.pubkey import Pubkey

# Normalized confirmation states
STATUS_UNKNOWN = "unknown"
STATUS_PROCESSED = "processed"
STATUS_CONFIRMED = "confirmed"
STATUS_FINALIZED = "finalized"
STATUS_FAILED = "failed"


@dataclass
class AccountInfo:
    address: Pubkey
    owner: Pubkey
    lamports: int
    data: bytes
    executable: bool = False


@dataclass
class AccountFound:
    account: AccountInfo


@dataclass
class AccountNotFound:
    address: Pubkey


@dataclass
class AccountLookupFailed:
    address: Pubkey
    reason: str


AccountLookup = Union[AccountFound, AccountNotFound, AccountLookupFailed]


@dataclass
class TokenHolding:
    account: Pubkey
    mint: str
    amount_raw: int
    decimals: int

    @property
    def ui_amount(self) -> Decimal:
        return Decimal(self.amount_raw).scaleb(-self.decimals)


@dataclass
class SendOptions:
    skip_preflight: bool = False
    commitment: str = "confirmed"
    max_retries: int = 3


@dataclass
class TransactionStatus:
    signature: str
    status: str = STATUS_UNKNOWN
    confirmations: int = 0
    error: Optional[str] = None


class LedgerClient(ABC):
    """Read/submit operations the backend needs from a Solana RPC node."""

    @abstractmethod
    async def get_account_info(self, address: Pubkey) -> AccountLookup:
        ...

    @abstractmethod
    async def get_latest_blockhash(self) -> Hash:
        """Raises TransientNetworkError if no blockhash could be fetched."""
        ...

    @abstractmethod
    async def get_balance(self, address: Pubkey) -> int:
        """Lamports held. Raises ResourceNotFoundError when the ledger does not know the account."""
        ...

    @abstractmethod
    async def get_token_accounts_by_owner(self, owner: Pubkey) -> List[TokenHolding]:
        ...

    @abstractmethod
    async def send_raw_transaction(self, raw: bytes, opts: SendOptions) -> str:
        """
        Broadcasts a signed, serialized transaction and returns its signature.
        Raises SubmissionRejectedError when the node refuses it.
        """
        ...

    @abstractmethod
    async def get_transaction_status(self, signature: str) -> TransactionStatus:
        ...

    async def close(self) -> None:
        pass
