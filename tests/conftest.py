"""
Shared fixtures: an in-process ledger fake and SPL account byte builders.
"""

import asyncio
import base64
from typing import Dict, List, Optional

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from wallet_backend.core.exceptions import ResourceNotFoundError
from wallet_backend.core.instruction_builder import InstructionBuilder
from wallet_backend.core.layouts import MINT_LAYOUT, TOKEN_ACCOUNT_LAYOUT
from wallet_backend.core.ledger import (
    AccountFound,
    AccountInfo,
    AccountLookup,
    AccountNotFound,
    LedgerClient,
    SendOptions,
    TokenHolding,
    TransactionStatus,
)
from wallet_backend.core.pubkeys import SolanaProgramAddresses
from wallet_backend.transfers.assets import StaticAssetDirectory
from wallet_backend.transfers.models import AssetInfo
from wallet_backend.transfers.repository import InMemoryTradeRepository


# ============================================================
# SPL ACCOUNT DATA
# ============================================================

def build_mint_data(decimals: int, is_initialized: bool = True) -> bytes:
    return MINT_LAYOUT.build({
        "mint_authority_option": 0,
        "mint_authority": bytes(32),
        "supply": 1_000_000,
        "decimals": decimals,
        "is_initialized": is_initialized,
        "freeze_authority_option": 0,
        "freeze_authority": bytes(32),
    })


def build_token_account_data(mint: Pubkey, owner: Pubkey, amount: int = 0) -> bytes:
    return TOKEN_ACCOUNT_LAYOUT.build({
        "mint": bytes(mint),
        "owner": bytes(owner),
        "amount": amount,
        "delegate_option": 0,
        "delegate": bytes(32),
        "state": 1,
        "is_native_option": 0,
        "is_native": 0,
        "delegated_amount": 0,
        "close_authority_option": 0,
        "close_authority": bytes(32),
    })


def sign_unsigned(unsigned_b64: str, *signers: Keypair) -> str:
    unsigned = Transaction.from_bytes(base64.b64decode(unsigned_b64))
    signed = Transaction(list(signers), unsigned.message, unsigned.message.recent_blockhash)
    return base64.b64encode(bytes(signed)).decode("ascii")


# ============================================================
# LEDGER FAKE
# ============================================================

class FakeLedgerClient(LedgerClient):
    """LedgerClient backed by dicts. Records every call for assertions."""

    def __init__(self):
        self.accounts: Dict[Pubkey, AccountLookup] = {}
        self.balances: Dict[Pubkey, int] = {}
        self.unknown_accounts: set = set()
        self.token_holdings: Dict[Pubkey, List[TokenHolding]] = {}
        self.token_error: Optional[Exception] = None
        self.token_delay: float = 0.0
        self.statuses: Dict[str, TransactionStatus] = {}
        self.status_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.blockhash_error: Optional[Exception] = None
        self.fixed_blockhash: Optional[Hash] = None
        self.sent: List[bytes] = []
        self.send_options: List[SendOptions] = []
        self.status_calls: List[str] = []
        self.account_calls: List[Pubkey] = []
        self.closed = False

    # --- setup helpers ---

    def add_mint(self, mint: Pubkey, decimals: int) -> None:
        self.accounts[mint] = AccountFound(AccountInfo(
            address=mint,
            owner=SolanaProgramAddresses.TOKEN_PROGRAM_ID,
            lamports=1_461_600,
            data=build_mint_data(decimals),
        ))

    def add_token_account(self, owner: Pubkey, mint: Pubkey, amount: int = 0) -> Pubkey:
        ata = InstructionBuilder.get_associated_token_address(owner, mint)
        self.accounts[ata] = AccountFound(AccountInfo(
            address=ata,
            owner=SolanaProgramAddresses.TOKEN_PROGRAM_ID,
            lamports=2_039_280,
            data=build_token_account_data(mint, owner, amount),
        ))
        return ata

    # --- LedgerClient ---

    async def get_account_info(self, address: Pubkey) -> AccountLookup:
        self.account_calls.append(address)
        return self.accounts.get(address, AccountNotFound(address=address))

    async def get_latest_blockhash(self) -> Hash:
        if self.blockhash_error:
            raise self.blockhash_error
        if self.fixed_blockhash is not None:
            return self.fixed_blockhash
        return Hash.new_unique()

    async def get_balance(self, address: Pubkey) -> int:
        if address in self.unknown_accounts:
            raise ResourceNotFoundError(f"account not found: {address}")
        return self.balances.get(address, 0)

    async def get_token_accounts_by_owner(self, owner: Pubkey) -> List[TokenHolding]:
        if self.token_delay:
            await asyncio.sleep(self.token_delay)
        if self.token_error:
            raise self.token_error
        return list(self.token_holdings.get(owner, []))

    async def send_raw_transaction(self, raw: bytes, opts: SendOptions) -> str:
        self.sent.append(raw)
        self.send_options.append(opts)
        if self.send_error:
            raise self.send_error
        return str(Transaction.from_bytes(raw).signatures[0])

    async def get_transaction_status(self, signature: str) -> TransactionStatus:
        self.status_calls.append(signature)
        if self.status_error:
            raise self.status_error
        return self.statuses.get(signature, TransactionStatus(signature=signature))

    async def close(self) -> None:
        self.closed = True


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def repository() -> InMemoryTradeRepository:
    return InMemoryTradeRepository()


@pytest.fixture
def sender() -> Keypair:
    return Keypair()


@pytest.fixture
def recipient() -> Keypair:
    return Keypair()


@pytest.fixture
def mint() -> Pubkey:
    # Mints are regular accounts; any unique key works
    return Keypair().pubkey()


@pytest.fixture
def usdc_like(mint) -> AssetInfo:
    return AssetInfo(internal_ref="usdc", identifier=str(mint), symbol="USDC")


@pytest.fixture
def assets(usdc_like) -> StaticAssetDirectory:
    return StaticAssetDirectory([usdc_like])
