# wallet_backend/core/token_accounts.py
"""
Associated token account resolution.

The ATA address is a pure function of (owner, mint). Whether it must be created
is decided from chain state, and a failed lookup is never read as "missing".
"""

from dataclasses import dataclass, field
from typing import List

from construct import ConstructError
from solders.instruction import Instruction
from solders.pubkey import Pubkey

from wallet_backend.core.constants import TOKEN_ACCOUNT_SIZE
from wallet_backend.core.exceptions import InvalidTokenAccountError, TransientNetworkError
from wallet_backend.core.instruction_builder import InstructionBuilder
from wallet_backend.core.layouts import TOKEN_ACCOUNT_LAYOUT
from wallet_backend.core.ledger import (
    AccountFound,
    AccountInfo,
    AccountLookupFailed,
    AccountNotFound,
    LedgerClient,
)
from wallet_backend.core.pubkeys import SolanaProgramAddresses
from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AccountProvisioningPlan:
    account_address: Pubkey
    creation_instructions: List[Instruction] = field(default_factory=list)

    @property
    def needs_creation(self) -> bool:
        return bool(self.creation_instructions)


class TokenAccountResolver:
    def __init__(self, ledger: LedgerClient):
        self.ledger = ledger

    @staticmethod
    def derive_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
        return InstructionBuilder.get_associated_token_address(owner, mint)

    async def resolve(self, owner: Pubkey, mint: Pubkey, payer: Pubkey) -> AccountProvisioningPlan:
        """
        Returns the owner's ATA for `mint` and the instructions (zero or one)
        needed to create it, paid for by `payer`.

        Raises:
            TransientNetworkError: the account lookup itself failed.
            InvalidTokenAccountError: an account exists at the address but is not
                a token account for this owner and mint.
        """
        ata = self.derive_address(owner, mint)
        lookup = await self.ledger.get_account_info(ata)

        if isinstance(lookup, AccountLookupFailed):
            raise TransientNetworkError(f"failed to check token account {ata}: {lookup.reason}")

        if isinstance(lookup, AccountNotFound):
            logger.debug(f"ATA {ata} for owner {owner} / mint {mint} not found, scheduling creation.")
            return self._creation_plan(ata, owner, mint, payer)

        if isinstance(lookup, AccountFound):
            # An empty slot still reports the System Program as owner
            if lookup.account.owner == SolanaProgramAddresses.SYSTEM_PROGRAM_ID:
                logger.debug(f"ATA {ata} is an empty system account, scheduling creation.")
                return self._creation_plan(ata, owner, mint, payer)
            self._validate_token_account(lookup.account, owner, mint)
            return AccountProvisioningPlan(account_address=ata)

        raise TypeError(f"Unexpected account lookup result: {lookup!r}")

    @staticmethod
    def _creation_plan(ata: Pubkey, owner: Pubkey, mint: Pubkey, payer: Pubkey) -> AccountProvisioningPlan:
        return AccountProvisioningPlan(
            account_address=ata,
            creation_instructions=[
                InstructionBuilder.get_create_ata_instruction(payer, owner, mint, ata_pubkey=ata)
            ],
        )

    @staticmethod
    def _validate_token_account(account: AccountInfo, owner: Pubkey, mint: Pubkey) -> None:
        if account.owner != SolanaProgramAddresses.TOKEN_PROGRAM_ID:
            raise InvalidTokenAccountError(
                f"account {account.address} is owned by {account.owner}, not the token program"
            )
        if len(account.data) != TOKEN_ACCOUNT_SIZE:
            raise InvalidTokenAccountError(
                f"account {account.address} has invalid token account size {len(account.data)}"
            )
        try:
            parsed = TOKEN_ACCOUNT_LAYOUT.parse(account.data)
        except ConstructError as e:
            raise InvalidTokenAccountError(f"failed to decode token account {account.address}: {e}") from e

        if Pubkey.from_bytes(parsed.mint) != mint:
            raise InvalidTokenAccountError(f"token account {account.address} mint mismatch")
        if Pubkey.from_bytes(parsed.owner) != owner:
            raise InvalidTokenAccountError(f"token account {account.address} owner mismatch")
