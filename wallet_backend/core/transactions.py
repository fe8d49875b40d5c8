# wallet_backend/core/transactions.py

import base64
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from wallet_backend.core.asset_metadata import AssetMetadataResolver, from_raw_units, to_raw_units
from wallet_backend.core.constants import LAMPORTS_PER_SIGNATURE, MAX_RAW_AMOUNT, SOL_DECIMALS
from wallet_backend.core.exceptions import BuildTransactionError, InvalidInputError
from wallet_backend.core.instruction_builder import InstructionBuilder
from wallet_backend.core.ledger import LedgerClient
from wallet_backend.core.token_accounts import TokenAccountResolver
from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class UnsignedTransaction:
    transaction: Transaction
    serialized: str  # base64 of the wire bytes
    instruction_count: int
    fee_lamports: int = LAMPORTS_PER_SIGNATURE
    creation_count: int = 0

    @property
    def fee_sol(self) -> Decimal:
        return from_raw_units(self.fee_lamports, SOL_DECIMALS)


def get_transaction_fee(num_signatures: int = 1) -> int:
    """Fixed base fee in lamports. Priority fees are not added to transfers."""
    return LAMPORTS_PER_SIGNATURE * num_signatures


def serialize_transaction(tx: Transaction) -> str:
    return base64.b64encode(bytes(tx)).decode("ascii")


def check_raw_amount(amount_raw: int, amount: Decimal) -> int:
    if amount_raw > MAX_RAW_AMOUNT:
        raise InvalidInputError(f"amount {amount} exceeds the maximum transferable raw amount ({MAX_RAW_AMOUNT})")
    return amount_raw


class TransactionAssembler:
    def __init__(
            self,
            ledger: LedgerClient,
            token_accounts: Optional[TokenAccountResolver] = None,
            asset_metadata: Optional[AssetMetadataResolver] = None,
    ):
        self.ledger = ledger
        self.token_accounts = token_accounts or TokenAccountResolver(ledger)
        self.asset_metadata = asset_metadata or AssetMetadataResolver(ledger)

    async def build(self, payer: Pubkey, instructions: List[Instruction], creation_count: int = 0) -> UnsignedTransaction:
        """Compiles `instructions` into an unsigned legacy transaction against a fresh blockhash."""
        if not instructions:
            raise BuildTransactionError("cannot build a transaction without instructions")

        blockhash = await self.ledger.get_latest_blockhash()
        message = Message.new_with_blockhash(instructions, payer, blockhash)
        tx = Transaction.new_unsigned(message)

        serialized = serialize_transaction(tx)
        logger.debug(f"Built unsigned tx: {len(instructions)} instructions, payer {payer}, blockhash {blockhash}")
        return UnsignedTransaction(
            transaction=tx,
            serialized=serialized,
            instruction_count=len(instructions),
            fee_lamports=get_transaction_fee(),
            creation_count=creation_count,
        )

    async def build_native_transfer(self, sender: Pubkey, recipient: Pubkey, amount: Decimal) -> UnsignedTransaction:
        lamports = to_raw_units(amount, SOL_DECIMALS)
        if lamports <= 0:
            raise InvalidInputError(f"amount {amount} is below one lamport")
        check_raw_amount(lamports, amount)
        ix = InstructionBuilder.build_native_transfer_instruction(sender, recipient, lamports)
        logger.info(f"Assembling native transfer: {lamports} lamports {sender} -> {recipient}")
        return await self.build(sender, [ix])

    async def build_token_transfer(
            self,
            sender: Pubkey,
            recipient: Pubkey,
            mint: Pubkey,
            amount: Decimal,
    ) -> UnsignedTransaction:
        """
        SPL transfer: [create recipient ATA]? + TransferChecked.

        The sender's ATA must already exist; a sender without one holds none of the token.
        The recipient's ATA is created on demand, paid for by the sender.
        """
        source_plan = await self.token_accounts.resolve(sender, mint, sender)
        if source_plan.needs_creation:
            raise InvalidInputError(
                f"source token account does not exist for mint {mint}: sender must hold tokens before sending"
            )

        dest_plan = await self.token_accounts.resolve(recipient, mint, sender)

        decimals = await self.asset_metadata.decimals_of(mint)
        amount_raw = to_raw_units(amount, decimals)
        if amount_raw <= 0:
            raise InvalidInputError(f"amount {amount} is below one base unit (decimals={decimals})")
        check_raw_amount(amount_raw, amount)

        instructions: List[Instruction] = list(dest_plan.creation_instructions)
        instructions.append(
            InstructionBuilder.build_transfer_checked_instruction(
                source_plan.account_address,
                mint,
                dest_plan.account_address,
                sender,
                amount_raw,
                decimals,
            )
        )
        logger.info(
            f"Assembling token transfer: {amount_raw} raw units of {mint} "
            f"{sender} -> {recipient} (create recipient ATA: {dest_plan.needs_creation})"
        )
        return await self.build(sender, instructions, creation_count=len(dest_plan.creation_instructions))
