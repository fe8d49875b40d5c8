"""
Unsigned transaction assembly tests.
"""

import base64
from decimal import Decimal

import pytest
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction

from wallet_backend.core.constants import LAMPORTS_PER_SIGNATURE, MAX_RAW_AMOUNT, NETWORK_FEE_SOL
from wallet_backend.core.exceptions import (
    BuildTransactionError,
    InvalidInputError,
    ResourceNotFoundError,
    TransientNetworkError,
)
from wallet_backend.core.pubkeys import SolanaProgramAddresses
from wallet_backend.core.transactions import TransactionAssembler, get_transaction_fee


def decode(serialized: str) -> Transaction:
    return Transaction.from_bytes(base64.b64decode(serialized))


class TestBuild:
    """Tests for TransactionAssembler.build."""

    @pytest.mark.asyncio
    async def test_empty_instruction_list_rejected(self, ledger, sender):
        with pytest.raises(BuildTransactionError):
            await TransactionAssembler(ledger).build(sender.pubkey(), [])

    @pytest.mark.asyncio
    async def test_blockhash_failure_propagates(self, ledger, sender, recipient):
        ledger.blockhash_error = TransientNetworkError("no blockhash")
        with pytest.raises(TransientNetworkError):
            await TransactionAssembler(ledger).build_native_transfer(
                sender.pubkey(), recipient.pubkey(), Decimal("1"))

    def test_fixed_fee(self):
        assert get_transaction_fee() == LAMPORTS_PER_SIGNATURE == 5000


class TestNativeTransfer:
    """Tests for native SOL transfers."""

    @pytest.mark.asyncio
    async def test_single_system_transfer(self, ledger, sender, recipient):
        unsigned = await TransactionAssembler(ledger).build_native_transfer(
            sender.pubkey(), recipient.pubkey(), Decimal("1.5"))

        assert unsigned.instruction_count == 1
        assert unsigned.fee_lamports == 5000
        assert unsigned.fee_sol == Decimal("0.000005")

        tx = decode(unsigned.serialized)
        assert tx.message.account_keys[0] == sender.pubkey()
        assert all(sig == Signature.default() for sig in tx.signatures)
        ix = tx.message.instructions[0]
        assert tx.message.account_keys[ix.program_id_index] == SYSTEM_PROGRAM_ID
        # System transfer: u32 discriminator 2, then u64 lamports
        assert ix.data[:4] == (2).to_bytes(4, "little")
        assert int.from_bytes(ix.data[4:12], "little") == 1_500_000_000

    @pytest.mark.asyncio
    async def test_serialization_is_stable(self, ledger, sender, recipient):
        unsigned = await TransactionAssembler(ledger).build_native_transfer(
            sender.pubkey(), recipient.pubkey(), Decimal("0.25"))
        assert base64.b64encode(bytes(decode(unsigned.serialized))).decode() == unsigned.serialized

    @pytest.mark.asyncio
    async def test_sub_lamport_amount_rejected(self, ledger, sender, recipient):
        with pytest.raises(InvalidInputError):
            await TransactionAssembler(ledger).build_native_transfer(
                sender.pubkey(), recipient.pubkey(), Decimal("0.0000000001"))

    @pytest.mark.asyncio
    async def test_amount_above_u64_rejected(self, ledger, sender, recipient):
        # 1e11 SOL is 1e20 lamports, past the u64 range of the transfer instruction
        with pytest.raises(InvalidInputError, match="exceeds the maximum"):
            await TransactionAssembler(ledger).build_native_transfer(
                sender.pubkey(), recipient.pubkey(), Decimal("100000000000"))

    @pytest.mark.asyncio
    async def test_fee_sol_follows_fee_lamports(self, ledger, sender, recipient):
        unsigned = await TransactionAssembler(ledger).build_native_transfer(
            sender.pubkey(), recipient.pubkey(), Decimal("1"))
        assert unsigned.fee_sol == NETWORK_FEE_SOL
        unsigned.fee_lamports = 10_000
        assert unsigned.fee_sol == Decimal("0.00001")


class TestTokenTransfer:
    """Tests for SPL token transfers."""

    @pytest.mark.asyncio
    async def test_creates_recipient_account_when_missing(self, ledger, sender, recipient, mint):
        ledger.add_mint(mint, decimals=6)
        ledger.add_token_account(sender.pubkey(), mint, amount=50_000_000)

        unsigned = await TransactionAssembler(ledger).build_token_transfer(
            sender.pubkey(), recipient.pubkey(), mint, Decimal("10.5"))

        assert unsigned.creation_count == 1
        assert unsigned.instruction_count == 2
        tx = decode(unsigned.serialized)
        keys = tx.message.account_keys
        create_ix, transfer_ix = tx.message.instructions
        assert keys[create_ix.program_id_index] == SolanaProgramAddresses.ASSOCIATED_TOKEN_ACCOUNT_PROGRAM_ID
        assert keys[transfer_ix.program_id_index] == SolanaProgramAddresses.TOKEN_PROGRAM_ID
        # TransferChecked: discriminator 12, u64 amount, u8 decimals
        assert transfer_ix.data[0] == 12
        assert int.from_bytes(transfer_ix.data[1:9], "little") == 10_500_000
        assert transfer_ix.data[9] == 6

    @pytest.mark.asyncio
    async def test_existing_recipient_account(self, ledger, sender, recipient, mint):
        ledger.add_mint(mint, decimals=6)
        ledger.add_token_account(sender.pubkey(), mint, amount=50_000_000)
        ledger.add_token_account(recipient.pubkey(), mint)

        unsigned = await TransactionAssembler(ledger).build_token_transfer(
            sender.pubkey(), recipient.pubkey(), mint, Decimal("10.5"))

        assert unsigned.creation_count == 0
        assert unsigned.instruction_count == 1

    @pytest.mark.asyncio
    async def test_missing_sender_account_rejected(self, ledger, sender, recipient, mint):
        ledger.add_mint(mint, decimals=6)
        with pytest.raises(InvalidInputError, match="source token account does not exist"):
            await TransactionAssembler(ledger).build_token_transfer(
                sender.pubkey(), recipient.pubkey(), mint, Decimal("1"))

    @pytest.mark.asyncio
    async def test_missing_mint_fails_loudly(self, ledger, sender, recipient, mint):
        ledger.add_token_account(sender.pubkey(), mint, amount=1)
        with pytest.raises(ResourceNotFoundError, match="mint account not found"):
            await TransactionAssembler(ledger).build_token_transfer(
                sender.pubkey(), recipient.pubkey(), mint, Decimal("1"))

    @pytest.mark.asyncio
    async def test_amount_above_u64_rejected(self, ledger, sender, recipient, mint):
        ledger.add_mint(mint, decimals=9)
        ledger.add_token_account(sender.pubkey(), mint, amount=1)
        with pytest.raises(InvalidInputError, match="exceeds the maximum"):
            await TransactionAssembler(ledger).build_token_transfer(
                sender.pubkey(), recipient.pubkey(), mint, Decimal("18446744073.709551616"))

    @pytest.mark.asyncio
    async def test_u64_max_is_accepted(self, ledger, sender, recipient, mint):
        ledger.add_mint(mint, decimals=0)
        ledger.add_token_account(sender.pubkey(), mint, amount=1)
        ledger.add_token_account(recipient.pubkey(), mint)

        unsigned = await TransactionAssembler(ledger).build_token_transfer(
            sender.pubkey(), recipient.pubkey(), mint, Decimal(MAX_RAW_AMOUNT))

        transfer_ix = decode(unsigned.serialized).message.instructions[-1]
        assert int.from_bytes(transfer_ix.data[1:9], "little") == MAX_RAW_AMOUNT
