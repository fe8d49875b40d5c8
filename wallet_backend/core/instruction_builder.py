# wallet_backend/core/instruction_builder.py
from typing import Optional
from solders.pubkey import Pubkey
from solders.instruction import Instruction, AccountMeta
from solders.system_program import TransferParams, transfer
from spl.token.instructions import TransferCheckedParams, transfer_checked

from wallet_backend.core.pubkeys import SolanaProgramAddresses


class InstructionBuilder:
    @staticmethod
    def get_associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
        """Calculates the Associated Token Account address for a given owner and mint."""
        pda, _bump_seed = Pubkey.find_program_address(
            [bytes(owner), bytes(SolanaProgramAddresses.TOKEN_PROGRAM_ID), bytes(mint)],
            SolanaProgramAddresses.ASSOCIATED_TOKEN_ACCOUNT_PROGRAM_ID
        )
        return pda

    @staticmethod
    def get_create_ata_instruction(
            payer: Pubkey,
            owner: Pubkey,
            mint: Pubkey,
            ata_pubkey: Optional[Pubkey] = None
    ) -> Instruction:
        """
        Generates the instruction to create an Associated Token Account.
        The caller is responsible for checking that the account does not exist yet.
        """
        associated_token_address = ata_pubkey or InstructionBuilder.get_associated_token_address(owner, mint)

        return Instruction(
            program_id=SolanaProgramAddresses.ASSOCIATED_TOKEN_ACCOUNT_PROGRAM_ID,
            accounts=[
                AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
                AccountMeta(pubkey=associated_token_address, is_signer=False, is_writable=True),
                AccountMeta(pubkey=owner, is_signer=False, is_writable=False),
                AccountMeta(pubkey=mint, is_signer=False, is_writable=False),
                AccountMeta(pubkey=SolanaProgramAddresses.SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
                AccountMeta(pubkey=SolanaProgramAddresses.TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
                AccountMeta(pubkey=SolanaProgramAddresses.RENT_SYSVAR_PUBKEY, is_signer=False, is_writable=False),
            ],
            data=b''
        )

    @staticmethod
    def build_native_transfer_instruction(
            from_pubkey: Pubkey,
            to_pubkey: Pubkey,
            lamports: int
    ) -> Instruction:
        """System Program transfer of lamports between two wallets."""
        return transfer(TransferParams(from_pubkey=from_pubkey, to_pubkey=to_pubkey, lamports=lamports))

    @staticmethod
    def build_transfer_checked_instruction(
            source_ata: Pubkey,
            mint: Pubkey,
            destination_ata: Pubkey,
            owner: Pubkey,
            amount_raw: int,
            decimals: int
    ) -> Instruction:
        """SPL Token TransferChecked; the program rejects it if `decimals` does not match the mint."""
        return transfer_checked(
            TransferCheckedParams(
                program_id=SolanaProgramAddresses.TOKEN_PROGRAM_ID,
                source=source_ata,
                mint=mint,
                dest=destination_ata,
                owner=owner,
                amount=amount_raw,
                decimals=decimals,
            )
        )
