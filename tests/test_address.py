"""
Address and signature validation tests.
"""

import pytest
from solders.keypair import Keypair
from solders.signature import Signature

from wallet_backend.core.address import is_valid_transaction_hash, parse_address, parse_wallet_address
from wallet_backend.core.exceptions import InvalidInputError
from wallet_backend.core.instruction_builder import InstructionBuilder


class TestParseAddress:
    """Tests for parse_address."""

    def test_valid_address(self):
        """A base58 key parses to the same Pubkey."""
        pubkey = Keypair().pubkey()
        assert parse_address(str(pubkey)) == pubkey

    def test_surrounding_whitespace_is_ignored(self):
        pubkey = Keypair().pubkey()
        assert parse_address(f"  {pubkey} ") == pubkey

    @pytest.mark.parametrize("value", ["", "   ", "not-base58-0OIl", "abc", None])
    def test_malformed_address_rejected(self, value):
        """Malformed input raises InvalidInputError naming the label."""
        with pytest.raises(InvalidInputError, match="invalid recipient address"):
            parse_address(value, "recipient")


class TestParseWalletAddress:
    """Tests for the on-curve wallet check."""

    def test_keypair_address_accepted(self):
        pubkey = Keypair().pubkey()
        assert parse_wallet_address(str(pubkey)) == pubkey

    def test_program_derived_address_rejected(self):
        """PDAs (e.g. associated token accounts) are off-curve."""
        ata = InstructionBuilder.get_associated_token_address(Keypair().pubkey(), Keypair().pubkey())
        with pytest.raises(InvalidInputError, match="not on the ed25519 curve"):
            parse_wallet_address(str(ata))


class TestTransactionHash:
    """Tests for is_valid_transaction_hash."""

    def test_real_signature_is_valid(self):
        kp = Keypair()
        sig = kp.sign_message(b"transfer")
        assert is_valid_transaction_hash(str(sig))

    def test_default_signature_is_valid_format(self):
        assert is_valid_transaction_hash(str(Signature.default()))

    @pytest.mark.parametrize("value", ["", "short", "0" * 88, "l" * 70, None])
    def test_invalid_hashes(self, value):
        assert not is_valid_transaction_hash(value)
