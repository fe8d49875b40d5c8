# wallet_backend/core/address.py
"""
Parsing and validation of base58 account identifiers and transaction signatures.
All checks here are local; nothing touches the network.
"""

import base58
from solders.pubkey import Pubkey

from wallet_backend.core.constants import MAX_SIGNATURE_LENGTH, MIN_SIGNATURE_LENGTH
from wallet_backend.core.exceptions import InvalidInputError


def parse_address(value: str, label: str = "account") -> Pubkey:
    """Parses a base58 account identifier, raising InvalidInputError on malformed input."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"invalid {label} address: empty")
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as e:
        raise InvalidInputError(f"invalid {label} address: {value}") from e


def parse_wallet_address(value: str, label: str = "wallet") -> Pubkey:
    """
    Parses an address that must belong to a keypair, i.e. lie on the ed25519 curve.
    Program-derived addresses are rejected.
    """
    pubkey = parse_address(value, label)
    if not pubkey.is_on_curve():
        raise InvalidInputError(f"invalid {label} address: {value} is not on the ed25519 curve")
    return pubkey


def is_valid_transaction_hash(value: str) -> bool:
    if not isinstance(value, str):
        return False
    if not MIN_SIGNATURE_LENGTH <= len(value) <= MAX_SIGNATURE_LENGTH:
        return False
    try:
        return len(base58.b58decode(value)) == 64
    except ValueError:
        return False
