# wallet_backend/core/layouts.py

# --- Solana/Borsh Imports ---
from borsh_construct import CStruct, U8, U32, U64, Bool
from construct import Bytes

# SPL Token Mint account, 82 bytes.
# COption<Pubkey> is encoded as a u32 tag followed by the 32-byte key.
MINT_LAYOUT = CStruct(
    "mint_authority_option" / U32,
    "mint_authority" / Bytes(32),
    "supply" / U64,
    "decimals" / U8,
    "is_initialized" / Bool,
    "freeze_authority_option" / U32,
    "freeze_authority" / Bytes(32),
)

# SPL Token account, 165 bytes.
TOKEN_ACCOUNT_LAYOUT = CStruct(
    "mint" / Bytes(32),
    "owner" / Bytes(32),
    "amount" / U64,
    "delegate_option" / U32,
    "delegate" / Bytes(32),
    "state" / U8,  # 0 = uninitialized, 1 = initialized, 2 = frozen
    "is_native_option" / U32,
    "is_native" / U64,
    "delegated_amount" / U64,
    "close_authority_option" / U32,
    "close_authority" / Bytes(32),
)
