# wallet_backend/core/constants.py

from decimal import Decimal

# --- Native coin ---
LAMPORTS_PER_SOL = 1_000_000_000
SOL_DECIMALS = 9
SOL_SYMBOL = "SOL"

# Identifier under which native SOL balances are reported (System Program id).
NATIVE_SOL_IDENTIFIER = "11111111111111111111111111111111"
# Wrapped SOL mint. Transfer requests may name either this or "" for native SOL.
WRAPPED_SOL_MINT = "So11111111111111111111111111111111111111112"

# --- Fees ---
# Base fee for a single-signature transaction. Reported as-is, not simulated.
LAMPORTS_PER_SIGNATURE = 5000
NETWORK_FEE_SOL = Decimal(LAMPORTS_PER_SIGNATURE) / Decimal(LAMPORTS_PER_SOL)

# --- Instruction limits ---
# Transfer and TransferChecked carry the raw amount as a u64
MAX_RAW_AMOUNT = 2 ** 64 - 1

# --- SPL account sizes ---
MINT_ACCOUNT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165

# --- Transaction hash bounds (base58 encoded 64-byte signatures) ---
MIN_SIGNATURE_LENGTH = 64
MAX_SIGNATURE_LENGTH = 88
