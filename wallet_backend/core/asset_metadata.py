# wallet_backend/core/asset_metadata.py

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, localcontext

from construct import ConstructError
from solders.pubkey import Pubkey

from wallet_backend.core.constants import MINT_ACCOUNT_SIZE
from wallet_backend.core.exceptions import (
    AssetMetadataError,
    InvalidInputError,
    ResourceNotFoundError,
    TransientNetworkError,
)
from wallet_backend.core.layouts import MINT_LAYOUT
from wallet_backend.core.ledger import AccountFound, AccountLookupFailed, AccountNotFound, LedgerClient
from wallet_backend.core.pubkeys import SolanaProgramAddresses
from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)

# Enough digits for u64 raw amounts at any decimals value
_DECIMAL_PRECISION = 60


def to_raw_units(amount: Decimal, decimals: int) -> int:
    """round(amount * 10**decimals), half-up, without float arithmetic."""
    if not 0 <= decimals <= 255:
        raise InvalidInputError(f"invalid decimals: {decimals}")
    try:
        with localcontext() as ctx:
            ctx.prec = _DECIMAL_PRECISION
            scaled = Decimal(amount).scaleb(decimals)
            return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidInputError(f"invalid amount: {amount}") from e


def from_raw_units(raw: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return Decimal(raw).scaleb(-decimals)


class AssetMetadataResolver:
    def __init__(self, ledger: LedgerClient):
        self.ledger = ledger

    async def decimals_of(self, mint: Pubkey) -> int:
        """Reads `decimals` from the on-chain mint account. Never falls back to a default."""
        lookup = await self.ledger.get_account_info(mint)

        if isinstance(lookup, AccountLookupFailed):
            raise TransientNetworkError(f"failed to get mint account {mint}: {lookup.reason}")
        if isinstance(lookup, AccountNotFound):
            raise ResourceNotFoundError(f"mint account not found: {mint}")
        if not isinstance(lookup, AccountFound):
            raise TypeError(f"Unexpected account lookup result: {lookup!r}")

        if lookup.account.owner != SolanaProgramAddresses.TOKEN_PROGRAM_ID:
            raise AssetMetadataError(
                f"account {mint} is not a mint: owned by {lookup.account.owner}, "
                f"expected {SolanaProgramAddresses.TOKEN_PROGRAM_ID}"
            )

        data = lookup.account.data
        if len(data) < MINT_ACCOUNT_SIZE:
            raise AssetMetadataError(f"mint account {mint} data too short ({len(data)} bytes)")
        try:
            parsed = MINT_LAYOUT.parse(data[:MINT_ACCOUNT_SIZE])
        except ConstructError as e:
            logger.error(f"Borsh construct error decoding mint {mint}: {e}")
            raise AssetMetadataError(f"failed to decode mint account {mint}: {e}") from e

        if not parsed.is_initialized:
            raise AssetMetadataError(f"mint account {mint} is not initialized")
        return parsed.decimals
