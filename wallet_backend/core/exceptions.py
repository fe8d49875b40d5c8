# wallet_backend/core/exceptions.py

class WalletBackendError(Exception):
    """Base class for custom exceptions in this application."""
    pass

class InvalidInputError(WalletBackendError):
    """Malformed address, non-positive amount, unknown asset or bad signed payload."""
    pass

class AssetNotFoundError(InvalidInputError):
    """The asset directory has no entry for the requested identifier."""
    pass

class ResourceNotFoundError(WalletBackendError):
    """An on-chain account or mint does not exist."""
    pass

class TradeNotFoundError(ResourceNotFoundError):
    """No trade record matches the lookup key."""
    pass

class TransientNetworkError(WalletBackendError):
    """RPC timeout, transport failure or malformed response."""
    pass

class SubmissionRejectedError(WalletBackendError):
    """The ledger refused a signed transaction."""

    def __init__(self, message: str, trade_id: str = None):
        super().__init__(message)
        self.trade_id = trade_id

class BookkeepingError(WalletBackendError):
    """For trade persistence failures."""
    pass

class BuildTransactionError(WalletBackendError):
    """For errors during transaction construction."""
    pass

class AssetMetadataError(BuildTransactionError):
    """Mint account data is missing, short or not initialized."""
    pass

class InvalidTokenAccountError(BuildTransactionError):
    """An existing token account does not match the expected owner/mint."""
    pass
