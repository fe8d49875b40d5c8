# wallet_backend/core/__init__.py

# Import directly available classes/modules via relative imports
from .client import SolanaClient
from .ledger import LedgerClient, SendOptions, TransactionStatus
from .transactions import TransactionAssembler, UnsignedTransaction, get_transaction_fee
from .instruction_builder import InstructionBuilder
from .token_accounts import AccountProvisioningPlan, TokenAccountResolver
from .asset_metadata import AssetMetadataResolver, from_raw_units, to_raw_units
from .pubkeys import SolanaProgramAddresses

__all__ = [
    "SolanaClient",
    "LedgerClient",
    "SendOptions",
    "TransactionStatus",
    "TransactionAssembler",
    "UnsignedTransaction",
    "get_transaction_fee",
    "InstructionBuilder",
    "AccountProvisioningPlan",
    "TokenAccountResolver",
    "AssetMetadataResolver",
    "from_raw_units",
    "to_raw_units",
    "SolanaProgramAddresses",
]
