# wallet_backend/monitoring/__init__.py

from .confirmation_watcher import ConfirmationWatcher

__all__ = [
    "ConfirmationWatcher",
]
