# wallet_backend/transfers/assets.py

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from wallet_backend.core.constants import SOL_SYMBOL, WRAPPED_SOL_MINT
from wallet_backend.core.exceptions import AssetNotFoundError
from wallet_backend.transfers.models import AssetInfo


class AssetDirectory(ABC):
    """Maps chain identifiers (mint addresses) to the backend's asset records."""

    @abstractmethod
    async def get_asset_by_identifier(self, identifier: str) -> AssetInfo:
        """Raises AssetNotFoundError for unknown identifiers."""
        ...

    async def get_native_asset(self) -> AssetInfo:
        return await self.get_asset_by_identifier(WRAPPED_SOL_MINT)


class StaticAssetDirectory(AssetDirectory):
    def __init__(self, assets: Optional[Iterable[AssetInfo]] = None):
        self._assets: Dict[str, AssetInfo] = {}
        self.register(AssetInfo(internal_ref="sol", identifier=WRAPPED_SOL_MINT, symbol=SOL_SYMBOL))
        for asset in assets or []:
            self.register(asset)

    def register(self, asset: AssetInfo) -> None:
        self._assets[asset.identifier] = asset

    async def get_asset_by_identifier(self, identifier: str) -> AssetInfo:
        asset = self._assets.get(identifier)
        if asset is None:
            raise AssetNotFoundError(f"asset not found: {identifier}")
        return asset
