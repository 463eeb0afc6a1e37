from __future__ import annotations

from typing import Optional, Protocol

from geotagger.core.models.geotag_models import AssetRef
from geotagger.domain.gps_types import Coordinate


class AssetRepository(Protocol):
    """Accès au serveur d'assets. Les deux opérations sont idempotentes."""

    def list_assets(self, owner_id: Optional[str] = None) -> list[AssetRef]: ...

    # Lève AssetUpdateError(kind) en cas d'échec
    def update_location(self, asset_id: str, coordinate: Coordinate, timeout: float) -> None: ...
