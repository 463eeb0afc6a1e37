#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Adapter HTTP vers un serveur Immich.
Liste les assets (recherche par métadonnées, paginée) et met à jour leur position.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from geotagger.core.models.geotag_models import AssetRef
from geotagger.core.ports.asset_repository import AssetRepository
from geotagger.domain.errors import AssetUpdateError, FailureKind, RepositoryError
from geotagger.domain.gps_types import Coordinate


@dataclass
class ImmichConfig:
    server: str
    api_key: str
    page: int = 1
    max_pages: int = 1
    page_size: int = 250
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    # Filtre serveur "country: null" = assets sans localisation
    without_location: bool = False
    timeout_s: float = 30.0

    @property
    def api_url(self) -> str:
        return f"{self.server.rstrip('/')}/api"


def failure_kind_for_status(status_code: int) -> FailureKind:
    if status_code == 404:
        return FailureKind.NOT_FOUND
    if status_code in (401, 403):
        return FailureKind.PERMISSION_DENIED
    if status_code == 429:
        return FailureKind.RATE_LIMITED
    if 400 <= status_code < 500:
        return FailureKind.REJECTED
    return FailureKind.NETWORK


def failure_kind_for_exception(exc: requests.RequestException) -> FailureKind:
    if isinstance(exc, requests.Timeout):
        return FailureKind.TIMEOUT
    if exc.response is not None:
        return failure_kind_for_status(exc.response.status_code)
    return FailureKind.NETWORK


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Horodatage illisible ignoré: {value!r}")
        return None


def asset_from_dto(item: Dict[str, Any]) -> AssetRef:
    exif = item.get("exifInfo") or {}
    latitude = exif.get("latitude")
    longitude = exif.get("longitude")
    has_lat = latitude is not None
    has_lon = longitude is not None

    return AssetRef(
        id=item["id"],
        owner_id=item.get("ownerId", ""),
        capture_timestamp=parse_timestamp(exif.get("dateTimeOriginal")),
        has_location=has_lat and has_lon,
        partial_location=has_lat != has_lon,
        file_name=item.get("originalFileName"),
    )


class ImmichAssetRepository(AssetRepository):
    """
    Accès à l'API Immich via une session requests authentifiée (x-api-key).
    """

    def __init__(self, cfg: ImmichConfig, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.sess = session or requests.Session()
        self.sess.headers.update({"x-api-key": cfg.api_key, "Accept": "application/json"})

    def list_assets(self, owner_id: Optional[str] = None) -> list[AssetRef]:
        assets: List[AssetRef] = []
        page: Optional[int] = self.cfg.page
        fetched_pages = 0

        while page is not None and fetched_pages < self.cfg.max_pages:
            payload: Dict[str, Any] = {
                "page": page,
                "size": self.cfg.page_size,
                "withExif": True,
                "make": self.cfg.camera_make,
                "model": self.cfg.camera_model,
            }
            if self.cfg.without_location:
                payload["country"] = None

            try:
                r = self.sess.post(
                    f"{self.cfg.api_url}/search/metadata",
                    json=payload,
                    timeout=self.cfg.timeout_s,
                )
                r.raise_for_status()
                body = r.json()
            except requests.RequestException as exc:
                raise RepositoryError(
                    f"Impossible de récupérer les assets (page {page}): {exc}",
                    failure_kind_for_exception(exc),
                ) from exc
            except ValueError as exc:
                raise RepositoryError(f"Réponse JSON invalide (page {page})", FailureKind.NETWORK) from exc

            result = body.get("assets") or {}
            items = result.get("items") or []
            for item in items:
                asset = asset_from_dto(item)
                if owner_id is None or asset.owner_id == owner_id:
                    assets.append(asset)

            fetched_pages += 1
            logger.debug(f"Page {page}: {len(items)} asset(s)")

            next_page = result.get("nextPage")
            page = int(next_page) if next_page else None

        return assets

    def update_location(self, asset_id: str, coordinate: Coordinate, timeout: float) -> None:
        try:
            r = self.sess.put(
                f"{self.cfg.api_url}/assets/{asset_id}",
                json={"latitude": coordinate.latitude, "longitude": coordinate.longitude},
                timeout=timeout,
            )
        except requests.RequestException as exc:
            raise AssetUpdateError(str(exc), failure_kind_for_exception(exc), asset_id) from exc

        if not r.ok:
            raise AssetUpdateError(
                f"HTTP {r.status_code}: {r.text[:200]}",
                failure_kind_for_status(r.status_code),
                asset_id,
            )

    def asset_url(self, asset_id: str) -> str:
        return f"{self.cfg.server.rstrip('/')}/photos/{asset_id}"
