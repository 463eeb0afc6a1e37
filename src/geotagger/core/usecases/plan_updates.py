from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import pytz
from loguru import logger

from geotagger.core.matcher import locate
from geotagger.core.models.geotag_models import (
    AssetRef,
    GeotagConfig,
    Matched,
    SkipReason,
    UpdatePlanEntry,
)
from geotagger.core.timeline import Timeline


def normalize_capture_time(
    capture_time: datetime,
    camera_timezone: str = "UTC",
    time_offset: timedelta = timedelta(0),
) -> datetime:
    """
    Ramène l'heure de prise de vue à un instant UTC.

    Un horodatage naïf est interprété dans le fuseau de l'appareil photo,
    puis le décalage manuel est appliqué.
    """
    if capture_time.tzinfo is None:
        local_tz = pytz.timezone(camera_timezone)
        capture_time = local_tz.localize(capture_time)
    return (capture_time + time_offset).astimezone(timezone.utc)


def is_selected(asset: AssetRef, config: GeotagConfig) -> bool:
    """Filtres propriétaire / localisation manquante."""
    if config.owner_id is not None and asset.owner_id != config.owner_id:
        return False
    if config.only_missing_location:
        if asset.has_location:
            return False
        if asset.partial_location and not config.partial_location_eligible:
            return False
    return True


def plan_updates(
    assets: Sequence[AssetRef],
    timeline: Timeline,
    config: GeotagConfig,
) -> list[UpdatePlanEntry]:
    """
    Construit le plan de mise à jour, dans l'ordre des assets fournis.

    Les assets filtrés n'interrogent pas la Timeline; ils n'apparaissent dans
    le plan que si `config.audit_filtered` est actif.
    """
    def plan_one(asset: AssetRef) -> Optional[UpdatePlanEntry]:
        if not is_selected(asset, config):
            if config.audit_filtered:
                return UpdatePlanEntry(asset, skip_reason=SkipReason.FILTERED_OUT)
            return None
        return _match_one(asset, timeline, config)

    if config.plan_workers > 1 and len(assets) > 1:
        # Executor.map conserve l'ordre d'entrée
        with ThreadPoolExecutor(max_workers=config.plan_workers) as executor:
            entries = list(executor.map(plan_one, assets))
    else:
        entries = [plan_one(asset) for asset in assets]

    plan = [entry for entry in entries if entry is not None]
    pending = sum(1 for entry in plan if entry.is_pending)
    logger.info(f"Plan: {pending} asset(s) à localiser sur {len(assets)} examiné(s)")
    return plan


def _match_one(asset: AssetRef, timeline: Timeline, config: GeotagConfig) -> UpdatePlanEntry:
    if asset.capture_timestamp is None:
        logger.debug(f"Asset {asset.id}: pas d'heure de prise de vue")
        return UpdatePlanEntry(asset, skip_reason=SkipReason.MISSING_TIMESTAMP)

    query = normalize_capture_time(asset.capture_timestamp, config.camera_timezone, config.time_offset)
    outcome = locate(timeline, query, config.max_gap)

    if isinstance(outcome, Matched):
        logger.debug(
            f"Asset {asset.id} @ {query.isoformat()}: "
            f"{outcome.coordinate.latitude:.6f}, {outcome.coordinate.longitude:.6f} ({outcome.quality.value})"
        )
        return UpdatePlanEntry(asset, outcome=outcome)

    logger.debug(f"Asset {asset.id} @ {query.isoformat()}: hors couverture ({outcome.reason.value})")
    return UpdatePlanEntry(asset, outcome=outcome, skip_reason=SkipReason.NO_COVERAGE)
