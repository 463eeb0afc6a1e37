#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Recherche de la position GPS à un instant donné dans une Timeline.
Lecture seule: sûr en accès concurrent sur une même Timeline.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from geotagger.core.models.geotag_models import (
    MatchQuality,
    Matched,
    MatchResult,
    NoCoverage,
    NoCoverageReason,
)
from geotagger.core.timeline import Timeline
from geotagger.domain.gps_types import Coordinate, TrackPoint


def locate(timeline: Timeline, query: datetime, max_gap: timedelta) -> MatchResult:
    """
    Retourne la position estimée à `query`, ou la raison de l'absence de couverture.

    Args:
        timeline: Timeline fusionnée
        query: Horodatage cible (timezone-aware)
        max_gap: Écart maximal entre deux points encadrants pour interpoler

    Returns:
        Matched (EXACT ou INTERPOLATED) ou NoCoverage
    """
    if query.tzinfo is None or query.utcoffset() is None:
        raise ValueError(f"Horodatage sans fuseau: {query.isoformat()}")

    if timeline.is_empty():
        return NoCoverage(NoCoverageReason.EMPTY_TIMELINE)

    before, after = timeline.surrounding(query)

    if before is not None and before.timestamp == query:
        return Matched(before.coordinate, MatchQuality.EXACT)
    if before is None:
        return NoCoverage(NoCoverageReason.BEFORE_FIRST_POINT)
    if after is None:
        return NoCoverage(NoCoverageReason.AFTER_LAST_POINT)

    gap = after.timestamp - before.timestamp
    if gap > max_gap:
        return NoCoverage(NoCoverageReason.GAP_TOO_LARGE, gap.total_seconds())

    return Matched(interpolate(before, after, query), MatchQuality.INTERPOLATED, gap.total_seconds())


def interpolate(p1: TrackPoint, p2: TrackPoint, target_time: datetime) -> Coordinate:
    """
    Interpole linéairement entre deux points GPS.

    La longitude suit le plus court chemin angulaire (passage de l'antiméridien).
    L'altitude n'est interpolée que si les deux points en ont une.
    """
    total_seconds = (p2.timestamp - p1.timestamp).total_seconds()
    if total_seconds == 0:
        return p1.coordinate

    ratio = (target_time - p1.timestamp).total_seconds() / total_seconds

    lat = p1.latitude + (p2.latitude - p1.latitude) * ratio
    lon = p1.longitude + _longitude_delta(p1.longitude, p2.longitude) * ratio
    if lon > 180.0:
        lon -= 360.0
    elif lon < -180.0:
        lon += 360.0

    elev: Optional[float] = None
    if p1.elevation is not None and p2.elevation is not None:
        elev = p1.elevation + (p2.elevation - p1.elevation) * ratio

    return Coordinate(latitude=lat, longitude=lon, elevation=elev)


def _longitude_delta(lon1: float, lon2: float) -> float:
    delta = lon2 - lon1
    if delta > 180.0:
        delta -= 360.0
    elif delta < -180.0:
        delta += 360.0
    return delta
