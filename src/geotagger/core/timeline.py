#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Timeline: fusion de plusieurs traces GPS en une séquence unique,
triée dans le temps et sans horodatage dupliqué.
"""

from __future__ import annotations

import bisect
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from geotagger.domain.errors import InvalidTrackError
from geotagger.domain.gps_types import Track, TrackPoint


def validate_track(track: Track, backstep_tolerance: timedelta = timedelta(0)) -> None:
    """
    Vérifie qu'une trace est exploitable.

    Args:
        track: Trace à vérifier
        backstep_tolerance: Recul temporel toléré entre deux points consécutifs

    Raises:
        InvalidTrackError: trace vide, horodatage naïf, ou retour en arrière
    """
    if track.is_empty():
        raise InvalidTrackError(f"Trace vide: {track.name}", track.name)

    previous: Optional[TrackPoint] = None
    for index, point in enumerate(track.points):
        if point.timestamp.tzinfo is None or point.timestamp.utcoffset() is None:
            raise InvalidTrackError(
                f"Horodatage sans fuseau dans {track.name} (point {index})", track.name
            )
        if previous is not None and previous.timestamp - point.timestamp > backstep_tolerance:
            raise InvalidTrackError(
                f"La trace {track.name} recule dans le temps au point {index} "
                f"({previous.timestamp.isoformat()} -> {point.timestamp.isoformat()})",
                track.name,
            )
        previous = point


class Timeline:
    """
    Séquence fusionnée et immuable de points GPS.
    Construite une fois via `Timeline.build`, partageable entre threads.
    """

    __slots__ = ("_points", "_timestamps")

    def __init__(self, points: Sequence[TrackPoint] = ()) -> None:
        self._points: Tuple[TrackPoint, ...] = tuple(points)
        self._timestamps: List[datetime] = [p.timestamp for p in self._points]

    @classmethod
    def build(
        cls,
        tracks: Iterable[Track],
        backstep_tolerance: timedelta = timedelta(0),
    ) -> "Timeline":
        """
        Fusionne les traces en une Timeline.

        Les chevauchements entre traces sont résolus uniquement par l'ordre
        temporel. En cas d'horodatage identique, le premier point vu est
        conservé (ordre des traces fournies, puis ordre dans la trace).

        Raises:
            InvalidTrackError: si une des traces est invalide
        """
        merged: List[TrackPoint] = []
        for track in tracks:
            validate_track(track, backstep_tolerance)
            merged.extend(track.points)

        # sorted() est stable: à égalité, l'ordre d'arrivée est conservé
        merged = sorted(merged, key=lambda p: p.timestamp)

        points: List[TrackPoint] = []
        for point in merged:
            if points and points[-1].timestamp == point.timestamp:
                continue
            points.append(point)

        return cls(points)

    @property
    def points(self) -> Tuple[TrackPoint, ...]:
        return self._points

    @property
    def start_time(self) -> Optional[datetime]:
        return self._timestamps[0] if self._timestamps else None

    @property
    def end_time(self) -> Optional[datetime]:
        return self._timestamps[-1] if self._timestamps else None

    def is_empty(self) -> bool:
        return not self._points

    def __len__(self) -> int:
        return len(self._points)

    def surrounding(self, query: datetime) -> Tuple[Optional[TrackPoint], Optional[TrackPoint]]:
        """
        Retourne (a, b): a le dernier point <= query, b le premier point > query.
        L'un ou l'autre vaut None hors de l'étendue de la Timeline.
        """
        index = bisect.bisect_right(self._timestamps, query)
        before = self._points[index - 1] if index > 0 else None
        after = self._points[index] if index < len(self._points) else None
        return before, after

    def __repr__(self) -> str:
        return f"Timeline({len(self)} points, {self.start_time} -> {self.end_time})"
