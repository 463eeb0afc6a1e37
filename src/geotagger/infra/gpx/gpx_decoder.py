#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Décodeur de fichiers GPX pour geotagger.
Utilise gpxpy pour extraire les points horodatés des traces.
"""

from __future__ import annotations

from datetime import timezone
from typing import List

import gpxpy
import gpxpy.gpx
from loguru import logger

from geotagger.core.ports.track_decoder import TrackDecoder
from geotagger.domain.errors import TrackParseError
from geotagger.domain.gps_types import Coordinate, Track, TrackPoint


class GpxTrackDecoder(TrackDecoder):
    """
    Décode un document GPX en une `Track` par segment (`<trkseg>`).

    Chaque segment est un enregistrement indépendant: deux segments peuvent se
    chevaucher ou être dans le désordre, la Timeline les fusionne ensuite.
    Les points sans horodatage sont ignorés car ils ne peuvent pas être corrélés.
    """

    def decode(self, data: bytes, name: str) -> List[Track]:
        try:
            gpx = gpxpy.parse(data.decode("utf-8-sig"))
        except UnicodeDecodeError as exc:
            raise TrackParseError(f"Encodage invalide dans {name}: {exc}", name) from exc
        except gpxpy.gpx.GPXException as exc:
            raise TrackParseError(f"GPX illisible {name}: {exc}", name) from exc

        segments: List[List[TrackPoint]] = []
        untimed = 0

        for track in gpx.tracks:
            for segment in track.segments:
                points: List[TrackPoint] = []
                for point in segment.points:
                    if point.time is None:
                        untimed += 1
                        continue
                    points.append(self._to_track_point(point, name))
                if points:
                    segments.append(points)

        if untimed:
            logger.debug(f"{name}: {untimed} point(s) sans horodatage ignoré(s)")

        if not segments:
            # Trace vide: rejetée ensuite par validate_track
            return [Track(name=name)]

        logger.info(
            f"Fichier GPX décodé: {name} ({sum(len(s) for s in segments)} points, "
            f"{len(segments)} segment(s))"
        )
        if len(segments) == 1:
            return [Track(name=name, points=tuple(segments[0]))]
        return [
            Track(name=f"{name}#{index}", points=tuple(points))
            for index, points in enumerate(segments, start=1)
        ]

    @staticmethod
    def _to_track_point(point: gpxpy.gpx.GPXTrackPoint, name: str) -> TrackPoint:
        timestamp = point.time
        if timestamp.tzinfo is None:
            # GPX: les heures sans fuseau sont en UTC
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        try:
            coordinate = Coordinate(
                latitude=float(point.latitude),
                longitude=float(point.longitude),
                elevation=float(point.elevation) if point.elevation is not None else None,
            )
        except ValueError as exc:
            raise TrackParseError(f"Point invalide dans {name}: {exc}", name) from exc

        return TrackPoint(timestamp.astimezone(timezone.utc), coordinate)
