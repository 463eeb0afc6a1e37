#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Décodeur de fichiers Garmin .fit pour geotagger.
Extrait les points GPS des messages "record" et construit une trace.
"""

from datetime import timezone
from typing import Optional, List

from fitparse import FitFile, FitParseError
from loguru import logger

from geotagger.core.ports.track_decoder import TrackDecoder
from geotagger.domain.errors import TrackParseError
from geotagger.domain.gps_types import Coordinate, Track, TrackPoint


# Constante de conversion semicircles -> degrés
SEMICIRCLES_TO_DEGREES: float = 180.0 / (2 ** 31)


class FitTrackDecoder(TrackDecoder):
    """
    Décodeur pour les fichiers Garmin .fit.
    Utilise la bibliothèque fitparse pour extraire les données GPS.
    """

    def decode(self, data: bytes, name: str) -> List[Track]:
        """
        Parse le contenu d'un fichier .fit et retourne la trace GPS.

        Args:
            data: Contenu brut du fichier
            name: Nom de la trace (ex: nom du fichier)

        Returns:
            Liste d'une seule Track contenant tous les points GPS horodatés

        Raises:
            TrackParseError: si le fichier n'est pas un .fit valide
        """
        try:
            fit_file = FitFile(data)
            points: List[TrackPoint] = []

            # Parcourir les messages "record" qui contiennent les données GPS
            for record in fit_file.get_messages("record"):
                point = self._extract_point_from_record(record)
                if point is not None:
                    points.append(point)
        except FitParseError as exc:
            raise TrackParseError(f"Fichier .fit illisible {name}: {exc}", name) from exc

        if not points:
            logger.warning(f"Aucun point GPS trouvé dans {name}")

        logger.info(f"Fichier .fit décodé: {name} ({len(points)} points)")
        return [Track(name=name, points=tuple(points))]

    def _extract_point_from_record(self, record) -> Optional[TrackPoint]:
        """
        Extrait un point GPS depuis un enregistrement .fit.

        Args:
            record: Enregistrement fitparse

        Returns:
            TrackPoint ou None si position ou horodatage absent
        """
        lat_semicircles = None
        lon_semicircles = None
        elevation = None
        timestamp = None

        for field in record:
            if field.value is None:
                continue
            if field.name == "position_lat":
                lat_semicircles = field.value
            elif field.name == "position_long":
                lon_semicircles = field.value
            elif field.name in ("altitude", "enhanced_altitude"):
                # L'altitude peut être en enhanced_altitude ou altitude
                elevation = float(field.value)
            elif field.name == "timestamp":
                # Les timestamps .fit sont en UTC
                timestamp = field.value
                if timestamp.tzinfo is None:
                    timestamp = timestamp.replace(tzinfo=timezone.utc)

        if lat_semicircles is None or lon_semicircles is None or timestamp is None:
            return None

        # Conversion semicircles -> degrés
        latitude = lat_semicircles * SEMICIRCLES_TO_DEGREES
        longitude = lon_semicircles * SEMICIRCLES_TO_DEGREES
        if latitude == 0.0 and longitude == 0.0:
            # Pas de fix GPS
            return None

        try:
            coordinate = Coordinate(latitude=latitude, longitude=longitude, elevation=elevation)
        except ValueError:
            return None

        return TrackPoint(timestamp.astimezone(timezone.utc), coordinate)
