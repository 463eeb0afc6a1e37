#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Types de données GPS pour geotagger.
Définit les dataclasses immuables utilisées dans toute l'application.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Coordinate:
    """
    Position géographique, valeur pure sans identité.

    Attributes:
        latitude: Latitude en degrés décimaux [-90, 90]
        longitude: Longitude en degrés décimaux [-180, 180]
        elevation: Altitude en mètres (optionnelle)
    """
    latitude: float
    longitude: float
    elevation: Optional[float] = None

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude hors limites: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude hors limites: {self.longitude}")


@dataclass(frozen=True)
class TrackPoint:
    """
    Un point GPS horodaté.

    Attributes:
        timestamp: Instant absolu (timezone-aware, UTC)
        coordinate: Position du point
    """
    timestamp: datetime
    coordinate: Coordinate

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude

    @property
    def elevation(self) -> Optional[float]:
        return self.coordinate.elevation


@dataclass(frozen=True)
class Track:
    """
    Représente une trace GPS complète.

    Attributes:
        name: Nom de la trace (ex: nom du fichier)
        points: Points GPS dans l'ordre d'enregistrement
    """
    name: str
    points: Tuple[TrackPoint, ...] = ()

    def is_empty(self) -> bool:
        """Vérifie si la trace est vide."""
        return len(self.points) == 0

    @property
    def start_time(self) -> Optional[datetime]:
        return self.points[0].timestamp if self.points else None

    @property
    def end_time(self) -> Optional[datetime]:
        return self.points[-1].timestamp if self.points else None
