"""Exceptions de geotagger."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class GeotaggerError(Exception):
    """Base de toutes les erreurs geotagger."""

    pass


class InvalidTrackError(GeotaggerError):
    """Trace vide, non horodatée en UTC ou qui recule dans le temps."""

    def __init__(self, message: str, track_name: Optional[str] = None):
        self.track_name = track_name
        super().__init__(message)


class TrackParseError(GeotaggerError):
    """Fichier de trace illisible (GPX/FIT malformé)."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(message)


class ConfigError(GeotaggerError):
    """Configuration refusée avant tout accès réseau ou fichier."""

    pass


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    REJECTED = "rejected"
    UNEXPECTED = "unexpected"


class RepositoryError(GeotaggerError):
    """Erreur du serveur d'assets (listing ou mise à jour)."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.NETWORK):
        self.kind = kind
        super().__init__(message)


class AssetUpdateError(RepositoryError):
    """Échec de mise à jour d'un asset précis."""

    def __init__(self, message: str, kind: FailureKind, asset_id: Optional[str] = None):
        self.asset_id = asset_id
        super().__init__(message, kind)
