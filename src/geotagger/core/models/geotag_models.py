from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

import pytz

from geotagger.domain.errors import ConfigError, FailureKind
from geotagger.domain.gps_types import Coordinate


class MatchQuality(str, Enum):
    EXACT = "exact"
    INTERPOLATED = "interpolated"


class NoCoverageReason(str, Enum):
    EMPTY_TIMELINE = "empty_timeline"
    BEFORE_FIRST_POINT = "before_first_point"
    AFTER_LAST_POINT = "after_last_point"
    GAP_TOO_LARGE = "gap_too_large"


@dataclass(frozen=True)
class Matched:
    coordinate: Coordinate
    quality: MatchQuality
    # Écart entre les deux points encadrants (INTERPOLATED uniquement)
    gap_seconds: Optional[float] = None


@dataclass(frozen=True)
class NoCoverage:
    reason: NoCoverageReason
    gap_seconds: Optional[float] = None


MatchResult = Union[Matched, NoCoverage]


class SkipReason(str, Enum):
    FILTERED_OUT = "filtered_out"
    MISSING_TIMESTAMP = "missing_timestamp"
    NO_COVERAGE = "no_coverage"


@dataclass(frozen=True)
class AssetRef:
    """Asset distant tel que vu par le core (lecture seule)."""

    id: str
    owner_id: str
    capture_timestamp: Optional[datetime]
    has_location: bool = False
    # Une seule des deux coordonnées renseignée
    partial_location: bool = False
    file_name: Optional[str] = None


@dataclass(frozen=True)
class UpdatePlanEntry:
    asset: AssetRef
    outcome: Optional[MatchResult] = None
    skip_reason: Optional[SkipReason] = None

    @property
    def is_pending(self) -> bool:
        return isinstance(self.outcome, Matched) and self.skip_reason is None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if isinstance(self.outcome, Matched):
            return self.outcome.coordinate
        return None

    def describe_skip(self) -> str:
        if self.skip_reason is None:
            return ""
        if isinstance(self.outcome, NoCoverage):
            return f"{self.skip_reason.value}:{self.outcome.reason.value}"
        return self.skip_reason.value


class ApplyStatus(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ApplyResult:
    asset_id: str
    status: ApplyStatus
    reason: Optional[str] = None
    failure: Optional[FailureKind] = None
    detail: str = ""


@dataclass(frozen=True)
class GeotagConfig:
    """
    Configuration du core, passée explicitement à chaque composant.

    Attributes:
        max_gap: Écart maximal entre deux points pour interpoler
        owner_id: Ne traiter que les assets de ce propriétaire
        only_missing_location: Ignorer les assets déjà localisés
        partial_location_eligible: Traiter les assets n'ayant qu'une coordonnée
        audit_filtered: Garder les assets filtrés dans le plan (FILTERED_OUT)
        concurrency_limit: Appels de mise à jour simultanés
        plan_workers: Threads pour la construction du plan
        per_call_timeout: Timeout de chaque appel réseau (secondes)
        camera_timezone: Fuseau des horodatages naïfs de l'appareil photo
        time_offset: Décalage manuel ajouté à l'heure de prise de vue
    """
    max_gap: timedelta = timedelta(minutes=5)
    owner_id: Optional[str] = None
    only_missing_location: bool = True
    partial_location_eligible: bool = False
    audit_filtered: bool = False
    concurrency_limit: int = 4
    plan_workers: int = 1
    per_call_timeout: float = 30.0
    camera_timezone: str = "UTC"
    time_offset: timedelta = field(default_factory=timedelta)

    def validate(self) -> "GeotagConfig":
        if self.max_gap <= timedelta(0):
            raise ConfigError(f"max_gap doit être strictement positif (reçu {self.max_gap})")
        if self.concurrency_limit < 1:
            raise ConfigError(f"concurrency_limit doit être >= 1 (reçu {self.concurrency_limit})")
        if self.plan_workers < 1:
            raise ConfigError(f"plan_workers doit être >= 1 (reçu {self.plan_workers})")
        if self.per_call_timeout <= 0:
            raise ConfigError(f"per_call_timeout doit être > 0 (reçu {self.per_call_timeout})")
        try:
            pytz.timezone(self.camera_timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ConfigError(f"Fuseau horaire inconnu: {self.camera_timezone}") from exc
        return self


class GeotagPhase(str, Enum):
    LIST_ASSETS = "list_assets"
    PLAN = "plan"
    APPLY = "apply"
    DONE = "done"


@dataclass(frozen=True)
class ProgressEvent:
    phase: GeotagPhase
    message: str
    current: int = 0
    total: int = 0
    asset_id: Optional[str] = None


@dataclass(frozen=True)
class GeotagRequest:
    config: GeotagConfig
    dry_run: bool = False


@dataclass(frozen=True)
class RunSummary:
    planned: int
    updated: int
    skipped: int
    failed: int
    not_attempted: int = 0
    failures: tuple = ()

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


@dataclass(frozen=True)
class GeotagResult:
    plan: list[UpdatePlanEntry]
    results: list[ApplyResult]
    summary: RunSummary
