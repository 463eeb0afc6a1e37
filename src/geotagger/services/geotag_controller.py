#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Façade "application" utilisée par la ligne de commande.

Objectif: le CLI ne doit pas connaître l'infra (gpxpy/fitparse/fs).
Le calcul est déporté dans `geotagger.core` (usecase + ports).
"""

from typing import Dict, List, Optional, Sequence
import os
import threading

from loguru import logger

from geotagger.app.config import FIT_EXTENSION, GPX_EXTENSION, TRACK_EXTENSIONS
from geotagger.core.models.geotag_models import GeotagRequest, GeotagResult
from geotagger.core.ports.asset_repository import AssetRepository
from geotagger.core.ports.progress import ProgressReporter
from geotagger.core.ports.track_catalog import TrackCatalogPort
from geotagger.core.ports.track_decoder import TrackDecoder
from geotagger.core.timeline import Timeline, validate_track
from geotagger.core.usecases.geotag_assets import GeotagAssetsUseCase
from geotagger.domain.errors import InvalidTrackError, TrackParseError
from geotagger.domain.gps_types import Track
from geotagger.infra.garmin.fit_parser import FitTrackDecoder
from geotagger.infra.gpx.gpx_decoder import GpxTrackDecoder
from geotagger.infra.system.track_catalog import OSTrackCatalog


class GeotagController:
    """
    Contrôleur principal: chargement des traces puis géolocalisation des assets.
    """

    def __init__(
        self,
        repository: AssetRepository,
        track_catalog: Optional[TrackCatalogPort] = None,
        decoders: Optional[Dict[str, TrackDecoder]] = None,
    ) -> None:
        """
        Initialise le contrôleur.

        Args:
            repository: Serveur d'assets
            track_catalog: Résolution des chemins de traces
            decoders: Décodeur par extension (".gpx", ".fit")
        """
        self.repository = repository
        self._track_catalog = track_catalog or OSTrackCatalog()
        self._gpx_decoder = GpxTrackDecoder()
        self._decoders = decoders or {
            GPX_EXTENSION: self._gpx_decoder,
            FIT_EXTENSION: FitTrackDecoder(),
        }

        self.tracks: List[Track] = []
        self.loaded_files: List[str] = []
        self.rejected_files: Dict[str, str] = {}
        self.timeline: Optional[Timeline] = None

    def load_tracks(self, paths: Sequence[str]) -> Timeline:
        """
        Décode chaque fichier de trace et construit la Timeline.

        Un fichier illisible ou invalide est ignoré (avec avertissement) et
        noté dans `rejected_files`; les autres sont conservés.

        Returns:
            La Timeline fusionnée (éventuellement vide)
        """
        self.tracks = []
        self.loaded_files = []
        self.rejected_files = {}

        for path in self._track_catalog.list_tracks(paths, TRACK_EXTENSIONS):
            try:
                tracks = self._decode_file(path)
                for track in tracks:
                    validate_track(track)
            except (TrackParseError, InvalidTrackError, OSError) as exc:
                logger.warning(f"Trace ignorée {path}: {exc}")
                self.rejected_files[path] = str(exc)
                continue

            for track in tracks:
                logger.info(f"  {track.name}: {track.start_time} -> {track.end_time}")
            self.loaded_files.append(path)
            self.tracks.extend(tracks)

        self.timeline = Timeline.build(self.tracks)
        logger.info(f"Timeline: {len(self.timeline)} points issus de {len(self.tracks)} trace(s)")
        return self.timeline

    def _decode_file(self, path: str) -> List[Track]:
        _, ext = os.path.splitext(path)
        decoder = self._decoders.get(ext.lower(), self._gpx_decoder)
        with open(path, "rb") as f:
            data = f.read()
        return decoder.decode(data, os.path.basename(path))

    def has_tracks(self) -> bool:
        """Vérifie si au moins une trace exploitable est chargée."""
        return self.timeline is not None and not self.timeline.is_empty()

    def run(
        self,
        request: GeotagRequest,
        reporter: Optional[ProgressReporter] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GeotagResult:
        """Exécute le use-case sur la Timeline chargée."""
        usecase = GeotagAssetsUseCase(
            timeline=self.timeline or Timeline(),
            repository=self.repository,
        )
        return usecase.execute(request, reporter=reporter, cancel_event=cancel_event)

    def get_summary(self, result: GeotagResult) -> dict:
        """Retourne un résumé du traitement."""
        summary = result.summary
        return {
            "track_files": len(self.loaded_files),
            "tracks": len(self.tracks),
            "rejected_files": len(self.rejected_files),
            "track_points": len(self.timeline) if self.timeline else 0,
            "planned": summary.planned,
            "updated": summary.updated,
            "skipped": summary.skipped,
            "failed": summary.failed,
            "not_attempted": summary.not_attempted,
        }
