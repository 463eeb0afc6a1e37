from __future__ import annotations

import os
from typing import Sequence

from loguru import logger

from geotagger.core.ports.track_catalog import TrackCatalogPort


class OSTrackCatalog(TrackCatalogPort):
    def list_tracks(self, paths: Sequence[str], extensions: Sequence[str]) -> list[str]:
        """Fichiers donnés tels quels; dossiers développés (non récursif) selon l'extension."""
        wanted = {ext.lower() for ext in extensions}
        track_files: list[str] = []

        for path in paths:
            if os.path.isdir(path):
                found = []
                for filename in os.listdir(path):
                    _, ext = os.path.splitext(filename)
                    full_path = os.path.join(path, filename)
                    if ext.lower() in wanted and os.path.isfile(full_path):
                        found.append(full_path)
                track_files.extend(sorted(found))
            elif os.path.isfile(path):
                track_files.append(path)
            else:
                logger.warning(f"Fichier introuvable: {path}")

        return track_files
