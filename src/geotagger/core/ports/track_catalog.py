from __future__ import annotations

from typing import Protocol, Sequence


class TrackCatalogPort(Protocol):
    def list_tracks(self, paths: Sequence[str], extensions: Sequence[str]) -> list[str]: ...
