from __future__ import annotations

from typing import Protocol

from geotagger.core.models.geotag_models import ProgressEvent


class ProgressReporter(Protocol):
    def report(self, event: ProgressEvent) -> None: ...
