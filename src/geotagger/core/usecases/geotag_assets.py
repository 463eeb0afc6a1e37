from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from geotagger.core.models.geotag_models import (
    GeotagPhase,
    GeotagRequest,
    GeotagResult,
    ProgressEvent,
    RunSummary,
)
from geotagger.core.ports.asset_repository import AssetRepository
from geotagger.core.ports.progress import ProgressReporter
from geotagger.core.timeline import Timeline
from geotagger.core.usecases.apply_updates import apply_updates, summarize
from geotagger.core.usecases.plan_updates import plan_updates


@dataclass
class GeotagAssetsUseCase:
    """Use-case principal: localiser les assets du serveur à partir de la Timeline."""

    timeline: Timeline
    repository: AssetRepository

    def execute(
        self,
        request: GeotagRequest,
        reporter: Optional[ProgressReporter] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GeotagResult:
        config = request.config.validate()

        if reporter:
            reporter.report(ProgressEvent(GeotagPhase.LIST_ASSETS, "Recherche des assets..."))

        # Avec audit, le filtre propriétaire est appliqué par le plan pour tracer les exclusions
        owner_filter = None if config.audit_filtered else config.owner_id
        assets = self.repository.list_assets(owner_id=owner_filter)
        logger.info(f"{len(assets)} asset(s) récupéré(s)")

        if reporter:
            reporter.report(ProgressEvent(GeotagPhase.PLAN, "Calcul des positions...", total=len(assets)))
        plan = plan_updates(assets, self.timeline, config)

        if request.dry_run:
            pending = sum(1 for entry in plan if entry.is_pending)
            summary = RunSummary(
                planned=pending,
                updated=0,
                skipped=len(plan) - pending,
                failed=0,
                not_attempted=pending,
            )
            if reporter:
                reporter.report(ProgressEvent(GeotagPhase.DONE, "Simulation terminée"))
            return GeotagResult(plan=plan, results=[], summary=summary)

        results = apply_updates(plan, self.repository, config, cancel_event=cancel_event, reporter=reporter)
        summary = summarize(plan, results)

        if reporter:
            reporter.report(
                ProgressEvent(GeotagPhase.DONE, "Terminé", current=summary.updated, total=summary.planned)
            )
        return GeotagResult(plan=plan, results=results, summary=summary)
