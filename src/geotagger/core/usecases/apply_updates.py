from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Sequence

from loguru import logger

from geotagger.core.models.geotag_models import (
    ApplyResult,
    ApplyStatus,
    GeotagConfig,
    GeotagPhase,
    ProgressEvent,
    RunSummary,
    UpdatePlanEntry,
)
from geotagger.core.ports.asset_repository import AssetRepository
from geotagger.core.ports.progress import ProgressReporter
from geotagger.domain.errors import AssetUpdateError, FailureKind


def apply_updates(
    plan: Sequence[UpdatePlanEntry],
    repository: AssetRepository,
    config: GeotagConfig,
    cancel_event: Optional[threading.Event] = None,
    reporter: Optional[ProgressReporter] = None,
) -> list[ApplyResult]:
    """
    Pousse le plan vers le serveur, un appel par asset localisé.

    Un échec n'interrompt jamais le lot. Si `cancel_event` est levé, plus
    aucun appel n'est lancé, ceux en cours se terminent et les résultats
    obtenus jusque-là sont retournés dans l'ordre du plan.
    """
    results: dict[int, ApplyResult] = {}
    futures: dict[Future, int] = {}
    slots = threading.BoundedSemaphore(config.concurrency_limit)
    total = sum(1 for entry in plan if entry.is_pending)
    dispatched = 0

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    with ThreadPoolExecutor(max_workers=config.concurrency_limit) as executor:
        for index, entry in enumerate(plan):
            if cancelled():
                break

            if not entry.is_pending:
                results[index] = ApplyResult(
                    asset_id=entry.asset.id,
                    status=ApplyStatus.SKIPPED,
                    reason=entry.describe_skip(),
                )
                continue

            slots.acquire()
            if cancelled():
                slots.release()
                break

            dispatched += 1
            if reporter:
                reporter.report(
                    ProgressEvent(
                        GeotagPhase.APPLY,
                        f"Asset {dispatched}/{total}",
                        current=dispatched,
                        total=total,
                        asset_id=entry.asset.id,
                    )
                )

            future = executor.submit(_update_one, entry, repository, config.per_call_timeout)
            future.add_done_callback(lambda _f: slots.release())
            futures[future] = index

    for future, index in futures.items():
        results[index] = future.result()

    if cancelled():
        logger.warning(
            f"Annulation: {dispatched}/{total} mise(s) à jour lancée(s), les suivantes sont abandonnées"
        )

    return [results[index] for index in sorted(results)]


def _update_one(entry: UpdatePlanEntry, repository: AssetRepository, timeout: float) -> ApplyResult:
    asset_id = entry.asset.id
    coordinate = entry.coordinate
    try:
        repository.update_location(asset_id, coordinate, timeout=timeout)
    except AssetUpdateError as exc:
        logger.warning(f"Échec de mise à jour de {asset_id} ({exc.kind.value}): {exc}")
        return ApplyResult(asset_id, ApplyStatus.FAILED, failure=exc.kind, detail=str(exc))
    except Exception as exc:
        logger.exception(f"Erreur inattendue pour {asset_id}")
        return ApplyResult(asset_id, ApplyStatus.FAILED, failure=FailureKind.UNEXPECTED, detail=repr(exc))

    logger.info(f"Position {coordinate.latitude:.6f}, {coordinate.longitude:.6f} appliquée à {asset_id}")
    return ApplyResult(asset_id, ApplyStatus.UPDATED)


def summarize(plan: Sequence[UpdatePlanEntry], results: Sequence[ApplyResult]) -> RunSummary:
    """Résumé du run: mis à jour / ignorés / en échec / non tentés."""
    updated = sum(1 for r in results if r.status == ApplyStatus.UPDATED)
    skipped = sum(1 for r in results if r.status == ApplyStatus.SKIPPED)
    failures = tuple(r for r in results if r.status == ApplyStatus.FAILED)
    return RunSummary(
        planned=sum(1 for entry in plan if entry.is_pending),
        updated=updated,
        skipped=skipped,
        failed=len(failures),
        not_attempted=len(plan) - len(results),
        failures=failures,
    )
