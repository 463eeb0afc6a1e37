from __future__ import annotations

import argparse
import os
import signal
import threading
from datetime import timedelta
from typing import Sequence

from dotenv import load_dotenv
from loguru import logger

from geotagger.app.config import (
    API_KEY_ENV,
    APP_NAME,
    APP_VERSION,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_GAP_SECONDS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TIMEZONE,
    SERVER_ENV,
)
from geotagger.app.logger import configure_logging
from geotagger.core.models.geotag_models import (
    AssetRef,
    GeotagConfig,
    GeotagRequest,
    GeotagResult,
    ProgressEvent,
)
from geotagger.domain.errors import ConfigError, RepositoryError
from geotagger.infra.immich.immich_repository import ImmichAssetRepository, ImmichConfig
from geotagger.services.geotag_controller import GeotagController


EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Géolocalise les photos d'un serveur Immich à partir de traces GPX/FIT.",
    )
    parser.add_argument("tracks", nargs="+", help="Fichiers .gpx/.fit ou dossiers les contenant")
    parser.add_argument("--server", default=None, help=f"URL du serveur Immich (ou ${SERVER_ENV})")
    parser.add_argument("-n", "--dry-run", action="store_true", help="Ne rien envoyer au serveur")
    parser.add_argument("--owner", default=None, help="Seulement les assets de cet utilisateur")
    parser.add_argument("--camera-brand", default=None, help="Seulement cette marque d'appareil")
    parser.add_argument("--camera-model", default=None, help="Seulement ce modèle d'appareil")
    parser.add_argument("-p", "--page", type=int, default=1, help="Page de recherche de départ")
    parser.add_argument("--pages", type=int, default=1, help="Nombre de pages à parcourir")
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE)
    parser.add_argument(
        "--max-gap",
        type=float,
        default=DEFAULT_MAX_GAP_SECONDS,
        help="Écart max (s) entre deux points pour interpoler (défaut: %(default)s)",
    )
    parser.add_argument(
        "--include-located",
        action="store_true",
        help="Traiter aussi les assets déjà localisés",
    )
    parser.add_argument(
        "--partial-location-eligible",
        action="store_true",
        help="Traiter les assets n'ayant qu'une des deux coordonnées",
    )
    parser.add_argument("--audit", action="store_true", help="Lister aussi les assets filtrés")
    parser.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY)
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_SECONDS, help="Timeout par appel (s)")
    parser.add_argument(
        "--camera-timezone",
        default=DEFAULT_TIMEZONE,
        help="Fuseau des heures de prise de vue sans fuseau (ex: Europe/Paris)",
    )
    parser.add_argument(
        "--time-offset",
        type=float,
        default=0.0,
        help="Décalage (s) ajouté à l'heure de prise de vue",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def config_from_args(args: argparse.Namespace) -> GeotagConfig:
    for flag, value in (("--page", args.page), ("--pages", args.pages), ("--page-size", args.page_size)):
        if value < 1:
            raise ConfigError(f"{flag} doit être >= 1 (reçu {value})")

    return GeotagConfig(
        max_gap=timedelta(seconds=args.max_gap),
        owner_id=args.owner,
        only_missing_location=not args.include_located,
        partial_location_eligible=args.partial_location_eligible,
        audit_filtered=args.audit,
        concurrency_limit=args.concurrency,
        per_call_timeout=args.timeout,
        camera_timezone=args.camera_timezone,
        time_offset=timedelta(seconds=args.time_offset),
    ).validate()


def run(argv: Sequence[str]) -> int:
    args = build_parser().parse_args(list(argv))
    configure_logging(args.verbose)
    load_dotenv()

    try:
        config = config_from_args(args)
    except ConfigError as exc:
        logger.error(f"Configuration invalide: {exc}")
        return EXIT_USAGE

    server = args.server or os.environ.get(SERVER_ENV)
    api_key = os.environ.get(API_KEY_ENV)
    if not server:
        logger.error(f"Serveur Immich manquant (--server ou ${SERVER_ENV})")
        return EXIT_USAGE
    if not api_key:
        logger.error(f"Clé d'API Immich manquante (${API_KEY_ENV})")
        return EXIT_USAGE

    repository = ImmichAssetRepository(
        ImmichConfig(
            server=server,
            api_key=api_key,
            page=args.page,
            max_pages=args.pages,
            page_size=args.page_size,
            camera_make=args.camera_brand,
            camera_model=args.camera_model,
            without_location=config.only_missing_location and not config.audit_filtered,
            timeout_s=config.per_call_timeout,
        )
    )
    controller = GeotagController(repository)

    controller.load_tracks(args.tracks)
    if not controller.has_tracks():
        logger.error("Aucune trace GPS exploitable")
        return EXIT_USAGE

    cancel_event = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, _cancel_handler(cancel_event))
    try:
        result = controller.run(
            GeotagRequest(config=config, dry_run=args.dry_run),
            reporter=_LogProgressReporter(),
            cancel_event=cancel_event,
        )
    except RepositoryError as exc:
        logger.error(f"Serveur Immich: {exc} ({exc.kind.value})")
        return EXIT_FAILURES
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if args.dry_run:
        print_plan(result, repository)
    print_summary(controller.get_summary(result), result)

    return EXIT_FAILURES if result.summary.has_failures else EXIT_OK


def _cancel_handler(cancel_event: threading.Event):
    def handler(signum, frame) -> None:
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Interruption: fin des appels en cours (Ctrl+C à nouveau pour forcer)")
        cancel_event.set()

    return handler


def _describe_asset(asset: AssetRef) -> str:
    return f"{asset.id} ({asset.file_name})" if asset.file_name else asset.id


def print_plan(result: GeotagResult, repository: ImmichAssetRepository) -> None:
    for entry in result.plan:
        if entry.is_pending:
            coordinate = entry.coordinate
            label = repository.asset_url(entry.asset.id)
            if entry.asset.file_name:
                label += f" ({entry.asset.file_name})"
            print(f"position {coordinate.latitude}, {coordinate.longitude} pour {label}")
        else:
            print(f"ignoré {_describe_asset(entry.asset)}: {entry.describe_skip()}")


def print_summary(summary: dict, result: GeotagResult) -> None:
    print(
        f"\nFichiers de traces: {summary['track_files']} ({summary['rejected_files']} ignoré(s)), "
        f"{summary['tracks']} trace(s), "
        f"{summary['track_points']} points"
    )
    print(
        f"Mis à jour: {summary['updated']} | Ignorés: {summary['skipped']} | "
        f"Échecs: {summary['failed']} | Non tentés: {summary['not_attempted']}"
    )
    assets = {entry.asset.id: entry.asset for entry in result.plan}
    for failure in result.summary.failures:
        kind = failure.failure.value if failure.failure else "?"
        print(f"  ÉCHEC {_describe_asset(assets[failure.asset_id])} [{kind}] {failure.detail}")


class _LogProgressReporter:
    def report(self, event: ProgressEvent) -> None:
        if event.total:
            logger.debug(f"[{event.phase.value}] {event.message} ({event.current}/{event.total})")
        else:
            logger.debug(f"[{event.phase.value}] {event.message}")
