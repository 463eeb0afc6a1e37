from __future__ import annotations

from typing import List


TRACK_EXTENSIONS: List[str] = [".gpx", ".fit"]
GPX_EXTENSION: str = ".gpx"
FIT_EXTENSION: str = ".fit"

DEFAULT_MAX_GAP_SECONDS: float = 300.0
DEFAULT_CONCURRENCY: int = 4
DEFAULT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_TIMEZONE: str = "UTC"
DEFAULT_PAGE_SIZE: int = 250

API_KEY_ENV: str = "IMMICH_API_KEY"
SERVER_ENV: str = "IMMICH_SERVER"

APP_NAME: str = "geotagger"
APP_VERSION: str = "1.0.0"
