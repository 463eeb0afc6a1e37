"""Shared fixtures and builders for geotagger tests."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from geotagger.core.models.geotag_models import AssetRef
from geotagger.domain.errors import AssetUpdateError, FailureKind
from geotagger.domain.gps_types import Coordinate, Track, TrackPoint

T0 = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(minutes: float = 0, seconds: float = 0) -> datetime:
    return T0 + timedelta(minutes=minutes, seconds=seconds)


def point(minutes: float, lat: float, lon: float, elevation: Optional[float] = None) -> TrackPoint:
    return TrackPoint(at(minutes), Coordinate(lat, lon, elevation))


def make_track(name: str, *points: TrackPoint) -> Track:
    return Track(name=name, points=tuple(points))


def asset(
    asset_id: str,
    minutes: Optional[float] = 0,
    owner: str = "owner-1",
    has_location: bool = False,
    partial_location: bool = False,
    file_name: Optional[str] = None,
) -> AssetRef:
    return AssetRef(
        id=asset_id,
        owner_id=owner,
        capture_timestamp=at(minutes) if minutes is not None else None,
        has_location=has_location,
        partial_location=partial_location,
        file_name=file_name,
    )


class FakeRepository:
    """In-memory AssetRepository recording update calls."""

    def __init__(self, assets: Optional[List[AssetRef]] = None, failures: Optional[Dict[str, Exception]] = None):
        self.assets = assets or []
        self.failures = failures or {}
        self.updates: Dict[str, Coordinate] = {}
        self.timeouts: List[float] = []
        self.list_calls: List[Optional[str]] = []
        self._lock = threading.Lock()

    def list_assets(self, owner_id=None):
        self.list_calls.append(owner_id)
        return [a for a in self.assets if owner_id is None or a.owner_id == owner_id]

    def update_location(self, asset_id, coordinate, timeout):
        with self._lock:
            self.timeouts.append(timeout)
        if asset_id in self.failures:
            raise self.failures[asset_id]
        with self._lock:
            self.updates[asset_id] = coordinate


@pytest.fixture
def simple_track() -> Track:
    return make_track("simple", point(0, 10.0, 20.0), point(10, 10.0, 20.2))


@pytest.fixture
def fake_repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def not_found_error() -> AssetUpdateError:
    return AssetUpdateError("HTTP 404", FailureKind.NOT_FOUND, "missing")


GPX_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>{name}</name>
    <trkseg>
{points}
    </trkseg>
  </trk>
</gpx>
"""


def gpx_document(name: str, rows) -> str:
    """rows: iterable of (iso_time or None, lat, lon, ele or None)."""
    lines = []
    for time, lat, lon, ele in rows:
        inner = ""
        if ele is not None:
            inner += f"<ele>{ele}</ele>"
        if time is not None:
            inner += f"<time>{time}</time>"
        lines.append(f'      <trkpt lat="{lat}" lon="{lon}">{inner}</trkpt>')
    return GPX_TEMPLATE.format(name=name, points="\n".join(lines))
