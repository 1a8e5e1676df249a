from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from models.records import VehicleCount
from services.clock import window_cutoff
from services.window import RollingWindow, merge_records, prune_records

VANCOUVER = ZoneInfo("America/Vancouver")
NOW = datetime(2024, 1, 10, 12, 0, tzinfo=VANCOUVER)


def _record(record_id: str, timestamp: datetime, count: int = 1, name: str = "Main&1st") -> VehicleCount:
    return VehicleCount(
        record_id=record_id,
        intersection=name,
        timestamp=timestamp.astimezone(timezone.utc),
        vehicle_count=count,
    )


def test_merge_prefers_existing_copy() -> None:
    ts = datetime(2024, 1, 9, 8, 0, tzinfo=VANCOUVER)
    existing = [_record("a", ts, count=1)]
    incoming = [_record("a", ts, count=2), _record("b", ts, count=3)]

    merged = merge_records(existing, incoming)

    assert [(r.record_id, r.vehicle_count) for r in merged] == [("a", 1), ("b", 3)]


def test_merge_is_idempotent() -> None:
    base = datetime(2024, 1, 9, 8, 0, tzinfo=VANCOUVER)
    batch = [_record(f"r{i}", base + timedelta(minutes=15 * i)) for i in range(5)]

    once = merge_records([], batch)
    twice = merge_records(once, batch)

    assert twice == once


def test_prune_drops_old_records_and_sorts() -> None:
    cutoff = datetime(2024, 1, 3, tzinfo=VANCOUVER)
    late = _record("late", cutoff + timedelta(hours=2))
    early = _record("early", cutoff)
    stale = _record("stale", cutoff - timedelta(seconds=1))

    pruned = prune_records([late, stale, early], cutoff)

    assert [r.record_id for r in pruned] == ["early", "late"]


def test_absorb_keeps_window_bounded_and_unique() -> None:
    window = RollingWindow(VANCOUVER)
    cutoff = window_cutoff(VANCOUVER, NOW)
    batch = [
        _record("old", cutoff - timedelta(minutes=1)),
        _record("edge", cutoff),
        _record("new", NOW - timedelta(hours=1)),
    ]

    window.absorb(batch, NOW)
    records = window.absorb(batch, NOW)

    assert [r.record_id for r in records] == ["edge", "new"]
    assert all(r.timestamp >= cutoff for r in window)
    assert len(window) == 2


def test_absorb_expires_records_as_time_advances() -> None:
    window = RollingWindow(VANCOUVER)
    window.absorb([_record("a", datetime(2024, 1, 3, 1, 0, tzinfo=VANCOUVER))], NOW)
    assert len(window) == 1

    window.absorb([], NOW + timedelta(days=1))

    assert len(window) == 0
