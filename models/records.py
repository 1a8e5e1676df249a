"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class VehicleCount:
    """A single raw observation reported by an intersection camera.

    Two records with the same ``record_id`` are the same observation, whatever
    their other fields say.
    """

    record_id: str
    intersection: str
    timestamp: datetime
    vehicle_count: int


@dataclass(frozen=True, slots=True)
class QuantizedCount:
    """A vehicle count whose timestamp sits on the 15-minute grid."""

    intersection: str
    timestamp: datetime
    vehicle_count: int
