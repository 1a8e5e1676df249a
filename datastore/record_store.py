"""Read-only gateways onto the vehicle count store."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Iterable, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from models.records import VehicleCount
from services.errors import StoreUnavailableError
from settings import get_settings


class RecordStore(Protocol):
    def find_newer_than(self, watermark: datetime) -> List[VehicleCount]:
        """Return every record whose timestamp is strictly after ``watermark``."""
        ...


class VehicleCountDocument(BaseModel):
    """Stored shape of a vehicle count document."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", min_length=1)
    intersection: str = Field(..., min_length=1)
    timestamp: datetime
    vehicle_count: int = Field(..., alias="vehicleCount", ge=0)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_record(self) -> VehicleCount:
        return VehicleCount(
            record_id=self.id,
            intersection=self.intersection,
            timestamp=self.timestamp,
            vehicle_count=self.vehicle_count,
        )


_DOCUMENTS = TypeAdapter(List[VehicleCountDocument])


class InMemoryRecordStore:

    def __init__(self, records: Iterable[VehicleCount] = ()) -> None:
        self._records: List[VehicleCount] = list(records)
        self._lock = Lock()

    def insert_many(self, records: Iterable[VehicleCount]) -> None:
        with self._lock:
            self._records.extend(records)

    def find_newer_than(self, watermark: datetime) -> List[VehicleCount]:
        with self._lock:
            return [record for record in self._records if record.timestamp > watermark]


class JsonRecordStore:
    """Collection of vehicle count documents kept in a JSON array on disk.

    The file is re-read on every query so that records appended by the sensor
    pipeline show up on the next refresh.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def find_newer_than(self, watermark: datetime) -> List[VehicleCount]:
        documents = self._load_documents()
        return [
            document.to_record()
            for document in documents
            if document.timestamp > watermark
        ]

    def _load_documents(self) -> List[VehicleCountDocument]:
        try:
            raw = self.path.read_text(encoding="utf-8") or "[]"
            payload = json.loads(raw)
        except OSError as exc:
            raise StoreUnavailableError(f"Unable to read record store at {self.path}.") from exc
        except json.JSONDecodeError as exc:
            raise StoreUnavailableError(f"Record store at {self.path} is not valid JSON.") from exc

        try:
            return _DOCUMENTS.validate_python(payload)
        except ValidationError as exc:
            raise StoreUnavailableError(
                f"Record store at {self.path} holds malformed documents: "
                f"{exc.error_count()} error(s)."
            ) from exc


@lru_cache
def build_default_store(path: Optional[str] = None) -> RecordStore:
    settings = get_settings()
    store_path = settings.record_store_path if path is None else path
    if not store_path:
        return InMemoryRecordStore()
    return JsonRecordStore(Path(store_path))
