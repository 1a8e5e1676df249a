"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from services.aggregator import Snapshot


class HealthResponse(BaseModel):
    message: str = Field(..., description="Static liveness message.")


class IntersectionData(BaseModel):
    """Aggregated counts for one intersection."""

    location: Any = Field(..., description="Geographic descriptor from the camera catalog.")
    data: Dict[str, List[int]] = Field(
        default_factory=dict,
        description="Counts per 15-minute slot keyed by local day (YYYY-M-D), oldest first.",
    )


class DataResponse(BaseModel):
    """Latest published snapshot; empty until the first cycle succeeds."""

    data: Dict[str, IntersectionData] = Field(default_factory=dict)


def build_data_response(snapshot: Optional[Snapshot]) -> DataResponse:
    if snapshot is None:
        return DataResponse()
    return DataResponse.model_validate({"data": snapshot.to_payload()})
