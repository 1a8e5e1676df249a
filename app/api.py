"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.schemas import DataResponse, HealthResponse, build_data_response
from datastore.snapshot_cache import SnapshotCache, build_default_cache

router = APIRouter(prefix="/api")


def get_snapshot_cache() -> SnapshotCache:
    return build_default_cache()


@router.get(
    "/health/",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthResponse:
    return HealthResponse(message="API is up")


@router.get(
    "/data/",
    response_model=DataResponse,
    summary="Latest per-intersection daily vehicle counts.",
    status_code=status.HTTP_200_OK,
)
async def get_data(cache: SnapshotCache = Depends(get_snapshot_cache)) -> DataResponse:
    return build_data_response(cache.get())
