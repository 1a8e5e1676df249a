from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from logging_config import configure_logging
from services.scheduler import build_default_refresher
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    refresher = build_default_refresher()
    refresher.start()
    try:
        yield
    finally:
        refresher.shutdown()
        build_default_refresher.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="Traffic Counts Aggregator",
        description="Read-only snapshot of per-intersection vehicle counts in 15-minute slots.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allow_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        reload=False,
    )


app = create_app()
