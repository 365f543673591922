"""
edge/main.py

FastAPI application entry point for the edge service.
Builds the EdgeProcessor once at startup and registers routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from config import settings
from edge.routers.measurements import router as measurements_router
from edge.services.edge_processor import EdgeProcessor

logger = structlog.get_logger(__name__)


def configure_logging(level: str) -> None:
    """Filter structlog output below the configured level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle: startup and shutdown."""
    configure_logging(settings.log_level)
    # Config errors are fatal here: the service does not start without policy
    app.state.edge_processor = EdgeProcessor.from_settings(settings)
    logger.info(
        "edge_starting",
        online=app.state.edge_processor.is_online(),
        history_enabled=settings.history_enabled,
    )
    yield
    logger.info(
        "edge_shutting_down",
        pending_events=app.state.edge_processor.pending_count(),
        streams=app.state.edge_processor.stream_count(),
        debounce_keys=app.state.edge_processor.debounce_key_count(),
    )


app = FastAPI(
    title="MedAlert Edge",
    description="Measurement validation, anomaly detection and offline-safe alerting",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(measurements_router)
