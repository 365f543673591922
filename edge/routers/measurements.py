"""
edge/routers/measurements.py

HTTP surface of the edge pipeline.
- POST /measurements: ingest one measurement
- POST /connectivity: toggle online/offline
- POST /flush: replay cached data once back online
- GET /status, GET /history: display helpers

Handlers are plain functions: FastAPI runs them in its threadpool and
EdgeProcessor serialises them with its own lock.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel

from edge.constants import DEFAULT_HISTORY_LIMIT
from edge.services.edge_processor import EdgeProcessor

logger = structlog.get_logger(__name__)

router = APIRouter()


class ConnectivityRequest(BaseModel):
    online: bool


def get_edge_processor(request: Request) -> EdgeProcessor:
    return request.app.state.edge_processor


def _recent(edge: EdgeProcessor, limit: int) -> dict[str, list]:
    if edge.history is None:
        return {"measurements": [], "alerts": []}
    recent = edge.history.get_recent(limit)
    return {
        "measurements": [m.model_dump(mode="json", by_alias=True) for m in recent["measurements"]],
        "alerts": [a.model_dump(mode="json", by_alias=True) for a in recent["alerts"]],
    }


@router.post("/measurements")
def ingest_measurement(
    payload: Any = Body(...),
    edge: EdgeProcessor = Depends(get_edge_processor),
) -> dict[str, Any]:
    """
    Run one measurement through the pipeline.

    The body is passed through unparsed so that structural problems are
    reported as a discard result rather than a 422.
    """
    result = edge.ingest_measurement(payload)
    logger.info("measurement_ingested", status=result.status, reason=result.reason)
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/connectivity")
def set_connectivity(
    body: ConnectivityRequest,
    edge: EdgeProcessor = Depends(get_edge_processor),
) -> dict[str, bool]:
    edge.set_online(body.online)
    return {"online": edge.is_online()}


@router.post("/flush")
def flush_cached_data(
    edge: EdgeProcessor = Depends(get_edge_processor),
) -> dict[str, Any]:
    result = edge.flush_cached_data()
    return result.model_dump(mode="json", by_alias=True)


@router.get("/status")
def get_status(
    edge: EdgeProcessor = Depends(get_edge_processor),
) -> dict[str, Any]:
    return {
        "online": edge.is_online(),
        "pendingEvents": edge.pending_count(),
        "streams": edge.stream_count(),
        "debounceKeys": edge.debounce_key_count(),
        "recent": _recent(edge, DEFAULT_HISTORY_LIMIT),
    }


@router.get("/history")
def get_history(
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=1000),
    edge: EdgeProcessor = Depends(get_edge_processor),
) -> dict[str, list]:
    return _recent(edge, limit)
