"""Health check endpoints."""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_store, get_ticker_optional
from ..schemas import HealthCheckResponse
from ...engines.ticker import ScheduleTicker
from ...store.interface import Store

logger = logging.getLogger(__name__)

router = APIRouter()

_started_at = time.monotonic()


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Overall health check",
    description="Report database connectivity and whether the background ticker is running",
)
async def health_check(
    store: Store = Depends(get_store),
    ticker: Optional[ScheduleTicker] = Depends(get_ticker_optional),
) -> HealthCheckResponse:
    """
    Check the health of the service.

    Returns:
        Health status with database connectivity and uptime
    """
    try:
        store.list_templates()
        database_connected = True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database_connected = False

    return HealthCheckResponse(
        status="healthy" if database_connected else "unhealthy",
        database_connected=database_connected,
        uptime_seconds=round(time.monotonic() - _started_at, 3),
        ticker_running=ticker is not None and ticker.is_running,
    )
