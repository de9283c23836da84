"""Endpoints for external schedulers to run the trigger engines."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_ticker
from ..schemas import CronRunResponse, FiringResultResponse
from ...engines.ticker import ScheduleTicker

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_response(results: Optional[List[FiringResultResponse]]) -> CronRunResponse:
    if results is None:
        return CronRunResponse(skipped=True, processed=0, succeeded=0, failed=0, results=[])

    succeeded = sum(1 for r in results if r.success)
    return CronRunResponse(
        processed=len(results),
        succeeded=succeeded,
        failed=len(results) - succeeded,
        results=results,
    )


@router.get(
    "/cron/process-schedules",
    response_model=CronRunResponse,
    summary="Process due recurring schedules (GET, for URL-polling cron services)",
    description="Fire every active schedule whose next trigger time has passed",
)
@router.post(
    "/cron/process-schedules",
    response_model=CronRunResponse,
    summary="Process due recurring schedules",
    description="Fire every active schedule whose next trigger time has passed",
)
async def process_schedules(
    ticker: ScheduleTicker = Depends(get_ticker),
) -> CronRunResponse:
    """
    Run the recurring schedule engine once.

    If a run is already in progress (from the background ticker or an
    earlier call) this call is skipped and reported with ``skipped=true``.

    Returns:
        Summary and per-schedule results
    """
    results = await ticker.run_recurring()
    if results is None:
        return _run_response(None)
    return _run_response(
        [
            FiringResultResponse(
                id=r.schedule_id,
                name=r.schedule_name,
                success=r.success,
                error=r.error,
                status_code=r.status_code,
            )
            for r in results
        ]
    )


@router.get(
    "/cron/send-scheduled",
    response_model=CronRunResponse,
    summary="Send due one-off messages (GET, for URL-polling cron services)",
    description="Send every pending deferred message whose scheduled time has passed",
)
@router.post(
    "/cron/send-scheduled",
    response_model=CronRunResponse,
    summary="Send due one-off messages",
    description="Send every pending deferred message whose scheduled time has passed",
)
async def send_scheduled(
    ticker: ScheduleTicker = Depends(get_ticker),
) -> CronRunResponse:
    """
    Run the deferred send engine once.

    Returns:
        Summary and per-message results
    """
    results = await ticker.run_deferred()
    if results is None:
        return _run_response(None)
    return _run_response(
        [
            FiringResultResponse(
                id=r.message_id,
                success=r.success,
                error=r.error,
                status_code=r.status_code,
            )
            for r in results
        ]
    )
