"""Recurring schedule endpoints."""

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_schedule_service, raise_for_result
from ..schemas import (
    ApplyTemplateRequest,
    ScheduleCreateRequest,
    ScheduleListResponse,
    ScheduleResponse,
    ScheduleUpdateRequest,
)
from ...constants import ERR_SCHEDULE_NOT_FOUND
from ...domain.models import ErrorCode, OperationResult, RecurringSchedule
from ...services import ScheduleService

router = APIRouter()


def _owned_schedule(
    service: ScheduleService, webhook_id: str, schedule_id: str
) -> RecurringSchedule:
    """Look up a schedule and make sure it belongs to the webhook in the path."""
    schedule = service.get_schedule(schedule_id)
    if schedule is None or schedule.webhook_id != webhook_id:
        raise_for_result(
            OperationResult.fail(ErrorCode.SCHEDULE_NOT_FOUND, ERR_SCHEDULE_NOT_FOUND)
        )
    return schedule


@router.get(
    "/webhooks/{webhook_id}/schedules",
    response_model=ScheduleListResponse,
    summary="List schedules of a webhook",
    description="Get the recurring schedules of a webhook, newest first",
)
async def list_schedules(
    webhook_id: str,
    service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleListResponse:
    result = service.list_schedules(webhook_id)
    if not result.success:
        raise_for_result(result)
    return ScheduleListResponse(
        schedules=[ScheduleResponse.from_record(s) for s in result.value],
        total=len(result.value),
    )


@router.post(
    "/webhooks/{webhook_id}/schedules",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a schedule",
)
async def create_schedule(
    webhook_id: str,
    request: ScheduleCreateRequest,
    service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    """
    Create a recurring schedule on a webhook.

    The next trigger time is computed immediately from the policy.

    Args:
        webhook_id: Webhook id
        request: Schedule definition
        service: Schedule service

    Returns:
        The created schedule
    """
    result = service.create_schedule(webhook_id=webhook_id, **request.model_dump())
    if not result.success:
        raise_for_result(result)
    return ScheduleResponse.from_record(result.value)


@router.post(
    "/webhooks/{webhook_id}/schedules/apply",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a schedule from a template",
)
async def apply_template(
    webhook_id: str,
    request: ApplyTemplateRequest,
    service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    result = service.apply_template(webhook_id, request.template_id)
    if not result.success:
        raise_for_result(result)
    return ScheduleResponse.from_record(result.value)


@router.get(
    "/webhooks/{webhook_id}/schedules/{schedule_id}",
    response_model=ScheduleResponse,
    summary="Get a schedule",
)
async def get_schedule(
    webhook_id: str,
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    return ScheduleResponse.from_record(_owned_schedule(service, webhook_id, schedule_id))


@router.patch(
    "/webhooks/{webhook_id}/schedules/{schedule_id}",
    response_model=ScheduleResponse,
    summary="Update a schedule",
    description=(
        "Partial update. Changing a policy field, or re-enabling the schedule, "
        "recomputes its next trigger time"
    ),
)
async def update_schedule(
    webhook_id: str,
    schedule_id: str,
    request: ScheduleUpdateRequest,
    service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    _owned_schedule(service, webhook_id, schedule_id)
    result = service.update_schedule(schedule_id, **request.model_dump(exclude_unset=True))
    if not result.success:
        raise_for_result(result)
    return ScheduleResponse.from_record(result.value)


@router.delete(
    "/webhooks/{webhook_id}/schedules/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a schedule",
)
async def delete_schedule(
    webhook_id: str,
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
) -> Response:
    _owned_schedule(service, webhook_id, schedule_id)
    result = service.delete_schedule(schedule_id)
    if not result.success:
        raise_for_result(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
