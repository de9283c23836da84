"""Message history and deferred message endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_message_service, raise_for_result
from ..schemas import (
    DeferredMessageListResponse,
    DeferredMessageResponse,
    MessageHistoryResponse,
    MessageLogResponse,
    ScheduleMessageRequest,
)
from ...constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT
from ...domain.models import DeferredStatus
from ...services import MessageService

router = APIRouter()


@router.get(
    "/webhooks/{webhook_id}/messages",
    response_model=MessageHistoryResponse,
    summary="Message history",
    description="Delivery attempts of a webhook, newest first, with cursor pagination on the send time",
)
async def list_messages(
    webhook_id: str,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT, description="Page size"),
    cursor: Optional[datetime] = Query(None, description="next_cursor of the previous page"),
    service: MessageService = Depends(get_message_service),
) -> MessageHistoryResponse:
    """
    Get one page of a webhook's message history.

    Args:
        webhook_id: Webhook id
        limit: Maximum number of entries to return
        cursor: Only return entries sent before this time
        service: Message service

    Returns:
        Entries plus the cursor for the next (older) page
    """
    result = service.list_history(webhook_id, limit=limit, cursor=cursor)
    if not result.success:
        raise_for_result(result)

    page = result.value
    return MessageHistoryResponse(
        messages=[MessageLogResponse.model_validate(m) for m in page.messages],
        has_more=page.has_more,
        next_cursor=page.next_cursor,
    )


@router.post(
    "/webhooks/{webhook_id}/schedule",
    response_model=DeferredMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a one-off message",
    description="Send a plain-text message once at a future time",
)
async def schedule_message(
    webhook_id: str,
    request: ScheduleMessageRequest,
    service: MessageService = Depends(get_message_service),
) -> DeferredMessageResponse:
    result = service.schedule_message(webhook_id, request.content, request.scheduled_for)
    if not result.success:
        raise_for_result(result)
    return DeferredMessageResponse.model_validate(result.value)


@router.get(
    "/webhooks/{webhook_id}/deferred",
    response_model=DeferredMessageListResponse,
    summary="List one-off messages",
    description="Deferred messages of a webhook, soonest scheduled first",
)
async def list_deferred(
    webhook_id: str,
    message_status: Optional[DeferredStatus] = Query(
        None, alias="status", description="Filter by status (pending/sent/cancelled)"
    ),
    service: MessageService = Depends(get_message_service),
) -> DeferredMessageListResponse:
    result = service.list_deferred(webhook_id, message_status)
    if not result.success:
        raise_for_result(result)
    return DeferredMessageListResponse(
        messages=[DeferredMessageResponse.model_validate(m) for m in result.value],
        total=len(result.value),
    )


@router.post(
    "/messages/{message_id}/cancel",
    response_model=DeferredMessageResponse,
    summary="Cancel a one-off message",
    description="Cancel a deferred message that has not been sent yet",
)
async def cancel_message(
    message_id: str,
    service: MessageService = Depends(get_message_service),
) -> DeferredMessageResponse:
    result = service.cancel_message(message_id)
    if not result.success:
        raise_for_result(result)
    return DeferredMessageResponse.model_validate(result.value)
