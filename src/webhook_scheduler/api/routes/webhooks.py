"""Webhook target management and send endpoints."""

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_target_service, raise_for_result
from ..schemas import (
    MessageLogResponse,
    SendMessageRequest,
    SendMessageResponse,
    WebhookCreateRequest,
    WebhookListResponse,
    WebhookResponse,
    WebhookTestResponse,
    WebhookUpdateRequest,
)
from ...constants import ERR_TARGET_NOT_FOUND
from ...domain.models import DeliveryStatus, ErrorCode, OperationResult
from ...services import TargetService

router = APIRouter()


@router.get(
    "/webhooks",
    response_model=WebhookListResponse,
    summary="List webhooks",
    description="Get all registered webhook targets, newest first",
)
async def list_webhooks(
    service: TargetService = Depends(get_target_service),
) -> WebhookListResponse:
    targets = service.list_targets()
    return WebhookListResponse(
        webhooks=[WebhookResponse.model_validate(t) for t in targets],
        total=len(targets),
    )


@router.post(
    "/webhooks",
    response_model=WebhookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a webhook",
)
async def create_webhook(
    request: WebhookCreateRequest,
    service: TargetService = Depends(get_target_service),
) -> WebhookResponse:
    """
    Register a new Discord webhook target.

    Args:
        request: Name, URL and initial active flag
        service: Target service

    Returns:
        The created webhook
    """
    result = service.create_target(request.name, request.url, request.is_active)
    if not result.success:
        raise_for_result(result)
    return WebhookResponse.model_validate(result.value)


@router.get(
    "/webhooks/{webhook_id}",
    response_model=WebhookResponse,
    summary="Get a webhook",
)
async def get_webhook(
    webhook_id: str,
    service: TargetService = Depends(get_target_service),
) -> WebhookResponse:
    target = service.get_target(webhook_id)
    if target is None:
        raise_for_result(OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND))
    return WebhookResponse.model_validate(target)


@router.patch(
    "/webhooks/{webhook_id}",
    response_model=WebhookResponse,
    summary="Update a webhook",
    description="Change the name, URL or active flag; omitted fields are left unchanged",
)
async def update_webhook(
    webhook_id: str,
    request: WebhookUpdateRequest,
    service: TargetService = Depends(get_target_service),
) -> WebhookResponse:
    result = service.update_target(webhook_id, **request.model_dump(exclude_unset=True))
    if not result.success:
        raise_for_result(result)
    return WebhookResponse.model_validate(result.value)


@router.delete(
    "/webhooks/{webhook_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a webhook",
    description="Delete a webhook together with its schedules, deferred messages and history",
)
async def delete_webhook(
    webhook_id: str,
    service: TargetService = Depends(get_target_service),
) -> Response:
    result = service.delete_target(webhook_id)
    if not result.success:
        raise_for_result(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/webhooks/{webhook_id}/send",
    response_model=SendMessageResponse,
    summary="Send a message now",
)
async def send_message(
    webhook_id: str,
    request: SendMessageRequest,
    service: TargetService = Depends(get_target_service),
) -> SendMessageResponse:
    """
    Send a plain-text message immediately.

    A message rejected by Discord still returns 200; ``success`` is false and
    the error is included.

    Args:
        webhook_id: Webhook id
        request: Message text
        service: Target service

    Returns:
        Delivery outcome and the message history entry
    """
    result = await service.send_message(webhook_id, request.content)
    if not result.success:
        raise_for_result(result)

    entry = result.value
    return SendMessageResponse(
        success=entry.status is DeliveryStatus.SUCCESS,
        status_code=entry.status_code,
        error=entry.error_message,
        message=MessageLogResponse.model_validate(entry),
    )


@router.post(
    "/webhooks/{webhook_id}/test",
    response_model=WebhookTestResponse,
    summary="Send a test message",
)
async def send_test_message(
    webhook_id: str,
    service: TargetService = Depends(get_target_service),
) -> WebhookTestResponse:
    result = await service.send_test(webhook_id)
    if not result.success:
        raise_for_result(result)

    delivery = result.value
    return WebhookTestResponse(
        success=delivery.success,
        status_code=delivery.status_code,
        error=delivery.error,
    )
