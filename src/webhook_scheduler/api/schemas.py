"""Pydantic schemas for API request and response validation."""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

from ..domain.models import (
    DeferredStatus,
    DeliveryStatus,
    MessageSource,
    RecurringSchedule,
    Template,
)
from ..scheduling.recurrence import policy_to_columns

ScheduleTypeName = Literal["interval", "daily", "weekly"]


# ============================================================================
# Common/Shared Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")


class PolicyFields(BaseModel):
    """Recurrence policy in flattened form."""

    schedule_type: Optional[ScheduleTypeName] = Field(None, description="interval, daily or weekly")
    interval_minutes: Optional[int] = Field(None, description="Minutes between firings (interval)")
    schedule_time: Optional[str] = Field(None, description="Wall-clock time HH:mm (daily, weekly)")
    schedule_days: Optional[List[int]] = Field(
        None, description="Weekdays 0 (Sunday) to 6 (Saturday) (weekly)"
    )


# ============================================================================
# Webhook Target Schemas
# ============================================================================

class WebhookCreateRequest(BaseModel):
    """Request model for registering a webhook target."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    url: str = Field(..., min_length=1, max_length=500, description="Discord webhook URL")
    is_active: bool = Field(True, description="Whether messages may be sent")


class WebhookUpdateRequest(BaseModel):
    """Request model for updating a webhook target."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = Field(None, min_length=1, max_length=500)
    is_active: Optional[bool] = None


class WebhookResponse(BaseModel):
    """Response model for a webhook target."""

    id: str
    name: str
    url: str
    is_active: bool
    success_count: int
    fail_count: int
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WebhookListResponse(BaseModel):
    """Response model for webhook target list."""

    webhooks: List[WebhookResponse]
    total: int


# ============================================================================
# Message Schemas
# ============================================================================

class SendMessageRequest(BaseModel):
    """Request model for an immediate plain-text send."""

    content: str = Field(..., description="Message text")


class ScheduleMessageRequest(BaseModel):
    """Request model for a deferred one-off send."""

    content: str = Field(..., description="Message text")
    scheduled_for: datetime = Field(..., description="When to send (ISO 8601); naive values are UTC")


class MessageLogResponse(BaseModel):
    """Response model for a message history entry."""

    id: str
    webhook_id: str
    content: str
    status: DeliveryStatus
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    source: MessageSource
    source_id: Optional[str] = None
    sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageHistoryResponse(BaseModel):
    """Response model for a page of message history."""

    messages: List[MessageLogResponse]
    has_more: bool
    next_cursor: Optional[datetime] = Field(
        None, description="Pass as `cursor` to fetch the next (older) page"
    )


class SendMessageResponse(BaseModel):
    """Response model for an immediate send."""

    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    message: MessageLogResponse


class WebhookTestResponse(BaseModel):
    """Response model for a test send."""

    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class DeferredMessageResponse(BaseModel):
    """Response model for a deferred message."""

    id: str
    webhook_id: str
    content: str
    status: DeferredStatus
    scheduled_for: datetime
    created_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    outcome: Optional[DeliveryStatus] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    class Config:
        from_attributes = True


class DeferredMessageListResponse(BaseModel):
    """Response model for deferred message list."""

    messages: List[DeferredMessageResponse]
    total: int


# ============================================================================
# Schedule Schemas
# ============================================================================

class ScheduleCreateRequest(PolicyFields):
    """Request model for creating a recurring schedule."""

    name: str = Field(..., min_length=1, max_length=255)
    schedule_type: ScheduleTypeName = Field(..., description="interval, daily or weekly")
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = Field(None, description="Discord embed object")
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: bool = True


class ScheduleUpdateRequest(PolicyFields):
    """Request model for updating a recurring schedule; omitted fields are unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = None
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class ApplyTemplateRequest(BaseModel):
    """Request model for creating a schedule from a template."""

    template_id: str = Field(..., min_length=1)


class ScheduleResponse(PolicyFields):
    """Response model for a recurring schedule."""

    id: str
    webhook_id: str
    name: str
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = None
    image_url: Optional[str] = None
    is_active: bool
    last_triggered_at: Optional[datetime] = None
    next_trigger_at: Optional[datetime] = None
    success_count: int
    fail_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, schedule: RecurringSchedule) -> "ScheduleResponse":
        """Flatten a schedule record's policy into response fields."""
        return cls(
            id=schedule.id,
            webhook_id=schedule.webhook_id,
            name=schedule.name,
            message_content=schedule.message_content,
            embed_data=schedule.embed_data,
            image_url=schedule.image_url,
            is_active=schedule.is_active,
            last_triggered_at=schedule.last_triggered_at,
            next_trigger_at=schedule.next_trigger_at,
            success_count=schedule.success_count,
            fail_count=schedule.fail_count,
            created_at=schedule.created_at,
            updated_at=schedule.updated_at,
            **policy_to_columns(schedule.policy),
        )


class ScheduleListResponse(BaseModel):
    """Response model for schedule list."""

    schedules: List[ScheduleResponse]
    total: int


# ============================================================================
# Template Schemas
# ============================================================================

class TemplateCreateRequest(PolicyFields):
    """Request model for creating a template."""

    name: str = Field(..., min_length=1, max_length=255)
    schedule_type: ScheduleTypeName = Field(..., description="interval, daily or weekly")
    description: Optional[str] = None
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = None
    image_url: Optional[str] = Field(None, max_length=500)


class TemplateUpdateRequest(PolicyFields):
    """Request model for updating a template; omitted fields are unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = None
    image_url: Optional[str] = Field(None, max_length=500)


class TemplateResponse(PolicyFields):
    """Response model for a template."""

    id: str
    name: str
    description: Optional[str] = None
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, template: Template) -> "TemplateResponse":
        """Flatten a template record's policy into response fields."""
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            message_content=template.message_content,
            embed_data=template.embed_data,
            image_url=template.image_url,
            created_at=template.created_at,
            updated_at=template.updated_at,
            **policy_to_columns(template.policy),
        )


class TemplateListResponse(BaseModel):
    """Response model for template list."""

    templates: List[TemplateResponse]
    total: int


# ============================================================================
# Cron Schemas
# ============================================================================

class FiringResultResponse(BaseModel):
    """Outcome of one firing."""

    id: str
    name: Optional[str] = None
    success: bool
    error: Optional[str] = None
    status_code: Optional[int] = None


class CronRunResponse(BaseModel):
    """Response model for an externally triggered engine run."""

    skipped: bool = Field(False, description="True if a previous run was still in progress")
    processed: int
    succeeded: int
    failed: int
    results: List[FiringResultResponse]


# ============================================================================
# Health Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Response model for overall health check."""

    status: str = Field(..., description="Overall status (healthy/unhealthy)")
    database_connected: bool
    uptime_seconds: float
    ticker_running: bool
