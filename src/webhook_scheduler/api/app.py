"""FastAPI application factory and configuration."""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(
    title: str = "Webhook Scheduler",
    version: str = "1.0.0",
    enable_metrics: bool = True,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        title: API title for OpenAPI documentation
        version: API version
        enable_metrics: Whether to enable Prometheus metrics

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        version=version,
        description="""
# Webhook Scheduler

Manage Discord webhooks and send messages to them now, later, or on a schedule.

## Features

- **Webhooks**: Register Discord webhook URLs, enable or disable them, send messages and test messages
- **Recurring Schedules**: Fire a message every N minutes, daily at a time, or weekly on chosen days
- **Templates**: Reusable message content and recurrence that can be applied to any webhook
- **Deferred Messages**: One-off plain-text messages sent at a given time, cancellable until sent
- **History**: Paginated log of every delivery attempt
- **Cron**: Endpoints an external scheduler can call to process due schedules and messages
- **Metrics**: Prometheus metrics endpoint for observability

## Weekdays

Weekly schedules use `0` for Sunday through `6` for Saturday. Times are `HH:mm` in the
service timezone (`WEBHOOK_SCHEDULER_TIMEZONE`, default UTC).

## Data Retention

When `WEBHOOK_SCHEDULER_RETENTION_DAYS` is set, message history and finished deferred
messages older than the retention period are removed periodically.
        """,
        license_info={
            "name": "MIT",
        },
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints for monitoring system status",
            },
            {
                "name": "webhooks",
                "description": "Webhook target management and immediate sends",
            },
            {
                "name": "schedules",
                "description": "Recurring schedules of a webhook",
            },
            {
                "name": "templates",
                "description": "Reusable message templates",
            },
            {
                "name": "messages",
                "description": "Message history and deferred one-off messages",
            },
            {
                "name": "cron",
                "description": "Run the trigger engines (for external schedulers)",
            },
        ],
    )


    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    from .routes import cron, health, messages, schedules, templates, webhooks

    for module, tag in (
        (health, "health"),
        (webhooks, "webhooks"),
        (schedules, "schedules"),
        (templates, "templates"),
        (messages, "messages"),
        (cron, "cron"),
    ):
        app.include_router(module.router, prefix=API_PREFIX, tags=[tag])

    if enable_metrics:
        Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            should_respect_env_var=False,
            should_instrument_requests_inprogress=True,
            excluded_handlers=["/metrics"],
            inprogress_name="webhook_scheduler_http_inprogress",
            inprogress_labels=True,
        ).instrument(app).expose(app, endpoint="/metrics")
        logger.info("Prometheus metrics exposed at /metrics")

    logger.info(f"API application created: {title} v{version}")
    return app


def _error_body(message: str, detail: Any = None) -> Dict[str, Any]:
    return {"error": message, "detail": detail}


def _register_exception_handlers(app: FastAPI) -> None:
    """Render every error response as ``{"error": ..., "detail": ...}``."""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problems: List[Dict[str, Any]] = []
        for error in exc.errors():
            problem = {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            if "input" in error:
                problem["input"] = str(error["input"])
            problems.append(problem)

        logger.warning(f"Rejected request {request.method} {request.url.path}: {len(problems)} problem(s)")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body("Validation error", problems),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # Storage failures land here; the store never converts them to results
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        detail = str(exc) if logger.isEnabledFor(logging.DEBUG) else None
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Internal server error", detail),
        )
