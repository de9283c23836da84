"""FastAPI dependency injection for the store, engines and services."""

from typing import NoReturn, Optional

from fastapi import HTTPException, status

from ..domain.models import OperationResult
from ..engines.ticker import ScheduleTicker
from ..services import MessageService, ScheduleService, TargetService, TemplateService
from ..store.interface import Store
from ..utils.time import Clock, utc_now
from ..webhook.client import DeliveryClient

# Global instances (set during app startup)
_store_instance: Optional[Store] = None
_delivery_client_instance: Optional[DeliveryClient] = None
_ticker_instance: Optional[ScheduleTicker] = None
_clock: Clock = utc_now


def set_store_instance(store: Store) -> None:
    """
    Set the global Store instance.

    This is called during application startup to make the store available
    to all API routes.

    Args:
        store: The Store instance
    """
    global _store_instance
    _store_instance = store


def set_delivery_client_instance(client: DeliveryClient) -> None:
    """Set the global DeliveryClient used for manual and test sends."""
    global _delivery_client_instance
    _delivery_client_instance = client


def set_ticker_instance(ticker: ScheduleTicker) -> None:
    """
    Set the global ScheduleTicker instance.

    The cron endpoints run the engines through the ticker so that they share
    its overlap guard with the background loop.

    Args:
        ticker: The ScheduleTicker instance
    """
    global _ticker_instance
    _ticker_instance = ticker


def set_clock(clock: Clock) -> None:
    """Set the clock used by the services (service timezone)."""
    global _clock
    _clock = clock


def get_store() -> Store:
    """
    Dependency to get the Store instance.

    Raises:
        RuntimeError: If the store has not been set
    """
    if _store_instance is None:
        raise RuntimeError("Store instance not initialized")
    return _store_instance


def get_delivery_client() -> DeliveryClient:
    if _delivery_client_instance is None:
        raise RuntimeError("DeliveryClient instance not initialized")
    return _delivery_client_instance


def get_ticker() -> ScheduleTicker:
    """
    Dependency to get the ScheduleTicker instance.

    Raises:
        RuntimeError: If the ticker has not been set
    """
    if _ticker_instance is None:
        raise RuntimeError("ScheduleTicker instance not initialized")
    return _ticker_instance


def get_ticker_optional() -> Optional[ScheduleTicker]:
    return _ticker_instance


def get_target_service() -> TargetService:
    return TargetService(get_store(), get_delivery_client(), clock=_clock)


def get_schedule_service() -> ScheduleService:
    return ScheduleService(get_store(), clock=_clock)


def get_template_service() -> TemplateService:
    return TemplateService(get_store())


def get_message_service() -> MessageService:
    ticker = get_ticker()
    return MessageService(get_store(), ticker.deferred)


def raise_for_result(result: OperationResult) -> NoReturn:
    """
    Convert a rejected OperationResult into an HTTPException.

    Not-found codes map to 404, every other rejection to 400.

    Raises:
        HTTPException: Always
    """
    code = result.error_code
    status_code = (
        status.HTTP_404_NOT_FOUND
        if code is not None and code.is_not_found
        else status.HTTP_400_BAD_REQUEST
    )
    raise HTTPException(status_code=status_code, detail=result.error)
