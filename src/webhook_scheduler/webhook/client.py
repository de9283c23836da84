"""DeliveryClient for POSTing payloads to Discord webhook URLs."""

import json
import logging
import time
from typing import Any, Optional, Union

import httpx

from ..domain.models import DeliveryResult
from .models import WirePayload

logger = logging.getLogger(__name__)


class DeliveryClient:
    """Performs single outbound webhook calls and classifies the outcome.

    There is no retry logic here: one call, one result. Retry policy belongs to
    the caller, and the scheduling engines deliberately perform none.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[Any] = None,
    ):
        """
        Initialize the delivery client.

        Args:
            timeout: HTTP request timeout in seconds; a timed-out call is a
                transport failure like any other
            client: Optional pre-configured httpx.AsyncClient (tests pass one
                backed by httpx.MockTransport)
            metrics: Optional MetricsCollector for latency recording
        """
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.metrics = metrics
        logger.info(f"DeliveryClient initialized: timeout={timeout}s")

    async def deliver(
        self, url: str, payload: Union[WirePayload, dict[str, Any]]
    ) -> DeliveryResult:
        """
        POST ``payload`` as JSON to ``url``.

        Args:
            url: Webhook URL
            payload: Wire payload (or already-serialized JSON dict)

        Returns:
            DeliveryResult; success only for a 2xx response. Non-2xx responses
            carry the status code and the JSON error body (or "HTTP <code>").
            Transport failures carry no status code.
        """
        body = payload.to_json() if isinstance(payload, WirePayload) else payload
        started = time.perf_counter()

        try:
            response = await self.client.post(
                url,
                json=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException:
            logger.warning(f"Webhook timeout: {_redact(url)}")
            return DeliveryResult(
                success=False, error=f"Request timed out after {self.timeout}s"
            )
        except httpx.HTTPError as e:
            logger.warning(f"Webhook transport error: {type(e).__name__}: {e} ({_redact(url)})")
            return DeliveryResult(success=False, error=str(e) or type(e).__name__)
        finally:
            if self.metrics:
                self.metrics.record_delivery_latency(time.perf_counter() - started)

        status_code = response.status_code
        if response.is_success:
            logger.debug(f"Webhook delivered to {_redact(url)} (status={status_code})")
            return DeliveryResult(success=True, status_code=status_code)

        error = _error_from_response(response)
        logger.warning(f"Webhook HTTP error: {status_code} - {_redact(url)}: {error}")
        return DeliveryResult(success=False, status_code=status_code, error=error)

    async def close(self) -> None:
        """Close HTTP client connection pool."""
        await self.client.aclose()
        logger.debug("DeliveryClient closed")


def _error_from_response(response: httpx.Response) -> str:
    """Structured error body if the response has one, else ``HTTP <code>``."""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    return json.dumps(data, ensure_ascii=False)


def _redact(url: str) -> str:
    """Drop the webhook token (last path segment) from a URL for logging."""
    head, sep, _token = url.rstrip("/").rpartition("/")
    return f"{head}/***" if sep else url
