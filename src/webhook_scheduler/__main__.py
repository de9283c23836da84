"""Main application entry point."""

import asyncio
import logging
from typing import Any, Optional

import uvicorn

from .api.app import create_app
from .api.dependencies import (
    set_clock,
    set_delivery_client_instance,
    set_store_instance,
    set_ticker_instance,
)
from .config import Config
from .database import DataCleanup, DatabaseEngine
from .engines import DeferredSendEngine, RecurringScheduleEngine, ScheduleTicker
from .metrics import MetricsCollector, get_metrics
from .store import SqlStore
from .utils.time import make_clock
from .webhook import DeliveryClient

logger = logging.getLogger(__name__)


class Application:
    """Wires storage, delivery, engines and the HTTP server into one process."""

    def __init__(self, config: Config):
        """
        Initialize application.

        Args:
            config: Application configuration
        """
        self.config = config
        self.db_engine: Optional[DatabaseEngine] = None
        self.store: Optional[SqlStore] = None
        self.delivery_client: Optional[DeliveryClient] = None
        self.ticker: Optional[ScheduleTicker] = None
        self.metrics: Optional[MetricsCollector] = None
        self.cleanup_task: Optional[asyncio.Task] = None
        self.api_server_task: Optional[asyncio.Task] = None
        self.running = False

    def _build(self) -> None:
        """Create the database, store, delivery client and engines."""
        if self.config.metrics_enabled:
            self.metrics = get_metrics()

        logger.info("Initializing database...")
        self.db_engine = DatabaseEngine(self.config.db_path)
        self.db_engine.initialize()
        self.store = SqlStore(self.db_engine)

        self.delivery_client = DeliveryClient(
            timeout=self.config.delivery_timeout, metrics=self.metrics
        )
        clock = make_clock(self.config.timezone)

        recurring = RecurringScheduleEngine(
            self.store, self.delivery_client, clock=clock, metrics=self.metrics
        )
        deferred = DeferredSendEngine(
            self.store, self.delivery_client, clock=clock, metrics=self.metrics
        )
        self.ticker = ScheduleTicker(
            recurring,
            deferred,
            interval_seconds=self.config.tick_interval_seconds,
            metrics=self.metrics,
        )

        set_store_instance(self.store)
        set_delivery_client_instance(self.delivery_client)
        set_ticker_instance(self.ticker)
        set_clock(clock)

    async def start(self) -> None:
        """Start the application."""
        logger.info("Starting Webhook Scheduler")
        logger.info(f"\n{self.config.display()}")

        self._build()

        if self.config.tick_enabled:
            await self.ticker.start()
        else:
            logger.info("In-process ticker disabled, relying on the cron endpoints")

        # Background loops below poll this flag
        self.running = True

        if self.config.retention_days > 0:
            self.cleanup_task = asyncio.create_task(self._cleanup_loop())

        self.api_server_task = asyncio.create_task(self._run_api_server())
        logger.info(f"Listening on {self.config.api_host}:{self.config.api_port}")

    async def stop(self) -> None:
        """Stop the application."""
        logger.info("Stopping Webhook Scheduler...")
        self.running = False

        for task in (self.api_server_task, self.cleanup_task):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if self.ticker:
            await self.ticker.stop()

        if self.delivery_client:
            await self.delivery_client.close()

        if self.db_engine:
            self.db_engine.close()

        logger.info("Application stopped")

    async def tick_once(self) -> dict[str, Any]:
        """
        Run both engines a single time without starting the API server.

        Returns:
            The ticker's per-engine firing results
        """
        self._build()
        try:
            return await self.ticker.tick()
        finally:
            await self.delivery_client.close()
            self.db_engine.close()

    async def _run_api_server(self) -> None:
        """Run the FastAPI server."""
        try:
            app = create_app(
                title=self.config.api_title,
                version=self.config.api_version,
                enable_metrics=self.config.metrics_enabled,
            )

            config = uvicorn.Config(
                app,
                host=self.config.api_host,
                port=self.config.api_port,
                log_level="info",
                access_log=True,
            )
            server = uvicorn.Server(config)
            await server.serve()

        except asyncio.CancelledError:
            logger.info("API server shutting down...")
            raise
        except Exception as e:
            logger.error(f"API server error: {e}", exc_info=True)
            if self.metrics:
                self.metrics.record_error("api_server", "server_failed")

    async def _cleanup_loop(self) -> None:
        """Delete expired history every `cleanup_interval_hours`."""
        cleanup = DataCleanup(self.db_engine, self.config.retention_days)

        while self.running:
            try:
                await asyncio.sleep(self.config.cleanup_interval_hours * 3600)

                deleted = cleanup.cleanup_old_data()
                if self.metrics:
                    for table, count in deleted.items():
                        if count:
                            self.metrics.record_cleanup(table, count)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in cleanup loop: {e}", exc_info=True)
                if self.metrics:
                    self.metrics.record_error("cleanup", "cleanup_failed")

    async def run(self) -> None:
        """Run the application until interrupted."""
        try:
            await self.start()

            while self.running:
                await asyncio.sleep(1)

        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        except Exception as e:
            logger.error(f"Application error: {e}", exc_info=True)
        finally:
            await self.stop()


def main() -> None:
    """Console script entry point."""
    from .cli import cli
    cli()


if __name__ == "__main__":
    main()
