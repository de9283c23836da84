"""Command-line interface for Webhook Scheduler."""

import asyncio
import logging
import signal
import sys

import click

from .config import Config
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """Webhook Scheduler - Discord webhook manager with recurring and deferred sends."""
    pass


@cli.command()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (default: ./data/webhook_scheduler.db)",
)
@click.option(
    "--retention-days",
    type=int,
    help="Days to keep message history, 0 keeps it forever (default: 0)",
)
@click.option(
    "--cleanup-interval-hours",
    type=int,
    help="Hours between history cleanup runs (default: 24)",
)
@click.option(
    "--timezone",
    type=str,
    help="IANA timezone daily and weekly schedules are evaluated in (default: UTC)",
)
@click.option(
    "--tick/--no-tick",
    "tick_enabled",
    default=None,
    help="Run the engines in-process on a fixed cadence (default: enabled)",
)
@click.option(
    "--tick-interval-seconds",
    type=float,
    help="Seconds between in-process engine runs (default: 60)",
)
@click.option(
    "--delivery-timeout",
    type=float,
    help="Webhook request timeout in seconds (default: 10)",
)
@click.option(
    "--api-host",
    type=str,
    help="API server host (default: 0.0.0.0)",
)
@click.option(
    "--api-port",
    type=int,
    help="API server port (default: 8000)",
)
@click.option(
    "--metrics/--no-metrics",
    default=None,
    help="Enable/disable Prometheus metrics (default: enabled)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: INFO)",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "text"], case_sensitive=False),
    help="Log output format (default: json)",
)
def server(**kwargs):
    """Start the Webhook Scheduler API server."""
    from .__main__ import Application

    # Filter out None values (unspecified options)
    cli_args = {k: v for k, v in kwargs.items() if v is not None}

    config = Config.from_args_and_env(cli_args)
    setup_logging(level=config.log_level, format_type=config.log_format)

    app = Application(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        loop.create_task(app.stop())

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        loop.run_until_complete(app.run())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt")
    finally:
        loop.close()


@cli.command()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file",
)
@click.option(
    "--timezone",
    type=str,
    help="IANA timezone daily and weekly schedules are evaluated in",
)
@click.option(
    "--delivery-timeout",
    type=float,
    help="Webhook request timeout in seconds",
)
def tick(db_path, timezone, delivery_timeout):
    """Run both trigger engines once and print what fired.

    Useful from a system cron instead of the in-process ticker:

    \b
      * * * * * webhook-scheduler tick --db-path /var/lib/scheduler.db
    """
    from .__main__ import Application

    cli_args = {
        "db_path": db_path,
        "timezone": timezone,
        "delivery_timeout": delivery_timeout,
        "metrics": False,
    }
    config = Config.from_args_and_env({k: v for k, v in cli_args.items() if v is not None})
    setup_logging(level=config.log_level, format_type=config.log_format)

    app = Application(config)
    try:
        results = asyncio.run(app.tick_once())
    except Exception as e:
        click.echo(f"Tick failed: {e}", err=True)
        sys.exit(1)

    for result in results["schedules"] or []:
        state = "ok" if result.success else f"failed ({result.error})"
        click.echo(f"schedule {result.schedule_id} '{result.schedule_name}': {state}")
    for result in results["deferred"] or []:
        state = "ok" if result.success else f"failed ({result.error})"
        click.echo(f"deferred {result.message_id}: {state}")

    fired = len(results["schedules"] or []) + len(results["deferred"] or [])
    click.echo(f"Processed {fired} item(s)")


@cli.command()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file",
)
def status(db_path):
    """Show webhook, schedule and pending message counts."""
    from .database import DatabaseEngine
    from .domain.models import DeferredStatus
    from .store import SqlStore

    cli_args = {}
    if db_path is not None:
        cli_args["db_path"] = db_path
    config = Config.from_args_and_env(cli_args)

    db_engine = DatabaseEngine(config.db_path)
    try:
        db_engine.initialize()
        store = SqlStore(db_engine)

        targets = store.list_targets()
        schedules = store.list_schedules()
        pending = [
            message
            for target in targets
            for message in store.list_deferred(target.id, DeferredStatus.PENDING)
        ]
    except Exception as e:
        click.echo(f"Database error: {e}", err=True)
        sys.exit(1)
    finally:
        db_engine.close()

    click.echo(f"Database: {config.db_path}")
    click.echo(
        f"Webhooks: {len(targets)} ({sum(1 for t in targets if t.is_active)} active)"
    )
    click.echo(
        f"Schedules: {len(schedules)} ({sum(1 for s in schedules if s.is_active)} active)"
    )
    click.echo(f"Pending one-off messages: {len(pending)}")

    upcoming = sorted(
        (s for s in schedules if s.is_active and s.next_trigger_at is not None),
        key=lambda s: s.next_trigger_at,
    )
    if upcoming:
        nxt = upcoming[0]
        click.echo(f"Next schedule: '{nxt.name}' at {nxt.next_trigger_at.isoformat()}")
