"""Scheduler process for the daily confirmation sync.

Run separately from the HTTP trigger using:
    python -m sync_confirmations.jobs.scheduler
"""

from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime
from typing import Mapping

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

from sync_confirmations.config import SyncConfig
from sync_confirmations.domain.errors import ConfigError
from sync_confirmations.jobs.tasks import sync_confirmations_job

JOB_ID = "sync_confirmations"
DEFAULT_HOUR = 18
DEFAULT_MINUTE = 0

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure process-wide logging for scheduler mode."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def resolve_schedule(environ: Mapping[str, str] | None = None) -> tuple[int, int]:
    """Return (hour, minute) from SYNC_SCHEDULE_HOUR / SYNC_SCHEDULE_MINUTE."""
    env = os.environ if environ is None else environ
    try:
        hour = int(env.get("SYNC_SCHEDULE_HOUR") or DEFAULT_HOUR)
        minute = int(env.get("SYNC_SCHEDULE_MINUTE") or DEFAULT_MINUTE)
    except ValueError as exc:
        raise ConfigError("SYNC_SCHEDULE_HOUR/SYNC_SCHEDULE_MINUTE must be integers") from exc
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ConfigError(f"Invalid schedule time {hour:02d}:{minute:02d}")
    return hour, minute


def _log_job_state(scheduler: BlockingScheduler, event: JobExecutionEvent, config: SyncConfig) -> None:
    """Log last and next run metadata for observability."""
    job = scheduler.get_job(event.job_id)
    job_next_run = getattr(job, "next_run_time", None) if job else None
    next_run = job_next_run.isoformat() if job_next_run else "none"
    last_run_at = (
        event.scheduled_run_time.astimezone(config.timezone).isoformat()
        if event.scheduled_run_time
        else datetime.now(tz=config.timezone).isoformat()
    )

    if event.exception:
        logger.error(
            "Job %s failed at %s; next run at %s",
            event.job_id,
            last_run_at,
            next_run,
            exc_info=event.exception,
        )
        return

    logger.info("Job %s completed at %s; next run at %s", event.job_id, last_run_at, next_run)


def build_scheduler(config: SyncConfig, environ: Mapping[str, str] | None = None) -> BlockingScheduler:
    """Build and configure the scheduler instance."""
    hour, minute = resolve_schedule(environ)
    scheduler = BlockingScheduler(timezone=config.timezone)

    trigger = CronTrigger(hour=hour, minute=minute, timezone=config.timezone)
    scheduler.add_job(
        sync_confirmations_job,
        trigger=trigger,
        kwargs={"config": config},
        id=JOB_ID,
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=1800,
    )

    scheduler.add_listener(
        lambda event: _log_job_state(scheduler, event, config),
        EVENT_JOB_EXECUTED | EVENT_JOB_ERROR,
    )

    next_run = trigger.get_next_fire_time(None, datetime.now(tz=config.timezone))
    logger.info(
        "Registered %s for %02d:%02d %s (next run: %s)",
        JOB_ID,
        hour,
        minute,
        config.timezone.key,
        next_run.isoformat() if next_run else "none",
    )

    return scheduler


def main() -> None:
    """Entrypoint for a dedicated scheduler process."""
    parser = argparse.ArgumentParser(description="Run the daily confirmation sync scheduler")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Execute the sync immediately and exit (manual mode)",
    )
    args = parser.parse_args()

    load_dotenv()
    configure_logging()
    config = SyncConfig.from_env()

    if args.once:
        logger.info("Running in manual mode: executing %s once", JOB_ID)
        sync_confirmations_job(config=config)
        logger.info("Manual execution of %s completed", JOB_ID)
        return

    scheduler = build_scheduler(config)
    logger.info("Starting scheduler process")
    scheduler.start()


if __name__ == "__main__":
    main()
