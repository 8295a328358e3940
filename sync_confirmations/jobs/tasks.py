"""Task functions executed by the scheduler."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

from sync_confirmations.config import SyncConfig
from sync_confirmations.orchestration.sync import run_sync
from sync_confirmations.reporting.summary import compute_summary

logger = logging.getLogger(__name__)


def sync_confirmations_job(
    *,
    run_date: date | None = None,
    dry_run: bool | None = None,
    config: SyncConfig | None = None,
) -> dict[str, Any]:
    """Run one sync from a synchronous caller and return its summary."""
    config = config or SyncConfig.from_env()
    result = asyncio.run(run_sync(config, run_date, dry_run=dry_run))
    summary = compute_summary(result)
    logger.info(
        "Job summary: date=%s total=%s sent=%s skipped=%s errors=%s",
        summary["date"],
        summary["total_appointments"],
        summary["sent"],
        summary["skipped"]["total"],
        summary["errors"],
    )
    return summary
