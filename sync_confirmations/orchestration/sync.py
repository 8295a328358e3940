from __future__ import annotations

import logging
from datetime import date
from functools import partial

import httpx

from sync_confirmations.adapters.datasigh_client import DatasighClient
from sync_confirmations.adapters.talkbi_client import TalkBIClient
from sync_confirmations.config import SyncConfig
from sync_confirmations.domain.models import SyncResult
from sync_confirmations.reporting.summary import compute_summary
from sync_confirmations.utils.dates import tomorrow
from sync_confirmations.workflows.dispatch import process_appointment
from sync_confirmations.workflows.queue import RateLimitedQueue

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Fetch a day's appointments and trigger a confirmation flow for each."""

    def __init__(
        self,
        config: SyncConfig,
        *,
        provider: DatasighClient,
        messenger: TalkBIClient,
    ) -> None:
        self.config = config
        self.provider = provider
        self.messenger = messenger

    def _build_queue(self) -> RateLimitedQueue:
        return RateLimitedQueue(
            concurrency=self.config.concurrency,
            interval=self.config.interval_seconds,
            interval_cap=self.config.interval_cap,
        )

    async def run(self, target_date: date | None = None, *, dry_run: bool | None = None) -> SyncResult:
        """Sync one day. Only a failed appointment fetch raises."""
        run_date = target_date or tomorrow(self.config.timezone)
        effective_dry_run = self.config.dry_run if dry_run is None else dry_run
        logger.info("Starting sync for %s (dry_run=%s)", run_date.isoformat(), effective_dry_run)

        appointments = await self.provider.fetch_appointments(run_date)
        result = SyncResult(date=run_date, total=len(appointments))
        if not appointments:
            logger.info("No appointments for %s", run_date.isoformat())
            return result

        if not effective_dry_run and not self.config.talkbi_flow_name:
            logger.warning("TALKBI_FLOW_NAME is empty; flow triggers will likely be rejected")

        worker = partial(process_appointment, messenger=self.messenger, dry_run=effective_dry_run)
        outcomes = await self._build_queue().map(worker, appointments)
        for outcome in outcomes:
            result.record(outcome)

        summary = compute_summary(result)
        logger.info(
            "Sync completed for %s: total=%s sent=%s skipped=%s failed=%s skipped_reasons=%s",
            summary["date"],
            summary["total_appointments"],
            summary["sent"],
            summary["skipped"]["total"],
            summary["failed"]["total"],
            summary["skipped"]["reasons"],
        )
        return result


def build_http_client(
    config: SyncConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(config.request_timeout), transport=transport)


async def run_sync(
    config: SyncConfig,
    target_date: date | None = None,
    *,
    dry_run: bool | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SyncResult:
    """Run one sync with a fresh HTTP client shared by both platforms."""
    async with build_http_client(config, transport) as http:
        orchestrator = SyncOrchestrator(
            config,
            provider=DatasighClient(http, config),
            messenger=TalkBIClient(http, config),
        )
        return await orchestrator.run(target_date, dry_run=dry_run)
