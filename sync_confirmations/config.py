"""Runtime configuration resolved from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sync_confirmations.domain.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Sao_Paulo"
DEFAULT_DATASIGH_BASE_URL = "https://ws.datasigh.com.br/api/integracao/v1"
DEFAULT_TALKBI_BASE_URL = "https://chat.talkbi.com.br/api"
DEFAULT_DATE_FORMAT = "DD/MM/YYYY"
REQUEST_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    datasigh_base_url: str = DEFAULT_DATASIGH_BASE_URL
    datasigh_api_key: str = ""
    datasigh_date_format: str = DEFAULT_DATE_FORMAT
    talkbi_base_url: str = DEFAULT_TALKBI_BASE_URL
    talkbi_api_key: str = ""
    talkbi_flow_name: str = ""
    timezone: ZoneInfo = ZoneInfo(DEFAULT_TIMEZONE)
    dry_run: bool = False
    concurrency: int = 4
    interval_seconds: float = 1.0
    interval_cap: int = 8
    request_timeout: float = REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SyncConfig:
        env = os.environ if environ is None else environ
        config = cls(
            datasigh_base_url=env.get("DATASIGH_BASE_URL") or DEFAULT_DATASIGH_BASE_URL,
            datasigh_api_key=env.get("DATASIGH_API_KEY", ""),
            datasigh_date_format=env.get("DATASIGH_DATE_FORMAT") or DEFAULT_DATE_FORMAT,
            talkbi_base_url=env.get("TALKBI_BASE_URL") or DEFAULT_TALKBI_BASE_URL,
            talkbi_api_key=env.get("TALKBI_API_KEY", ""),
            talkbi_flow_name=env.get("TALKBI_FLOW_NAME", ""),
            timezone=resolve_timezone(env),
            dry_run=parse_bool(env.get("DRY_RUN")) or False,
            concurrency=_int_env(env, "CONCURRENCY", 4),
            interval_seconds=_int_env(env, "INTERVAL_MS", 1000) / 1000,
            interval_cap=_int_env(env, "INTERVAL_CAP", 8),
        )
        if config.concurrency < 1:
            raise ConfigError("CONCURRENCY must be at least 1")

        logger.info(
            "Resolved sync config (timezone=%s, dry_run=%s, concurrency=%s, interval_ms=%s, interval_cap=%s)",
            config.timezone.key,
            config.dry_run,
            config.concurrency,
            int(config.interval_seconds * 1000),
            config.interval_cap,
        )
        return config

    def with_dry_run(self, dry_run: bool | None) -> SyncConfig:
        if dry_run is None or dry_run == self.dry_run:
            return self
        return replace(self, dry_run=dry_run)


def resolve_timezone(env: Mapping[str, str]) -> ZoneInfo:
    """APP_TZ wins over TZ; values like ':UTC' are sanitized."""
    raw = env.get("APP_TZ") or env.get("TZ") or DEFAULT_TIMEZONE
    name = raw.lstrip(":") or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown time zone: {raw!r}") from exc


def parse_bool(value: object) -> bool | None:
    """Return True/False for 'true'/'false' (or real booleans), else None."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
