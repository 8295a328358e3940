"""HTTP trigger for the confirmation sync."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sync_confirmations.config import SyncConfig, parse_bool
from sync_confirmations.domain.errors import ProviderFetchError
from sync_confirmations.orchestration.sync import run_sync
from sync_confirmations.utils.dates import parse_target_date

logger = logging.getLogger(__name__)

SYNC_PATH = "/api/sync-confirmations"
ALLOWED_METHODS = ("GET", "POST")
# Every other method is routed here too so it gets the JSON 405 body.
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD", "TRACE", "CONNECT"]


async def _read_params(request: Request) -> dict[str, Any]:
    if request.method == "GET":
        return dict(request.query_params)
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def create_app(
    config: SyncConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        config: Explicit configuration. If None, read from the environment
                (a local .env file is loaded first).
        transport: Optional httpx transport for outbound calls, used by tests.
    """
    if config is None:
        load_dotenv()
        config = SyncConfig.from_env()

    app = FastAPI(title="Sync Confirmations", docs_url=None, redoc_url=None)
    app.state.config = config

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route(SYNC_PATH, methods=ROUTED_METHODS)
    async def sync_confirmations(request: Request) -> JSONResponse:
        if request.method not in ALLOWED_METHODS:
            return JSONResponse(
                status_code=405,
                content={"error": "Method Not Allowed. Use GET or POST."},
                headers={"Allow": ", ".join(ALLOWED_METHODS)},
            )

        params = await _read_params(request)
        target_date = parse_target_date(params.get("date"), tz=config.timezone)
        dry_run = parse_bool(params.get("dry"))

        try:
            result = await run_sync(config, target_date, dry_run=dry_run, transport=transport)
        except ProviderFetchError as exc:
            logger.error("sync-confirmations error: %s", exc.to_dict())
            return JSONResponse(status_code=500, content={"error": exc.to_dict()})
        except Exception as exc:
            logger.exception("sync-confirmations unexpected error")
            return JSONResponse(status_code=500, content={"error": {"message": str(exc)}})

        return JSONResponse(content=result.to_dict())

    return app
