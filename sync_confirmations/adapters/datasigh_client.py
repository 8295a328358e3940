from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from sync_confirmations.adapters.payloads import decode_appointments
from sync_confirmations.config import SyncConfig
from sync_confirmations.domain.errors import ProviderFetchError
from sync_confirmations.domain.models import Appointment
from sync_confirmations.utils.dates import format_provider_date

logger = logging.getLogger(__name__)

APPOINTMENTS_PATH = "/agendas/marcadas"


def response_body(response: httpx.Response) -> Any:
    """JSON body when decodable, raw text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text


class DatasighClient:
    """Read-only client for scheduled appointments on Datasigh."""

    def __init__(self, http: httpx.AsyncClient, config: SyncConfig) -> None:
        self.http = http
        self.base_url = config.datasigh_base_url.rstrip("/")
        self.api_key = config.datasigh_api_key
        self.date_format = config.datasigh_date_format

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            # Datasigh expects the raw integration key, without a Bearer prefix.
            headers["Authorization"] = self.api_key
        return headers

    async def fetch_appointments(self, target_date: date) -> list[Appointment]:
        url = f"{self.base_url}{APPOINTMENTS_PATH}"
        params = {"data": format_provider_date(target_date, self.date_format)}

        try:
            response = await self.http.get(url, params=params, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            error = ProviderFetchError(
                f"Datasigh responded with HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
                body=response_body(exc.response),
                url=url,
                params=params,
            )
            logger.error("Datasigh error: %s", error.to_dict())
            raise error from exc
        except httpx.RequestError as exc:
            error = ProviderFetchError(
                f"Datasigh request failed: {exc}",
                url=url,
                params=params,
            )
            logger.error("Datasigh error: %s", error.to_dict())
            raise error from exc

        try:
            body = response.json()
        except ValueError:
            logger.warning("Datasigh returned a non-JSON body for %s; treating as empty", params["data"])
            body = None

        decoded = decode_appointments(body)
        logger.info(
            "Fetched %s appointments for %s (shape=%s)",
            len(decoded.items),
            params["data"],
            decoded.shape,
        )
        return [Appointment.from_provider(item) for item in decoded.items]
