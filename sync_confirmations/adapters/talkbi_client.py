from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from sync_confirmations.adapters.datasigh_client import response_body
from sync_confirmations.adapters.payloads import decode_subscribers, subscriber_identity
from sync_confirmations.config import SyncConfig
from sync_confirmations.domain.errors import DispatchError
from sync_confirmations.utils.logging import mask_phone
from sync_confirmations.utils.phone import phone_variants

logger = logging.getLogger(__name__)

SUBSCRIBERS_PATH = "/subscribers"
SEND_FLOW_PATH = "/subscriber/send-sub-flow-by-flow-name"


class TalkBIClient:
    """Subscriber lookup and flow trigger calls against TalkBI."""

    def __init__(self, http: httpx.AsyncClient, config: SyncConfig) -> None:
        self.http = http
        self.base_url = config.talkbi_base_url.rstrip("/")
        self.api_key = config.talkbi_api_key
        self.flow_name = config.talkbi_flow_name
        self.dry_run = config.dry_run

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _lookup_variant(self, phone: str) -> str | None:
        response = await self.http.get(
            f"{self.base_url}{SUBSCRIBERS_PATH}",
            params={"phone": phone, "limit": 1, "page": 1},
            headers=self._headers(),
        )
        response.raise_for_status()
        decoded = decode_subscribers(response.json())
        if not decoded.items:
            return None
        return subscriber_identity(decoded.items[0])

    async def resolve_subscriber(self, phone: str) -> str | None:
        """Query each phone variant in turn and return the first identity found.

        A failing variant query only means "no match for that variant"; the
        next variant is still tried.
        """
        for variant in phone_variants(phone):
            try:
                user_ns = await self._lookup_variant(variant)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning(
                    "variant_query_failed phone=%s error=%s: %s",
                    mask_phone(variant),
                    type(exc).__name__,
                    exc,
                )
                continue

            if user_ns:
                logger.debug("variant_matched phone=%s", mask_phone(variant))
                return user_ns
            logger.debug("variant_no_match phone=%s", mask_phone(variant))

        return None

    async def send_flow(
        self,
        user_ns: str,
        variables: Mapping[str, Any] | None = None,
        *,
        flow_name: str | None = None,
        dry_run: bool | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"user_ns": user_ns, "flow_name": flow_name or self.flow_name}
        if variables:
            payload["variables"] = dict(variables)

        if dry_run is None:
            dry_run = self.dry_run
        if dry_run:
            logger.info("[DRY_RUN] TalkBI payload: %s", json.dumps(payload, ensure_ascii=False))
            return {"dry_run": True, "payload": payload}

        try:
            response = await self.http.post(
                f"{self.base_url}{SEND_FLOW_PATH}",
                json=payload,
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DispatchError(
                f"TalkBI responded with HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
                body=response_body(exc.response),
            ) from exc
        except httpx.RequestError as exc:
            raise DispatchError(f"TalkBI request failed: {exc}") from exc

        body = response_body(response)
        return body if isinstance(body, dict) else {"response": body}
