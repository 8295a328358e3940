from __future__ import annotations

import json
from typing import Any
from zoneinfo import ZoneInfo

import httpx
import pytest

from sync_confirmations.config import SyncConfig

DATASIGH_URL = "https://datasigh.test/api/integracao/v1"
TALKBI_URL = "https://talkbi.test/api"


def make_appointment(appointment_id: Any, phone: str | None, name: str = "Maria Souza") -> dict[str, Any]:
    return {
        "id": appointment_id,
        "paciente": {"nome": name, "celular": phone},
        "data": "2026-01-15 09:00",
        "profissional": {"nome": "Dr. Silva"},
        "unidade": {"nome": "Centro"},
    }


class FakeUpstream:
    """httpx handler standing in for both Datasigh and TalkBI."""

    def __init__(
        self,
        *,
        appointments: Any = None,
        appointments_status: int = 200,
        subscribers: dict[str, Any] | None = None,
        failing_phones: set[str] | None = None,
        send_status: int = 200,
        send_body: Any = None,
    ) -> None:
        self.appointments = {"agendas": []} if appointments is None else appointments
        self.appointments_status = appointments_status
        self.subscribers = subscribers or {}
        self.failing_phones = failing_phones or set()
        self.send_status = send_status
        self.send_body = {"status": "ok"} if send_body is None else send_body
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls_to(self, path_suffix: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path.endswith(path_suffix)]

    def sent_payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.calls_to("/send-sub-flow-by-flow-name")]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/agendas/marcadas"):
            return httpx.Response(self.appointments_status, json=self.appointments)

        if path.endswith("/subscribers"):
            phone = request.url.params["phone"]
            if phone in self.failing_phones:
                return httpx.Response(503, json={"error": "unavailable"})
            body = self.subscribers.get(phone, {"data": []})
            return httpx.Response(200, json=body)

        if path.endswith("/send-sub-flow-by-flow-name"):
            return httpx.Response(self.send_status, json=self.send_body)

        return httpx.Response(404)


@pytest.fixture
def config() -> SyncConfig:
    return SyncConfig(
        datasigh_base_url=DATASIGH_URL,
        datasigh_api_key="integration:client",
        talkbi_base_url=TALKBI_URL,
        talkbi_api_key="talkbi-key",
        talkbi_flow_name="confirmacao_consulta",
        timezone=ZoneInfo("America/Sao_Paulo"),
        dry_run=False,
        concurrency=4,
        interval_seconds=0.0,
        interval_cap=0,
    )
