from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeUpstream, make_appointment
from sync_confirmations.api.app import SYNC_PATH, create_app
from sync_confirmations.config import SyncConfig


@pytest.mark.e2e
def test_dry_run_day_through_http_trigger(config: SyncConfig) -> None:
    upstream = FakeUpstream(
        appointments={
            "agendas": [
                make_appointment(101, "5511987654321", name="Alice"),
                make_appointment(102, "(21) 3333-4444", name="Bruno"),
                make_appointment(103, None, name="Carla"),
                make_appointment(104, "+55 (31) 99876-5432", name="Davi"),
            ],
            "datas": ["2026-01-15"],
        },
        subscribers={
            # Stored without the mobile nine, found through a variant.
            "+551187654321": {"data": {"user_ns": "ns-alice"}},
            "5521933334444": {"data": [{"ns": "ns-bruno"}]},
        },
    )
    client = TestClient(create_app(config.with_dry_run(True), transport=upstream.transport))

    response = client.get(SYNC_PATH, params={"date": "15/01/2026"})

    assert response.status_code == 200
    body = response.json()
    assert body["date"] == "2026-01-15"
    assert (body["total"], body["sent"], body["skipped"]) == (4, 2, 2)
    assert body["errors"] == [
        {"agendamento": "104", "error": "subscriber_not_found_by_phone", "phone": "+5531998765432"}
    ]
    assert upstream.calls_to("/send-sub-flow-by-flow-name") == []

    alice_queries = [
        request.url.params["phone"]
        for request in upstream.calls_to("/subscribers")
        if "87654321" in request.url.params["phone"]
    ]
    assert alice_queries == [
        "+5511987654321",
        "5511987654321",
        "11987654321",
        "+11987654321",
        "551187654321",
        "+551187654321",
    ]
