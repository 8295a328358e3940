from __future__ import annotations

from typing import Any, Mapping

import pytest

from conftest import make_appointment
from sync_confirmations.domain.errors import DispatchError
from sync_confirmations.domain.models import Appointment
from sync_confirmations.workflows.dispatch import process_appointment


class StubMessenger:
    def __init__(self, *, user_ns: str | None = "ns-1", send_error: Exception | None = None) -> None:
        self.user_ns = user_ns
        self.send_error = send_error
        self.resolved: list[str] = []
        self.sent: list[tuple[str, dict[str, Any], bool | None]] = []

    async def resolve_subscriber(self, phone: str) -> str | None:
        self.resolved.append(phone)
        return self.user_ns

    async def send_flow(
        self,
        user_ns: str,
        variables: Mapping[str, Any] | None = None,
        *,
        flow_name: str | None = None,
        dry_run: bool | None = None,
    ) -> dict[str, Any]:
        if self.send_error:
            raise self.send_error
        self.sent.append((user_ns, dict(variables or {}), dry_run))
        return {"ok": True}


def _appointment(phone: str | None) -> Appointment:
    return Appointment.from_provider(make_appointment(55, phone, name="Alice"))


@pytest.mark.asyncio
async def test_invalid_phone_is_skipped_before_any_lookup() -> None:
    messenger = StubMessenger()

    outcome = await process_appointment(_appointment("not a phone"), messenger=messenger, dry_run=False)

    assert (outcome.status, outcome.reason, outcome.error) == ("skipped", "missing_or_invalid_phone", None)
    assert messenger.resolved == []


@pytest.mark.asyncio
async def test_unknown_subscriber_is_skipped_with_error_entry() -> None:
    outcome = await process_appointment(
        _appointment("11987654321"),
        messenger=StubMessenger(user_ns=None),
        dry_run=False,
    )

    assert outcome.status == "skipped"
    assert outcome.reason == "subscriber_not_found"
    assert outcome.error is not None
    assert outcome.error.to_dict() == {
        "agendamento": "55",
        "error": "subscriber_not_found_by_phone",
        "phone": "+5511987654321",
    }


@pytest.mark.asyncio
async def test_resolved_subscriber_gets_flow_with_dry_run_flag() -> None:
    messenger = StubMessenger()

    outcome = await process_appointment(_appointment("11987654321"), messenger=messenger, dry_run=True)

    assert outcome.status == "sent"
    assert messenger.resolved == ["+5511987654321"]
    assert messenger.sent == [
        ("ns-1", {"data_hora": "2026-01-15 09:00", "profissional": "Dr. Silva", "unidade": "Centro"}, True)
    ]


@pytest.mark.asyncio
async def test_dispatch_error_detail_is_recorded() -> None:
    messenger = StubMessenger(send_error=DispatchError("HTTP 500", status_code=500, body={"message": "down"}))

    outcome = await process_appointment(_appointment("11987654321"), messenger=messenger, dry_run=False)

    assert outcome.status == "failed"
    assert outcome.error is not None
    assert outcome.error.error == {"message": "down"}


@pytest.mark.asyncio
async def test_unexpected_exception_does_not_escape() -> None:
    messenger = StubMessenger(send_error=RuntimeError("boom"))

    outcome = await process_appointment(_appointment("11987654321"), messenger=messenger, dry_run=False)

    assert (outcome.status, outcome.reason) == ("failed", "RuntimeError")
    assert outcome.error is not None
    assert outcome.error.error == "boom"
