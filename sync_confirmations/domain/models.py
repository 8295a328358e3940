from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping

from sync_confirmations.utils.phone import normalize_phone_br

DEFAULT_PATIENT_NAME = "Paciente"

STATUS_SENT = "sent"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"

REASON_INVALID_PHONE = "missing_or_invalid_phone"
REASON_SUBSCRIBER_NOT_FOUND = "subscriber_not_found"


def _nested(record: Mapping[str, Any], parent: str, key: str) -> Any:
    value = record.get(parent)
    if isinstance(value, Mapping):
        return value.get(key)
    return None


@dataclass(frozen=True, slots=True)
class Appointment:
    appointment_id: Any
    patient_name: str | None
    patient_phone: str | None
    scheduled_at: str | None
    professional: str | None
    facility: str | None

    @classmethod
    def from_provider(cls, record: Mapping[str, Any]) -> Appointment:
        return cls(
            appointment_id=record.get("id"),
            patient_name=_nested(record, "paciente", "nome"),
            patient_phone=_nested(record, "paciente", "celular"),
            scheduled_at=record.get("data"),
            professional=_nested(record, "profissional", "nome"),
            facility=_nested(record, "unidade", "nome"),
        )


@dataclass(frozen=True, slots=True)
class Contact:
    phone: str | None
    name: str
    external_id: str
    variables: Mapping[str, Any]

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> Contact:
        external_id = "" if appointment.appointment_id is None else str(appointment.appointment_id)
        metadata = {
            "data_hora": appointment.scheduled_at,
            "profissional": appointment.professional,
            "unidade": appointment.facility,
        }
        # Missing metadata is left out rather than sent to TalkBI as null.
        variables = {key: value for key, value in metadata.items() if value is not None}
        return cls(
            phone=normalize_phone_br(appointment.patient_phone),
            name=appointment.patient_name or DEFAULT_PATIENT_NAME,
            external_id=external_id,
            variables=MappingProxyType(variables),
        )


@dataclass(frozen=True, slots=True)
class SyncErrorRecord:
    appointment_id: str
    error: Any
    phone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"agendamento": self.appointment_id, "error": self.error}
        if self.phone is not None:
            payload["phone"] = self.phone
        return payload


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    appointment_id: str
    status: str
    reason: str | None = None
    error: SyncErrorRecord | None = None


@dataclass(slots=True)
class SyncResult:
    date: date
    total: int = 0
    sent: int = 0
    skipped: int = 0
    errors: list[SyncErrorRecord] = field(default_factory=list)
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def record(self, outcome: ItemOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == STATUS_SENT:
            self.sent += 1
        elif outcome.status == STATUS_SKIPPED:
            self.skipped += 1
        if outcome.error is not None:
            self.errors.append(outcome.error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "total": self.total,
            "sent": self.sent,
            "skipped": self.skipped,
            "errors": [error.to_dict() for error in self.errors],
        }
