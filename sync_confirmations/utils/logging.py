"""Structured JSON logging helpers for sync workflow events."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any


class JsonFormatter(logging.Formatter):
    """Format log records as JSON with the per-appointment workflow fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "workflow_step": getattr(record, "workflow_step", "unknown"),
            "patient_name": mask_patient_name(getattr(record, "patient_name", "")),
            "appointment_id": getattr(record, "appointment_id", None),
            "phone": mask_phone(getattr(record, "phone", None)),
            "status": getattr(record, "status", record.levelname.lower()),
        }

        error_code = getattr(record, "error_code", None)
        error_message = getattr(record, "error_message", None)
        if error_code is not None:
            payload["error_code"] = error_code
        if error_message is not None:
            payload["error_message"] = error_message

        message = record.getMessage()
        if message:
            payload["message"] = message

        return json.dumps(payload, ensure_ascii=False, default=str)


def mask_patient_name(name: str) -> str:
    """Mask a patient name while keeping enough entropy for debugging."""
    if not name:
        return ""

    visible = 1
    if len(name) <= visible:
        return "*"
    return f"{name[:visible]}{'*' * (len(name) - visible)}"


def mask_phone(phone: str | None) -> str | None:
    """Keep only the last four digits of a phone number."""
    if not phone:
        return None
    visible = 4
    if len(phone) <= visible:
        return "*" * len(phone)
    return f"{'*' * (len(phone) - visible)}{phone[-visible:]}"


def get_structured_logger(name: str = "sync_confirmations.workflow") -> logging.Logger:
    """Return a logger configured to emit JSON records."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_workflow_event(
    logger: logging.Logger,
    *,
    workflow_step: str,
    appointment_id: str,
    status: str,
    patient_name: str = "",
    phone: str | None = None,
    message: str = "",
    error_code: str | None = None,
    error_message: str | None = None,
    level: int = logging.INFO,
) -> None:
    """Emit a structured workflow event."""
    extra: dict[str, Any] = {
        "workflow_step": workflow_step,
        "patient_name": patient_name,
        "appointment_id": appointment_id,
        "phone": phone,
        "status": status,
        "error_code": error_code,
        "error_message": error_message,
    }
    logger.log(level, message, extra=extra)
