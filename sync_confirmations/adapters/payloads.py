"""Decoding of loosely shaped JSON bodies from the provider and TalkBI.

Each decoder walks a prioritized chain of known shapes and reports which one
matched, so callers can log the shape they actually received.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

IDENTITY_FIELDS = ("user_ns", "ns", "id", "uuid", "user_id")
# A bare object counts as a subscriber only when it carries one of these.
OBJECT_MARKER_FIELDS = ("user_ns", "ns", "id", "uuid")

SHAPE_EMPTY = "empty"

Extractor = Callable[[Any], "list[Any] | None"]


@dataclass(frozen=True, slots=True)
class Decoded:
    shape: str
    items: list[dict[str, Any]]


def _decode(body: Any, chain: tuple[tuple[str, Extractor], ...]) -> Decoded:
    for shape, extract in chain:
        items = extract(body)
        if items is not None:
            return Decoded(shape=shape, items=[item for item in items if isinstance(item, dict)])
    return Decoded(shape=SHAPE_EMPTY, items=[])


def _list_at(value: Any, *path: str) -> list[Any] | None:
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value if isinstance(value, list) else None


def _bare_list(value: Any) -> list[Any] | None:
    return value if isinstance(value, list) else None


_APPOINTMENT_CHAIN: tuple[tuple[str, Extractor], ...] = (
    ("agendas", lambda body: _list_at(body, "agendas")),
    ("array", _bare_list),
)


def decode_appointments(body: Any) -> Decoded:
    """`{"agendas": [...]}`, then a bare array, else empty."""
    return _decode(body, _APPOINTMENT_CHAIN)


def _single_subscriber(value: Any) -> list[Any] | None:
    if isinstance(value, dict) and any(value.get(name) for name in OBJECT_MARKER_FIELDS):
        return [value]
    return None


_SUBSCRIBER_CHAIN: tuple[tuple[str, Extractor], ...] = (
    ("object", _single_subscriber),
    ("array", _bare_list),
    ("items", lambda body: _list_at(body, "items")),
    ("data", lambda body: _list_at(body, "data")),
    ("data.items", lambda body: _list_at(body, "data", "items")),
)


def decode_subscribers(body: Any) -> Decoded:
    """Unwrap a top-level `data` key, then try the subscriber shapes in order."""
    if isinstance(body, dict) and "data" in body:
        body = body["data"]
    return _decode(body, _SUBSCRIBER_CHAIN)


def subscriber_identity(subscriber: dict[str, Any]) -> str | None:
    for name in IDENTITY_FIELDS:
        value = subscriber.get(name)
        if value not in (None, ""):
            return str(value)
    return None
