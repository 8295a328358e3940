from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_BR_DATE = re.compile(r"^\d{2}/\d{2}/\d{4}$")

# Longest tokens first so YYYY is not read as two YY.
_FORMAT_TOKENS = (("YYYY", "%Y"), ("YY", "%y"), ("MM", "%m"), ("DD", "%d"))


def tomorrow(tz: ZoneInfo, now: datetime | None = None) -> date:
    current = now.astimezone(tz) if now else datetime.now(tz=tz)
    return current.date() + timedelta(days=1)


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD or DD/MM/YYYY, raising ValueError otherwise."""
    text = value.strip()
    if _ISO_DATE.match(text):
        return date.fromisoformat(text)
    if _BR_DATE.match(text):
        return datetime.strptime(text, "%d/%m/%Y").date()
    raise ValueError(f"Unsupported date: {value!r}")


def parse_target_date(value: object, *, tz: ZoneInfo, now: datetime | None = None) -> date:
    """Like parse_date, but anything missing or unparseable means tomorrow."""
    if isinstance(value, str):
        try:
            return parse_date(value)
        except ValueError:
            pass
    return tomorrow(tz, now)


def to_strftime(pattern: str) -> str:
    """Translate a DD/MM/YYYY style pattern into a strftime format."""
    out = pattern.replace("%", "%%")
    for token, directive in _FORMAT_TOKENS:
        out = out.replace(token, directive)
    return out


def format_provider_date(value: date, pattern: str) -> str:
    return value.strftime(to_strftime(pattern))
