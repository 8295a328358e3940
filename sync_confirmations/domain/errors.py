from __future__ import annotations

from typing import Any


class SyncError(RuntimeError):
    """Base class for failures raised while syncing confirmations."""


class ProviderFetchError(SyncError):
    """Raised when the appointment fetch fails; aborts the whole run."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
        url: str | None = None,
        params: dict[str, Any] | None = None,
        method: str = "GET",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.url = url
        self.params = params or {}
        self.method = method

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "status": self.status_code,
            "data": self.body,
            "url": self.url,
            "params": self.params,
            "method": self.method.lower(),
        }


class DispatchError(SyncError):
    """Raised when the messaging platform rejects a flow trigger."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def detail(self) -> Any:
        return self.body if self.body not in (None, "") else str(self)


class SubscriberNotFound(SyncError):
    """No phone variant matched a subscriber."""

    def __init__(self, phone: str) -> None:
        super().__init__("subscriber_not_found_by_phone")
        self.phone = phone


class InvalidPhone(SyncError):
    """The appointment phone cannot be coerced to the canonical form."""

    def __init__(self, raw_phone: str | None) -> None:
        super().__init__("missing_or_invalid_phone")
        self.raw_phone = raw_phone


class ConfigError(ValueError):
    """Raised when environment configuration cannot be parsed."""
