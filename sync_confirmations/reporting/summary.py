"""Summary generation for sync runs."""

from __future__ import annotations

from collections import Counter
from typing import Any

from sync_confirmations.domain.models import STATUS_FAILED, STATUS_SKIPPED, SyncResult


def compute_summary(result: SyncResult) -> dict[str, Any]:
    """Compute aggregate reporting stats from the per-item outcomes."""
    skipped_reasons = Counter(
        outcome.reason or "unknown"
        for outcome in result.outcomes
        if outcome.status == STATUS_SKIPPED
    )
    failed_reasons = Counter(
        outcome.reason or "unknown"
        for outcome in result.outcomes
        if outcome.status == STATUS_FAILED
    )

    return {
        "date": result.date.isoformat(),
        "total_appointments": result.total,
        "sent": result.sent,
        "skipped": {
            "total": result.skipped,
            "reasons": dict(skipped_reasons),
        },
        "failed": {
            "total": sum(failed_reasons.values()),
            "reasons": dict(failed_reasons),
        },
        "errors": len(result.errors),
    }
