"""Daily category summary reconciliation."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from streakboard.services.common import SupabaseService
from streakboard.utils.errors import AppError, InvalidInputError
from streakboard.utils.time import require_day
from supabase import Client

logger = logging.getLogger(__name__)

SUMMARY_TABLE = "daily_summary"
CATEGORY_GROUPS = ("A", "B", "C")
CENT = Decimal("0.01")


def _amount(value: Any) -> Decimal:
    try:
        return Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        logger.warning("Unparseable ledger amount %r counted as 0", value)
        return Decimal(0)


def _money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def fold_entries(entries: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Sum amounts per category group and count the entries."""
    sums = {group: Decimal(0) for group in CATEGORY_GROUPS}
    total_count = 0
    for entry in entries:
        group = str(entry.get("category_group") or "").upper()
        if group in sums:
            sums[group] += _amount(entry.get("amount"))
        total_count += 1

    return {
        "sum_a": _money(sums["A"]),
        "sum_b": _money(sums["B"]),
        "sum_c": _money(sums["C"]),
        "total_count": total_count,
    }


class SummaryService:
    """Rebuild ``daily_summary`` rows from the non-voided ledger.

    The row is replaced as a whole on every call, so repeated or concurrent
    runs for the same key converge on the same value.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def reconcile_daily_summary(self, user_id: str, day: date | str) -> dict[str, Any]:
        """Recompute and upsert the summary for one user/day."""
        if not user_id:
            raise InvalidInputError("user_id is required")
        day_value = require_day(day)

        entries = self.db.select_many(
            "records",
            filters={"user_id": user_id, "ymd": day_value.isoformat(), "is_voided": False},
            columns="category_group,amount",
        )
        row = {"user_id": user_id, "ymd": day_value.isoformat(), **fold_entries(entries)}
        self.db.upsert(SUMMARY_TABLE, row, on_conflict="user_id,ymd")
        logger.info(
            "Daily summary for %s on %s: %s entries", user_id, row["ymd"], row["total_count"]
        )
        return row

    def trigger_reconcile(self, user_id: str, day: date | str) -> dict[str, Any] | None:
        """Reconcile without letting a failure reach the triggering write."""
        try:
            return self.reconcile_daily_summary(user_id, day)
        except AppError:
            logger.exception("Failed to update daily summary for %s on %s", user_id, day)
            return None

    def batch_reconcile(self, keys: Iterable[tuple[str, date | str]]) -> dict[str, int]:
        """Reconcile many ``(user_id, day)`` keys and report how many failed."""
        total = 0
        failed = 0
        for user_id, day in keys:
            total += 1
            if self.trigger_reconcile(user_id, day) is None:
                failed += 1

        if failed:
            logger.warning("%s/%s daily summary updates failed", failed, total)
        return {"success": total - failed, "failed": failed, "total": total}
