"""Ledger entry writes and the projections they trigger."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from streakboard.services.common import SupabaseService
from streakboard.services.scoring_service import ScoringService, to_display
from streakboard.services.summary_service import CATEGORY_GROUPS, SummaryService
from streakboard.utils.errors import AppError, InvalidInputError
from streakboard.utils.time import require_day
from supabase import Client

logger = logging.getLogger(__name__)

LEDGER_TABLE = "records"
CHECKIN_CATEGORY = "daily_checkin"


def _normalize_group(value: str | None) -> str:
    group = str(value or "").strip().upper()
    if group not in CATEGORY_GROUPS:
        raise InvalidInputError(f"category_group must be one of {', '.join(CATEGORY_GROUPS)}")
    return group


def _normalize_amount(value: Any) -> float:
    try:
        return float(Decimal(str(value)))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(f"Invalid amount: {value}") from exc


def is_checkin(record: dict[str, Any]) -> bool:
    """Return True for the zero-amount daily check-in entry."""
    return float(record.get("amount") or 0) == 0 and record.get("category_code") == CHECKIN_CATEGORY


class LedgerService:
    """Create, void and correct ledger entries.

    Entries are never edited in place. Summary and score updates run after the
    write and never fail it.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.summaries = SummaryService(client)
        self.scoring = ScoringService(client)

    def list_entries(
        self,
        user_id: str,
        day: date | str,
        include_voided: bool = False,
    ) -> list[dict[str, Any]]:
        """Return a user's entries for one day, oldest first."""
        if not user_id:
            raise InvalidInputError("user_id is required")
        filters: dict[str, Any] = {"user_id": user_id, "ymd": require_day(day).isoformat()}
        if not include_voided:
            filters["is_voided"] = False
        return self.db.select_many(LEDGER_TABLE, filters=filters, order_by="created_at")

    def list_users_by_branch(self, branch_code: str | None) -> list[dict[str, Any]]:
        """Return users in one branch, or every user with a branch when None."""
        query = self.db.client.table("users").select("id,name,branch_code")
        if branch_code is None:
            query = query.not_.is_("branch_code", "null")
        else:
            query = query.eq("branch_code", branch_code.strip().upper())
        return self.db.execute(query, default=[], table="users")

    def _get_owned(self, user_id: str, record_id: str) -> dict[str, Any]:
        return self.db.select_one(
            LEDGER_TABLE,
            {"id": record_id, "user_id": user_id},
            not_found_label="Record",
        )

    def create_entry(
        self,
        user_id: str,
        category_group: str,
        category_code: str,
        amount: Any,
        day: date | str,
        note: str = "",
    ) -> dict[str, Any]:
        """Insert a ledger entry, then refresh the summary and award the day's score."""
        if not user_id:
            raise InvalidInputError("user_id is required")
        if not category_code or not str(category_code).strip():
            raise InvalidInputError("category_code is required")
        day_value = require_day(day)

        record = self.db.insert_one(
            LEDGER_TABLE,
            {
                "user_id": user_id,
                "category_group": _normalize_group(category_group),
                "category_code": str(category_code).strip(),
                "amount": _normalize_amount(amount),
                "note": note or "",
                "ymd": day_value.isoformat(),
            },
        )

        self.summaries.trigger_reconcile(user_id, day_value)

        score = None
        try:
            if is_checkin(record):
                score = self.scoring.on_user_checkin(user_id, day_value)
            else:
                score = self.scoring.on_user_record(user_id, day_value)
        except AppError:
            logger.exception(
                "Score calculation failed for %s on %s; record kept", user_id, day_value
            )

        return {"record": record, "score": to_display(score) if score else None}

    def void_entry(self, user_id: str, record_id: str) -> dict[str, Any]:
        """Soft-delete an entry and refresh that day's summary."""
        record = self._get_owned(user_id, record_id)
        rows = self.db.update(LEDGER_TABLE, {"id": record_id}, {"is_voided": True})
        self.summaries.trigger_reconcile(user_id, record["ymd"])
        return rows[0] if rows else {**record, "is_voided": True}

    def correct_entry(
        self, user_id: str, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any]:
        """Insert a linked replacement on the same day, then void the original.

        A failed write never leaves the day without a live entry, and the day's
        summary is reconciled either way.
        """
        old = self._get_owned(user_id, record_id)
        if old.get("is_voided"):
            raise InvalidInputError("Record is already voided")

        group = changes.get("category_group") or old["category_group"]
        replacement = {
            "user_id": old["user_id"],
            "category_group": _normalize_group(group),
            "category_code": changes.get("category_code") or old["category_code"],
            "amount": (
                _normalize_amount(changes["amount"])
                if changes.get("amount") is not None
                else old["amount"]
            ),
            "note": changes["note"] if changes.get("note") is not None else old.get("note"),
            "ymd": old["ymd"],
            "parent_id": old["id"],
        }

        try:
            new = self.db.insert_one(LEDGER_TABLE, replacement)
            self.db.update(LEDGER_TABLE, {"id": record_id}, {"is_voided": True})
        finally:
            self.summaries.trigger_reconcile(user_id, old["ymd"])

        try:
            self.db.insert_one(
                "event_audit",
                {
                    "event_id": new["id"],
                    "user_id": user_id,
                    "action": "correct",
                    "old": old,
                    "new": new,
                },
            )
        except AppError:
            logger.exception("Failed to audit correction of record %s", record_id)

        return new
