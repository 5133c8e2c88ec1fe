"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

import httpx
from postgrest import APIError

from streakboard.config import settings
from streakboard.utils.errors import DuplicateComputationError, NotFoundError, TransientStoreError
from supabase import Client

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: APIError) -> bool:
    """Return True when a write failed on a uniqueness constraint."""
    message = str(getattr(exc, "message", "")).lower()
    code = str(getattr(exc, "code", "")).lower()
    return "duplicate key value" in message or code == UNIQUE_VIOLATION


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None, table: str = "") -> Any:
        """Execute a Supabase query and normalize store errors.

        Uniqueness violations become ``DuplicateComputationError``; every other
        failure becomes ``TransientStoreError`` and is left for the caller.
        """
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            message = str(getattr(exc, "message", None) or "Database request failed")
            if is_unique_violation(exc):
                raise DuplicateComputationError(table or "unknown", message) from exc
            raise TransientStoreError(message) from exc
        except httpx.HTTPError as exc:
            raise TransientStoreError(f"Database unreachable: {exc}") from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query on %s %.1fms", table or "?", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        row = self.select_first(table, filters, columns=columns)
        if row is None:
            raise NotFoundError(not_found_label or table)
        return row

    def select_first(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Select a single row or return None."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[], table=table)
        return rows[0] if rows else None

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and ordering."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[], table=table)

    def select_in(
        self,
        table: str,
        column: str,
        values: Iterable[Any],
        filters: dict[str, Any] | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Select rows whose ``column`` is one of ``values``."""
        ids = list(values)
        if not ids:
            return []
        query = self.client.table(table).select(columns).in_(column, ids)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        return self.execute(query, default=[], table=table)

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[], table=table)
        if not rows:
            raise TransientStoreError(f"Failed to insert into {table}")
        return rows[0]

    def upsert(
        self,
        table: str,
        payloads: dict[str, Any] | list[dict[str, Any]],
        on_conflict: str,
    ) -> list[dict[str, Any]]:
        """Insert-or-replace rows keyed on ``on_conflict`` columns."""
        if isinstance(payloads, list) and not payloads:
            return []
        return self.execute(
            self.client.table(table).upsert(payloads, on_conflict=on_conflict),
            default=[],
            table=table,
        )

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[], table=table)

    def get_users_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch multiple users and return an id-keyed mapping."""
        ids = sorted({str(uid) for uid in user_ids})
        rows = self.select_in("users", "id", ids, columns="id,name,branch_code")
        return {str(row["id"]): row for row in rows}

    def get_profiles_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch display profiles keyed by user id."""
        ids = sorted({str(uid) for uid in user_ids})
        rows = self.select_in("user_profile", "user_id", ids, columns="user_id,display_name")
        return {str(row["user_id"]): row for row in rows}


def group_by(rows: list[dict[str, Any]], key: str) -> dict[str, list[dict[str, Any]]]:
    """Group rows by an arbitrary key, preserving input order."""
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[str(row[key])].append(row)
    return grouped
