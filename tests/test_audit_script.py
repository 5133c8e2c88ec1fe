"""Streak audit CLI tests."""

from __future__ import annotations

import importlib.util
from datetime import date
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "audit_streaks.py"


@pytest.fixture(scope="module")
def audit_streaks():
    spec = importlib.util.spec_from_file_location("audit_streaks", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_parse_args(audit_streaks) -> None:
    """Window options parse into dates and ints."""
    args = audit_streaks.parse_args(["u1", "--end", "2026-03-10", "--days", "5"])
    assert (args.user_id, args.end, args.days) == ("u1", date(2026, 3, 10), 5)


def test_audit_rejects_empty_window(audit_streaks) -> None:
    """A non-positive window is a usage error."""
    with pytest.raises(ValueError):
        audit_streaks.audit("u1", date(2026, 3, 10), 0)


def test_print_issues(audit_streaks, capsys: pytest.CaptureFixture[str]) -> None:
    """Each issue prints on its own line."""
    audit_streaks.print_issues(
        "u1",
        [
            {"ymd": "2026-03-04", "kind": "stale_streak", "stored_streak": 4, "expected_streak": 1},
            {"ymd": "2026-03-05", "kind": "duplicate_score"},
        ],
    )
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "2 streak issue(s) for u1:",
        "2026-03-04 stale_streak stored=4 expected=1",
        "2026-03-05 duplicate_score",
    ]
