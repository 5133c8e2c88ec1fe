"""Report stale streak chains for one user without rewriting any rows."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import date, timedelta
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Check a user's stored streaks against the day-over-day chain.",
    )
    parser.add_argument(
        "user_id",
        type=str,
        help="User whose user_daily_scores rows are checked.",
    )
    parser.add_argument(
        "--end",
        type=date.fromisoformat,
        default=None,
        help="Last day to check, YYYY-MM-DD (default: today in the business timezone).",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="How many days back from --end to check (default: 30).",
    )
    return parser.parse_args(argv)


def audit(user_id: str, end: date | None, days: int) -> list[dict[str, Any]]:
    """Return streak chain issues for ``user_id`` in the window."""
    if days <= 0:
        raise ValueError("days must be >= 1")

    from streakboard.services.scoring_service import ScoringService
    from streakboard.utils.supabase_client import get_service_client
    from streakboard.utils.time import app_today

    end_day = end or app_today()
    start_day = end_day - timedelta(days=days - 1)
    service = ScoringService(get_service_client())
    return service.audit_streak_chain(user_id, start_day, end_day)


def print_issues(user_id: str, issues: Sequence[dict[str, Any]]) -> None:
    """Print issues in a grep-friendly form."""
    if not issues:
        print(f"No streak issues for {user_id}")
        return
    print(f"{len(issues)} streak issue(s) for {user_id}:")
    for issue in issues:
        if issue["kind"] == "stale_streak":
            print(
                f"{issue['ymd']} stale_streak stored={issue['stored_streak']} "
                f"expected={issue['expected_streak']}"
            )
        else:
            print(f"{issue['ymd']} {issue['kind']}")


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    issues = audit(args.user_id, args.end, args.days)
    print_issues(args.user_id, issues)
    if issues:
        sys.exit(1)


if __name__ == "__main__":
    main()
