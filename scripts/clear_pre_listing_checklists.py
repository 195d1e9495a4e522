#!/usr/bin/env python3
"""
Delete every pre-listing checklist from Firestore (and optionally Postgres).

Usage:
    python scripts/clear_pre_listing_checklists.py [--include-postgres]
"""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "backend"))

from app.admin.runner import ClearJob, run_clear_job  # noqa: E402

JOB = ClearJob(
    name="clear_pre_listing_checklists",
    title="Clear pre-listing checklists",
    phrase="DELETE CHECKLISTS",
    collections=[("preListingChecklists", None)],
    postgres_tables=["pre_listing_checklists"],
)


def main(argv: list[str] | None = None) -> int:
    return run_clear_job(JOB, argv)


if __name__ == "__main__":
    sys.exit(main())
