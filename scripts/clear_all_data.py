#!/usr/bin/env python3
"""
Clear all marketplace data from Firestore (and optionally Storage and Postgres).

User accounts are preserved. The operator must type DELETE ALL DATA to proceed.

Usage:
    python scripts/clear_all_data.py [--delete-storage] [--include-postgres]
"""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "backend"))

from app.admin.runner import ClearJob, run_clear_job  # noqa: E402

JOB = ClearJob(
    name="clear_all_data",
    title="Clear all marketplace data",
    phrase="DELETE ALL DATA",
    collections=[
        ("properties", None),
        ("saleProfiles", None),
        ("purchaseProfiles", None),
        ("savedSearches", None),
        ("vendors", None),
        ("messages", None),
        ("offers", None),
        ("transactions", None),
        ("favorites", None),
        ("preListingChecklists", None),
        ("listingProgress", None),
    ],
    postgres_tables=[
        "offers",
        "messages",
        "transactions",
        "favorites",
        "saved_searches",
        "listing_progress",
        "pre_listing_checklists",
        "psa_drafts",
        "vendors",
        "properties",
    ],
    allow_storage=True,
)


def main(argv: list[str] | None = None) -> int:
    return run_clear_job(JOB, argv)


if __name__ == "__main__":
    sys.exit(main())
