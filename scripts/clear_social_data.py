#!/usr/bin/env python3
"""
Delete social data: posts (with their comments), likes and follows.

Usage:
    python scripts/clear_social_data.py [--include-postgres]
"""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "backend"))

from app.admin.runner import ClearJob, run_clear_job  # noqa: E402

JOB = ClearJob(
    name="clear_social_data",
    title="Clear social data",
    phrase="DELETE SOCIAL DATA",
    collections=[
        ("posts", "comments"),
        ("likes", None),
        ("follows", None),
    ],
    # children before posts
    postgres_tables=["post_likes", "user_following", "posts"],
)


def main(argv: list[str] | None = None) -> int:
    return run_clear_job(JOB, argv)


if __name__ == "__main__":
    sys.exit(main())
