"""Shared command-line flow for the destructive clearing scripts.

Preconditions (settings, credentials, Firebase) are checked before the
operator is prompted; nothing is deleted unless the exact confirmation
phrase is typed.
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from firebase_admin import firestore, storage

from app.admin.bulk_delete import BulkDeleter, CollectionResult, confirm, summarize
from app.admin.checkpoint import Checkpoint
from app.admin.config import AdminConfigError, load_admin_settings
from app.admin.postgres import clear_tables
from app.services.firebase import get_firebase_app

logger = logging.getLogger(__name__)


@dataclass
class ClearJob:
    name: str
    title: str
    phrase: str
    # (collection, subcollection deleted before each parent document)
    collections: List[Tuple[str, Optional[str]]]
    postgres_tables: List[str] = field(default_factory=list)
    allow_storage: bool = False


def build_parser(job: ClearJob) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=job.title)
    parser.add_argument("--env-file", default=".env", help="Settings file (default: .env)")
    parser.add_argument("--credentials", help="Path to the Firebase service account JSON")
    parser.add_argument("--checkpoint", help="Checkpoint file (default: <checkpoint_dir>/<job>.json)")
    parser.add_argument("--batch-size", type=int, help="Documents per write batch (max 500)")
    parser.add_argument("--reset-checkpoint", action="store_true", help="Ignore and remove a previous checkpoint")
    if job.allow_storage:
        parser.add_argument("--delete-storage", action="store_true", help="Also delete every Storage file")
    if job.postgres_tables:
        parser.add_argument("--include-postgres", action="store_true", help="Also clear the Postgres tables")
    return parser


def print_banner(job: ClearJob, delete_storage: bool, include_postgres: bool) -> None:
    print("\n========================================")
    print(f"  {job.title.upper()}")
    print("========================================\n")
    print("[WARN] This will permanently delete:")
    for collection, subcollection in job.collections:
        suffix = f" (and {subcollection} subcollections)" if subcollection else ""
        print(f"   - Firestore: {collection}{suffix}")
    if delete_storage:
        print("   - Firebase Storage: all files")
    if include_postgres:
        for table in job.postgres_tables:
            print(f"   - Postgres: {table}")
    print("\nThis action cannot be undone.\n")


def run_clear_job(
    job: ClearJob,
    argv: Optional[List[str]] = None,
    answer_fn: Callable[[str], str] = input,
    db=None,
    bucket=None,
) -> int:
    """Run a clearing job. Returns the process exit code."""
    args = build_parser(job).parse_args(argv)
    delete_storage = bool(getattr(args, "delete_storage", False))
    include_postgres = bool(getattr(args, "include_postgres", False))

    try:
        admin_settings = load_admin_settings(args.env_file, args.credentials)
    except AdminConfigError as e:
        print(f"[ERROR] {e}")
        return 1

    batch_size = args.batch_size or admin_settings.batch_size
    if batch_size < 1 or batch_size > 500:
        print("[ERROR] --batch-size must be between 1 and 500")
        return 1

    if db is None or (delete_storage and bucket is None):
        try:
            app = get_firebase_app(admin_settings.firebase_credentials_path, admin_settings.firebase_storage_bucket)
        except Exception as e:
            print(f"[ERROR] Firebase Admin initialization failed: {e}")
            return 1
        if db is None:
            db = firestore.client(app=app)
        if delete_storage and bucket is None:
            if not admin_settings.firebase_storage_bucket:
                print("[ERROR] FIREBASE_STORAGE_BUCKET is required with --delete-storage")
                return 1
            bucket = storage.bucket(admin_settings.firebase_storage_bucket, app=app)
        print("[OK] Firebase Admin initialized")

    checkpoint_path = args.checkpoint or str(Path(admin_settings.checkpoint_dir) / f"{job.name}.json")
    checkpoint = Checkpoint(checkpoint_path)
    if args.reset_checkpoint:
        checkpoint.reset()
    else:
        try:
            checkpoint.load()
        except RuntimeError as e:
            print(f"[ERROR] {e}")
            return 1
        if checkpoint.has_progress:
            print(f"[INFO] Resuming from checkpoint {checkpoint_path}")

    print_banner(job, delete_storage, include_postgres)
    if not confirm(job.phrase, answer_fn):
        print("\nDeletion cancelled. No data was deleted.")
        return 0

    print("\nStarting deletion...\n")
    deleter = BulkDeleter(db, checkpoint, page_size=admin_settings.page_size, batch_size=batch_size)
    results: List[CollectionResult] = []
    for collection, subcollection in job.collections:
        results.append(deleter.delete_collection(collection, subcollection))

    if delete_storage:
        results.append(deleter.delete_storage_files(bucket))

    if include_postgres:
        print("\n[INFO] Clearing Postgres tables...")
        try:
            table_results = asyncio.run(clear_tables(admin_settings.database_url, job.postgres_tables))
        except Exception as e:
            table_results = {table: str(e) for table in job.postgres_tables}
        for table, outcome in table_results.items():
            if isinstance(outcome, int):
                results.append(CollectionResult(collection=f"postgres:{table}", deleted=max(outcome, 0)))
            else:
                results.append(CollectionResult(collection=f"postgres:{table}", errors=[outcome]))

    total_errors = summarize(results)
    if total_errors == 0:
        checkpoint.reset()
        print("\n[OK] Data clearing completed.\n")
        return 0

    print(f"\n[WARN] Completed with errors. Re-run to resume from {checkpoint_path}\n")
    return 0
