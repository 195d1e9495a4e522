"""Batched, resumable deletion of Firestore collections and Storage files."""

import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from app.admin.checkpoint import Checkpoint

logger = logging.getLogger(__name__)

DOCUMENT_ID_FIELD = "__name__"


@dataclass
class CollectionResult:
    collection: str
    deleted: int = 0
    errors: List[str] = field(default_factory=list)
    skipped: bool = False


def confirm(phrase: str, answer_fn: Callable[[str], str] = input) -> bool:
    """True only if the operator types the exact phrase."""
    try:
        answer = answer_fn(f'Type "{phrase}" to confirm: ')
    except EOFError:
        return False
    return (answer or "").strip() == phrase


class BulkDeleter:
    """Deletes whole collections in fixed-size pages and write batches.

    After every committed batch the id of the last deleted document is
    written to the checkpoint, so a crashed run resumes after it and
    collections already finished are skipped.
    """

    def __init__(self, db, checkpoint: Checkpoint, page_size: int = 500, batch_size: int = 500, out=None):
        if batch_size < 1 or batch_size > 500:
            raise ValueError("batch_size must be between 1 and 500 (Firestore write batch limit)")
        self.db = db
        self.checkpoint = checkpoint
        self.page_size = page_size
        self.batch_size = batch_size
        self.out = out or sys.stdout

    def _print(self, message: str) -> None:
        print(message, file=self.out)

    def delete_collection(self, name: str, subcollection: Optional[str] = None) -> CollectionResult:
        """Delete every document of a collection, and first its named subcollection."""
        self._print(f"\n[INFO] Processing collection: {name}")
        if self.checkpoint.is_done(name):
            self._print(f"[INFO] {name} already cleared in a previous run, skipping")
            return CollectionResult(collection=name, skipped=True)

        result = CollectionResult(collection=name)
        collection_ref = self.db.collection(name)
        batches = 0
        try:
            while True:
                query = collection_ref.order_by(DOCUMENT_ID_FIELD).limit(self.page_size)
                last_id = self.checkpoint.last_id(name)
                if last_id:
                    query = query.start_after({DOCUMENT_ID_FIELD: last_id})
                page = list(query.stream())
                if not page:
                    break

                for start in range(0, len(page), self.batch_size):
                    chunk = page[start:start + self.batch_size]
                    if subcollection:
                        for snapshot in chunk:
                            result.deleted += self._delete_subcollection(snapshot.reference, subcollection)
                    batch = self.db.batch()
                    for snapshot in chunk:
                        batch.delete(snapshot.reference)
                    batch.commit()
                    batches += 1
                    result.deleted += len(chunk)
                    self.checkpoint.advance(name, chunk[-1].id, len(chunk))
                    self._print(f"   Batch {batches}: deleted {len(chunk)} document(s) (total so far: {result.deleted})")

                if len(page) < self.page_size:
                    break
        except Exception as e:
            logger.error(f"Error deleting {name}: {e}")
            self._print(f"[ERROR] Error deleting {name}: {e}")
            result.errors.append(str(e))
            return result

        self.checkpoint.mark_done(name)
        if result.deleted:
            self._print(f"[OK] Deleted {result.deleted} document(s) from {name}")
        else:
            self._print(f"[OK] No documents found in {name}")
        return result

    def _delete_subcollection(self, parent_ref, name: str) -> int:
        """Delete one level of a named subcollection under a parent document."""
        deleted = 0
        sub_ref = parent_ref.collection(name)
        while True:
            docs = list(sub_ref.limit(self.batch_size).stream())
            if not docs:
                return deleted
            batch = self.db.batch()
            for snapshot in docs:
                batch.delete(snapshot.reference)
            batch.commit()
            deleted += len(docs)
            if len(docs) < self.batch_size:
                return deleted

    def delete_storage_files(self, bucket, max_workers: int = 16) -> CollectionResult:
        """Delete every object in the bucket concurrently; one failure does not stop the rest."""
        self._print("\n[INFO] Processing Firebase Storage...")
        result = CollectionResult(collection="Storage")
        try:
            blobs = list(bucket.list_blobs())
        except Exception as e:
            self._print(f"[ERROR] Could not list Storage files: {e}")
            result.errors.append(str(e))
            return result

        self._print(f"   Found {len(blobs)} file(s)")

        def _delete(blob) -> Optional[str]:
            try:
                blob.delete()
                return None
            except Exception as e:
                return f"Failed to delete {blob.name}: {e}"

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            for error in pool.map(_delete, blobs):
                if error:
                    result.errors.append(error)
                else:
                    result.deleted += 1

        self._print(f"[OK] Deleted {result.deleted} file(s) from Storage")
        if result.errors:
            self._print(f"[WARN] {len(result.errors)} error(s) occurred")
        return result


def summarize(results: List[CollectionResult], out=None) -> int:
    """Print the run summary; return the total number of errors."""
    out = out or sys.stdout
    print("\n========================================", file=out)
    print("  DELETION SUMMARY", file=out)
    print("========================================\n", file=out)

    total_deleted = 0
    total_errors = 0
    for result in results:
        total_deleted += result.deleted
        total_errors += len(result.errors)
        if result.skipped:
            print(f"- {result.collection}: skipped (cleared in a previous run)", file=out)
        elif result.deleted > 0:
            print(f"[OK] {result.collection}: {result.deleted} deleted", file=out)
        elif not result.errors:
            print(f"- {result.collection}: nothing to delete", file=out)
        for error in result.errors:
            print(f"  [ERROR] {error}", file=out)

    print(f"\nTotal deleted: {total_deleted}", file=out)
    print(f"Total errors: {total_errors}", file=out)
    return total_errors
