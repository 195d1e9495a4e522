"""Persisted cursor for resumable bulk operations."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class Checkpoint:
    """Per-collection progress stored as JSON after every committed batch.

    Layout: {"collections": {name: {"last_id": str|None, "deleted": int, "done": bool}}}
    """

    def __init__(self, path):
        self.path = Path(path)
        self.state: Dict[str, Any] = {"collections": {}}

    def load(self) -> "Checkpoint":
        if self.path.exists():
            try:
                self.state = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                raise RuntimeError(f"Unreadable checkpoint {self.path}: {e}") from e
            self.state.setdefault("collections", {})
            logger.info(f"Resuming from checkpoint {self.path}")
        return self

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self.state, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def reset(self) -> None:
        self.state = {"collections": {}}
        self.path.unlink(missing_ok=True)

    def collection(self, name: str) -> Dict[str, Any]:
        return self.state["collections"].setdefault(name, {"last_id": None, "deleted": 0, "done": False})

    def last_id(self, name: str) -> Optional[str]:
        return self.collection(name)["last_id"]

    def is_done(self, name: str) -> bool:
        return bool(self.collection(name)["done"])

    def advance(self, name: str, last_id: str, deleted: int) -> None:
        entry = self.collection(name)
        entry["last_id"] = last_id
        entry["deleted"] += deleted
        self.save()

    def mark_done(self, name: str) -> None:
        self.collection(name)["done"] = True
        self.save()

    @property
    def has_progress(self) -> bool:
        return bool(self.state["collections"])
