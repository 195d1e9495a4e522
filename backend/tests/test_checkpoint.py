import json

import pytest

from app.admin.checkpoint import Checkpoint


def test_progress_survives_reload(tmp_path):
    path = tmp_path / "cp" / "job.json"
    checkpoint = Checkpoint(path)
    checkpoint.advance("offers", "doc-010", 10)
    checkpoint.advance("offers", "doc-020", 10)
    checkpoint.mark_done("messages")

    reloaded = Checkpoint(path).load()

    assert reloaded.last_id("offers") == "doc-020"
    assert reloaded.collection("offers")["deleted"] == 20
    assert reloaded.is_done("messages")
    assert not reloaded.is_done("offers")
    assert reloaded.has_progress


def test_missing_file_starts_empty(tmp_path):
    checkpoint = Checkpoint(tmp_path / "none.json").load()

    assert not checkpoint.has_progress
    assert checkpoint.last_id("offers") is None


def test_reset_removes_file(tmp_path):
    path = tmp_path / "job.json"
    checkpoint = Checkpoint(path)
    checkpoint.mark_done("offers")
    assert path.exists()

    checkpoint.reset()

    assert not path.exists()
    assert not checkpoint.is_done("offers")


def test_saved_file_is_plain_json(tmp_path):
    path = tmp_path / "job.json"
    Checkpoint(path).advance("likes", "abc", 3)

    assert json.loads(path.read_text()) == {
        "collections": {"likes": {"last_id": "abc", "deleted": 3, "done": False}}
    }


def test_corrupt_file_is_reported(tmp_path):
    path = tmp_path / "job.json"
    path.write_text("{not json")

    with pytest.raises(RuntimeError):
        Checkpoint(path).load()
