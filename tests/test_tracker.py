"""Tests for publication state tracking."""

import json
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

from repo_digest.core.errors import ConfigError
from repo_digest.core.tracker import PublicationTracker


T1 = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
T2 = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)


def test_unknown_repository_has_no_instant():
    assert PublicationTracker().last_instant("octo/widgets") is None


def test_record_overwrites_previous_value():
    tracker = PublicationTracker()
    tracker.record("octo/widgets", T2)
    tracker.record("octo/widgets", T1)
    assert tracker.last_instant("octo/widgets") == T1
    assert tracker.last_instant("octo/other") is None


def test_in_memory_tracker_writes_nothing(tmp_path):
    tracker = PublicationTracker()
    tracker.record("octo/widgets", T1)
    assert list(tmp_path.iterdir()) == []


def test_file_backed_tracker_persists_between_instances(tmp_path):
    path = tmp_path / "state" / "publications.json"
    PublicationTracker(path).record("octo/widgets", T1)

    reloaded = PublicationTracker(path)
    assert reloaded.last_instant("octo/widgets") == T1
    assert json.loads(path.read_text(encoding="utf-8")) == {"octo/widgets": T1.isoformat()}


def test_file_backed_tracker_rejects_corrupt_state(tmp_path):
    path = tmp_path / "publications.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        PublicationTracker(path)


def test_concurrent_records_on_different_keys_are_all_kept(tmp_path):
    path = tmp_path / "publications.json"
    tracker = PublicationTracker(path)
    keys = [f"octo/repo{i}" for i in range(20)]

    threads = [threading.Thread(target=tracker.record, args=(key, T1)) for key in keys]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(tracker.last_instant(key) == T1 for key in keys)
    assert len(json.loads(path.read_text(encoding="utf-8"))) == len(keys)


def test_interrupted_write_leaves_previous_state_readable(tmp_path, monkeypatch):
    path = tmp_path / "publications.json"
    tracker = PublicationTracker(path)
    tracker.record("octo/widgets", T1)

    def fail_replace(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", fail_replace)
    with pytest.raises(OSError):
        tracker.record("octo/widgets", T2)
    monkeypatch.undo()

    assert PublicationTracker(path).last_instant("octo/widgets") == T1


def test_state_file_is_swapped_in_without_leftovers(tmp_path):
    path = tmp_path / "publications.json"
    tracker = PublicationTracker(path)
    tracker.record("octo/widgets", T1)
    tracker.record("octo/other", T2)

    assert [p.name for p in tmp_path.iterdir()] == ["publications.json"]
