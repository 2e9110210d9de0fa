"""
Tests for the file-backed export status store.
Covers staleness, corrupt files, atomic overwrite and subscribers.
"""

import json
from datetime import timedelta

import pytest

from catalog_export.export.errors import ExportAlreadyRunningError
from catalog_export.export.models import ExportProgress, ExportState, ExportStatus
from catalog_export.export.status_store import STATUS_FILENAME, ExportStatusStore


def make_store(export_dir, clock):
    return ExportStatusStore(export_dir / STATUS_FILENAME, stale_after=timedelta(minutes=30), clock=clock)


class TestStatusPersistence:
    """Tests for reading and writing the status record."""

    def test_missing_file_is_idle(self, export_dir, clock):
        store = make_store(export_dir, clock)
        status = store.get_status()

        assert status.status is ExportState.IDLE
        assert not store.is_running()

    def test_corrupt_file_is_idle(self, export_dir, clock):
        (export_dir / STATUS_FILENAME).write_text("{not json", encoding="utf-8")
        store = make_store(export_dir, clock)

        assert store.get_status().status is ExportState.IDLE

    @pytest.mark.parametrize("record", [
        {"status": "completed", "result": ["oops"]},
        {"status": "running", "result": "x"},
        {"status": "completed", "result": {"csv": "not-an-object"}},
        {"status": "running", "progress": [1, 2]},
        {"status": "failed", "error": {"message": "boom"}},
        ["status", "running"],
    ])
    def test_malformed_record_shapes_are_idle(self, export_dir, clock, record):
        """Wrong JSON types in any field read as idle instead of raising."""
        (export_dir / STATUS_FILENAME).write_text(json.dumps(record), encoding="utf-8")
        store = make_store(export_dir, clock)

        assert store.get_status().status is ExportState.IDLE
        assert store.effective_status().status is ExportState.IDLE
        assert not store.is_running()
        store.begin(ExportStatus.running(clock()))
        assert store.get_status().status is ExportState.RUNNING

    def test_unknown_state_is_idle(self, export_dir, clock):
        (export_dir / STATUS_FILENAME).write_text(json.dumps({"status": "exploded"}), encoding="utf-8")
        store = make_store(export_dir, clock)

        assert store.get_status().status is ExportState.IDLE

    def test_save_writes_camel_case_json(self, export_dir, clock):
        store = make_store(export_dir, clock)
        store.save_status(ExportStatus.running(clock(), ExportProgress(1, 2, "Exporting CSV...")))

        data = json.loads((export_dir / STATUS_FILENAME).read_text(encoding="utf-8"))
        assert data["status"] == "running"
        assert data["startedAt"] == "2024-05-01T02:00:00.000Z"
        assert data["progress"] == {"current": 1, "total": 2, "message": "Exporting CSV..."}

    def test_save_leaves_no_temp_files(self, export_dir, clock):
        store = make_store(export_dir, clock)
        store.save_status(ExportStatus.running(clock()))
        store.save_status(ExportStatus.idle())

        assert [p.name for p in export_dir.iterdir()] == [STATUS_FILENAME]

    def test_reads_are_fresh(self, export_dir, clock):
        """A second store over the same file sees the first store's writes."""
        writer = make_store(export_dir, clock)
        reader = make_store(export_dir, clock)

        writer.save_status(ExportStatus.running(clock()))

        assert reader.get_status().status is ExportState.RUNNING


class TestStaleness:
    """Tests for abandoned-run detection."""

    def test_recent_run_is_running(self, export_dir, clock):
        store = make_store(export_dir, clock)
        store.save_status(ExportStatus.running(clock.now - timedelta(minutes=10)))

        assert store.is_running()
        assert store.get_status().status is ExportState.RUNNING

    def test_stale_run_is_reset_to_idle(self, export_dir, clock):
        store = make_store(export_dir, clock)
        store.save_status(ExportStatus.running(clock.now - timedelta(minutes=40)))

        assert not store.is_running()
        assert store.get_status().status is ExportState.IDLE

    def test_running_without_start_time_is_stale(self, export_dir, clock):
        (export_dir / STATUS_FILENAME).write_text(json.dumps({"status": "running"}), encoding="utf-8")
        store = make_store(export_dir, clock)

        assert not store.is_running()

    def test_effective_status_does_not_write(self, export_dir, clock):
        store = make_store(export_dir, clock)
        started = clock.now - timedelta(minutes=40)
        store.save_status(ExportStatus.running(started))
        before = (export_dir / STATUS_FILENAME).read_bytes()

        status = store.effective_status()

        assert status.status is ExportState.IDLE
        assert status.started_at == started
        assert (export_dir / STATUS_FILENAME).read_bytes() == before

    def test_completed_is_never_stale(self, export_dir, clock):
        store = make_store(export_dir, clock)
        status = ExportStatus(status=ExportState.COMPLETED, started_at=clock.now - timedelta(days=1))

        assert not store.is_stale(status)


class TestSubscribers:
    """Tests for status change notifications."""

    def test_listener_receives_saved_status(self, export_dir, clock):
        store = make_store(export_dir, clock)
        seen = []
        store.subscribe(seen.append)

        store.save_status(ExportStatus.running(clock()))

        assert [status.status for status in seen] == [ExportState.RUNNING]

    def test_unsubscribe(self, export_dir, clock):
        store = make_store(export_dir, clock)
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()

        store.save_status(ExportStatus.idle())

        assert seen == []

    def test_failing_listener_does_not_break_save(self, export_dir, clock):
        store = make_store(export_dir, clock)

        def broken(status):
            raise RuntimeError("listener down")

        store.subscribe(broken)
        store.save_status(ExportStatus.running(clock()))

        assert store.get_status().status is ExportState.RUNNING


class TestBegin:
    """Tests for the guarded transition into running."""

    def test_begin_from_idle(self, export_dir, clock):
        store = make_store(export_dir, clock)

        store.begin(ExportStatus.running(clock()))

        assert store.get_status().status is ExportState.RUNNING

    def test_begin_while_running_raises_without_writing(self, export_dir, clock):
        store = make_store(export_dir, clock)
        store.save_status(ExportStatus.running(clock.now - timedelta(minutes=5)))
        before = (export_dir / STATUS_FILENAME).read_bytes()

        with pytest.raises(ExportAlreadyRunningError):
            store.begin(ExportStatus.running(clock()))

        assert (export_dir / STATUS_FILENAME).read_bytes() == before
