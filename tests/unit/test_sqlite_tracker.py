import sqlite3

import pytest

from pqr_seguimiento.infrastructure.sqlite_tracker import SqliteTracker


@pytest.fixture
def tracker(tmp_path):
    db_path = str(tmp_path / "test_tracking.db")
    t = SqliteTracker(db_path=db_path)
    yield t
    t.close()


class TestStartAndFinishRun:
    def test_start_run_creates_record(self, tracker):
        tracker.start_run("run-001", "casos.csv")
        summary = tracker.get_run_summary("run-001")
        assert summary["run_uuid"] == "run-001"
        assert summary["file_name"] == "casos.csv"
        assert summary["status"] == "RUNNING"

    def test_finish_run_updates_record(self, tracker):
        tracker.start_run("run-002", "casos.csv")
        tracker.finish_run(
            "run-002",
            "CANCELLED",
            {
                "total_rows": 10,
                "added": 4,
                "updated": 1,
                "skipped": 2,
                "errors": 0,
                "cancelled": True,
                "message": "Carga cancelada.",
            },
        )
        summary = tracker.get_run_summary("run-002")
        assert summary["status"] == "CANCELLED"
        assert summary["added"] == 4
        assert summary["cancelled"] == 1
        assert summary["message"] == "Carga cancelada."
        assert summary["finished_at"] is not None

    def test_get_run_summary_nonexistent_returns_empty(self, tracker):
        assert tracker.get_run_summary("nope") == {}


class TestRowLog:
    def test_log_rows_batch(self, tracker):
        tracker.start_run("run-003", "casos.csv")
        tracker.log_rows_batch(
            [
                {"run_uuid": "run-003", "row_index": 1, "sn": "200", "action": "UPDATED", "error_message": None},
                {"run_uuid": "run-003", "row_index": 0, "sn": None, "action": "SKIPPED", "error_message": "Fila sin SN"},
            ]
        )
        actions = tracker.get_row_actions("run-003")
        assert [a["action"] for a in actions] == ["SKIPPED", "UPDATED"]
        assert actions[0]["error_message"] == "Fila sin SN"

    def test_row_log_requires_existing_run(self, tracker):
        with pytest.raises(sqlite3.IntegrityError):
            tracker.log_rows_batch(
                [{"run_uuid": "ghost", "row_index": 0, "sn": "1", "action": "ADDED", "error_message": None}]
            )
