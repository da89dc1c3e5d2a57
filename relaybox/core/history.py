"""
SQLite execution history for Relaybox.

Keeps every run and its events so past runs can be listed and inspected.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from relaybox.core.events import EventSink
from relaybox.models.results import ActionCode, ResultStatus, RunStatus, ScriptStepResult


class ExecutionHistory:
    """
    SQLite-based storage of script runs.

    Example:
        >>> history = ExecutionHistory("./.relaybox")
        >>> run_id = history.start_run("orders", simulation=False)
        >>> history.finish_run(run_id, RunStatus.SUCCEEDED, posted_count=3)
        >>> runs = history.list_runs()
    """

    def __init__(self, directory: str | Path):
        """
        Initialize the history storage.

        Args:
            directory: Directory for the database file
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.db_path = self.directory / "history.db"
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS runs (
                    run_id TEXT PRIMARY KEY,
                    script TEXT NOT NULL,
                    simulation INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'running',
                    posted_count INTEGER NOT NULL DEFAULT 0,
                    started_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    completed_at TEXT,
                    error TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS run_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    run_id TEXT NOT NULL,
                    sequence INTEGER NOT NULL,
                    timestamp TEXT NOT NULL,
                    name TEXT NOT NULL,
                    action TEXT NOT NULL,
                    status TEXT NOT NULL,
                    failure TEXT,
                    message TEXT,
                    cause TEXT,
                    data_json TEXT,
                    FOREIGN KEY (run_id) REFERENCES runs(run_id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_runs_status
                ON runs(status)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_events_run
                ON run_events(run_id)
            """)
            conn.commit()

    def start_run(self, script: str, simulation: bool, run_id: str | None = None) -> str:
        """
        Record the start of a run.

        Args:
            script: Script name
            simulation: Whether the run is a simulation
            run_id: Run ID (generated if not provided)

        Returns:
            The run ID
        """
        run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S_") + uuid4().hex[:6]
        now = datetime.now().isoformat()

        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO runs (run_id, script, simulation, status, started_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (run_id, script, 1 if simulation else 0, RunStatus.RUNNING.value, now, now),
            )
            conn.commit()
        return run_id

    def add_event(self, run_id: str, sequence: int, result: ScriptStepResult) -> None:
        """
        Record an event of a run.

        Args:
            run_id: Run ID
            sequence: Position of the event in the run
            result: The event
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO run_events
                (run_id, sequence, timestamp, name, action, status, failure,
                 message, cause, data_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    run_id,
                    sequence,
                    result.timestamp.isoformat(),
                    result.name,
                    result.action.value,
                    result.status.value,
                    result.failure.value if result.failure else None,
                    result.message,
                    result.cause,
                    json.dumps(result.data, default=str) if result.data else None,
                ),
            )
            conn.execute(
                "UPDATE runs SET updated_at = ? WHERE run_id = ?",
                (datetime.now().isoformat(), run_id),
            )
            conn.commit()

    def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        posted_count: int = 0,
        error: str | None = None,
    ) -> None:
        """
        Record the end of a run.

        Args:
            run_id: Run ID
            status: Terminal status
            posted_count: Messages posted
            error: Failure description (optional)
        """
        now = datetime.now().isoformat()

        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                UPDATE runs
                SET status = ?, posted_count = ?, error = ?, completed_at = ?, updated_at = ?
                WHERE run_id = ?
            """,
                (status.value, posted_count, error, now, now, run_id),
            )
            conn.commit()

    def get_run(self, run_id: str) -> dict[str, Any] | None:
        """
        Get a run.

        Args:
            run_id: Run ID

        Returns:
            Run info dict or None
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute("SELECT * FROM runs WHERE run_id = ?", (run_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def list_runs(
        self,
        limit: int = 20,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List runs, most recent first.

        Args:
            limit: Maximum number of runs to return
            status: Filter by status (optional)

        Returns:
            List of run info dicts
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row

            if status:
                cursor = conn.execute(
                    """
                    SELECT * FROM runs
                    WHERE status = ?
                    ORDER BY started_at DESC
                    LIMIT ?
                """,
                    (status, limit),
                )
            else:
                cursor = conn.execute(
                    """
                    SELECT * FROM runs
                    ORDER BY started_at DESC
                    LIMIT ?
                """,
                    (limit,),
                )

            return [dict(row) for row in cursor.fetchall()]

    def get_events(self, run_id: str) -> list[dict[str, Any]]:
        """
        Get all events of a run, in emission order.

        Args:
            run_id: Run ID

        Returns:
            List of event records
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(
                """
                SELECT sequence, timestamp, name, action, status, failure,
                       message, cause, data_json
                FROM run_events
                WHERE run_id = ?
                ORDER BY sequence
            """,
                (run_id,),
            )
            events = []
            for row in cursor.fetchall():
                event = dict(row)
                data_json = event.pop("data_json")
                event["data"] = json.loads(data_json) if data_json else {}
                events.append(event)
            return events

    def delete_run(self, run_id: str) -> bool:
        """
        Delete a run and its events.

        Args:
            run_id: Run ID to delete

        Returns:
            True if deleted, False if not found
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM run_events WHERE run_id = ?", (run_id,))
            cursor = conn.execute("DELETE FROM runs WHERE run_id = ?", (run_id,))
            conn.commit()
            return cursor.rowcount > 0

    def cleanup_old_runs(self, days: int = 30) -> int:
        """
        Delete finished runs older than specified days.

        Args:
            days: Delete runs older than this many days

        Returns:
            Number of runs deleted
        """
        cutoff = datetime.now().timestamp() - (days * 86400)
        cutoff_iso = datetime.fromtimestamp(cutoff).isoformat()

        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT run_id FROM runs WHERE updated_at < ? AND completed_at IS NOT NULL",
                (cutoff_iso,),
            )
            run_ids = [row[0] for row in cursor.fetchall()]
            for run_id in run_ids:
                conn.execute("DELETE FROM run_events WHERE run_id = ?", (run_id,))
                conn.execute("DELETE FROM runs WHERE run_id = ?", (run_id,))
            conn.commit()
            return len(run_ids)

    def clear(self) -> int:
        """
        Delete every run.

        Returns:
            Number of runs deleted
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM run_events")
            cursor = conn.execute("DELETE FROM runs")
            conn.commit()
            return cursor.rowcount


class HistoryEventSink(EventSink):
    """
    Records the events of runs into an ExecutionHistory.

    A new run is opened on every ``ScriptStart`` and closed on the
    terminal event.
    """

    def __init__(self, history: ExecutionHistory, script_name: str):
        """
        Initialize the sink.

        Args:
            history: History storage
            script_name: Name recorded for the runs
        """
        self.history = history
        self.script_name = script_name
        self.run_id: str | None = None
        self._sequence = 0
        self._posted = 0
        self._lock = threading.Lock()

    def publish(self, result: ScriptStepResult) -> None:
        with self._lock:
            if result.action == ActionCode.SCRIPT and result.status == ResultStatus.START:
                self.run_id = self.history.start_run(self.script_name, bool(result.simulation))
                self._sequence = 0
                self._posted = 0
            if self.run_id is None:
                return

            self._sequence += 1
            self.history.add_event(self.run_id, self._sequence, result)
            if result.action == ActionCode.STEP and result.status == ResultStatus.SUCCESS:
                self._posted += 1

            status = result.run_status
            if status is not None:
                error = None
                if status.is_failure:
                    error = result.message if not result.cause else f"{result.message}: {result.cause}"
                posted = result.posted_count if result.posted_count is not None else self._posted
                self.history.finish_run(self.run_id, status, posted, error)
