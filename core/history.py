"""
core.history
~~~~~~~~~~~~
HistoryAggregator joins the stored-video listing with one inference
lookup per file.

A run is triggered once each time the history view opens:
  1. list the stored files — failure ends the run with an error and no records
  2. look every file up concurrently — a failed lookup becomes a placeholder
  3. once every lookup has settled, publish all records in listing order

Records are never published piecemeal. A newer refresh() or dispose()
makes the older run's late callbacks no-ops.

Signals
-------
loading_changed(bool)
records_ready(list[HistoryRecord])
error_occurred(str)
"""

from __future__ import annotations

from datetime import datetime

from PySide6.QtCore import QObject, Signal

from core.client import InferenceClient
from core.models import HistoryRecord, InferenceResult


class _Run:
    """Bookkeeping for one aggregation pass."""

    def __init__(self, run_id: int, filenames: list[str]):
        self.id = run_id
        self.filenames = filenames
        self.records: list[HistoryRecord | None] = [None] * len(filenames)
        self.pending = len(filenames)


class HistoryAggregator(QObject):

    loading_changed = Signal(bool)
    records_ready   = Signal(object)
    error_occurred  = Signal(str)

    def __init__(self, client: InferenceClient, runner, parent=None):
        super().__init__(parent)
        self._client = client
        self._runner = runner
        self._run_id = 0
        self._run: _Run | None = None
        self._loading = False
        self._records: list[HistoryRecord] = []
        self.last_error: Exception | None = None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def records(self) -> list[HistoryRecord]:
        return list(self._records)

    # ── Public API ────────────────────────────────────────────────────────────

    def refresh(self) -> int:
        """Start a new aggregation run and return its id."""
        self._run_id += 1
        run_id = self._run_id
        self._run = None
        self.last_error = None
        print(f"[HISTORY] refresh(): run #{run_id}")
        self._set_loading(True)

        self._runner.submit(
            self._client.list_uploads,
            lambda names: self._on_listing(run_id, names),
            lambda exc: self._on_listing_failed(run_id, exc),
        )
        return run_id

    def dispose(self) -> None:
        """Forget the current run; anything still in flight is ignored."""
        print("[HISTORY] dispose()")
        self._run_id += 1
        self._run = None
        self._set_loading(False)

    # ── Step 1: listing ───────────────────────────────────────────────────────

    def _on_listing(self, run_id: int, filenames: list[str]) -> None:
        if run_id != self._run_id:
            print(f"[HISTORY] Dropping stale listing (run #{run_id})")
            return

        print(f"[HISTORY] Listing → {len(filenames)} file(s): {filenames}")
        run = _Run(run_id, list(filenames))
        self._run = run

        if not run.filenames:
            self._publish(run)
            return

        # ── Step 2: one lookup per file, all in flight at once ───────────────
        for index, filename in enumerate(run.filenames):
            self._runner.submit(
                lambda name=filename: self._client.lookup(name),
                lambda result, r=run_id, i=index: self._on_lookup(r, i, result),
                lambda exc, r=run_id, i=index: self._on_lookup_failed(r, i, exc),
            )

    def _on_listing_failed(self, run_id: int, exc: BaseException) -> None:
        if run_id != self._run_id:
            return
        print(f"[HISTORY] ❌ Listing failed: {exc}")
        self.last_error = exc
        self._records = []
        self._set_loading(False)
        self.error_occurred.emit(f"Error loading video history: {exc}")
        self.records_ready.emit([])

    # ── Step 2 callbacks ──────────────────────────────────────────────────────

    def _on_lookup(self, run_id: int, index: int, result: InferenceResult) -> None:
        self._settle(run_id, index, result)

    def _on_lookup_failed(self, run_id: int, index: int, exc: BaseException) -> None:
        run = self._current(run_id)
        if run is not None:
            print(f"[HISTORY] Lookup failed for '{run.filenames[index]}': {exc} — using placeholder")
        self._settle(run_id, index, InferenceResult.placeholder())

    def _settle(self, run_id: int, index: int, result: InferenceResult) -> None:
        run = self._current(run_id)
        if run is None:
            print(f"[HISTORY] Dropping stale lookup (run #{run_id})")
            return
        if run.records[index] is not None:
            return

        run.records[index] = HistoryRecord(
            filename=run.filenames[index],
            result=result,
            fetched_at=datetime.now(),
        )
        run.pending -= 1

        # ── Step 3: publish once everything has settled ──────────────────────
        if run.pending == 0:
            self._publish(run)

    def _publish(self, run: _Run) -> None:
        self._records = [record for record in run.records if record is not None]
        self._run = None
        print(f"[HISTORY] ✅ Run #{run.id} published {len(self._records)} record(s)")
        self._set_loading(False)
        self.records_ready.emit(list(self._records))

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _current(self, run_id: int) -> _Run | None:
        if run_id != self._run_id or self._run is None or self._run.id != run_id:
            return None
        return self._run

    def _set_loading(self, value: bool) -> None:
        if value == self._loading:
            return
        self._loading = value
        self.loading_changed.emit(value)
