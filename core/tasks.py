"""
core.tasks
~~~~~~~~~~
TaskRunner moves blocking calls (HTTP, ffmpeg) onto a QThread and hands
the outcome back to the thread the runner lives in — the UI thread.

Callbacks therefore always run on the event loop, one at a time, which
is what lets the orchestrators mutate their state without locks.

Anything with the same ``submit(fn, on_success, on_failure)`` signature
can stand in for the runner.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable

from PySide6.QtCore import QObject, QThread, Signal, Slot

SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[BaseException], None]


class _TaskThread(QThread):
    """Runs one callable and reports how it went."""

    succeeded = Signal(int, object)
    failed    = Signal(int, object)

    def __init__(self, task_id: int, fn: Callable[[], Any], parent=None):
        super().__init__(parent)
        self._task_id = task_id
        self._fn = fn

    def run(self):
        try:
            value = self._fn()
        except Exception as exc:
            print(f"[RUNNER] Task #{self._task_id} raised {type(exc).__name__}: {exc}")
            self.failed.emit(self._task_id, exc)
            return
        self.succeeded.emit(self._task_id, value)


class TaskRunner(QObject):

    def __init__(self, parent=None):
        super().__init__(parent)
        self._ids = itertools.count(1)
        self._callbacks: dict[int, tuple[SuccessCallback, FailureCallback]] = {}

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def submit(
        self,
        fn: Callable[[], Any],
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> int:
        task_id = next(self._ids)
        self._callbacks[task_id] = (on_success, on_failure)

        # Parented to the runner so Qt keeps the thread alive until it ends
        thread = _TaskThread(task_id, fn, parent=self)
        thread.succeeded.connect(self._on_succeeded)
        thread.failed.connect(self._on_failed)
        thread.finished.connect(thread.deleteLater)
        thread.start()
        return task_id

    def wait_all(self, msecs: int | None = None) -> int:
        """
        Block until every running thread has ended (used at shutdown).

        With *msecs* each thread gets at most that long; the number of
        threads still running afterwards is returned. Without it the call
        waits for all of them, HTTP timeouts bounding the wait.
        """
        threads = [t for t in self.findChildren(_TaskThread) if t.isRunning()]
        if threads:
            print(f"[RUNNER] Waiting for {len(threads)} background task(s)")
        for thread in threads:
            if msecs is None:
                thread.wait()
            else:
                thread.wait(msecs)
        return sum(1 for t in threads if t.isRunning())

    # ── Slots (run on the runner's thread) ────────────────────────────────────

    @Slot(int, object)
    def _on_succeeded(self, task_id: int, value: object) -> None:
        callbacks = self._callbacks.pop(task_id, None)
        if callbacks:
            callbacks[0](value)

    @Slot(int, object)
    def _on_failed(self, task_id: int, exc: object) -> None:
        callbacks = self._callbacks.pop(task_id, None)
        if callbacks:
            callbacks[1](exc)
