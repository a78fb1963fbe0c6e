"""
core.engine
~~~~~~~~~~~
TranscodeEngine: the one ffmpeg instance of the application session.

The engine owns a binary and a private working directory. Callers stage
bytes into the directory under fixed names, run a command against them
and read the result back. The same names are overwritten on every call,
so the directory never grows.

Created once by the application and injected where needed. Loading is
lazy (first conversion only) and guarded so concurrent first calls
initialise it exactly once. All commands are serialised through one
re-entrant lock; use ``exclusive()`` to hold it across a whole
write → exec → read sequence.
"""

from __future__ import annotations

import shutil
import subprocess
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import requests

from core.command_builder import command_as_string, full_command
from core.downloader import download_ffmpeg
from core.paths import ENGINE_DIR, FFMPEG_BIN, binary_problem


class EngineError(RuntimeError):
    """Raised when the engine cannot load, stage, run or read back."""


class TranscodeEngine:

    def __init__(
        self,
        binary: Path | None = None,
        work_dir: Path | None = None,
        allow_download: bool = True,
    ):
        self._requested_binary = binary
        self._work_dir = work_dir or ENGINE_DIR
        self._allow_download = allow_download

        self._binary: Path | None = None
        self._init_lock = threading.Lock()
        self._exec_lock = threading.RLock()
        print(f"[ENGINE] Created | work_dir='{self._work_dir}'")

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    @property
    def loaded(self) -> bool:
        return self._binary is not None

    @property
    def binary(self) -> Path | None:
        return self._binary

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    def load(self) -> None:
        """Resolve the ffmpeg binary and prepare the working directory, once."""
        if self._binary is not None:
            return
        with self._init_lock:
            if self._binary is not None:
                return
            print("[ENGINE] load(): first use — initialising")
            binary = self._resolve_binary()
            try:
                self._work_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise EngineError(f"Cannot create working directory {self._work_dir}: {exc}") from exc
            self._binary = binary
            print(f"[ENGINE] Loaded | binary='{binary}'")

    def close(self) -> bool:
        """
        Drop the working directory. The engine can be loaded again later.

        Returns False without touching anything while a conversion holds
        the engine, so ffmpeg never loses its files mid-run.
        """
        if not self._exec_lock.acquire(blocking=False):
            print("[ENGINE] close(): a conversion is still running — leaving the work dir")
            return False
        try:
            print(f"[ENGINE] close(): removing '{self._work_dir}'")
            shutil.rmtree(self._work_dir, ignore_errors=True)
            self._binary = None
        finally:
            self._exec_lock.release()
        return True

    @contextmanager
    def exclusive(self) -> Iterator["TranscodeEngine"]:
        """Hold the engine for a multi-step sequence."""
        with self._exec_lock:
            yield self

    # ── Working storage ───────────────────────────────────────────────────────

    def write_file(self, name: str, data: bytes) -> None:
        self._require_loaded()
        target = self._work_dir / name
        try:
            target.write_bytes(data)
        except OSError as exc:
            raise EngineError(f"Cannot stage {name}: {exc}") from exc
        print(f"[ENGINE] write_file: {name} ({len(data)} bytes)")

    def read_file(self, name: str) -> bytes:
        self._require_loaded()
        source = self._work_dir / name
        try:
            data = source.read_bytes()
        except OSError as exc:
            raise EngineError(f"Cannot read {name}: {exc}") from exc
        print(f"[ENGINE] read_file: {name} ({len(data)} bytes)")
        return data

    def delete_file(self, name: str) -> None:
        self._require_loaded()
        try:
            (self._work_dir / name).unlink(missing_ok=True)
        except OSError as exc:
            raise EngineError(f"Cannot delete {name}: {exc}") from exc

    # ── Execution ─────────────────────────────────────────────────────────────

    def exec(self, args: list[str]) -> None:
        """Run ffmpeg with *args* inside the working directory."""
        self._require_loaded()
        cmd = full_command(self._binary, args)

        with self._exec_lock:
            print(f"[ENGINE] Command:\n  {command_as_string(cmd)}")
            try:
                completed = subprocess.run(
                    cmd,
                    cwd=self._work_dir,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    check=False,
                )
            except OSError as exc:
                raise EngineError(f"Cannot start ffmpeg: {exc}") from exc

        print(f"[ENGINE] ffmpeg exited with code {completed.returncode}")
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="ignore").strip()
            stdout = completed.stdout.decode("utf-8", errors="ignore").strip()
            details = (stderr or stdout or "ffmpeg exited with a non-zero status.").splitlines()
            if stderr:
                print("[ENGINE] ffmpeg stderr:\n" +"\n".join(f"  {l}" for l in stderr.splitlines()))
            raise EngineError(details[0] if details else "Unknown error.")

    # ── Internal ──────────────────────────────────────────────────────────────

    def _require_loaded(self) -> None:
        if self._binary is None:
            raise EngineError("Engine is not loaded")

    def _resolve_binary(self) -> Path:
        """Explicit binary → bundled bin/ffmpeg → PATH → download."""
        if self._requested_binary is not None:
            problem = binary_problem(self._requested_binary)
            if problem:
                raise EngineError(problem)
            return self._requested_binary

        if binary_problem(FFMPEG_BIN) is None:
            return FFMPEG_BIN

        found = shutil.which("ffmpeg")
        if found:
            return Path(found)

        if not self._allow_download:
            raise EngineError("ffmpeg not found and downloading is disabled")

        print("[ENGINE] No ffmpeg available — downloading a static build")
        try:
            return download_ffmpeg(FFMPEG_BIN)
        except (requests.RequestException, OSError) as exc:
            raise EngineError(f"Could not download ffmpeg: {exc}") from exc
