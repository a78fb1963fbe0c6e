"""
core.preview
~~~~~~~~~~~~
PreviewResourceManager keeps exactly one local copy of the selected
video on disk so the preview player has something to point at.

bind() always releases the previous copy first, so at most one preview
file is referenced per manager. release() is safe to call any number of
times and must be called when the owning page goes away. A file the OS
refuses to delete is reported and forgotten.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from core.models import MediaFile
from core.paths import PREVIEW_DIR


class PreviewResourceManager:

    def __init__(self, directory: Path | None = None):
        self._directory = directory or PREVIEW_DIR
        self._current: Path | None = None

    @property
    def current(self) -> Path | None:
        return self._current

    @property
    def live_count(self) -> int:
        return 0 if self._current is None else 1

    def bind(self, media: MediaFile) -> Path:
        """Write *media* to a fresh preview file and return its path."""
        self.release()

        self._directory.mkdir(parents=True, exist_ok=True)
        suffix = Path(media.name).suffix or f".{media.container}"
        fd, raw_path = tempfile.mkstemp(prefix="preview-", suffix=suffix, dir=self._directory)
        path = Path(raw_path)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(media.data)
        except OSError:
            path.unlink(missing_ok=True)
            raise

        self._current = path
        print(f"[PREVIEW] Bound '{media.name}' → '{path}'")
        return path

    def release(self) -> None:
        if self._current is None:
            return
        path, self._current = self._current, None
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            print(f"[PREVIEW] Could not delete '{path}': {exc}")
            return
        print(f"[PREVIEW] Released '{path}'")

    # ── Scoped use ────────────────────────────────────────────────────────────

    def __enter__(self) -> "PreviewResourceManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
