"""
core.paths
~~~~~~~~~~
Single source of truth for filesystem paths used across the app.
Import these instead of hard-coding strings anywhere else.
"""

import tempfile
from pathlib import Path

# Project root = the directory that contains main.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent

BIN_DIR    = PROJECT_ROOT / "bin"
FFMPEG_BIN = BIN_DIR / "ffmpeg"

# Scratch space owned by the transcoding engine and the preview manager
WORK_ROOT    = Path(tempfile.gettempdir()) / "fightwatch"
ENGINE_DIR   = WORK_ROOT / "engine"
PREVIEW_DIR  = WORK_ROOT / "previews"


def binary_problem(binary: Path) -> str | None:
    """
    Return a human-readable reason why *binary* cannot be used,
    or None if it looks runnable.
    """
    if not binary.exists():
        return f"Binary not found: {binary}"
    if not binary.is_file():
        return f"Not a file: {binary}"
    if not binary.stat().st_mode & 0o111:
        return f"Not executable: {binary}"
    return None
