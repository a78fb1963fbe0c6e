from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication

from fakes import DeferredRunner, InlineRunner


@pytest.fixture(scope="session", autouse=True)
def qapp() -> QApplication:
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture()
def runner() -> InlineRunner:
    return InlineRunner()


@pytest.fixture()
def deferred() -> DeferredRunner:
    return DeferredRunner()


@pytest.fixture()
def fake_ffmpeg(tmp_path: Path) -> Path:
    """Shell stand-in for ffmpeg that copies the -i input to the last argument."""
    script = tmp_path / "bin" / "ffmpeg"
    script.parent.mkdir()
    script.write_text(
        "#!/bin/sh\n"
        "src=''\n"
        "prev=''\n"
        "for arg in \"$@\"; do\n"
        "  if [ \"$prev\" = '-i' ]; then src=\"$arg\"; fi\n"
        "  prev=\"$arg\"\n"
        "  out=\"$arg\"\n"
        "done\n"
        "cp \"$src\" \"$out\"\n",
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script


@pytest.fixture()
def broken_ffmpeg(tmp_path: Path) -> Path:
    """Shell stand-in for ffmpeg that always fails."""
    script = tmp_path / "bin-broken" / "ffmpeg"
    script.parent.mkdir()
    script.write_text(
        "#!/bin/sh\n"
        "echo 'input.avi: Invalid data found when processing input' >&2\n"
        "echo 'second line' >&2\n"
        "exit 1\n",
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script
