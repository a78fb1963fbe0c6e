"""
core.downloader
~~~~~~~~~~~~~~~
Fetches a static ffmpeg build when no usable binary is installed.

Called by TranscodeEngine.load() on the first conversion of a session,
which already runs on a worker thread, so this is plain blocking code.
"""

from __future__ import annotations

import stat
import sys
from pathlib import Path
from typing import Callable

import requests

BASE_URL = "https://github.com/eugeneware/ffmpeg-static/releases/download/b6.1.1"

CHUNK_SIZE = 1024 * 64  # 64 KB


def _platform_suffix() -> str:
    if sys.platform == "win32":
        return "win32-x64"
    if sys.platform == "darwin":
        return "darwin-x64"
    return "linux-x64"


def ffmpeg_download_url() -> str:
    return f"{BASE_URL}/ffmpeg-{_platform_suffix()}"


def download_ffmpeg(
    dest: Path,
    progress: Callable[[int], None] | None = None,
    session: requests.Session | None = None,
) -> Path:
    """
    Download ffmpeg to *dest* and mark it executable.

    Raises:
        requests.RequestException – on any transport or HTTP error
        OSError                   – if *dest* cannot be written
    A partial download is removed before the error propagates.
    """
    url = ffmpeg_download_url()
    http = session or requests.Session()
    dest.parent.mkdir(parents=True, exist_ok=True)
    print(f"[DOWNLOADER] {url} → {dest}")

    try:
        with http.get(url, stream=True, timeout=60) as resp:
            resp.raise_for_status()
            file_size = int(resp.headers.get("Content-Length") or 0)

            downloaded = 0
            with open(dest, "wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)
                    if file_size and progress is not None:
                        progress(int(downloaded / file_size * 100))

        dest.chmod(dest.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except (requests.RequestException, OSError) as exc:
        print(f"[DOWNLOADER] ❌ Failed: {exc}")
        dest.unlink(missing_ok=True)
        raise

    print(f"[DOWNLOADER] ✅ {dest.name} ready ({downloaded} bytes)")
    return dest
