import os
from pathlib import Path

import pytest
import requests

from core.downloader import ffmpeg_download_url, download_ffmpeg


class StreamResponse:

    def __init__(self, chunks, status_code=200, fail_after=None):
        self.chunks = chunks
        self.status_code = status_code
        self.fail_after = fail_after
        self.headers = {"Content-Length": str(sum(len(c) for c in chunks))}

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Not Found")

    def iter_content(self, chunk_size):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise requests.ConnectionError("connection reset")
            yield chunk


class StreamSession:

    def __init__(self, response):
        self.response = response
        self.urls = []

    def get(self, url, stream=False, timeout=None):
        self.urls.append(url)
        return self.response


def test_url_points_at_static_build():
    assert ffmpeg_download_url().startswith("https://github.com/eugeneware/ffmpeg-static/")


def test_download_writes_executable_and_reports_progress(tmp_path: Path):
    dest = tmp_path / "bin" / "ffmpeg"
    progress = []
    session = StreamSession(StreamResponse([b"ab", b"cd"]))

    assert download_ffmpeg(dest, progress.append, session=session) == dest

    assert dest.read_bytes() == b"abcd"
    assert os.access(dest, os.X_OK)
    assert progress == [50, 100]
    assert session.urls == [ffmpeg_download_url()]


def test_interrupted_download_leaves_no_partial_file(tmp_path: Path):
    dest = tmp_path / "ffmpeg"
    session = StreamSession(StreamResponse([b"ab", b"cd"], fail_after=1))

    with pytest.raises(requests.ConnectionError):
        download_ffmpeg(dest, session=session)
    assert not dest.exists()


def test_http_error_propagates(tmp_path: Path):
    session = StreamSession(StreamResponse([], status_code=404))
    with pytest.raises(requests.HTTPError):
        download_ffmpeg(tmp_path / "ffmpeg", session=session)
    assert not (tmp_path / "ffmpeg").exists()
