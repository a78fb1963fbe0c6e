from pathlib import Path

import pytest

from core.errors import ConversionError, NetworkError, ValidationError
from core.models import InferenceResult, MediaFile, UploadState
from core.normalizer import FormatNormalizer
from core.preview import PreviewResourceManager
from core.upload import UploadOrchestrator

from fakes import FakeClient, FakeEngine


class Recorder:
    """Collects everything an orchestrator emits."""

    def __init__(self, orchestrator: UploadOrchestrator):
        self.states = []
        self.errors = []
        self.results = []
        self.previews = []
        self.converting = []
        self.busy = []
        orchestrator.state_changed.connect(self.states.append)
        orchestrator.error_occurred.connect(self.errors.append)
        orchestrator.result_ready.connect(self.results.append)
        orchestrator.preview_changed.connect(self.previews.append)
        orchestrator.converting_changed.connect(self.converting.append)
        orchestrator.busy_changed.connect(self.busy.append)


def _build(runner, tmp_path: Path, engine=None, client=None):
    engine = engine or FakeEngine()
    client = client or FakeClient()
    previews = PreviewResourceManager(tmp_path / "previews")
    orchestrator = UploadOrchestrator(FormatNormalizer(engine), client, previews, runner)
    return orchestrator, Recorder(orchestrator), engine, client, previews


def _video(name: str, mime: str, data: bytes = b"video") -> MediaFile:
    return MediaFile(data=data, name=name, mime_type=mime)


# ── Happy paths ───────────────────────────────────────────────────────────────

def test_playable_file_is_uploaded_and_completes(runner, tmp_path: Path):
    prediction = InferenceResult(label="Fight", confidence=0.87, anomalous_frame_path="f.jpg", route="/static/")
    orchestrator, rec, engine, client, previews = _build(runner, tmp_path, client=FakeClient(prediction=prediction))
    clip = _video("clip.mp4", "video/mp4")

    orchestrator.select_file(clip)

    assert orchestrator.state is UploadState.READY
    assert orchestrator.file is clip
    assert not engine.touched
    assert previews.current is not None and previews.current.read_bytes() == b"video"
    assert rec.previews[-1] == previews.current

    assert orchestrator.upload() is True

    assert client.predicted == [clip]
    assert orchestrator.state is UploadState.COMPLETE
    assert orchestrator.result is prediction
    assert rec.results == [prediction]
    assert prediction.confidence_percent == 87
    assert rec.busy == [True, False]
    assert rec.states == [
        UploadState.VALIDATING, UploadState.READY, UploadState.UPLOADING, UploadState.COMPLETE,
    ]
    assert rec.errors == []


def test_select_from_path(runner, tmp_path: Path):
    path = tmp_path / "clip.webm"
    path.write_bytes(b"webm")
    orchestrator, *_ = _build(runner, tmp_path)

    orchestrator.select_file(path)

    assert orchestrator.state is UploadState.READY
    assert orchestrator.file.name == "clip.webm"
    assert orchestrator.file.mime_type == "video/webm"


def test_avi_is_normalized_before_ready(runner, tmp_path: Path):
    orchestrator, rec, engine, client, previews = _build(runner, tmp_path, engine=FakeEngine(output=b"mp4"))
    source = _video("clip.avi", "video/x-msvideo")

    orchestrator.select_file(source)

    assert orchestrator.state is UploadState.READY
    assert orchestrator.source is source
    assert orchestrator.file.name == "clip.mp4"
    assert orchestrator.file.data == b"mp4"
    assert rec.converting == [True, False]
    assert previews.current.suffix == ".mp4"

    orchestrator.upload()
    assert client.predicted[0].name == "clip.mp4"


# ── Conversion failure and retry ──────────────────────────────────────────────

def test_failed_conversion_keeps_original_and_can_retry(runner, tmp_path: Path):
    orchestrator, rec, engine, client, previews = _build(runner, tmp_path, engine=FakeEngine(failures=1))
    source = _video("clip.avi", "video/x-msvideo")

    orchestrator.select_file(source)

    assert orchestrator.state is UploadState.FAILED
    assert orchestrator.source is source
    assert orchestrator.file is None
    assert orchestrator.converting is False
    assert isinstance(orchestrator.last_error, ConversionError)
    assert rec.errors == ["Error converting video: input.avi: Invalid data found when processing input"]
    assert previews.current is None

    assert orchestrator.upload() is False
    assert client.predicted == []

    assert orchestrator.retry() is True
    assert orchestrator.state is UploadState.READY
    assert orchestrator.file.name == "clip.mp4"
    assert engine.calls.count("exec") == 2


def test_retry_is_ignored_unless_failed(runner, tmp_path: Path):
    orchestrator, *_ = _build(runner, tmp_path)
    assert orchestrator.retry() is False
    orchestrator.select_file(_video("clip.mp4", "video/mp4"))
    assert orchestrator.retry() is False


# ── Validation ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("source, message", [
    (None, "Please select a valid video file"),
    (MediaFile(data=b"x", name="song.mp3", mime_type="audio/mpeg"), "Please select a valid video file"),
    (MediaFile(data=b"x", name="clip.mkv", mime_type="video/x-matroska"), "Unsupported video format"),
])
def test_invalid_selection_returns_to_idle(runner, tmp_path: Path, source, message):
    orchestrator, rec, engine, client, previews = _build(runner, tmp_path)

    orchestrator.select_file(source)

    assert orchestrator.state is UploadState.IDLE
    assert orchestrator.file is None
    assert isinstance(orchestrator.last_error, ValidationError)
    assert message in rec.errors[-1]
    assert not engine.touched
    assert previews.current is None


def test_unreadable_path_is_rejected(runner, tmp_path: Path):
    orchestrator, rec, *_ = _build(runner, tmp_path)
    orchestrator.select_file(tmp_path / "missing.mp4")
    assert orchestrator.state is UploadState.IDLE
    assert "Could not read" in rec.errors[-1]


def test_upload_without_selection_asks_for_a_video(runner, tmp_path: Path):
    orchestrator, rec, engine, client, _ = _build(runner, tmp_path)
    assert orchestrator.upload() is False
    assert rec.errors == ["Please upload a video"]
    assert client.predicted == []


# ── Upload failures and concurrency ───────────────────────────────────────────

def test_network_failure_returns_to_ready(runner, tmp_path: Path):
    client = FakeClient(predict_error=NetworkError("connection refused"))
    orchestrator, rec, *_ = _build(runner, tmp_path, client=client)
    orchestrator.select_file(_video("clip.mp4", "video/mp4"))

    orchestrator.upload()

    assert orchestrator.state is UploadState.READY
    assert orchestrator.result is None
    assert orchestrator.busy is False
    assert rec.errors == ["Error while predicting: connection refused"]

    client.predict_error = None
    assert orchestrator.upload() is True
    assert orchestrator.state is UploadState.COMPLETE


def test_second_upload_rejected_while_in_flight(deferred, tmp_path: Path):
    orchestrator, rec, engine, client, _ = _build(deferred, tmp_path)
    orchestrator.select_file(_video("clip.mp4", "video/mp4"))

    assert orchestrator.upload() is True
    assert orchestrator.busy is True
    assert orchestrator.upload() is False
    assert len(deferred) == 1

    deferred.run_all()
    assert client.predicted and len(client.predicted) == 1
    assert orchestrator.state is UploadState.COMPLETE
    assert orchestrator.busy is False


def test_stale_conversion_is_dropped_after_new_selection(deferred, tmp_path: Path):
    orchestrator, rec, engine, client, previews = _build(deferred, tmp_path)
    orchestrator.select_file(_video("old.avi", "video/x-msvideo"))
    assert orchestrator.state is UploadState.NORMALIZING

    newer = _video("new.mp4", "video/mp4")
    orchestrator.select_file(newer)
    deferred.run_all()

    assert orchestrator.file is newer
    assert orchestrator.state is UploadState.READY
    assert previews.current.suffix == ".mp4"
    assert len(list((tmp_path / "previews").iterdir())) == 1


def test_stale_prediction_is_dropped_after_new_selection(deferred, tmp_path: Path):
    orchestrator, rec, engine, client, _ = _build(deferred, tmp_path)
    orchestrator.select_file(_video("first.mp4", "video/mp4"))
    orchestrator.upload()

    orchestrator.select_file(_video("second.mp4", "video/mp4"))
    deferred.run_all()

    assert orchestrator.result is None
    assert orchestrator.state is UploadState.READY
    assert orchestrator.file.name == "second.mp4"
    assert orchestrator.busy is False
    assert rec.results == []


def test_dispose_releases_preview(runner, tmp_path: Path):
    orchestrator, rec, engine, client, previews = _build(runner, tmp_path)
    orchestrator.select_file(_video("clip.mp4", "video/mp4"))
    bound = previews.current

    orchestrator.dispose()

    assert not bound.exists()
    assert previews.live_count == 0
    assert orchestrator.state is UploadState.IDLE
    assert rec.previews[-1] is None


def test_player_is_let_go_before_the_preview_is_deleted(runner, tmp_path: Path):
    orchestrator, rec, engine, client, previews = _build(runner, tmp_path)
    orchestrator.select_file(_video("a.mp4", "video/mp4"))
    first = previews.current
    still_there = []
    orchestrator.preview_changed.connect(
        lambda path: still_there.append(first.exists()) if path is None else None
    )

    orchestrator.select_file(_video("b.mp4", "video/mp4"))

    assert still_there == [True]
    assert not first.exists()


def test_reselect_works_when_old_preview_cannot_be_deleted(runner, tmp_path: Path, monkeypatch):
    orchestrator, rec, engine, client, previews = _build(runner, tmp_path)
    orchestrator.select_file(_video("a.mp4", "video/mp4"))
    locked = previews.current
    original_unlink = Path.unlink

    def unlink(self, missing_ok=False):
        if self == locked:
            raise PermissionError(32, "The process cannot access the file", str(self))
        original_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", unlink)

    orchestrator.select_file(_video("b.mp4", "video/mp4"))

    assert orchestrator.state is UploadState.READY
    assert orchestrator.file.name == "b.mp4"
    assert previews.current != locked
    assert orchestrator.upload() is True
    assert client.predicted[-1].name == "b.mp4"
