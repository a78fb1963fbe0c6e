"""
core.upload
~~~~~~~~~~~
UploadOrchestrator drives one selected video from file chooser to
prediction:

    IDLE → VALIDATING ─┬─ rejected ──────────────→ IDLE
                       ├─ needs conversion → NORMALIZING ─┬→ FAILED (retry())
                       │                                  └→ READY
                       └─ playable ──────────────────────→ READY
    READY → UPLOADING ─┬→ COMPLETE
                       └→ READY (error shown, retry allowed)

Stages are strictly sequential. Blocking stages go through the runner;
their callbacks compare the selection id they were started with
against the current one and drop the result if the user moved on.

Signals
-------
state_changed(UploadState)
converting_changed(bool)   ffmpeg is working on the current selection
busy_changed(bool)         an upload is in flight
preview_changed(object)    Path of the bound preview file, or None
result_ready(InferenceResult)
error_occurred(str)        inline message for the upload panel
"""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QObject, Signal

from core.client import InferenceClient
from core.errors import ConversionError, NetworkError, PipelineError, ValidationError
from core.models import InferenceResult, MediaFile, UploadState
from core.normalizer import FormatNormalizer
from core.preview import PreviewResourceManager


class UploadOrchestrator(QObject):

    state_changed      = Signal(object)
    converting_changed = Signal(bool)
    busy_changed       = Signal(bool)
    preview_changed    = Signal(object)
    result_ready       = Signal(object)
    error_occurred     = Signal(str)

    def __init__(
        self,
        normalizer: FormatNormalizer,
        client: InferenceClient,
        previews: PreviewResourceManager,
        runner,
        parent=None,
    ):
        super().__init__(parent)
        self._normalizer = normalizer
        self._client     = client
        self._previews   = previews
        self._runner     = runner

        self._state = UploadState.IDLE
        self._selection_id = 0
        self._source: MediaFile | None = None     # what the user picked
        self._file: MediaFile | None = None       # what will be uploaded
        self._result: InferenceResult | None = None
        self._converting = False
        self._upload_in_flight = False
        self.last_error: PipelineError | None = None

    # ── Read-only state ───────────────────────────────────────────────────────

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def source(self) -> MediaFile | None:
        return self._source

    @property
    def file(self) -> MediaFile | None:
        return self._file

    @property
    def result(self) -> InferenceResult | None:
        return self._result

    @property
    def converting(self) -> bool:
        return self._converting

    @property
    def busy(self) -> bool:
        return self._upload_in_flight

    @property
    def selection_id(self) -> int:
        return self._selection_id

    # ── Selection ─────────────────────────────────────────────────────────────

    def select_file(self, source: Path | MediaFile | None) -> None:
        """Start over with a newly chosen file."""
        self._selection_id += 1
        self._result = None
        self._file = None
        self._source = None
        self.last_error = None
        self._set_converting(False)
        self.preview_changed.emit(None)
        self._previews.release()
        self._set_state(UploadState.VALIDATING)

        try:
            media = self._load(source)
            self._validate(media)
            needs_conversion = self._normalizer.needs_conversion(media)
        except ValidationError as exc:
            self._reject(exc)
            return

        self._source = media
        print(f"[UPLOAD] Selection #{self._selection_id}: '{media.name}' "
              f"({media.mime_type}, {media.size} bytes)")

        if needs_conversion:
            self._start_normalize()
        else:
            self._make_ready(media)

    def retry(self) -> bool:
        """Run normalization again on the retained file after a failure."""
        if self._state != UploadState.FAILED or self._source is None:
            print(f"[UPLOAD] retry() ignored in state {self._state.name}")
            return False
        self._selection_id += 1
        self.last_error = None
        self._start_normalize()
        return True

    # ── Upload ────────────────────────────────────────────────────────────────

    def upload(self) -> bool:
        """Send the current file for prediction. Returns False if refused."""
        if self._upload_in_flight:
            print("[UPLOAD] upload() rejected — a request is already in flight")
            return False
        if self._state == UploadState.IDLE:
            self._fail_inline(ValidationError("Please upload a video"))
            return False
        if self._state != UploadState.READY or self._file is None:
            print(f"[UPLOAD] upload() ignored in state {self._state.name}")
            return False

        token = self._selection_id
        media = self._file
        self.last_error = None
        self._upload_in_flight = True
        self.busy_changed.emit(True)
        self._set_state(UploadState.UPLOADING)
        print(f"[UPLOAD] Uploading '{media.name}' (selection #{token})")

        self._runner.submit(
            lambda: self._client.predict(media),
            lambda result: self._on_uploaded(token, result),
            lambda exc: self._on_upload_failed(token, exc),
        )
        return True

    # ── Teardown ──────────────────────────────────────────────────────────────

    def dispose(self) -> None:
        """Release the preview and ignore anything still running."""
        print("[UPLOAD] dispose()")
        self._selection_id += 1
        self.preview_changed.emit(None)
        self._previews.release()
        self._source = None
        self._file = None
        self._result = None
        self._set_converting(False)
        self._set_state(UploadState.IDLE)

    # ── Normalizing ───────────────────────────────────────────────────────────

    def _start_normalize(self) -> None:
        token = self._selection_id
        media = self._source
        self._set_state(UploadState.NORMALIZING)
        self._set_converting(True)

        self._runner.submit(
            lambda: self._normalizer.normalize(media),
            lambda output: self._on_normalized(token, output),
            lambda exc: self._on_normalize_failed(token, exc),
        )

    def _on_normalized(self, token: int, output: MediaFile) -> None:
        if token != self._selection_id:
            print(f"[UPLOAD] Dropping stale conversion result (selection #{token})")
            return
        self._set_converting(False)
        self._make_ready(output)

    def _on_normalize_failed(self, token: int, exc: BaseException) -> None:
        if token != self._selection_id:
            print(f"[UPLOAD] Dropping stale conversion failure (selection #{token})")
            return
        self._set_converting(False)
        error = exc if isinstance(exc, ConversionError) else ConversionError(str(exc))
        self.last_error = error
        self._set_state(UploadState.FAILED)
        self.error_occurred.emit(f"Error converting video: {error}")

    def _make_ready(self, media: MediaFile) -> None:
        self._file = media
        try:
            preview = self._previews.bind(media)
        except OSError as exc:
            print(f"[UPLOAD] Preview unavailable: {exc}")
            preview = None
        self.preview_changed.emit(preview)
        self._set_state(UploadState.READY)

    # ── Uploading callbacks ───────────────────────────────────────────────────

    def _on_uploaded(self, token: int, result: InferenceResult) -> None:
        self._finish_upload()
        if token != self._selection_id:
            print(f"[UPLOAD] Dropping stale prediction (selection #{token})")
            return
        self._result = result
        print(f"[UPLOAD] ✅ Prediction: {result.label} ({result.confidence_percent}%)")
        self._set_state(UploadState.COMPLETE)
        self.result_ready.emit(result)

    def _on_upload_failed(self, token: int, exc: BaseException) -> None:
        self._finish_upload()
        if token != self._selection_id:
            print(f"[UPLOAD] Dropping stale upload failure (selection #{token})")
            return
        error = exc if isinstance(exc, NetworkError) else NetworkError(str(exc))
        self.last_error = error
        self._set_state(UploadState.READY)
        self.error_occurred.emit(f"Error while predicting: {error}")

    def _finish_upload(self) -> None:
        self._upload_in_flight = False
        self.busy_changed.emit(False)

    # ── Helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    def _load(source: Path | MediaFile | None) -> MediaFile:
        if source is None:
            raise ValidationError("Please select a valid video file")
        if isinstance(source, MediaFile):
            return source
        try:
            return MediaFile.from_path(Path(source))
        except OSError as exc:
            raise ValidationError(f"Could not read '{source}': {exc}") from exc

    @staticmethod
    def _validate(media: MediaFile) -> None:
        if media.category != "video":
            raise ValidationError("Please select a valid video file")

    def _reject(self, exc: ValidationError) -> None:
        print(f"[UPLOAD] Rejected: {exc}")
        self.last_error = exc
        self._set_state(UploadState.IDLE)
        self.error_occurred.emit(str(exc))

    def _fail_inline(self, exc: PipelineError) -> None:
        self.last_error = exc
        self.error_occurred.emit(str(exc))

    def _set_state(self, state: UploadState) -> None:
        if state is self._state:
            return
        print(f"[UPLOAD] State: {self._state.name} → {state.name}")
        self._state = state
        self.state_changed.emit(state)

    def _set_converting(self, value: bool) -> None:
        if value == self._converting:
            return
        self._converting = value
        self.converting_changed.emit(value)
