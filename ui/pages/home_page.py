from pathlib import Path

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QFileDialog, QFrame
)
from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QPixmap
from PySide6.QtMultimediaWidgets import QVideoWidget

from core.client import InferenceClient
from core.models import InferenceResult, UploadState
from core.upload import UploadOrchestrator
from ui.player import VideoPlayer

VIDEO_FILTER = "Videos (*.mp4 *.webm *.ogg *.avi);;All files (*)"

FEATURES = [
    "Real-time video analysis",
    "Advanced AI detection algorithms",
    "Instant anomaly identification",
    "Detailed prediction results",
]

_PANEL_STYLE = """
    QFrame#Panel {
        background-color: #2a2a2a;
        border: 1px solid #3a3a3a;
        border-radius: 8px;
    }
"""


def _panel() -> QFrame:
    frame = QFrame()
    frame.setObjectName("Panel")
    frame.setStyleSheet(_PANEL_STYLE)
    return frame


def _section_title(text: str) -> QLabel:
    lbl = QLabel(text)
    lbl.setStyleSheet("color: #e0e0e0; font-size: 12pt; font-weight: 700; background: transparent;")
    return lbl


class HomePage(QWidget):
    """Upload panel: choose a video, preview it, send it for analysis."""

    def __init__(self, orchestrator: UploadOrchestrator, client: InferenceClient, runner, parent=None):
        super().__init__(parent)
        self.orchestrator = orchestrator
        self._client = client
        self._runner = runner
        self._preview_player: VideoPlayer | None = None
        self._shown_result: InferenceResult | None = None

        self.orchestrator.state_changed.connect(self._on_state_changed)
        self.orchestrator.converting_changed.connect(self._on_converting_changed)
        self.orchestrator.busy_changed.connect(self._on_busy_changed)
        self.orchestrator.preview_changed.connect(self._on_preview_changed)
        self.orchestrator.result_ready.connect(self._on_result_ready)
        self.orchestrator.error_occurred.connect(self._show_error)

        root = QVBoxLayout(self)
        root.setContentsMargins(24, 16, 24, 16)
        root.setSpacing(16)

        # ── Hero ──────────────────────────────────────────────────────────────
        title = QLabel("Anomaly Detection System")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("color: #e0e0e0; font-size: 18pt; font-weight: 700;")
        root.addWidget(title)

        blurb = QLabel(
            "Detect and analyse anomalous activity in video footage, with a focus on "
            "identifying potential fight scenarios. Upload a video to get started."
        )
        blurb.setAlignment(Qt.AlignmentFlag.AlignCenter)
        blurb.setWordWrap(True)
        blurb.setStyleSheet("color: #888; font-size: 10pt;")
        root.addWidget(blurb)

        # ── Two columns ───────────────────────────────────────────────────────
        columns = QHBoxLayout()
        columns.setSpacing(16)
        columns.addWidget(self._build_features(), 1)
        columns.addWidget(self._build_upload_panel(), 2)
        root.addLayout(columns, 1)

        self._on_state_changed(self.orchestrator.state)

    # ── UI construction ───────────────────────────────────────────────────────

    def _build_features(self) -> QFrame:
        panel = _panel()
        col = QVBoxLayout(panel)
        col.setContentsMargins(16, 16, 16, 16)
        col.setSpacing(10)
        col.addWidget(_section_title("Key Features"))
        for text in FEATURES:
            item = QLabel(f"✓  {text}")
            item.setStyleSheet(
                "color: #cccccc; background-color: #1e1e1e; border-radius: 6px;"
                "padding: 6px; font-size: 10pt;"
            )
            col.addWidget(item)
        col.addStretch()
        return panel

    def _build_upload_panel(self) -> QFrame:
        panel = _panel()
        col = QVBoxLayout(panel)
        col.setContentsMargins(16, 16, 16, 16)
        col.setSpacing(10)
        col.addWidget(_section_title("Upload Video"))

        # ── File chooser row ──────────────────────────────────────────────────
        chooser = QHBoxLayout()
        self._file_lbl = QLabel("No file selected")
        self._file_lbl.setStyleSheet("color: #aaaaaa; font-size: 10pt; background: transparent;")
        browse_btn = QPushButton("Browse...")
        browse_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        browse_btn.clicked.connect(self._browse)
        chooser.addWidget(self._file_lbl, 1)
        chooser.addWidget(browse_btn)
        col.addLayout(chooser)

        self._converting_lbl = QLabel("Converting video format...")
        self._converting_lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._converting_lbl.setStyleSheet(
            "background-color: #fff3cd; color: #856404; border-radius: 4px; padding: 8px;"
        )
        self._converting_lbl.setVisible(False)
        col.addWidget(self._converting_lbl)

        # ── Error row ─────────────────────────────────────────────────────────
        error_row = QHBoxLayout()
        self._error_lbl = QLabel()
        self._error_lbl.setWordWrap(True)
        self._error_lbl.setStyleSheet("color: #e74c3c; font-size: 9pt; background: transparent;")
        self._error_lbl.setVisible(False)
        self._retry_btn = QPushButton("Retry conversion")
        self._retry_btn.setVisible(False)
        self._retry_btn.clicked.connect(lambda: self.orchestrator.retry())
        error_row.addWidget(self._error_lbl, 1)
        error_row.addWidget(self._retry_btn)
        col.addLayout(error_row)

        # ── Preview ───────────────────────────────────────────────────────────
        self._video = QVideoWidget()
        self._video.setMinimumHeight(240)
        self._video.setStyleSheet("background-color: #000;")
        self._video.setVisible(False)
        col.addWidget(self._video, 1)

        self._play_btn = QPushButton("▶ / ❚❚")
        self._play_btn.setVisible(False)
        self._play_btn.clicked.connect(self._toggle_preview)
        col.addWidget(self._play_btn)

        # ── Upload button ─────────────────────────────────────────────────────
        self._upload_btn = QPushButton("Upload and Analyze")
        self._upload_btn.setFixedHeight(36)
        self._upload_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self._upload_btn.setStyleSheet("""
            QPushButton {
                background-color: #558B6E;
                color: white;
                border: none;
                border-radius: 6px;
                font-size: 10pt;
                font-weight: 600;
            }
            QPushButton:hover    { background-color: #67a382; }
            QPushButton:disabled { background-color: #3a3a3a; color: #777; }
        """)
        self._upload_btn.clicked.connect(lambda: self.orchestrator.upload())
        col.addWidget(self._upload_btn)

        # ── Result ────────────────────────────────────────────────────────────
        self._result_box = QFrame()
        self._result_box.setStyleSheet(
            "background-color: #1e2a33; border: 1px solid #3d7ec9; border-radius: 6px;"
        )
        result_col = QVBoxLayout(self._result_box)
        self._prediction_lbl = QLabel()
        self._prediction_lbl.setStyleSheet("color: #e0e0e0; font-size: 11pt; border: none;")
        result_col.addWidget(self._prediction_lbl)
        self._frame_lbl = QLabel()
        self._frame_lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._frame_lbl.setStyleSheet("border: 2px solid #3d7ec9; border-radius: 6px;")
        self._frame_lbl.setVisible(False)
        result_col.addWidget(self._frame_lbl)
        self._result_box.setVisible(False)
        col.addWidget(self._result_box)

        return panel

    # ── User actions ──────────────────────────────────────────────────────────

    def _browse(self):
        path, _ = QFileDialog.getOpenFileName(self, "Select Video", "", VIDEO_FILTER)
        if path:
            self._file_lbl.setText(Path(path).name)
            self._clear_error()
            self.orchestrator.select_file(Path(path))

    def _toggle_preview(self):
        if self._preview_player:
            self._preview_player.toggle()

    # ── Orchestrator signal handlers ──────────────────────────────────────────

    def _on_state_changed(self, state: UploadState):
        self._upload_btn.setEnabled(state == UploadState.READY and not self.orchestrator.busy)
        self._upload_btn.setText(
            "Processing..." if state == UploadState.UPLOADING else "Upload and Analyze"
        )
        self._retry_btn.setVisible(state == UploadState.FAILED)
        if state in (UploadState.VALIDATING, UploadState.NORMALIZING):
            self._clear_error()
            self._clear_result()
        if state == UploadState.IDLE and self.orchestrator.source is None:
            self._file_lbl.setText("No file selected")

    def _on_converting_changed(self, converting: bool):
        self._converting_lbl.setVisible(converting)

    def _on_busy_changed(self, busy: bool):
        self._upload_btn.setEnabled(not busy and self.orchestrator.state == UploadState.READY)

    def _on_preview_changed(self, path):
        if self._preview_player:
            self._preview_player.dispose()
            self._preview_player = None

        has_preview = path is not None
        self._video.setVisible(has_preview)
        self._play_btn.setVisible(has_preview)
        if has_preview:
            self._preview_player = VideoPlayer(
                QUrl.fromLocalFile(str(path)),
                self._video,
                on_error=lambda msg: self._show_error(
                    f"Error playing video. Please try another file. ({msg})"
                ),
                parent=self,
            )

    def _on_result_ready(self, result: InferenceResult):
        self._shown_result = result
        self._prediction_lbl.setText(
            f"<b>Prediction:</b> {result.label} ({result.confidence_percent}%)"
        )
        self._frame_lbl.clear()
        self._frame_lbl.setVisible(False)
        self._result_box.setVisible(True)

        url = self._client.frame_url(result)
        if url:
            self._runner.submit(
                lambda: self._client.fetch_bytes(url),
                lambda data, r=result: self._on_frame_loaded(r, data),
                lambda exc: print(f"[HOME] Could not load anomalous frame: {exc}"),
            )

    def _on_frame_loaded(self, result: InferenceResult, data: bytes):
        if result is not self._shown_result:
            return
        pixmap = QPixmap()
        if pixmap.loadFromData(data):
            self._frame_lbl.setPixmap(pixmap.scaledToWidth(360, Qt.TransformationMode.SmoothTransformation))
            self._frame_lbl.setVisible(True)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _show_error(self, message: str):
        self._error_lbl.setText(message)
        self._error_lbl.setVisible(True)

    def _clear_error(self):
        self._error_lbl.clear()
        self._error_lbl.setVisible(False)

    def _clear_result(self):
        self._shown_result = None
        self._result_box.setVisible(False)

    def teardown(self):
        """Called when the window closes."""
        if self._preview_player:
            self._preview_player.dispose()
            self._preview_player = None
        self.orchestrator.dispose()
