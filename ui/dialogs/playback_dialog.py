# ui/dialogs/playback_dialog.py

from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QFrame
)
from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QPixmap
from PySide6.QtMultimediaWidgets import QVideoWidget

from core.client import InferenceClient
from core.models import HistoryRecord
from core.playback import PlaybackSessionManager
from ui.badges import PredictionBadge
from ui.player import VideoPlayer


class PlaybackDialog(QDialog):
    """
    Detail view for one history record: the video, its prediction and,
    for fights, the anomalous frame.
    The playback session is opened on construction and closed with the dialog.
    """

    def __init__(
        self,
        record: HistoryRecord,
        playback: PlaybackSessionManager,
        client: InferenceClient,
        runner,
        parent=None,
    ):
        super().__init__(parent)
        self._record = record
        self._playback = playback
        self._client = client
        self._runner = runner
        self._open = True

        self.setWindowTitle(record.filename)
        self.setMinimumSize(900, 520)
        self.setStyleSheet("background-color: #1a1a1a; color: #e0e0e0;")

        self._build_ui()

        self._playback.playback_error.connect(self._show_error)
        self.finished.connect(self._on_finished)

        self._playback.set_player_factory(self._make_player)
        session = self._playback.open(record)
        if session is not None:
            session.player.play()

        self._load_frame()

    # ── UI construction ───────────────────────────────────────────────────────

    def _build_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(20)

        video_col = QVBoxLayout()
        self._video = QVideoWidget()
        self._video.setMinimumSize(480, 300)
        self._video.setStyleSheet("background-color: #000;")
        video_col.addWidget(self._video, 1)

        controls = QHBoxLayout()
        self._play_btn = QPushButton("▶ / ❚❚")
        self._play_btn.clicked.connect(self._toggle)
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.accept)
        controls.addWidget(self._play_btn)
        controls.addStretch()
        controls.addWidget(close_btn)
        video_col.addLayout(controls)

        title = QLabel(self._record.filename)
        title.setStyleSheet("font-size: 12pt; font-weight: 700;")
        video_col.addWidget(title)

        uploaded = QLabel(f"Uploaded: {self._record.fetched_at:%Y-%m-%d}")
        uploaded.setStyleSheet("color: #888;")
        video_col.addWidget(uploaded)

        badge_row = QHBoxLayout()
        badge_row.addWidget(PredictionBadge(self._record.result))
        badge_row.addStretch()
        video_col.addLayout(badge_row)

        self._error_lbl = QLabel()
        self._error_lbl.setWordWrap(True)
        self._error_lbl.setStyleSheet(
            "color: #e74c3c; background-color: #3a1f1f; border-radius: 4px; padding: 8px;"
        )
        self._error_lbl.setVisible(False)
        video_col.addWidget(self._error_lbl)

        layout.addLayout(video_col, 3)

        # ── Anomalous frame ───────────────────────────────────────────────────
        self._frame_section = QFrame()
        self._frame_section.setStyleSheet(
            "background-color: #222; border: 1px solid #333; border-radius: 8px;"
        )
        frame_col = QVBoxLayout(self._frame_section)
        frame_title = QLabel("Anomalous Frame")
        frame_title.setStyleSheet("font-size: 11pt; font-weight: 700; border: none;")
        frame_col.addWidget(frame_title)
        self._frame_lbl = QLabel("Loading…")
        self._frame_lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._frame_lbl.setStyleSheet("border: 3px solid #ff0000; border-radius: 8px;")
        frame_col.addWidget(self._frame_lbl, 1)
        note = QLabel("This frame was detected as containing anomalous activity.")
        note.setWordWrap(True)
        note.setStyleSheet("color: #888; font-size: 9pt; border: none;")
        frame_col.addWidget(note)
        self._frame_section.setVisible(False)
        layout.addWidget(self._frame_section, 2)

    # ── Player ────────────────────────────────────────────────────────────────

    def _make_player(self, url: str, mime_type: str, on_error) -> VideoPlayer:
        print(f"[PLAYBACK] Building player for {mime_type}")
        return VideoPlayer(QUrl(url), self._video, on_error=on_error, parent=self)

    def _toggle(self):
        session = self._playback.session
        if session is not None:
            session.player.toggle()

    def _show_error(self, message: str):
        self._error_lbl.setText(message)
        self._error_lbl.setVisible(True)

    def _on_finished(self, _result: int):
        self._open = False
        self._playback.playback_error.disconnect(self._show_error)
        self._playback.close()

    # ── Frame ─────────────────────────────────────────────────────────────────

    def _load_frame(self):
        result = self._record.result
        if not (result.is_fight and result.has_frame):
            return
        self._frame_section.setVisible(True)
        url = self._client.frame_url(result)
        self._runner.submit(
            lambda: self._client.fetch_bytes(url),
            self._on_frame_loaded,
            self._on_frame_failed,
        )

    def _on_frame_failed(self, exc: BaseException):
        if self._open:
            self._frame_lbl.setText(f"Frame unavailable: {exc}")

    def _on_frame_loaded(self, data: bytes):
        if not self._open:
            return
        pixmap = QPixmap()
        if pixmap.loadFromData(data):
            self._frame_lbl.setPixmap(pixmap.scaledToWidth(340, Qt.TransformationMode.SmoothTransformation))
        else:
            self._frame_lbl.setText("Frame unavailable")
