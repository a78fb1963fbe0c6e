from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel,
    QScrollArea, QFrame, QGridLayout
)
from PySide6.QtCore import Qt

from core.client import InferenceClient
from core.history import HistoryAggregator
from core.models import HistoryRecord
from core.playback import PlaybackSessionManager
from ui.dialogs.playback_dialog import PlaybackDialog
from ui.pages._record_card import RecordCard

GRID_COLUMNS = 3


class HistoryPage(QWidget):
    """Grid of previously processed videos with their predictions."""

    def __init__(
        self,
        aggregator: HistoryAggregator,
        playback: PlaybackSessionManager,
        client: InferenceClient,
        runner,
        parent=None,
    ):
        super().__init__(parent)
        self.aggregator = aggregator
        self.playback = playback
        self._client = client
        self._runner = runner
        self._cards: list[RecordCard] = []

        self.aggregator.loading_changed.connect(self._on_loading_changed)
        self.aggregator.records_ready.connect(self._on_records_ready)
        self.aggregator.error_occurred.connect(self._on_error)

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        # ── Header bar ────────────────────────────────────────────────────────
        header_bar = QWidget()
        header_bar.setFixedHeight(56)
        header_bar.setStyleSheet("background-color: #1e1e1e; border-bottom: 1px solid #333;")
        header_layout = QHBoxLayout(header_bar)
        header_layout.setContentsMargins(16, 0, 16, 0)

        page_title = QLabel("Video History")
        page_title.setStyleSheet("color: #e0e0e0; font-size: 14pt; font-weight: 700;")
        header_layout.addWidget(page_title)
        header_layout.addStretch()

        root.addWidget(header_bar)

        # ── Error / status labels ─────────────────────────────────────────────
        self._error_label = QLabel()
        self._error_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._error_label.setWordWrap(True)
        self._error_label.setStyleSheet(
            "color: #e74c3c; background-color: #3a1f1f; border-radius: 4px;"
            "padding: 8px; margin: 12px 16px 0 16px;"
        )
        self._error_label.setVisible(False)
        root.addWidget(self._error_label)

        self._status_label = QLabel()
        self._status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._status_label.setStyleSheet("color: #555; font-size: 11pt; margin-top: 24px;")
        self._status_label.setVisible(False)
        root.addWidget(self._status_label)

        # ── Scroll area ───────────────────────────────────────────────────────
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        scroll.setStyleSheet("background-color: #121212;")
        root.addWidget(scroll, 1)

        canvas = QWidget()
        canvas.setStyleSheet("background-color: #121212;")
        self._grid = QGridLayout(canvas)
        self._grid.setContentsMargins(16, 16, 16, 16)
        self._grid.setSpacing(12)
        self._grid.setAlignment(Qt.AlignmentFlag.AlignTop)
        scroll.setWidget(canvas)

    # ── View lifecycle (called by MainWindow) ─────────────────────────────────

    def activate(self) -> None:
        """The page became visible — fetch the history once."""
        self._error_label.setVisible(False)
        self.aggregator.refresh()

    def deactivate(self) -> None:
        """The page was left — drop the run and any player."""
        self.playback.close()
        self.aggregator.dispose()

    # ── Aggregator signal handlers ────────────────────────────────────────────

    def _on_loading_changed(self, loading: bool):
        if loading:
            self._clear_cards()
            self._status_label.setText("Loading videos...")
            self._status_label.setVisible(True)
        else:
            self._status_label.setVisible(False)

    def _on_records_ready(self, records: list[HistoryRecord]):
        self._clear_cards()
        if not records:
            self._status_label.setText("No videos found in the uploads directory.")
            self._status_label.setVisible(True)
            return

        self._status_label.setVisible(False)
        for index, record in enumerate(records):
            card = RecordCard(record)
            card.card_selected.connect(self._open_record)
            self._cards.append(card)
            self._grid.addWidget(card, index // GRID_COLUMNS, index % GRID_COLUMNS)
            if card.wants_frame:
                self._load_card_frame(card)

    def _on_error(self, message: str):
        self._error_label.setText(message)
        self._error_label.setVisible(True)

    # ── Card handlers ─────────────────────────────────────────────────────────

    def _load_card_frame(self, card: RecordCard):
        url = self._client.frame_url(card.record.result)
        name = card.record.filename
        self._runner.submit(
            lambda: self._client.fetch_bytes(url),
            lambda data, c=card: self._on_card_frame(c, data),
            lambda exc: print(f"[HISTORY] Frame unavailable for '{name}': {exc}"),
        )

    def _on_card_frame(self, card: RecordCard, data: bytes):
        # Cards from an earlier listing are gone
        if not any(c is card for c in self._cards):
            return
        if not card.set_frame(data):
            print(f"[HISTORY] '{card.record.filename}': frame is not an image")

    def _open_record(self, record: HistoryRecord):
        dialog = PlaybackDialog(record, self.playback, self._client, self._runner, self)
        dialog.exec()
        dialog.deleteLater()

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _clear_cards(self):
        for card in self._cards:
            self._grid.removeWidget(card)
            card.deleteLater()
        self._cards.clear()
