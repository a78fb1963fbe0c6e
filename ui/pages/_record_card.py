from PySide6.QtWidgets import QFrame, QVBoxLayout, QSizePolicy, QLabel, QHBoxLayout
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QPixmap

from core.models import HistoryRecord
from ui.badges import PredictionBadge

FRAME_WIDTH = 220


class RecordCard(QFrame):
    """
    Clickable history card.

    Fights with an anomalous frame show it under the badge once the page
    has fetched it (see ``set_frame``).

    Signals
    -------
    card_selected(HistoryRecord)   – emitted when the card is clicked so the
                                     history page can open the player
    """

    card_selected = Signal(object)

    _STYLE_BASE = """
        QFrame#RecordCard {{
            background-color: #2a2a2a;
            border: 1px solid {border};
            border-radius: 8px;
        }}
    """

    def __init__(self, record: HistoryRecord, parent=None):
        super().__init__(parent)
        self.record = record
        self.frame_shown = False

        self.setObjectName("RecordCard")
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self._apply_style(hovered=False)
        self._setup_ui()

    @property
    def wants_frame(self) -> bool:
        result = self.record.result
        return result.is_fight and result.has_frame

    def _apply_style(self, hovered: bool):
        border = "#558B6E" if hovered else "#3a3a3a"
        self.setStyleSheet(self._STYLE_BASE.format(border=border))

    def _setup_ui(self):
        root = QVBoxLayout(self)
        root.setContentsMargins(14, 12, 14, 12)
        root.setSpacing(6)

        title = QLabel(self.record.filename)
        title.setWordWrap(True)
        title.setStyleSheet(
            "color: #e0e0e0; font-size: 11pt; font-weight: 600; background: transparent;"
        )
        root.addWidget(title)

        details = QLabel(f"Uploaded: {self.record.fetched_at:%Y-%m-%d}")
        details.setStyleSheet("color: #888; font-size: 8pt; background: transparent;")
        root.addWidget(details)

        badge_row = QHBoxLayout()
        badge_row.addWidget(PredictionBadge(self.record.result))
        badge_row.addStretch()
        root.addLayout(badge_row)

        self._frame_lbl = QLabel()
        self._frame_lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._frame_lbl.setStyleSheet("border: 2px solid #ff0000; border-radius: 6px;")
        self._frame_lbl.setVisible(False)
        root.addWidget(self._frame_lbl)

        self.setMinimumHeight(90)

    # ── Anomalous frame ───────────────────────────────────────────────────────

    def set_frame(self, data: bytes) -> bool:
        """Show the fetched frame image. Returns False if *data* is not an image."""
        pixmap = QPixmap()
        if not pixmap.loadFromData(data):
            return False
        self._frame_lbl.setPixmap(
            pixmap.scaledToWidth(FRAME_WIDTH, Qt.TransformationMode.SmoothTransformation)
        )
        self._frame_lbl.setVisible(True)
        self.frame_shown = True
        return True

    # ── Mouse handling ────────────────────────────────────────────────────────

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.card_selected.emit(self.record)
        super().mousePressEvent(event)

    def enterEvent(self, event):
        self._apply_style(hovered=True)
        super().enterEvent(event)

    def leaveEvent(self, event):
        self._apply_style(hovered=False)
        super().leaveEvent(event)
