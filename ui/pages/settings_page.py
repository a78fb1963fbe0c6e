from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QFormLayout, QLineEdit, QDoubleSpinBox
)
from PySide6.QtCore import Qt, Signal

from core.config import ServiceSettings, save_settings


class SettingsPage(QWidget):
    """Inference-service address and timeouts."""

    settings_saved = Signal(object)   # ServiceSettings

    def __init__(self, switch_callback, settings: ServiceSettings, parent=None):
        super().__init__(parent)
        self.switch_callback = switch_callback
        self._settings = settings

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        # ── Page header bar ───────────────────────────────────────────────────
        header_bar = QWidget()
        header_bar.setFixedHeight(56)
        header_bar.setStyleSheet("background-color: #1e1e1e; border-bottom: 1px solid #333;")
        header_layout = QHBoxLayout(header_bar)
        header_layout.setContentsMargins(16, 0, 16, 0)

        back_btn = QPushButton("← Back")
        back_btn.setFixedHeight(32)
        back_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        back_btn.setStyleSheet("""
            QPushButton {
                background-color: transparent;
                color: #aaaaaa;
                border: 1px solid #444;
                border-radius: 6px;
                padding: 0 12px;
                font-size: 10pt;
            }
            QPushButton:hover { color: #e0e0e0; border-color: #666; }
        """)
        back_btn.clicked.connect(lambda: switch_callback("home"))
        header_layout.addWidget(back_btn)

        page_title = QLabel("Settings")
        page_title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        page_title.setStyleSheet("color: #e0e0e0; font-size: 14pt; font-weight: 700;")
        header_layout.addWidget(page_title)
        header_layout.addStretch()

        root.addWidget(header_bar)

        # ── Form ──────────────────────────────────────────────────────────────
        content = QWidget()
        content.setStyleSheet("background-color: #121212; color: #e0e0e0;")
        content_layout = QVBoxLayout(content)
        content_layout.setContentsMargins(32, 24, 32, 24)
        content_layout.setAlignment(Qt.AlignmentFlag.AlignTop)

        form = QFormLayout()
        self.url_input = QLineEdit(settings.base_url)
        self.url_input.setPlaceholderText("http://localhost:5000")
        form.addRow("Service URL:", self.url_input)

        self.request_timeout = QDoubleSpinBox()
        self.request_timeout.setRange(5, 3600)
        self.request_timeout.setSuffix(" s")
        self.request_timeout.setValue(settings.request_timeout)
        form.addRow("Analysis timeout:", self.request_timeout)

        self.lookup_timeout = QDoubleSpinBox()
        self.lookup_timeout.setRange(1, 600)
        self.lookup_timeout.setSuffix(" s")
        self.lookup_timeout.setValue(settings.lookup_timeout)
        form.addRow("Lookup timeout:", self.lookup_timeout)
        content_layout.addLayout(form)

        save_btn = QPushButton("Save")
        save_btn.setFixedHeight(32)
        save_btn.clicked.connect(self._save)
        content_layout.addWidget(save_btn, 0, Qt.AlignmentFlag.AlignRight)

        self._saved_lbl = QLabel()
        self._saved_lbl.setStyleSheet("color: #558B6E; font-size: 9pt;")
        content_layout.addWidget(self._saved_lbl)

        root.addWidget(content, 1)

    def _save(self):
        self._settings.base_url = self.url_input.text()
        self._settings.base_url = self._settings.normalized_base_url()
        self._settings.request_timeout = self.request_timeout.value()
        self._settings.lookup_timeout = self.lookup_timeout.value()
        self.url_input.setText(self._settings.base_url)

        save_settings(self._settings)
        self._saved_lbl.setText(f"Saved. Using {self._settings.base_url}")
        self.settings_saved.emit(self._settings)
