from PySide6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout,
    QLabel, QStackedWidget, QPushButton
)
from PySide6.QtCore import Qt

from core import (
    FormatNormalizer, HistoryAggregator, InferenceClient, PlaybackSessionManager,
    PreviewResourceManager, TaskRunner, TranscodeEngine, UploadOrchestrator,
)
from core.config import ServiceSettings, load_settings
from ui.pages import HistoryPage, HomePage, SettingsPage

_NAV_STYLE = """
    QPushButton {
        background-color: rgba(0, 0, 0, 0.6);
        color: white;
        border: none;
        border-radius: 6px;
        padding: 0 16px;
        font-size: 10pt;
        font-weight: 500;
    }
    QPushButton:hover   { background-color: rgba(0, 0, 0, 0.8); }
    QPushButton:checked { background-color: #558B6E; }
"""


class MainWindow(QMainWindow):
    """Top-level application window."""

    def __init__(self, settings: ServiceSettings | None = None):
        super().__init__()

        # ── Services (one of each per application session) ────────────────────
        self.settings   = settings or load_settings()
        self.runner     = TaskRunner(self)
        self.engine     = TranscodeEngine()
        self.client     = InferenceClient(self.settings)
        self.previews   = PreviewResourceManager()
        self.normalizer = FormatNormalizer(self.engine)
        self.uploads    = UploadOrchestrator(
            self.normalizer, self.client, self.previews, self.runner, parent=self
        )
        self.history    = HistoryAggregator(self.client, self.runner, parent=self)
        self.playback   = PlaybackSessionManager(self.client.media_url, parent=self)
        print(f"[MAIN] Inference service: {self.client.base_url}")

        self.setWindowTitle("Fight Watch")
        self.resize(1100, 700)
        self.setMinimumSize(800, 500)
        self.setStyleSheet("background-color: #121212;")
        self.setContentsMargins(0, 0, 0, 0)

        central = QWidget()
        self.setCentralWidget(central)

        outer = QVBoxLayout(central)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        outer.addWidget(self._build_header())

        self._stack = QStackedWidget()
        self._home_page = HomePage(self.uploads, self.client, self.runner)
        self._history_page = HistoryPage(self.history, self.playback, self.client, self.runner)
        self._settings_page = SettingsPage(self._switch_page, self.settings)
        self._stack.addWidget(self._home_page)
        self._stack.addWidget(self._history_page)
        self._stack.addWidget(self._settings_page)
        outer.addWidget(self._stack, 1)

        self._settings_page.settings_saved.connect(
            lambda s: print(f"[MAIN] Settings saved — service now at {s.normalized_base_url()}")
        )

        self._switch_page("home")

    # ── Header ────────────────────────────────────────────────────────────────

    def _build_header(self) -> QWidget:
        header = QWidget()
        header.setFixedHeight(56)
        header.setStyleSheet("background-color: #1e1e1e; border-bottom: 1px solid #333;")
        layout = QHBoxLayout(header)
        layout.setContentsMargins(16, 0, 16, 0)
        layout.setSpacing(8)

        title = QLabel("FIGHT WATCH")
        title.setStyleSheet(
            "color: #e0e0e0; font-size: 12pt; font-weight: 700; letter-spacing: 2px;"
        )
        layout.addWidget(title)
        layout.addStretch()

        self._nav_buttons: dict[str, QPushButton] = {}
        for name, label in (("home", "Home"), ("history", "History"), ("settings", "Settings")):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.setFixedHeight(32)
            btn.setCursor(Qt.CursorShape.PointingHandCursor)
            btn.setStyleSheet(_NAV_STYLE)
            btn.clicked.connect(lambda _checked=False, n=name: self._switch_page(n))
            layout.addWidget(btn)
            self._nav_buttons[name] = btn

        return header

    # ── Navigation ────────────────────────────────────────────────────────────

    def _switch_page(self, page_name: str):
        pages = {
            "home":     self._home_page,
            "history":  self._history_page,
            "settings": self._settings_page,
        }
        widget = pages.get(page_name)
        if widget is None:
            return

        previous = self._stack.currentWidget()
        if previous is self._history_page and widget is not self._history_page:
            self._history_page.deactivate()

        self._stack.setCurrentWidget(widget)
        for name, btn in self._nav_buttons.items():
            btn.setChecked(name == page_name)

        # Opening the history view is the one and only trigger for a fetch
        if widget is self._history_page:
            self._history_page.activate()

    # ── Shutdown ──────────────────────────────────────────────────────────────

    def closeEvent(self, event):
        print("[MAIN] Closing — releasing previews, players and the engine")
        self._history_page.deactivate()
        self._home_page.teardown()
        self.runner.wait_all()
        self.engine.close()
        super().closeEvent(event)
