from .home_page import HomePage
from .history_page import HistoryPage
from .settings_page import SettingsPage

__all__ = ["HomePage", "HistoryPage", "SettingsPage"]
