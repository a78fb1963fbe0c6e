"""
core.config
~~~~~~~~~~~
Persists the inference-service settings to a JSON file in the
platform's standard config directory.

Config location
---------------
  Windows  : %APPDATA%\\FightWatch\\settings.json
  macOS    : ~/Library/Application Support/FightWatch/settings.json
  Linux    : ~/.config/FightWatch/settings.json

The FIGHTWATCH_API_URL environment variable overrides the stored
base URL without touching the file.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BASE_URL = "http://localhost:5000"
BASE_URL_ENV     = "FIGHTWATCH_API_URL"


# ── Config directory ──────────────────────────────────────────────────────────

def _config_dir() -> Path:
    if sys.platform == "win32":
        base = Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"

    return base / "FightWatch"


CONFIG_DIR    = _config_dir()
SETTINGS_FILE = CONFIG_DIR / "settings.json"


# ── Settings ──────────────────────────────────────────────────────────────────

@dataclass
class ServiceSettings:
    """Where the inference service lives and how long to wait for it."""
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 300.0   # submit: the server runs the model inline
    lookup_timeout: float = 30.0     # listing, lookups, byte fetches

    def normalized_base_url(self) -> str:
        return self.base_url.strip().rstrip("/") or DEFAULT_BASE_URL


# ── Public API ────────────────────────────────────────────────────────────────

def load_settings(path: Path | None = None) -> ServiceSettings:
    """
    Read the settings file and apply the environment override.
    Returns defaults if the file is missing, empty, or malformed.
    """
    target = path or SETTINGS_FILE
    settings = ServiceSettings()

    if target.exists():
        try:
            payload = json.loads(target.read_text(encoding="utf-8"))
            if isinstance(payload, dict):
                settings = _dict_to_settings(payload)
        except (OSError, ValueError, TypeError) as exc:
            print(f"[CONFIG] Ignoring unreadable settings '{target}': {exc}")

    override = os.environ.get(BASE_URL_ENV, "").strip()
    if override:
        settings.base_url = override

    settings.base_url = settings.normalized_base_url()
    return settings


def save_settings(settings: ServiceSettings, path: Path | None = None) -> None:
    """
    Serialise *settings*, overwriting any previous data.
    I/O errors are reported and swallowed so a config issue never crashes the app.
    """
    target = path or SETTINGS_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(_settings_to_dict(settings), indent=2), encoding="utf-8")
    except OSError as exc:
        print(f"[CONFIG] Could not save settings to '{target}': {exc}")


# ── Serialisation helpers ─────────────────────────────────────────────────────

def _settings_to_dict(settings: ServiceSettings) -> dict:
    return {
        "base_url":        settings.normalized_base_url(),
        "request_timeout": settings.request_timeout,
        "lookup_timeout":  settings.lookup_timeout,
    }


def _dict_to_settings(d: dict) -> ServiceSettings:
    defaults = ServiceSettings()
    return ServiceSettings(
        base_url        = str(d.get("base_url") or defaults.base_url),
        request_timeout = float(d.get("request_timeout", defaults.request_timeout)),
        lookup_timeout  = float(d.get("lookup_timeout", defaults.lookup_timeout)),
    )
