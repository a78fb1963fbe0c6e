"""
core.playback
~~~~~~~~~~~~~
PlaybackSessionManager owns the single player instance of the history
view. Opening a record always disposes the previous player first, so
two decoders are never alive together.

The manager is Qt-Multimedia agnostic: the UI injects a player factory

    factory(url: str, mime_type: str, on_error: Callable[[str], None]) -> handle

where ``handle`` has a ``dispose()`` method and calls ``on_error`` with
a message when decoding fails.

Signals
-------
session_opened(PlaybackSession)
session_closed()
playback_error(str)    scoped to the session that raised it
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Callable

from PySide6.QtCore import QObject, Signal

from core.errors import PlaybackError
from core.models import HistoryRecord, PlaybackSession

PlayerFactory = Callable[[str, str, Callable[[str], None]], Any]

_MIME_BY_SUFFIX: dict[str, str] = {
    ".webm": "video/webm",
    ".ogg":  "video/ogg",
}
DEFAULT_MIME = "video/mp4"


def infer_mime(filename: str) -> str:
    """MIME type the player should expect for *filename*."""
    return _MIME_BY_SUFFIX.get(PurePosixPath(filename).suffix.lower(), DEFAULT_MIME)


class PlaybackSessionManager(QObject):

    session_opened = Signal(object)
    session_closed = Signal()
    playback_error = Signal(str)

    def __init__(
        self,
        media_url: Callable[[str], str],
        player_factory: PlayerFactory | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self._media_url = media_url
        self._factory = player_factory
        self._next_id = 0
        self._session: PlaybackSession | None = None
        # id of the session whose player is being built, and what it reported meanwhile
        self._opening_id: int | None = None
        self._early_errors: list[str] = []
        self.last_error: PlaybackError | None = None

    @property
    def session(self) -> PlaybackSession | None:
        return self._session

    @property
    def live_count(self) -> int:
        return 0 if self._session is None else 1

    def set_player_factory(self, factory: PlayerFactory) -> None:
        self._factory = factory

    # ── Public API ────────────────────────────────────────────────────────────

    def open(self, target: HistoryRecord | str) -> PlaybackSession | None:
        """Dispose the active session, then start one for *target*."""
        filename = target.filename if isinstance(target, HistoryRecord) else target
        self.close()
        self.last_error = None

        if self._factory is None:
            self._fail(PlaybackError("No player available"))
            return None

        self._next_id += 1
        session_id = self._next_id
        url  = self._media_url(filename)
        mime = infer_mime(filename)
        print(f"[PLAYBACK] Session #{session_id}: '{filename}' ({mime}) ← {url}")

        self._opening_id = session_id
        self._early_errors = []
        try:
            player = self._factory(url, mime, lambda message: self._on_player_error(session_id, message))
        except Exception as exc:
            self._fail(PlaybackError(str(exc)))
            return None
        finally:
            self._opening_id = None
            early_errors, self._early_errors = self._early_errors, []

        session = PlaybackSession(
            id=session_id,
            filename=filename,
            url=url,
            mime_type=mime,
            player=player,
        )
        self._session = session
        self.session_opened.emit(session)

        # The player may reject its source while it is still being set up
        for message in early_errors:
            self._on_player_error(session_id, message)
        return session

    def close(self) -> None:
        """Dispose the active session, if any."""
        session, self._session = self._session, None
        if session is None:
            return
        print(f"[PLAYBACK] Disposing session #{session.id} ('{session.filename}')")
        try:
            session.player.dispose()
        finally:
            self.session_closed.emit()

    # ── Internal ──────────────────────────────────────────────────────────────

    def _on_player_error(self, session_id: int, message: str) -> None:
        if session_id == self._opening_id:
            self._early_errors.append(message)
            return
        if self._session is None or self._session.id != session_id:
            print(f"[PLAYBACK] Ignoring error from disposed session #{session_id}: {message}")
            return
        self._fail(PlaybackError(message))

    def _fail(self, error: PlaybackError) -> None:
        print(f"[PLAYBACK] ❌ {error}")
        self.last_error = error
        self.playback_error.emit(f"Error playing video: {error}")
