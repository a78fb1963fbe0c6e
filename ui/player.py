"""
ui.player
~~~~~~~~~
QMediaPlayer bound to a QVideoWidget, packaged as the disposable
handle PlaybackSessionManager expects.
"""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QUrl
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer
from PySide6.QtMultimediaWidgets import QVideoWidget


class VideoPlayer(QObject):

    def __init__(
        self,
        source: QUrl,
        video_widget: QVideoWidget,
        on_error: Callable[[str], None] | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self._on_error_cb = on_error

        self._player = QMediaPlayer(self)
        self._audio  = QAudioOutput(self)
        self._player.setAudioOutput(self._audio)
        self._player.setVideoOutput(video_widget)
        self._player.errorOccurred.connect(self._on_error)
        self._player.setSource(source)
        print(f"[PLAYER] Source set: {source.toString()}")

    def play(self):
        self._player.play()

    def toggle(self):
        if self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState:
            self._player.pause()
        else:
            self._player.play()

    def dispose(self):
        """Stop decoding and let Qt free the player."""
        print("[PLAYER] dispose()")
        self._on_error_cb = None
        self._player.stop()
        self._player.setSource(QUrl())
        self._player.setVideoOutput(None)
        self.deleteLater()

    def _on_error(self, error, message: str):
        if error == QMediaPlayer.Error.NoError or self._on_error_cb is None:
            return
        self._on_error_cb(message or self._player.errorString())
