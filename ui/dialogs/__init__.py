from .playback_dialog import PlaybackDialog

__all__ = ["PlaybackDialog"]
