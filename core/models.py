"""
core.models
~~~~~~~~~~~
Pure dataclasses — no Qt, no I/O beyond MediaFile.from_path.
These travel freely between core and ui.
"""

from __future__ import annotations

import math
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Any


# ── Enums ─────────────────────────────────────────────────────────────────────

class TranscodeStatus(Enum):
    PENDING   = auto()
    RUNNING   = auto()
    SUCCEEDED = auto()
    FAILED    = auto()


class UploadState(Enum):
    IDLE       = auto()  # nothing selected
    VALIDATING = auto()  # checking category / container
    NORMALIZING = auto() # ffmpeg is converting the selection
    FAILED     = auto()  # conversion failed, original kept for retry
    READY      = auto()  # preview bound, upload allowed
    UPLOADING  = auto()  # request to the inference service in flight
    COMPLETE   = auto()  # result received


# ── Media file ────────────────────────────────────────────────────────────────

# mimetypes maps .ogg to audio/ogg and knows nothing about some video suffixes
_VIDEO_MIME_OVERRIDES: dict[str, str] = {
    ".mp4":  "video/mp4",
    ".m4v":  "video/mp4",
    ".webm": "video/webm",
    ".ogg":  "video/ogg",
    ".ogv":  "video/ogg",
    ".avi":  "video/x-msvideo",
    ".mkv":  "video/x-matroska",
    ".mov":  "video/quicktime",
}

_MIME_CONTAINERS: dict[str, str] = {
    "video/mp4":       "mp4",
    "video/webm":      "webm",
    "video/ogg":       "ogg",
    "video/x-msvideo": "avi",
    "video/avi":       "avi",
}


def guess_mime_type(name: str) -> str:
    """Best-effort MIME type for *name*; empty string when unknown."""
    suffix = Path(name).suffix.lower()
    if suffix in _VIDEO_MIME_OVERRIDES:
        return _VIDEO_MIME_OVERRIDES[suffix]
    mime, _ = mimetypes.guess_type(name)
    return mime or ""


@dataclass(frozen=True)
class MediaFile:
    """
    An in-memory media file.

    Immutable: a conversion builds a brand-new MediaFile instead of
    touching the bytes of the original one.
    """
    data: bytes = field(repr=False)
    name: str
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def category(self) -> str:
        """MIME major type, e.g. "video" for "video/mp4"."""
        return self.mime_type.split("/", 1)[0].lower() if self.mime_type else ""

    @property
    def container(self) -> str:
        """Lower-case container tag taken from the suffix, or from the MIME type."""
        suffix = Path(self.name).suffix.lower().lstrip(".")
        if suffix:
            return suffix
        return _MIME_CONTAINERS.get(self.mime_type.lower(), "")

    @classmethod
    def from_path(cls, path: Path) -> "MediaFile":
        """Read *path* from disk. Raises OSError if it cannot be read."""
        return cls(
            data=path.read_bytes(),
            name=path.name,
            mime_type=guess_mime_type(path.name),
        )


# ── Transcode job ─────────────────────────────────────────────────────────────

@dataclass
class TranscodeJob:
    """One container conversion. Exists only while the normalizer runs it."""
    input: MediaFile
    target_container: str
    status: TranscodeStatus = TranscodeStatus.PENDING
    output: MediaFile | None = None
    error_message: str = ""


# ── Inference result ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InferenceResult:
    """Prediction returned by the inference service for one video."""
    label: str
    confidence: float               # 0.0 – 1.0
    anomalous_frame_path: str | None = None
    route: str = ""
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls) -> "InferenceResult":
        """Stand-in used when the lookup for a file failed."""
        return cls(label="Unknown", confidence=0.0, is_placeholder=True)

    @classmethod
    def from_payload(cls, payload: Any) -> "InferenceResult":
        """
        Decode a response body from the inference service.

        Raises ValueError when a required field is missing or has the
        wrong type. An empty or null ``anomalous_frame_path`` means
        "no frame present".
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")

        label = payload.get("label")
        if not isinstance(label, str) or not label.strip():
            raise ValueError("Field 'label' must be a non-empty string")

        confidence = payload.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ValueError("Field 'confidence' must be a number")
        confidence = float(confidence)
        if math.isnan(confidence) or not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Field 'confidence' out of range: {confidence}")

        frame = payload.get("anomalous_frame_path")
        if frame is not None and not isinstance(frame, str):
            raise ValueError("Field 'anomalous_frame_path' must be a string or null")

        route = payload.get("route") or ""
        if not isinstance(route, str):
            raise ValueError("Field 'route' must be a string")

        return cls(
            label=label,
            confidence=confidence,
            anomalous_frame_path=frame or None,
            route=route,
        )

    @property
    def confidence_percent(self) -> int:
        # round half up, 0.925 → 93
        return int(math.floor(self.confidence * 100 + 0.5))

    @property
    def is_fight(self) -> bool:
        lowered = self.label.lower()
        return "fight" in lowered and not lowered.startswith("no")

    @property
    def has_frame(self) -> bool:
        return self.anomalous_frame_path is not None


# ── History ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HistoryRecord:
    """
    One stored video joined with its inference result.

    ``fetched_at`` is when the lookup settled, not when the file was
    uploaded: the listing endpoint returns no upload metadata.
    """
    filename: str
    result: InferenceResult
    fetched_at: datetime


# ── Playback ──────────────────────────────────────────────────────────────────

@dataclass
class PlaybackSession:
    """The lifetime of one player instance bound to one media URL."""
    id: int
    filename: str
    url: str
    mime_type: str
    player: Any                     # handle with a dispose() method
