from .models import (
    MediaFile, TranscodeJob, TranscodeStatus, InferenceResult,
    HistoryRecord, PlaybackSession, UploadState,
)
from .errors import PipelineError, ValidationError, ConversionError, NetworkError, PlaybackError
from .engine import TranscodeEngine, EngineError
from .normalizer import FormatNormalizer
from .preview import PreviewResourceManager
from .client import InferenceClient
from .tasks import TaskRunner
from .upload import UploadOrchestrator
from .history import HistoryAggregator
from .playback import PlaybackSessionManager, infer_mime

__all__ = [
    "MediaFile", "TranscodeJob", "TranscodeStatus", "InferenceResult",
    "HistoryRecord", "PlaybackSession", "UploadState",
    "PipelineError", "ValidationError", "ConversionError", "NetworkError", "PlaybackError",
    "TranscodeEngine", "EngineError",
    "FormatNormalizer",
    "PreviewResourceManager",
    "InferenceClient",
    "TaskRunner",
    "UploadOrchestrator",
    "HistoryAggregator",
    "PlaybackSessionManager", "infer_mime",
]
