"""
core.errors
~~~~~~~~~~~
Exception types shared by the pipeline components.
Each one maps to the panel that displays it.
"""


class PipelineError(Exception):
    """Base class for every error the UI knows how to show."""


class ValidationError(PipelineError):
    """Wrong media category or unsupported container. Input is discarded."""


class ConversionError(PipelineError):
    """ffmpeg could not normalize the file. The original input is kept."""


class NetworkError(PipelineError):
    """Listing, lookup or submit call to the inference service failed."""


class PlaybackError(PipelineError):
    """Decode/runtime failure inside the active playback session."""
