"""
core.normalizer
~~~~~~~~~~~~~~~
FormatNormalizer decides whether a selected video can be played and
uploaded as-is, and converts it to MP4 through the TranscodeEngine
when it cannot.

    mp4 / webm / ogg  →  passed through, engine never touched
    avi               →  converted to mp4
    anything else     →  ValidationError, before any processing

Blocking: normalize() runs ffmpeg synchronously, so the UI calls it
through the TaskRunner.
"""

from __future__ import annotations

from pathlib import Path

from core.command_builder import build_normalize_args
from core.engine import EngineError, TranscodeEngine
from core.errors import ConversionError, ValidationError
from core.models import MediaFile, TranscodeJob, TranscodeStatus

PASSTHROUGH_CONTAINERS: frozenset[str] = frozenset({"mp4", "webm", "ogg"})
CONVERTIBLE_CONTAINERS: frozenset[str] = frozenset({"avi"})
SUPPORTED_CONTAINERS:   frozenset[str] = PASSTHROUGH_CONTAINERS | CONVERTIBLE_CONTAINERS

TARGET_CONTAINER = "mp4"
TARGET_MIME      = "video/mp4"

# Fixed names inside the engine's working directory
INPUT_STEM  = "input"
OUTPUT_NAME = f"output.{TARGET_CONTAINER}"


class FormatNormalizer:

    def __init__(self, engine: TranscodeEngine):
        self._engine = engine
        self._converting = False
        self.last_job: TranscodeJob | None = None

    @property
    def converting(self) -> bool:
        """True while a TranscodeJob is running."""
        return self._converting

    # ── Public API ────────────────────────────────────────────────────────────

    def needs_conversion(self, media: MediaFile) -> bool:
        """
        Return True if *media* must go through the engine.

        Raises:
            ValidationError – the container is neither playable nor convertible
        """
        container = media.container
        if container in PASSTHROUGH_CONTAINERS:
            return False
        if container in CONVERTIBLE_CONTAINERS:
            return True
        raise ValidationError(
            f"Unsupported video format '{container or 'unknown'}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_CONTAINERS))}"
        )

    def normalize(self, media: MediaFile) -> MediaFile:
        """
        Return a playable version of *media*.

        The input is returned unchanged when no conversion is needed.
        Otherwise a new MediaFile is built; *media* itself is never altered.

        Raises:
            ValidationError – unsupported container
            ConversionError – the engine failed at any step
        """
        if not self.needs_conversion(media):
            print(f"[NORMALIZER] '{media.name}' is {media.container} — passing through")
            return media

        job = TranscodeJob(input=media, target_container=TARGET_CONTAINER)
        self.last_job = job
        self._run(job)
        return job.output

    # ── Internal ──────────────────────────────────────────────────────────────

    def _run(self, job: TranscodeJob) -> None:
        media = job.input
        input_name = f"{INPUT_STEM}.{media.container}"
        print(f"[NORMALIZER] Converting '{media.name}' ({media.size} bytes) "
              f"{media.container} → {job.target_container}")

        job.status = TranscodeStatus.RUNNING
        self._converting = True
        try:
            self._engine.load()
            with self._engine.exclusive() as engine:
                engine.write_file(input_name, media.data)
                engine.delete_file(OUTPUT_NAME)
                engine.exec(build_normalize_args(input_name, OUTPUT_NAME))
                data = engine.read_file(OUTPUT_NAME)
        except EngineError as exc:
            print(f"[NORMALIZER] ❌ Conversion failed: {exc}")
            job.status = TranscodeStatus.FAILED
            job.error_message = str(exc)
            raise ConversionError(str(exc)) from exc
        finally:
            self._converting = False

        if not data:
            job.status = TranscodeStatus.FAILED
            job.error_message = "ffmpeg produced an empty file"
            raise ConversionError(job.error_message)

        job.output = MediaFile(
            data=data,
            name=converted_name(media.name, job.target_container),
            mime_type=TARGET_MIME,
        )
        job.status = TranscodeStatus.SUCCEEDED
        print(f"[NORMALIZER] ✅ '{media.name}' → '{job.output.name}' ({job.output.size} bytes)")


def converted_name(name: str, container: str) -> str:
    """clip.AVI → clip.mp4"""
    return Path(name).with_suffix(f".{container}").name
