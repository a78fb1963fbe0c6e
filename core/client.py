"""
core.client
~~~~~~~~~~~
InferenceClient — blocking HTTP boundary to the fight-detection service.

Endpoints
---------
GET  /uploads              → {"files": [filename, ...]}
POST /predict  (multipart) → {"label", "confidence", "anomalous_frame_path", "route"}
GET  /predict/<filename>   → {"label", "confidence", "anomalous_frame_path"}
GET  /uploads/<name>       → raw video or frame bytes

Every failure — transport, HTTP status, JSON or schema — is raised as
NetworkError. Calls block, so the UI runs them through the TaskRunner.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import requests

from core.config import ServiceSettings
from core.errors import NetworkError
from core.models import InferenceResult, MediaFile

LISTING_PATH = "/uploads"
PREDICT_PATH = "/predict"
MEDIA_PATH   = "/uploads"


class InferenceClient:

    def __init__(self, settings: ServiceSettings, session: requests.Session | None = None):
        self._settings = settings
        self._http = session or requests.Session()

    # ── Configuration ─────────────────────────────────────────────────────────

    @property
    def base_url(self) -> str:
        return self._settings.normalized_base_url()

    # ── URL composition ───────────────────────────────────────────────────────

    def media_url(self, filename: str) -> str:
        return f"{self.base_url}{MEDIA_PATH}/{quote(filename, safe='')}"

    def frame_url(self, result: InferenceResult) -> str | None:
        """
        URL of the anomalous frame, or None when the result has none.

        Submit responses name the serving route explicitly; lookups don't,
        so those frames are served from the uploads route.
        """
        if not result.has_frame:
            return None
        if result.route:
            return f"{self.base_url}{result.route}{quote(result.anomalous_frame_path)}"
        return f"{self.base_url}{MEDIA_PATH}/{quote(result.anomalous_frame_path, safe='')}"

    # ── Endpoints ─────────────────────────────────────────────────────────────

    def list_uploads(self) -> list[str]:
        payload = self._get_json(f"{self.base_url}{LISTING_PATH}")
        files = payload.get("files") if isinstance(payload, dict) else None
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise NetworkError("Malformed listing response: 'files' must be a list of names")
        print(f"[CLIENT] list_uploads → {len(files)} file(s)")
        return files

    def predict(self, media: MediaFile) -> InferenceResult:
        url = f"{self.base_url}{PREDICT_PATH}"
        print(f"[CLIENT] POST {url} | '{media.name}' ({media.size} bytes)")
        files = {"video": (media.name, media.data, media.mime_type or "application/octet-stream")}
        try:
            resp = self._http.post(url, files=files, timeout=self._settings.request_timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise NetworkError(str(exc)) from exc
        return _decode(payload)

    def lookup(self, filename: str) -> InferenceResult:
        payload = self._get_json(f"{self.base_url}{PREDICT_PATH}/{quote(filename, safe='')}")
        return _decode(payload)

    def fetch_bytes(self, url: str) -> bytes:
        try:
            resp = self._http.get(url, timeout=self._settings.lookup_timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkError(str(exc)) from exc
        return resp.content

    # ── Internal ──────────────────────────────────────────────────────────────

    def _get_json(self, url: str) -> Any:
        print(f"[CLIENT] GET {url}")
        try:
            resp = self._http.get(url, timeout=self._settings.lookup_timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise NetworkError(str(exc)) from exc


def _decode(payload: Any) -> InferenceResult:
    try:
        return InferenceResult.from_payload(payload)
    except ValueError as exc:
        raise NetworkError(f"Malformed prediction response: {exc}") from exc
