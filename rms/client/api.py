"""
RMS HTTP API client.

Thin ``requests`` wrapper used by resident-facing code. Error responses are
mapped back onto the service exception taxonomy:

    404            → NotFoundError
    400 / 422      → ValidationError (``details`` carried over)
    5xx, timeouts,
    connection     → StoreUnavailableError

The session is injectable; tests pass a mocked ``requests.Session``.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from rms.core.exceptions import NotFoundError, StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0  # seconds


class RmsApiClient:
    """Client for the ``/api/v1`` surface.

    Usage:
        client = RmsApiClient("http://localhost:5000")
        progress = client.get_progress("res-rodriguez")
        client.acknowledge("assess-004")
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/v1{path}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._url(path)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("RMS API %s %s unreachable: %s", method, path, exc)
            raise StoreUnavailableError(f"RMS API unreachable: {exc}") from exc

        if resp.ok:
            if resp.status_code == 204 or not resp.content:
                return None
            return resp.json()

        body = self._error_body(resp)
        message = body.get("error") or f"HTTP {resp.status_code}"
        logger.info("RMS API %s %s → %s: %s", method, path, resp.status_code, message)
        if resp.status_code == 404:
            raise NotFoundError(resource=self._resource_for(path), resource_id=self._id_for(path))
        if resp.status_code in (400, 422):
            raise ValidationError(message, details=body.get("details"))
        if resp.status_code >= 500:
            raise StoreUnavailableError(message)
        resp.raise_for_status()
        return None

    @staticmethod
    def _error_body(resp) -> dict:
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _resource_for(path: str) -> str:
        return "Resident" if path.startswith("/residents") else "Assessment"

    @staticmethod
    def _id_for(path: str) -> str | None:
        parts = [p for p in path.split("/") if p]
        return parts[1] if len(parts) > 1 else None

    # ── Operations ──────────────────────────────────────────────────────

    def get_progress(self, resident_id: str) -> dict:
        return self._request("GET", f"/residents/{resident_id}/progress")

    def list_unacknowledged(self, resident_id: str) -> list[dict]:
        return self._request("GET", f"/residents/{resident_id}/unacknowledged")

    def acknowledge(self, assessment_id: str) -> dict:
        return self._request("PATCH", f"/assessments/{assessment_id}/acknowledge")

    def submit_assessment(self, payload: dict) -> dict:
        return self._request("POST", "/assessments", json=payload)
