"""
Acknowledgment tracker — optimistic state machine for a resident's inbox.

Per assessment id:

    UNACKNOWLEDGED ──acknowledge()──▶ PENDING ──server ok──▶ ACKNOWLEDGED
          ▲                              │
          └──────── server failure ──────┘

``PENDING`` items are hidden from ``visible`` and ``count`` immediately. A
successful acknowledge triggers a refetch whose result replaces local state.
A refetch only clears the pending markers that already existed when it
started; a removal made while the refetch was in flight survives it.

A failed acknowledge restores the item and the count and records a
dismissible error. It never retries. Errors outside the client's expected
failure types are re-raised after the rollback.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

import requests

from rms.core.exceptions import NotFoundError, StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

_ACK_FAILURES = (NotFoundError, StoreUnavailableError, ValidationError, requests.RequestException)


class AckState(str, Enum):
    UNACKNOWLEDGED = "unacknowledged"
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"


class AcknowledgmentTracker:
    """Client-side view of one resident's unacknowledged assessments.

    Args:
        client: Anything with ``list_unacknowledged(resident_id)`` and
                ``acknowledge(assessment_id)`` (normally ``RmsApiClient``).
        resident_id: Whose inbox this tracks.
    """

    def __init__(self, client, resident_id: str) -> None:
        self.client = client
        self.resident_id = resident_id
        self._lock = threading.Lock()
        self._items: list[dict] = []
        self._states: dict[str, AckState] = {}
        self._pending_seq: dict[str, int] = {}
        self._seq = 0
        self._refresh_token = 0
        self._applied_token = 0
        self._error: str | None = None

    # ── Read side ───────────────────────────────────────────────────────

    @property
    def visible(self) -> list[dict]:
        """Unacknowledged items not optimistically hidden, server order."""
        with self._lock:
            return [i for i in self._items
                    if self._states.get(i["id"]) is AckState.UNACKNOWLEDGED]

    @property
    def count(self) -> int:
        return len(self.visible)

    def state_of(self, assessment_id: str) -> AckState | None:
        with self._lock:
            return self._states.get(assessment_id)

    @property
    def error(self) -> str | None:
        with self._lock:
            return self._error

    def dismiss_error(self) -> None:
        with self._lock:
            self._error = None

    # ── Reconciliation ──────────────────────────────────────────────────

    def refresh(self) -> list[dict]:
        """Refetch the authoritative list and replace local state with it.

        Errors from the client propagate; local state is left untouched.
        """
        with self._lock:
            started_at = self._seq
            self._refresh_token += 1
            token = self._refresh_token

        items = self.client.list_unacknowledged(self.resident_id) or []

        with self._lock:
            if token < self._applied_token:
                # A newer refetch already landed.
                return self._visible_locked()
            self._applied_token = token

            fetched_ids = {i["id"] for i in items}
            survivors = {aid: seq for aid, seq in self._pending_seq.items() if seq > started_at}
            states: dict[str, AckState] = {}
            for aid in fetched_ids:
                states[aid] = AckState.PENDING if aid in survivors else AckState.UNACKNOWLEDGED
            for aid, state in self._states.items():
                if aid in fetched_ids:
                    continue
                states[aid] = AckState.PENDING if aid in survivors else AckState.ACKNOWLEDGED

            self._items = list(items)
            self._states = states
            self._pending_seq = survivors
            logger.debug(
                "Refreshed inbox for %s: %d unacknowledged, %d still pending",
                self.resident_id, len(items), len(survivors),
                extra={"resident_id": self.resident_id, "event_type": "ack_refresh"},
            )
            return self._visible_locked()

    def _visible_locked(self) -> list[dict]:
        return [i for i in self._items if self._states.get(i["id"]) is AckState.UNACKNOWLEDGED]

    # ── Write side ──────────────────────────────────────────────────────

    def acknowledge(self, assessment_id: str) -> bool:
        """Optimistically hide the item, then confirm with the server.

        Returns True when the server accepted the acknowledge. False when the
        item is not currently visible or the request failed (rolled back).
        Any other exception from the client is rolled back the same way and
        then re-raised.
        """
        with self._lock:
            if self._states.get(assessment_id) is not AckState.UNACKNOWLEDGED:
                return False
            self._seq += 1
            seq = self._seq
            self._states[assessment_id] = AckState.PENDING
            self._pending_seq[assessment_id] = seq

        try:
            self.client.acknowledge(assessment_id)
        except Exception as exc:
            with self._lock:
                if self._pending_seq.get(assessment_id) == seq:
                    del self._pending_seq[assessment_id]
                    self._states[assessment_id] = AckState.UNACKNOWLEDGED
                self._error = f"Could not acknowledge assessment: {exc}"
            logger.warning(
                "Acknowledge failed for %s, rolled back: %s", assessment_id, exc,
                extra={"assessment_id": assessment_id, "resident_id": self.resident_id,
                       "event_type": "ack_rollback"},
            )
            if not isinstance(exc, _ACK_FAILURES):
                raise
            return False

        with self._lock:
            if self._pending_seq.get(assessment_id) == seq:
                self._states[assessment_id] = AckState.ACKNOWLEDGED

        try:
            self.refresh()
        except _ACK_FAILURES as exc:
            with self._lock:
                self._error = f"Acknowledged, but the list could not be refreshed: {exc}"
            logger.warning(
                "Refresh after acknowledge failed for %s: %s", assessment_id, exc,
                extra={"assessment_id": assessment_id, "resident_id": self.resident_id,
                       "event_type": "ack_refresh_failed"},
            )
        return True
