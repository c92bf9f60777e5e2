"""
Assessment service — submission, acknowledgment and the write-side queries.

Operations:
    submit(payload)              → new assessment id (ValidationError / NotFoundError)
    acknowledge(assessment_id)   → updated AssessmentRecord (NotFoundError)
    list_unacknowledged(res_id)  → resident's unacknowledged assessments, newest first
    list_assessments(...)        → filtered listing, newest first
    get_assessment(id)           → single assessment (NotFoundError)
    soft_delete(id, deleted_by)  → None (NotFoundError)

A payload field counts as absent only when its key is missing or its value is
None. ``0``, ``False`` and ``""`` are values and are validated as such.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from rms.core.exceptions import NotFoundError, ValidationError
from rms.models.assessment import CASE_COMPLEXITIES, CASE_URGENCIES, ENTRY_METHODS, LOCATION_TYPES
from rms.models.epa import ENTRUSTMENT_LEVELS
from rms.services.store import AssessmentRecord, AssessmentStore, NewAssessment
from rms.utils.helpers import parse_timestamp

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("resident_id", "assessor_id", "epa_id", "entrustment_level")

# payload key → canonical key
FIELD_ALIASES = {
    "faculty_id": "assessor_id",
    "observation_date": "assessment_date",
}

ASA_CLASSES = range(1, 7)


def _utcnow():
    return datetime.now(timezone.utc)


def _as_int(value):
    """Accept ints and numeric strings. Booleans and floats are rejected."""
    if isinstance(value, bool):
        raise ValueError("boolean is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"not an integer: {value!r}")


def _canonical(payload: dict) -> dict:
    """Fold alias keys onto canonical ones. The canonical key wins when both are set."""
    data = dict(payload)
    for alias, canonical in FIELD_ALIASES.items():
        if alias in data:
            value = data.pop(alias)
            if data.get(canonical) is None:
                data[canonical] = value
    return data


def validate_submission(payload: dict, now: datetime) -> NewAssessment:
    """Validate a raw submission payload and build the insert record.

    Every problem is collected; a single ValidationError reports all of them.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    data = _canonical(payload)
    errors: dict[str, str] = {}

    for name in REQUIRED_FIELDS:
        if data.get(name) is None:
            errors[name] = "required"

    def _string(name, required=False):
        value = data.get(name)
        if value is None:
            return None
        if not isinstance(value, str):
            errors[name] = "must be a string"
            return None
        if required and not value.strip():
            errors[name] = "must not be empty"
            return None
        return value

    def _choice(name, choices):
        value = data.get(name)
        if value is None:
            return None
        if value not in choices:
            errors[name] = f"must be one of: {', '.join(choices)}"
            return None
        return value

    def _integer(name, allowed=None, minimum=None):
        value = data.get(name)
        if value is None:
            return None
        try:
            number = _as_int(value)
        except ValueError:
            errors[name] = "must be an integer"
            return None
        if allowed is not None and number not in allowed:
            errors[name] = f"must be between {allowed[0]} and {allowed[-1]}"
            return None
        if minimum is not None and number < minimum:
            errors[name] = f"must be >= {minimum}"
            return None
        return number

    resident_id = _string("resident_id", required=True)
    assessor_id = _string("assessor_id", required=True)
    epa_id = _integer("epa_id")
    level = _integer("entrustment_level", allowed=ENTRUSTMENT_LEVELS)

    assessed_at = now
    if data.get("assessment_date") is not None:
        try:
            assessed_at = parse_timestamp(data["assessment_date"])
        except (TypeError, ValueError):
            errors["assessment_date"] = "must be an ISO-8601 date or datetime"

    complications = data.get("complications")
    if complications is not None and not isinstance(complications, bool):
        errors["complications"] = "must be a boolean"
        complications = None

    entry_method = _choice("entry_method", ENTRY_METHODS)

    new = dict(
        clinical_site_id=_string("clinical_site_id", required=True),
        case_urgency=_choice("case_urgency", CASE_URGENCIES),
        case_complexity=_choice("case_complexity", CASE_COMPLEXITIES),
        patient_asa_class=_integer("patient_asa_class", allowed=ASA_CLASSES),
        procedure_duration_min=_integer("procedure_duration_min", minimum=0),
        complications=complications,
        location_type=_choice("location_type", LOCATION_TYPES),
        location_details=_string("location_details"),
        narrative=_string("narrative_feedback"),
    )

    if errors:
        missing = [k for k, v in errors.items() if v == "required"]
        if missing and len(missing) == len(errors):
            message = f"Missing required fields: {', '.join(missing)}"
        else:
            message = f"Invalid assessment: {', '.join(sorted(errors))}"
        raise ValidationError(message, details=errors)

    return NewAssessment(
        resident_id=resident_id,
        assessor_id=assessor_id,
        epa_id=epa_id,
        level=level,
        assessed_at=assessed_at,
        submitted_at=now,
        entry_method=entry_method or "web",
        **new,
    )


class AssessmentService:
    """Write path and assessment queries over one injected store."""

    def __init__(self, store: AssessmentStore, clock=_utcnow):
        self.store = store
        self.clock = clock

    # ── Submission ──────────────────────────────────────────────────────

    def submit(self, payload: dict) -> str:
        """Validate, check references, persist as unacknowledged. Returns the id."""
        new = validate_submission(payload, self.clock())

        if self.store.get_resident(new.resident_id) is None:
            raise NotFoundError(resource="Resident", resource_id=new.resident_id)
        if not self.store.assessor_exists(new.assessor_id):
            raise NotFoundError(resource="Faculty", resource_id=new.assessor_id)
        if self.store.get_epa(new.epa_id) is None:
            raise NotFoundError(resource="EPA", resource_id=new.epa_id)
        site_id = new.clinical_site_id
        if site_id is not None and not self.store.clinical_site_exists(site_id):
            raise NotFoundError(resource="ClinicalSite", resource_id=site_id)

        assessment_id = self.store.insert_assessment(new)
        logger.info(
            "Assessment created: %s (resident=%s epa=%s level=%s)",
            assessment_id, new.resident_id, new.epa_id, new.level,
            extra={"assessment_id": assessment_id, "resident_id": new.resident_id,
                   "event_type": "assessment_created"},
        )
        return assessment_id

    # ── Acknowledgment ──────────────────────────────────────────────────

    def acknowledge(self, assessment_id: str) -> AssessmentRecord:
        """Mark acknowledged. Repeat calls succeed and refresh the timestamp."""
        record = self.store.set_acknowledged(assessment_id, self.clock())
        if record is None:
            raise NotFoundError(resource="Assessment", resource_id=assessment_id)
        logger.info(
            "Assessment acknowledged: %s", assessment_id,
            extra={"assessment_id": assessment_id, "resident_id": record.resident_id,
                   "event_type": "assessment_acknowledged"},
        )
        return record

    def list_unacknowledged(self, resident_id: str) -> list[AssessmentRecord]:
        if self.store.get_resident(resident_id) is None:
            raise NotFoundError(resource="Resident", resource_id=resident_id)
        return [a for a in self.store.list_assessments(resident_id=resident_id)
                if not a.acknowledged]

    # ── Queries ─────────────────────────────────────────────────────────

    def list_assessments(self, resident_id=None, epa_id=None, assessor_id=None, limit=None):
        return self.store.list_assessments(
            resident_id=resident_id, epa_id=epa_id, assessor_id=assessor_id, limit=limit,
        )

    def get_assessment(self, assessment_id: str) -> AssessmentRecord:
        record = self.store.get_assessment(assessment_id)
        if record is None:
            raise NotFoundError(resource="Assessment", resource_id=assessment_id)
        return record

    # ── Soft delete ─────────────────────────────────────────────────────

    def soft_delete(self, assessment_id: str, deleted_by: str | None = None) -> None:
        if not self.store.soft_delete_assessment(assessment_id, deleted_by, self.clock()):
            raise NotFoundError(resource="Assessment", resource_id=assessment_id)
        logger.info(
            "Assessment soft-deleted: %s by=%s", assessment_id, deleted_by,
            extra={"assessment_id": assessment_id, "event_type": "assessment_deleted"},
        )
