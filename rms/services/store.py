"""
Assessment store boundary.

The progress aggregator, the summary reducer and the assessment service talk
to storage only through ``AssessmentStore``. Services receive a store in their
constructor; nothing in this package holds a module-level store.

Implementations:
    - ``rms.services.sql_store.SqlAssessmentStore`` — Flask-SQLAlchemy models
    - ``rms.services.memory_store.InMemoryAssessmentStore`` — dict-backed fake

Records crossing the boundary are frozen dataclasses so callers never hold a
live ORM object.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from rms.services.requirements import pick_requirement


# ── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ResidentRecord:
    id: str
    program_id: str
    training_level: int
    status: str = "active"


@dataclass(frozen=True)
class EpaRecord:
    id: int
    number: str
    title: str
    short_name: str
    category: str
    display_order: int


@dataclass(frozen=True)
class RequirementRecord:
    """``training_level`` None marks the graduation requirement."""

    program_id: str
    epa_id: int
    training_level: int | None
    target_count: int
    target_level: int


@dataclass(frozen=True)
class NewAssessment:
    """Validated insert payload. Optional fields stay None when absent."""

    resident_id: str
    assessor_id: str
    epa_id: int
    level: int
    assessed_at: datetime
    submitted_at: datetime
    clinical_site_id: str | None = None
    case_urgency: str | None = None
    case_complexity: str | None = None
    patient_asa_class: int | None = None
    procedure_duration_min: int | None = None
    complications: bool | None = None
    location_type: str | None = None
    location_details: str | None = None
    narrative: str | None = None
    entry_method: str = "web"


@dataclass(frozen=True)
class AssessmentRecord:
    id: str
    resident_id: str
    assessor_id: str
    epa_id: int
    level: int
    assessed_at: datetime
    submitted_at: datetime
    clinical_site_id: str | None = None
    case_urgency: str | None = None
    case_complexity: str | None = None
    patient_asa_class: int | None = None
    procedure_duration_min: int | None = None
    complications: bool | None = None
    location_type: str | None = None
    location_details: str | None = None
    narrative: str | None = None
    entry_method: str = "web"
    acknowledged: bool = False
    acknowledged_at: datetime | None = None


# ── Interface ────────────────────────────────────────────────────────────────


class AssessmentStore(ABC):
    """Read/write contract consumed by the services.

    Every read excludes soft-deleted assessments. Implementations raise
    ``StoreUnavailableError`` when the backing storage cannot be reached.
    """

    @abstractmethod
    def get_resident(self, resident_id: str) -> ResidentRecord | None:
        """Return the resident, or None when unknown."""

    @abstractmethod
    def list_active_epas(self, program_id: str) -> list[EpaRecord]:
        """Return active EPAs of the program's specialty in display order."""

    @abstractmethod
    def get_epa(self, epa_id: int) -> EpaRecord | None:
        """Return an active EPA, or None."""

    @abstractmethod
    def assessor_exists(self, assessor_id: str) -> bool:
        """True when a faculty row with this id exists."""

    @abstractmethod
    def clinical_site_exists(self, site_id: str) -> bool:
        """True when a clinical site with this id exists."""

    @abstractmethod
    def list_assessments(
        self,
        resident_id: str | None = None,
        epa_id: int | None = None,
        assessor_id: str | None = None,
        limit: int | None = None,
    ) -> list[AssessmentRecord]:
        """Return non-deleted assessments, newest assessment timestamp first."""

    @abstractmethod
    def get_assessment(self, assessment_id: str) -> AssessmentRecord | None:
        """Return the assessment, or None when missing or soft-deleted."""

    @abstractmethod
    def list_requirements(self, program_id: str) -> list[RequirementRecord]:
        """Return every requirement row defined by the program."""

    @abstractmethod
    def insert_assessment(self, new: NewAssessment) -> str:
        """Persist an unacknowledged assessment and return its new id."""

    @abstractmethod
    def set_acknowledged(self, assessment_id: str, at: datetime) -> AssessmentRecord | None:
        """Mark acknowledged. ``acknowledged_at`` becomes max(previous, at).

        Returns the updated record, or None when missing or soft-deleted.
        """

    @abstractmethod
    def soft_delete_assessment(self, assessment_id: str, deleted_by: str | None,
                               at: datetime) -> bool:
        """Soft-delete. False when already deleted or missing."""

    def resolve_requirement(
        self, program_id: str, epa_id: int, training_level: int,
    ) -> RequirementRecord | None:
        """Return the applicable requirement for one EPA at one PGY level.

        The aggregator calls this once per EPA. Backends may override it with
        a narrower query; the tie-break stays ``pick_requirement``.
        """
        return pick_requirement(self.list_requirements(program_id), epa_id, training_level)
