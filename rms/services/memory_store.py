"""Dict-backed ``AssessmentStore`` with the same contract as the SQL store.

Used by service-level tests and handy for local experiments. Not
thread-safe beyond what the GIL gives single dict operations.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, replace

from rms.services.store import (
    AssessmentRecord,
    AssessmentStore,
    EpaRecord,
    NewAssessment,
    RequirementRecord,
    ResidentRecord,
)


class InMemoryAssessmentStore(AssessmentStore):

    def __init__(self, specialty_code: str = "general_surgery"):
        self.specialty_code = specialty_code
        self.residents: dict[str, ResidentRecord] = {}
        self.program_specialty: dict[str, str] = {}
        # specialty → {epa_id: (EpaRecord, is_active)}
        self.epas: dict[str, dict[int, tuple[EpaRecord, bool]]] = {}
        self.assessors: set[str] = set()
        self.sites: set[str] = set()
        self.requirements: list[RequirementRecord] = []
        self.assessments: dict[str, AssessmentRecord] = {}
        self.deleted: dict[str, tuple[str | None, object]] = {}

    # ── Fixture helpers ─────────────────────────────────────────────────

    def add_program(self, program_id, specialty_code=None):
        self.program_specialty[program_id] = specialty_code or self.specialty_code

    def add_resident(self, resident_id, program_id, training_level, status="active"):
        self.program_specialty.setdefault(program_id, self.specialty_code)
        record = ResidentRecord(resident_id, program_id, training_level, status)
        self.residents[resident_id] = record
        return record

    def add_epa(self, epa_id, display_order=None, number=None, title=None, short_name=None,
                category="intraoperative", specialty_code=None, is_active=True):
        record = EpaRecord(
            id=epa_id,
            number=number or f"GS-{epa_id}",
            title=title or f"EPA {epa_id}",
            short_name=short_name or f"EPA {epa_id}",
            category=category,
            display_order=display_order if display_order is not None else epa_id,
        )
        self.epas.setdefault(specialty_code or self.specialty_code, {})[epa_id] = (record, is_active)
        return record

    def add_assessor(self, assessor_id):
        self.assessors.add(assessor_id)

    def add_site(self, site_id):
        self.sites.add(site_id)

    def add_requirement(self, program_id, epa_id, training_level, target_count, target_level):
        record = RequirementRecord(program_id, epa_id, training_level, target_count, target_level)
        self.requirements.append(record)
        return record

    # ── AssessmentStore ─────────────────────────────────────────────────

    def get_resident(self, resident_id):
        return self.residents.get(resident_id)

    def list_active_epas(self, program_id):
        specialty = self.program_specialty.get(program_id, self.specialty_code)
        rows = [epa for epa, active in self.epas.get(specialty, {}).values() if active]
        return sorted(rows, key=lambda e: e.display_order)

    def get_epa(self, epa_id):
        for catalog in self.epas.values():
            entry = catalog.get(epa_id)
            if entry and entry[1]:
                return entry[0]
        return None

    def assessor_exists(self, assessor_id):
        return assessor_id in self.assessors

    def clinical_site_exists(self, site_id):
        return site_id in self.sites

    def list_assessments(self, resident_id=None, epa_id=None, assessor_id=None, limit=None):
        rows = [
            a for a in self.assessments.values()
            if a.id not in self.deleted
            and (resident_id is None or a.resident_id == resident_id)
            and (epa_id is None or a.epa_id == epa_id)
            and (assessor_id is None or a.assessor_id == assessor_id)
        ]
        rows.sort(key=lambda a: a.id)
        rows.sort(key=lambda a: a.assessed_at, reverse=True)
        return rows[:limit] if limit is not None else rows

    def get_assessment(self, assessment_id):
        if assessment_id in self.deleted:
            return None
        return self.assessments.get(assessment_id)

    def list_requirements(self, program_id):
        return [r for r in self.requirements if r.program_id == program_id]

    def insert_assessment(self, new: NewAssessment) -> str:
        assessment_id = str(uuid.uuid4())
        self.assessments[assessment_id] = AssessmentRecord(id=assessment_id, **asdict(new))
        return assessment_id

    def set_acknowledged(self, assessment_id, at):
        current = self.get_assessment(assessment_id)
        if current is None:
            return None
        if current.acknowledged_at is not None and current.acknowledged_at > at:
            at = current.acknowledged_at
        updated = replace(current, acknowledged=True, acknowledged_at=at)
        self.assessments[assessment_id] = updated
        return updated

    def soft_delete_assessment(self, assessment_id, deleted_by, at):
        if self.get_assessment(assessment_id) is None:
            return False
        self.deleted[assessment_id] = (deleted_by, at)
        return True
