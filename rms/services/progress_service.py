"""
Progress Aggregator — per-EPA rollup of a resident's assessments.

For every active EPA of the resident's specialty, in display order:
    - counts by entrustment level 1..5 and the total
    - highest level achieved and the most recent assessment timestamp
    - the applicable requirement (exact PGY level, else graduation) and its
      met/deficit verdict

EPAs the resident has never been assessed on still appear with zero counts.
An unknown resident raises ``NotFoundError``; there is no partial result.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime

from rms.core.exceptions import NotFoundError
from rms.models.epa import ENTRUSTMENT_LEVELS
from rms.services.requirements import RequirementStatus, evaluate_requirement
from rms.services.store import AssessmentRecord, AssessmentStore, EpaRecord, ResidentRecord
from rms.services.summary import SummaryStats, summarize
from rms.utils.helpers import isoformat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EpaProgress:
    epa: EpaRecord
    total_assessments: int
    level_counts: tuple[int, int, int, int, int]
    highest_level: int | None
    last_assessment: datetime | None
    requirement: RequirementStatus | None = None

    def count_at(self, level: int) -> int:
        return self.level_counts[level - 1]

    def to_dict(self) -> dict:
        d = {
            "epa_id": self.epa.id,
            "epa_number": self.epa.number,
            "title": self.epa.title,
            "short_name": self.epa.short_name,
            "category": self.epa.category,
            "total_assessments": self.total_assessments,
        }
        for level in ENTRUSTMENT_LEVELS:
            d[f"level_{level}"] = self.count_at(level)
        d["highest_level"] = self.highest_level
        d["last_assessment"] = isoformat(self.last_assessment)
        d["requirement"] = self.requirement.to_dict() if self.requirement else None
        return d


@dataclass(frozen=True)
class ResidentProgress:
    resident: ResidentRecord
    progress: list[EpaProgress] = field(default_factory=list)
    stats: SummaryStats | None = None

    def to_dict(self) -> dict:
        return {
            "progress": [p.to_dict() for p in self.progress],
            "stats": self.stats.to_dict() if self.stats else None,
        }


def aggregate_epa(epa, assessments, requirement=None):
    """Fold one EPA's assessments into an ``EpaProgress``.

    ``assessments`` must already be filtered to this EPA and exclude
    soft-deleted rows.
    """
    counts = [0] * len(ENTRUSTMENT_LEVELS)
    highest = None
    last = None
    for a in assessments:
        counts[a.level - 1] += 1
        if highest is None or a.level > highest:
            highest = a.level
        if last is None or a.assessed_at > last:
            last = a.assessed_at

    status = None
    if requirement is not None:
        status = evaluate_requirement(requirement, (a.level for a in assessments))

    return EpaProgress(
        epa=epa,
        total_assessments=sum(counts),
        level_counts=tuple(counts),
        highest_level=highest,
        last_assessment=last,
        requirement=status,
    )


class ProgressAggregator:
    """Computes resident progress against one injected ``AssessmentStore``."""

    def __init__(self, store: AssessmentStore):
        self.store = store

    def _resident_or_404(self, resident_id: str) -> ResidentRecord:
        resident = self.store.get_resident(resident_id)
        if resident is None:
            raise NotFoundError(resource="Resident", resource_id=resident_id)
        return resident

    def epa_progress(self, resident_id: str) -> tuple[ResidentRecord, list[EpaProgress],
                                                      list[AssessmentRecord]]:
        """Return the resident, the per-EPA rollup and the raw assessments used."""
        resident = self._resident_or_404(resident_id)
        epas = self.store.list_active_epas(resident.program_id)
        assessments = self.store.list_assessments(resident_id=resident.id)

        by_epa: dict[int, list[AssessmentRecord]] = defaultdict(list)
        for a in assessments:
            by_epa[a.epa_id].append(a)

        active_ids = {epa.id for epa in epas}
        progress = [
            aggregate_epa(
                epa,
                by_epa.get(epa.id, []),
                self.store.resolve_requirement(resident.program_id, epa.id,
                                               resident.training_level),
            )
            for epa in epas
        ]
        # Assessments against deactivated EPAs are not part of the rollup.
        counted = [a for a in assessments if a.epa_id in active_ids]

        logger.debug(
            "Progress computed for resident %s: %d EPAs, %d assessments",
            resident.id, len(progress), len(counted),
            extra={"resident_id": resident.id, "event_type": "progress"},
        )
        return resident, progress, counted

    def get_progress(self, resident_id: str) -> ResidentProgress:
        """Per-EPA progress plus summary statistics for one resident."""
        resident, progress, assessments = self.epa_progress(resident_id)
        return ResidentProgress(
            resident=resident,
            progress=progress,
            stats=summarize(progress, assessments),
        )
