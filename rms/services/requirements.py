"""
Requirement resolution and evaluation.

A program may define, for one EPA, a row per PGY level plus one graduation
row (``training_level`` None). Exactly one row applies to a resident:

  1. the row whose training level equals the resident's current level;
  2. otherwise the graduation row;
  3. otherwise nothing, and the EPA is tracked but never flagged met/unmet.

The graduation row is a fallback only. It is never evaluated in addition to
a level-specific row.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rms.services.store import RequirementRecord


def pick_requirement(
    rows: Iterable[RequirementRecord],
    epa_id: int,
    training_level: int,
) -> RequirementRecord | None:
    """Return the single applicable requirement row for one EPA, or None."""
    graduation = None
    for row in rows:
        if row.epa_id != epa_id:
            continue
        if row.training_level == training_level:
            return row
        if row.training_level is None and graduation is None:
            graduation = row
    return graduation


@dataclass(frozen=True)
class RequirementStatus:
    """Snapshot of one resolved requirement against a resident's assessments."""

    target_count: int
    target_level: int
    current_count_at_level: int
    is_met: bool
    deficit: int

    def to_dict(self) -> dict:
        return {
            "target_count": self.target_count,
            "target_level": self.target_level,
            "current_count_at_level": self.current_count_at_level,
            "is_met": self.is_met,
            "deficit": self.deficit,
        }


def evaluate_requirement(
    requirement: RequirementRecord,
    levels: Iterable[int],
) -> RequirementStatus:
    """Count levels at or above the target and compare with the target count."""
    current = sum(1 for level in levels if level >= requirement.target_level)
    return RequirementStatus(
        target_count=requirement.target_count,
        target_level=requirement.target_level,
        current_count_at_level=current,
        is_met=current >= requirement.target_count,
        deficit=max(0, requirement.target_count - current),
    )
