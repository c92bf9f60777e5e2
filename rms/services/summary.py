"""Summary Reducer — overall statistics folded from the per-EPA rollup."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SummaryStats:
    total_assessments: int
    epas_assessed: int
    unique_assessors: int
    avg_level_exact: float
    requirements_met: int
    requirements_total: int

    @property
    def avg_level(self) -> float:
        """Mean entrustment level rounded to one decimal for display."""
        return round(self.avg_level_exact, 1)

    def to_dict(self) -> dict:
        return {
            "total_assessments": self.total_assessments,
            "epas_assessed": self.epas_assessed,
            "unique_assessors": self.unique_assessors,
            "avg_level": self.avg_level,
            "requirements_met": self.requirements_met,
            "requirements_total": self.requirements_total,
        }


def summarize(progress, assessments) -> SummaryStats:
    """Reduce ``EpaProgress`` entries plus the raw assessments behind them.

    The mean is taken over individual assessments, not per-EPA averages, so an
    EPA with more assessments weighs more. No assessments gives 0.
    """
    levels = [a.level for a in assessments]
    avg = sum(levels) / len(levels) if levels else 0.0

    resolved = [p.requirement for p in progress if p.requirement is not None]
    return SummaryStats(
        total_assessments=sum(p.total_assessments for p in progress),
        epas_assessed=sum(1 for p in progress if p.total_assessments > 0),
        unique_assessors=len({a.assessor_id for a in assessments}),
        avg_level_exact=avg,
        requirements_met=sum(1 for r in resolved if r.is_met),
        requirements_total=len(resolved),
    )
