"""
Per-project budget evaluation.

Compares a project's aggregated ingestion against the prorated ceiling.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Union

from .aggregation import UsageReport, UsageSample, aggregate_usage


@dataclass(frozen=True)
class Skip:
    """A project that produces no report line. Not an error."""
    project_id: str
    reason: str = "no measured ingestion"


def evaluate_project(
    project_id: str,
    samples: Iterable[UsageSample],
    ceiling: int
) -> Union[UsageReport, Skip]:
    """Evaluate one project's ingestion against ``ceiling``.

    Projects with zero measured ingestion are skipped. Lifecycle filtering
    (ACTIVE only) is the caller's job.

    Args:
        project_id: Project being evaluated
        samples: Raw samples for the project
        ceiling: Prorated byte ceiling for this run

    Returns:
        UsageReport with ``over_budget`` set, or Skip when nothing was ingested
    """
    report = aggregate_usage(samples, project_id)

    if report.total_bytes == 0:
        return Skip(project_id=project_id)

    return replace(
        report,
        over_budget=report.total_bytes > ceiling,
        ceiling_bytes=ceiling
    )
