"""
Usage aggregation.

Folds raw ingestion samples into a per-resource-type breakdown and a total
for a single project.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageSample:
    """One ingestion observation for a single time series.

    The metric source selects one value per series; a sample is never a
    window of points.
    """
    project_id: str
    resource_type: str
    bytes: int

    def __post_init__(self):
        """Validate byte count is not negative."""
        if self.bytes < 0:
            raise ValueError("bytes cannot be negative")


@dataclass(frozen=True)
class UsageReport:
    """Aggregated ingestion for one project.

    ``total_bytes`` always equals the sum of ``by_resource``. ``over_budget``
    and ``ceiling_bytes`` are only set once the report has been compared to a
    ceiling.
    """
    project_id: str
    by_resource: Dict[str, int] = field(default_factory=dict)
    total_bytes: int = 0
    over_budget: bool = False
    ceiling_bytes: Optional[int] = None


def aggregate_usage(samples: Iterable[UsageSample], project_id: str) -> UsageReport:
    """Aggregate samples belonging to ``project_id``.

    Samples reporting a different project are dropped rather than failing,
    since a metric source may leak series from other projects.

    Args:
        samples: Raw samples from the metric source
        project_id: Project to aggregate for

    Returns:
        UsageReport with per-resource totals; all-zero when nothing matches
    """
    by_resource: Dict[str, int] = {}
    total_bytes = 0

    for sample in samples:
        if sample.project_id != project_id:
            logger.debug(
                "Dropping %s sample for project %s while aggregating %s",
                sample.resource_type, sample.project_id, project_id
            )
            continue

        by_resource[sample.resource_type] = by_resource.get(sample.resource_type, 0) + sample.bytes
        total_bytes += sample.bytes

    return UsageReport(
        project_id=project_id,
        by_resource=by_resource,
        total_bytes=total_bytes
    )
