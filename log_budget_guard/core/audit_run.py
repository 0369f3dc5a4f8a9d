"""
Organization-wide ingestion audit.

Runs the per-project evaluation over every active project and collects the
results into a single verdict.

An audit run:
1. Computes the prorated ceiling once from the evaluation instant
2. Lists projects and skips those that are not ACTIVE
3. Fetches and evaluates ingestion per project
4. Aborts on the first collaborator error unless failures are isolated
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import List, Optional, Union

from .aggregation import UsageReport
from .auditor import Skip, evaluate_project
from .budget import MonthlyBudget
from ..sources.models import (
    DEFAULT_WINDOW_HOURS,
    MetricSource,
    ProjectInfo,
    ProjectSource,
    QueryWindow
)

logger = logging.getLogger(__name__)


class AuditVerdict(Enum):
    """Final verdict of an audit run."""
    PASS = auto()  # Every project within its ceiling
    WARN = auto()  # At least one project over its ceiling
    FAIL = auto()  # At least one project could not be audited


class AuditAborted(Exception):
    """Raised when a collaborator error stops the whole run."""
    def __init__(self, message: str, project_id: Optional[str] = None):
        super().__init__(message)
        self.project_id = project_id


@dataclass(frozen=True)
class ProjectFailure:
    """A project whose usage could not be fetched."""
    project_id: str
    error: str


@dataclass
class AuditRunResult:
    """Results of an audit run."""
    evaluated_at: datetime
    ceiling_bytes: int
    reports: List[UsageReport] = field(default_factory=list)
    skipped: List[Skip] = field(default_factory=list)
    inactive: List[ProjectInfo] = field(default_factory=list)
    failures: List[ProjectFailure] = field(default_factory=list)
    # Every outcome above, in the order projects were listed
    outcomes: List[Union[UsageReport, Skip, ProjectInfo, ProjectFailure]] = field(default_factory=list)

    def record(self, outcome: Union[UsageReport, Skip, ProjectInfo, ProjectFailure]) -> None:
        """File an outcome under its kind, keeping listing order."""
        if isinstance(outcome, UsageReport):
            self.reports.append(outcome)
        elif isinstance(outcome, Skip):
            self.skipped.append(outcome)
        elif isinstance(outcome, ProjectInfo):
            self.inactive.append(outcome)
        else:
            self.failures.append(outcome)
        self.outcomes.append(outcome)

    @property
    def over_budget(self) -> List[UsageReport]:
        return [report for report in self.reports if report.over_budget]

    @property
    def verdict(self) -> AuditVerdict:
        if self.failures:
            return AuditVerdict.FAIL
        if self.over_budget:
            return AuditVerdict.WARN
        return AuditVerdict.PASS


def run_audit(
    project_source: ProjectSource,
    metric_source: MetricSource,
    budget: MonthlyBudget,
    instant: datetime,
    window_hours: float = DEFAULT_WINDOW_HOURS,
    isolate_failures: bool = False
) -> AuditRunResult:
    """
    Audit log ingestion of every active project against the prorated budget.

    Args:
        project_source: Lists projects and their lifecycle state
        metric_source: Fetches ingestion samples per project
        budget: Monthly ingestion cap
        instant: Evaluation instant, used for proration and the query window
        window_hours: Length of the metric query window ending at ``instant``
        isolate_failures: Record a project's fetch error and continue instead
            of aborting the run

    Returns:
        AuditRunResult with reports, skips and the overall verdict

    Raises:
        AuditAborted: If projects cannot be listed, or a project's usage
            cannot be fetched and failures are not isolated
    """
    ceiling = budget.ceiling_for(instant.date())
    window = QueryWindow.ending_at(instant, hours=window_hours)
    result = AuditRunResult(evaluated_at=instant, ceiling_bytes=ceiling)

    logger.info("Prorated ceiling for %s is %d bytes", instant.date().isoformat(), ceiling)

    try:
        projects = project_source.list_projects()
    except Exception as e:
        raise AuditAborted(f"error getting list of projects: {e}") from e

    for project in projects:
        if not project.is_active:
            logger.info(
                "Skipping project %s due to project state %s",
                project.project_id, project.lifecycle_state
            )
            result.record(project)
            continue

        try:
            samples = metric_source.fetch_ingestion_samples(project.project_id, window)
        except Exception as e:
            message = f"error getting log usage for project {project.project_id}: {e}"
            if not isolate_failures:
                raise AuditAborted(message, project_id=project.project_id) from e
            logger.warning(message)
            result.record(ProjectFailure(project_id=project.project_id, error=str(e)))
            continue

        result.record(evaluate_project(project.project_id, samples, ceiling))

    return result
