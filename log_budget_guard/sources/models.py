"""
Data models shared by project and metric sources.

Defines the collaborator interfaces the audit run depends on.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Protocol

from ..core.aggregation import UsageSample

ACTIVE_STATE = "ACTIVE"
DEFAULT_WINDOW_HOURS = 2


@dataclass(frozen=True)
class ProjectInfo:
    """A project as listed by the resource manager."""
    project_id: str
    lifecycle_state: str

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state == ACTIVE_STATE


@dataclass(frozen=True)
class QueryWindow:
    """Time interval a metric query covers."""
    start: datetime
    end: datetime

    def __post_init__(self):
        """Validate time window is logical."""
        if self.start > self.end:
            raise ValueError("window start must be before window end")

    @classmethod
    def ending_at(cls, instant: datetime, hours: float = DEFAULT_WINDOW_HOURS) -> "QueryWindow":
        """Window of ``hours`` length ending at ``instant``."""
        if hours <= 0:
            raise ValueError("window hours must be > 0")
        return cls(start=instant - timedelta(hours=hours), end=instant)


class ProjectSource(Protocol):
    """Enumerates the projects visible to the caller."""

    def list_projects(self) -> List[ProjectInfo]:
        ...


class MetricSource(Protocol):
    """Fetches ingestion samples for one project."""

    def fetch_ingestion_samples(self, project_id: str, window: QueryWindow) -> List[UsageSample]:
        ...
