"""
Shared fixtures: in-memory project and metric sources.
"""

from datetime import datetime, timezone

import pytest

from log_budget_guard.core.aggregation import UsageSample
from log_budget_guard.sources.models import ProjectInfo

# 10th of September (30 days) so a 50G cap prorates to 17,895,697,066 bytes
INSTANT = datetime(2026, 9, 10, 12, 0, tzinfo=timezone.utc)


class FakeProjectSource:
    """Project source returning a fixed list."""

    def __init__(self, projects, error=None):
        self.projects = projects
        self.error = error

    def list_projects(self):
        if self.error is not None:
            raise self.error
        return list(self.projects)


class FakeMetricSource:
    """Metric source returning canned samples per project."""

    def __init__(self, samples_by_project, failing=()):
        self.samples_by_project = samples_by_project
        self.failing = set(failing)
        self.calls = []

    def fetch_ingestion_samples(self, project_id, window):
        self.calls.append((project_id, window))
        if project_id in self.failing:
            raise RuntimeError(f"permission denied on {project_id}")
        return list(self.samples_by_project.get(project_id, []))


@pytest.fixture
def instant():
    return INSTANT


@pytest.fixture
def projects():
    return [
        ProjectInfo(project_id="p1", lifecycle_state="ACTIVE"),
        ProjectInfo(project_id="p2", lifecycle_state="ACTIVE"),
        ProjectInfo(project_id="old", lifecycle_state="DELETE_REQUESTED"),
    ]


@pytest.fixture
def samples_by_project():
    return {
        "p1": [
            UsageSample(project_id="p1", resource_type="gce_instance", bytes=10_000_000_000),
            UsageSample(project_id="p1", resource_type="k8s_cluster", bytes=9_000_000_000),
        ],
        "p2": [
            UsageSample(project_id="p2", resource_type="cloud_function", bytes=1_000_000),
        ],
    }


@pytest.fixture
def project_source(projects):
    return FakeProjectSource(projects)


@pytest.fixture
def metric_source(samples_by_project):
    return FakeMetricSource(samples_by_project)


@pytest.fixture
def failing_metric_source(samples_by_project):
    return FakeMetricSource(samples_by_project, failing={"p1"})


@pytest.fixture
def make_project_source():
    return FakeProjectSource
