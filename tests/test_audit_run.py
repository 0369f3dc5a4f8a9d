"""
Tests for the organization-wide audit run.
"""
from datetime import timedelta

import pytest

from log_budget_guard.core.audit_run import AuditAborted, AuditVerdict, run_audit
from log_budget_guard.core.auditor import Skip
from log_budget_guard.core.budget import MonthlyBudget
from log_budget_guard.sources.models import ProjectInfo

BUDGET = MonthlyBudget.from_size("50G")


class TestRunAudit:
    """Test orchestration across projects."""

    def test_ceiling_computed_from_instant(self, project_source, metric_source, instant):
        """Test the ceiling is prorated to the evaluation instant."""
        result = run_audit(project_source, metric_source, BUDGET, instant)

        assert result.ceiling_bytes == 17_895_697_066
        assert result.evaluated_at == instant

    def test_reports_over_budget_project(self, project_source, metric_source, instant):
        """Test an over-budget project gives a WARN verdict."""
        result = run_audit(project_source, metric_source, BUDGET, instant)

        assert [r.project_id for r in result.reports] == ["p1", "p2"]
        p1 = result.reports[0]
        assert p1.total_bytes == 19_000_000_000
        assert p1.over_budget is True
        assert result.reports[1].over_budget is False
        assert [r.project_id for r in result.over_budget] == ["p1"]
        assert result.verdict == AuditVerdict.WARN

    def test_pass_when_within_budget(self, project_source, metric_source, instant):
        """Test a larger cap leaves every project within target."""
        result = run_audit(project_source, metric_source, MonthlyBudget.from_size("100G"), instant)

        assert result.over_budget == []
        assert result.verdict == AuditVerdict.PASS

    def test_inactive_projects_not_queried(self, project_source, metric_source, instant):
        """Test projects that are not ACTIVE are recorded and never fetched."""
        result = run_audit(project_source, metric_source, BUDGET, instant)

        assert [p.project_id for p in result.inactive] == ["old"]
        assert "old" not in [call[0] for call in metric_source.calls]

    def test_query_window_ends_at_instant(self, project_source, metric_source, instant):
        """Test the default window covers the two hours before the instant."""
        run_audit(project_source, metric_source, BUDGET, instant)

        _, window = metric_source.calls[0]
        assert window.end == instant
        assert window.start == instant - timedelta(hours=2)

    def test_custom_window_hours(self, project_source, metric_source, instant):
        """Test the window length is configurable."""
        run_audit(project_source, metric_source, BUDGET, instant, window_hours=6)

        _, window = metric_source.calls[0]
        assert window.end - window.start == timedelta(hours=6)

    def test_project_without_usage_is_skipped(self, make_project_source, metric_source, instant):
        """Test projects with zero ingestion produce no report."""
        source = make_project_source([ProjectInfo(project_id="quiet", lifecycle_state="ACTIVE")])

        result = run_audit(source, metric_source, BUDGET, instant)

        assert result.reports == []
        assert result.skipped == [Skip(project_id="quiet")]
        assert result.verdict == AuditVerdict.PASS

    def test_outcomes_follow_listing_order(self, make_project_source, metric_source, instant):
        """Test every kind of outcome is kept in the order projects were listed."""
        source = make_project_source([
            ProjectInfo(project_id="old", lifecycle_state="DELETE_REQUESTED"),
            ProjectInfo(project_id="p2", lifecycle_state="ACTIVE"),
            ProjectInfo(project_id="quiet", lifecycle_state="ACTIVE"),
            ProjectInfo(project_id="p1", lifecycle_state="ACTIVE"),
        ])

        result = run_audit(source, metric_source, BUDGET, instant)

        assert [o.project_id for o in result.outcomes] == ["old", "p2", "quiet", "p1"]
        assert [type(o).__name__ for o in result.outcomes] == [
            "ProjectInfo", "UsageReport", "Skip", "UsageReport"
        ]
        assert [r.project_id for r in result.reports] == ["p2", "p1"]

    def test_listing_failure_aborts(self, make_project_source, metric_source, instant):
        """Test a project listing error stops the run."""
        source = make_project_source([], error=RuntimeError("unauthenticated"))

        with pytest.raises(AuditAborted, match="error getting list of projects: unauthenticated") as excinfo:
            run_audit(source, metric_source, BUDGET, instant)

        assert excinfo.value.project_id is None
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_fetch_failure_aborts_by_default(self, project_source, failing_metric_source, instant):
        """Test one project's fetch error stops the whole run."""
        with pytest.raises(AuditAborted, match="error getting log usage for project p1") as excinfo:
            run_audit(project_source, failing_metric_source, BUDGET, instant)

        assert excinfo.value.project_id == "p1"
        assert [call[0] for call in failing_metric_source.calls] == ["p1"]

    def test_fetch_failure_isolated(self, project_source, failing_metric_source, instant):
        """Test isolated failures are recorded and the run continues."""
        result = run_audit(
            project_source, failing_metric_source, BUDGET, instant, isolate_failures=True
        )

        assert [f.project_id for f in result.failures] == ["p1"]
        assert "permission denied" in result.failures[0].error
        assert [r.project_id for r in result.reports] == ["p2"]
        assert result.verdict == AuditVerdict.FAIL

    def test_interrupt_propagates(self, project_source, instant):
        """Test a user interrupt stops iteration between projects."""
        class InterruptingSource:
            def __init__(self):
                self.calls = 0

            def fetch_ingestion_samples(self, project_id, window):
                self.calls += 1
                raise KeyboardInterrupt

        source = InterruptingSource()

        with pytest.raises(KeyboardInterrupt):
            run_audit(project_source, source, BUDGET, instant, isolate_failures=True)

        assert source.calls == 1
