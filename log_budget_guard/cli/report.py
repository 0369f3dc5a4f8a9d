"""
Text and JSON rendering of audit results.
"""

import json
from typing import Any, Dict

from rich.console import Console
from rich.markup import escape

from log_budget_guard.core.aggregation import UsageReport
from log_budget_guard.core.audit_run import AuditRunResult, ProjectFailure
from log_budget_guard.core.byte_size import format_byte_size
from log_budget_guard.sources.models import ProjectInfo


def display_project_report(console: Console, report: UsageReport) -> None:
    """Print one project's breakdown, total and over-budget warning."""
    console.print(f"\n[bold]Project {escape(report.project_id)}[/bold]")

    for resource_type in sorted(report.by_resource):
        size = format_byte_size(report.by_resource[resource_type])
        console.print(f"{escape(resource_type)} - {size}")

    console.print(f"TOTAL - {format_byte_size(report.total_bytes)}")

    if report.over_budget:
        console.print(
            f"[bold yellow]{escape('[WARNING]')}[/] Current log ingestion of "
            f"{format_byte_size(report.total_bytes)} is greater than the target value of "
            f"{format_byte_size(report.ceiling_bytes)}, consider adding log exclusions"
        )


def display_audit_result(console: Console, result: AuditRunResult) -> None:
    """Print the full audit in the order projects were listed."""
    for outcome in result.outcomes:
        if isinstance(outcome, UsageReport):
            display_project_report(console, outcome)
        elif isinstance(outcome, ProjectInfo):
            console.print(
                f"\n[dim]Skipping project {escape(outcome.project_id)} "
                f"due to project state {escape(outcome.lifecycle_state)}[/]"
            )
        elif isinstance(outcome, ProjectFailure):
            console.print(
                f"\n[red]Error getting log usage for project {escape(outcome.project_id)}:[/] "
                f"{escape(outcome.error)}"
            )

    console.print(
        f"\nTarget for {result.evaluated_at.date().isoformat()}: "
        f"{format_byte_size(result.ceiling_bytes)} "
        f"({len(result.over_budget)} of {len(result.reports)} reporting projects over target)"
    )


def audit_result_to_dict(result: AuditRunResult) -> Dict[str, Any]:
    """JSON-serialisable view of an audit run."""
    return {
        "evaluated_at": result.evaluated_at.isoformat(),
        "ceiling_bytes": result.ceiling_bytes,
        "verdict": result.verdict.name,
        "projects": [
            {
                "project_id": report.project_id,
                "by_resource": dict(report.by_resource),
                "total_bytes": report.total_bytes,
                "over_budget": report.over_budget,
                "ceiling_bytes": report.ceiling_bytes,
            }
            for report in result.reports
        ],
        "skipped": [skip.project_id for skip in result.skipped],
        "inactive": [
            {"project_id": project.project_id, "lifecycle_state": project.lifecycle_state}
            for project in result.inactive
        ],
        "failures": [
            {"project_id": failure.project_id, "error": failure.error}
            for failure in result.failures
        ],
    }


def render_json(result: AuditRunResult) -> str:
    return json.dumps(audit_result_to_dict(result), indent=2, sort_keys=True)
