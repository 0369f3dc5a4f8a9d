"""
CLI interface for Log Budget Guard.

Provides command-line access to the ingestion audit and budget proration.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Tuple

import typer
from google.auth import exceptions as auth_exceptions
from rich.console import Console
from rich.logging import RichHandler

from log_budget_guard.cli.report import display_audit_result, render_json
from log_budget_guard.config.loader import AuditConfig, QueryConfig, load_audit_config
from log_budget_guard.core.audit_run import AuditAborted, AuditVerdict, run_audit
from log_budget_guard.core.budget import MonthlyBudget
from log_budget_guard.core.byte_size import format_byte_size
from log_budget_guard.sources.gcp import GcpMetricSource, GcpProjectSource

app = typer.Typer()
console = Console(soft_wrap=True)

# Exit codes - WARN is non-failing (0) unless --enforced is given
EXIT_CODE_PASS = 0
EXIT_CODE_WARN = 0
EXIT_CODE_FAIL = 1
EXIT_CODE_INTERRUPTED = 130


def _verdict_to_exit_code(verdict: AuditVerdict, enforced: bool) -> int:
    """Convert audit verdict to CLI exit code."""
    if verdict == AuditVerdict.WARN and enforced:
        return EXIT_CODE_FAIL
    return {
        AuditVerdict.PASS: EXIT_CODE_PASS,
        AuditVerdict.WARN: EXIT_CODE_WARN,
        AuditVerdict.FAIL: EXIT_CODE_FAIL,
    }[verdict]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _load_config(
    config_path: Optional[str],
    cap: Optional[str],
    window_hours: Optional[float] = None
) -> AuditConfig:
    """Load the config file, then apply command line overrides."""
    config = load_audit_config(config_path) if config_path else AuditConfig()
    budget = MonthlyBudget.from_size(cap) if cap is not None else config.budget
    query = config.query
    if window_hours is not None:
        query = QueryConfig(window_hours=window_hours, timeout_seconds=query.timeout_seconds)
    return AuditConfig(budget=budget, query=query, isolate_failures=config.isolate_failures)


def _build_sources(timeout: float) -> Tuple[GcpProjectSource, GcpMetricSource]:
    """Create Google Cloud sources from Application Default Credentials."""
    return GcpProjectSource(timeout=timeout), GcpMetricSource(timeout=timeout)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Log Budget Guard CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Log Budget Guard - Use --help to see available commands")


@app.command()
def audit(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML audit configuration"
    ),
    cap: Optional[str] = typer.Option(
        None,
        "--cap",
        help="Monthly ingestion cap, e.g. 50G (overrides config)"
    ),
    window_hours: Optional[float] = typer.Option(
        None,
        "--window-hours",
        help="Length of the metric query window in hours (overrides config)"
    ),
    isolate_failures: bool = typer.Option(
        False,
        "--isolate-failures",
        help="Report a project's fetch error and continue instead of aborting"
    ),
    enforced: bool = typer.Option(
        False,
        "--enforced",
        "-e",
        help="Exit with error code if any project is over its target"
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """
    Audit this month's log ingestion of every active project.

    Each project's ingestion is compared with the monthly cap prorated to
    today's UTC date. Projects with no measured ingestion are not listed.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_path, cap, window_hours)
    except Exception as e:
        console.print(f"[red]Invalid configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    try:
        project_source, metric_source = _build_sources(config.query.timeout_seconds)
        result = run_audit(
            project_source=project_source,
            metric_source=metric_source,
            budget=config.budget,
            instant=_now(),
            window_hours=config.query.window_hours,
            isolate_failures=isolate_failures or config.isolate_failures
        )
    except auth_exceptions.GoogleAuthError as e:
        console.print(f"[red]Error creating required services:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except AuditAborted as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except KeyboardInterrupt:
        console.print("\n[yellow]Audit interrupted[/]")
        sys.exit(EXIT_CODE_INTERRUPTED)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        typer.echo(render_json(result))
    else:
        display_audit_result(console, result)

    sys.exit(_verdict_to_exit_code(result.verdict, enforced))


@app.command()
def ceiling(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML audit configuration"
    ),
    cap: Optional[str] = typer.Option(
        None,
        "--cap",
        help="Monthly ingestion cap, e.g. 50G (overrides config)"
    ),
    on_date: Optional[datetime] = typer.Option(
        None,
        "--date",
        "-d",
        formats=["%Y-%m-%d"],
        help="Date to prorate to (defaults to today, UTC)"
    )
):
    """Show the prorated ingestion target for a date (today's UTC date by default)."""
    try:
        config = _load_config(config_path, cap)
    except Exception as e:
        console.print(f"[red]Invalid configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    day = on_date.date() if on_date else _now().date()
    target = config.budget.ceiling_for(day)

    console.print(f"Monthly cap: {format_byte_size(config.budget.cap_bytes)} ({config.budget.cap_bytes:,} bytes)")
    console.print(f"Target for {day.isoformat()}: {format_byte_size(target)} ({target:,} bytes)")
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
