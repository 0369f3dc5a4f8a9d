"""
Configuration management and loading.

Handles the audit settings file and its defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

import yaml

from log_budget_guard.core.budget import MonthlyBudget
from log_budget_guard.sources.gcp import DEFAULT_TIMEOUT_SECONDS
from log_budget_guard.sources.models import DEFAULT_WINDOW_HOURS

DEFAULT_MONTHLY_CAP = "50G"


@dataclass(frozen=True)
class QueryConfig:
    """Settings for metric queries."""
    window_hours: float = DEFAULT_WINDOW_HOURS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        """Validate query values are positive."""
        if self.window_hours <= 0:
            raise ValueError("window_hours must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


@dataclass(frozen=True)
class AuditConfig:
    """Complete audit configuration."""
    budget: MonthlyBudget = field(default_factory=lambda: MonthlyBudget.from_size(DEFAULT_MONTHLY_CAP))
    query: QueryConfig = field(default_factory=QueryConfig)
    isolate_failures: bool = False


def load_audit_config(path: str) -> AuditConfig:
    """Load and validate audit configuration from YAML file.

    Every section is optional; missing values fall back to the defaults
    (50G monthly cap, 2 hour window, 30 second timeout, fail-fast run).
    Unknown keys are rejected so typos never silently change the budget.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AuditConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Audit config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    # Empty or comments-only file means all defaults
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'budget', 'query', 'run'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    budget_data = _section(raw_config, 'budget', {'monthly_cap'})
    query_data = _section(raw_config, 'query', {'window_hours', 'timeout_seconds'})
    run_data = _section(raw_config, 'run', {'isolate_failures'})

    budget = MonthlyBudget.from_size(budget_data.get('monthly_cap', DEFAULT_MONTHLY_CAP))

    query = QueryConfig(
        window_hours=_positive_number(query_data, 'window_hours', DEFAULT_WINDOW_HOURS),
        timeout_seconds=_positive_number(query_data, 'timeout_seconds', DEFAULT_TIMEOUT_SECONDS)
    )

    isolate_failures = run_data.get('isolate_failures', False)
    if not isinstance(isolate_failures, bool):
        raise ValueError("'run.isolate_failures' must be true or false")

    return AuditConfig(budget=budget, query=query, isolate_failures=isolate_failures)


def _section(raw_config: Dict, name: str, allowed_keys: set) -> Dict:
    """Return an optional config section after checking its keys."""
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown {name} keys: {unknown_keys}")
    return data


def _positive_number(data: Dict, key: str, default: float) -> float:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"'{key}' must be > 0")
    return float(value)
