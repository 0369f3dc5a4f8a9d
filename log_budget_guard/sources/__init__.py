"""
Project and metric sources for Log Budget Guard.

Provides the collaborators an audit run reads projects and usage from.
"""

from .models import MetricSource, ProjectInfo, ProjectSource, QueryWindow

__all__ = ["MetricSource", "ProjectInfo", "ProjectSource", "QueryWindow"]
