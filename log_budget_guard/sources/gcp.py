"""
Google Cloud project and metric sources.

Lists projects through Resource Manager and reads log ingestion from Cloud
Monitoring. Credentials come from Application Default Credentials; any
client or API failure is propagated to the caller unchanged.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as api_exceptions
from google.api_core import retry as api_retry
from google.cloud import monitoring_v3
from google.cloud import resourcemanager_v3

from ..core.aggregation import UsageSample
from .models import ProjectInfo, QueryWindow

logger = logging.getLogger(__name__)

INGESTION_METRIC = "logging.googleapis.com/billing/monthly_bytes_ingested"
DEFAULT_TIMEOUT_SECONDS = 30.0

_TRANSIENT_ERRORS = (
    api_exceptions.ServiceUnavailable,
    api_exceptions.DeadlineExceeded,
    api_exceptions.InternalServerError,
    api_exceptions.TooManyRequests,
)


def build_retry(timeout: float = DEFAULT_TIMEOUT_SECONDS) -> api_retry.Retry:
    """Retry policy for transient API errors, bounded by ``timeout`` seconds overall."""
    return api_retry.Retry(
        predicate=api_retry.if_exception_type(*_TRANSIENT_ERRORS),
        initial=1.0,
        maximum=10.0,
        multiplier=2.0,
        timeout=timeout
    )


def _to_timestamp(moment: datetime) -> Dict[str, int]:
    return {"seconds": int(moment.timestamp()), "nanos": moment.microsecond * 1000}


class GcpProjectSource:
    """Lists every project the credentials can see."""

    def __init__(self, client: Optional[Any] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """Initialize the project source.

        Args:
            client: Resource Manager ProjectsClient (created from default credentials if omitted)
            timeout: Per-call timeout in seconds
        """
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self.timeout = timeout
        self.client = client or resourcemanager_v3.ProjectsClient()

    def list_projects(self) -> List[ProjectInfo]:
        """List visible projects with their lifecycle state.

        Raises:
            google.api_core.exceptions.GoogleAPIError: Propagated without modification
        """
        pager = self.client.search_projects(
            request={"query": ""},
            retry=build_retry(self.timeout),
            timeout=self.timeout
        )
        projects = [
            ProjectInfo(project_id=project.project_id, lifecycle_state=project.state.name)
            for project in pager
        ]
        logger.debug("Listed %d projects", len(projects))
        return projects


class GcpMetricSource:
    """Reads monthly log ingestion time series from Cloud Monitoring."""

    def __init__(
        self,
        client: Optional[Any] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        metric_type: str = INGESTION_METRIC
    ):
        """Initialize the metric source.

        Args:
            client: Monitoring MetricServiceClient (created from default credentials if omitted)
            timeout: Per-call timeout in seconds
            metric_type: Metric to query
        """
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self.timeout = timeout
        self.metric_type = metric_type
        self.client = client or monitoring_v3.MetricServiceClient()

    def fetch_ingestion_samples(self, project_id: str, window: QueryWindow) -> List[UsageSample]:
        """Fetch one sample per ingestion time series of ``project_id``.

        Only the first point of each series is read. Series without points or
        with a negative value are dropped.

        Args:
            project_id: Project to query
            window: Query interval

        Returns:
            Samples carrying the project id reported by each series

        Raises:
            google.api_core.exceptions.GoogleAPIError: Propagated without modification
        """
        interval = monitoring_v3.TimeInterval({
            "start_time": _to_timestamp(window.start),
            "end_time": _to_timestamp(window.end),
        })

        pager = self.client.list_time_series(
            request={
                "name": f"projects/{project_id}",
                "filter": f'metric.type="{self.metric_type}"',
                "interval": interval,
                "view": monitoring_v3.ListTimeSeriesRequest.TimeSeriesView.FULL,
            },
            retry=build_retry(self.timeout),
            timeout=self.timeout
        )

        samples = []
        for series in pager:
            resource_type = series.metric.labels.get("resource_type", "")
            if not series.points:
                logger.warning("Series %s in project %s has no points", resource_type, project_id)
                continue

            # TODO: sum or pick the latest point if the metric ever returns more than one
            value = series.points[0].value.int64_value
            if value < 0:
                logger.warning(
                    "Dropping negative ingestion value %d for %s in project %s",
                    value, resource_type, project_id
                )
                continue

            samples.append(UsageSample(
                project_id=series.resource.labels.get("project_id", ""),
                resource_type=resource_type,
                bytes=value
            ))

        logger.debug("Fetched %d ingestion samples for project %s", len(samples), project_id)
        return samples
