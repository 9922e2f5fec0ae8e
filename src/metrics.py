"""
CloudWatch gauge publishing for scheduled jobs.

Publishing is best-effort: errors are logged and never raised to the job.
"""

import logging
import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError

REGION = os.environ.get("AWS_REGION", "eu-central-1")

logger = logging.getLogger(__name__)


class CloudWatchMetrics:
    """Publishes named numeric gauges to a CloudWatch namespace."""

    def __init__(self, namespace: str = "FreshConsole", client=None):
        self.namespace = namespace
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client("cloudwatch", region_name=REGION)
        return self._client

    def gauge(self, name: str, value: float) -> None:
        try:
            self._get_client().put_metric_data(
                Namespace=self.namespace,
                MetricData=[{"MetricName": name, "Value": float(value), "Unit": "Count"}],
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Failed to publish metric %s=%s: %s", name, value, e)


class LogMetrics:
    """Gauge sink that only writes to the log (CLI and local runs)."""

    def gauge(self, name: str, value: float) -> None:
        logger.info("Metric %s=%s", name, value)
