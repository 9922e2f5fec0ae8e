"""
AWS Lambda handler for the Fresh console.

Two kinds of events are handled:

GroupMe bot callback (Lambda function URL / API Gateway proxy event):
{
    "body": "{\"sender_id\": \"12345\", \"text\": \"FIND Alice\"}",
    "isBase64Encoded": false
}

EventBridge Scheduler trigger (see scheduler.py):
{
    "job": "credit_check"   // or "weekly_login"
}
"""

import base64
import json
import logging
import os

import boto3
from botocore.exceptions import ClientError

from api.client_factory import (
    ConfigError,
    Settings,
    create_booking_client,
    create_message_client,
    settings_from_dict,
)
from commands import MessageProcessor
from jobs import JobRunner
from metrics import CloudWatchMetrics


SECRET_NAME = "fresh-console/credentials"
REGION = os.environ.get("AWS_REGION", "eu-central-1")

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Reused across warm invocations so the location/type caches survive
_app = None


def get_secrets() -> dict:
    """Retrieve tokens and settings from AWS Secrets Manager."""
    client = boto3.client("secretsmanager", region_name=REGION)

    try:
        response = client.get_secret_value(SecretId=SECRET_NAME)
        return json.loads(response["SecretString"])
    except ClientError as e:
        raise ConfigError(f"Failed to retrieve secrets: {e}") from e


class App:
    """Clients and processors shared by every invocation of a warm Lambda."""

    def __init__(self, settings: Settings, booking_client=None, message_client=None, metrics=None):
        self.settings = settings
        self.booking_client = booking_client or create_booking_client(settings)
        self.message_client = message_client or create_message_client(settings)
        self.processor = MessageProcessor(
            self.booking_client,
            self.message_client,
            settings.bot_sender_id,
            timezone=settings.timezone,
            default_location_id=settings.default_location_id,
            default_start=settings.default_start,
        )
        self.jobs = JobRunner(
            self.booking_client,
            self.message_client,
            metrics or CloudWatchMetrics(settings.metrics_namespace),
            timezone=settings.timezone,
            default_location_id=settings.default_location_id,
            default_start=settings.default_start,
            low_credit_threshold=settings.low_credit_threshold,
        )


def get_app() -> App:
    global _app
    if _app is None:
        _app = App(settings_from_dict(get_secrets()))
    return _app


def _event_body(event: dict) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Returns:
        dict with statusCode and body
    """
    app = get_app()

    job_name = event.get("job")
    if job_name:
        logger.info("Received scheduled trigger: %s", job_name)
        try:
            ran = app.jobs.run(job_name)
        except ValueError as e:
            logger.error("%s", e)
            return {
                "statusCode": 400,
                "body": json.dumps({"error": str(e)})
            }
        return {
            "statusCode": 200,
            "body": json.dumps({"job": job_name, "ran": ran})
        }

    logger.info("Received message request")
    app.processor.process_message(_event_body(event))
    return {"statusCode": 200, "body": ""}
