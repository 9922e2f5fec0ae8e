"""
EventBridge Scheduler wrapper for the Fresh console's recurring jobs.

Creates recurring cron schedules that invoke the Lambda function with
{"job": "<name>"}. Cron expressions are evaluated in the civil timezone
so the weekly sign-up follows daylight-saving shifts.
"""

import json
import os

import boto3
from botocore.exceptions import ClientError

from jobs import JOB_SCHEDULES

# AWS resource constants
REGION = os.environ.get("AWS_REGION", "eu-central-1")
LAMBDA_ARN = os.environ.get(
    "FRESH_CONSOLE_LAMBDA_ARN",
    "arn:aws:lambda:eu-central-1:000000000000:function:fresh-console",
)
SCHEDULER_ROLE_ARN = os.environ.get(
    "FRESH_CONSOLE_SCHEDULER_ROLE_ARN",
    "arn:aws:iam::000000000000:role/fresh-console-scheduler-role",
)
SCHEDULE_GROUP = "fresh-console"


def _get_client():
    """Get an EventBridge Scheduler client."""
    return boto3.client("scheduler", region_name=REGION)


def _get_lambda_client():
    """Get a Lambda client."""
    return boto3.client("lambda", region_name=REGION)


def _limit_concurrency(lambda_client):
    """Allow one invocation of the function at a time so a job never overlaps itself."""
    lambda_client.put_function_concurrency(
        FunctionName=LAMBDA_ARN,
        ReservedConcurrentExecutions=1,
    )


def _ensure_schedule_group(client):
    """Create the schedule group if it doesn't exist."""
    try:
        client.get_schedule_group(Name=SCHEDULE_GROUP)
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            client.create_schedule_group(Name=SCHEDULE_GROUP)
            print(f"Created schedule group: {SCHEDULE_GROUP}")
        else:
            raise


def _make_schedule_name(job_name: str) -> str:
    """
    Schedule names are fixed per job so re-installing updates in place.

    E.g.: fresh-console-weekly-login
    """
    return f"fresh-console-{job_name.replace('_', '-')}"


def _schedule_kwargs(job_name: str, expression: str, timezone: str) -> dict:
    return {
        "Name": _make_schedule_name(job_name),
        "GroupName": SCHEDULE_GROUP,
        "ScheduleExpression": expression,
        "ScheduleExpressionTimezone": timezone,
        "FlexibleTimeWindow": {"Mode": "OFF"},
        "Target": {
            "Arn": LAMBDA_ARN,
            "RoleArn": SCHEDULER_ROLE_ARN,
            "Input": json.dumps({"job": job_name}),
            "RetryPolicy": {"MaximumRetryAttempts": 0},
        },
    }


def install_schedules(timezone: str = "Europe/Prague", client=None, lambda_client=None) -> list[str]:
    """
    Create or update one recurring schedule per job.

    Failed invocations are not retried and the function is limited to one
    concurrent execution, so a sign-up is never submitted twice by the scheduler.

    Args:
        timezone: IANA timezone the cron expressions are evaluated in
        client: Optional pre-built scheduler client
        lambda_client: Optional pre-built Lambda client

    Returns:
        The schedule names.
    """
    client = client or _get_client()
    _limit_concurrency(lambda_client or _get_lambda_client())
    _ensure_schedule_group(client)

    names = []
    for job_name, expression in JOB_SCHEDULES.items():
        kwargs = _schedule_kwargs(job_name, expression, timezone)
        try:
            client.create_schedule(**kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConflictException":
                raise
            client.update_schedule(**kwargs)
        names.append(kwargs["Name"])

    return names


def list_schedules(client=None) -> list[dict]:
    """
    List all schedules in the group.

    Returns:
        List of schedule dicts with name, state, schedule expression and payload.
    """
    client = client or _get_client()

    try:
        response = client.list_schedules(GroupName=SCHEDULE_GROUP)
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            return []
        raise

    schedules = []
    for s in response.get("Schedules", []):
        # Fetch full details to get the schedule expression and payload
        try:
            detail = client.get_schedule(Name=s["Name"], GroupName=SCHEDULE_GROUP)
            payload = json.loads(detail["Target"].get("Input", "{}"))
            expression = detail.get("ScheduleExpression", "")
            timezone = detail.get("ScheduleExpressionTimezone", "")
        except (ClientError, json.JSONDecodeError):
            payload = {}
            expression = ""
            timezone = ""

        schedules.append({
            "name": s["Name"],
            "state": s.get("State", "UNKNOWN"),
            "schedule": expression,
            "timezone": timezone,
            "payload": payload,
        })

    return schedules


def cancel_schedule(name: str, client=None) -> None:
    """
    Delete a schedule by name.

    Args:
        name: The schedule name to delete.
    """
    client = client or _get_client()
    client.delete_schedule(Name=name, GroupName=SCHEDULE_GROUP)
