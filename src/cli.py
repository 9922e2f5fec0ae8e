#!/usr/bin/env python3
"""
CLI for the Fresh console: run chat commands and scheduled jobs from a terminal,
and manage the cloud schedules that trigger the Lambda.

Example usage:
    python cli.py --find "Alice"
    python cli.py --login --time 7:00 --date 2026-10-26 --location 13
    python cli.py --credit

Cloud scheduling:
    python cli.py --install-schedules
    python cli.py --list-jobs
    python cli.py --cancel-job fresh-console-weekly-login
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from api.base import MessageClient, UpstreamError
from api.client_factory import ConfigError, create_booking_client, load_settings
from commands import MessageProcessor
from credit_monitor import check_credit
from jobs import JobRunner
from metrics import LogMetrics


# Default config path is in project root (parent of src/)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.json"


class ConsoleMessageClient(MessageClient):
    """Prints chat replies to the terminal instead of posting them."""

    def send_message(self, text: str, image_url: Optional[str] = None) -> None:
        print(text)
        if image_url:
            print(f"  [image] {image_url}")
        print()


def build_command_text(args, default_start: str = "7:00") -> str:
    """Rebuild the chat command the flags describe, e.g. 'LOGIN 7:00 2026-10-26 13'."""
    if args.find:
        return f"FIND {args.find}"

    tokens = ["LOGIN"]
    if args.time or args.date or args.location is not None:
        tokens.append(args.time or default_start)
    if args.date or args.location is not None:
        if not args.date:
            raise SystemExit("Error: --location requires --date.")
        tokens.append(args.date)
    if args.location is not None:
        tokens.append(str(args.location))
    return " ".join(tokens)


def main():
    parser = argparse.ArgumentParser(
        description="Fresh console: class search and automated sign-up",
        epilog='Example: python cli.py --find "Alice"'
    )
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH),
                        help=f"Path to config.json (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--verbose", action="store_true",
                        help="Show debug logging")

    # Chat command equivalents
    parser.add_argument("--find", metavar="NAME",
                        help="List upcoming classes whose roster contains NAME")
    parser.add_argument("--login", action="store_true",
                        help="Sign up for a class (defaults: one week from today, 07:00, default location)")
    parser.add_argument("--time",
                        help="Class start time for --login (e.g., '7:00')")
    parser.add_argument("--date",
                        help="Class date for --login in YYYY-MM-DD format")
    parser.add_argument("--location", type=int,
                        help="Location ID for --login")

    # Scheduled jobs
    parser.add_argument("--credit", action="store_true",
                        help="Run the credit check once")
    parser.add_argument("--run-job", choices=["credit_check", "weekly_login"],
                        help="Run a scheduled job once, locally")

    # Cloud scheduling arguments
    parser.add_argument("--install-schedules", action="store_true",
                        help="Create or update the recurring EventBridge schedules")
    parser.add_argument("--list-jobs", action="store_true",
                        help="List all cloud-scheduled jobs")
    parser.add_argument("--cancel-job",
                        help="Cancel a cloud-scheduled job by name")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Handle cloud scheduling commands (no credentials required)
    if args.list_jobs:
        from scheduler import list_schedules
        schedules = list_schedules()
        if not schedules:
            print("No scheduled jobs.")
        else:
            print(f"Scheduled jobs ({len(schedules)}):\n")
            for s in schedules:
                print(f"  {s['name']}")
                print(f"    State:    {s['state']}")
                print(f"    Schedule: {s['schedule']} ({s['timezone']})")
                print(f"    Job:      {s['payload'].get('job', '?')}")
                print()
        sys.exit(0)

    if args.cancel_job:
        from scheduler import cancel_schedule
        try:
            cancel_schedule(args.cancel_job)
            print(f"Cancelled: {args.cancel_job}")
        except Exception as e:
            print(f"Error cancelling job: {e}")
            sys.exit(1)
        sys.exit(0)

    if not (args.find or args.login or args.credit or args.run_job or args.install_schedules):
        parser.error("choose one of --find, --login, --credit, --run-job, --install-schedules, "
                     "--list-jobs or --cancel-job")

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.install_schedules:
        from scheduler import install_schedules
        names = install_schedules(timezone=settings.timezone)
        print(f"Cloud jobs scheduled ({settings.timezone}):")
        for name in names:
            print(f"  {name}")
        sys.exit(0)

    booking_client = create_booking_client(settings)
    console = ConsoleMessageClient()

    if args.credit:
        try:
            check = check_credit(booking_client, settings.low_credit_threshold)
        except UpstreamError as e:
            print(f"Error getting credit: {e}")
            sys.exit(1)
        print(f"Credit:  {check.balance.valid}")
        print(f"Expired: {check.balance.expired}")
        if check.alert:
            print(f"Credit is low (threshold {settings.low_credit_threshold}).")
        sys.exit(0)

    if args.run_job:
        runner = JobRunner(
            booking_client,
            console,
            LogMetrics(),
            timezone=settings.timezone,
            default_location_id=settings.default_location_id,
            default_start=settings.default_start,
            low_credit_threshold=settings.low_credit_threshold,
        )
        runner.run(args.run_job)
        sys.exit(0)

    processor = MessageProcessor(
        booking_client,
        console,
        settings.bot_sender_id,
        timezone=settings.timezone,
        default_location_id=settings.default_location_id,
        default_start=settings.default_start,
    )
    command_text = build_command_text(args, settings.default_start)
    print(f"> {command_text}\n")
    processor.handle_text(command_text)
    sys.exit(0)


if __name__ == "__main__":
    main()
