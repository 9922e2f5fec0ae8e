"""
Scheduled jobs: hourly credit check and weekly class sign-up.

Each job holds its own run lock; an invocation that arrives while the
previous run of the same job is still in progress is skipped.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from api.base import BookingClient, MessageClient, NotFoundError, UpstreamError
from booking import login_for_class
from commands import DISPLAY_FORMAT, parse_start
from credit_monitor import LOW_CREDIT_THRESHOLD, check_credit


logger = logging.getLogger(__name__)

CREDIT_CHECK = "credit_check"
WEEKLY_LOGIN = "weekly_login"

# EventBridge Scheduler cron expressions, evaluated in the civil timezone
JOB_SCHEDULES = {
    CREDIT_CHECK: "cron(0 * * * ? *)",
    WEEKLY_LOGIN: "cron(5 0 ? * MON *)",
}


class JobRunner:
    def __init__(
        self,
        booking_client: BookingClient,
        message_client: MessageClient,
        metrics,
        timezone: str = "Europe/Prague",
        default_location_id: int = 13,
        default_start: str = "07:00",
        low_credit_threshold: int = LOW_CREDIT_THRESHOLD,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.booking_client = booking_client
        self.message_client = message_client
        self.metrics = metrics
        self.tz = ZoneInfo(timezone)
        self.default_location_id = default_location_id
        self.default_start = default_start
        self.low_credit_threshold = low_credit_threshold
        self._clock = clock or (lambda: datetime.now(self.tz))
        self._jobs = {
            CREDIT_CHECK: self.credit_check,
            WEEKLY_LOGIN: self.weekly_login,
        }
        self._locks = {name: threading.Lock() for name in self._jobs}

    def run(self, job_name: str) -> bool:
        """
        Run a job unless its previous run is still in progress.

        Returns:
            True if the job ran, False if it was skipped

        Raises:
            ValueError: If the job name is unknown
        """
        if job_name not in self._jobs:
            raise ValueError(f"Unknown job: {job_name}")

        lock = self._locks[job_name]
        if not lock.acquire(blocking=False):
            logger.warning("Job %s is still running; skipping this trigger", job_name)
            return False
        try:
            logger.info("Running job %s", job_name)
            self._jobs[job_name]()
        finally:
            lock.release()
        return True

    def credit_check(self) -> None:
        try:
            check = check_credit(self.booking_client, self.low_credit_threshold, self._clock())
        except UpstreamError as e:
            logger.error("Error getting credit: %s", e)
            self._send(f"Error getting credit: {e}")
            return

        balance = check.balance
        logger.info("Credit: %d, Expired: %d", balance.valid, balance.expired)
        if check.alert:
            self._send(f"Credit is low: {balance.valid}")
        self.metrics.gauge("Credit", balance.valid)
        self.metrics.gauge("ExpiredCredit", balance.expired)

    def weekly_login(self) -> None:
        target_date = (self._clock() + timedelta(days=7)).strftime("%Y-%m-%d")
        start = parse_start(self.default_start, target_date, self.tz)
        when = start.strftime(DISPLAY_FORMAT)
        try:
            login_for_class(self.booking_client, self.default_location_id, start)
        except NotFoundError:
            logger.error("No class found for %s", when)
            self._send(f"Error logging in: no class found for {when}")
            return
        except UpstreamError as e:
            logger.error("Error logging in: %s", e)
            self._send(f"Error logging in: {e}")
            return
        self._send(f"Logged in for {when}")

    def _send(self, text: str) -> None:
        try:
            self.message_client.send_message(text)
        except UpstreamError as e:
            logger.error("Failed to send message: %s", e)
