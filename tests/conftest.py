import sys
import threading
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from zoneinfo import ZoneInfo

import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from api.base import (  # noqa: E402
    BookingClient,
    ClassInstance,
    ClassRoster,
    ClassType,
    CreditBalance,
    Location,
    MessageClient,
    UpstreamError,
)

PRAGUE = ZoneInfo("Europe/Prague")


class FakeBookingClient(BookingClient):
    """In-memory booking platform that records every call."""

    def __init__(
        self,
        locations=(),
        types=(),
        classes=None,
        rosters=None,
        balance=None,
        failing_locations=(),
        failing_rosters=(),
        locations_error=None,
        types_error=None,
        join_error=None,
    ) -> None:
        self.locations = list(locations)
        self.types = list(types)
        self.classes = classes or {}
        self.rosters = rosters or {}
        self.balance = balance or CreditBalance()
        self.failing_locations = set(failing_locations)
        self.failing_rosters = set(failing_rosters)
        self.locations_error = locations_error
        self.types_error = types_error
        self.join_error = join_error
        self.calls = []
        self.joined = []
        self._type_cache = {}
        self._location_cache = {}
        self._lock = threading.Lock()

    def _record(self, *call) -> None:
        with self._lock:
            self.calls.append(call)

    def fetch_locations(self):
        self._record("fetch_locations")
        if self.locations_error:
            raise self.locations_error
        self._location_cache = {location.id: location for location in self.locations}
        return list(self.locations)

    def fetch_types(self):
        self._record("fetch_types")
        if self.types_error:
            raise self.types_error
        self._type_cache = {class_type.id: class_type for class_type in self.types}
        return list(self.types)

    def lookup_location(self, location_id):
        return self._location_cache.get(location_id, Location.empty())

    def lookup_type(self, type_id):
        return self._type_cache.get(type_id, ClassType.empty())

    def upcoming_classes(self, location_id):
        self._record("upcoming_classes", location_id)
        if location_id in self.failing_locations:
            raise UpstreamError("Fetch upcoming classes failed: 503", status=503)
        return list(self.classes.get(location_id, []))

    def class_roster(self, class_id):
        self._record("class_roster", class_id)
        if class_id in self.failing_rosters:
            raise UpstreamError("Fetch roster failed: timed out")
        return self.rosters.get(class_id, ClassRoster(class_id=class_id))

    def credit_balance(self, now=None):
        self._record("credit_balance")
        if isinstance(self.balance, Exception):
            raise self.balance
        return self.balance

    def join_class(self, class_id):
        self._record("join_class", class_id)
        if self.join_error:
            raise self.join_error
        self.joined.append(class_id)


class RecordingMessageClient(MessageClient):
    def __init__(self, error=None) -> None:
        self.messages = []
        self.error = error

    def send_message(self, text, image_url=None):
        if self.error:
            raise self.error
        self.messages.append(text)


class RecordingMetrics:
    def __init__(self) -> None:
        self.gauges = []

    def gauge(self, name, value):
        self.gauges.append((name, value))


def make_class(class_id, start, location_id=1, type_id=1, trainer="Trainer", occupancy=5):
    return ClassInstance(
        id=class_id,
        start=start,
        trainer=trainer,
        location_id=location_id,
        type_id=type_id,
        occupancy=occupancy,
    )


def make_roster(class_id, participants=(), waitlisted=(), trainers=(), names=None):
    return ClassRoster(
        class_id=class_id,
        participants=tuple(participants),
        waitlisted=tuple(waitlisted),
        trainers=tuple(trainers),
        names=MappingProxyType(dict(names or {})),
    )


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 12, 0, tzinfo=PRAGUE)


@pytest.fixture
def messages():
    return RecordingMessageClient()
