"""
Shared data model and client interfaces for the Fresh console.

The booking client (Fresh) and the chat client (GroupMe) implement the
ABCs below so the command dispatcher, the roster search and the scheduled
jobs can run against real platforms or in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional


@dataclass(frozen=True)
class Location:
    """A gym location as reported by the booking platform."""
    id: int
    key: str
    name: str

    @classmethod
    def empty(cls) -> "Location":
        return cls(id=0, key="", name="")


@dataclass(frozen=True)
class ClassType:
    """A kind of class (e.g. circuit training) and its capacity."""
    id: int
    name: str
    description: str
    capacity: int

    @classmethod
    def empty(cls) -> "ClassType":
        return cls(id=0, name="", description="", capacity=0)


@dataclass(frozen=True)
class ClassInstance:
    """A single scheduled class. Start is timezone-aware."""
    id: int
    start: datetime
    trainer: str
    location_id: int
    type_id: int
    occupancy: int


class RosterRole(Enum):
    PARTICIPANT = "participant"
    WAITLISTED = "waitlisted"
    TRAINER = "trainer"


@dataclass(frozen=True)
class RosterEntry:
    user_id: int
    role: RosterRole
    name: str


@dataclass(frozen=True)
class ClassRoster:
    """Roster of one class: user ids per role plus a user id -> name view."""
    class_id: int
    participants: tuple[int, ...] = ()
    waitlisted: tuple[int, ...] = ()
    trainers: tuple[int, ...] = ()
    names: Mapping[int, str] = field(default_factory=lambda: MappingProxyType({}))

    def user_name(self, user_id: int) -> str:
        return self.names.get(user_id, "")

    @property
    def entries(self) -> Iterator[RosterEntry]:
        """Yield one entry per (role list, user id) pair, participants first."""
        for role, user_ids in (
            (RosterRole.PARTICIPANT, self.participants),
            (RosterRole.TRAINER, self.trainers),
            (RosterRole.WAITLISTED, self.waitlisted),
        ):
            for user_id in user_ids:
                yield RosterEntry(user_id=user_id, role=role, name=self.user_name(user_id))


@dataclass(frozen=True)
class CreditRecord:
    id: int
    left_amount: int
    expires_at: datetime


@dataclass(frozen=True)
class CreditBalance:
    """Usable and expired-but-unused credit."""
    valid: int = 0
    expired: int = 0

    @classmethod
    def from_records(cls, records: list[CreditRecord], now: datetime) -> "CreditBalance":
        """
        Sum the remaining amount of every record with credit left.

        A record expiring exactly at ``now`` still counts as valid.
        """
        valid = 0
        expired = 0
        for record in records:
            if record.left_amount <= 0:
                continue
            if record.expires_at >= now:
                valid += record.left_amount
            else:
                expired += record.left_amount
        return cls(valid=valid, expired=expired)


class BookingClientError(Exception):
    """Base exception for booking client errors."""

    def __init__(self, message: str, platform: str = "unknown"):
        self.platform = platform
        super().__init__(f"[{platform}] {message}")


class UpstreamError(BookingClientError):
    """A platform call failed: transport error, non-2xx status or bad body."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None,
        platform: str = "fresh",
    ):
        self.status = status
        self.cause = cause
        super().__init__(message, platform=platform)


class NotFoundError(BookingClientError):
    """No class matches the requested location and start time."""

    def __init__(self, message: str):
        super().__init__(message, platform="fresh")


class BookingClient(ABC):
    """Abstract interface of the class booking platform."""

    @abstractmethod
    def fetch_locations(self) -> list[Location]:
        """Fetch all locations and replace the location cache."""
        ...

    @abstractmethod
    def fetch_types(self) -> list[ClassType]:
        """Fetch all class types and replace the type cache."""
        ...

    @abstractmethod
    def lookup_location(self, location_id: int) -> Location:
        """Return the cached location, or ``Location.empty()``."""
        ...

    @abstractmethod
    def lookup_type(self, type_id: int) -> ClassType:
        """Return the cached class type, or ``ClassType.empty()``."""
        ...

    @abstractmethod
    def upcoming_classes(self, location_id: int) -> list[ClassInstance]:
        """
        Fetch the upcoming classes of a location.

        Args:
            location_id: Location identifier

        Returns:
            Classes in the order the platform reports them

        Raises:
            UpstreamError: If the request fails
        """
        ...

    @abstractmethod
    def class_roster(self, class_id: int) -> ClassRoster:
        """Fetch the roster of one class."""
        ...

    @abstractmethod
    def credit_balance(self, now: Optional[datetime] = None) -> CreditBalance:
        """Fetch credit records and split them into valid and expired."""
        ...

    @abstractmethod
    def join_class(self, class_id: int) -> None:
        """
        Sign the account up for a class.

        Raises:
            UpstreamError: If the platform rejects the request (e.g. class full)
        """
        ...


class MessageClient(ABC):
    """Abstract interface of the chat platform's outbound side."""

    @abstractmethod
    def send_message(self, text: str, image_url: Optional[str] = None) -> None:
        """Post a message to the group. Raises UpstreamError on failure."""
        ...
