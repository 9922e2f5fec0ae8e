"""
Fresh API client for browsing classes and signing up via direct API calls.

Location and class type lookups are served from in-memory snapshots that
are swapped wholesale on every successful fetch, so concurrent readers
never see a partially populated map.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Optional
from zoneinfo import ZoneInfo

import requests

from .base import (
    BookingClient,
    ClassInstance,
    ClassRoster,
    ClassType,
    CreditBalance,
    CreditRecord,
    Location,
    UpstreamError,
)


BASE_URL = "https://api.freshkruhac.cz"
DEFAULT_TIMEZONE = "Europe/Prague"

LOCATION_PATH = "/v2/training/location"
TYPE_PATH = "/v2/training/type"
NEXT_PATH = "/v2/training/next/{location_id}"
TRAINING_PATH = "/v2/training/{class_id}"
CREDIT_PATH = "/v2/user/credit"
JOIN_PATH = "/v2/training/{class_id}/join"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FreshConfig:
    """Immutable connection settings for the Fresh API."""
    token: str
    base_url: str = BASE_URL
    timezone: str = DEFAULT_TIMEZONE
    timeout: float = 10.0


def from_epoch_millis(value: int, tz: ZoneInfo) -> datetime:
    """
    Convert an upstream epoch-milliseconds timestamp into civil time.

    Raises:
        ValueError: If the timestamp is outside the platform's datetime range
    """
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).astimezone(tz)
    except (OverflowError, OSError) as e:
        raise ValueError(f"timestamp {value} out of range") from e


class FreshClient(BookingClient):
    """Client for interacting with the Fresh API."""

    def __init__(self, config: FreshConfig):
        self.config = config
        self.tz = ZoneInfo(config.timezone)
        self._locations = MappingProxyType({})
        self._types = MappingProxyType({})
        self._cache_lock = threading.Lock()

    def _headers(self) -> dict:
        """Build headers for API requests."""
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        return self.config.base_url.rstrip("/") + path

    def _check(self, response: requests.Response, what: str) -> None:
        if not 200 <= response.status_code < 300:
            raise UpstreamError(
                f"{what} failed: {response.status_code} {response.text}",
                status=response.status_code,
            )

    def _get(self, path: str, what: str) -> Any:
        """GET a path and return the decoded JSON body."""
        try:
            response = requests.get(
                self._url(path),
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(f"{what} failed: {e}", cause=e) from e

        self._check(response, what)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"{what} returned invalid JSON: {e}", cause=e) from e

    def fetch_locations(self) -> list[Location]:
        data = self._get(LOCATION_PATH, "Fetch locations")
        try:
            locations = [
                Location(
                    id=int(item["id"]),
                    key=str(item.get("human_readable_id", "")),
                    name=str(item.get("name", "")),
                )
                for item in data
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Failed to parse locations response: {e}", cause=e) from e

        snapshot = MappingProxyType({location.id: location for location in locations})
        with self._cache_lock:
            self._locations = snapshot
        logger.debug("Cached %d locations", len(snapshot))
        return locations

    def fetch_types(self) -> list[ClassType]:
        data = self._get(TYPE_PATH, "Fetch class types")
        try:
            types = [
                ClassType(
                    id=int(item["id"]),
                    name=str(item.get("name", "")),
                    description=str(item.get("description", "")),
                    capacity=int(item.get("capacity", 0)),
                )
                for item in data
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Failed to parse class types response: {e}", cause=e) from e

        snapshot = MappingProxyType({class_type.id: class_type for class_type in types})
        with self._cache_lock:
            self._types = snapshot
        logger.debug("Cached %d class types", len(snapshot))
        return types

    def lookup_location(self, location_id: int) -> Location:
        return self._locations.get(location_id, Location.empty())

    def lookup_type(self, type_id: int) -> ClassType:
        return self._types.get(type_id, ClassType.empty())

    def upcoming_classes(self, location_id: int) -> list[ClassInstance]:
        data = self._get(
            NEXT_PATH.format(location_id=location_id),
            f"Fetch upcoming classes for location {location_id}",
        )
        try:
            return [
                ClassInstance(
                    id=int(item["id"]),
                    start=from_epoch_millis(int(item["start_time"]), self.tz),
                    trainer=str(item.get("trainer", "")),
                    location_id=int(item.get("training_location_id", location_id)),
                    type_id=int(item.get("training_type_id", 0)),
                    occupancy=int(item.get("occupancy", 0)),
                )
                for item in data
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Failed to parse upcoming classes response: {e}", cause=e) from e

    def class_roster(self, class_id: int) -> ClassRoster:
        data = self._get(
            TRAINING_PATH.format(class_id=class_id),
            f"Fetch roster for class {class_id}",
        )
        try:
            return ClassRoster(
                class_id=class_id,
                participants=_user_ids(data.get("participants")),
                waitlisted=_user_ids(data.get("bench")),
                trainers=_user_ids(data.get("trainers")),
                names=MappingProxyType({
                    int(user["id"]): str(user.get("name", ""))
                    for user in data.get("users") or []
                }),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Failed to parse roster response: {e}", cause=e) from e

    def credit_balance(self, now: Optional[datetime] = None) -> CreditBalance:
        data = self._get(CREDIT_PATH, "Fetch credit")
        try:
            records = [
                CreditRecord(
                    id=int(item.get("id", 0)),
                    left_amount=int(item["left_amount"]),
                    expires_at=from_epoch_millis(int(item["expires_at"]), self.tz),
                )
                for item in data
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Failed to parse credit response: {e}", cause=e) from e

        return CreditBalance.from_records(records, now or datetime.now(self.tz))

    def join_class(self, class_id: int) -> None:
        what = f"Join class {class_id}"
        try:
            response = requests.post(
                self._url(JOIN_PATH.format(class_id=class_id)),
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(f"{what} failed: {e}", cause=e) from e

        self._check(response, what)
        logger.info("Joined class %s", class_id)


def _user_ids(users: Optional[list]) -> tuple[int, ...]:
    return tuple(int(user["user_id"]) for user in users or [])
