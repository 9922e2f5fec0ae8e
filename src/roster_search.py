"""
Roster search across all locations.

One worker per location fetches its upcoming classes and their rosters;
each worker returns its own matches and the calling thread merges them
as workers finish. A location that fails is skipped and reported in
``SearchResult.failures`` rather than aborting the whole search.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from api.base import BookingClient, ClassInstance, ClassRoster, Location, RosterRole, UpstreamError


logger = logging.getLogger(__name__)


class Match(Enum):
    PARTICIPATING = "participating"
    WAITLISTED = "waitlisted"


@dataclass
class SearchResult:
    participating: list[ClassInstance] = field(default_factory=list)
    waitlisted: list[ClassInstance] = field(default_factory=list)
    failures: list[tuple[Location, UpstreamError]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.participating and not self.waitlisted


def classify_roster(roster: ClassRoster, query: str) -> Optional[Match]:
    """
    Decide whether a name fragment appears on a class roster.

    The query must occur as a case-sensitive substring of an entry's display
    name. Participant or trainer matches win over waitlist matches.
    """
    on_waitlist = False
    for entry in roster.entries:
        if not entry.name or query not in entry.name:
            continue
        if entry.role in (RosterRole.PARTICIPANT, RosterRole.TRAINER):
            return Match.PARTICIPATING
        on_waitlist = True
    return Match.WAITLISTED if on_waitlist else None


def _search_location(client: BookingClient, location: Location, query: str) -> SearchResult:
    """Search every upcoming class of one location. Runs in a worker thread."""
    local = SearchResult()
    for class_instance in client.upcoming_classes(location.id):
        roster = client.class_roster(class_instance.id)
        match = classify_roster(roster, query)
        if match is Match.PARTICIPATING:
            local.participating.append(class_instance)
        elif match is Match.WAITLISTED:
            local.waitlisted.append(class_instance)
    return local


def _sort_key(class_instance: ClassInstance):
    return (class_instance.start, class_instance.id)


def search_rosters(client: BookingClient, query: str, max_workers: Optional[int] = None) -> SearchResult:
    """
    Find upcoming classes whose roster contains ``query``.

    Args:
        client: Booking client
        query: Name fragment typed in chat
        max_workers: Thread pool size (defaults to one thread per location)

    Returns:
        SearchResult with participating and waitlisted classes sorted by start

    Raises:
        UpstreamError: If the location list cannot be fetched
    """
    try:
        client.fetch_types()
    except UpstreamError as e:
        logger.warning("Could not refresh class types, names may be missing: %s", e)

    locations = client.fetch_locations()
    result = SearchResult()
    if not locations:
        return result

    workers = max_workers or len(locations)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="roster-search") as pool:
        futures = {
            pool.submit(_search_location, client, location, query): location
            for location in locations
        }
        for future in as_completed(futures):
            location = futures[future]
            try:
                local = future.result()
            except UpstreamError as e:
                logger.error("Skipping location %s (%s): %s", location.id, location.name, e)
                result.failures.append((location, e))
                continue
            result.participating.extend(local.participating)
            result.waitlisted.extend(local.waitlisted)

    result.participating.sort(key=_sort_key)
    result.waitlisted.sort(key=_sort_key)
    result.failures.sort(key=lambda failure: failure[0].id)
    logger.info(
        "Search for %r: %d participating, %d waitlisted, %d locations failed",
        query, len(result.participating), len(result.waitlisted), len(result.failures),
    )
    return result
