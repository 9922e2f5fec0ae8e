"""
Chat command parsing and execution.

Supported commands (first whitespace-separated token):

    LOGIN [HH:MM] [YYYY-MM-DD] [locationID]
        Sign up for a class. Defaults: one week from today, 07:00, the
        default location.

    FIND <name...>
        List upcoming classes whose roster contains the name fragment.

Any other first token is ignored.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from api.base import BookingClient, ClassInstance, MessageClient, NotFoundError, UpstreamError
from booking import login_for_class
from roster_search import SearchResult, search_rosters


logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "%Y-%m-%d %H:%M"


class ParseError(ValueError):
    """Malformed command text. The message is shown to the chat user."""


class CommandKind(Enum):
    LOGIN = "LOGIN"
    FIND = "FIND"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    start: Optional[datetime] = None
    location_id: Optional[int] = None
    query: Optional[str] = None


def parse_start(time_str: str, date_str: str, tz: ZoneInfo) -> datetime:
    """Parse 'H:MM' and 'YYYY-MM-DD' as civil time in ``tz``."""
    try:
        naive = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M")
    except ValueError as e:
        raise ParseError("Invalid time format") from e
    return naive.replace(tzinfo=tz)


def parse_command(
    text: str,
    now: datetime,
    default_location_id: int = 13,
    default_start: str = "07:00",
) -> Optional[Command]:
    """
    Parse a chat message into a Command.

    Args:
        text: Raw message text
        now: Current time, timezone-aware in the civil timezone
        default_location_id: Location used when LOGIN omits one
        default_start: Start time used when LOGIN omits one

    Returns:
        The Command, or None when the message is not a command

    Raises:
        ParseError: If a recognised command has malformed arguments
    """
    tokens = text.split()
    if not tokens:
        return None

    keyword, args = tokens[0], tokens[1:]

    if keyword == CommandKind.LOGIN.value:
        start_str = args[0] if len(args) > 0 else default_start
        date_str = args[1] if len(args) > 1 else (now + timedelta(days=7)).strftime("%Y-%m-%d")
        location_id = default_location_id
        if len(args) > 2:
            try:
                location_id = int(args[2])
            except ValueError as e:
                raise ParseError("Invalid location ID") from e
        return Command(
            kind=CommandKind.LOGIN,
            start=parse_start(start_str, date_str, now.tzinfo),
            location_id=location_id,
        )

    if keyword == CommandKind.FIND.value:
        if not args:
            raise ParseError("Invalid command format")
        return Command(kind=CommandKind.FIND, query=" ".join(args))

    return None


class MessageProcessor:
    """Turns inbound chat webhooks into booking actions and chat replies."""

    def __init__(
        self,
        booking_client: BookingClient,
        message_client: MessageClient,
        bot_sender_id: str,
        timezone: str = "Europe/Prague",
        default_location_id: int = 13,
        default_start: str = "07:00",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.booking_client = booking_client
        self.message_client = message_client
        self.bot_sender_id = bot_sender_id
        self.tz = ZoneInfo(timezone)
        self.default_location_id = default_location_id
        self.default_start = default_start
        self._clock = clock or (lambda: datetime.now(self.tz))

    def process_message(self, raw: bytes) -> None:
        """Handle one webhook body. Never raises for bad input or upstream errors."""
        try:
            message = json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.error("Cannot decode message body: %s", e)
            return
        if not isinstance(message, dict):
            logger.error("Unexpected message body: %r", message)
            return

        # Ignore own messages
        if str(message.get("sender_id", "")) == self.bot_sender_id:
            return

        self.handle_text(str(message.get("text") or ""))

    def handle_text(self, text: str) -> None:
        try:
            command = parse_command(
                text,
                self._clock(),
                default_location_id=self.default_location_id,
                default_start=self.default_start,
            )
        except ParseError as e:
            logger.info("Rejected command %r: %s", text, e)
            self._reply(str(e))
            return

        if command is None:
            return
        self.execute(command)

    def execute(self, command: Command) -> None:
        if command.kind is CommandKind.LOGIN:
            self._reply(self._login(command))
        elif command.kind is CommandKind.FIND:
            self._reply(self._find(command))

    def _login(self, command: Command) -> str:
        when = command.start.strftime(DISPLAY_FORMAT)
        try:
            login_for_class(self.booking_client, command.location_id, command.start)
        except NotFoundError as e:
            logger.info("Login failed: %s", e)
            return f"No class found for {when}"
        except UpstreamError as e:
            logger.error("Error logging in: %s", e)
            return f"Failed to login: {e}"
        return f"Logged in for {when}"

    def _find(self, command: Command) -> str:
        logger.info("Finding user %s", command.query)
        try:
            result = search_rosters(self.booking_client, command.query)
        except UpstreamError as e:
            logger.error("Error fetching locations: %s", e)
            return f"Failed to fetch locations: {e}"
        return self.format_result(result)

    def format_class(self, class_instance: ClassInstance) -> str:
        class_type = self.booking_client.lookup_type(class_instance.type_id)
        start = class_instance.start.astimezone(self.tz).strftime(DISPLAY_FORMAT)
        return (
            f"{class_type.name} {start} - {class_instance.trainer} - "
            f"{class_instance.occupancy}/{class_type.capacity}"
        )

    def format_result(self, result: SearchResult) -> str:
        lines = []
        if result.empty:
            lines.append("No results found")
        else:
            if result.participating and result.waitlisted:
                lines.append("Participate:")
            lines.extend(self.format_class(c) for c in result.participating)
            if result.waitlisted:
                lines.append("Bench:")
            lines.extend(self.format_class(c) for c in result.waitlisted)
        for location, error in result.failures:
            lines.append(f"Failed to search {location.name or location.id}: {error}")
        return "\n".join(lines)

    def _reply(self, text: str) -> None:
        try:
            self.message_client.send_message(text)
        except UpstreamError as e:
            logger.error("Failed to send message: %s", e)
