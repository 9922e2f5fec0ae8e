from datetime import datetime
import logging

from api.base import BookingClient, ClassInstance, NotFoundError
from api.class_selection import select_class


logger = logging.getLogger(__name__)


def login_for_class(client: BookingClient, location_id: int, start: datetime) -> ClassInstance:
    """Sign up for the class at a location starting at ``start``. This is the
    single booking entry point shared by chat commands and scheduled jobs.

    Raises NotFoundError when no upcoming class starts at that time, and lets
    UpstreamError from the fetch or the join propagate."""

    classes = client.upcoming_classes(location_id)
    selected = select_class(classes, start)
    if selected is None:
        raise NotFoundError(
            f"No class at location {location_id} starting {start:%Y-%m-%d %H:%M}"
        )

    logger.info("Joining class %s at location %s (%s)", selected.id, location_id, selected.start)
    client.join_class(selected.id)
    return selected
