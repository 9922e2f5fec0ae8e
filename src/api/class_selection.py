"""
Class selection by start time.

Start times are compared as whole epoch seconds so an upstream instant in
one zone matches the same wall-clock moment parsed in another.
"""

from datetime import datetime
from typing import Optional

from .base import ClassInstance


def same_instant(a: datetime, b: datetime) -> bool:
    return int(a.timestamp()) == int(b.timestamp())


def select_class(classes: list[ClassInstance], start: datetime) -> Optional[ClassInstance]:
    """
    Select the first class starting at the given instant.

    Args:
        classes: Upcoming classes of one location, in upstream order
        start: Desired timezone-aware start time

    Returns:
        The matching ClassInstance, or None if no class starts then
    """
    for class_instance in classes:
        if same_instant(class_instance.start, start):
            return class_instance
    return None
