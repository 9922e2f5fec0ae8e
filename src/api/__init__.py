from .base import (
    BookingClient,
    BookingClientError,
    ClassInstance,
    ClassRoster,
    ClassType,
    CreditBalance,
    Location,
    MessageClient,
    NotFoundError,
    RosterEntry,
    RosterRole,
    UpstreamError,
)
from .client_factory import Settings, ConfigError, load_settings, create_booking_client, create_message_client
from .class_selection import select_class
from .fresh_client import FreshClient, FreshConfig
from .groupme_client import GroupMeClient
