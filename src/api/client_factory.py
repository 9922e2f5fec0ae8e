"""
Settings loading and client construction.

Supports a flat config format and a nested per-platform format:

Flat:
    {"fresh_token": "...", "bot_token": "...", "bot_sender_id": "..."}

Nested:
    {"fresh": {"token": "...", "timezone": "Europe/Prague"},
     "groupme": {"bot_token": "...", "bot_sender_id": "..."}}
"""

import json
from dataclasses import dataclass
from datetime import datetime

from .base import BookingClient, MessageClient
from .fresh_client import BASE_URL, DEFAULT_TIMEZONE, FreshClient, FreshConfig
from .groupme_client import GroupMeClient


class ConfigError(Exception):
    """Raised when required settings are missing or malformed."""


@dataclass(frozen=True)
class Settings:
    fresh_token: str
    bot_token: str
    bot_sender_id: str
    fresh_base_url: str = BASE_URL
    timezone: str = DEFAULT_TIMEZONE
    default_location_id: int = 13
    default_start: str = "07:00"
    request_timeout: float = 10.0
    low_credit_threshold: int = 100
    metrics_namespace: str = "FreshConsole"


def settings_from_dict(data: dict) -> Settings:
    """
    Build Settings from a flat or nested config mapping.

    Raises:
        ConfigError: If a credential is missing, or a number or the default
            start time (HH:MM) is malformed
    """
    flat = dict(data)
    fresh = data.get("fresh")
    if isinstance(fresh, dict):
        flat.setdefault("fresh_token", fresh.get("token"))
        for key in ("timezone", "default_location_id", "default_start", "request_timeout",
                    "low_credit_threshold", "metrics_namespace"):
            if key in fresh:
                flat.setdefault(key, fresh[key])
        if "base_url" in fresh:
            flat.setdefault("fresh_base_url", fresh["base_url"])
    groupme = data.get("groupme")
    if isinstance(groupme, dict):
        flat.setdefault("bot_token", groupme.get("bot_token"))
        flat.setdefault("bot_sender_id", groupme.get("bot_sender_id"))

    missing = [key for key in ("fresh_token", "bot_token", "bot_sender_id") if not flat.get(key)]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    try:
        default_start = str(flat.get("default_start", "07:00"))
        datetime.strptime(default_start, "%H:%M")
        return Settings(
            fresh_token=str(flat["fresh_token"]),
            bot_token=str(flat["bot_token"]),
            bot_sender_id=str(flat["bot_sender_id"]),
            fresh_base_url=str(flat.get("fresh_base_url", BASE_URL)),
            timezone=str(flat.get("timezone", DEFAULT_TIMEZONE)),
            default_location_id=int(flat.get("default_location_id", 13)),
            default_start=default_start,
            request_timeout=float(flat.get("request_timeout", 10.0)),
            low_credit_threshold=int(flat.get("low_credit_threshold", 100)),
            metrics_namespace=str(flat.get("metrics_namespace", "FreshConsole")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings value: {e}") from e


def load_settings(config_path: str = "config.json") -> Settings:
    """Load Settings from a JSON config file."""
    try:
        with open(config_path) as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")
    return settings_from_dict(config)


def create_booking_client(settings: Settings) -> BookingClient:
    return FreshClient(FreshConfig(
        token=settings.fresh_token,
        base_url=settings.fresh_base_url,
        timezone=settings.timezone,
        timeout=settings.request_timeout,
    ))


def create_message_client(settings: Settings) -> MessageClient:
    return GroupMeClient(settings.bot_token, timeout=settings.request_timeout)
