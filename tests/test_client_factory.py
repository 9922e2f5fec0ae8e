import json

import pytest

from api.client_factory import (
    ConfigError,
    create_booking_client,
    create_message_client,
    load_settings,
    settings_from_dict,
)
from api.fresh_client import FreshClient
from api.groupme_client import GroupMeClient


def test_flat_settings_with_defaults():
    settings = settings_from_dict({"fresh_token": "t", "bot_token": "b", "bot_sender_id": 123})

    assert settings.bot_sender_id == "123"
    assert settings.timezone == "Europe/Prague"
    assert settings.default_location_id == 13
    assert settings.low_credit_threshold == 100


def test_nested_settings():
    settings = settings_from_dict({
        "fresh": {"token": "t", "timezone": "Europe/Vienna", "default_location_id": "7"},
        "groupme": {"bot_token": "b", "bot_sender_id": "bot-1"},
    })

    assert settings.fresh_token == "t"
    assert settings.timezone == "Europe/Vienna"
    assert settings.default_location_id == 7


def test_nested_settings_forward_monitor_options():
    settings = settings_from_dict({
        "fresh": {"token": "t", "low_credit_threshold": "50", "metrics_namespace": "Gym"},
        "groupme": {"bot_token": "b", "bot_sender_id": "bot-1"},
    })

    assert settings.low_credit_threshold == 50
    assert settings.metrics_namespace == "Gym"


def test_missing_credentials():
    with pytest.raises(ConfigError) as excinfo:
        settings_from_dict({"fresh_token": "t"})

    assert "bot_token" in str(excinfo.value)
    assert "bot_sender_id" in str(excinfo.value)


def test_malformed_number():
    with pytest.raises(ConfigError):
        settings_from_dict({"fresh_token": "t", "bot_token": "b", "bot_sender_id": "x",
                            "request_timeout": "soon"})


@pytest.mark.parametrize("value", ["7am", "25:00", "07"])
def test_malformed_default_start(value):
    with pytest.raises(ConfigError):
        settings_from_dict({"fresh_token": "t", "bot_token": "b", "bot_sender_id": "x",
                            "default_start": value})


def test_load_settings_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"fresh_token": "t", "bot_token": "b", "bot_sender_id": "x"}))

    settings = load_settings(str(path))

    assert settings.fresh_token == "t"


def test_load_settings_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "missing.json"))


def test_clients_are_configured_from_settings():
    settings = settings_from_dict({"fresh_token": "t", "bot_token": "b", "bot_sender_id": "x",
                                   "request_timeout": 4})

    booking = create_booking_client(settings)
    messages = create_message_client(settings)

    assert isinstance(booking, FreshClient)
    assert booking.config.timeout == 4.0
    assert isinstance(messages, GroupMeClient)
    assert messages.bot_token == "b"
