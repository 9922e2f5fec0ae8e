from argparse import Namespace

import pytest

from cli import ConsoleMessageClient, build_command_text


def _args(**overrides):
    values = {"find": None, "time": None, "date": None, "location": None}
    values.update(overrides)
    return Namespace(**values)


def test_find_command_text():
    assert build_command_text(_args(find="Alice Smith")) == "FIND Alice Smith"


def test_login_command_text_defaults():
    assert build_command_text(_args()) == "LOGIN"


def test_login_command_text_fills_missing_time():
    text = build_command_text(_args(date="2026-10-26", location=14), default_start="07:00")

    assert text == "LOGIN 07:00 2026-10-26 14"


def test_location_without_date_is_rejected():
    with pytest.raises(SystemExit):
        build_command_text(_args(location=14))


def test_console_client_prints(capsys):
    ConsoleMessageClient().send_message("Logged in for 2026-10-26 07:00")

    assert "Logged in for 2026-10-26 07:00" in capsys.readouterr().out
