from datetime import datetime, timedelta, timezone

import pytest

from api.base import NotFoundError, UpstreamError
from api.class_selection import select_class
from booking import login_for_class
from conftest import PRAGUE, FakeBookingClient, make_class


def _week_classes(start):
    return [
        make_class(100, start - timedelta(hours=1), location_id=13),
        make_class(101, start, location_id=13),
        make_class(102, start + timedelta(hours=1), location_id=13),
    ]


def test_select_class_matches_same_instant_across_zones():
    start = datetime(2026, 10, 26, 7, 0, tzinfo=PRAGUE)
    classes = [make_class(1, datetime(2026, 10, 26, 6, 0, tzinfo=timezone.utc))]

    assert select_class(classes, start).id == 1


def test_select_class_ignores_sub_second_difference():
    start = datetime(2026, 10, 26, 7, 0, tzinfo=PRAGUE)
    classes = [make_class(1, start + timedelta(milliseconds=400))]

    assert select_class(classes, start).id == 1


def test_select_class_across_daylight_saving_change():
    # Summer time ends on 2026-10-25 in Prague: 07:00 is UTC+1 afterwards
    start = datetime(2026, 10, 26, 7, 0, tzinfo=PRAGUE)
    summer_offset = make_class(1, datetime(2026, 10, 26, 5, 0, tzinfo=timezone.utc))

    assert select_class([summer_offset], start) is None


def test_login_joins_matching_class_once():
    start = datetime(2026, 10, 26, 7, 0, tzinfo=PRAGUE)
    client = FakeBookingClient(classes={13: _week_classes(start)})

    joined = login_for_class(client, 13, start)

    assert joined.id == 101
    assert client.joined == [101]


def test_login_without_matching_class_raises_not_found():
    start = datetime(2026, 10, 26, 7, 0, tzinfo=PRAGUE)
    client = FakeBookingClient(classes={13: _week_classes(start)})

    with pytest.raises(NotFoundError):
        login_for_class(client, 13, start + timedelta(minutes=30))

    assert client.joined == []
    assert not [call for call in client.calls if call[0] == "join_class"]


def test_login_propagates_join_failure():
    start = datetime(2026, 10, 26, 7, 0, tzinfo=PRAGUE)
    client = FakeBookingClient(
        classes={13: _week_classes(start)},
        join_error=UpstreamError("Join class 101 failed: 409 full", status=409),
    )

    with pytest.raises(UpstreamError) as excinfo:
        login_for_class(client, 13, start)

    assert not isinstance(excinfo.value, NotFoundError)
