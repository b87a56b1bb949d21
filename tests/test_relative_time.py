from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from simplificator_tui.utils.time import relative_time

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(seconds=5), "just now"),
        (timedelta(seconds=59), "just now"),
        (timedelta(minutes=1), "1m ago"),
        (timedelta(minutes=59, seconds=59), "59m ago"),
        (timedelta(hours=3), "3h ago"),
        (timedelta(days=2, hours=5), "2d ago"),
    ],
)
def test_relative_buckets(delta, expected):
    assert relative_time((NOW - delta).isoformat(), now=NOW) == expected


def test_future_timestamp_is_just_now():
    assert relative_time((NOW + timedelta(hours=1)).isoformat(), now=NOW) == "just now"


def test_naive_timestamp_is_treated_as_utc():
    assert relative_time("2026-03-01T11:00:00", now=NOW) == "1h ago"


def test_unparsable_timestamp():
    assert relative_time("yesterday-ish", now=NOW) == "unknown"
