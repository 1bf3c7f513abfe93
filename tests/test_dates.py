from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from lifeos.utils.dates import hour_slot, parse_due, resolve_timezone, sunday_weekday

BERLIN = ZoneInfo("Europe/Berlin")


def test_resolve_timezone_falls_back_to_utc():
    assert resolve_timezone("Europe/Berlin") == BERLIN
    assert resolve_timezone(None) == ZoneInfo("UTC")
    assert resolve_timezone("Mars/Olympus_Mons") == ZoneInfo("UTC")


def test_date_only_is_local_midnight():
    due = parse_due("2026-10-18", BERLIN)
    assert due == datetime(2026, 10, 18, tzinfo=BERLIN)
    assert parse_due(date(2026, 10, 18), BERLIN) == due


def test_naive_datetime_is_read_in_zone():
    assert parse_due("2026-10-18T09:30:00", BERLIN) == datetime(2026, 10, 18, 9, 30, tzinfo=BERLIN)


def test_offset_datetime_is_converted():
    due = parse_due("2026-10-18T06:00:00Z", BERLIN)
    assert due.tzinfo == BERLIN
    assert due.hour == 8


@pytest.mark.parametrize("value", [None, "", "next tuesday", "2026-13-40", 12345])
def test_unusable_due_dates(value):
    assert parse_due(value, timezone.utc) is None


@pytest.mark.parametrize(
    "day, expected",
    [(18, 0), (19, 1), (23, 5), (24, 6)],  # 18 October 2026 is a Sunday
)
def test_sunday_weekday(day, expected):
    assert sunday_weekday(datetime(2026, 10, day, 12)) == expected


def test_hour_slot():
    assert hour_slot(datetime(2026, 10, 18, 8, 59)) == "08:00"
    assert hour_slot(datetime(2026, 10, 18, 21, 0)) == "21:00"
