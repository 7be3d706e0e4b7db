from datetime import date, datetime, timezone

from utils.time import (
    from_epoch_millis,
    midday_utc,
    months_before,
    now_utc,
    parse_iso_utc,
    parse_month_day_year,
    to_iso_z,
    utc_calendar_date,
)


def test_now_utc_returns_aware_datetime(monkeypatch):
    class FakeDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            return cls(2025, 1, 1, 12, 0, 0, tzinfo=tz)

    monkeypatch.setattr("utils.time.datetime", FakeDatetime)

    now = now_utc()

    assert now.tzinfo is not None
    assert now.year == 2025 and now.month == 1 and now.day == 1
    assert now.hour == 12


def test_to_iso_z_uses_millisecond_precision():
    value = datetime(2025, 3, 4, 5, 6, 7, 890123, tzinfo=timezone.utc)

    assert to_iso_z(value) == "2025-03-04T05:06:07.890Z"


def test_to_iso_z_converts_offsets_to_utc():
    value = parse_iso_utc("2025-12-30T09:00:00+09:00")

    assert to_iso_z(value) == "2025-12-30T00:00:00.000Z"


def test_from_epoch_millis():
    assert to_iso_z(from_epoch_millis("2000")) == "1970-01-01T00:00:02.000Z"
    assert from_epoch_millis("soon") is None
    assert from_epoch_millis(float("nan")) is None
    assert from_epoch_millis(1e300) is None


def test_parse_iso_utc_with_naive_input_is_utc():
    parsed = parse_iso_utc("2025-12-30T00:00:00")

    assert parsed == datetime(2025, 12, 30, tzinfo=timezone.utc)


def test_parse_iso_utc_accepts_zulu():
    assert parse_iso_utc("2025-12-29T15:00:00.000Z") == datetime(2025, 12, 29, 15, tzinfo=timezone.utc)


def test_parse_iso_utc_rejects_invalid_string():
    assert parse_iso_utc("not-a-date") is None
    assert parse_iso_utc("") is None
    assert parse_iso_utc(None) is None


def test_utc_calendar_date_crosses_midnight_in_utc():
    assert utc_calendar_date("2025-01-01T23:30:00-02:00") == date(2025, 1, 2)
    assert utc_calendar_date("garbage") is None


def test_parse_month_day_year_full_and_abbreviated():
    assert parse_month_day_year("January 1, 2025") == date(2025, 1, 1)
    assert parse_month_day_year("UP Feb 9, 2024") == date(2024, 2, 9)
    assert parse_month_day_year("Smarch 1, 2025") is None
    assert parse_month_day_year("Feb 30, 2025") is None


def test_midday_utc():
    assert to_iso_z(midday_utc(date(2025, 1, 2))) == "2025-01-02T12:00:00.000Z"


def test_months_before_clamps_day():
    value = datetime(2025, 8, 31, 10, tzinfo=timezone.utc)

    assert months_before(value, 6) == datetime(2025, 2, 28, 10, tzinfo=timezone.utc)
    assert months_before(datetime(2025, 3, 15, tzinfo=timezone.utc), 6) == datetime(2024, 9, 15, tzinfo=timezone.utc)
