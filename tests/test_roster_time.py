import datetime as dt

import pytest

from roster_time import fixed_clock, optional_ts, require_ts, shift_ts


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-03-15 12:00:00", "2024-03-15 12:00:00"),
        ("2024-03-15T12:00:00.123456", "2024-03-15 12:00:00"),
        ("2024-03-15T12:00:00Z", "2024-03-15 12:00:00"),
        ("2024-03-15T14:00:00+02:00", "2024-03-15 12:00:00"),
        ("2024-03-15", "2024-03-15 00:00:00"),
        (dt.date(2024, 3, 15), "2024-03-15 00:00:00"),
        (dt.datetime(2024, 3, 15, 12, 0, 0, 999), "2024-03-15 12:00:00"),
    ],
)
def test_require_ts_normalizes(value, expected):
    assert require_ts(value) == expected


@pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-01"])
def test_require_ts_fails_loud(value):
    with pytest.raises(ValueError):
        require_ts(value)


def test_optional_ts_and_shift():
    assert optional_ts(None) is None
    assert optional_ts("  ") is None
    assert shift_ts("2024-03-15 12:00:00", days=1, minutes=30) == "2024-03-16 12:30:00"
    assert fixed_clock("2024-03-15T12:00:00")() == "2024-03-15 12:00:00"
