from datetime import time, timezone

import pytest

from callingbird.utils.time_utils import parse_time, parse_timestamp, timestamp_sort_key, try_parse_time


def test_parse_time_formats():
    assert parse_time("06:32") == time(6, 32)
    assert parse_time("6:32PM") == time(18, 32)
    with pytest.raises(ValueError):
        parse_time("25:00")


def test_try_parse_time():
    assert try_parse_time("") is None
    assert try_parse_time(None) is None
    assert try_parse_time("nonsense") is None
    assert try_parse_time("17:00") == time(17, 0)


def test_parse_timestamp():
    parsed = parse_timestamp("2024-05-01T10:00:00Z")
    assert parsed.tzinfo == timezone.utc
    assert parse_timestamp("2024-05-01T10:00:00").tzinfo == timezone.utc
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None


def test_timestamp_sort_key_orders_missing_last():
    assert timestamp_sort_key(None) == 0.0
    assert timestamp_sort_key("2024-05-02T00:00:00Z") > timestamp_sort_key("2024-05-01T00:00:00Z")
