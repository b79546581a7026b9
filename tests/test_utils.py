import math
import re
from datetime import datetime, timezone

import pytest

from mindsculpt.utils import (
    clamp,
    format_number,
    generate_glimpse_id,
    generate_memory_id,
    parse_leading_float,
    to_datetime,
    to_iso,
)


def test_clamp():
    assert clamp(1.4, 0.0, 1.0) == 1.0
    assert clamp(-5, -1.0, 1.0) == -1.0
    assert clamp(0.3, 0.0, 1.0) == 0.3
    with pytest.raises(ValueError):
        clamp(math.nan, 0.0, 1.0)


def test_generated_ids():
    assert re.fullmatch(r"mem_\d{13}_[a-z0-9]{9}", generate_memory_id())
    assert re.fullmatch(r">gl[0-9a-f]{8}", generate_glimpse_id())
    assert len({generate_memory_id() for _ in range(100)}) == 100


def test_to_datetime_accepts_iso_epoch_ms_and_naive():
    expected = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert to_datetime("2024-01-02T03:04:05Z") == expected
    assert to_datetime(int(expected.timestamp() * 1000)) == expected
    assert to_datetime(datetime(2024, 1, 2, 3, 4, 5)) == expected
    assert to_datetime(None) is None
    assert to_iso(expected) == "2024-01-02T03:04:05+00:00"


def test_parse_leading_float():
    assert parse_leading_float("0.75 - quite similar") == 0.75
    assert parse_leading_float(".5") == 0.5
    assert parse_leading_float("similarity: 0.4") is None
    assert parse_leading_float("") is None


def test_format_number():
    assert format_number(0.8) == "0.8"
    assert format_number(1.0) == "1"
    assert format_number(-0.25) == "-0.25"
