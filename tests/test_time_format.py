"""Tests for time formatting helpers."""

from __future__ import annotations

from voru.utils.time_format import (
    format_duration_ms,
    format_time_ms,
    format_time_pair_ms,
)


def test_format_time_ms() -> None:
    assert format_time_ms(0) == "00:00"
    assert format_time_ms(61_000) == "01:01"
    assert format_time_ms(3_661_000) == "1:01:01"
    assert format_time_ms(-5) == "00:00"


def test_format_time_pair_uses_hours_for_both() -> None:
    assert format_time_pair_ms(5_000, 3_600_000) == ("0:00:05", "1:00:00")
    assert format_time_pair_ms(5_000, None) == ("00:05", "--:--")


def test_format_duration_ms() -> None:
    assert format_duration_ms(0) == "0:00"
    assert format_duration_ms(450_000) == "7:30"
    assert format_duration_ms(7_384_000) == "2:03:04"
