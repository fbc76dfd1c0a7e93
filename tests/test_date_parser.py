"""
Tests for relative dates, year normalization and the date anti-regression guard.
"""

from __future__ import annotations

from datetime import date

from booking_assistant.application.utils.date_parser import (
    add_minutes,
    check_date_consistency,
    mentions_tomorrow,
    normalize_time,
    normalize_year,
    resolve_relative_date,
)

TODAY = date(2025, 6, 10)


def test_relative_terms_resolve_against_today():
    """Whole-message terms and booking phrases resolve to absolute dates."""
    assert resolve_relative_date("tomorrow", TODAY) == "2025-06-11"
    assert resolve_relative_date("Tommorow", TODAY) == "2025-06-11"
    assert resolve_relative_date("book for tomorrow", TODAY) == "2025-06-11"
    assert resolve_relative_date("schedule today", TODAY) == "2025-06-10"
    assert resolve_relative_date("the day after tomorrow works", TODAY) == "2025-06-12"


def test_sentence_mentioning_tomorrow_is_left_to_extraction():
    """Only the post-extraction fallback looks at a passing mention."""
    assert resolve_relative_date("is the plumber free tomorrow morning", TODAY) is None
    assert mentions_tomorrow("is the plumber free tomorrow morning")
    assert not mentions_tomorrow("the day after tomorrow")


def test_year_normalization_envelope():
    """Stale and far-future years become the current year; near years are kept."""
    assert normalize_year("2023-07-15", TODAY) == "2025-07-15"
    assert normalize_year("2040-07-15", TODAY) == "2025-07-15"
    assert normalize_year("2026-01-05", TODAY) == "2026-01-05"
    assert normalize_year("next friday", TODAY) == "next friday"


def test_month_jump_with_same_day_keeps_previous_date():
    """April 9th misread as October 9th is rejected."""
    assert check_date_consistency("2025-10-09", "2025-04-09") == "2025-04-09"


def test_transposed_month_and_day_keeps_previous_date():
    assert check_date_consistency("2025-09-04", "2025-04-09") == "2025-04-09"


def test_invalid_month_keeps_previous_date():
    assert check_date_consistency("2025-13-01", "2025-06-01") == "2025-06-01"


def test_plausible_date_change_is_accepted():
    """A nearby change of day, or a month change with a new day, goes through."""
    assert check_date_consistency("2025-06-14", "2025-06-11") == "2025-06-14"
    assert check_date_consistency("2025-07-09", "2025-06-09") == "2025-07-09"
    assert check_date_consistency("2025-06-11", None) == "2025-06-11"


def test_time_normalization():
    assert normalize_time("2pm") == "14:00"
    assert normalize_time("2:30 PM") == "14:30"
    assert normalize_time("9") == "09:00"
    assert normalize_time("12 am") == "00:00"
    assert normalize_time("10:00 a.m.") == "10:00"
    assert normalize_time("noon") == "12:00"
    assert normalize_time("whenever") is None
    assert normalize_time("25:00") is None


def test_add_minutes_stops_at_midnight():
    assert add_minutes("09:30", 30) == "10:00"
    assert add_minutes("23:30", 30) is None
