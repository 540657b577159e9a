from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from chatimport.services.parsing.grammar import (
    GrammarMatcher,
    PlausibilityWindow,
    normalize_year,
    resolve_day_month,
    to_24_hour,
)
from chatimport.services.parsing.types import Continuation, NewMessage, Noise

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("line", "grammar", "expected"),
    [
        ("12/31/21, 11:58 PM - Alice: hi", "us_meridiem", datetime(2021, 12, 31, 23, 58)),
        ("31/12/2021, 23:58 - Alice: hi", "slash_24h", datetime(2021, 12, 31, 23, 58)),
        ("31.12.21, 23:58 - Alice: hi", "dotted_24h", datetime(2021, 12, 31, 23, 58)),
        ("2021-12-31 23:58 - Alice: hi", "iso_24h", datetime(2021, 12, 31, 23, 58)),
        ("[31/12/21, 23:58:07] Alice: hi", "bracketed", datetime(2021, 12, 31, 23, 58, 7)),
        ("12/31/2021 23:58 - Alice: hi", "business_slash", datetime(2021, 12, 31, 23, 58)),
    ],
)
def test_grammar_table(matcher, line, grammar, expected):
    parsed = matcher.classify(line, NOW)
    assert isinstance(parsed, NewMessage)
    assert parsed.grammar == grammar
    assert parsed.sender == "Alice"
    assert parsed.content == "hi"
    assert parsed.timestamp == expected.replace(tzinfo=timezone.utc)


def test_system_line_without_sender(matcher):
    parsed = matcher.classify("1/1/22, 12:01 AM - Alice created group", NOW)
    assert isinstance(parsed, NewMessage)
    assert parsed.grammar == "system"
    assert parsed.sender == "System"
    assert parsed.content == "Alice created group"
    assert parsed.timestamp == datetime(2022, 1, 1, 0, 1, tzinfo=timezone.utc)


def test_bracketed_with_meridiem(matcher):
    parsed = matcher.classify("[1/2/22, 3:04:05 PM] Bob: ok", NOW)
    assert isinstance(parsed, NewMessage)
    assert parsed.timestamp == datetime(2022, 1, 2, 15, 4, 5, tzinfo=timezone.utc)


def test_sender_keeps_first_colon_only(matcher):
    parsed = matcher.classify("2021-06-01 10:00 - Alice: time is 10:30: ok", NOW)
    assert isinstance(parsed, NewMessage)
    assert parsed.sender == "Alice"
    assert parsed.content == "time is 10:30: ok"


def test_blank_line_is_noise(matcher):
    assert isinstance(matcher.classify("   ", NOW), Noise)


def test_plain_text_is_continuation(matcher):
    parsed = matcher.classify("just some words", NOW)
    assert parsed == Continuation("just some words")


def test_implausible_year_is_rejected(matcher):
    parsed = matcher.classify("1/1/99, 10:00 AM - Alice: old", NOW)
    assert isinstance(parsed, Continuation)
    assert parsed.rejection == "implausible_timestamp"


def test_future_timestamp_is_rejected(matcher):
    parsed = matcher.classify("2024-01-03 10:00 - Alice: later", NOW)
    assert isinstance(parsed, Continuation)
    assert parsed.rejection == "implausible_timestamp"


def test_within_future_tolerance_is_accepted(matcher):
    parsed = matcher.classify("2024-01-01 20:00 - Alice: soon", NOW)
    assert isinstance(parsed, NewMessage)


def test_impossible_date_is_rejected(matcher):
    parsed = matcher.classify("31.02.2022, 10:00 - Alice: nope", NOW)
    assert isinstance(parsed, Continuation)
    assert parsed.rejection == "invalid_datetime"


def test_meridiem_hour_out_of_range_is_rejected(matcher):
    parsed = matcher.classify("1/1/22, 13:00 PM - Alice: nope", NOW)
    assert isinstance(parsed, Continuation)
    assert parsed.rejection == "invalid_datetime"


def test_overlong_sender_falls_through_to_system_grammar(window):
    matcher = GrammarMatcher(window, timezone.utc, max_sender_length=5)
    parsed = matcher.classify("2022-01-01 10:00 - Bartholomew: hi", NOW)
    assert isinstance(parsed, NewMessage)
    assert parsed.grammar == "system"
    assert parsed.sender == "System"
    assert parsed.content == "Bartholomew: hi"


def test_overlong_sender_without_system_form_is_noise(window):
    matcher = GrammarMatcher(window, timezone.utc, max_sender_length=5)
    parsed = matcher.classify("[01/01/22, 10:00:00] Bartholomew: hi", NOW)
    assert parsed == Noise(rejection="invalid_sender")


def test_timestamps_use_configured_zone(window):
    berlin = ZoneInfo("Europe/Berlin")
    matcher = GrammarMatcher(window, berlin)
    parsed = matcher.classify("2022-07-01 12:00 - Alice: hi", NOW)
    assert parsed.timestamp.utcoffset() == timedelta(hours=2)


@pytest.mark.parametrize(
    ("year", "expected"),
    [(21, 2021), (49, 2049), (50, 1950), (65, 1965), (99, 1999), (2021, 2021)],
)
def test_normalize_year(year, expected):
    assert normalize_year(year) == expected


def test_to_24_hour():
    assert to_24_hour(12, "AM") == 0
    assert to_24_hour(12, "pm") == 12
    assert to_24_hour(1, "p.m.") == 13
    assert to_24_hour(17, None) == 17
    with pytest.raises(ValueError):
        to_24_hour(0, "AM")


def test_resolve_day_month():
    assert resolve_day_month(12, 31) == (31, 12)
    assert resolve_day_month(31, 12) == (31, 12)
    assert resolve_day_month(3, 4) == (4, 3)


def test_plausibility_window_bounds():
    window = PlausibilityWindow(earliest=date(2009, 1, 1), future_tolerance=timedelta(hours=24))
    assert window.contains(datetime(2009, 1, 1, tzinfo=timezone.utc), NOW)
    assert not window.contains(datetime(2008, 12, 31, 23, 59, tzinfo=timezone.utc), NOW)
    assert window.contains(NOW + timedelta(hours=24), NOW)
    assert not window.contains(NOW + timedelta(hours=24, seconds=1), NOW)


def test_parse_timestamp_variants(matcher):
    assert matcher.parse_timestamp("12/31/21, 11:58 PM", NOW) == datetime(2021, 12, 31, 23, 58, tzinfo=timezone.utc)
    assert matcher.parse_timestamp("[31/12/21, 23:58:07]", NOW) == datetime(2021, 12, 31, 23, 58, 7, tzinfo=timezone.utc)
    assert matcher.parse_timestamp("2021-12-31T23:58:00Z", NOW) == datetime(2021, 12, 31, 23, 58, tzinfo=timezone.utc)
    assert matcher.parse_timestamp("yesterday", NOW) is None
    assert matcher.parse_timestamp("", NOW) is None
    assert matcher.parse_timestamp("2001-01-01T00:00:00", NOW) is None
