from datetime import datetime, timezone

import pytest

from logrotor.timefmt import (
    format_backup_time,
    parse_backup_time,
    parse_with_pattern,
    strftime_to_parse_pattern,
)

UTC = timezone.utc


def test_format_backup_time_pins_layout():
    moment = datetime(2014, 5, 4, 14, 44, 33, 555000, tzinfo=UTC)
    assert format_backup_time(moment) == "2014-05-04T14-44-33.555"


def test_format_backup_time_truncates_to_milliseconds():
    moment = datetime(2021, 1, 2, 3, 4, 5, 999999, tzinfo=UTC)
    text = format_backup_time(moment)
    assert parse_backup_time(text) == moment.replace(microsecond=999000)


@pytest.mark.parametrize(
    "moment",
    [
        datetime(2014, 5, 4, 14, 44, 33, 555000, tzinfo=UTC),
        datetime(1999, 12, 31, 23, 59, 59, 0, tzinfo=UTC),
        datetime(2024, 2, 29, 0, 0, 0, 1000, tzinfo=UTC),
        datetime(987, 6, 7, 8, 9, 10, 11000, tzinfo=UTC),
    ],
)
def test_backup_time_round_trip(moment):
    assert parse_backup_time(format_backup_time(moment)) == moment


def test_parse_backup_time_accepts_comma_fraction():
    assert parse_backup_time("2014-05-04T14-44-33,555") == parse_backup_time(
        "2014-05-04T14-44-33.555"
    )


@pytest.mark.parametrize(
    "text",
    [
        "2014-05-04T14-44-33",
        "2014-05-04T14-44-33.55",
        "2014-05-04T14-44-33.5555",
        "2014-05-04T14-44-33.555.log",
        "2014-13-04T14-44-33.555",
        "2014-02-30T14-44-33.555",
        "2014-05-04T24-44-33.555",
        "2014-5-04T14-44-33.555",
        "foo-2014-05-04T14-44-33.555",
        "",
    ],
)
def test_parse_backup_time_rejects(text):
    with pytest.raises(ValueError):
        parse_backup_time(text)


def test_parse_pattern_keeps_supported_directives():
    pattern = "app-%Y%m%d%H%M%S.log"
    assert strftime_to_parse_pattern(pattern) == pattern


def test_parse_pattern_escapes_other_directives():
    assert strftime_to_parse_pattern("log-%j.txt") == "log-%%j.txt"


def test_parse_with_pattern_round_trip():
    original = "app-%Y-%m-%d_%H%M%S.log"
    moment = datetime(2023, 7, 14, 9, 5, 1, tzinfo=UTC)
    name = moment.strftime(original)
    assert parse_with_pattern(strftime_to_parse_pattern(original), name) == moment


def test_parse_with_pattern_defaults_missing_fields():
    pattern = strftime_to_parse_pattern("%H-%M")
    result = parse_with_pattern(pattern, "13-45")
    assert (result.hour, result.minute, result.second) == (13, 45, 0)
    assert (result.year, result.month, result.day) == (1, 1, 1)
    assert result.tzinfo == UTC


def test_unsupported_directive_only_matches_literally():
    pattern = strftime_to_parse_pattern("day-%j")
    with pytest.raises(ValueError):
        parse_with_pattern(pattern, "day-123")
    assert parse_with_pattern(pattern, "day-%j").year == 1


def test_parse_with_pattern_literal_percent():
    pattern = strftime_to_parse_pattern("%Y-100%")
    assert parse_with_pattern(pattern, "2020-100%").year == 2020


@pytest.mark.parametrize(
    "text",
    ["app-2023071.log", "app-20231301.log", "app-20230230.log", "app-20230714.txt"],
)
def test_parse_with_pattern_rejects(text):
    pattern = strftime_to_parse_pattern("app-%Y%m%d.log")
    with pytest.raises(ValueError):
        parse_with_pattern(pattern, text)