from __future__ import annotations

from datetime import date, time

import pytest

from src.class_attendance.class_attendance.common.datetime_utils import parse_hhmm, parse_iso_date
from src.class_attendance.class_attendance.common.validators import (
    parse_bool,
    parse_identity,
    parse_non_negative_int,
    parse_optional_identity,
    parse_positive_int,
)
from src.class_attendance.class_attendance.core.enums import DayOfWeek
from src.class_attendance.class_attendance.core.exceptions import ValidationError


@pytest.mark.parametrize("value, expected", [(5106, 5106), (12.0, 12), ("42", 42), (" 7 ", 7)])
def test_parse_identity_accepts_numeric_forms(value, expected):
    assert parse_identity(value, "id") == expected


@pytest.mark.parametrize("value", [None, True, 0, -3, 2.5, "", "abc", "1e3", [1]])
def test_parse_identity_rejects_everything_else(value):
    with pytest.raises(ValidationError):
        parse_identity(value, "id")


def test_optional_identity_and_positive_int():
    assert parse_optional_identity(None, "id") is None
    assert parse_optional_identity("  ", "id") is None
    assert parse_optional_identity("9", "id") == 9

    with pytest.raises(ValidationError, match="positive whole number"):
        parse_positive_int(0, "duration")


def test_parse_non_negative_int():
    assert parse_non_negative_int(0, "lateThreshold") == 0
    assert parse_non_negative_int("0", "lateThreshold") == 0
    assert parse_non_negative_int(15.0, "lateThreshold") == 15
    with pytest.raises(ValidationError, match="zero or a positive"):
        parse_non_negative_int(-1, "lateThreshold")
    with pytest.raises(ValidationError):
        parse_non_negative_int(True, "lateThreshold")


def test_parse_bool():
    assert parse_bool(True, "flag") is True
    assert parse_bool("false", "flag") is False
    with pytest.raises(ValidationError):
        parse_bool(1, "flag")


@pytest.mark.parametrize("value, expected", [("08:00", time(8, 0)), ("8:05", time(8, 5)), ("23:59", time(23, 59))])
def test_parse_hhmm(value, expected):
    assert parse_hhmm(value) == expected


@pytest.mark.parametrize("value", ["24:00", "08:60", "0800", "", None, "08:00:00"])
def test_parse_hhmm_rejects(value):
    with pytest.raises(ValidationError):
        parse_hhmm(value, "start_time")


def test_parse_iso_date():
    assert parse_iso_date("2025-03-03") == date(2025, 3, 3)
    with pytest.raises(ValidationError):
        parse_iso_date("03/03/2025")
    with pytest.raises(ValidationError):
        parse_iso_date(None)


@pytest.mark.parametrize(
    "token, expected",
    [("Monday", DayOfWeek.MONDAY), ("friday", DayOfWeek.FRIDAY), ("Senin", DayOfWeek.MONDAY), ("jumat", DayOfWeek.FRIDAY)],
)
def test_day_parse(token, expected):
    assert DayOfWeek.parse(token) is expected


def test_day_parse_unknown():
    assert DayOfWeek.parse("Funday") is None
    assert DayOfWeek.parse("") is None
