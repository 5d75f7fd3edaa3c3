#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_partition
    ~~~~~~~~~~~~~~~~~~~~

    Borrow-date partitions and the markerless month window.

    :copyright: (c) 2015 by Authors.
    :license: see LICENSE for more details.
"""

import re
import time
from datetime import date, datetime

import pytest

from borrowtrack.core.exceptions import InvalidDateFormat, ValidationError
from borrowtrack.core.partition import DAYS, Partition, partition_of, recent_months
from borrowtrack.core.utils import calendar_date, now_iso, parse_local_date


@pytest.fixture
def utc_process(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time zone switching needs tzset")
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_partition_of_date_string():
    assert partition_of("2024-03-15") == Partition("2024-03", "15")


@pytest.mark.parametrize("value", [
    "2024-01-01", "2024-12-31", "1999-07-04T10:30:00", date(2024, 2, 29), datetime(2030, 6, 9, 8),
])
def test_partition_shape_is_stable(value):
    first = partition_of(value)
    assert re.match(r"^\d{4}-\d{2}$", first.year_month)
    assert re.match(r"^\d{2}$", first.day)
    assert partition_of(value) == first


def test_naive_timestamp_is_taken_as_local():
    assert partition_of("2024-03-15T23:59:59") == Partition("2024-03", "15")


def test_offset_timestamp_converts_to_local_zone(utc_process):
    assert partition_of("2024-03-15T23:30:00-05:00") == Partition("2024-03", "16")
    assert partition_of("2024-03-31T22:00:00.000Z") == Partition("2024-03", "31")


@pytest.mark.parametrize("value", ["", "   ", "not a date", "2024-13-01", "2024-02-30", None, 20240315])
def test_unparseable_dates_raise(value):
    with pytest.raises(InvalidDateFormat) as excinfo:
        partition_of(value)
    assert isinstance(excinfo.value, ValidationError)
    assert excinfo.value.field == "borrowDate"


def test_calendar_date_tolerates_garbage():
    assert calendar_date("garbage") is None
    assert calendar_date("2024-03-15T08:00:00") == date(2024, 3, 15)


def test_parse_local_date_reports_field():
    with pytest.raises(InvalidDateFormat) as excinfo:
        parse_local_date("soon", field="dueDate")
    assert excinfo.value.field == "dueDate"


def test_now_iso_looks_like_browser_timestamp():
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", now_iso())


def test_days_cover_one_to_thirty_one():
    assert DAYS[0] == "01" and DAYS[-1] == "31" and len(DAYS) == 31


def test_recent_months_spans_year_boundary():
    months = recent_months(18, today=date(2024, 3, 15))
    assert len(months) == 18
    assert months[0] == "2022-10"
    assert months[-1] == "2024-03"
    assert "2023-01" in months and "2022-12" in months
    assert months == sorted(months)


def test_recent_months_empty_window():
    assert recent_months(0, today=date(2024, 3, 15)) == []
