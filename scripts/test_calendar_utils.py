import pytest
from datetime import datetime, date, time
from physiocare.services import calendar_utils as cal


def test_parse_request_datetime():
	assert cal.parse_request_datetime("10 Apr, 2025", "2:00 PM") == datetime(2025, 4, 10, 14, 0)
	assert cal.parse_request_datetime("01 Jan, 2026", "12:15 am") == datetime(2026, 1, 1, 0, 15)


def test_parse_failures_raise():
	with pytest.raises(cal.DateParseError):
		cal.parse_request_date("2025-04-10")
	with pytest.raises(cal.DateParseError):
		cal.parse_display_time("14h00")


def test_lenient_parse_falls_back_to_now():
	now = datetime(2025, 4, 1, 9, 30)
	assert cal.parse_request_datetime_or_now("not a date", "9:00 AM", now=now) == now


def test_formatting_round_trips_display_conventions():
	when = datetime(2025, 4, 10, 8, 5)
	assert cal.format_request_date(when) == "10 Apr, 2025"
	assert cal.format_display_time(when) == "8:05 AM"
	assert cal.format_display_time(time(12, 0)) == "12:00 PM"
	assert cal.format_display_time(time(0, 0)) == "12:00 AM"
	assert cal.format_message_date(when) == "10 Apr 2025"
	assert cal.normalize_time("09:00 am") == "9:00 AM"


def test_day_helpers():
	now = datetime(2025, 4, 10, 23, 59)
	assert cal.start_of_day(now) == datetime(2025, 4, 10)
	assert cal.start_of_tomorrow(now) == datetime(2025, 4, 11)
	assert cal.is_same_day(datetime(2025, 4, 10, 1), date(2025, 4, 10))
	assert not cal.is_tomorrow_or_later(datetime(2025, 4, 10, 23, 59, 59), now)
	assert cal.is_tomorrow_or_later(datetime(2025, 4, 11), now)


def test_combine_slot_uses_calendar_day_only():
	assert cal.combine_slot(datetime(2025, 4, 10, 17, 45), "9:00 AM") == datetime(2025, 4, 10, 9, 0)
