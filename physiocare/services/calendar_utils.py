"""
Date and time helpers shared by the scheduling services.

All values are naive local datetimes; no timezone conversion happens here.
Request dates travel as "dd MMM, yyyy" strings (e.g. "10 Apr, 2025") and
times as "h:mm a" strings (e.g. "9:00 AM").
"""
from datetime import datetime, date, time, timedelta

from physiocare.logger import get_logger

log = get_logger("calendar")

REQUEST_DATE_FORMAT = "%d %b, %Y"
MESSAGE_DATE_FORMAT = "%d %b %Y"
TIME_FORMAT = "%I:%M %p"


class DateParseError(ValueError):
	pass


def parse_request_date(date_str: str) -> date:
	try:
		return datetime.strptime(date_str.strip(), REQUEST_DATE_FORMAT).date()
	except (ValueError, AttributeError) as exc:
		raise DateParseError(f"Invalid request date {date_str!r}, expected e.g. '10 Apr, 2025'") from exc


def parse_display_time(time_str: str) -> time:
	try:
		return datetime.strptime(time_str.strip().upper(), TIME_FORMAT).time()
	except (ValueError, AttributeError) as exc:
		raise DateParseError(f"Invalid time {time_str!r}, expected e.g. '9:00 AM'") from exc


def parse_request_datetime(date_str: str, time_str: str) -> datetime:
	return datetime.combine(parse_request_date(date_str), parse_display_time(time_str))


def parse_request_datetime_or_now(date_str: str, time_str: str, now: datetime | None = None) -> datetime:
	# lenient variant: callers accept that bad input silently becomes "now"
	try:
		return parse_request_datetime(date_str, time_str)
	except DateParseError:
		log.warning("Could not parse %r %r, falling back to now", date_str, time_str)
		return now or datetime.now()


def combine_slot(day: date | datetime, time_str: str) -> datetime:
	if isinstance(day, datetime):
		day = day.date()
	return datetime.combine(day, parse_display_time(time_str))


def start_of_day(value: datetime) -> datetime:
	return datetime.combine(value.date(), time.min)


def start_of_tomorrow(now: datetime | None = None) -> datetime:
	return start_of_day(now or datetime.now()) + timedelta(days=1)


def is_same_day(a: datetime | date, b: datetime | date) -> bool:
	a_day = a.date() if isinstance(a, datetime) else a
	b_day = b.date() if isinstance(b, datetime) else b
	return a_day == b_day


def is_tomorrow_or_later(value: datetime, now: datetime | None = None) -> bool:
	return value >= start_of_tomorrow(now)


def format_request_date(value: datetime | date) -> str:
	return value.strftime(REQUEST_DATE_FORMAT)


def format_message_date(value: datetime | date) -> str:
	return value.strftime(MESSAGE_DATE_FORMAT)


def format_display_time(value: datetime | time) -> str:
	# "h:mm a": no leading zero on the hour
	hour = value.hour % 12 or 12
	suffix = "AM" if value.hour < 12 else "PM"
	return f"{hour}:{value.minute:02d} {suffix}"


def normalize_time(time_str: str) -> str:
	return format_display_time(parse_display_time(time_str))
