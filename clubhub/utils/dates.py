from datetime import datetime, timedelta

import pytz

# Datetimes are stored naive in UTC.


def utcnow():
    return datetime.utcnow()


def iso(value):
    return value.isoformat() if value else None


def parse_datetime(value):
    """Parse an ISO-8601 string into a naive UTC datetime."""
    if value is None or isinstance(value, datetime):
        return to_naive_utc(value)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return to_naive_utc(parsed)


def to_naive_utc(value):
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def week_start(value):
    """Monday 00:00 of the week containing ``value``."""
    day = value - timedelta(days=value.weekday())
    return day.replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(value):
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def day_start(value):
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def get_timezone(name, fallback="UTC"):
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(fallback)


def tomorrow_bounds(timezone_name, now=None):
    """Start and end of tomorrow in ``timezone_name``, as naive UTC datetimes."""
    return local_day_bounds(timezone_name, local_date(timezone_name, now) + timedelta(days=1))


def format_in_timezone(value, timezone_name, kind="datetime"):
    tz = get_timezone(timezone_name)
    local = pytz.utc.localize(value).astimezone(tz)
    if kind == "time":
        return local.strftime("%I:%M %p").lstrip("0")
    if kind == "date":
        return local.strftime("%A, %B %d, %Y")
    return local.strftime("%Y-%m-%d %H:%M")


def age_on(birth_date, today=None):
    today = today or utcnow().date()
    born = birth_date.date() if isinstance(birth_date, datetime) else birth_date
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def local_date(timezone_name, now=None):
    """The calendar date in ``timezone_name`` at ``now`` (naive UTC)."""
    now = now or utcnow()
    return pytz.utc.localize(now).astimezone(get_timezone(timezone_name)).date()


def local_day_bounds(timezone_name, day):
    """Start and end of ``day`` in ``timezone_name``, as naive UTC datetimes."""
    tz = get_timezone(timezone_name)
    start = tz.localize(datetime(day.year, day.month, day.day))
    end = tz.localize(datetime(day.year, day.month, day.day, 23, 59, 59, 999999))
    return to_naive_utc(start), to_naive_utc(end)
