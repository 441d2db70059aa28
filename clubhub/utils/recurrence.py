"""Recurring training session rules.

Rules are stored as iCalendar RRULE strings including ``DTSTART`` (as produced
by ``str(rrule)``); all datetimes are naive UTC.
"""

from datetime import timedelta

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, rrule, rrulestr, weekday
from dateutil.rrule import MO, TU, WE, TH, FR, SA, SU

from clubhub.errors import BadRequest

FREQUENCIES = ("daily", "weekly", "biweekly", "monthly")
WEEKDAYS = {"MO": MO, "TU": TU, "WE": WE, "TH": TH, "FR": FR, "SA": SA, "SU": SU}

DAY_LABELS = {
    "MO": "Monday", "TU": "Tuesday", "WE": "Wednesday", "TH": "Thursday",
    "FR": "Friday", "SA": "Saturday", "SU": "Sunday",
}
FREQUENCY_LABELS = {
    "daily": "Daily",
    "weekly": "Weekly",
    "biweekly": "Every 2 weeks",
    "monthly": "Monthly",
}
_WEEKDAY_CODES = ["MO", "TU", "WE", "TH", "FR", "SA", "SU"]


def build_rrule(start, frequency, interval=None, weekdays=None, until=None, count=None):
    """Builds the rule string for a session starting at ``start``."""
    if frequency not in FREQUENCIES:
        raise BadRequest(f"Invalid recurrence frequency: {frequency}")

    options = {"dtstart": start.replace(microsecond=0)}
    if frequency == "daily":
        options["freq"] = DAILY
        options["interval"] = interval or 1
    elif frequency in ("weekly", "biweekly"):
        options["freq"] = WEEKLY
        options["interval"] = 2 if frequency == "biweekly" else (interval or 1)
        if weekdays:
            options["byweekday"] = [WEEKDAYS[day] for day in weekdays]
    else:
        options["freq"] = MONTHLY
        options["interval"] = interval or 1

    # until wins over count
    if until is not None:
        options["until"] = until
    elif count:
        options["count"] = count

    return str(rrule(**options))


def build_rrule_from_config(start, config):
    return build_rrule(
        start,
        config["frequency"],
        interval=config.get("interval"),
        weekdays=config.get("weekdays"),
        until=config.get("until"),
        count=config.get("count"),
    )


def parse_rrule(rule_string):
    try:
        return rrulestr(rule_string)
    except (ValueError, TypeError) as e:
        raise BadRequest(f"Invalid recurrence rule: {e}")


def occurrences_between(rule_string, start, end):
    """Occurrence start times within ``[start, end]``."""
    return parse_rrule(rule_string).between(start, end, inc=True)


def next_occurrences(rule_string, count, after):
    rule = parse_rrule(rule_string)
    result = []
    for occurrence in rule.xafter(after, count=count, inc=True):
        result.append(occurrence)
    return result


def filter_exceptions(occurrences, exception_dates):
    excluded = set(exception_dates)
    return [occurrence for occurrence in occurrences if occurrence not in excluded]


def apply_duration(occurrences, duration_minutes):
    delta = timedelta(minutes=duration_minutes)
    return [{"start_time": occurrence, "end_time": occurrence + delta} for occurrence in occurrences]


def session_duration(start_time, end_time):
    return round((end_time - start_time).total_seconds() / 60)


def add_until(rule_string, until):
    """Ends the rule at ``until``; any COUNT is removed."""
    rule = parse_rrule(rule_string)
    return str(rule.replace(until=until, count=None))


def _weekday_code(day):
    index = day.weekday if isinstance(day, weekday) else day
    return _WEEKDAY_CODES[index]


def describe(rule_string):
    """Short English description, e.g. ``every 2 weeks on Monday, Wednesday``."""
    try:
        rule = parse_rrule(rule_string)
    except BadRequest:
        return "Invalid recurrence rule"

    freq = rule._freq
    interval = rule._interval
    unit = {DAILY: "day", WEEKLY: "week", MONTHLY: "month"}.get(freq, "period")
    text = f"every {unit}" if interval == 1 else f"every {interval} {unit}s"

    if freq == WEEKLY and rule._byweekday:
        days = sorted(rule._byweekday)
        text += " on " + ", ".join(DAY_LABELS[_weekday_code(day)] for day in days)
    if rule._count:
        text += f" for {rule._count} times"
    elif rule._until:
        text += f" until {rule._until.strftime('%B %d, %Y')}"
    return text
