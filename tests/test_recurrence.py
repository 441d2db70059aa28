from datetime import datetime

import pytest

from clubhub.errors import BadRequest
from clubhub.utils import recurrence

START = datetime(2030, 1, 7, 18, 0)  # Monday


def test_weekly_rule_with_count():
    rule = recurrence.build_rrule(START, "weekly", count=3)
    dates = recurrence.occurrences_between(rule, datetime(2030, 1, 1), datetime(2030, 12, 31))
    assert dates == [datetime(2030, 1, 7, 18), datetime(2030, 1, 14, 18), datetime(2030, 1, 21, 18)]


def test_biweekly_forces_interval_two():
    rule = recurrence.build_rrule(START, "biweekly", interval=5, count=2)
    assert recurrence.next_occurrences(rule, 2, START) == [START, datetime(2030, 1, 21, 18)]


def test_weekdays():
    rule = recurrence.build_rrule(START, "weekly", weekdays=["MO", "WE"], count=4)
    dates = recurrence.next_occurrences(rule, 4, START)
    assert [d.day for d in dates] == [7, 9, 14, 16]
    assert recurrence.describe(rule) == "every week on Monday, Wednesday for 4 times"


def test_until_wins_over_count():
    rule = recurrence.build_rrule(START, "daily", until=datetime(2030, 1, 9, 18), count=10)
    assert len(recurrence.occurrences_between(rule, START, datetime(2030, 2, 1))) == 3


def test_unknown_frequency():
    with pytest.raises(BadRequest):
        recurrence.build_rrule(START, "yearly")


def test_filter_exceptions_and_duration():
    dates = [datetime(2030, 1, 7, 18), datetime(2030, 1, 14, 18)]
    kept = recurrence.filter_exceptions(dates, [datetime(2030, 1, 7, 18)])
    assert kept == [datetime(2030, 1, 14, 18)]
    assert recurrence.apply_duration(kept, 90) == [
        {"start_time": datetime(2030, 1, 14, 18), "end_time": datetime(2030, 1, 14, 19, 30)}
    ]


def test_add_until_drops_count():
    rule = recurrence.build_rrule(START, "weekly", count=10)
    ended = recurrence.add_until(rule, datetime(2030, 1, 15))
    assert len(recurrence.occurrences_between(ended, START, datetime(2031, 1, 1))) == 2


def test_describe_invalid_rule():
    assert recurrence.describe("not a rule") == "Invalid recurrence rule"
