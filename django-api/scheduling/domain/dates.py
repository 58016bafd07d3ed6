"""Calendar arithmetic on plain dates.

Month arithmetic uses ``relativedelta``, which clamps to the last day of
the target month (Jan 31 + 1 month = Feb 28, or Feb 29 in a leap year).
"""

from datetime import date, timedelta

from dateutil.relativedelta import relativedelta


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_weeks(value: date, weeks: int) -> date:
    return value + timedelta(weeks=weeks)


def add_months(value: date, months: int) -> date:
    return value + relativedelta(months=months)
