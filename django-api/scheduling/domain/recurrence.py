"""Recurrence expansion: pure computation, no I/O."""

from datetime import date
from typing import Callable

from scheduling.domain.dates import add_days, add_months, add_weeks
from scheduling.domain.errors import ValidationError
from scheduling.domain.value_objects import RecurrenceRule, RecurrenceType

# Occurrence k is computed from the start date, never from occurrence k-1,
# so a clamped month end (Jan 31 -> Feb 28) does not drift into later months.
_STEPS: dict[RecurrenceType, Callable[[date, int], date]] = {
    RecurrenceType.DAILY: add_days,
    RecurrenceType.WEEKLY: add_weeks,
    RecurrenceType.BIWEEKLY: lambda start, k: add_weeks(start, 2 * k),
    RecurrenceType.MONTHLY: add_months,
}


def validate_rule(start: date, rule: RecurrenceRule) -> None:
    """Check that ``rule`` can be expanded from ``start``.

    Raises:
        ValidationError: If a recurring rule has no end date, or it ends before it starts.
    """
    if not rule.type.is_recurring:
        return
    if rule.end_date is None:
        raise ValidationError(
            "Recurrence end date is required for recurring events",
            field="recurrence_end_date",
        )
    if rule.end_date < start:
        raise ValidationError(
            "Recurrence end date cannot be before the event date",
            field="recurrence_end_date",
        )


def expand(start: date, rule: RecurrenceRule) -> list[date]:
    """Return the ordered dates of every occurrence, starting with ``start``.

    A non-recurring rule yields ``[start]`` whatever its end date. Otherwise
    occurrences are generated until the next one would fall after the end
    date; ``start`` is always included, also when it equals the end date.
    """
    validate_rule(start, rule)
    if not rule.type.is_recurring:
        return [start]

    step = _STEPS[rule.type]
    dates = [start]
    k = 1
    while True:
        next_date = step(start, k)
        if next_date > rule.end_date:
            break
        dates.append(next_date)
        k += 1
    return dates
