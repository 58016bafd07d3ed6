"""Phone number normalization to E.164 (North American default)."""

import re

from scheduling.domain.errors import ValidationError

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str) -> str:
    """Return ``raw`` as ``+<digits>``, assuming +1 for bare 10-digit numbers.

    Raises:
        ValidationError: If fewer than 10 digits remain.
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if len(digits) < 10:
        raise ValidationError("Valid phone number required", field="phone")
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"
