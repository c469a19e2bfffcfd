"""Assorted utility helpers."""

from __future__ import annotations

import calendar
from datetime import date


def effective_credit_score(score1, score2=None, borrower_count=1):
    """Score used for pricing: the lower of the two when two borrowers apply."""
    try:
        s1 = int(score1)
    except (TypeError, ValueError):
        s1 = 0
    if borrower_count == 2 and score2 is not None:
        try:
            return min(s1, int(score2))
        except (TypeError, ValueError):
            return s1
    return s1


def credit_score_tier(score):
    """Map a numeric credit score to the minimum score of its PMI pricing tier."""
    try:
        s = float(score)
    except (TypeError, ValueError):
        return 0
    for floor in (760, 740, 720, 700, 680):
        if s >= floor:
            return floor
    return 0


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole months, keeping the day where the month allows."""
    idx = start.month - 1 + int(months)
    year = start.year + idx // 12
    month = idx % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def time_label(months: int) -> str:
    """Human label for a comparison horizon (``"5 years"``, ``"18 months"``)."""
    if months >= 12 and months % 12 == 0:
        years = months // 12
        return f"{years} year{'s' if years > 1 else ''}"
    return f"{months} month{'s' if months != 1 else ''}"
