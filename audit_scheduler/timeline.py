from __future__ import annotations

from datetime import date
from typing import List

from dateutil.relativedelta import MO, relativedelta

from .models import WEEKS_IN_YEAR


def first_monday(year: int) -> date:
    return date(year, 1, 1) + relativedelta(weekday=MO(+1))


def build_timeline(year: int) -> List[date]:
    """Mondays of ``year`` starting on/after Jan 1, at most 53 of them."""
    weeks: List[date] = []
    current = first_monday(year)
    while current.year <= year and len(weeks) < WEEKS_IN_YEAR:
        weeks.append(current)
        current += relativedelta(weeks=1)
    return weeks


def week_label(value: date) -> str:
    return f"{value.month}/{value.day}/{value.strftime('%y')}"
