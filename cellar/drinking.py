"""Drinking window status: drink now, too young or past its peak."""

import re
from datetime import date

from cellar.models import DrinkingStatusInfo

_RANGE_RE = re.compile(r"(\d{4})\s*[-–—]\s*(\d{4})")
_YEAR_RE = re.compile(r"(\d{4})")


def _years(n: int) -> str:
    return f"{n} year{'s' if n > 1 else ''}"


def get_drinking_status(window: str | None, current_year: int | None = None) -> DrinkingStatusInfo:
    """
    Classify a drinking window such as "2024-2030", "Drink now" or "From 2027".

    Args:
        window: Drinking window text, usually filled in by enrichment
        current_year: Year to compare against, defaults to today

    Returns:
        DrinkingStatusInfo; unparseable windows come back as "unknown" with
        the raw text as description
    """
    if not window or not window.strip():
        return DrinkingStatusInfo(
            status="unknown", label="Unknown", description="No drinking window specified", urgency=0
        )

    year = current_year or date.today().year
    lowered = window.lower().strip()

    if "drink now" in lowered or "ready" in lowered or "anytime" in lowered:
        return DrinkingStatusInfo(status="drink-now", label="Drink now", description="Ready to enjoy", urgency=2)

    m = _RANGE_RE.search(window)
    if m:
        start, end = int(m.group(1)), int(m.group(2))
        if year < start:
            wait = start - year
            return DrinkingStatusInfo(
                status="too-young",
                label="Too young",
                description=f"Wait {_years(wait)} more (from {start})",
                urgency=0,
            )
        if year > end:
            return DrinkingStatusInfo(
                status="past-peak",
                label="Past peak",
                description=f"{_years(year - end)} past optimal window",
                urgency=3,
            )
        left = end - year
        if left <= 1:
            return DrinkingStatusInfo(
                status="drink-soon", label="Drink soon", description="Last year of optimal window", urgency=3
            )
        if left <= 2:
            return DrinkingStatusInfo(
                status="drink-soon",
                label="Drink soon",
                description=f"{left} years left in optimal window",
                urgency=2,
            )
        return DrinkingStatusInfo(
            status="drink-now",
            label="Drink now",
            description=f"Optimal until {end} ({left} years)",
            urgency=1,
        )

    m = _YEAR_RE.search(window)
    if m:
        target = int(m.group(1))
        if "from" in lowered or "after" in lowered:
            if year < target:
                return DrinkingStatusInfo(
                    status="too-young", label="Too young", description=f"Wait until {target}", urgency=0
                )
            return DrinkingStatusInfo(
                status="drink-now", label="Drink now", description=f"Ready since {target}", urgency=1
            )
        if "until" in lowered or "before" in lowered or re.search(r"\bby\b", lowered):
            if year >= target:
                return DrinkingStatusInfo(
                    status="past-peak",
                    label="Past peak",
                    description=f"Should have been drunk by {target}",
                    urgency=3,
                )
            if target - year <= 2:
                return DrinkingStatusInfo(
                    status="drink-soon", label="Drink soon", description=f"Drink before {target}", urgency=2
                )
            return DrinkingStatusInfo(
                status="drink-now", label="Drink now", description=f"Best before {target}", urgency=1
            )

    return DrinkingStatusInfo(status="unknown", label="Unknown", description=window, urgency=0)
