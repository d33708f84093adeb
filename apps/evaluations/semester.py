"""Semester labels ("Fall 2025") derived from a calendar date.

Two calendars are supported, selected by ``settings.SEMESTER_SCHEME``:

* ``quarters``: Jan-Mar Winter, Apr-Jun Spring, Jul-Sep Summer, Oct-Dec Fall
* ``trimesters``: Jan-Apr Spring, May-Aug Summer, Sep-Dec Fall
"""
from datetime import date

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

QUARTERS = "quarters"
TRIMESTERS = "trimesters"

_SCHEMES = {
    QUARTERS: ((3, "Winter"), (6, "Spring"), (9, "Summer"), (12, "Fall")),
    TRIMESTERS: ((4, "Spring"), (8, "Summer"), (12, "Fall")),
}


def season_for_month(month: int, scheme: str) -> str:
    try:
        bounds = _SCHEMES[scheme]
    except KeyError:
        raise ImproperlyConfigured(f"Unknown SEMESTER_SCHEME {scheme!r}") from None
    for last_month, season in bounds:
        if month <= last_month:
            return season
    raise ValueError(f"Invalid month: {month}")


def current_semester(today: date | None = None, scheme: str | None = None) -> str:
    today = today or timezone.localdate()
    scheme = scheme or getattr(settings, "SEMESTER_SCHEME", QUARTERS)
    return f"{season_for_month(today.month, scheme)} {today.year}"
