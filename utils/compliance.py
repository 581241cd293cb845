# utils/compliance.py

"""
CLT compliance pass for monthly schedules.

Whatever produced the schedule (the AI generator or manual edits), no
collaborator may end up with more than MAX_CONSECUTIVE_WORKDAYS worked days
in a row: the day that would break the limit is forced to FOLGA and an
advisory is recorded.
"""

import calendar
import logging
from datetime import date

from settings.constants import (
    DEFAULT_MONTH_DAYS,
    MAX_CONSECUTIVE_WORKDAYS,
    NON_WORKING_CODES,
    REST_CODE,
)

logger = logging.getLogger(__name__)

CORRECTION_NOTICE = (
    "Correção CLT: O 7º dia consecutivo de trabalho foi convertido em FOLGA "
    "para cumprir a lei."
)


def is_worked(status) -> bool:
    """Anything outside the non-working set counts as a worked day, blanks included."""
    return (status or "") not in NON_WORKING_CODES


def pad_schedule(scale: list, num_days: int) -> list:
    """Right-pad a daily status list with FOLGA up to num_days."""
    padded = list(scale)
    while len(padded) < num_days:
        padded.append(REST_CODE)
    return padded


def _advisory(employee_id, day_index, year=None, month=None) -> dict:
    corrected_on = None
    if year and month and day_index < calendar.monthrange(year, month)[1]:
        corrected_on = date(year, month, day_index + 1).isoformat()
    return {
        "colab": str(employee_id),
        "aviso": CORRECTION_NOTICE,
        "status": "fixed",
        "dia": day_index + 1,
        "data": corrected_on,
    }


def enforce_consecutive_limit(scale, employee_id, num_days=DEFAULT_MONTH_DAYS,
                              year=None, month=None,
                              limit=MAX_CONSECUTIVE_WORKDAYS):
    """
    Correct one collaborator's month.
    Returns (corrected list, advisories).
    """
    corrected = pad_schedule(scale, num_days)
    alerts = []

    consecutive = 0
    for i, status in enumerate(corrected):
        if is_worked(status):
            consecutive += 1
        else:
            consecutive = 0

        if consecutive > limit:
            corrected[i] = REST_CODE
            consecutive = 0
            alerts.append(_advisory(employee_id, i, year, month))

    return corrected, alerts


def correct_allocations(allocations: dict, num_days=DEFAULT_MONTH_DAYS,
                        year=None, month=None,
                        limit=MAX_CONSECUTIVE_WORKDAYS):
    """
    Apply the consecutive-workday limit to every collaborator.

    allocations maps employee id -> list of daily status codes.
    Entries that are not lists are passed through untouched.
    The input mapping is not modified.

    Returns (corrected allocations, advisories).
    """
    corrected = {}
    alerts = []

    for employee_id, scale in (allocations or {}).items():
        if not isinstance(scale, list):
            logger.debug("Skipping malformed allocation for %s: %r", employee_id, scale)
            corrected[employee_id] = scale
            continue

        fixed, employee_alerts = enforce_consecutive_limit(
            scale, employee_id, num_days=num_days, year=year, month=month, limit=limit
        )
        corrected[employee_id] = fixed
        alerts.extend(employee_alerts)

    if alerts:
        logger.info("CLT corrector forced %d rest days", len(alerts))

    return corrected, alerts


def count_violations(allocations: dict, limit=MAX_CONSECUTIVE_WORKDAYS) -> dict:
    """Number of over-limit runs per collaborator, without fixing anything."""
    violations = {}
    for employee_id, scale in (allocations or {}).items():
        if not isinstance(scale, list):
            continue
        runs = 0
        consecutive = 0
        for status in scale:
            consecutive = consecutive + 1 if is_worked(status) else 0
            if consecutive == limit + 1:
                runs += 1
        if runs:
            violations[employee_id] = runs
    return violations
