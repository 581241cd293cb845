# utils/calculations.py

"""
Calculation utilities:
- working days (weekends + holidays excluded)
- vacation periods from FÉRIAS schedule rows
- tenure labels
"""

from datetime import date, timedelta

import pandas as pd

from settings.constants import HOLIDAYS, VACATION_CODE


def is_working_day(d: date, holidays=None) -> bool:
    """Return True if the given date is NOT a weekend and NOT a holiday."""
    holidays = HOLIDAYS if holidays is None else holidays
    if d.weekday() >= 5:  # Saturday/Sunday
        return False
    if d in holidays:
        return False
    return True


def working_days_between(start, end, holidays=None) -> int:
    """Working days in [start, end]; the interval is swapped if reversed."""
    start = pd.to_datetime(start).date()
    end = pd.to_datetime(end).date()
    if end < start:
        start, end = end, start

    days = pd.date_range(start, end, freq="D")
    return sum(1 for d in days if is_working_day(d.date(), holidays))


def holidays_in_month(year: int, month: int) -> list:
    """Holidays of the month in the shape the smart schedule input expects."""
    return [
        {"data": d.isoformat(), "tipo": "nacional", "nome": name}
        for d, name in sorted(HOLIDAYS.items())
        if d.year == year and d.month == month
    ]


def vacation_periods(rows) -> list:
    """
    Group FÉRIAS schedule rows into contiguous periods per collaborator.
    A new period starts on a gap of more than one day or a status change.
    """
    by_employee = {}
    for row in rows or []:
        if row.get("shift_type") != VACATION_CODE:
            continue
        d = pd.to_datetime(row.get("schedule_date"), errors="coerce")
        if pd.isna(d):
            continue
        by_employee.setdefault(row.get("employee_id"), []).append(
            (d.date(), row.get("status") or "planned")
        )

    periods = []
    for emp_id, days in by_employee.items():
        days.sort()
        start, status = days[0]
        prev = start
        for d, st in days[1:]:
            if d - prev > timedelta(days=1) or st != status:
                periods.append(_period(emp_id, start, prev, status))
                start, status = d, st
            prev = d
        periods.append(_period(emp_id, start, prev, status))

    return sorted(periods, key=lambda p: (p["start"], str(p["employee_id"])))


def _period(emp_id, start, end, status) -> dict:
    return {
        "employee_id": emp_id,
        "start": start,
        "end": end,
        "days": (end - start).days + 1,
        "status": status,
    }


def vacation_days_in_month(periods, year: int, month: int) -> int:
    """Working days of the given month covered by vacation periods."""
    month_start = date(year, month, 1)
    month_end = (pd.Timestamp(year, month, 1) + pd.offsets.MonthEnd(1)).date()

    total = 0
    for p in periods or []:
        s = max(p["start"], month_start)
        e = min(p["end"], month_end)
        if e < s:
            continue
        total += working_days_between(s, e)
    return total


def on_vacation(periods, day: date) -> set:
    """Collaborators whose vacation covers `day`."""
    return {p["employee_id"] for p in periods or [] if p["start"] <= day <= p["end"]}


def tenure_label(admission, today=None) -> str:
    """'2 anos, 3 meses, 4 dias' style tenure since admission."""
    if not admission:
        return "N/A"
    admission = pd.to_datetime(admission, errors="coerce")
    if pd.isna(admission):
        return "N/A"
    admission = admission.date()
    today = today or date.today()

    years = today.year - admission.year
    months = today.month - admission.month
    days = today.day - admission.day

    if days < 0:
        months -= 1
        prev_month_last_day = (today.replace(day=1) - timedelta(days=1)).day
        days += prev_month_last_day
    if months < 0:
        years -= 1
        months += 12

    parts = []
    if years > 0:
        parts.append(f"{years} {'ano' if years == 1 else 'anos'}")
    if months > 0:
        parts.append(f"{months} {'mês' if months == 1 else 'meses'}")
    if days > 0 or not parts:
        parts.append(f"{days} {'dia' if days == 1 else 'dias'}")

    return ", ".join(parts)
