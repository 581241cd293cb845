# utils/schedules.py

"""
Monthly schedule grid helpers:
- month expansion
- grid initialisation and edits (single cell / bulk)
- presence counts for the chart
- conversion to and from `schedules` rows
"""

import calendar
from collections import Counter
from datetime import date

import pandas as pd

from settings.constants import (
    ABSENT_CODES,
    DEFAULT_WORK_SHIFT,
    REST_CODE,
    SCHEDULE_CODES,
)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_days(year: int, month: int) -> list:
    """Every date of the given month, in order."""
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


def month_bounds(year: int, month: int):
    """(first day, last day) as ISO strings, for range queries."""
    days = month_days(year, month)
    return days[0].isoformat(), days[-1].isoformat()


def default_scale(days: list) -> list:
    """Weekends off, weekdays on the standard shift."""
    return [REST_CODE if d.weekday() >= 5 else DEFAULT_WORK_SHIFT for d in days]


def default_month_grid(employee_ids, days: list) -> dict:
    return {emp_id: default_scale(days) for emp_id in employee_ids}


def ensure_grid(grid: dict, employee_ids, days: list) -> dict:
    """
    Re-initialise any collaborator whose scale is missing
    or does not match the month length.
    """
    out = dict(grid or {})
    for emp_id in employee_ids:
        scale = out.get(emp_id)
        if not isinstance(scale, list) or len(scale) != len(days):
            out[emp_id] = default_scale(days)
    return out


def _check_code(status: str):
    if status not in SCHEDULE_CODES:
        raise ValueError(f"Status de escala inválido: {status!r}")


def update_shift(grid: dict, employee_id, day_index: int, status: str) -> dict:
    """Set one cell. Returns a new grid."""
    _check_code(status)
    scale = list(grid[employee_id])
    if not 0 <= day_index < len(scale):
        raise IndexError(f"Dia fora do mês: {day_index + 1}")
    scale[day_index] = status
    out = dict(grid)
    out[employee_id] = scale
    return out


def apply_bulk_status(grid: dict, targets, status: str, start_day=None, end_day=None) -> dict:
    """
    Set `status` for every target collaborator, on the whole month
    or on the 1-based inclusive day range [start_day, end_day].
    targets="all" applies to every collaborator in the grid.
    """
    _check_code(status)
    if targets == "all":
        targets = list(grid.keys())

    out = dict(grid)
    for emp_id in targets:
        if emp_id not in out:
            continue
        scale = list(out[emp_id])
        first = (start_day or 1) - 1
        last = end_day or len(scale)
        for i in range(max(first, 0), min(last, len(scale))):
            scale[i] = status
        out[emp_id] = scale
    return out


def presence_by_day(grid: dict, days: list) -> pd.DataFrame:
    """Per-day headcount: present vs absent collaborators."""
    records = []
    for idx, d in enumerate(days):
        active = 0
        off = 0
        for scale in grid.values():
            s = scale[idx] if isinstance(scale, list) and idx < len(scale) else None
            if s and s not in ABSENT_CODES:
                active += 1
            else:
                off += 1
        records.append({
            "dia": f"{d.day:02d}",
            "data": d,
            "presentes": active,
            "ausentes": off,
        })
    return pd.DataFrame(records, columns=["dia", "data", "presentes", "ausentes"])


def grid_to_rows(grid: dict, days: list, status: str = "planned") -> list:
    """Flatten the grid into `schedules` rows ready for a bulk upsert."""
    rows = []
    for emp_id, scale in grid.items():
        if not isinstance(scale, list):
            continue
        for d, shift in zip(days, scale):
            rows.append({
                "employee_id": emp_id,
                "schedule_date": d.isoformat(),
                "shift_type": shift,
                "status": status,
            })
    return rows


def rows_to_grid(rows, days: list) -> dict:
    """
    Rebuild a grid from `schedules` rows. Days without a row fall back
    to the default scale for that weekday.
    """
    index = {d.isoformat(): i for i, d in enumerate(days)}
    defaults = default_scale(days)
    grid = {}
    for row in rows or []:
        emp_id = row.get("employee_id")
        day = str(row.get("schedule_date", ""))[:10]
        if emp_id is None or day not in index:
            continue
        scale = grid.setdefault(emp_id, list(defaults))
        if row.get("shift_type"):
            scale[index[day]] = row["shift_type"]
    return grid


def shift_distribution(rows) -> dict:
    """Count of rows per shift_type, blanks grouped as NULL/EMPTY."""
    return dict(Counter((row.get("shift_type") or "NULL/EMPTY") for row in rows or []))


def grid_frame(grid: dict, days: list, names: dict = None) -> pd.DataFrame:
    """Grid as a DataFrame: one row per collaborator, one column per day."""
    names = names or {}
    columns = [f"{d.day:02d}" for d in days]
    records = []
    for emp_id, scale in grid.items():
        if not isinstance(scale, list):
            continue
        record = {"Colaborador": names.get(emp_id, str(emp_id))}
        record.update({col: (scale[i] if i < len(scale) else "") for i, col in enumerate(columns)})
        records.append(record)
    return pd.DataFrame(records, columns=["Colaborador"] + columns)


def frame_to_grid(frame: pd.DataFrame, employee_ids) -> dict:
    """Edited grid frame back to scales; cleared cells (None/NaN) become ""."""
    day_cols = [c for c in frame.columns if c != "Colaborador"]
    grid = {}
    for pos, emp_id in enumerate(employee_ids):
        values = frame.iloc[pos][day_cols].tolist()
        grid[emp_id] = ["" if pd.isna(v) else str(v) for v in values]
    return grid
