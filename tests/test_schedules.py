from datetime import date

import pytest

from utils.schedules import (
    apply_bulk_status,
    days_in_month,
    default_month_grid,
    ensure_grid,
    frame_to_grid,
    grid_frame,
    grid_to_rows,
    month_bounds,
    month_days,
    presence_by_day,
    rows_to_grid,
    shift_distribution,
    update_shift,
)


def test_month_helpers():
    assert days_in_month(2026, 2) == 28
    assert days_in_month(2024, 2) == 29
    days = month_days(2026, 3)
    assert days[0] == date(2026, 3, 1)
    assert days[-1] == date(2026, 3, 31)
    assert month_bounds(2026, 4) == ("2026-04-01", "2026-04-30")


def test_default_grid_rests_on_weekends():
    days = month_days(2026, 3)  # 2026-03-01 is a Sunday
    grid = default_month_grid(["a"], days)

    assert grid["a"][0] == "FOLGA"
    assert grid["a"][1] == "08-17"
    assert grid["a"][6] == "FOLGA"  # Saturday
    assert len(grid["a"]) == 31


def test_ensure_grid_reinitialises_wrong_lengths():
    days = month_days(2026, 3)
    grid = ensure_grid({"a": ["13-22"] * 31, "b": ["13-22"] * 3}, ["a", "b", "c"], days)

    assert grid["a"] == ["13-22"] * 31
    assert len(grid["b"]) == 31 and grid["b"][1] == "08-17"
    assert len(grid["c"]) == 31


def test_update_shift_returns_new_grid():
    grid = {"a": ["08-17"] * 3}
    out = update_shift(grid, "a", 1, "FÉRIAS")

    assert out["a"] == ["08-17", "FÉRIAS", "08-17"]
    assert grid["a"] == ["08-17"] * 3


def test_update_shift_rejects_bad_input():
    grid = {"a": ["08-17"] * 3}
    with pytest.raises(ValueError):
        update_shift(grid, "a", 0, "NOITE")
    with pytest.raises(IndexError):
        update_shift(grid, "a", 3, "FOLGA")


def test_bulk_status_on_range_and_all():
    grid = {"a": ["08-17"] * 5, "b": ["08-17"] * 5}

    out = apply_bulk_status(grid, ["a"], "FÉRIAS", start_day=2, end_day=4)
    assert out["a"] == ["08-17", "FÉRIAS", "FÉRIAS", "FÉRIAS", "08-17"]
    assert out["b"] == ["08-17"] * 5

    out = apply_bulk_status(grid, "all", "FOLGA")
    assert out == {"a": ["FOLGA"] * 5, "b": ["FOLGA"] * 5}

    with pytest.raises(ValueError):
        apply_bulk_status(grid, "all", "XYZ")


def test_presence_by_day_counts_absences():
    days = [date(2026, 3, 2), date(2026, 3, 3)]
    grid = {
        "a": ["08-17", "AFAST"],
        "b": ["FÉRIAS", "FB"],
        "c": ["13-22", "FOLGA"],
    }
    df = presence_by_day(grid, days)

    assert list(df["dia"]) == ["02", "03"]
    assert list(df["presentes"]) == [2, 1]
    assert list(df["ausentes"]) == [1, 2]


def test_grid_rows_roundtrip():
    days = month_days(2026, 2)
    grid = default_month_grid(["a"], days)
    grid = update_shift(grid, "a", 2, "ATESTADO")

    rows = grid_to_rows(grid, days, status="approved")
    assert len(rows) == 28
    assert rows[2] == {
        "employee_id": "a",
        "schedule_date": "2026-02-03",
        "shift_type": "ATESTADO",
        "status": "approved",
    }
    assert rows_to_grid(rows, days) == grid


def test_rows_to_grid_fills_missing_days_and_ignores_other_months():
    days = month_days(2026, 2)
    rows = [
        {"employee_id": 7, "schedule_date": "2026-02-02", "shift_type": "13-22"},
        {"employee_id": 7, "schedule_date": "2026-03-01", "shift_type": "FÉRIAS"},
    ]
    grid = rows_to_grid(rows, days)

    assert list(grid) == [7]
    assert grid[7][1] == "13-22"
    assert grid[7][0] == "FOLGA"  # 2026-02-01 is a Sunday


def test_shift_distribution_groups_blanks():
    rows = [{"shift_type": "08-17"}, {"shift_type": ""}, {"shift_type": None}, {"shift_type": "08-17"}]
    assert shift_distribution(rows) == {"08-17": 2, "NULL/EMPTY": 2}


def test_grid_frame_uses_names():
    days = [date(2026, 3, 2), date(2026, 3, 3)]
    df = grid_frame({"a": ["08-17", "FOLGA"]}, days, {"a": "Ana"})

    assert list(df.columns) == ["Colaborador", "02", "03"]
    assert df.iloc[0].tolist() == ["Ana", "08-17", "FOLGA"]


def test_frame_to_grid_blanks_cleared_cells():
    days = [date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4)]
    frame = grid_frame({"a": ["08-17", "FOLGA", "08-17"], "b": ["FOLGA", "FOLGA", "FOLGA"]}, days)
    frame.loc[0, "03"] = None
    frame.loc[1, "04"] = float("nan")

    assert frame_to_grid(frame, ["a", "b"]) == {
        "a": ["08-17", "", "08-17"],
        "b": ["FOLGA", "FOLGA", ""],
    }
