from datetime import date

from utils.calculations import (
    holidays_in_month,
    is_working_day,
    on_vacation,
    tenure_label,
    vacation_days_in_month,
    vacation_periods,
    working_days_between,
)


# -------------------------------------------------------------
# WORKING DAYS
# -------------------------------------------------------------
def test_is_working_day():
    assert is_working_day(date(2026, 4, 20))          # Monday
    assert not is_working_day(date(2026, 4, 21))      # Tiradentes
    assert not is_working_day(date(2026, 4, 25))      # Saturday
    assert is_working_day(date(2026, 4, 21), holidays={})


def test_working_days_between_skips_holidays():
    assert working_days_between(date(2026, 4, 20), date(2026, 4, 24)) == 4
    assert working_days_between("2026-04-24", "2026-04-20") == 4
    assert working_days_between("2026-04-25", "2026-04-26") == 0


def test_holidays_in_month():
    carnival = holidays_in_month(2026, 2)
    assert [h["data"] for h in carnival] == ["2026-02-16", "2026-02-17"]
    assert carnival[0] == {"data": "2026-02-16", "tipo": "nacional", "nome": "Carnaval"}
    assert holidays_in_month(2026, 3) == []


# -------------------------------------------------------------
# VACATIONS
# -------------------------------------------------------------
def _vac(emp, day, status="approved", shift="FÉRIAS"):
    return {"employee_id": emp, "schedule_date": day, "shift_type": shift, "status": status}


def test_vacation_periods_split_on_gap_and_status():
    rows = [
        _vac("e1", "2026-03-03"),
        _vac("e1", "2026-03-02"),
        _vac("e1", "2026-03-05"),
        _vac("e1", "2026-03-06", status="pending"),
        _vac("e1", "2026-03-07", shift="08-17"),
        _vac("e2", "2026-03-04", status=None),
    ]
    periods = vacation_periods(rows)

    assert [(p["employee_id"], p["start"], p["end"], p["status"]) for p in periods] == [
        ("e1", date(2026, 3, 2), date(2026, 3, 3), "approved"),
        ("e2", date(2026, 3, 4), date(2026, 3, 4), "planned"),
        ("e1", date(2026, 3, 5), date(2026, 3, 5), "approved"),
        ("e1", date(2026, 3, 6), date(2026, 3, 6), "pending"),
    ]
    assert periods[0]["days"] == 2


def test_vacation_periods_ignores_bad_dates():
    assert vacation_periods([_vac("e1", "not a date")]) == []
    assert vacation_periods(None) == []


def test_vacation_days_in_month_clips_to_month():
    periods = [{"employee_id": "e1", "start": date(2026, 3, 30), "end": date(2026, 4, 3)}]

    assert vacation_days_in_month(periods, 2026, 3) == 2
    # April 3rd is Good Friday
    assert vacation_days_in_month(periods, 2026, 4) == 2
    assert vacation_days_in_month(periods, 2026, 5) == 0


def test_on_vacation():
    periods = [
        {"employee_id": "e1", "start": date(2026, 7, 1), "end": date(2026, 7, 15)},
        {"employee_id": "e2", "start": date(2026, 7, 10), "end": date(2026, 7, 20)},
    ]
    assert on_vacation(periods, date(2026, 7, 12)) == {"e1", "e2"}
    assert on_vacation(periods, date(2026, 7, 16)) == {"e2"}
    assert on_vacation(periods, date(2026, 8, 1)) == set()


# -------------------------------------------------------------
# TENURE
# -------------------------------------------------------------
def test_tenure_label():
    today = date(2026, 3, 20)
    assert tenure_label("2024-01-15", today) == "2 anos, 2 meses, 5 dias"
    assert tenure_label("2025-02-28", date(2026, 3, 1)) == "1 ano, 1 dia"
    assert tenure_label("2026-03-20", today) == "0 dias"
    assert tenure_label("2025-03-20", today) == "1 ano"


def test_tenure_label_missing():
    assert tenure_label(None) == "N/A"
    assert tenure_label("garbage") == "N/A"
