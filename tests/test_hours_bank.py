from datetime import time, timedelta

import pandas as pd
import pytest

from utils.errors import HeaderNotFoundError, ImportValidationError
from utils.hours_bank import (
    aggregate_bank_rows,
    balance_status,
    bank_totals,
    find_header_row,
    format_balance,
    hours_value,
    import_rows_from_frame,
    normalize_header,
    read_bank_file,
    risk_employees,
    time_to_seconds,
    transaction_from_hours,
)


# -------------------------------------------------------------
# TIME PARSING
# -------------------------------------------------------------
@pytest.mark.parametrize("value, expected", [
    (None, 0),
    ("", 0),
    (0, 0),
    ("08:30", 8 * 3600 + 30 * 60),
    ("01:02:03", 3723),
    ("-02:15", -(2 * 3600 + 15 * 60)),
    ("10:xx", 36000),
    (0.5, 43200),
    (8, 28800),
    (-3, -10800),
    (7200, 7200),
    ("1,5", 5400),
    (time(1, 30), 5400),
    (timedelta(hours=-2), -7200),
    ("abc", 0),
])
def test_time_to_seconds(value, expected):
    assert time_to_seconds(value) == expected


def test_hours_value():
    assert hours_value(8) == 8.0
    assert hours_value("7,5") == 7.5
    assert hours_value("08:30") == 8.5


def test_format_balance():
    assert format_balance(0) == "+00:00:00h"
    assert format_balance(3723) == "+01:02:03h"
    assert format_balance(-5400) == "-01:30:00h"
    assert format_balance(100 * 3600) == "+100:00:00h"


def test_balance_status():
    assert balance_status(-4 * 3600 - 1) == "critical"
    assert balance_status(-4 * 3600) == "healthy"
    assert balance_status(2 * 3600) == "healthy"
    assert balance_status(2 * 3600 + 1) == "warning"


# -------------------------------------------------------------
# SPREADSHEET IMPORT
# -------------------------------------------------------------
EXTRACT = [
    ["Relatório de Banco de Horas", "", "", "", "", ""],
    ["Emitido em 01/10/2026", "", "", "", "", ""],
    ["Matrícula", "Nome", "Descrição", "Saldo", "Gestor", "Dias a vencer"],
    ["100", "Ana", "Crédito", "05:00", "Carlos", "10 dias"],
    ["100", "Ana", "Débito", "02:00", "Carlos", ""],
    ["200", "Bruno", "DEBITO", "06:00", "", ""],
    ["", "sem matrícula", "CREDITO", "01:00", "", ""],
    ["300", "", "Ajuste", 0.25, "Diana", "45"],
]


def test_normalize_header():
    assert normalize_header("  Matrícula ") == "MATRICULA"
    assert normalize_header(None) == ""


def test_find_header_row():
    idx, cols = find_header_row(EXTRACT)

    assert idx == 2
    assert cols["registration"] == 0
    assert cols["name"] == 1
    assert cols["description"] == 2
    assert cols["balance"] == 3
    assert cols["manager"] == 4
    assert cols["expiry"] == 5


def test_find_header_row_missing():
    with pytest.raises(HeaderNotFoundError):
        find_header_row([["Nome", "Cargo"], ["Ana", "X"]])


def test_aggregate_bank_rows():
    result = aggregate_bank_rows(EXTRACT)
    by_id = {b["id"]: b for b in result.balances}

    assert result.processed == 4
    assert result.skipped == 1
    assert len(result.parsed_rows) == 4
    assert set(by_id) == {"100", "200", "300"}

    ana = by_id["100"]
    assert ana["bank_balance"] == 3 * 3600
    assert ana["expiring_hours"] == 5 * 3600
    assert ana["days_to_expire"] == 10
    assert ana["coordinator"] == "Carlos"

    assert by_id["200"]["bank_balance"] == -6 * 3600
    assert by_id["200"]["cluster"] == "Matriz"

    diana = by_id["300"]
    assert diana["name"] == "Sem Nome"
    assert diana["bank_balance"] == 6 * 3600
    assert diana["expiring_hours"] == 0
    assert diana["days_to_expire"] == 999


def test_aggregate_empty_file():
    result = aggregate_bank_rows([])
    assert result.balances == [] and result.processed == 0


def test_read_bank_file_csv_and_unsupported():
    payload = "Matrícula;Saldo\n1;08:00\n".encode("utf-8")
    assert read_bank_file("extrato.csv", payload) == [["Matrícula", "Saldo"], ["1", "08:00"]]

    with pytest.raises(ImportValidationError):
        read_bank_file("extrato.pdf", b"%PDF")


# -------------------------------------------------------------
# DASHBOARD AGGREGATES
# -------------------------------------------------------------
BALANCES = [
    {"name": "A", "cluster": "Norte", "bank_balance": 3600, "expiring_hours": 1800},
    {"name": "B", "cluster": "Sul", "bank_balance": -5 * 3600, "expiring_hours": 0},
    {"name": "C", "cluster": "Sul", "bank_balance": -600, "expiring_hours": 0},
]


def test_bank_totals():
    totals = bank_totals(BALANCES)

    assert totals["positive"] == 3600
    assert totals["negative"] == -5 * 3600 - 600
    assert totals["total"] == 3600 - 5 * 3600 - 600
    assert totals["expiring"] == 1800
    assert totals["expiring_count"] == 1
    assert totals["critical_count"] == 1


def test_risk_employees_most_negative_first():
    risks = risk_employees(BALANCES)

    assert [r["name"] for r in risks] == ["B", "C"]
    assert risks[0]["color"] == "danger"
    assert risks[1]["color"] == "warning"
    assert risks[0]["indicator"] == "Saldo BH: -05:00:00h"


# -------------------------------------------------------------
# WORKED vs EXPECTED
# -------------------------------------------------------------
def test_import_rows_from_frame():
    df = pd.DataFrame({
        "Matrícula": ["100", "200"],
        "Data": ["01/10/2026", "02/10/2026"],
        "Horas Trabalhadas": [9, "07:30"],
        "Horas Previstas": [8, 8],
        "Observações": ["", "saiu cedo"],
    })
    rows = import_rows_from_frame(df)

    assert rows[0]["employee_identifier"] == "100"
    assert rows[0]["date"] == "2026-10-01"
    assert rows[0]["worked_hours"] == 9.0
    assert rows[1]["worked_hours"] == 7.5
    assert rows[1]["notes"] == "saiu cedo"
    assert rows[0]["type"] is None


def test_import_rows_from_frame_missing_columns():
    with pytest.raises(ImportValidationError):
        import_rows_from_frame(pd.DataFrame({"Nome": ["Ana"]}))


def test_transaction_from_hours():
    row = {"date": "2026-10-01", "worked_hours": 9.5, "expected_hours": 8}
    tx = transaction_from_hours("e1", row, 2.0, batch_id="b1", source_file="f.xlsx")

    assert tx["transaction_type"] == "credit"
    assert tx["hours"] == 1.5
    assert tx["balance_after"] == 3.5
    assert tx["import_batch_id"] == "b1"
    assert tx["status"] == "approved"

    row = {"date": "2026-10-02", "worked_hours": 6, "expected_hours": 8}
    tx = transaction_from_hours("e1", row, 0)
    assert tx["transaction_type"] == "debit"
    assert tx["hours"] == 2
    assert tx["balance_after"] == -2
    assert "import_batch_id" not in tx


def test_transaction_for_normal_day_is_none():
    row = {"date": "2026-10-01", "worked_hours": 8, "expected_hours": 8}
    assert transaction_from_hours("e1", row, 0) is None
