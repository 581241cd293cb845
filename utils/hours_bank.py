# utils/hours_bank.py

"""
Hours bank utilities:
- time value -> seconds heuristics (HH:MM[:SS], Excel day fractions, hours, seconds)
- balance formatting and status
- HR spreadsheet import (header detection + per-registration aggregation)
- transaction computation for worked-vs-expected imports
"""

import csv
import io
import logging
import numbers
import re
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta

import pandas as pd

from settings.constants import (
    CRITICAL_BALANCE_SECONDS,
    EXPIRY_ALERT_DAYS,
    HEADER_SCAN_ROWS,
    NO_EXPIRY_DAYS,
    WARNING_BALANCE_SECONDS,
)
from utils.csv_import import detect_delimiter, strip_accents
from utils.errors import HeaderNotFoundError, ImportValidationError

logger = logging.getLogger(__name__)

KEYWORDS = {
    "registration": ["MATRICULA", "ID", "CODIGO"],
    "name": ["NOME", "COLABORADOR", "FUNCIONARIO"],
    "description": ["DESCRICAO", "TIPO", "HISTORICO"],
    "balance": ["SALDO", "HORAS", "VALOR"],
    "manager": ["GESTOR", "SUPERVISOR", "CLUSTER"],
    "expiry": ["VENCER", "EXPIRA", "VENC_DIAS", "VENCIMENTO"],
}

LEADING_INT_RE = re.compile(r"^\s*(\d+)")


# -------------------------------------------------------------
# TIME PARSING
# -------------------------------------------------------------
def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    return isinstance(value, str) and not value.strip()


def _leading_int(text) -> int:
    match = LEADING_INT_RE.match(str(text))
    return int(match.group(1)) if match else 0


def _number_to_seconds(value: float) -> int:
    """
    < 1      -> fraction of a day (Excel time cell)
    < 100    -> hours
    otherwise seconds
    """
    sign = -1 if value < 0 else 1
    magnitude = abs(value)
    if magnitude < 1:
        return sign * round(magnitude * 86400)
    if magnitude < 100:
        return sign * round(magnitude * 3600)
    return sign * round(magnitude)


def _parse_number(text: str):
    candidate = text.replace(",", ".") if text.count(",") == 1 and "." not in text else text
    try:
        return float(candidate)
    except ValueError:
        return None


def time_to_seconds(value) -> int:
    """Convert a spreadsheet time/balance cell to seconds. Unreadable values give 0."""
    if _is_blank(value) or isinstance(value, bool):
        return 0

    if isinstance(value, timedelta):
        return round(value.total_seconds())

    if isinstance(value, time):
        return value.hour * 3600 + value.minute * 60 + value.second

    if isinstance(value, numbers.Real):
        return _number_to_seconds(float(value))

    text = str(value).strip()

    if ":" in text:
        sign = -1 if text.startswith("-") else 1
        parts = [_leading_int(p) for p in text.lstrip("+-").split(":")]
        if len(parts) >= 3:
            return sign * (parts[0] * 3600 + parts[1] * 60 + parts[2])
        return sign * (parts[0] * 3600 + parts[1] * 60)

    number = _parse_number(text)
    if number is not None:
        return _number_to_seconds(number)

    return 0


def hours_value(value) -> float:
    """Hours as a float: plain numbers are hours, HH:MM strings are converted."""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return float(value)
    text = str(value or "").strip()
    if ":" not in text:
        number = _parse_number(text)
        if number is not None:
            return number
    return time_to_seconds(value) / 3600


def format_balance(seconds) -> str:
    seconds = int(round(seconds or 0))
    total = abs(seconds)
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    sign = "-" if seconds < 0 else "+"
    return f"{sign}{h:02d}:{m:02d}:{s:02d}h"


def balance_status(seconds) -> str:
    if seconds < CRITICAL_BALANCE_SECONDS:
        return "critical"
    if seconds > WARNING_BALANCE_SECONDS:
        return "warning"
    return "healthy"


# -------------------------------------------------------------
# SPREADSHEET IMPORT
# -------------------------------------------------------------
@dataclass
class BankImport:
    balances: list = field(default_factory=list)
    parsed_rows: list = field(default_factory=list)
    processed: int = 0
    skipped: int = 0


def normalize_header(cell) -> str:
    if _is_blank(cell):
        return ""
    return strip_accents(str(cell).upper()).strip()


def _find_column(normalized_row, keywords) -> int:
    for idx, cell in enumerate(normalized_row):
        if any(kw in cell for kw in keywords):
            return idx
    return -1


def find_header_row(rows):
    """
    Locate the header among the first rows: the first one holding both a
    registration column and a balance column.
    Returns (row index, {column name: index or -1}).
    """
    for i, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if not isinstance(row, (list, tuple)):
            continue
        normalized = [normalize_header(c) for c in row]
        registration = _find_column(normalized, KEYWORDS["registration"])
        balance = _find_column(normalized, KEYWORDS["balance"])
        if registration != -1 and balance != -1:
            columns = {name: _find_column(normalized, kws) for name, kws in KEYWORDS.items()}
            columns["registration"] = registration
            columns["balance"] = balance
            return i, columns

    raise HeaderNotFoundError(
        "Não consegui localizar as colunas de 'Matrícula' e 'Saldo'. "
        "Verifique se o arquivo tem os nomes corretos no topo da tabela."
    )


def _cell(row, idx):
    if 0 <= idx < len(row):
        return row[idx]
    return None


def _text(value, default=""):
    return default if _is_blank(value) else str(value)


def aggregate_bank_rows(rows) -> BankImport:
    """
    Aggregate an HR hours-bank extract (2-D rows) into one balance per
    registration. CREDITO lines add, DEBITO lines subtract, anything else adds.
    """
    if not rows:
        logger.warning("Hours bank file is empty")
        return BankImport()

    header_idx, cols = find_header_row(rows)
    logger.info("Hours bank header found on row %d: %s", header_idx, cols)

    header = rows[header_idx]
    result = BankImport()
    aggregated = {}

    for row in rows[header_idx + 1:]:
        if not isinstance(row, (list, tuple)) or len(row) == 0:
            result.skipped += 1
            continue

        registration = _text(_cell(row, cols["registration"])).strip()
        if registration.lower() in ("", "null", "nan", "none"):
            result.skipped += 1
            continue

        result.processed += 1

        result.parsed_rows.append({
            (normalize_header(h) or f"COL_{idx}"): _cell(row, idx)
            for idx, h in enumerate(header)
        })

        manager = _cell(row, cols["manager"])
        entry = aggregated.setdefault(registration, {
            "id": registration,
            "name": _text(_cell(row, cols["name"]), "Sem Nome"),
            "cluster": _text(manager, "Matriz"),
            "coordinator": _text(manager, "Não Atribuído"),
            "bank_balance": 0,
            "expiring_hours": 0,
            "days_to_expire": NO_EXPIRY_DAYS,
        })

        seconds = time_to_seconds(_cell(row, cols["balance"]))
        description = normalize_header(_cell(row, cols["description"]))
        is_credit = "CREDITO" in description
        is_debit = "DEBITO" in description

        if is_debit and not is_credit:
            entry["bank_balance"] -= seconds
        else:
            entry["bank_balance"] += seconds

        days = _leading_int(_text(_cell(row, cols["expiry"]))) or NO_EXPIRY_DAYS
        if is_credit and days < EXPIRY_ALERT_DAYS and seconds > 0:
            entry["expiring_hours"] += seconds
            entry["days_to_expire"] = min(entry["days_to_expire"], days)

    now = datetime.now().isoformat(timespec="seconds")
    for entry in aggregated.values():
        entry["last_update"] = now
        logger.debug("%s - %s: %.2fh", entry["id"], entry["name"], entry["bank_balance"] / 3600)

    result.balances = list(aggregated.values())
    logger.info(
        "Hours bank import: %d rows, %d processed, %d skipped, %d collaborators",
        len(rows), result.processed, result.skipped, len(result.balances),
    )
    return result


def read_bank_file(name: str, payload: bytes) -> list:
    """Read an xlsx/xls/csv extract as a list of rows (header position unknown)."""
    lower = (name or "").lower()
    if lower.endswith((".xlsx", ".xls")):
        df = pd.read_excel(io.BytesIO(payload), header=None)
        df = df.astype(object).where(pd.notnull(df), "")
        return df.values.tolist()

    if lower.endswith(".csv"):
        try:
            text = payload.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = payload.decode("latin-1")
        reader = csv.reader(io.StringIO(text), delimiter=detect_delimiter(text))
        return [row for row in reader]

    raise ImportValidationError("Formato não suportado. Use .xlsx, .xls ou .csv")


# -------------------------------------------------------------
# DASHBOARD AGGREGATES
# -------------------------------------------------------------
def bank_totals(balances) -> dict:
    values = [b.get("bank_balance", 0) for b in balances or []]
    expiring = [b.get("expiring_hours", 0) for b in balances or []]
    return {
        "positive": sum(v for v in values if v > 0),
        "negative": sum(v for v in values if v < 0),
        "total": sum(values),
        "expiring": sum(expiring),
        "expiring_count": sum(1 for e in expiring if e > 0),
        "critical_count": sum(1 for v in values if v < CRITICAL_BALANCE_SECONDS),
    }


def risk_employees(balances, limit=4) -> list:
    """Most negative balances first."""
    negatives = sorted(
        (b for b in balances or [] if b.get("bank_balance", 0) < 0),
        key=lambda b: b["bank_balance"],
    )
    return [
        {
            "name": b.get("name", ""),
            "cluster": b.get("cluster", ""),
            "indicator": f"Saldo BH: {format_balance(b['bank_balance'])}",
            "color": "danger" if b["bank_balance"] < CRITICAL_BALANCE_SECONDS else "warning",
        }
        for b in negatives[:limit]
    ]


# -------------------------------------------------------------
# WORKED vs EXPECTED TRANSACTIONS
# -------------------------------------------------------------
IMPORT_COLUMNS = {
    "identifier": ["MATRICULA", "EMAIL", "IDENTIFICADOR", "CPF"],
    "name": ["NOME", "COLABORADOR"],
    "date": ["DATA"],
    "worked": ["TRABALHADAS", "REALIZADAS"],
    "expected": ["PREVISTAS", "ESPERADAS", "JORNADA"],
    "type": ["TIPO"],
    "notes": ["OBS", "NOTAS"],
}


def import_rows_from_frame(df: pd.DataFrame) -> list:
    """Map a worked-vs-expected sheet to import rows by header keywords."""
    normalized = [normalize_header(c) for c in df.columns]
    cols = {}
    for key, kws in IMPORT_COLUMNS.items():
        idx = _find_column(normalized, kws)
        cols[key] = df.columns[idx] if idx != -1 else None

    missing = [k for k in ("identifier", "date", "worked", "expected") if cols[k] is None]
    if missing:
        raise ImportValidationError(f"Colunas obrigatórias ausentes: {', '.join(missing)}")

    rows = []
    for _, r in df.iterrows():
        raw_date = r[cols["date"]]
        parsed_date = pd.to_datetime(raw_date, errors="coerce", dayfirst=True)
        rows.append({
            "employee_identifier": _text(r[cols["identifier"]]).strip(),
            "name": _text(r[cols["name"]]) if cols["name"] else None,
            "date": parsed_date.date().isoformat() if not pd.isna(parsed_date) else _text(raw_date),
            "worked_hours": hours_value(r[cols["worked"]]),
            "expected_hours": hours_value(r[cols["expected"]]),
            "type": (_text(r[cols["type"]]).strip().lower() or None) if cols["type"] else None,
            "notes": (_text(r[cols["notes"]]) or None) if cols["notes"] else None,
        })
    return rows


def transaction_from_hours(employee_id, row: dict, current_balance: float,
                           batch_id=None, source_file=None):
    """
    Build the hours_bank transaction for one imported day.
    Returns None for a normal day (worked == expected).
    """
    worked = row["worked_hours"]
    expected = row["expected_hours"]
    difference = round(worked - expected, 4)
    if difference == 0:
        return None

    transaction_type = "credit" if difference > 0 else "debit"
    if row.get("type") in ("credit", "debit", "adjustment"):
        transaction_type = row["type"]

    transaction = {
        "employee_id": employee_id,
        "transaction_type": transaction_type,
        "transaction_date": row["date"],
        "hours": abs(difference),
        "balance_after": (current_balance or 0) + difference,
        "description": f"Importação: {worked:g}h trabalhadas vs {expected:g}h previstas",
        "notes": row.get("notes"),
        "import_batch_id": batch_id,
        "source_file": source_file,
        "status": "approved",
    }
    return {k: v for k, v in transaction.items() if v is not None}
