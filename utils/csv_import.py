# utils/csv_import.py

"""
Employee bulk import from CSV / XLSX:
- delimiter detection and parsing
- column auto-mapping to system fields
- per-row validation (issues are collected, never raised)
- conversion of valid rows to `employees` payloads
"""

import csv
import io
import logging
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd

from settings.constants import MAX_IMPORT_BYTES, MAX_IMPORT_ROWS, VALID_ROLES
from utils.errors import ImportValidationError
from utils.roles import hierarchy_level_for_role

logger = logging.getLogger(__name__)


@dataclass
class SystemField:
    key: str
    label: str
    required: bool = False
    aliases: tuple = ()


SYSTEM_FIELDS = [
    SystemField("name", "Nome *", True, ("nome", "colaborador")),
    SystemField("role", "Cargo *", True, ("cargo", "função", "funcao")),
    SystemField("cluster", "Cluster", False, ("cluster", "área", "area")),
    SystemField("store", "Loja", False, ("loja",)),
    SystemField("manager", "Gestor", False, ("gestor",)),
    SystemField("email", "Email", False, ("email", "e-mail")),
    SystemField("phone", "Telefone", False, ("telefone", "whatsapp", "celular")),
    SystemField("admission_date", "Data Admissão", False, ("admiss",)),
    SystemField("salary", "Salário", False, ("salário", "salario")),
]

REQUIRED_MESSAGES = {
    "name": "Nome é obrigatório",
    "role": "Cargo é obrigatório",
}

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\(?\d{2}\)?\s?\d{4,5}-?\d{4}$")
DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")


@dataclass
class ParsedCSV:
    headers: list = field(default_factory=list)
    rows: list = field(default_factory=list)
    errors: list = field(default_factory=list)


def strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


# -------------------------------------------------------------
# PARSING
# -------------------------------------------------------------
def detect_delimiter(text: str) -> str:
    """Semicolon if the first line has more of them than commas."""
    first_line = text.split("\n", 1)[0]
    return ";" if first_line.count(";") > first_line.count(",") else ","


def _clean(value) -> str:
    return str(value).strip().strip('"').strip()


def _frame_to_parsed(df: pd.DataFrame) -> ParsedCSV:
    df = df.fillna("")
    headers = [_clean(h) for h in df.columns]
    df.columns = headers
    df = df.map(_clean)
    df = df[(df != "").any(axis=1)]
    return ParsedCSV(headers=headers, rows=df.to_dict("records"))


def parse_csv(text: str) -> ParsedCSV:
    """
    Parse CSV text. Each line is split on the delimiter and every cell is
    stripped of blanks and surrounding quotes; quotes never span cells or
    lines. Extra trailing values on a line are dropped.
    """
    text = (text or "").strip()
    if not text:
        return ParsedCSV()

    delimiter = detect_delimiter(text)
    n_headers = len(text.split("\n", 1)[0].split(delimiter))

    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            quoting=csv.QUOTE_NONE,
            engine="python",
            on_bad_lines=lambda bad: bad[:n_headers],
        )
    except pd.errors.ParserError as e:
        raise ImportValidationError(f"Erro ao ler arquivo CSV: {e}") from e

    return _frame_to_parsed(df)


def _decode(payload: bytes) -> str:
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("Upload is not UTF-8, decoding as latin-1")
        return payload.decode("latin-1")


def read_upload(name: str, payload: bytes) -> ParsedCSV:
    """Validate and parse an uploaded employee file (.csv or .xlsx)."""
    lower = (name or "").lower()
    if not lower.endswith((".csv", ".xlsx")):
        raise ImportValidationError("Por favor, selecione um arquivo CSV ou XLSX válido.")

    if len(payload) > MAX_IMPORT_BYTES:
        raise ImportValidationError("Arquivo muito grande. Tamanho máximo: 5MB")

    if lower.endswith(".csv"):
        parsed = parse_csv(_decode(payload))
    else:
        df = pd.read_excel(io.BytesIO(payload), dtype=str)
        parsed = _frame_to_parsed(df)

    if not parsed.rows:
        raise ImportValidationError("Arquivo vazio ou inválido.")

    if len(parsed.rows) > MAX_IMPORT_ROWS:
        raise ImportValidationError(
            f"Máximo de {MAX_IMPORT_ROWS} colaboradores por importação. Por favor, divida o arquivo."
        )

    logger.info("Parsed %s: %d rows, %d columns", name, len(parsed.rows), len(parsed.headers))
    return parsed


# -------------------------------------------------------------
# COLUMN MAPPING
# -------------------------------------------------------------
def auto_map_columns(headers) -> dict:
    """
    Map each system field to the first header that contains one of its
    aliases, or whose text is contained in the field label.
    """
    mapping = {}
    for sf in SYSTEM_FIELDS:
        for header in headers:
            h = str(header).strip().lower()
            if not h:
                continue
            aliases = (sf.key.lower(),) + sf.aliases
            if any(alias in h for alias in aliases) or h in sf.label.lower():
                mapping[sf.key] = header
                break
    return mapping


def missing_required_mappings(mapping: dict) -> list:
    return [sf.key for sf in SYSTEM_FIELDS if sf.required and not mapping.get(sf.key)]


# -------------------------------------------------------------
# FIELD VALIDATORS
# -------------------------------------------------------------
def is_valid_email(email: str) -> bool:
    if not email:
        return True
    return bool(EMAIL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    if not phone:
        return True
    return bool(PHONE_RE.match(phone))


def parse_br_date(value: str):
    """DD/MM/YYYY -> date, or None when malformed or not a calendar date."""
    if not DATE_RE.match(value or ""):
        return None
    try:
        return datetime.strptime(value, "%d/%m/%Y").date()
    except ValueError:
        return None


def is_valid_date(value: str) -> bool:
    if not value:
        return True
    return parse_br_date(value) is not None


def parse_salary(value: str):
    """Accepts 1234.56, 1234,56 and 1.234,56. Returns None when not a number."""
    text = str(value or "").replace("R$", "").strip()
    if not text:
        return None
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    try:
        return float(text)
    except ValueError:
        return None


def normalize_role(role: str) -> str:
    """Match a free-text role to VALID_ROLES, or return it unchanged."""
    normalized = role.strip()

    if normalized in VALID_ROLES:
        return normalized

    for valid in VALID_ROLES:
        if valid.lower() == normalized.lower():
            return valid

    lower = strip_accents(normalized.lower())
    tokens = re.split(r"[\s.]+", lower)
    level = None
    if "ii" in tokens or "2" in tokens:
        level = "II"
    elif "i" in tokens or "1" in tokens:
        level = "I"

    if "coord" in lower and "rede" in lower and level:
        return f"COORDENADOR COP REDE {level}"
    if "analista" in lower and "rede" in lower and level:
        return f"ANALISTA COP REDE {level}"
    if "gerente" in lower and "tecnico" in lower:
        return "GERENTE TECNICO"

    return normalized


# -------------------------------------------------------------
# ROW VALIDATION
# -------------------------------------------------------------
def _issue(row_number, field_key, value, message) -> dict:
    return {"row": row_number, "field": field_key, "value": value, "message": message}


def validate_employee_row(row: dict, row_number: int, mapping: dict, existing_managers):
    """
    Validate one CSV row against the column mapping.
    Returns (data, issues); data is None when there is at least one issue.
    """
    issues = []
    data = {key: str(row.get(col, "") or "").strip() for key, col in mapping.items() if col}

    if not data.get("name"):
        issues.append(_issue(row_number, "name", data.get("name", ""), REQUIRED_MESSAGES["name"]))

    if not data.get("role"):
        issues.append(_issue(row_number, "role", data.get("role", ""), REQUIRED_MESSAGES["role"]))
    else:
        role = normalize_role(data["role"])
        if role not in VALID_ROLES:
            issues.append(_issue(
                row_number, "role", data["role"],
                f"Cargo inválido. Valores aceitos: {', '.join(VALID_ROLES)}",
            ))
        else:
            data["role"] = role

    if data.get("email") and not is_valid_email(data["email"]):
        issues.append(_issue(row_number, "email", data["email"], "Email inválido"))

    if data.get("phone") and not is_valid_phone(data["phone"]):
        issues.append(_issue(
            row_number, "phone", data["phone"],
            "Telefone inválido. Use formato: (11) 99999-9999",
        ))

    if data.get("admission_date") and not is_valid_date(data["admission_date"]):
        issues.append(_issue(
            row_number, "admission_date", data["admission_date"],
            "Data inválida. Use formato: DD/MM/YYYY",
        ))

    if data.get("salary") and parse_salary(data["salary"]) is None:
        issues.append(_issue(row_number, "salary", data["salary"], "Salário inválido"))

    manager = data.get("manager")
    if manager:
        known = {str(m).lower() for m in existing_managers or []}
        if manager.lower() not in known:
            issues.append(_issue(
                row_number, "manager", manager,
                f'Gestor "{manager}" não encontrado no sistema',
            ))

    return (data if not issues else None), issues


def validate_rows(rows, mapping: dict, existing_managers):
    """
    Validate every row. Row numbers are file lines (header is line 1).
    Returns (valid rows, issues); offending rows are left out of the valid set.
    """
    valid = []
    issues = []
    for index, row in enumerate(rows or []):
        data, row_issues = validate_employee_row(row, index + 2, mapping, existing_managers)
        issues.extend(row_issues)
        if data is not None:
            valid.append(data)

    logger.info("CSV validation: %d valid rows, %d issues", len(valid), len(issues))
    return valid, issues


def to_employee_record(data: dict, managers=None) -> dict:
    """
    Turn a validated row into an `employees` insert payload.
    managers: list of {"id", "name"} used to resolve the manager name.
    """
    by_name = {str(m.get("name", "")).lower(): m.get("id") for m in managers or []}

    admission = parse_br_date(data.get("admission_date", ""))
    record = {
        "full_name": data["name"],
        "role": data["role"],
        "cluster": data.get("cluster") or None,
        "store": data.get("store") or None,
        "email": data.get("email") or None,
        "phone": data.get("phone") or None,
        "admission_date": admission.isoformat() if admission else None,
        "salary": parse_salary(data.get("salary", "")),
        "manager_id": by_name.get(data.get("manager", "").lower()) if data.get("manager") else None,
        "hierarchy_level": hierarchy_level_for_role(data["role"]),
        "status": "active",
    }
    # every record carries the same keys, bulk inserts require it
    return record


def issues_frame(issues) -> pd.DataFrame:
    labels = {sf.key: sf.label.rstrip(" *") for sf in SYSTEM_FIELDS}
    df = pd.DataFrame(issues, columns=["row", "field", "value", "message"])
    df["field"] = df["field"].map(lambda k: labels.get(k, k))
    df.columns = ["Linha", "Campo", "Valor", "Erro"]
    return df


def generate_csv_template() -> str:
    headers = ["Nome", "Cargo", "Área", "Loja", "Gestor", "Email", "Telefone", "Data Admissão", "Salário"]
    example = [
        "João Silva,ANALISTA COP REDE I,EMPRESARIAL,Matriz,Ana Souza,joao@email.com,(11) 99999-9999,01/01/2024,3500.00",
        "Maria Santos,COORDENADOR COP REDE I,RESIDENCIAL FIBRA GPON,Matriz,Pedro Santos,maria@email.com,(11) 98888-8888,15/02/2024,6200.00",
    ]
    return "\n".join([",".join(headers)] + example)
