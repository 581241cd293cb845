# settings/constants.py

"""
Global constants used across the Gestão COP app.
This module contains static values and configuration shared across modules.
"""

import datetime
import os

import streamlit as st


def _get_secret(key, default=""):
    """Get a secret from st.secrets or environment variables."""
    try:
        return st.secrets[key]
    except Exception:
        return os.environ.get(key, default)


# ---------------------------------------------------
# Application metadata
# ---------------------------------------------------
APP_TITLE = "Gestão COP"
APP_VERSION = "1.0"

# ---------------------------------------------------
# Environment configuration
# ---------------------------------------------------
# Read secrets ONCE here, so utils/db.py, utils/auth.py and utils/ai.py can import them.
SUPABASE_URL = str(_get_secret("SUPABASE_URL")).rstrip("/")
API_KEY = _get_secret("SUPABASE_ANON_KEY")
SERVICE_ROLE_KEY = _get_secret("SUPABASE_SERVICE_ROLE_KEY")

GEMINI_API_KEY = _get_secret("GEMINI_API_KEY")
GEMINI_MODEL = _get_secret("GEMINI_MODEL", "gemini-2.0-flash")

CERTIFICATES_BUCKET = _get_secret("CERTIFICATES_BUCKET", "certificates")
LOG_LEVEL = str(_get_secret("LOG_LEVEL", "INFO")).upper()
REQUEST_TIMEOUT = float(_get_secret("REQUEST_TIMEOUT", 15))

# ---------------------------------------------------
# Table Names
# ---------------------------------------------------
TABLE_EMPLOYEES = "employees"
TABLE_SCHEDULES = "schedules"
TABLE_FEEDBACKS = "feedbacks"
TABLE_CERTIFICATES = "certificates"
TABLE_HOURS_BANK = "hours_bank"
TABLE_HIERARCHY = "hierarchy_connections"
VIEW_HOURS_BALANCE = "employee_hours_balance"

# ---------------------------------------------------
# Schedule vocabulary
# ---------------------------------------------------
WORK_SHIFTS = ["08-17", "09-18", "10-19", "13-22"]

REST_CODE = "FOLGA"
VACATION_CODE = "FÉRIAS"
LEAVE_CODES = ["FB", "INSS", "ATESTADO", "AFAST"]

SCHEDULE_CODES = WORK_SHIFTS + [REST_CODE, VACATION_CODE] + LEAVE_CODES

# Days that break a run of consecutive worked days (CLT corrector).
NON_WORKING_CODES = frozenset({REST_CODE, VACATION_CODE, "INSS", "ATESTADO"})

# Days counted as absent in the presence chart.
ABSENT_CODES = frozenset({REST_CODE, VACATION_CODE, "INSS", "ATESTADO", "AFAST"})

DEFAULT_WORK_SHIFT = "08-17"
MAX_CONSECUTIVE_WORKDAYS = 6
DEFAULT_MONTH_DAYS = 30

SCHEDULE_STATUSES = ["approved", "planned", "pending"]
SCHEDULE_STATUS_LABELS = {
    "approved": "Confirmado",
    "planned": "Planejado",
    "pending": "Pendente",
}

AREAS = ["Norte", "Sul", "Leste", "Oeste"]

# ---------------------------------------------------
# Roles
# ---------------------------------------------------
VALID_ROLES = [
    "COORDENADOR COP REDE I",
    "COORDENADOR COP REDE II",
    "ANALISTA COP REDE I",
    "ANALISTA COP REDE II",
    "GERENTE TECNICO",
]

NON_OPERATIONAL_PREFIXES = ("GERENTE", "COORDENADOR", "GESTOR", "SUPERVISOR", "DIRETOR")
ADMIN_ROLES = ("ADMIN", "ADMINISTRADOR")

HIERARCHY_LEVELS = ["root", "c2", "c1", "team"]
CONNECTION_TYPES = ["reports_to", "collaborates_with"]

# ---------------------------------------------------
# Import limits
# ---------------------------------------------------
MAX_IMPORT_BYTES = 5 * 1024 * 1024
MAX_IMPORT_ROWS = 500
HEADER_SCAN_ROWS = 20

# ---------------------------------------------------
# Hours bank thresholds (seconds)
# ---------------------------------------------------
CRITICAL_BALANCE_SECONDS = -4 * 3600
WARNING_BALANCE_SECONDS = 2 * 3600
EXPIRY_ALERT_DAYS = 20
NO_EXPIRY_DAYS = 999

HOURS_BANK_STATUSES = ["pending", "approved", "rejected"]

# ---------------------------------------------------
# Feedback / certificates
# ---------------------------------------------------
FEEDBACK_STATUSES = ["draft", "sent", "acknowledged"]
CERTIFICATE_STATUSES = ["valid", "expired", "pending"]

# ---------------------------------------------------
# Smart schedule defaults
# ---------------------------------------------------
DEFAULT_COVERAGE_TARGET = 0.85
DEFAULT_WEEKLY_HOURS = 44
DEFAULT_WORK_REGIME = "5x2"

# ---------------------------------------------------
# Holidays (used by working-day logic and the smart schedule input)
# ---------------------------------------------------
HOLIDAYS = {
    datetime.date(2026, 1, 1): "Confraternização Universal",
    datetime.date(2026, 2, 16): "Carnaval",
    datetime.date(2026, 2, 17): "Carnaval",
    datetime.date(2026, 4, 3): "Sexta-feira Santa",
    datetime.date(2026, 4, 21): "Tiradentes",
    datetime.date(2026, 5, 1): "Dia do Trabalho",
    datetime.date(2026, 6, 4): "Corpus Christi",
    datetime.date(2026, 9, 7): "Independência",
    datetime.date(2026, 10, 12): "Nossa Senhora Aparecida",
    datetime.date(2026, 11, 2): "Finados",
    datetime.date(2026, 11, 15): "Proclamação da República",
    datetime.date(2026, 11, 20): "Consciência Negra",
    datetime.date(2026, 12, 25): "Natal",
}
