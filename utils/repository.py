# utils/repository.py

"""
Table-level operations on the Supabase schema:
employees, schedules, feedbacks, certificates, hierarchy_connections
and hours_bank (plus the employee_hours_balance view).

Every function raises SupabaseError when the backend rejects the call,
except the lookups that historically degrade to None / 0 / {}.
"""

import logging
import re
import time
import uuid
from collections import Counter
from datetime import datetime, timezone

import pandas as pd

from settings.constants import (
    CERTIFICATES_BUCKET,
    CONNECTION_TYPES,
    TABLE_CERTIFICATES,
    TABLE_EMPLOYEES,
    TABLE_FEEDBACKS,
    TABLE_HIERARCHY,
    TABLE_HOURS_BANK,
    TABLE_SCHEDULES,
    VACATION_CODE,
    VIEW_HOURS_BALANCE,
)
from utils.db import (
    check_response,
    db_delete,
    db_insert,
    db_update,
    db_upsert,
    fetch_rows,
    upload_file,
)
from utils.errors import ConnectionFailedError, SupabaseError
from utils.hours_bank import transaction_from_hours
from utils.roles import is_operational_role

logger = logging.getLogger(__name__)

PROFILE_ATTEMPTS = 3
SCHEDULE_CONFLICT = "employee_id,schedule_date"


def _one(rows):
    return rows[0] if rows else None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# -------------------------------------------------------------
# EMPLOYEES
# -------------------------------------------------------------
def get_all_employees() -> list:
    return fetch_rows(TABLE_EMPLOYEES, order="full_name")


def get_employee_by_id(employee_id):
    try:
        return _one(fetch_rows(TABLE_EMPLOYEES, {"id": f"eq.{employee_id}"}, limit=1))
    except SupabaseError as e:
        logger.error("Error fetching employee %s: %s", employee_id, e)
        return None


def get_employee_by_user_id(user_id, attempts=PROFILE_ATTEMPTS):
    """Profile lookup for the signed-in user, retried on network errors."""
    for attempt in range(1, attempts + 1):
        try:
            return _one(fetch_rows(TABLE_EMPLOYEES, {"user_id": f"eq.{user_id}"}, limit=1))
        except ConnectionFailedError as e:
            logger.warning("Profile lookup attempt %d/%d failed: %s", attempt, attempts, e)
            if attempt == attempts:
                raise
            time.sleep(0.5 * attempt)
    return None


def get_employees_by_manager(manager_id) -> list:
    return fetch_rows(TABLE_EMPLOYEES, {"manager_id": f"eq.{manager_id}"}, order="full_name")


def get_employees_by_cluster(cluster) -> list:
    return fetch_rows(TABLE_EMPLOYEES, {"cluster": f"eq.{cluster}"}, order="full_name")


def get_hierarchy_tree() -> list:
    return fetch_rows(TABLE_EMPLOYEES, order=["hierarchy_level", "full_name"])


def search_employees(query: str) -> list:
    term = re.sub(r"[,()*]", " ", query or "").strip()
    if not term:
        return get_all_employees()
    return fetch_rows(
        TABLE_EMPLOYEES,
        {"or": f"(full_name.ilike.*{term}*,email.ilike.*{term}*)"},
        order="full_name",
    )


def get_employee_count_by_role() -> dict:
    try:
        rows = fetch_rows(TABLE_EMPLOYEES, {"status": "eq.active"}, select="role")
    except SupabaseError as e:
        logger.error("Error fetching employee count: %s", e)
        return {}
    return dict(Counter(r.get("role") for r in rows))


def create_employee(employee: dict) -> dict:
    r = db_insert(TABLE_EMPLOYEES, [employee])
    return _one(check_response(r, "criar colaborador"))


def create_employees_bulk(employees: list) -> list:
    if not employees:
        return []
    r = db_insert(TABLE_EMPLOYEES, employees)
    created = check_response(r, "importar colaboradores")
    logger.info("Bulk created %d employees", len(created))
    return created


def update_employee(employee_id, updates: dict) -> dict:
    r = db_update(TABLE_EMPLOYEES, f"id=eq.{employee_id}", updates)
    return _one(check_response(r, "atualizar colaborador"))


def delete_employee(employee_id):
    check_response(db_delete(TABLE_EMPLOYEES, f"id=eq.{employee_id}"), "excluir colaborador")


def update_employee_position(employee_id, x: float, y: float):
    r = db_update(TABLE_EMPLOYEES, f"id=eq.{employee_id}", {
        "graph_position_x": x,
        "graph_position_y": y,
    })
    check_response(r, "mover colaborador")


def manager_options(employees) -> list:
    """Non-operational employees as {"id", "name"} choices."""
    return [
        {"id": e["id"], "name": e.get("full_name", "")}
        for e in employees or []
        if not is_operational_role(e.get("role"))
    ]


# -------------------------------------------------------------
# SCHEDULES
# -------------------------------------------------------------
def get_schedules_by_range(start_date: str, end_date: str) -> list:
    return fetch_rows(
        TABLE_SCHEDULES,
        {"schedule_date": [f"gte.{start_date}", f"lte.{end_date}"]},
        select="*,employees(*)",
    )


def get_employee_schedules(employee_id, start_date: str, end_date: str) -> list:
    return fetch_rows(
        TABLE_SCHEDULES,
        {
            "employee_id": f"eq.{employee_id}",
            "schedule_date": [f"gte.{start_date}", f"lte.{end_date}"],
        },
        select="*,employees(*)",
        order="schedule_date",
    )


def save_schedules_bulk(schedules: list) -> list:
    if not schedules:
        return []
    r = db_upsert(TABLE_SCHEDULES, schedules, on_conflict=SCHEDULE_CONFLICT)
    saved = check_response(r, "salvar escalas")
    logger.info("Upserted %d schedule rows", len(saved))
    return saved


def save_schedule(schedule: dict) -> dict:
    r = db_upsert(TABLE_SCHEDULES, schedule, on_conflict=SCHEDULE_CONFLICT)
    return _one(check_response(r, "salvar escala"))


def delete_schedules_by_range(employee_id, start_date: str, end_date: str):
    where = f"employee_id=eq.{employee_id}&schedule_date=gte.{start_date}&schedule_date=lte.{end_date}"
    check_response(db_delete(TABLE_SCHEDULES, where), "excluir escalas")


def register_vacation(employee_id, start_date, end_date, status="planned", notes=None) -> list:
    """Store a vacation as one FÉRIAS schedule row per day."""
    start = pd.to_datetime(start_date).date()
    end = pd.to_datetime(end_date).date()
    if end < start:
        raise ValueError("A data final deve ser posterior à data inicial.")

    rows = [
        {
            "employee_id": employee_id,
            "schedule_date": d.date().isoformat(),
            "shift_type": VACATION_CODE,
            "status": status,
            "notes": notes,
        }
        for d in pd.date_range(start, end, freq="D")
    ]
    return save_schedules_bulk(rows)


def set_vacation_status(employee_id, start_date: str, end_date: str, status: str) -> list:
    where = (
        f"employee_id=eq.{employee_id}&shift_type=eq.{VACATION_CODE}"
        f"&schedule_date=gte.{start_date}&schedule_date=lte.{end_date}"
    )
    return check_response(db_update(TABLE_SCHEDULES, where, {"status": status}), "atualizar férias")


# -------------------------------------------------------------
# FEEDBACKS
# -------------------------------------------------------------
FEEDBACK_ORDER = ["period_year.desc", "period_month.desc"]


def get_all_feedbacks() -> list:
    return fetch_rows(TABLE_FEEDBACKS, select="*,employees(*)", order=FEEDBACK_ORDER)


def get_employee_feedbacks(employee_id) -> list:
    return fetch_rows(
        TABLE_FEEDBACKS,
        {"employee_id": f"eq.{employee_id}"},
        select="*,employees(*)",
        order=FEEDBACK_ORDER,
    )


def save_feedback(feedback: dict) -> dict:
    return _one(check_response(db_upsert(TABLE_FEEDBACKS, feedback), "salvar feedback"))


def delete_feedback(feedback_id):
    check_response(db_delete(TABLE_FEEDBACKS, f"id=eq.{feedback_id}"), "excluir feedback")


# -------------------------------------------------------------
# CERTIFICATES
# -------------------------------------------------------------
def get_all_certificates() -> list:
    return fetch_rows(TABLE_CERTIFICATES, select="*,employees(*)", order="created_at.desc")


def get_employee_certificates(employee_id) -> list:
    return fetch_rows(
        TABLE_CERTIFICATES,
        {"employee_id": f"eq.{employee_id}"},
        select="*,employees(*)",
        order="created_at.desc",
    )


def save_certificate(certificate: dict) -> dict:
    return _one(check_response(db_upsert(TABLE_CERTIFICATES, certificate), "salvar atestado"))


def update_certificate_status(certificate_id, status) -> dict:
    r = db_update(TABLE_CERTIFICATES, f"id=eq.{certificate_id}", {"status": status})
    return _one(check_response(r, "atualizar atestado"))


def delete_certificate(certificate_id):
    check_response(db_delete(TABLE_CERTIFICATES, f"id=eq.{certificate_id}"), "excluir atestado")


def upload_certificate_file(employee_id, file_name: str, payload: bytes, content_type: str) -> str:
    safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", file_name)
    path = f"{employee_id}/{uuid.uuid4().hex[:8]}_{safe_name}"
    return upload_file(CERTIFICATES_BUCKET, path, payload, content_type)


# -------------------------------------------------------------
# HIERARCHY CONNECTIONS
# -------------------------------------------------------------
def _check_connection_type(connection_type):
    if connection_type not in CONNECTION_TYPES:
        raise ValueError(f"Tipo de conexão inválido: {connection_type}")


def get_all_connections() -> list:
    return fetch_rows(TABLE_HIERARCHY)


def get_employee_connections(employee_id) -> list:
    return fetch_rows(TABLE_HIERARCHY, {"source_employee_id": f"eq.{employee_id}"})


def create_connection(source_id, target_id, connection_type="reports_to") -> dict:
    _check_connection_type(connection_type)
    if str(source_id) == str(target_id):
        raise ValueError("Um colaborador não pode se conectar a si mesmo.")
    r = db_insert(TABLE_HIERARCHY, [{
        "source_employee_id": source_id,
        "target_employee_id": target_id,
        "connection_type": connection_type,
    }])
    return _one(check_response(r, "criar conexão"))


def delete_connection(connection_id):
    check_response(db_delete(TABLE_HIERARCHY, f"id=eq.{connection_id}"), "excluir conexão")


def delete_connection_by_employees(source_id, target_id):
    where = f"source_employee_id=eq.{source_id}&target_employee_id=eq.{target_id}"
    check_response(db_delete(TABLE_HIERARCHY, where), "excluir conexão")


def update_connection_type(connection_id, connection_type) -> dict:
    _check_connection_type(connection_type)
    r = db_update(TABLE_HIERARCHY, f"id=eq.{connection_id}", {"connection_type": connection_type})
    return _one(check_response(r, "atualizar conexão"))


def assign_manager(manager_id, employee_id) -> dict:
    """
    A collaborator reports to a single manager: existing reports_to links
    into the collaborator are replaced, and employees.manager_id follows.
    """
    where = f"target_employee_id=eq.{employee_id}&connection_type=eq.reports_to"
    check_response(db_delete(TABLE_HIERARCHY, where), "substituir gestor")
    connection = create_connection(manager_id, employee_id, "reports_to")
    update_employee(employee_id, {"manager_id": manager_id})
    return connection


def headcount_by_manager(employees) -> list:
    """Managers with their area and number of direct reports."""
    counts = Counter(e.get("manager_id") for e in employees or [] if e.get("manager_id"))
    return [
        {
            "gestor": e.get("full_name", ""),
            "area": e.get("cluster") or "N/A",
            "headcount": counts.get(e["id"], 0),
        }
        for e in employees or []
        if not is_operational_role(e.get("role"))
    ]


# -------------------------------------------------------------
# HOURS BANK
# -------------------------------------------------------------
def get_all_hours_bank_transactions() -> list:
    return fetch_rows(TABLE_HOURS_BANK, order="transaction_date.desc")


def get_employee_hours_bank_transactions(employee_id) -> list:
    return fetch_rows(
        TABLE_HOURS_BANK, {"employee_id": f"eq.{employee_id}"}, order="transaction_date.desc"
    )


def get_employee_balance(employee_id) -> float:
    try:
        row = _one(fetch_rows(
            VIEW_HOURS_BALANCE, {"employee_id": f"eq.{employee_id}"}, select="total_balance", limit=1
        ))
    except SupabaseError as e:
        logger.error("Error fetching employee balance: %s", e)
        return 0
    return (row or {}).get("total_balance") or 0


def get_employee_detailed_balance(employee_id):
    try:
        return _one(fetch_rows(VIEW_HOURS_BALANCE, {"employee_id": f"eq.{employee_id}"}, limit=1))
    except SupabaseError as e:
        logger.error("Error fetching detailed balance: %s", e)
        return None


def get_all_employee_balances() -> list:
    return fetch_rows(VIEW_HOURS_BALANCE, order="total_balance.desc")


def create_hours_bank_transaction(transaction: dict) -> dict:
    r = db_insert(TABLE_HOURS_BANK, [transaction])
    return _one(check_response(r, "criar lançamento"))


def create_hours_bank_transactions_bulk(transactions: list) -> list:
    if not transactions:
        return []
    return check_response(db_insert(TABLE_HOURS_BANK, transactions), "criar lançamentos")


def update_hours_bank_transaction(transaction_id, updates: dict) -> dict:
    r = db_update(TABLE_HOURS_BANK, f"id=eq.{transaction_id}", updates)
    return _one(check_response(r, "atualizar lançamento"))


def approve_hours_bank_transaction(transaction_id, approved_by) -> dict:
    return update_hours_bank_transaction(transaction_id, {
        "status": "approved",
        "approved_by": approved_by,
        "approved_at": _now_iso(),
    })


def reject_hours_bank_transaction(transaction_id, approved_by) -> dict:
    return update_hours_bank_transaction(transaction_id, {
        "status": "rejected",
        "approved_by": approved_by,
        "approved_at": _now_iso(),
    })


def delete_hours_bank_transaction(transaction_id):
    check_response(db_delete(TABLE_HOURS_BANK, f"id=eq.{transaction_id}"), "excluir lançamento")


def get_transactions_by_batch(batch_id) -> list:
    return fetch_rows(TABLE_HOURS_BANK, {"import_batch_id": f"eq.{batch_id}"}, order="transaction_date")


def _like_literal(text: str) -> str:
    """Escape LIKE wildcards so the text only matches itself."""
    return re.sub(r"([\\%_])", r"\\\1", text)


def find_employee_by_identifier(identifier: str):
    """Registration number first, then e-mail, then name (case-insensitive)."""
    identifier = str(identifier or "").strip()
    if not identifier:
        return None
    for filters in (
        {"employee_number": f"eq.{identifier}"},
        {"email": f"eq.{identifier}"},
        {"full_name": f"ilike.{_like_literal(identifier)}"},
    ):
        employee = _one(fetch_rows(TABLE_EMPLOYEES, filters, limit=1))
        if employee:
            return employee
    return None


def import_hours_bank(rows: list, source_file: str) -> dict:
    """
    Create one transaction per imported day whose worked hours differ
    from the expected ones. Row failures are collected, not raised.
    """
    batch_id = str(uuid.uuid4())
    results = {"success": 0, "errors": [], "batch_id": batch_id}

    for i, row in enumerate(rows):
        row_number = i + 2  # header + 0-index
        try:
            employee = find_employee_by_identifier(row["employee_identifier"])
            if not employee:
                results["errors"].append({
                    "row": row_number,
                    "error": f"Colaborador não encontrado: {row['employee_identifier']}",
                })
                continue

            current = get_employee_balance(employee["id"])
            transaction = transaction_from_hours(
                employee["id"], row, current, batch_id=batch_id, source_file=source_file
            )
            if transaction is None:
                continue

            create_hours_bank_transaction(transaction)
            results["success"] += 1
        except SupabaseError as e:
            results["errors"].append({"row": row_number, "error": str(e) or "Erro desconhecido"})

    logger.info(
        "Hours bank import %s: %d created, %d errors",
        batch_id, results["success"], len(results["errors"]),
    )
    return results
