import pytest

import utils.repository as repo
from utils.errors import ConnectionFailedError, SupabaseError


class FakeResponse:
    def __init__(self, status_code=201, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = b"" if payload is None else b"x"

    def json(self):
        return self._payload


@pytest.fixture
def writes(monkeypatch):
    """Capture db_insert/db_upsert/db_update/db_delete calls."""
    calls = []

    def insert(table, payload, headers=None):
        calls.append(("insert", table, payload))
        return FakeResponse(201, payload)

    def upsert(table, payload, on_conflict=None, headers=None):
        calls.append(("upsert", table, payload, on_conflict))
        return FakeResponse(201, payload if isinstance(payload, list) else [payload])

    def update(table, where, payload, headers=None):
        calls.append(("update", table, where, payload))
        return FakeResponse(200, [payload])

    def delete(table, where, headers=None):
        calls.append(("delete", table, where))
        return FakeResponse(204)

    monkeypatch.setattr(repo, "db_insert", insert)
    monkeypatch.setattr(repo, "db_upsert", upsert)
    monkeypatch.setattr(repo, "db_update", update)
    monkeypatch.setattr(repo, "db_delete", delete)
    return calls


# -------------------------------------------------------------
# EMPLOYEES
# -------------------------------------------------------------
def test_get_employee_by_user_id_retries(monkeypatch):
    attempts = []

    def flaky(table, filters=None, **kwargs):
        attempts.append(filters)
        if len(attempts) < 3:
            raise ConnectionFailedError("reset")
        return [{"id": "e1"}]

    monkeypatch.setattr(repo, "fetch_rows", flaky)
    monkeypatch.setattr(repo.time, "sleep", lambda s: None)

    assert repo.get_employee_by_user_id("u1") == {"id": "e1"}
    assert attempts[0] == {"user_id": "eq.u1"}
    assert len(attempts) == 3


def test_get_employee_by_user_id_gives_up(monkeypatch):
    def offline(*args, **kwargs):
        raise ConnectionFailedError("slow")

    monkeypatch.setattr(repo, "fetch_rows", offline)
    monkeypatch.setattr(repo.time, "sleep", lambda s: None)

    with pytest.raises(ConnectionFailedError):
        repo.get_employee_by_user_id("u1", attempts=2)


def test_get_employee_by_id_returns_none_on_error(monkeypatch):
    def broken(*args, **kwargs):
        raise SupabaseError("boom", 500)

    monkeypatch.setattr(repo, "fetch_rows", broken)
    assert repo.get_employee_by_id("e1") is None
    assert repo.get_employee_count_by_role() == {}
    assert repo.get_employee_balance("e1") == 0


def test_search_employees_sanitizes_term(monkeypatch):
    seen = {}

    def fake(table, filters=None, **kwargs):
        seen["filters"] = filters
        return []

    monkeypatch.setattr(repo, "fetch_rows", fake)
    repo.search_employees("ana,(x)")

    assert seen["filters"] == {"or": "(full_name.ilike.*ana  x*,email.ilike.*ana  x*)"}


def test_manager_options_and_headcount():
    employees = [
        {"id": "g1", "full_name": "Gerente", "role": "GERENTE TECNICO", "cluster": "Sul"},
        {"id": "c1", "full_name": "Coord", "role": "COORDENADOR COP REDE I", "manager_id": "g1"},
        {"id": "a1", "full_name": "Ana", "role": "ANALISTA COP REDE I", "manager_id": "c1"},
        {"id": "a2", "full_name": "Bia", "role": "ANALISTA COP REDE II", "manager_id": "c1"},
    ]

    assert repo.manager_options(employees) == [
        {"id": "g1", "name": "Gerente"},
        {"id": "c1", "name": "Coord"},
    ]
    assert repo.headcount_by_manager(employees) == [
        {"gestor": "Gerente", "area": "Sul", "headcount": 1},
        {"gestor": "Coord", "area": "N/A", "headcount": 2},
    ]


# -------------------------------------------------------------
# SCHEDULES / VACATIONS
# -------------------------------------------------------------
def test_register_vacation_writes_one_row_per_day(writes):
    saved = repo.register_vacation("e1", "2026-07-30", "2026-08-02", status="pending")

    kind, table, rows, conflict = writes[0]
    assert (kind, table, conflict) == ("upsert", "schedules", "employee_id,schedule_date")
    assert [r["schedule_date"] for r in rows] == ["2026-07-30", "2026-07-31", "2026-08-01", "2026-08-02"]
    assert {r["shift_type"] for r in rows} == {"FÉRIAS"}
    assert {r["status"] for r in rows} == {"pending"}
    assert len(saved) == 4


def test_register_vacation_rejects_reversed_range(writes):
    with pytest.raises(ValueError):
        repo.register_vacation("e1", "2026-08-02", "2026-07-30")
    assert writes == []


def test_set_vacation_status_filters_vacation_rows(writes):
    repo.set_vacation_status("e1", "2026-07-30", "2026-08-02", "approved")

    _, table, where, payload = writes[0]
    assert table == "schedules"
    assert "shift_type=eq.FÉRIAS" in where
    assert "schedule_date=gte.2026-07-30" in where
    assert payload == {"status": "approved"}


# -------------------------------------------------------------
# HIERARCHY
# -------------------------------------------------------------
def test_create_connection_validation(writes):
    with pytest.raises(ValueError):
        repo.create_connection("e1", "e1")
    with pytest.raises(ValueError):
        repo.create_connection("e1", "e2", "manages")
    assert writes == []


def test_assign_manager_replaces_previous(writes):
    repo.assign_manager("g2", "a1")

    assert writes[0] == (
        "delete", "hierarchy_connections", "target_employee_id=eq.a1&connection_type=eq.reports_to"
    )
    assert writes[1][0:2] == ("insert", "hierarchy_connections")
    assert writes[1][2] == [{
        "source_employee_id": "g2", "target_employee_id": "a1", "connection_type": "reports_to",
    }]
    assert writes[2] == ("update", "employees", "id=eq.a1", {"manager_id": "g2"})


def test_write_failure_raises(monkeypatch):
    monkeypatch.setattr(repo, "db_insert", lambda *a, **k: FakeResponse(400, text="bad"))
    with pytest.raises(SupabaseError):
        repo.create_employee({"full_name": "X"})


# -------------------------------------------------------------
# HOURS BANK
# -------------------------------------------------------------
def test_approve_transaction_stamps_approver(writes):
    repo.approve_hours_bank_transaction("t1", "m1")

    _, table, where, payload = writes[0]
    assert (table, where) == ("hours_bank", "id=eq.t1")
    assert payload["status"] == "approved"
    assert payload["approved_by"] == "m1"
    assert payload["approved_at"]


def test_find_employee_by_identifier_order(monkeypatch):
    tried = []

    def fake(table, filters=None, **kwargs):
        tried.append(filters)
        return [{"id": "e9"}] if "full_name" in filters else []

    monkeypatch.setattr(repo, "fetch_rows", fake)

    assert repo.find_employee_by_identifier(" Ana Souza ") == {"id": "e9"}
    assert tried == [
        {"employee_number": "eq.Ana Souza"},
        {"email": "eq.Ana Souza"},
        {"full_name": "ilike.Ana Souza"},
    ]
    assert repo.find_employee_by_identifier("") is None


def test_find_employee_by_identifier_escapes_wildcards(monkeypatch):
    tried = []

    def fake(table, filters=None, **kwargs):
        tried.append(filters)
        return []

    monkeypatch.setattr(repo, "fetch_rows", fake)

    assert repo.find_employee_by_identifier("50%_off") is None
    assert tried[-1] == {"full_name": "ilike.50\\%\\_off"}


def test_import_hours_bank(monkeypatch, writes):
    employees = {"100": {"id": "e1"}, "200": {"id": "e2"}}

    monkeypatch.setattr(repo, "find_employee_by_identifier", lambda ident: employees.get(ident))
    monkeypatch.setattr(repo, "get_employee_balance", lambda emp: 1.0)

    rows = [
        {"employee_identifier": "100", "date": "2026-10-01", "worked_hours": 10, "expected_hours": 8},
        {"employee_identifier": "100", "date": "2026-10-02", "worked_hours": 8, "expected_hours": 8},
        {"employee_identifier": "999", "date": "2026-10-01", "worked_hours": 8, "expected_hours": 8},
        {"employee_identifier": "200", "date": "2026-10-01", "worked_hours": 6, "expected_hours": 8},
    ]
    result = repo.import_hours_bank(rows, "ponto.xlsx")

    assert result["success"] == 2
    assert result["errors"] == [{"row": 4, "error": "Colaborador não encontrado: 999"}]

    created = [w[2][0] for w in writes if w[0] == "insert"]
    assert [t["transaction_type"] for t in created] == ["credit", "debit"]
    assert created[0]["balance_after"] == 3.0
    assert {t["import_batch_id"] for t in created} == {result["batch_id"]}
    assert {t["source_file"] for t in created} == {"ponto.xlsx"}


def test_import_hours_bank_collects_backend_errors(monkeypatch):
    monkeypatch.setattr(repo, "find_employee_by_identifier", lambda ident: {"id": "e1"})
    monkeypatch.setattr(repo, "get_employee_balance", lambda emp: 0)
    monkeypatch.setattr(repo, "db_insert", lambda *a, **k: FakeResponse(500, text="down"))

    rows = [{"employee_identifier": "1", "date": "2026-10-01", "worked_hours": 9, "expected_hours": 8}]
    result = repo.import_hours_bank(rows, "ponto.xlsx")

    assert result["success"] == 0
    assert result["errors"][0]["row"] == 2
    assert "down" in result["errors"][0]["error"]
