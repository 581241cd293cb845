import pytest

from utils.roles import hierarchy_level_for_role, is_operational_role, operational_only


@pytest.mark.parametrize("role, expected", [
    ("ANALISTA COP REDE I", True),
    ("analista cop rede ii", True),
    ("GERENTE TECNICO", False),
    ("Coordenador COP Rede I", False),
    ("  supervisor ", False),
    ("DIRETOR", False),
    ("admin", False),
    ("", False),
    (None, False),
])
def test_is_operational_role(role, expected):
    assert is_operational_role(role) is expected


@pytest.mark.parametrize("role, level", [
    ("DIRETOR", "root"),
    ("Administrador", "root"),
    ("GERENTE TECNICO", "c2"),
    ("GESTOR DE AREA", "c2"),
    ("COORDENADOR COP REDE II", "c1"),
    ("SUPERVISOR", "c1"),
    ("ANALISTA COP REDE I", "team"),
    (None, "team"),
])
def test_hierarchy_level_for_role(role, level):
    assert hierarchy_level_for_role(role) == level


def test_operational_only():
    employees = [
        {"id": 1, "role": "ANALISTA COP REDE I"},
        {"id": 2, "role": "GERENTE TECNICO"},
        {"id": 3, "role": None},
    ]
    assert [e["id"] for e in operational_only(employees)] == [1]
    assert operational_only(None) == []
