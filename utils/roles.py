# utils/roles.py

"""
Role rules.

Managers, coordinators and admins are excluded from the operational
routines (hours bank, schedules, vacations).
"""

from settings.constants import ADMIN_ROLES, NON_OPERATIONAL_PREFIXES


def _normalized(role) -> str:
    return str(role or "").strip().upper()


def is_operational_role(role) -> bool:
    normalized = _normalized(role)
    if not normalized:
        return False
    if normalized.startswith(NON_OPERATIONAL_PREFIXES):
        return False
    if normalized in ADMIN_ROLES:
        return False
    return True


def hierarchy_level_for_role(role) -> str:
    """root for directors/admins, c2 for managers, c1 for coordinators, team otherwise."""
    normalized = _normalized(role)
    if normalized.startswith("DIRETOR") or normalized in ADMIN_ROLES:
        return "root"
    if normalized.startswith(("GERENTE", "GESTOR")):
        return "c2"
    if normalized.startswith(("COORDENADOR", "SUPERVISOR")):
        return "c1"
    return "team"


def operational_only(employees):
    """Filter a list of employee dicts down to operational roles."""
    return [e for e in employees or [] if is_operational_role(e.get("role"))]
