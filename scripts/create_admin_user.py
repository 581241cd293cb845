#!/usr/bin/env python3
"""
Create a confirmed Supabase Auth user and its linked `employees` row
(root of the hierarchy). Needs SUPABASE_SERVICE_ROLE_KEY.

Usage:
    python scripts/create_admin_user.py --email EMAIL --password PASSWORD [--name NAME] [--role ROLE]

Examples:
    python scripts/create_admin_user.py --email admin@empresa.com.br --password 'Troque123!'
    python scripts/create_admin_user.py -e gestor@empresa.com.br -p 'Senha123' -n "Ana Souza" --keep-password
"""
import argparse
import logging
import sys
from datetime import date

from settings.constants import LOG_LEVEL, TABLE_EMPLOYEES
from utils.auth import admin_create_user, service_headers, validate_password
from utils.db import check_response, db_insert
from utils.errors import GestaoError
from utils.roles import hierarchy_level_for_role

logger = logging.getLogger("create_admin_user")


def admin_employee(user_id, email, full_name, role, must_change_password=True):
    return {
        "full_name": full_name,
        "email": email,
        "role": role,
        "hierarchy_level": hierarchy_level_for_role(role),
        "status": "active",
        "admission_date": date.today().isoformat(),
        "user_id": user_id,
        "salary": 0,
        "cluster": "Matriz",
        "store": "Matriz",
        "performance_score": 100,
        "graph_position_x": 0,
        "graph_position_y": 0,
        "must_change_password": must_change_password,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Create an admin user and its employee record",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--email', '-e', required=True, help='Login e-mail')
    parser.add_argument('--password', '-p', required=True, help='Initial password')
    parser.add_argument('--name', '-n', default='Administrador', help='Full name')
    parser.add_argument('--role', '-r', default='DIRETOR', help='Role (default: DIRETOR)')
    parser.add_argument(
        '--keep-password', action='store_true',
        help='Do not force a password change on first login'
    )
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(message)s")

    error = validate_password(args.password)
    if error:
        logger.error(error)
        return 1

    try:
        user = admin_create_user(args.email, args.password, args.name)
        logger.info("Auth user created: %s", user["id"])

        payload = admin_employee(user["id"], args.email, args.name, args.role, not args.keep_password)
        r = db_insert(TABLE_EMPLOYEES, [payload], headers=service_headers())
        employee = check_response(r, "criar colaborador")[0]
    except GestaoError as e:
        logger.error("Failed: %s", e)
        return 1

    print(f"\n{'='*60}")
    print("Admin user created successfully!")
    print(f"E-mail:      {args.email}")
    print(f"Employee id: {employee['id']}")
    print(f"{'='*60}\n")
    return 0


if __name__ == '__main__':
    sys.exit(main())
