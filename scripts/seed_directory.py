#!/usr/bin/env python3
"""
Load offices and employees into the directory read models.

The directory is owned by another system; this script is for local
development and demos.  Existing codes are updated in place.

Usage:
    python3 scripts/seed_directory.py --file directory.yaml [--config PATH]

directory.yaml:
    offices:
      - {office_code: OFFICE001, name: Pune HQ, address: "..."}
    employees:
      - {employee_code: EMP001, name: Asha, role: internal, office: OFFICE001}
      - {employee_code: ADM001, name: Ravi, role: admin, assigned_office: OFFICE001}
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed offices and employees.")
    parser.add_argument("--file", required=True, type=Path, help="Directory YAML.")
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML.")
    args = parser.parse_args(argv)

    from sqlalchemy import select

    from goodies_config import init_from_settings, load_settings
    from goodies_config.loader import load_yaml_file
    from goodies_kernel.db.engine import create_tables, session_scope
    from goodies_kernel.domain.dtos import EmployeeRole, EmployeeStatus
    from goodies_kernel.models import Employee, Office

    data = load_yaml_file(args.file)
    init_from_settings(load_settings(args.config))
    create_tables()

    with session_scope() as session:
        offices: dict[str, Office] = {}
        for entry in data.get("offices") or []:
            code = entry["office_code"]
            office = session.execute(
                select(Office).where(Office.office_code == code)
            ).scalar_one_or_none()
            if office is None:
                office = Office(office_code=code, name=entry["name"])
                session.add(office)
            office.name = entry["name"]
            office.address = entry.get("address")
            office.is_active = entry.get("is_active", True)
            offices[code] = office
        session.flush()

        count = 0
        for entry in data.get("employees") or []:
            code = entry["employee_code"]
            employee = session.execute(
                select(Employee).where(Employee.employee_code == code)
            ).scalar_one_or_none()
            if employee is None:
                employee = Employee(employee_code=code, name=entry["name"], role="")
                session.add(employee)
            employee.name = entry["name"]
            employee.email = entry.get("email")
            employee.role = EmployeeRole(entry["role"]).value
            employee.status = EmployeeStatus(entry.get("status", "active")).value
            primary = entry.get("office")
            assigned = entry.get("assigned_office")
            employee.primary_office_id = offices[primary].id if primary else None
            employee.assigned_office_id = offices[assigned].id if assigned else None
            count += 1

    print(f"Seeded {len(offices)} offices and {count} employees.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
