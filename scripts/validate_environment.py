#!/usr/bin/env python3
"""Validate local Guest Desk environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from guestdesk.repository.data_repository import DataRepository
from guestdesk.services.assignment_service import AssignmentLifecycleService
from guestdesk.utils.clock import SystemClock
from guestdesk.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="guestdesk-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    from importlib.metadata import version

    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            _ = version(dist_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "guestdesk_validation.db",
            assignment_random_seed=7,
        )
        repository = DataRepository(validation_settings)
        clock = SystemClock()

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo roster seeding (3 departments, 6 employees)
        try:
            repository.seed_demo_data(now=clock.now())
            departments = repository.list_departments()
            member_count = sum(len(item.employee_ids) for item in departments)
            if len(departments) != 3 or member_count != 6:
                raise RuntimeError(
                    f"expected 3 departments / 6 employees, got {len(departments)} / {member_count}"
                )
            ok, line = _print_result("Demo roster: 3 departments, 6 employees", True)
        except Exception as exc:
            ok, line = _print_result("Demo roster", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Offer round trip
        try:
            service = AssignmentLifecycleService(
                repository=repository,
                settings=validation_settings,
                clock=clock,
            )
            department = repository.list_departments()[0]
            task = service.submit_task(
                title="Validation towel refill",
                room_number="101",
                department_id=department.department_id,
                requester_id="validation",
            )
            offer = repository.list_offers(task_id=task.task_id, status="pending")[0]
            service.accept(task.task_id, offer.employee_id)
            completed = service.complete(task.task_id, offer.employee_id)
            if completed.status != "completed":
                raise RuntimeError(f"unexpected final status {completed.status}")
            ok, line = _print_result("Offer round trip", True, f": {task.task_id}")
        except Exception as exc:
            ok, line = _print_result("Offer round trip", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Guest Desk Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
