from __future__ import annotations

from datetime import timedelta

import pytest

from guestdesk.domain.errors import DepartmentNotFoundError
from guestdesk.domain.models import Task
from guestdesk.repository.data_repository import new_id
from guestdesk.services.workload_service import WorkloadInspector


def _task(department_id, status, assignee, start=None, end=None, created_at=None) -> Task:
    return Task(
        task_id=new_id(),
        title="Minibar restock",
        room_number="118",
        department_id=department_id,
        status=status,
        requester_id="front-desk",
        created_at=created_at or start,
        assigned_to=assignee,
        start_time=start,
        end_time=end,
    )


def test_snapshot_counts_completed_and_in_progress(repository, settings, clock):
    department = repository.create_department("Room Service", "", created_at=clock.now())
    worker = repository.create_employee("Mariam", "", created_at=clock.now())
    repository.add_employee_to_department(department.department_id, worker.employee_id)
    now = clock.now()
    for status in ("completed", "completed", "in_progress", "assigned"):
        repository.create_task(_task(department.department_id, status, worker.employee_id, start=now))

    snapshot = WorkloadInspector(repository=repository, settings=settings).snapshot(worker.employee_id)

    assert snapshot.completed_count == 2
    assert snapshot.in_progress_count == 1
    assert not snapshot.is_free


def test_employee_without_tasks_is_free(repository, settings):
    snapshot = WorkloadInspector(repository=repository, settings=settings).snapshot("nobody")
    assert snapshot.completed_count == 0
    assert snapshot.in_progress_count == 0
    assert snapshot.is_free


def test_employees_of_only_returns_members(repository, settings, clock):
    department = repository.create_department("Maintenance", "", created_at=clock.now())
    other = repository.create_department("Housekeeping", "", created_at=clock.now())
    member = repository.create_employee("Levan", "", created_at=clock.now())
    outsider = repository.create_employee("Nino", "", created_at=clock.now())
    repository.add_employee_to_department(department.department_id, member.employee_id)
    repository.add_employee_to_department(other.department_id, outsider.employee_id)
    inspector = WorkloadInspector(repository=repository, settings=settings)

    roster = inspector.employees_of(department.department_id)

    assert [employee.employee_id for employee in roster] == [member.employee_id]
    with pytest.raises(DepartmentNotFoundError):
        inspector.employees_of("missing")


def test_employee_performance_reports_minutes(repository, settings, clock):
    department = repository.create_department("Housekeeping", "", created_at=clock.now())
    fast = repository.create_employee("Ana", "", created_at=clock.now())
    idle = repository.create_employee("Dato", "", created_at=clock.now())
    for employee in (fast, idle):
        repository.add_employee_to_department(department.department_id, employee.employee_id)

    start = clock.now()
    repository.create_task(
        _task(department.department_id, "completed", fast.employee_id, start, start + timedelta(minutes=30))
    )
    repository.create_task(
        _task(department.department_id, "completed", fast.employee_id, start, start + timedelta(minutes=10))
    )
    repository.create_task(_task(department.department_id, "in_progress", fast.employee_id, start))

    performance = WorkloadInspector(repository=repository, settings=settings).employee_performance(
        department.department_id
    )

    by_id = {item.employee_id: item for item in performance}
    assert by_id[fast.employee_id].tasks_completed == 2
    assert by_id[fast.employee_id].total_work_time == pytest.approx(40.0)
    assert by_id[fast.employee_id].average_completion_time == pytest.approx(20.0)
    assert by_id[idle.employee_id].tasks_completed == 0
    assert by_id[idle.employee_id].average_completion_time == 0.0
