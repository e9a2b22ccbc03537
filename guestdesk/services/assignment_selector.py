"""Pure workload-balancing selection of the employee who receives a task."""

from __future__ import annotations

import random
from typing import Mapping, Sequence

from guestdesk.domain.errors import NoEligibleEmployeeError
from guestdesk.domain.models import Employee, WorkloadSnapshot


def _min_completed(
    employees: Sequence[Employee],
    workloads: Mapping[str, WorkloadSnapshot],
) -> list[Employee]:
    lowest = min(workloads[employee.employee_id].completed_count for employee in employees)
    return [
        employee
        for employee in employees
        if workloads[employee.employee_id].completed_count == lowest
    ]


def eligible_candidates(
    employees: Sequence[Employee],
    workloads: Mapping[str, WorkloadSnapshot],
) -> list[Employee]:
    """Narrow a roster to the employees tied for the lightest load.

    Free employees (nothing in progress) always win; among them the fewest
    completed tasks wins. When everyone is busy, the fewest in-progress tasks
    wins first, then the fewest completed tasks within that group.
    """
    if not employees:
        raise NoEligibleEmployeeError("Department has no employees to assign")

    free = [
        employee
        for employee in employees
        if workloads[employee.employee_id].is_free
    ]
    if free:
        return _min_completed(free, workloads)

    lowest_in_progress = min(
        workloads[employee.employee_id].in_progress_count for employee in employees
    )
    least_busy = [
        employee
        for employee in employees
        if workloads[employee.employee_id].in_progress_count == lowest_in_progress
    ]
    return _min_completed(least_busy, workloads)


def select_employee(
    employees: Sequence[Employee],
    workloads: Mapping[str, WorkloadSnapshot],
    rng: random.Random,
) -> Employee:
    candidates = eligible_candidates(employees, workloads)
    return rng.choice(candidates)
