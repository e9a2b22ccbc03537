"""Employee workload snapshots and completion performance summaries."""

from __future__ import annotations

from typing import Optional

from guestdesk.domain.constraints import TASK_COMPLETED, TASK_IN_PROGRESS
from guestdesk.domain.errors import DepartmentNotFoundError
from guestdesk.domain.models import Employee, EmployeePerformance, WorkloadSnapshot
from guestdesk.repository.data_repository import DataRepository
from guestdesk.utils.config import Settings, get_settings
from guestdesk.utils.logger import get_logger


logger = get_logger(__name__)


class WorkloadInspector:
    """Read-only view of how loaded each employee currently is."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def snapshot(self, employee_id: str) -> WorkloadSnapshot:
        tasks = self._repository.list_tasks(assignee_id=employee_id)
        return WorkloadSnapshot(
            employee_id=employee_id,
            completed_count=sum(1 for task in tasks if task.status == TASK_COMPLETED),
            in_progress_count=sum(1 for task in tasks if task.status == TASK_IN_PROGRESS),
        )

    def snapshots(self, employees: list[Employee]) -> dict[str, WorkloadSnapshot]:
        return {
            employee.employee_id: self.snapshot(employee.employee_id)
            for employee in employees
        }

    def employees_of(self, department_id: str) -> list[Employee]:
        """Department roster; unknown departments raise DepartmentNotFoundError."""
        if self._repository.get_department(department_id) is None:
            raise DepartmentNotFoundError(f"Department {department_id} not found")
        return self._repository.list_department_employees(department_id)

    def employee_performance(self, department_id: str) -> list[EmployeePerformance]:
        """Summarize completed work per department member, in minutes."""
        performances: list[EmployeePerformance] = []
        for employee in self.employees_of(department_id):
            completed = [
                task
                for task in self._repository.list_tasks(assignee_id=employee.employee_id)
                if task.status == TASK_COMPLETED
            ]
            total_work_time = 0.0
            for task in completed:
                if task.start_time is None or task.end_time is None:
                    continue
                total_work_time += (task.end_time - task.start_time).total_seconds() / 60.0

            average = total_work_time / len(completed) if completed else 0.0
            performances.append(
                EmployeePerformance(
                    employee_id=employee.employee_id,
                    name=employee.name,
                    tasks_completed=len(completed),
                    total_work_time=total_work_time,
                    average_completion_time=average,
                )
            )
        logger.debug(
            "Performance computed | department_id=%s | employees=%s",
            department_id,
            len(performances),
        )
        return performances
