"""Read-only task, offer and guest request projections."""

from __future__ import annotations

from typing import Optional

from guestdesk.domain.errors import TaskNotFoundError
from guestdesk.domain.models import GuestRequest, Task, TaskAssignment
from guestdesk.repository.data_repository import DataRepository
from guestdesk.utils.config import Settings, get_settings


class TaskQueryService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_task(self, task_id: str) -> Task:
        task = self._repository.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def tasks_by_assignee(self, assignee_id: str) -> list[Task]:
        return self._repository.list_tasks(assignee_id=assignee_id)

    def tasks_by_department(self, department_id: str) -> list[Task]:
        return self._repository.list_tasks(department_id=department_id)

    def tasks_by_requester(self, requester_id: str) -> list[Task]:
        return self._repository.list_tasks(requester_id=requester_id)

    def search_tasks(
        self,
        *,
        assignee_id: Optional[str] = None,
        department_id: Optional[str] = None,
        requester_id: Optional[str] = None,
    ) -> list[Task]:
        return self._repository.list_tasks(
            assignee_id=assignee_id,
            department_id=department_id,
            requester_id=requester_id,
        )

    def offers_for_task(self, task_id: str) -> list[TaskAssignment]:
        self.get_task(task_id)
        return self._repository.list_offers(task_id=task_id)

    def guest_requests(self, status: Optional[str] = None) -> list[GuestRequest]:
        return self._repository.list_guest_requests(status=status)
