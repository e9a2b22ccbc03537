"""Domain models for guest requests, tasks and assignment offers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Employee:
    employee_id: str
    name: str
    email: str = ""
    department_id: Optional[str] = None


@dataclass(frozen=True)
class Department:
    department_id: str
    name: str
    description: str
    employee_ids: tuple[str, ...]
    created_at: datetime


@dataclass(frozen=True)
class Task:
    task_id: str
    title: str
    room_number: str
    department_id: str
    status: str
    requester_id: str
    created_at: datetime
    assigned_to: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


@dataclass(frozen=True)
class GuestRequest:
    request_id: str
    title: str
    room_number: str
    department_id: str
    guest_name: str
    status: str
    created_at: datetime
    assigned_to: Optional[str] = None
    accepted_by: Optional[str] = None
    accepted_at: Optional[datetime] = None


@dataclass(frozen=True)
class TaskAssignment:
    task_id: str
    employee_id: str
    status: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class WorkloadSnapshot:
    employee_id: str
    completed_count: int
    in_progress_count: int

    @property
    def is_free(self) -> bool:
        return self.in_progress_count == 0


@dataclass(frozen=True)
class StatusHistoryEntry:
    entry_id: str
    task_id: str
    employee_id: str
    status: str
    timestamp: datetime


@dataclass(frozen=True)
class EmployeePerformance:
    employee_id: str
    name: str
    tasks_completed: int
    total_work_time: float
    average_completion_time: float
