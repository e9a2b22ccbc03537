"""Request/response DTOs shared by the HTTP controllers."""

from __future__ import annotations

from datetime import datetime

from fastapi import HTTPException, status
from pydantic import BaseModel, Field, field_validator

from guestdesk.domain.errors import (
    ConflictError,
    GuestDeskError,
    InvalidTransitionError,
    NoEligibleEmployeeError,
    NotFoundError,
    OfferExpiredError,
    StoreError,
    UnauthorizedActionError,
)
from guestdesk.domain.models import (
    EmployeePerformance,
    GuestRequest,
    StatusHistoryEntry,
    Task,
    TaskAssignment,
)


ERROR_STATUS_CODES: tuple[tuple[type[GuestDeskError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (OfferExpiredError, status.HTTP_410_GONE),
    (ConflictError, status.HTTP_409_CONFLICT),
    (NoEligibleEmployeeError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (UnauthorizedActionError, status.HTTP_403_FORBIDDEN),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(exc: GuestDeskError) -> HTTPException:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc),
    )


def _non_blank(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("value must not be blank")
    return stripped


class EmployeeActionRequest(BaseModel):
    employee_id: str = Field(min_length=1)


class SubmitTaskRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    room_number: str = Field(min_length=1, max_length=20)
    department_id: str = Field(min_length=1)
    requester_id: str = Field(min_length=1)

    @field_validator("title", "room_number")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        return _non_blank(value)


class CreateOfferRequest(BaseModel):
    department_id: str | None = Field(default=None, min_length=1)


class SubmitGuestRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    room_number: str = Field(min_length=1, max_length=20)
    department_id: str = Field(min_length=1)
    guest_name: str = Field(default="", max_length=120)

    @field_validator("title", "room_number")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        return _non_blank(value)


class TaskResponse(BaseModel):
    id: str
    title: str
    room_number: str
    department_id: str
    status: str
    requester_id: str
    assigned_to: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    created_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.task_id,
            title=task.title,
            room_number=task.room_number,
            department_id=task.department_id,
            status=task.status,
            requester_id=task.requester_id,
            assigned_to=task.assigned_to,
            start_time=task.start_time,
            end_time=task.end_time,
            created_at=task.created_at,
        )


class OfferResponse(BaseModel):
    task_id: str
    employee_id: str
    status: str
    expires_at: datetime

    @classmethod
    def from_offer(cls, offer: TaskAssignment) -> "OfferResponse":
        return cls(
            task_id=offer.task_id,
            employee_id=offer.employee_id,
            status=offer.status,
            expires_at=offer.expires_at,
        )


class GuestRequestResponse(BaseModel):
    id: str
    title: str
    room_number: str
    department_id: str
    guest_name: str
    status: str
    assigned_to: str | None = None
    accepted_by: str | None = None
    accepted_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_request(cls, request: GuestRequest) -> "GuestRequestResponse":
        return cls(
            id=request.request_id,
            title=request.title,
            room_number=request.room_number,
            department_id=request.department_id,
            guest_name=request.guest_name,
            status=request.status,
            assigned_to=request.assigned_to,
            accepted_by=request.accepted_by,
            accepted_at=request.accepted_at,
            created_at=request.created_at,
        )


class StatusHistoryResponse(BaseModel):
    id: str
    task_id: str
    employee_id: str
    status: str
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: StatusHistoryEntry) -> "StatusHistoryResponse":
        return cls(
            id=entry.entry_id,
            task_id=entry.task_id,
            employee_id=entry.employee_id,
            status=entry.status,
            timestamp=entry.timestamp,
        )


class EmployeePerformanceResponse(BaseModel):
    employee_id: str
    name: str
    tasks_completed: int = Field(ge=0)
    total_work_time: float
    average_completion_time: float

    @classmethod
    def from_performance(cls, item: EmployeePerformance) -> "EmployeePerformanceResponse":
        return cls(
            employee_id=item.employee_id,
            name=item.name,
            tasks_completed=item.tasks_completed,
            total_work_time=item.total_work_time,
            average_completion_time=item.average_completion_time,
        )
