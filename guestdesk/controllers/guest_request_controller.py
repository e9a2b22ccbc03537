"""Controller layer for guest-submitted requests and direct staff claims."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from guestdesk.controllers.dependencies import get_assignment_service, get_query_service
from guestdesk.controllers.schemas import (
    EmployeeActionRequest,
    GuestRequestResponse,
    SubmitGuestRequest,
    TaskResponse,
    to_http_exception,
)
from guestdesk.domain.errors import GuestDeskError
from guestdesk.services.assignment_service import AssignmentLifecycleService
from guestdesk.services.task_query_service import TaskQueryService
from guestdesk.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/guest_requests", tags=["guest_requests"])


@router.post("", response_model=GuestRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_guest_request(
    payload: SubmitGuestRequest,
    service: AssignmentLifecycleService = Depends(get_assignment_service),
) -> GuestRequestResponse:
    try:
        request = service.submit_guest_request(
            title=payload.title,
            room_number=payload.room_number,
            department_id=payload.department_id,
            guest_name=payload.guest_name,
        )
        return GuestRequestResponse.from_request(request)
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected guest request submission failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit guest request",
        ) from exc


@router.get("", response_model=list[GuestRequestResponse], status_code=status.HTTP_200_OK)
async def list_guest_requests(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    service: TaskQueryService = Depends(get_query_service),
) -> list[GuestRequestResponse]:
    try:
        return [
            GuestRequestResponse.from_request(item)
            for item in service.guest_requests(status=status_filter)
        ]
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/{request_id}/accept",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def accept_guest_request(
    request_id: str,
    payload: EmployeeActionRequest,
    service: AssignmentLifecycleService = Depends(get_assignment_service),
) -> TaskResponse:
    """Turn a guest request into an in-progress task owned by the caller."""
    try:
        task = service.accept_guest_request(request_id, payload.employee_id)
        return TaskResponse.from_task(task)
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected guest request accept failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to accept guest request",
        ) from exc
