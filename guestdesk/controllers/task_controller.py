"""HTTP controller layer for task routing and the offer lifecycle."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from guestdesk.controllers.dependencies import (
    get_assignment_service,
    get_history_recorder,
    get_query_service,
)
from guestdesk.controllers.schemas import (
    CreateOfferRequest,
    EmployeeActionRequest,
    OfferResponse,
    StatusHistoryResponse,
    SubmitTaskRequest,
    TaskResponse,
    to_http_exception,
)
from guestdesk.domain.errors import GuestDeskError
from guestdesk.services.assignment_service import AssignmentLifecycleService
from guestdesk.services.history_service import StatusHistoryRecorder
from guestdesk.services.task_query_service import TaskQueryService
from guestdesk.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def submit_task(
    payload: SubmitTaskRequest,
    service: AssignmentLifecycleService = Depends(get_assignment_service),
) -> TaskResponse:
    """Create a task and route it to the least loaded department member."""
    try:
        task = service.submit_task(
            title=payload.title,
            room_number=payload.room_number,
            department_id=payload.department_id,
            requester_id=payload.requester_id,
        )
        return TaskResponse.from_task(task)
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected task submission failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit task",
        ) from exc


@router.get("", response_model=list[TaskResponse], status_code=status.HTTP_200_OK)
async def list_tasks(
    assignee_id: Optional[str] = None,
    department_id: Optional[str] = None,
    requester_id: Optional[str] = None,
    service: TaskQueryService = Depends(get_query_service),
) -> list[TaskResponse]:
    try:
        tasks = service.search_tasks(
            assignee_id=assignee_id,
            department_id=department_id,
            requester_id=requester_id,
        )
        return [TaskResponse.from_task(task) for task in tasks]
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{task_id}", response_model=TaskResponse, status_code=status.HTTP_200_OK)
async def get_task(
    task_id: str,
    service: TaskQueryService = Depends(get_query_service),
) -> TaskResponse:
    try:
        return TaskResponse.from_task(service.get_task(task_id))
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/{task_id}/offers",
    response_model=list[OfferResponse],
    status_code=status.HTTP_200_OK,
)
async def list_task_offers(
    task_id: str,
    service: TaskQueryService = Depends(get_query_service),
) -> list[OfferResponse]:
    try:
        return [OfferResponse.from_offer(offer) for offer in service.offers_for_task(task_id)]
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/{task_id}/history",
    response_model=list[StatusHistoryResponse],
    status_code=status.HTTP_200_OK,
)
async def task_history(
    task_id: str,
    recorder: StatusHistoryRecorder = Depends(get_history_recorder),
) -> list[StatusHistoryResponse]:
    try:
        return [StatusHistoryResponse.from_entry(entry) for entry in recorder.history(task_id)]
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/{task_id}/offer",
    response_model=OfferResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_offer(
    task_id: str,
    payload: Optional[CreateOfferRequest] = None,
    service: AssignmentLifecycleService = Depends(get_assignment_service),
    query_service: TaskQueryService = Depends(get_query_service),
) -> OfferResponse:
    """Offer the task to a department member; defaults to the task's department."""
    try:
        department_id = payload.department_id if payload is not None else None
        if department_id is None:
            department_id = query_service.get_task(task_id).department_id
        offer = service.create_offer(task_id, department_id)
        return OfferResponse.from_offer(offer)
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected offer creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create offer",
        ) from exc


@router.post("/{task_id}/accept", response_model=TaskResponse, status_code=status.HTTP_200_OK)
async def accept_offer(
    task_id: str,
    payload: EmployeeActionRequest,
    service: AssignmentLifecycleService = Depends(get_assignment_service),
) -> TaskResponse:
    try:
        task = service.accept(task_id, payload.employee_id)
        return TaskResponse.from_task(task)
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected offer accept failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to accept offer",
        ) from exc


@router.post("/{task_id}/reject", response_model=OfferResponse, status_code=status.HTTP_200_OK)
async def reject_offer(
    task_id: str,
    payload: EmployeeActionRequest,
    service: AssignmentLifecycleService = Depends(get_assignment_service),
) -> OfferResponse:
    """Reject an offer; the response is the replacement offer."""
    try:
        offer = service.reject(task_id, payload.employee_id)
        return OfferResponse.from_offer(offer)
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected offer reject failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reject offer",
        ) from exc


@router.post("/{task_id}/complete", response_model=TaskResponse, status_code=status.HTTP_200_OK)
async def complete_task(
    task_id: str,
    payload: EmployeeActionRequest,
    service: AssignmentLifecycleService = Depends(get_assignment_service),
) -> TaskResponse:
    try:
        task = service.complete(task_id, payload.employee_id)
        return TaskResponse.from_task(task)
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected task completion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to complete task",
        ) from exc
