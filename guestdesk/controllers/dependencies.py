"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from guestdesk.services.assignment_service import AssignmentLifecycleService
from guestdesk.services.history_service import StatusHistoryRecorder
from guestdesk.services.task_query_service import TaskQueryService
from guestdesk.services.workload_service import WorkloadInspector


def _state_service(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_assignment_service(request: Request) -> AssignmentLifecycleService:
    return _state_service(request, "assignment_service", "Assignment")


def get_query_service(request: Request) -> TaskQueryService:
    return _state_service(request, "query_service", "Task query")


def get_workload_inspector(request: Request) -> WorkloadInspector:
    return _state_service(request, "workload_inspector", "Workload")


def get_history_recorder(request: Request) -> StatusHistoryRecorder:
    return _state_service(request, "history_recorder", "Status history")
