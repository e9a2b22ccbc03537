"""Controller layer for department-level read projections."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from guestdesk.controllers.dependencies import get_workload_inspector
from guestdesk.controllers.schemas import EmployeePerformanceResponse, to_http_exception
from guestdesk.domain.errors import GuestDeskError
from guestdesk.services.workload_service import WorkloadInspector


router = APIRouter(tags=["departments"])


@router.get("/health", include_in_schema=False)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/departments/{department_id}/performance",
    response_model=list[EmployeePerformanceResponse],
    status_code=status.HTTP_200_OK,
)
async def department_performance(
    department_id: str,
    inspector: WorkloadInspector = Depends(get_workload_inspector),
) -> list[EmployeePerformanceResponse]:
    """Completed-task counts and work minutes per department member."""
    try:
        return [
            EmployeePerformanceResponse.from_performance(item)
            for item in inspector.employee_performance(department_id)
        ]
    except GuestDeskError as exc:
        raise to_http_exception(exc) from exc
