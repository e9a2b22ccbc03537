"""Assignment offer lifecycle: offer, accept, reject, complete and direct claims."""

from __future__ import annotations

import random
from dataclasses import replace
from datetime import timedelta
from typing import Optional

from guestdesk.domain.constraints import (
    OFFER_ACCEPTED,
    OFFER_PENDING,
    OFFER_REJECTED,
    TASK_ASSIGNED,
    TASK_COMPLETED,
    TASK_IN_PROGRESS,
    TASK_PENDING,
    AssignmentConfig,
    validate_assignment_config,
    validate_task_transition,
)
from guestdesk.domain.errors import (
    GuestRequestConflictError,
    GuestRequestNotFoundError,
    NoEligibleEmployeeError,
    OfferConflictError,
    OfferExpiredError,
    OfferNotFoundError,
    TaskNotFoundError,
    UnauthorizedActionError,
)
from guestdesk.domain.models import GuestRequest, Task, TaskAssignment
from guestdesk.repository.data_repository import DataRepository, new_id
from guestdesk.services.assignment_selector import select_employee
from guestdesk.services.history_service import StatusHistoryRecorder
from guestdesk.services.workload_service import WorkloadInspector
from guestdesk.utils.clock import Clock, SystemClock
from guestdesk.utils.config import Settings, get_settings
from guestdesk.utils.logger import get_logger, log_event


logger = get_logger(__name__)


def guest_task_title(request: GuestRequest) -> str:
    title = f"{request.title} - Room {request.room_number}"
    if request.guest_name:
        title += f", Guest: {request.guest_name}"
    return title


class AssignmentLifecycleService:
    """Routes tasks to department staff through time-boxed offers.

    Offers move `pending -> accepted` or `pending -> rejected` and never leave
    those terminal states. Expiry is only evaluated when an offer is accepted;
    nothing sweeps stale offers in the background. A rejection immediately
    re-runs selection over the department's current workloads.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        workload_inspector: Optional[WorkloadInspector] = None,
        history_recorder: Optional[StatusHistoryRecorder] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._workload_inspector = workload_inspector or WorkloadInspector(
            repository=self._repository,
            settings=self._settings,
        )
        self._history = history_recorder or StatusHistoryRecorder(
            repository=self._repository,
            settings=self._settings,
        )
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random(self._settings.assignment_random_seed)
        self._config = AssignmentConfig(offer_ttl_minutes=self._settings.offer_ttl_minutes)
        validate_assignment_config(self._config)

    def _require_task(self, task_id: str) -> Task:
        task = self._repository.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def _require_offer(self, task_id: str, employee_id: str) -> TaskAssignment:
        offer = self._repository.get_offer(task_id, employee_id)
        if offer is None:
            raise OfferNotFoundError(
                f"Task assignment for task {task_id} and employee {employee_id} not found"
            )
        return offer

    def submit_task(
        self,
        *,
        title: str,
        room_number: str,
        department_id: str,
        requester_id: str,
    ) -> Task:
        """Create a pending task and immediately offer it to the department.

        The roster is checked first so an unknown or empty department leaves
        nothing behind in the store.
        """
        if not self._workload_inspector.employees_of(department_id):
            raise NoEligibleEmployeeError(
                f"Department {department_id} has no employees to assign"
            )
        task = Task(
            task_id=new_id(),
            title=title,
            room_number=room_number,
            department_id=department_id,
            status=TASK_PENDING,
            requester_id=requester_id,
            created_at=self._clock.now(),
        )
        self._repository.create_task(task)
        logger.info(
            "Task submitted | task_id=%s | department_id=%s | room=%s",
            task.task_id,
            department_id,
            room_number,
        )
        self.create_offer(task.task_id, department_id)
        return self._require_task(task.task_id)

    def create_offer(self, task_id: str, department_id: str) -> TaskAssignment:
        task = self._require_task(task_id)
        validate_task_transition(task.status, TASK_ASSIGNED)

        employees = self._workload_inspector.employees_of(department_id)
        workloads = self._workload_inspector.snapshots(employees)
        assignee = select_employee(employees, workloads, self._rng)

        superseded = self._repository.supersede_pending_offers(task_id)
        if superseded:
            logger.info(
                "Superseded pending offers | task_id=%s | count=%s",
                task_id,
                superseded,
            )

        offer = TaskAssignment(
            task_id=task_id,
            employee_id=assignee.employee_id,
            status=OFFER_PENDING,
            expires_at=self._clock.now() + timedelta(minutes=self._config.offer_ttl_minutes),
        )
        self._repository.save_offer(offer)
        self._repository.update_task(task_id, status=TASK_ASSIGNED)

        workload = workloads[assignee.employee_id]
        logger.info(
            (
                "Offer created | task_id=%s | employee_id=%s | name=%s | "
                "in_progress=%s | completed=%s | candidates_free=%s"
            ),
            task_id,
            assignee.employee_id,
            assignee.name,
            workload.in_progress_count,
            workload.completed_count,
            any(snapshot.is_free for snapshot in workloads.values()),
        )
        return offer

    def accept(self, task_id: str, employee_id: str) -> Task:
        offer = self._require_offer(task_id, employee_id)
        now = self._clock.now()
        if offer.status != OFFER_PENDING:
            raise OfferConflictError(
                f"Task assignment for task {task_id} is already {offer.status}"
            )
        if offer.is_expired(now):
            logger.warning(
                "Offer expired | task_id=%s | employee_id=%s | expires_at=%s",
                task_id,
                employee_id,
                offer.expires_at.isoformat(),
            )
            raise OfferExpiredError("Task assignment has expired")

        task = self._require_task(task_id)
        validate_task_transition(task.status, TASK_IN_PROGRESS)

        swapped = self._repository.compare_and_set_offer_status(
            task_id,
            employee_id,
            expected_status=OFFER_PENDING,
            new_status=OFFER_ACCEPTED,
        )
        if not swapped:
            logger.warning(
                "Offer changed before accept | task_id=%s | employee_id=%s",
                task_id,
                employee_id,
            )
            raise OfferConflictError(
                f"Task assignment for task {task_id} is no longer pending"
            )

        self._repository.update_task(
            task_id,
            status=TASK_IN_PROGRESS,
            assigned_to=employee_id,
            start_time=now,
        )
        self._history.record(
            task_id=task_id,
            employee_id=employee_id,
            status=TASK_IN_PROGRESS,
            timestamp=now,
        )
        log_event(logger, "Offer accepted", task_id=task_id, employee_id=employee_id)
        return replace(task, status=TASK_IN_PROGRESS, assigned_to=employee_id, start_time=now)

    def reject(self, task_id: str, employee_id: str) -> TaskAssignment:
        """Reject an offer and return the replacement offer."""
        self._require_offer(task_id, employee_id)
        swapped = self._repository.compare_and_set_offer_status(
            task_id,
            employee_id,
            expected_status=OFFER_PENDING,
            new_status=OFFER_REJECTED,
        )
        if not swapped:
            raise OfferConflictError(
                f"Task assignment for task {task_id} is no longer pending"
            )
        log_event(logger, "Offer rejected", task_id=task_id, employee_id=employee_id)

        task = self._require_task(task_id)
        return self.create_offer(task_id, task.department_id)

    def complete(self, task_id: str, employee_id: str) -> Task:
        task = self._require_task(task_id)
        if task.assigned_to != employee_id:
            raise UnauthorizedActionError(
                f"Task {task_id} is not assigned to employee {employee_id}"
            )
        validate_task_transition(task.status, TASK_COMPLETED)

        now = self._clock.now()
        self._repository.update_task(task_id, status=TASK_COMPLETED, end_time=now)
        self._history.record(
            task_id=task_id,
            employee_id=employee_id,
            status=TASK_COMPLETED,
            timestamp=now,
        )
        log_event(logger, "Task completed", task_id=task_id, employee_id=employee_id)
        return replace(task, status=TASK_COMPLETED, end_time=now)

    def submit_guest_request(
        self,
        *,
        title: str,
        room_number: str,
        department_id: str,
        guest_name: str,
    ) -> GuestRequest:
        self._workload_inspector.employees_of(department_id)
        request = GuestRequest(
            request_id=new_id(),
            title=title,
            room_number=room_number,
            department_id=department_id,
            guest_name=guest_name,
            status=TASK_PENDING,
            created_at=self._clock.now(),
        )
        self._repository.create_guest_request(request)
        logger.info(
            "Guest request submitted | request_id=%s | department_id=%s | room=%s",
            request.request_id,
            department_id,
            room_number,
        )
        return request

    def accept_guest_request(self, request_id: str, employee_id: str) -> Task:
        """Claim a guest request directly, bypassing offer routing."""
        request = self._repository.get_guest_request(request_id)
        if request is None:
            raise GuestRequestNotFoundError(f"Guest request with ID {request_id} not found")

        now = self._clock.now()
        claimed = self._repository.mark_guest_request_accepted(request_id, employee_id, now)
        if not claimed:
            raise GuestRequestConflictError(f"Guest request {request_id} was already accepted")

        task = Task(
            task_id=new_id(),
            title=guest_task_title(request),
            room_number=request.room_number,
            department_id=request.department_id,
            status=TASK_IN_PROGRESS,
            requester_id=request_id,
            created_at=now,
            assigned_to=employee_id,
            start_time=now,
        )
        try:
            self._repository.create_task(task)
        except Exception:
            # The claim must not outlive a task that was never written.
            logger.warning(
                "Task write failed, releasing guest request | request_id=%s | employee_id=%s",
                request_id,
                employee_id,
            )
            self._repository.release_guest_request(request, employee_id)
            raise
        self._history.record(
            task_id=task.task_id,
            employee_id=employee_id,
            status=TASK_IN_PROGRESS,
            timestamp=now,
        )
        log_event(
            logger,
            "Guest request accepted",
            request_id=request_id,
            task_id=task.task_id,
            employee_id=employee_id,
        )
        return task
