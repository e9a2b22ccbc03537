"""Domain-level status vocabularies and transition rules."""

from __future__ import annotations

from dataclasses import dataclass

from guestdesk.domain.errors import InvalidTransitionError


TASK_PENDING = "pending"
TASK_ASSIGNED = "assigned"
TASK_IN_PROGRESS = "in_progress"
TASK_COMPLETED = "completed"
TASK_REJECTED = "rejected"

TASK_STATUSES = frozenset(
    {TASK_PENDING, TASK_ASSIGNED, TASK_IN_PROGRESS, TASK_COMPLETED, TASK_REJECTED}
)

OFFER_PENDING = "pending"
OFFER_ACCEPTED = "accepted"
OFFER_REJECTED = "rejected"

OFFER_STATUSES = frozenset({OFFER_PENDING, OFFER_ACCEPTED, OFFER_REJECTED})

GUEST_REQUEST_ACCEPTED = "accepted"

# Reassignment re-enters `assigned`; completed tasks are terminal.
TASK_TRANSITIONS: dict[str, frozenset[str]] = {
    TASK_PENDING: frozenset({TASK_ASSIGNED, TASK_REJECTED}),
    TASK_ASSIGNED: frozenset({TASK_ASSIGNED, TASK_IN_PROGRESS, TASK_REJECTED}),
    TASK_REJECTED: frozenset({TASK_ASSIGNED}),
    TASK_IN_PROGRESS: frozenset({TASK_COMPLETED}),
    TASK_COMPLETED: frozenset(),
}


@dataclass(frozen=True)
class AssignmentConfig:
    offer_ttl_minutes: int


def validate_assignment_config(config: AssignmentConfig) -> None:
    if config.offer_ttl_minutes <= 0:
        raise ValueError("offer_ttl_minutes must be > 0")


def validate_task_transition(current: str, target: str) -> None:
    if current not in TASK_STATUSES:
        raise InvalidTransitionError(f"Unknown task status '{current}'")
    if target not in TASK_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Task cannot move from '{current}' to '{target}'"
        )
