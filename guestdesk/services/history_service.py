"""Best-effort task status audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from guestdesk.domain.models import StatusHistoryEntry
from guestdesk.repository.data_repository import DataRepository, new_id
from guestdesk.utils.config import Settings, get_settings
from guestdesk.utils.logger import get_logger, log_event


logger = get_logger(__name__)


class StatusHistoryRecorder:
    """Appends status changes; write failures never reach the caller."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def record(
        self,
        *,
        task_id: str,
        employee_id: str,
        status: str,
        timestamp: datetime,
    ) -> Optional[StatusHistoryEntry]:
        entry = StatusHistoryEntry(
            entry_id=new_id(),
            task_id=task_id,
            employee_id=employee_id,
            status=status,
            timestamp=timestamp,
        )
        try:
            self._repository.append_status_history(entry)
        except Exception:
            logger.exception(
                "Status history append failed | task_id=%s | status=%s",
                task_id,
                status,
            )
            return None
        log_event(
            logger,
            "Task status recorded",
            task_id=task_id,
            status=status,
            employee_id=employee_id,
        )
        return entry

    def history(self, task_id: Optional[str] = None) -> list[StatusHistoryEntry]:
        return self._repository.list_status_history(task_id)
