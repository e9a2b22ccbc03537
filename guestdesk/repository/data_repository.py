"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Iterator, Optional
from uuid import uuid4

from guestdesk.domain.errors import StoreError, TaskNotFoundError
from guestdesk.domain.models import (
    Department,
    Employee,
    GuestRequest,
    StatusHistoryEntry,
    Task,
    TaskAssignment,
)
from guestdesk.utils.clock import parse_timestamp, to_timestamp
from guestdesk.utils.config import Settings, get_settings
from guestdesk.utils.logger import get_logger


logger = get_logger(__name__)

TASKS = "tasks"
GUEST_REQUESTS = "guest_requests"
TASK_ASSIGNMENTS = "task_assignments"
TASK_STATUS_HISTORY = "task_status_history"

COLLECTIONS = (TASKS, GUEST_REQUESTS, TASK_ASSIGNMENTS, TASK_STATUS_HISTORY)

ChangeListener = Callable[[list[Any]], None]

# Columns a partial task update may touch, keyed by domain field name.
_TASK_UPDATE_COLUMNS = {
    "status": "status",
    "assigned_to": "assigned_to",
    "start_time": "start_time",
    "end_time": "end_time",
    "title": "title",
    "room_number": "room_number",
}


def new_id() -> str:
    return uuid4().hex


def _optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return parse_timestamp(value)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_timestamp(value)
    return value


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        task_id=str(row["id"]),
        title=str(row["title"]),
        room_number=str(row["room_number"]),
        department_id=str(row["department_id"]),
        status=str(row["status"]),
        requester_id=str(row["requester_id"]),
        created_at=parse_timestamp(row["created_at"]),
        assigned_to=row["assigned_to"],
        start_time=_optional_timestamp(row["start_time"]),
        end_time=_optional_timestamp(row["end_time"]),
    )


def _row_to_guest_request(row: sqlite3.Row) -> GuestRequest:
    return GuestRequest(
        request_id=str(row["id"]),
        title=str(row["title"]),
        room_number=str(row["room_number"]),
        department_id=str(row["department_id"]),
        guest_name=str(row["guest_name"]),
        status=str(row["status"]),
        created_at=parse_timestamp(row["created_at"]),
        assigned_to=row["assigned_to"],
        accepted_by=row["accepted_by"],
        accepted_at=_optional_timestamp(row["accepted_at"]),
    )


def _row_to_offer(row: sqlite3.Row) -> TaskAssignment:
    return TaskAssignment(
        task_id=str(row["task_id"]),
        employee_id=str(row["employee_id"]),
        status=str(row["status"]),
        expires_at=parse_timestamp(row["expires_at"]),
    )


def _row_to_history(row: sqlite3.Row) -> StatusHistoryEntry:
    return StatusHistoryEntry(
        entry_id=str(row["id"]),
        task_id=str(row["task_id"]),
        employee_id=str(row["employee_id"]),
        status=str(row["status"]),
        timestamp=parse_timestamp(row["timestamp"]),
    )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._listeners: dict[str, list[ChangeListener]] = defaultdict(list)
        self._listener_lock = RLock()

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; sqlite failures surface as StoreError."""
        connection: Optional[sqlite3.Connection] = None
        try:
            connection = self._connect()
            with connection:
                yield connection
        except sqlite3.Error as exc:
            raise StoreError(f"Store operation failed: {exc}") from exc
        finally:
            if connection is not None:
                connection.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        with self._session() as conn:
            cursor = conn.cursor()

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS Departments (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL
                );
                """
            )

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS Employees (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL DEFAULT '',
                    department_id TEXT,
                    created_at TEXT NOT NULL
                );
                """
            )

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS DepartmentMembers (
                    department_id TEXT NOT NULL,
                    employee_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    PRIMARY KEY (department_id, employee_id),
                    FOREIGN KEY (department_id) REFERENCES Departments(id)
                );
                """
            )

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS Tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    room_number TEXT NOT NULL,
                    department_id TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    requester_id TEXT NOT NULL,
                    assigned_to TEXT,
                    start_time TEXT,
                    end_time TEXT,
                    created_at TEXT NOT NULL
                );
                """
            )

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS GuestRequests (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    room_number TEXT NOT NULL,
                    department_id TEXT NOT NULL,
                    guest_name TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'pending',
                    assigned_to TEXT,
                    accepted_by TEXT,
                    accepted_at TEXT,
                    created_at TEXT NOT NULL
                );
                """
            )

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS TaskAssignments (
                    task_id TEXT NOT NULL,
                    employee_id TEXT NOT NULL,
                    status TEXT NOT NULL CHECK (status IN ('pending', 'accepted', 'rejected')),
                    expires_at TEXT NOT NULL,
                    PRIMARY KEY (task_id, employee_id)
                );
                """
            )

            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS TaskStatusHistory (
                    id TEXT PRIMARY KEY,
                    task_id TEXT NOT NULL,
                    employee_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                );
                """
            )

            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_tasks_assigned_status
                ON Tasks(assigned_to, status);
                """
            )
            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_tasks_department
                ON Tasks(department_id);
                """
            )
            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_history_task
                ON TaskStatusHistory(task_id, timestamp);
                """
            )
        logger.info("Database initialized at %s", self._db_path)

    def seed_demo_data(self, now: datetime) -> None:
        """Seed a small hotel roster only when no departments exist."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Departments;")
            if int(cursor.fetchone()["count"]) > 0:
                logger.info("Demo roster already present; skipping seed")
                return

        roster = {
            ("Housekeeping", "Room cleaning, linen and amenities"): [
                ("Nino Beridze", "nino@hotel.example"),
                ("Giorgi Kapanadze", "giorgi@hotel.example"),
            ],
            ("Maintenance", "Plumbing, electrical and HVAC repairs"): [
                ("Levan Tsiklauri", "levan@hotel.example"),
                ("Ana Lomidze", "ana@hotel.example"),
            ],
            ("Room Service", "In-room dining and deliveries"): [
                ("Mariam Gelashvili", "mariam@hotel.example"),
                ("Dato Japaridze", "dato@hotel.example"),
            ],
        }
        employee_count = 0
        for (name, description), members in roster.items():
            department = self.create_department(name, description, created_at=now)
            for employee_name, email in members:
                employee = self.create_employee(employee_name, email, created_at=now)
                self.add_employee_to_department(department.department_id, employee.employee_id)
                employee_count += 1
        logger.info(
            "Demo seed completed | departments=%s | employees=%s",
            len(roster),
            employee_count,
        )

    # --- change feed ---

    def subscribe(self, collection: str, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener receiving the full collection after each write."""
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection '{collection}'")
        with self._listener_lock:
            self._listeners[collection].append(listener)

        def unsubscribe() -> None:
            with self._listener_lock:
                if listener in self._listeners[collection]:
                    self._listeners[collection].remove(listener)

        return unsubscribe

    def _snapshot(self, collection: str) -> list[Any]:
        if collection == TASKS:
            return self.list_tasks()
        if collection == GUEST_REQUESTS:
            return self.list_guest_requests()
        if collection == TASK_ASSIGNMENTS:
            return self.list_offers()
        return self.list_status_history()

    def _notify(self, collection: str) -> None:
        if not self._settings.change_feed_enabled:
            return
        with self._listener_lock:
            listeners = list(self._listeners[collection])
        if not listeners:
            return
        snapshot = self._snapshot(collection)
        for listener in listeners:
            try:
                listener(list(snapshot))
            except Exception:
                logger.exception("Change listener failed | collection=%s", collection)

    # --- departments and employees ---

    def create_department(
        self,
        name: str,
        description: str,
        created_at: datetime,
    ) -> Department:
        department_id = new_id()
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO Departments (id, name, description, created_at)
                VALUES (?, ?, ?, ?);
                """,
                (department_id, name, description, to_timestamp(created_at)),
            )
        return Department(
            department_id=department_id,
            name=name,
            description=description,
            employee_ids=(),
            created_at=created_at,
        )

    def create_employee(self, name: str, email: str, created_at: datetime) -> Employee:
        employee_id = new_id()
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO Employees (id, name, email, created_at)
                VALUES (?, ?, ?, ?);
                """,
                (employee_id, name, email, to_timestamp(created_at)),
            )
        return Employee(employee_id=employee_id, name=name, email=email)

    def add_employee_to_department(self, department_id: str, employee_id: str) -> None:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT COALESCE(MAX(position), -1) + 1 AS next_position
                FROM DepartmentMembers
                WHERE department_id = ?;
                """,
                (department_id,),
            )
            next_position = int(cursor.fetchone()["next_position"])
            cursor.execute(
                """
                INSERT OR IGNORE INTO DepartmentMembers (department_id, employee_id, position)
                VALUES (?, ?, ?);
                """,
                (department_id, employee_id, next_position),
            )
            cursor.execute(
                "UPDATE Employees SET department_id = ? WHERE id = ?;",
                (department_id, employee_id),
            )

    def remove_employee_from_department(self, department_id: str, employee_id: str) -> None:
        with self._session() as conn:
            conn.execute(
                "DELETE FROM DepartmentMembers WHERE department_id = ? AND employee_id = ?;",
                (department_id, employee_id),
            )
            conn.execute(
                "UPDATE Employees SET department_id = NULL WHERE id = ? AND department_id = ?;",
                (employee_id, department_id),
            )

    def get_department(self, department_id: str) -> Optional[Department]:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, name, description, created_at FROM Departments WHERE id = ?;",
                (department_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            cursor.execute(
                """
                SELECT employee_id FROM DepartmentMembers
                WHERE department_id = ?
                ORDER BY position ASC;
                """,
                (department_id,),
            )
            member_ids = tuple(str(member["employee_id"]) for member in cursor.fetchall())
            return Department(
                department_id=str(row["id"]),
                name=str(row["name"]),
                description=str(row["description"]),
                employee_ids=member_ids,
                created_at=parse_timestamp(row["created_at"]),
            )

    def list_departments(self) -> list[Department]:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM Departments ORDER BY created_at ASC, name ASC;")
            department_ids = [str(row["id"]) for row in cursor.fetchall()]
        departments = [self.get_department(department_id) for department_id in department_ids]
        return [department for department in departments if department is not None]

    def list_department_employees(self, department_id: str) -> list[Employee]:
        """Return department members that still exist as employees."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT e.id, e.name, e.email, e.department_id
                FROM DepartmentMembers AS m
                INNER JOIN Employees AS e ON e.id = m.employee_id
                WHERE m.department_id = ?
                ORDER BY m.position ASC;
                """,
                (department_id,),
            )
            return [
                Employee(
                    employee_id=str(row["id"]),
                    name=str(row["name"]),
                    email=str(row["email"]),
                    department_id=row["department_id"],
                )
                for row in cursor.fetchall()
            ]

    # --- tasks ---

    def create_task(self, task: Task) -> Task:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO Tasks (
                    id,
                    title,
                    room_number,
                    department_id,
                    status,
                    requester_id,
                    assigned_to,
                    start_time,
                    end_time,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    task.task_id,
                    task.title,
                    task.room_number,
                    task.department_id,
                    task.status,
                    task.requester_id,
                    task.assigned_to,
                    _serialize(task.start_time),
                    _serialize(task.end_time),
                    to_timestamp(task.created_at),
                ),
            )
        self._notify(TASKS)
        return task

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Tasks WHERE id = ?;", (task_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_task(row)

    def list_tasks(
        self,
        *,
        assignee_id: Optional[str] = None,
        department_id: Optional[str] = None,
        requester_id: Optional[str] = None,
    ) -> list[Task]:
        """Return tasks matching every provided filter, oldest first."""
        clauses: list[str] = []
        params: list[str] = []
        for column, value in (
            ("assigned_to", assignee_id),
            ("department_id", department_id),
            ("requester_id", requester_id),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM Tasks {where} ORDER BY created_at ASC, id ASC;",
                tuple(params),
            )
            return [_row_to_task(row) for row in cursor.fetchall()]

    def update_task(self, task_id: str, **fields: Any) -> None:
        """Apply a partial update; unknown task ids raise TaskNotFoundError."""
        unknown = set(fields) - set(_TASK_UPDATE_COLUMNS)
        if unknown:
            raise ValueError(f"Unsupported task fields: {sorted(unknown)}")
        if not fields:
            return
        assignments = ", ".join(f"{_TASK_UPDATE_COLUMNS[name]} = ?" for name in fields)
        params = [_serialize(value) for value in fields.values()]
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE Tasks SET {assignments} WHERE id = ?;",
                (*params, task_id),
            )
            updated = cursor.rowcount
        if updated == 0:
            raise TaskNotFoundError(f"Task {task_id} not found")
        self._notify(TASKS)

    def delete_task(self, task_id: str) -> bool:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Tasks WHERE id = ?;", (task_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            self._notify(TASKS)
        return deleted

    # --- guest requests ---

    def create_guest_request(self, request: GuestRequest) -> GuestRequest:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO GuestRequests (
                    id,
                    title,
                    room_number,
                    department_id,
                    guest_name,
                    status,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    request.request_id,
                    request.title,
                    request.room_number,
                    request.department_id,
                    request.guest_name,
                    request.status,
                    to_timestamp(request.created_at),
                ),
            )
        self._notify(GUEST_REQUESTS)
        return request

    def get_guest_request(self, request_id: str) -> Optional[GuestRequest]:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM GuestRequests WHERE id = ?;", (request_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_guest_request(row)

    def list_guest_requests(self, status: Optional[str] = None) -> list[GuestRequest]:
        with self._session() as conn:
            cursor = conn.cursor()
            if status is None:
                cursor.execute("SELECT * FROM GuestRequests ORDER BY created_at ASC, id ASC;")
            else:
                cursor.execute(
                    """
                    SELECT * FROM GuestRequests
                    WHERE status = ?
                    ORDER BY created_at ASC, id ASC;
                    """,
                    (status,),
                )
            return [_row_to_guest_request(row) for row in cursor.fetchall()]

    def mark_guest_request_accepted(
        self,
        request_id: str,
        employee_id: str,
        accepted_at: datetime,
    ) -> bool:
        """Claim a guest request; returns False if it was already accepted."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE GuestRequests
                SET status = 'accepted', accepted_by = ?, accepted_at = ?, assigned_to = ?
                WHERE id = ? AND status != 'accepted';
                """,
                (employee_id, to_timestamp(accepted_at), employee_id, request_id),
            )
            claimed = cursor.rowcount > 0
        if claimed:
            self._notify(GUEST_REQUESTS)
        return claimed

    def release_guest_request(self, previous: GuestRequest, employee_id: str) -> bool:
        """Undo a claim made by `employee_id`, restoring the request as it was."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE GuestRequests
                SET status = ?, accepted_by = ?, accepted_at = ?, assigned_to = ?
                WHERE id = ? AND status = 'accepted' AND accepted_by = ?;
                """,
                (
                    previous.status,
                    previous.accepted_by,
                    to_timestamp(previous.accepted_at) if previous.accepted_at else None,
                    previous.assigned_to,
                    previous.request_id,
                    employee_id,
                ),
            )
            released = cursor.rowcount > 0
        if released:
            self._notify(GUEST_REQUESTS)
        return released

    # --- task assignment offers ---

    def save_offer(self, offer: TaskAssignment) -> None:
        """Write an offer under its (task, employee) key, replacing any prior record."""
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO TaskAssignments (task_id, employee_id, status, expires_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (task_id, employee_id)
                DO UPDATE SET status = excluded.status, expires_at = excluded.expires_at;
                """,
                (
                    offer.task_id,
                    offer.employee_id,
                    offer.status,
                    to_timestamp(offer.expires_at),
                ),
            )
        self._notify(TASK_ASSIGNMENTS)

    def get_offer(self, task_id: str, employee_id: str) -> Optional[TaskAssignment]:
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT task_id, employee_id, status, expires_at
                FROM TaskAssignments
                WHERE task_id = ? AND employee_id = ?;
                """,
                (task_id, employee_id),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_offer(row)

    def list_offers(
        self,
        task_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[TaskAssignment]:
        clauses: list[str] = []
        params: list[str] = []
        for column, value in (
            ("task_id", task_id),
            ("employee_id", employee_id),
            ("status", status),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT task_id, employee_id, status, expires_at
                FROM TaskAssignments {where}
                ORDER BY expires_at ASC, task_id ASC, employee_id ASC;
                """,
                tuple(params),
            )
            return [_row_to_offer(row) for row in cursor.fetchall()]

    def compare_and_set_offer_status(
        self,
        task_id: str,
        employee_id: str,
        *,
        expected_status: str,
        new_status: str,
    ) -> bool:
        """Atomically move an offer to `new_status` only if it is still `expected_status`."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE TaskAssignments
                SET status = ?
                WHERE task_id = ? AND employee_id = ? AND status = ?;
                """,
                (new_status, task_id, employee_id, expected_status),
            )
            swapped = cursor.rowcount > 0
        if swapped:
            self._notify(TASK_ASSIGNMENTS)
        return swapped

    def supersede_pending_offers(self, task_id: str) -> int:
        """Reject every still-pending offer of a task; returns how many changed."""
        with self._session() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE TaskAssignments
                SET status = 'rejected'
                WHERE task_id = ? AND status = 'pending';
                """,
                (task_id,),
            )
            superseded = cursor.rowcount
        if superseded:
            self._notify(TASK_ASSIGNMENTS)
        return superseded

    # --- status history ---

    def append_status_history(self, entry: StatusHistoryEntry) -> None:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO TaskStatusHistory (id, task_id, employee_id, status, timestamp)
                VALUES (?, ?, ?, ?, ?);
                """,
                (
                    entry.entry_id,
                    entry.task_id,
                    entry.employee_id,
                    entry.status,
                    to_timestamp(entry.timestamp),
                ),
            )
        self._notify(TASK_STATUS_HISTORY)

    def list_status_history(self, task_id: Optional[str] = None) -> list[StatusHistoryEntry]:
        """Return history entries newest first."""
        with self._session() as conn:
            cursor = conn.cursor()
            if task_id is None:
                cursor.execute(
                    "SELECT * FROM TaskStatusHistory ORDER BY timestamp DESC, id ASC;"
                )
            else:
                cursor.execute(
                    """
                    SELECT * FROM TaskStatusHistory
                    WHERE task_id = ?
                    ORDER BY timestamp DESC, id ASC;
                    """,
                    (task_id,),
                )
            return [_row_to_history(row) for row in cursor.fetchall()]
