"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

import random
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from guestdesk.controllers.department_controller import router as department_router
from guestdesk.controllers.guest_request_controller import router as guest_request_router
from guestdesk.controllers.task_controller import router as task_router
from guestdesk.repository.data_repository import DataRepository
from guestdesk.services.assignment_service import AssignmentLifecycleService
from guestdesk.services.history_service import StatusHistoryRecorder
from guestdesk.services.task_query_service import TaskQueryService
from guestdesk.services.workload_service import WorkloadInspector
from guestdesk.utils.clock import Clock, SystemClock
from guestdesk.utils.config import Settings, get_settings
from guestdesk.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service shares one repository and one clock; all of them are
    reachable from app.state for dependency resolution.
    """
    settings = settings or get_settings()
    clock = clock or SystemClock()

    # --- Repository (single SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services (business logic, no direct DB access) ---
    workload_inspector = WorkloadInspector(repository=repository, settings=settings)
    history_recorder = StatusHistoryRecorder(repository=repository, settings=settings)
    assignment_service = AssignmentLifecycleService(
        repository=repository,
        settings=settings,
        workload_inspector=workload_inspector,
        history_recorder=history_recorder,
        clock=clock,
        rng=rng,
    )
    query_service = TaskQueryService(repository=repository, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(task_router)
    app.include_router(guest_request_router)
    app.include_router(department_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.clock = clock
    app.state.repository = repository
    app.state.workload_inspector = workload_inspector
    app.state.history_recorder = history_recorder
    app.state.assignment_service = assignment_service
    app.state.query_service = query_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before the demo roster is seeded.
    """
    repository: DataRepository = app.state.repository
    settings: Settings = app.state.settings
    clock: Clock = app.state.clock

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo roster (skipped if departments exist)")
        repository.seed_demo_data(now=clock.now())

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
