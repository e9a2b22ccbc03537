"""
main.py: Server launcher and entry point.

    python main.py

Host, port and reload come from API_HOST, API_PORT and SERVER_RELOAD.
Set OPEN_DOCS_ON_START=1 to open the interactive docs in a browser once the
server is up; by default the launcher only serves the API.

See app.py for the FastAPI application, service wiring, and startup sequence.
"""

from __future__ import annotations

import threading
import time
import webbrowser
from typing import Any, Optional

import uvicorn

from guestdesk.utils.config import Settings, get_settings
from guestdesk.utils.logger import get_logger


logger = get_logger(__name__)


def docs_url(settings: Settings) -> str:
    return f"http://{settings.api_host}:{settings.api_port}/docs"


def uvicorn_options(settings: Settings) -> dict[str, Any]:
    return {
        "host": settings.api_host,
        "port": settings.api_port,
        "reload": settings.server_reload,
        "log_level": settings.log_level.lower(),
    }


def _open_docs_after_startup(url: str, delay_seconds: float = 2.0) -> None:
    time.sleep(delay_seconds)
    logger.info("Opening API docs | url=%s", url)
    webbrowser.open(url)


def main(settings: Optional[Settings] = None) -> None:
    """Start the Guest Desk API server."""
    settings = settings or get_settings()
    logger.info(
        "Starting %s | version=%s | url=http://%s:%s | reload=%s",
        settings.app_name,
        settings.app_version,
        settings.api_host,
        settings.api_port,
        settings.server_reload,
    )

    if settings.open_docs_on_start:
        threading.Thread(
            target=_open_docs_after_startup,
            args=(docs_url(settings),),
            daemon=True,
        ).start()

    # Blocks until CTRL+C
    uvicorn.run("app:app", **uvicorn_options(settings))


if __name__ == "__main__":
    main()
