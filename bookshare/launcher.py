"""
Desktop entrypoint: starts the API in a child process, waits until it
answers its health check, then shows the client in a desktop window
(or the system browser when LAUNCHER_OPEN_BROWSER is set).
"""
import logging
import subprocess
import sys
import time
import webbrowser
from typing import Callable

import httpx
import webview

from bookshare.core.config import Settings
from bookshare.main import configure_logging

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.25
WINDOW_TITLE = "مشاركة الكتب الإلكترونية"
WINDOW_SIZE = (1400, 900)
WINDOW_MIN_SIZE = (1000, 700)


def server_command(settings: Settings) -> list[str]:
    return [
        sys.executable,
        "-m",
        "uvicorn",
        "bookshare.main:app",
        "--host",
        settings.host,
        "--port",
        str(settings.port),
        "--log-level",
        settings.log_level.lower(),
    ]


def start_server(settings: Settings) -> subprocess.Popen:
    cmd = server_command(settings)
    logger.info("Starting API: %s", " ".join(cmd))
    return subprocess.Popen(cmd)


def wait_until_ready(
    url: str,
    timeout: float,
    process: subprocess.Popen | None = None,
    get: Callable[..., httpx.Response] = httpx.get,
) -> bool:
    """
    Poll `url` until it returns 200. Gives up early if the child exits.
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if process is not None and process.poll() is not None:
            logger.error("API process exited with code %s before becoming ready", process.returncode)
            return False
        try:
            response = get(url, timeout=POLL_INTERVAL * 4)
            if response.status_code == 200:
                return True
            logger.debug("Health check returned %s", response.status_code)
        except httpx.HTTPError:
            pass
        time.sleep(POLL_INTERVAL)
    return False


def stop_server(process: subprocess.Popen, grace: float = 5.0) -> None:
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        logger.warning("API did not stop within %.0fs, killing it", grace)
        process.kill()
        process.wait()


def open_window(url: str) -> None:
    """Show the client in a native window; returns once the window is closed."""
    width, height = WINDOW_SIZE
    webview.create_window(WINDOW_TITLE, url, width=width, height=height, min_size=WINDOW_MIN_SIZE)
    webview.start()


def main() -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    process = start_server(settings)
    health_url = f"{settings.base_url}/health"
    if not wait_until_ready(health_url, settings.launcher_ready_timeout, process):
        logger.error(
            "API not ready at %s after %.0fs; check that the database and upload "
            "directory are writable and the port is free.",
            health_url,
            settings.launcher_ready_timeout,
        )
        stop_server(process)
        return 1

    logger.info("Bookshare available at %s", settings.base_url)
    if settings.launcher_open_browser:
        webbrowser.open(settings.base_url)
        try:
            return process.wait()
        except KeyboardInterrupt:
            logger.info("Shutting down")
            stop_server(process)
            return 0

    try:
        open_window(settings.base_url)
    finally:
        logger.info("Window closed, stopping API")
        stop_server(process)
    return 0


if __name__ == "__main__":
    sys.exit(main())
