"""Command-line entry point for Claude Chat.

Two layouts are supported, chosen by RUN_MODE:

- ``integrated`` (default): one uvicorn server on PORT serving the relay API
  under ``/api`` and the NiceGUI chat page at ``/``.
- ``separate``: the relay API on PORT and the chat page on UI_PORT, each in
  its own process; the page reaches the relay through API_BASE_URL.
"""

import asyncio
import logging
import os
import subprocess
import sys

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _host() -> str:
    return os.getenv("HOST", "0.0.0.0")


def _api_port() -> int:
    return int(os.getenv("PORT", "8000"))


def run_integrated() -> None:
    """Serve the relay API and the chat page from one process."""
    import uvicorn
    from nicegui import ui

    from claude_chat.api.app import create_app
    from claude_chat.ui.chat_page import chat_page  # noqa: F401 - Registers the page
    from claude_chat.ui.config import get_client_config

    app = create_app()
    ui.run_with(
        app,
        title="Claude Chat",
        favicon="✨",
        storage_secret=get_client_config().storage_secret,
    )

    port = _api_port()
    logger.info(f"Chat page on http://localhost:{port}/, relay under /api")
    uvicorn.run(
        app,
        host=_host(),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def _spawn(args: list[str], env: dict[str, str]) -> subprocess.Popen:
    return subprocess.Popen([sys.executable, *args], env=env)


async def _supervise(processes: list[subprocess.Popen]) -> None:
    """Wait until any child exits, then stop the others."""
    try:
        while all(proc.poll() is None for proc in processes):
            await asyncio.sleep(1)
        exited = [proc.args for proc in processes if proc.poll() is not None]
        logger.warning(f"Child process exited: {exited}")
    finally:
        for proc in processes:
            if proc.poll() is None:
                proc.terminate()
        for proc in processes:
            proc.wait()


def run_separate() -> None:
    """Run the relay API and the chat page as two child processes."""
    port = _api_port()
    ui_port = os.getenv("UI_PORT", "8080")
    env = {
        **os.environ,
        "API_BASE_URL": os.getenv("API_BASE_URL", f"http://localhost:{port}"),
        "UI_PORT": ui_port,
    }

    logger.info(f"Relay API on http://localhost:{port}, chat page on http://localhost:{ui_port}")
    processes = [
        _spawn(
            ["-m", "uvicorn", "claude_chat.api.app:app", "--host", _host(), "--port", str(port)],
            env,
        ),
        _spawn(["-c", "from claude_chat.ui.chat_page import main; main()"], env),
    ]
    try:
        asyncio.run(_supervise(processes))
    except KeyboardInterrupt:
        logger.info("Shutting down")


def main() -> None:
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting Claude Chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
