"""Root logger wiring.

Records from every logger go to a single ``QueueHandler`` on the root
logger. A ``QueueListener`` thread drains the queue into the console and
(optionally) a rotating file, so request handlers never wait on log I/O.
The contextvars filter sits on the queue handler: it must run in the
emitting task, where ``request_id`` is visible.
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from .context import ContextInjectingFilter
from .formatters import JSONFormatter

if TYPE_CHECKING:
    from flag_engine.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

_listener: QueueListener | None = None
_LOGGING_INITIALIZED = False


def shutdown() -> None:
    """Flush queued records and stop the listener thread."""
    global _listener, _LOGGING_INITIALIZED
    if _listener is not None:
        _listener.stop()
        _listener = None
    _LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **overrides: Any,
) -> None:
    """Configure logging once per process.

    Later calls are no-ops unless ``force`` is set, so the app factory, the
    lifespan and test fixtures can all call it.

    Args:
        log_settings: Settings to apply; loaded from the environment when None.
        force: Reconfigure even if already initialized.
        **overrides: Keyword arguments that win over ``log_settings``.
    """
    global _LOGGING_INITIALIZED
    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from flag_engine.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(**{**log_settings.to_logging_kwargs(), **overrides})
    _LOGGING_INITIALIZED = True


def _formatter(json_logs: bool, service_name: str) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(static={"service": service_name})
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(
    log_level: str = "INFO",
    service_name: str = "feature-flag-engine",
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
) -> None:
    """Replace the root logger's handlers with the queue pipeline.

    Args:
        log_level: Root level name.
        service_name: ``service`` field stamped on JSON records.
        file_path: Rotating log file; None disables file output.
        json_logs: JSON Lines when True, plain text otherwise.
        console_enabled: Write to stderr.
        include_context: Copy the contextvars log context onto records.
        capture_warnings: Route ``warnings`` through logging.
        file_max_bytes: Rotation threshold.
        file_backup_count: Rotated files kept.
    """
    global _listener
    shutdown()
    logging.captureWarnings(capture_warnings)

    # uvicorn installs its own handlers; strip them so its records flow through root
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "root": {"level": log_level.upper(), "handlers": []},
            "loggers": {
                name: {"handlers": [], "propagate": True}
                for name in ("uvicorn", "uvicorn.access", "uvicorn.error")
            },
        }
    )

    formatter = _formatter(json_logs, service_name)
    sinks: list[logging.Handler] = []
    if console_enabled:
        sinks.append(logging.StreamHandler())
    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(
            RotatingFileHandler(
                path,
                maxBytes=file_max_bytes,
                backupCount=file_backup_count,
                encoding="utf-8",
            )
        )
    for sink in sinks:
        sink.setFormatter(formatter)

    queue: Queue[logging.LogRecord] = Queue()
    if sinks:
        _listener = QueueListener(queue, *sinks, respect_handler_level=True)
        _listener.start()
        atexit.register(shutdown)

    queue_handler = QueueHandler(queue)
    if include_context:
        queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(queue_handler)

    logger.debug(
        "Logging configured",
        extra={"log_level": log_level, "json_logs": json_logs, "file_path": str(file_path or "")},
    )
