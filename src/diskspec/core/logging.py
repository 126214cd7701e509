"""
diskspec structured logging.

Every pipeline stage and install step is bracketed by ``stage started`` and
``stage completed``/``stage failed`` events, so a log shows which operation
token broke a plan and how far the run got.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from diskspec.core.errors import DiskSpecError

if TYPE_CHECKING:
    from diskspec.core.config import LoggingConfig

LOG_FILE_NAME = "diskspec.log"
SECRET_KEYS = ("password", "passphrase", "pass")

_configured = False


def redact_secrets(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask passphrases that end up in an event."""
    for key in SECRET_KEYS:
        if event_dict.get(key):
            event_dict[key] = "***"
    return event_dict


def _handlers(config: LoggingConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if config.console_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(config.level)
        handlers.append(console)

    if config.file_enabled:
        config.log_directory.mkdir(parents=True, exist_ok=True)
        # The file always receives debug events.
        file_handler = logging.FileHandler(
            config.log_directory / LOG_FILE_NAME, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    return handlers or [logging.NullHandler()]


def setup_logging(config: LoggingConfig) -> None:
    """Route structlog through stdlib logging, once per process."""
    global _configured

    if _configured:
        return

    logging.basicConfig(level=logging.DEBUG, handlers=_handlers(config), format="%(message)s")

    processors: list[Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]
    if config.json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name or "diskspec")


class OperationLogger:
    """
    Context manager logging one pipeline stage or install step.

    Extra keyword context (token count, disk names, hostname) is attached to
    all three events. When the stage fails with a diskspec error that names
    an operation, the failed event carries that operation kind and token.
    """

    def __init__(
        self,
        stage: str,
        logger: structlog.stdlib.BoundLogger | None = None,
        **context: Any,
    ) -> None:
        self.stage = stage
        self.logger = logger or get_logger()
        self.context = context
        self._started = 0.0

    def __enter__(self) -> OperationLogger:
        self._started = time.monotonic()
        self.logger.info("stage started", stage=self.stage, **self.context)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        elapsed_ms = round((time.monotonic() - self._started) * 1000, 3)

        if exc_val is None:
            self.logger.info(
                "stage completed", stage=self.stage, elapsed_ms=elapsed_ms, **self.context
            )
            return

        failure: dict[str, Any] = {"error_type": type(exc_val).__name__, "error": str(exc_val)}
        if isinstance(exc_val, DiskSpecError) and exc_val.operation is not None:
            failure["operation"] = exc_val.operation
            failure["token"] = exc_val.source
        self.logger.error(
            "stage failed", stage=self.stage, elapsed_ms=elapsed_ms, **failure, **self.context
        )
