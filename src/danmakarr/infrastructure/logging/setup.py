"""structlog over stdlib logging, emitted to stderr from a background thread.

stdout is reserved for the CLI's comment output.
"""

from __future__ import annotations

import atexit
import copy
import logging
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any

import structlog

from danmakarr.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Libraries that log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def _stamp_foreign_record(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    # Foreign records are formatted on the listener thread; use creation time.
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _common_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]


def build_processor_formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    """Render structlog events and plain stdlib records the same way."""
    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer()
        if config.log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[_stamp_foreign_record, *_common_processors()],
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


class _DictKeepingQueueHandler(QueueHandler):
    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # The base class flattens record.msg to a string; ProcessorFormatter
        # needs the structlog event dict.
        return copy.copy(record)


class _LogPump:
    """Owns the QueueListener; reconfiguring replaces the running one."""

    def __init__(self) -> None:
        self._listener: QueueListener | None = None

    def start(self, handler: logging.Handler) -> QueueHandler:
        self.stop()
        records: queue.Queue[logging.LogRecord] = queue.Queue()
        self._listener = QueueListener(records, handler, respect_handler_level=True)
        self._listener.start()
        return _DictKeepingQueueHandler(records)

    def stop(self) -> None:
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.stop()


_PUMP = _LogPump()
atexit.register(_PUMP.stop)


def configure_logging(config: AppConfig) -> None:
    """Configure structlog and route every stdlib record through the pump."""
    structlog.configure(
        processors=[
            *_common_processors(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    stderr = logging.StreamHandler(stream=sys.stderr)
    stderr.setFormatter(build_processor_formatter(config))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_PUMP.start(stderr))
    root.setLevel(config.log_level)

    quiet = max(logging.WARNING, logging.getLevelName(config.log_level))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)

    log.debug("logging_configured", log_format=config.log_format, log_level=config.log_level)
