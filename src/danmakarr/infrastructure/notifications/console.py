"""Default NotifierPort: short user-facing messages on stderr."""

from __future__ import annotations

import sys
from typing import TextIO

import structlog

log = structlog.get_logger(__name__)


class ConsoleNotifier:
    def __init__(self, stream: TextIO | None = None, prefix: str = "[danmakarr] ") -> None:
        self._stream = stream
        self._prefix = prefix

    def notify(self, message: str) -> None:
        stream = self._stream or sys.stderr
        print(f"{self._prefix}{message}", file=stream, flush=True)
        log.debug("host_notified", message=message)
