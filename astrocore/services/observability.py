"""Structured diagnostics for the computation core.

The engines never print. They report intermediate values to a tracer that
the caller passes in, so the core stays a function of its inputs and tests
can assert on what was reported.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger("astrocore.trace")


class Tracer(Protocol):
    def event(self, name: str, **fields: Any) -> None: ...

    def warning(self, name: str, **fields: Any) -> None: ...

    def error(self, name: str, **fields: Any) -> None: ...


class LoggingTracer:
    """Default tracer: one log record per event, fields passed via ``extra``."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.DEBUG) -> None:
        self._log = log or logger
        self._level = level

    def event(self, name: str, **fields: Any) -> None:
        self._log.log(self._level, name, extra={"trace": fields})

    def warning(self, name: str, **fields: Any) -> None:
        self._log.warning(name, extra={"trace": fields})

    def error(self, name: str, **fields: Any) -> None:
        self._log.error(name, extra={"trace": fields})


class RecordingTracer:
    """Keeps every event in memory. Used by tests and the debug payload."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: List[Tuple[str, str, Dict[str, Any]]] = []

    def _add(self, level: str, name: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            self.records.append((level, name, fields))

    def event(self, name: str, **fields: Any) -> None:
        self._add("event", name, fields)

    def warning(self, name: str, **fields: Any) -> None:
        self._add("warning", name, fields)

    def error(self, name: str, **fields: Any) -> None:
        self._add("error", name, fields)

    def names(self, level: Optional[str] = None) -> List[str]:
        return [name for lvl, name, _ in self.records if level is None or lvl == level]


class TeeTracer:
    """Forwards every event to each wrapped tracer in turn."""

    def __init__(self, *tracers: Tracer) -> None:
        self._tracers = tracers

    def event(self, name: str, **fields: Any) -> None:
        for tracer in self._tracers:
            tracer.event(name, **fields)

    def warning(self, name: str, **fields: Any) -> None:
        for tracer in self._tracers:
            tracer.warning(name, **fields)

    def error(self, name: str, **fields: Any) -> None:
        for tracer in self._tracers:
            tracer.error(name, **fields)


def default_tracer() -> Tracer:
    return LoggingTracer()


__all__ = ["LoggingTracer", "RecordingTracer", "TeeTracer", "Tracer", "default_tracer"]
