"""Diagnostic sinks for the recovery pipeline.

Pipeline stages report what they removed or repaired as `(level, event, fields)`
triples instead of calling a logger directly. Callers pass a sink to capture
them; when none is given they go to the standard `logging` module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

DiagnosticSink = Callable[[int, str, Dict[str, Any]], None]


def logging_sink(level: int, event: str, fields: Dict[str, Any]) -> None:
    """Default sink: one log line per event, fields rendered as key=value."""
    rendered = " ".join(f"{k}={v!r}" for k, v in fields.items())
    logging.log(level, "%s %s", event, rendered)


def emit(sink: Optional[DiagnosticSink], level: int, event: str, **fields: Any) -> None:
    (sink or logging_sink)(level, event, fields)


@dataclass
class DiagnosticEvent:
    level: int
    event: str
    fields: Dict[str, Any]


@dataclass
class DiagnosticRecorder:
    """In-memory sink. Optionally forwards every event to `logging` as well."""

    forward_to_logging: bool = False
    events: List[DiagnosticEvent] = field(default_factory=list)

    def __call__(self, level: int, event: str, fields: Dict[str, Any]) -> None:
        self.events.append(DiagnosticEvent(level=level, event=event, fields=dict(fields)))
        if self.forward_to_logging:
            logging_sink(level, event, fields)

    def names(self) -> List[str]:
        return [e.event for e in self.events]

    def find(self, event: str) -> List[DiagnosticEvent]:
        return [e for e in self.events if e.event == event]

    def clear(self) -> None:
        self.events.clear()
