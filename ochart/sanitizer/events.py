"""
Diagnostic event sink for the sanitizer.

The pipeline never writes to a global channel: callers inject an observer
``on_event(level, message, payload)``. The default observer forwards to the
standard logging module; EventRecorder keeps events in memory for dashboards
and tests.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging

from ochart.sanitizer.schemas import Severity

LOG = logging.getLogger(__name__)

EventCallback = Callable[[str, str, Dict[str, Any]], None]

_LOG_LEVELS = {
    Severity.INFO.value: logging.INFO,
    Severity.WARNING.value: logging.WARNING,
    Severity.ERROR.value: logging.ERROR,
}


def log_event(level: str, message: str, payload: Dict[str, Any]) -> None:
    """Default observer: forward the event to the module logger"""
    LOG.log(_LOG_LEVELS.get(level, logging.INFO), f"{message} | {payload}")


@dataclass
class SanitizerEvent:
    """Event captured by EventRecorder"""
    level: str
    message: str
    payload: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventRecorder:
    """Observer that buffers events in memory (bounded)"""

    def __init__(self, max_events: Optional[int] = 500):
        self.max_events = max_events
        self.events: List[SanitizerEvent] = []

    def __call__(self, level: str, message: str, payload: Dict[str, Any]) -> None:
        self.events.append(SanitizerEvent(level, message, payload))
        if self.max_events is not None and len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]

    def levels(self) -> List[str]:
        return [event.level for event in self.events]

    def clear(self) -> None:
        self.events.clear()
