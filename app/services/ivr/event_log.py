"""Append-only event log for call observability."""
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class LogKind(str, Enum):
    """Kinds of event log entries."""

    SYSTEM = "system"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DIGIT_INPUT = "digit-input"

    def __str__(self) -> str:
        return self.value


_LOG_LEVELS = {
    LogKind.ERROR: logging.ERROR,
    LogKind.WARNING: logging.WARNING,
}


class LogEntry(BaseModel):
    """A single event log entry."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    kind: LogKind
    message: str


class EventLog:
    """Insertion-ordered log of call events.

    Entries are never reordered or deduplicated. The log is only emptied
    when an ended call resets to idle.
    """

    def __init__(self):
        self._entries: List[LogEntry] = []

    def append(self, kind: LogKind, message: str) -> LogEntry:
        """Append an entry and mirror it to the application logger."""
        entry = LogEntry(kind=kind, message=message)
        self._entries.append(entry)
        logger.log(
            _LOG_LEVELS.get(kind, logging.INFO),
            f"[IVR] {kind.value}: {message}",
        )
        return entry

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def entries(self) -> List[LogEntry]:
        """Return a copy of the entries in insertion order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
