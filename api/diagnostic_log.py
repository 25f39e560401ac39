"""
Bounded diagnostic event log.

Entries are kept in a ring buffer: once capacity is reached every append
evicts the oldest entry, so memory stays bounded however long the monitor
runs.
"""
import itertools
import logging
from collections import deque
from typing import Dict, List, Optional, Union
from config import LOG_CAPACITY
from models import LogEntry, Severity, utc_now

logger = logging.getLogger(__name__)

# Python logging level each diagnostic severity is mirrored at
_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

class DiagnosticLog:
    """Append-only ring buffer of classified events."""

    def __init__(self, capacity: int = LOG_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Log capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries = deque(maxlen=capacity)
        self._ids = itertools.count(1)

    def append(self, message: str, severity: Union[Severity, str] = Severity.INFO) -> LogEntry:
        """
        Record an event.

        Args:
            message: Human-readable description
            severity: One of info, success, warning, error

        Returns:
            The appended entry
        """
        severity = Severity(severity)
        entry = LogEntry(
            id=next(self._ids),
            message=message,
            severity=severity,
            emitted_at=utc_now()
        )
        self._entries.append(entry)
        logger.log(_LOG_LEVELS[severity], message, extra={"severity": severity.value})
        return entry

    def list(self, severity: Optional[Union[Severity, str]] = None) -> List[LogEntry]:
        """Entries in insertion order, optionally restricted to one severity."""
        if severity is None:
            return list(self._entries)
        severity = Severity(severity)
        return [entry for entry in self._entries if entry.severity is severity]

    def clear(self) -> None:
        self._entries.clear()

    def counts(self) -> Dict[str, int]:
        """Number of buffered entries per severity."""
        counts = {s.value: 0 for s in Severity}
        for entry in self._entries:
            counts[entry.severity.value] += 1
        return counts

    def __len__(self) -> int:
        return len(self._entries)
