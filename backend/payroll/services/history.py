"""
Calculation History Service
Session-scoped, append-only log of net pay calculations.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from django.utils import timezone
import threading
import logging

from .calculator import CalculationResult

logger = logging.getLogger('payroll')


class HistoryEntryNotFound(LookupError):
    """Raised when no history entry has the requested sequence number."""


@dataclass(frozen=True)
class HistoryEntry:
    """A calculation result stamped when it was added to the history."""
    result: CalculationResult
    created_at: datetime
    sequence: int  # 1-based append order ("Calculation #n")


class HistoryLedger:
    """
    In-memory history of calculation results.

    Entries are kept in insertion order and listed most recent first.
    Entries are never modified or removed. The ledger lives as long as
    the process that owns it; nothing is persisted.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize an empty ledger.

        Args:
            clock: Callable returning the current time. Defaults to timezone.now.
        """
        self._clock = clock or timezone.now
        self._entries: List[HistoryEntry] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, result: CalculationResult) -> HistoryEntry:
        """
        Stamp a result with the current time and add it to the history.

        created_at never goes backwards, even if the clock does.
        """
        with self._lock:
            created_at = self._clock()
            if self._entries and created_at < self._entries[-1].created_at:
                created_at = self._entries[-1].created_at

            entry = HistoryEntry(
                result=result,
                created_at=created_at,
                sequence=len(self._entries) + 1,
            )
            self._entries.append(entry)

        logger.debug(f"History: appended #{entry.sequence} at {created_at.isoformat()}")
        return entry

    def list(self) -> Tuple[HistoryEntry, ...]:
        """Return a snapshot of all entries, most recent first."""
        with self._lock:
            return tuple(reversed(self._entries))

    def get(self, sequence: int) -> HistoryEntry:
        """Return the entry with the given sequence number."""
        with self._lock:
            if 1 <= sequence <= len(self._entries):
                return self._entries[sequence - 1]

        raise HistoryEntryNotFound(f"No calculation #{sequence} in history")
