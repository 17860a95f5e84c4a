"""
Append-only history of past classifications.

Both stores keep records in insertion order and hand them out newest first
(by event time, later insertion first on ties). One lock per store guards
every mutation and the copy taken by readers, so a reader never sees a
half-applied append.

Stores are plain objects; the application creates one of each at startup and
keeps them for the life of the process (see securescan.api.server).
"""

import logging
import threading
from typing import Iterable, List, Optional

from securescan.schemas.scan_schemas import ScanRecord, SmsRecord

logger = logging.getLogger(__name__)


class ScanHistoryStore:
    """History of URL classifications. Records are immutable and shared as-is."""

    def __init__(self):
        self._records: List[ScanRecord] = []
        self._lock = threading.Lock()

    def append(self, record: ScanRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list(self) -> List[ScanRecord]:
        """All records, most recent scan_date first."""
        with self._lock:
            records = list(self._records)
        # reverse first so the stable sort puts later insertions first on ties
        return sorted(reversed(records), key=lambda r: r.scan_date, reverse=True)

    def recent(self, limit: int) -> List[ScanRecord]:
        return self.list()[:limit]

    def clear(self) -> int:
        """Drop everything. Returns how many records were removed."""
        with self._lock:
            count = len(self._records)
            self._records.clear()
        logger.info(f"Scan history cleared ({count} records)")
        return count

    def snapshot(self) -> List[ScanRecord]:
        """Records in insertion order, for persistence."""
        with self._lock:
            return list(self._records)

    def restore(self, records: Iterable[ScanRecord]) -> None:
        """Replace the contents; `records` is taken as insertion order."""
        with self._lock:
            self._records = list(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class MessageHistoryStore:
    """
    History of SMS classifications.

    Readers get copies; the only way to change a stored record is
    mark_reported().

    Limitation: mark_reported() finds records by (sender, content) equality,
    not by identity. Two messages with the same sender and content cannot be
    told apart and only the first stored one is ever updated.
    """

    def __init__(self):
        self._records: List[SmsRecord] = []
        self._lock = threading.Lock()

    def append(self, record: SmsRecord) -> None:
        with self._lock:
            self._records.append(record.model_copy())

    def list(self) -> List[SmsRecord]:
        """All records, most recent received_date first."""
        with self._lock:
            records = [r.model_copy() for r in self._records]
        return sorted(reversed(records), key=lambda r: r.received_date, reverse=True)

    def recent(self, limit: int) -> List[SmsRecord]:
        return self.list()[:limit]

    def mark_reported(self, sender: str, content: str) -> bool:
        """
        Flag the first stored message with exactly this sender and content.

        Returns:
            True if a message was found (even if it was already reported),
            False if none matched; nothing is modified in that case.
        """
        return self.mark_reported_record(sender, content) is not None

    def mark_reported_record(self, sender: str, content: str) -> Optional[SmsRecord]:
        """Like mark_reported(), but returns a copy of the flagged record (or None)."""
        with self._lock:
            match = self._find_first(sender, content)
            if match is None:
                return None
            match.is_reported = True
            marked = match.model_copy()
        logger.info(f"Message from {sender!r} marked as reported")
        return marked

    def find(self, sender: str, content: str) -> Optional[SmsRecord]:
        """Copy of the first stored message with this sender and content."""
        with self._lock:
            match = self._find_first(sender, content)
            return match.model_copy() if match is not None else None

    def clear(self) -> int:
        with self._lock:
            count = len(self._records)
            self._records.clear()
        logger.info(f"Message history cleared ({count} records)")
        return count

    def snapshot(self) -> List[SmsRecord]:
        with self._lock:
            return [r.model_copy() for r in self._records]

    def restore(self, records: Iterable[SmsRecord]) -> None:
        with self._lock:
            self._records = [r.model_copy() for r in records]

    def _find_first(self, sender: str, content: str) -> Optional[SmsRecord]:
        for record in self._records:
            if record.sender == sender and record.content == content:
                return record
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
