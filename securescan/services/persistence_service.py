"""
History persistence.

Records are encoded as JSON lists (pydantic TypeAdapter) and stored as opaque
blobs in a small key-value table, one row per history kind.
"""

import logging
import threading
from typing import Callable, List

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from securescan.models.history import HistorySnapshot
from securescan.schemas.scan_schemas import ScanRecord, SmsRecord
from securescan.services.history_service import MessageHistoryStore, ScanHistoryStore

logger = logging.getLogger(__name__)

SCANS_KEY = "scans"
MESSAGES_KEY = "messages"

_scan_list = TypeAdapter(List[ScanRecord])
_sms_list = TypeAdapter(List[SmsRecord])


def dump_scan_records(records: List[ScanRecord]) -> bytes:
    return _scan_list.dump_json(records)


def load_scan_records(blob: bytes) -> List[ScanRecord]:
    return _scan_list.validate_json(blob)


def dump_sms_records(records: List[SmsRecord]) -> bytes:
    return _sms_list.dump_json(records)


def load_sms_records(blob: bytes) -> List[SmsRecord]:
    return _sms_list.validate_json(blob)


class HistoryRepository:
    """
    Saves and restores history stores through a SQLAlchemy session factory.

    Usage:
        repo = HistoryRepository(SessionLocal)
        repo.load_scans(scan_history)
        ...
        repo.save_scans(scan_history)
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        # Held from snapshot to commit so an older copy never lands after a newer one
        self._save_locks = {SCANS_KEY: threading.Lock(), MESSAGES_KEY: threading.Lock()}

    def _read(self, key: str):
        db = self._session_factory()
        try:
            row = db.get(HistorySnapshot, key)
            return row.payload if row is not None else None
        finally:
            db.close()

    def _write(self, key: str, payload: bytes) -> None:
        db = self._session_factory()
        try:
            row = db.get(HistorySnapshot, key)
            if row is None:
                db.add(HistorySnapshot(key=key, payload=payload))
            else:
                row.payload = payload
            db.commit()
        finally:
            db.close()

    def save_scans(self, store: ScanHistoryStore) -> None:
        with self._save_locks[SCANS_KEY]:
            self._write(SCANS_KEY, dump_scan_records(store.snapshot()))

    def save_messages(self, store: MessageHistoryStore) -> None:
        with self._save_locks[MESSAGES_KEY]:
            self._write(MESSAGES_KEY, dump_sms_records(store.snapshot()))

    def load_scans(self, store: ScanHistoryStore) -> int:
        """Restore `store` from the saved blob. Returns the number of records loaded."""
        blob = self._read(SCANS_KEY)
        if blob is None:
            return 0
        try:
            records = load_scan_records(blob)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable scan history: {e}")
            return 0
        store.restore(records)
        return len(records)

    def load_messages(self, store: MessageHistoryStore) -> int:
        blob = self._read(MESSAGES_KEY)
        if blob is None:
            return 0
        try:
            records = load_sms_records(blob)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable message history: {e}")
            return 0
        store.restore(records)
        return len(records)
