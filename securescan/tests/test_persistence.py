"""Tests for history persistence."""

import threading
import time

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from securescan.api.security import rate_limiter
from securescan.api.server import create_app
from securescan.database import Base
from securescan.models.history import HistorySnapshot
from securescan.schemas.scan_schemas import Category, SourceType
from securescan.services.history_service import MessageHistoryStore, ScanHistoryStore
from securescan.services.link_service import classify_url
from securescan.services.persistence_service import (
    SCANS_KEY,
    HistoryRepository,
    dump_scan_records,
    dump_sms_records,
    load_scan_records,
    load_sms_records,
)
from securescan.services.sms_service import classify_sms


@pytest.fixture
def session_factory():
    """In-memory SQLite database shared across sessions."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def repository(session_factory):
    return HistoryRepository(session_factory)


class TestEncoding:
    """Blob encoding of record lists."""

    def test_scan_records_survive_encoding(self, fixed_clock):
        records = [
            classify_url("https://casino.example.com", SourceType.QR_CODE, clock=fixed_clock),
            classify_url("not a url", clock=fixed_clock),
        ]
        restored = load_scan_records(dump_scan_records(records))
        assert [r.model_dump() for r in restored] == [r.model_dump() for r in records]
        assert restored[0].source_type == SourceType.QR_CODE
        assert restored[0].category == Category.GAMBLING
        assert restored[0].scan_date.tzinfo is not None

    def test_sms_records_survive_encoding(self, fixed_clock, sample_scam_sms):
        record = classify_sms("Unknown", sample_scam_sms, clock=fixed_clock)
        record.is_reported = True
        restored = load_sms_records(dump_sms_records([record]))
        assert [r.model_dump() for r in restored] == [record.model_dump()]

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError):
            load_scan_records(b"not json")

    def test_inconsistent_record_rejected(self):
        blob = (
            b'[{"url": "https://x.example", "result_type": "safe", "category": "none", '
            b'"scan_date": "2024-05-01T12:00:00Z", "details": "", "is_phishing": true}]'
        )
        with pytest.raises(ValidationError):
            load_scan_records(blob)


class TestHistoryRepository:
    """Saving and restoring stores through the database."""

    def test_load_without_saved_data(self, repository):
        store = ScanHistoryStore()
        assert repository.load_scans(store) == 0
        assert len(store) == 0

    def test_scans_round_trip(self, repository, ticking_clock):
        store = ScanHistoryStore()
        store.append(classify_url("https://www.example.com", clock=ticking_clock))
        store.append(classify_url("https://rifle.example.com", clock=ticking_clock))
        repository.save_scans(store)

        restored = ScanHistoryStore()
        assert repository.load_scans(restored) == 2
        assert [r.model_dump() for r in restored.list()] == [r.model_dump() for r in store.list()]

    def test_messages_round_trip_keeps_reported_flag(self, repository, sample_scam_sms):
        store = MessageHistoryStore()
        store.append(classify_sms("Unknown", sample_scam_sms))
        store.mark_reported("Unknown", sample_scam_sms)
        repository.save_messages(store)

        restored = MessageHistoryStore()
        assert repository.load_messages(restored) == 1
        assert restored.list()[0].is_reported is True

    def test_save_overwrites(self, repository, session_factory):
        store = ScanHistoryStore()
        store.append(classify_url("https://www.example.com"))
        repository.save_scans(store)
        store.clear()
        repository.save_scans(store)

        db = session_factory()
        try:
            assert db.query(HistorySnapshot).count() == 1
        finally:
            db.close()

        restored = ScanHistoryStore()
        assert repository.load_scans(restored) == 0
        assert len(restored) == 0

    def test_corrupt_blob_is_discarded(self, repository, session_factory):
        db = session_factory()
        try:
            db.add(HistorySnapshot(key=SCANS_KEY, payload=b"\x00garbage"))
            db.commit()
        finally:
            db.close()

        store = ScanHistoryStore()
        store.append(classify_url("https://www.example.com"))
        assert repository.load_scans(store) == 0
        assert len(store) == 1


class SlowSnapshotStore(ScanHistoryStore):
    """Pauses after its first snapshot so a second save can start meanwhile."""

    def __init__(self):
        super().__init__()
        self.first_snapshot_taken = threading.Event()

    def snapshot(self):
        records = super().snapshot()
        if not self.first_snapshot_taken.is_set():
            self.first_snapshot_taken.set()
            time.sleep(0.3)
        return records


class TestConcurrentSaves:
    """Overlapping saves never persist an older copy over a newer one."""

    def test_later_save_wins(self, repository):
        store = SlowSnapshotStore()

        def first_request():
            store.append(classify_url("https://one.example"))
            repository.save_scans(store)

        def second_request():
            store.first_snapshot_taken.wait(timeout=5)
            store.append(classify_url("https://two.example"))
            repository.save_scans(store)

        threads = [threading.Thread(target=first_request), threading.Thread(target=second_request)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        restored = ScanHistoryStore()
        assert len(store) == 2
        assert repository.load_scans(restored) == 2


class TestAppPersistence:
    """create_app() restores and saves through a repository."""

    def test_history_survives_restart(self, repository):
        rate_limiter.reset()
        first = TestClient(create_app(repository=repository))
        first.post("/scan/url", data={"url": "https://casino.example.com"})
        first.post("/scan/sms", data={"sender": "Unknown", "content": "bank konto karta"})

        second = TestClient(create_app(repository=repository))
        scans = second.get("/history/scans").json()
        messages = second.get("/history/messages").json()
        assert [s["url"] for s in scans] == ["https://casino.example.com"]
        assert [m["content"] for m in messages] == ["bank konto karta"]
        assert second.get("/status").json()["persistence_enabled"] is True

    def test_clear_is_persisted(self, repository):
        rate_limiter.reset()
        first = TestClient(create_app(repository=repository))
        first.post("/scan/url", data={"url": "https://www.example.com"})
        first.delete("/history/scans")

        second = TestClient(create_app(repository=repository))
        assert second.get("/history/scans").json() == []
