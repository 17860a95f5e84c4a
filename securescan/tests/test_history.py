"""Tests for the scan and message history stores."""

import threading
from datetime import timedelta

from securescan.schemas.scan_schemas import ResultType, RiskLevel, ScanRecord, SmsRecord
from securescan.services.history_service import MessageHistoryStore, ScanHistoryStore

from securescan.tests.conftest import FIXED_NOW


def make_scan(url, minutes=0):
    return ScanRecord(
        url=url,
        result_type=ResultType.SAFE,
        scan_date=FIXED_NOW + timedelta(minutes=minutes),
        details="This URL appears to be safe",
    )


def make_sms(sender, content, minutes=0):
    return SmsRecord(
        sender=sender,
        content=content,
        received_date=FIXED_NOW + timedelta(minutes=minutes),
        risk_level=RiskLevel.SUSPICIOUS,
    )


class TestScanHistory:
    """Tests for ScanHistoryStore."""

    def test_empty(self):
        store = ScanHistoryStore()
        assert store.list() == []
        assert len(store) == 0

    def test_newest_first(self):
        store = ScanHistoryStore()
        store.append(make_scan("https://one.example", 1))
        store.append(make_scan("https://three.example", 3))
        store.append(make_scan("https://two.example", 2))
        urls = [r.url for r in store.list()]
        assert urls == ["https://three.example", "https://two.example", "https://one.example"]

    def test_ties_put_later_insertion_first(self):
        store = ScanHistoryStore()
        store.append(make_scan("https://first.example"))
        store.append(make_scan("https://second.example"))
        urls = [r.url for r in store.list()]
        assert urls == ["https://second.example", "https://first.example"]

    def test_recent_limits_results(self):
        store = ScanHistoryStore()
        for i in range(8):
            store.append(make_scan(f"https://{i}.example", i))
        recent = store.recent(5)
        assert len(recent) == 5
        assert recent[0].url == "https://7.example"

    def test_clear_returns_count(self):
        store = ScanHistoryStore()
        store.append(make_scan("https://a.example"))
        store.append(make_scan("https://b.example"))
        assert store.clear() == 2
        assert store.list() == []
        assert store.clear() == 0

    def test_snapshot_keeps_insertion_order(self):
        store = ScanHistoryStore()
        store.append(make_scan("https://late.example", 5))
        store.append(make_scan("https://early.example", 1))
        assert [r.url for r in store.snapshot()] == ["https://late.example", "https://early.example"]

    def test_restore_replaces_contents(self):
        store = ScanHistoryStore()
        store.append(make_scan("https://old.example"))
        store.restore([make_scan("https://new.example")])
        assert [r.url for r in store.list()] == ["https://new.example"]

    def test_concurrent_appends(self):
        store = ScanHistoryStore()

        def worker(n):
            for i in range(100):
                store.append(make_scan(f"https://{n}-{i}.example", i))
                store.list()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 800
        assert len(store.list()) == 800


class TestMessageHistory:
    """Tests for MessageHistoryStore."""

    def test_newest_first(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "first", 1))
        store.append(make_sms("B", "second", 2))
        assert [r.content for r in store.list()] == ["second", "first"]

    def test_mark_reported(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        assert store.mark_reported("A", "hello") is True
        assert store.list()[0].is_reported is True

    def test_mark_reported_twice_still_true(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        store.mark_reported("A", "hello")
        assert store.mark_reported("A", "hello") is True

    def test_mark_reported_no_match(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        assert store.mark_reported("A", "other") is False
        assert store.mark_reported("B", "hello") is False
        assert all(not r.is_reported for r in store.list())

    def test_duplicates_only_first_marked(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "same", 1))
        store.append(make_sms("A", "same", 2))
        store.mark_reported("A", "same")
        records = store.list()
        # newest first: the second insertion is untouched
        assert records[0].is_reported is False
        assert records[1].is_reported is True

    def test_list_returns_copies(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        store.list()[0].is_reported = True
        assert store.list()[0].is_reported is False

    def test_append_stores_a_copy(self):
        store = MessageHistoryStore()
        record = make_sms("A", "hello")
        store.append(record)
        record.is_reported = True
        assert store.list()[0].is_reported is False

    def test_mark_reported_record_returns_copy(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        marked = store.mark_reported_record("A", "hello")
        assert marked is not None
        assert marked.is_reported is True
        assert marked.content == "hello"
        marked.is_reported = False
        assert store.list()[0].is_reported is True

    def test_mark_reported_record_after_clear(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        store.clear()
        assert store.mark_reported_record("A", "hello") is None

    def test_find(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        found = store.find("A", "hello")
        assert found is not None
        assert found.sender == "A"
        assert store.find("A", "missing") is None

    def test_clear(self):
        store = MessageHistoryStore()
        store.append(make_sms("A", "hello"))
        assert store.clear() == 1
        assert len(store) == 0
        assert store.mark_reported("A", "hello") is False

    def test_concurrent_reporting(self):
        store = MessageHistoryStore()
        for i in range(50):
            store.append(make_sms("A", f"msg {i}", i))

        def worker():
            for i in range(50):
                store.mark_reported("A", f"msg {i}")
                store.list()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(r.is_reported for r in store.list())
