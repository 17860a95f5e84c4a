"""Tests for SMS classification and reporting."""

import pytest

from securescan.schemas.scan_schemas import RiskLevel
from securescan.services.lists_service import Blocklists
from securescan.services.sms_service import classify_sms, prepare_report, score_sms_signals

from securescan.tests.conftest import FIXED_NOW


class TestBlockedSenders:
    """Known scam senders short-circuit the content score."""

    def test_blocked_sender_is_dangerous(self, sample_safe_sms):
        result = classify_sms("INFO-BANK", sample_safe_sms)
        assert result.risk_level == RiskLevel.DANGEROUS
        assert result.is_reported is False

    def test_sender_substring_matches(self, sample_safe_sms):
        result = classify_sms("+48123456789-2", sample_safe_sms)
        assert result.risk_level == RiskLevel.DANGEROUS

    def test_sender_match_is_case_sensitive(self, sample_safe_sms):
        result = classify_sms("info-bank", sample_safe_sms)
        assert result.risk_level == RiskLevel.SAFE

    def test_custom_lists(self, sample_safe_sms):
        lists = Blocklists(scam_senders=["PROMO"])
        assert classify_sms("PROMO-1", sample_safe_sms, lists=lists).risk_level == RiskLevel.DANGEROUS
        assert classify_sms("INFO-BANK", sample_safe_sms, lists=lists).risk_level == RiskLevel.SAFE


class TestContentScore:
    """Score thresholds: >=3 dangerous, >=1 suspicious."""

    def test_scam_message_is_dangerous(self, sample_scam_sms):
        result = classify_sms("Unknown", sample_scam_sms)
        assert result.risk_level == RiskLevel.DANGEROUS

    def test_three_keywords_are_dangerous(self):
        result = classify_sms("Unknown", "bank konto karta")
        assert result.risk_level == RiskLevel.DANGEROUS

    def test_one_keyword_is_suspicious(self):
        result = classify_sms("Unknown", "Twoja karta jest gotowa")
        assert result.risk_level == RiskLevel.SUSPICIOUS

    def test_plain_message_is_safe(self, sample_safe_sms):
        result = classify_sms("Mom", sample_safe_sms)
        assert result.risk_level == RiskLevel.SAFE

    def test_keywords_are_case_insensitive(self):
        score, _ = score_sms_signals("BANK KONTO")
        assert score == 2

    def test_shortener_scores_two(self):
        score, indicators = score_sms_signals("see https://bit.ly/x")
        assert score == 2
        assert "url_shortener_used" in indicators
        assert "contains_url" not in indicators

    def test_plain_link_scores_one(self):
        score, indicators = score_sms_signals("see https://example.com")
        assert score == 1
        assert indicators == ["contains_url"]

    def test_shortener_without_scheme(self):
        score, indicators = score_sms_signals("go to tinyurl.com/abc")
        assert score == 2
        assert indicators == ["url_shortener_used"]

    def test_shortener_match_is_case_sensitive(self):
        score, _ = score_sms_signals("go to BIT.LY/abc")
        assert score == 0

    def test_urgency_counts_once(self):
        score, indicators = score_sms_signals("natychmiast teraz zaraz")
        assert score == 1
        assert indicators == ["urgency_language"]

    def test_pilne_counts_as_keyword_and_urgency(self):
        score, indicators = score_sms_signals("pilne")
        assert score == 2
        assert indicators == ["suspicious_keyword:pilne", "urgency_language"]

    @pytest.mark.parametrize("content", ["", "   ", "ok"])
    def test_empty_or_bland_content(self, content):
        assert classify_sms("Unknown", content).risk_level == RiskLevel.SAFE


class TestRecordAssembly:
    def test_fields_copied(self, fixed_clock, sample_scam_sms):
        result = classify_sms("Unknown", sample_scam_sms, clock=fixed_clock)
        assert result.sender == "Unknown"
        assert result.content == sample_scam_sms
        assert result.received_date == FIXED_NOW
        assert result.is_reported is False


class TestPrepareReport:
    """Report text forwarded to the abuse number."""

    def test_default_number(self, sample_scam_sms):
        record = classify_sms("Unknown", sample_scam_sms)
        text = prepare_report(record)
        assert text == f"Report to 8080:\n{sample_scam_sms}"

    def test_custom_number(self, sample_scam_sms):
        record = classify_sms("Unknown", sample_scam_sms)
        assert prepare_report(record, report_number="7726").startswith("Report to 7726:")
