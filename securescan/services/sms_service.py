"""
SMS classification.

A known scam sender is dangerous outright. Otherwise the message content is
scored: one point per suspicious keyword, two for a shortened link (or one for
any other link), and one if any urgency phrase appears.
"""

import logging
import re
from typing import List, Optional, Tuple

from securescan.config import settings
from securescan.schemas.scan_schemas import RiskLevel, SmsRecord
from securescan.services.link_service import Clock, utc_now
from securescan.services.lists_service import Blocklists, blocklists as default_blocklists
from securescan.utils.risk_levels import derive_sms_risk
from securescan.utils.logging_config import track_analysis

logger = logging.getLogger(__name__)

SUSPICIOUS_KEYWORDS = (
    "pilne", "weryfikacja", "kliknij", "potwierdź", "konto", "hasło", "bank", "zabezpieczenie",
    "link", "nagroda", "wygrałeś", "płatność", "wygasa", "dostęp", "zablokowany", "karta",
)

URGENCY_PHRASES = ("natychmiast", "teraz", "pilne", "w ciągu 24h", "dzisiaj", "zaraz")

# Run against the raw (not lowercased) content
URL_RE = re.compile(r"https?://")
SHORTENER_RE = re.compile(r"\b(bit\.ly|tinyurl\.com|is\.gd|t\.co|tiny\.cc)\S*\b")


def score_sms_signals(content: str) -> Tuple[int, List[str]]:
    """
    Suspicion counter for an SMS body.

    A shortened link scores +2 and suppresses the +1 for a plain link. Urgency
    scores at most +1 however many phrases appear.

    Returns:
        (score, indicators)
    """
    score = 0
    indicators: List[str] = []
    lower = content.lower()

    for kw in SUSPICIOUS_KEYWORDS:
        if kw in lower:
            score += 1
            indicators.append(f"suspicious_keyword:{kw}")

    if SHORTENER_RE.search(content):
        score += 2
        indicators.append("url_shortener_used")
    elif URL_RE.search(content):
        score += 1
        indicators.append("contains_url")

    if any(phrase in lower for phrase in URGENCY_PHRASES):
        score += 1
        indicators.append("urgency_language")

    return score, indicators


@track_analysis("sms")
def classify_sms(
    sender: str,
    content: str,
    lists: Optional[Blocklists] = None,
    clock: Optional[Clock] = None,
) -> SmsRecord:
    """Classify one received message. Never raises for string input."""
    lists = lists or default_blocklists
    now = (clock or utc_now)()

    list_check = lists.check_sender(sender)
    if list_check.matched:
        logger.debug(f"Sender {sender!r} matched scam sender {list_check.pattern!r}")
        return SmsRecord(
            sender=sender,
            content=content,
            received_date=now,
            risk_level=RiskLevel.DANGEROUS,
        )

    score, indicators = score_sms_signals(content)
    risk_level = derive_sms_risk(score)
    logger.debug(f"SMS from {sender!r}: score={score} indicators={indicators} -> {risk_level.value}")

    return SmsRecord(
        sender=sender,
        content=content,
        received_date=now,
        risk_level=risk_level,
    )


def prepare_report(record: SmsRecord, report_number: Optional[str] = None) -> str:
    """Text to forward to the SMS abuse number for `record`."""
    number = report_number or settings.sms_report_number
    return f"Report to {number}:\n{record.content}"
