"""
URL classification.

A URL is resolved to a (result type, category, details, tip) tuple in four
steps: parse, category scan in fixed priority order, phishing-domain override,
and, only for uncategorised URLs, a generic suspicion score.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from securescan.schemas.scan_schemas import Category, ResultType, ScanRecord, SourceType
from securescan.services.lists_service import Blocklists, blocklists as default_blocklists
from securescan.services.taxonomy import CATEGORY_PRIORITY, CATEGORY_RULES, matches
from securescan.utils.preprocessing import normalize_url, split_host_labels
from securescan.utils.risk_levels import derive_url_result
from securescan.utils.logging_config import track_analysis

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Counted once per entry, so the repeated "bank" weighs double
SUSPICIOUS_HOST_KEYWORDS = (
    "login", "verify", "secure", "account", "password", "bank",
    "update", "alert", "confirm", "pay", "weryfikacja", "konto",
    "haslo", "bank", "platnosc",
)

MAX_HOST_LABELS = 3

INVALID_URL_DETAILS = "Invalid URL format"
INVALID_URL_TIP = "Valid URLs start with http:// or https://"

BLOCKLIST_DETAILS = "This URL has been identified as phishing"
BLOCKLIST_TIP = "Never enter your personal details on suspicious websites"

SUSPICIOUS_DETAILS = "This URL contains suspicious elements"
SUSPICIOUS_TIP = "Be careful with URLs that have many subdomains or suspicious keywords"

SAFE_DETAILS = "This URL appears to be safe"
SAFE_TIP = "Even if a URL looks safe, always be careful when sharing personal information"


class InvalidURLError(ValueError):
    """Raised when a string cannot be read as a URL with a host."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_host(url: str) -> str:
    """
    Return the lowercased host of `url`.

    Raises:
        InvalidURLError: if the string has whitespace inside, does not parse,
            or has no host.
    """
    if not url or any(ch.isspace() for ch in url):
        raise InvalidURLError(f"not a URL: {url!r}")
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError as e:
        raise InvalidURLError(str(e)) from e
    if not host:
        raise InvalidURLError(f"URL has no host: {url!r}")
    return host.lower()


def detect_category(full_url: str, host: str) -> Category:
    """First category (in priority order) whose triggers hit the URL or host."""
    for category, predicate in _CATEGORY_CHECKS:
        if predicate(full_url) or predicate(host):
            return category
    return Category.NONE


def _category_predicate(category: Category) -> Callable[[str], bool]:
    return lambda haystack: matches(category, haystack)


_CATEGORY_CHECKS: Tuple[Tuple[Category, Callable[[str], bool]], ...] = tuple(
    (category, _category_predicate(category)) for category in CATEGORY_PRIORITY
)


def score_url_signals(url: str, host: str) -> Tuple[int, List[str]]:
    """
    Generic suspicion counter for an uncategorised URL.

    Returns:
        (score, indicators) where each indicator names one increment.
    """
    score = 0
    indicators: List[str] = []

    if not url.startswith("https://"):
        score += 1
        indicators.append("no_https")

    for kw in SUSPICIOUS_HOST_KEYWORDS:
        if kw in host:
            score += 1
            indicators.append(f"suspicious_host_keyword:{kw}")

    if len(split_host_labels(host)) > MAX_HOST_LABELS:
        score += 1
        indicators.append("deep_subdomain")

    return score, indicators


@track_analysis("url")
def classify_url(
    url: str,
    source_type: SourceType = SourceType.MANUAL,
    lists: Optional[Blocklists] = None,
    clock: Optional[Clock] = None,
) -> ScanRecord:
    """
    Classify a URL string. Never raises for string input.

    Args:
        url: The URL as typed, pasted or decoded from a QR code
        source_type: Provenance tag copied onto the record
        lists: Blocklists to consult (defaults to the shipped lists)
        clock: Time source for scan_date (defaults to UTC now)
    """
    lists = lists or default_blocklists
    now = (clock or utc_now)()
    url = normalize_url(url)

    try:
        host = parse_host(url)
    except InvalidURLError as e:
        logger.debug(f"Invalid URL: {e}")
        return ScanRecord(
            url=url,
            result_type=ResultType.SUSPICIOUS,
            category=Category.NONE,
            scan_date=now,
            details=INVALID_URL_DETAILS,
            is_phishing=False,
            source_type=source_type,
            educational_tip=INVALID_URL_TIP,
        )

    # 1) Category scan, fixed priority
    category = detect_category(url.lower(), host)
    result_type = ResultType.SAFE
    details = ""
    tip = ""
    if category != Category.NONE:
        rule = CATEGORY_RULES[category]
        result_type = rule.severity
        details = rule.details
        tip = rule.educational_tip

    # 2) Known phishing domains override whatever the scan found
    list_check = lists.check_host(host)
    if list_check.matched:
        category = Category.PHISHING
        result_type = ResultType.DANGEROUS
        details = BLOCKLIST_DETAILS
        tip = BLOCKLIST_TIP

    # 3) Generic suspicion score, only for uncategorised URLs
    if category == Category.NONE:
        score, indicators = score_url_signals(url, host)
        result_type = derive_url_result(score)
        if result_type == ResultType.SUSPICIOUS:
            details = SUSPICIOUS_DETAILS
            tip = SUSPICIOUS_TIP
        else:
            details = SAFE_DETAILS
            tip = SAFE_TIP
        logger.debug(f"URL signals for {host}: score={score} indicators={indicators}")

    logger.debug(f"Classified {host} as {result_type.value}/{category.value}")

    return ScanRecord(
        url=url,
        result_type=result_type,
        category=category,
        scan_date=now,
        details=details,
        is_phishing=category == Category.PHISHING,
        source_type=source_type,
        educational_tip=tip,
    )


def simulate_category(
    url: str,
    category: Category,
    source_type: SourceType = SourceType.MANUAL,
    clock: Optional[Clock] = None,
) -> ScanRecord:
    """Build the record a URL forced into `category` would get (demo mode)."""
    now = (clock or utc_now)()
    rule = CATEGORY_RULES.get(category)
    if rule is None:
        return ScanRecord(
            url=url,
            result_type=ResultType.SAFE,
            category=Category.NONE,
            scan_date=now,
            details=SAFE_DETAILS,
            is_phishing=False,
            source_type=source_type,
            educational_tip=SAFE_TIP,
        )
    return ScanRecord(
        url=url,
        result_type=rule.severity,
        category=category,
        scan_date=now,
        details=rule.details,
        is_phishing=category == Category.PHISHING,
        source_type=source_type,
        educational_tip=rule.educational_tip,
    )
