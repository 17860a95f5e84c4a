"""
Batch URL extraction: find every link in a piece of text and classify each.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from securescan.config import settings
from securescan.schemas.scan_schemas import ScanRecord, SourceType
from securescan.services.link_service import Clock, classify_url
from securescan.services.lists_service import Blocklists
from securescan.utils.logging_config import track_analysis

logger = logging.getLogger(__name__)

# Scheme-prefixed tokens only; bare "example.com" is not treated as a link
LINK_RE = re.compile(r"(?i)\b(?:https?|ftp)://[^\s<>\"']+")

# Sentence punctuation that usually follows a link rather than belonging to it
TRAILING_PUNCTUATION = ".,;:!?)]}"


def extract_urls(text: str) -> List[str]:
    """All link tokens in `text`, in order of appearance."""
    urls = []
    for match in LINK_RE.finditer(text or ""):
        url = match.group(0).rstrip(TRAILING_PUNCTUATION)
        if url:
            urls.append(url)
    return urls


@track_analysis("batch")
def extract_and_classify(
    text: str,
    source_type: SourceType = SourceType.MANUAL,
    max_workers: Optional[int] = None,
    lists: Optional[Blocklists] = None,
    clock: Optional[Clock] = None,
) -> List[ScanRecord]:
    """
    Classify every link found in `text`.

    Links are classified concurrently; the list is returned only once all of
    them are done, in the order the links appear. No links gives [].
    """
    urls = extract_urls(text)
    if not urls:
        return []

    workers = max(1, min(max_workers or settings.extractor_max_workers, len(urls)))
    logger.debug(f"Classifying {len(urls)} extracted URLs with {workers} workers")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(
            lambda url: classify_url(url, source_type, lists=lists, clock=clock),
            urls,
        ))

    return results
