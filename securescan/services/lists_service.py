"""
Blocklist service.
Known bad domains and SMS senders for instant classification.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional


class ListType(str, Enum):
    PHISHING_DOMAINS = "phishing_domains"
    SCAM_SENDERS = "scam_senders"


@dataclass
class ListMatch:
    """Result of a list check."""
    matched: bool
    list_type: Optional[ListType]
    pattern: Optional[str]


NO_MATCH = ListMatch(matched=False, list_type=None, pattern=None)


DEFAULT_PHISHING_DOMAINS = (
    "fake-bank.com",
    "login-secure-verify.com",
    "account-verification-required.net",
    "secure-payment-confirm.com",
)

DEFAULT_SCAM_SENDERS = (
    "+48123456789",
    "INFO-BANK",
    "DOSTAWA",
    "Info-Paczka",
)


class Blocklists:
    """
    Static blocklists consulted by the classifiers.

    Both lists are substring-matched: a host containing a listed domain, or a
    sender containing a listed sender id, counts as a hit. Sender matching is
    case-sensitive.
    """

    def __init__(
        self,
        phishing_domains: Iterable[str] = DEFAULT_PHISHING_DOMAINS,
        scam_senders: Iterable[str] = DEFAULT_SCAM_SENDERS,
    ):
        self._phishing_domains: FrozenSet[str] = frozenset(d.lower() for d in phishing_domains)
        self._scam_senders: FrozenSet[str] = frozenset(scam_senders)

    @property
    def phishing_domains(self) -> FrozenSet[str]:
        return self._phishing_domains

    @property
    def scam_senders(self) -> FrozenSet[str]:
        return self._scam_senders

    def check_host(self, host: str) -> ListMatch:
        """Check a URL host (already lowercased by the caller) against known phishing domains."""
        for domain in sorted(self._phishing_domains):
            if domain in host:
                return ListMatch(
                    matched=True,
                    list_type=ListType.PHISHING_DOMAINS,
                    pattern=domain,
                )
        return NO_MATCH

    def check_sender(self, sender: str) -> ListMatch:
        """Check an SMS sender against known scam senders."""
        for known in sorted(self._scam_senders):
            if known in sender:
                return ListMatch(
                    matched=True,
                    list_type=ListType.SCAM_SENDERS,
                    pattern=known,
                )
        return NO_MATCH

    def get_stats(self) -> Dict[str, int]:
        """Get list statistics."""
        return {
            "phishing_domains": len(self._phishing_domains),
            "scam_senders": len(self._scam_senders),
        }


# Default lists, shared read-only by every classifier call
blocklists = Blocklists()
