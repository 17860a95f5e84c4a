"""
Content-harm categories and their trigger keywords.

Triggers are lowercase substrings (English, Polish and a few Cyrillic terms).
Matching lowercases the haystack and nothing else: no accent folding, no
stemming.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from securescan.schemas.scan_schemas import Category, ResultType


CATEGORY_KEYWORDS: Dict[Category, FrozenSet[str]] = {
    Category.ADULT: frozenset({
        "porn", "sex", "xxx", "adult", "nude", "naked", "pornografia", "erotyka",
        "для взрослых", "erotica", "erotic", "porno", "dorosli", "dla dorosłych",
    }),
    Category.GAMBLING: frozenset({
        "casino", "bet", "poker", "slots", "roulette", "gambling", "hazard", "kasyno",
        "zakłady", "bukmacher", "ruletka", "blackjack", "lottery", "lotto",
    }),
    Category.GORE: frozenset({
        "gore", "death", "brutal", "violence", "morbid", "blood", "wound", "injury",
        "кровь", "насилие", "przemoc", "krew", "drastyczne", "makabryczne",
    }),
    Category.MALWARE: frozenset({
        "malware", "virus", "trojan", "worm", "ransomware", "spyware", "botnet",
        "exploit", "backdoor", "rootkit", "keylogger", "cracked", "crack", "keygen",
    }),
    Category.PHISHING: frozenset({
        "phishing", "scam", "fraud", "fake", "suspicious", "verify", "confirm", "login",
        "account", "password", "bank", "кража", "данных", "oszustwo", "weryfikacja",
    }),
    Category.SCAM: frozenset({
        "scam", "fraud", "fake", "free money", "lottery winner", "prize", "won",
        "inheritance", "oszustwo", "wygrałeś", "nagroda", "dziedzictwo", "obietnica",
    }),
    Category.DRUGS: frozenset({
        "drugs", "narcotics", "cocaine", "heroin", "marijuana", "cannabis", "steroids",
        "pills", "lsd", "mdma", "ecstasy", "narkotyki", "dopalacze", "psychodeliki",
    }),
    Category.WEAPONS: frozenset({
        "weapons", "guns", "ammo", "ammunition", "firearms", "rifle", "pistol", "bomb",
        "explosive", "missile", "broń", "amunicja", "karabin", "pistolet", "bomba",
    }),
    Category.EXTREMISM: frozenset({
        "terrorism", "extremism", "radical", "nazi", "jihad", "hate", "propaganda",
        "supremacist", "extremist", "terrorist", "ekstremizm", "terroryzm", "radykalny",
    }),
}

# First match wins; the order decides overlapping triggers (e.g. "scam" -> PHISHING)
CATEGORY_PRIORITY: Tuple[Category, ...] = (
    Category.PHISHING,
    Category.MALWARE,
    Category.ADULT,
    Category.GAMBLING,
    Category.GORE,
    Category.SCAM,
    Category.DRUGS,
    Category.WEAPONS,
    Category.EXTREMISM,
)


@dataclass(frozen=True)
class CategoryRule:
    """What a URL classified into a category is reported as."""
    severity: ResultType
    details: str
    educational_tip: str


CATEGORY_RULES: Dict[Category, CategoryRule] = {
    Category.PHISHING: CategoryRule(
        severity=ResultType.DANGEROUS,
        details="This URL may be a phishing attempt to steal your data",
        educational_tip=(
            "Never enter your login or personal details on pages you reached "
            "through suspicious links"
        ),
    ),
    Category.MALWARE: CategoryRule(
        severity=ResultType.DANGEROUS,
        details="This URL may contain malicious software",
        educational_tip=(
            "Never download files from untrusted sources. They may contain "
            "viruses or other malware"
        ),
    ),
    Category.ADULT: CategoryRule(
        severity=ResultType.SUSPICIOUS,
        details="This URL may contain adult (pornographic) content",
        educational_tip=(
            "Adult sites may contain malware or be used for phishing attacks"
        ),
    ),
    Category.GAMBLING: CategoryRule(
        severity=ResultType.SUSPICIOUS,
        details="This URL may contain gambling content",
        educational_tip=(
            "Gambling sites may be illegal in your country and often rely on "
            "psychological manipulation techniques"
        ),
    ),
    Category.GORE: CategoryRule(
        severity=ResultType.SUSPICIOUS,
        details="This URL may contain graphic content (gruesome images or videos)",
        educational_tip=(
            "Sites with graphic content may show material unsuitable for "
            "sensitive people and minors"
        ),
    ),
    Category.SCAM: CategoryRule(
        severity=ResultType.DANGEROUS,
        details="This URL may be a scam",
        educational_tip=(
            "Be careful with offers that seem too good to be true - they "
            "usually are a scam"
        ),
    ),
    Category.DRUGS: CategoryRule(
        severity=ResultType.SUSPICIOUS,
        details="This URL may contain drug-related content",
        educational_tip=(
            "Drug-related sites may promote illegal substances and expose you "
            "to legal consequences"
        ),
    ),
    Category.WEAPONS: CategoryRule(
        severity=ResultType.SUSPICIOUS,
        details="This URL may contain weapon-related content",
        educational_tip=(
            "Weapon-related sites may contain illegal content or expose you "
            "to legal consequences"
        ),
    ),
    Category.EXTREMISM: CategoryRule(
        severity=ResultType.DANGEROUS,
        details="This URL may contain extremist content",
        educational_tip=(
            "Extremist sites may contain illegal, harmful material that "
            "promotes hatred"
        ),
    ),
}


def matches(category: Category, haystack: str) -> bool:
    """True if any trigger of `category` occurs in the lowercased haystack."""
    keywords = CATEGORY_KEYWORDS.get(category)
    if not keywords:
        return False
    lower = haystack.lower()
    return any(kw in lower for kw in keywords)
