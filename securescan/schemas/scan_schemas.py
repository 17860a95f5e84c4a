"""
Record types shared by the classifiers, the history stores and the API.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class ResultType(str, Enum):
    """Severity of a scanned URL, ordered low to high (UNKNOWN is display-only)."""
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGEROUS = "dangerous"
    UNKNOWN = "unknown"


class RiskLevel(str, Enum):
    """Severity of an SMS message."""
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGEROUS = "dangerous"


class Category(str, Enum):
    NONE = "none"
    ADULT = "adult"
    GAMBLING = "gambling"
    GORE = "gore"
    MALWARE = "malware"
    PHISHING = "phishing"
    SCAM = "scam"
    DRUGS = "drugs"
    WEAPONS = "weapons"
    EXTREMISM = "extremism"


class SourceType(str, Enum):
    MANUAL = "manual"  # Typed or pasted by the user
    QR_CODE = "qr_code"  # Decoded from a QR code


class ScanRecord(BaseModel):
    """Outcome of one URL classification. Never modified once created."""

    model_config = ConfigDict(frozen=True)

    url: str
    result_type: ResultType
    category: Category = Category.NONE
    scan_date: datetime
    details: str
    is_phishing: bool = False
    source_type: SourceType = SourceType.MANUAL
    educational_tip: Optional[str] = None

    @model_validator(mode="after")
    def _phishing_flag_matches_category(self):
        if self.is_phishing != (self.category == Category.PHISHING):
            raise ValueError("is_phishing must be true exactly when category is phishing")
        return self


class SmsRecord(BaseModel):
    """Outcome of one SMS classification. Only is_reported changes afterwards."""

    sender: str
    content: str
    received_date: datetime
    risk_level: RiskLevel
    is_reported: bool = False


class BatchScanResponse(BaseModel):
    """All links found in a piece of text, with the most severe outcome."""
    worst_result: ResultType
    results: List[ScanRecord]


class ReportResponse(BaseModel):
    """Response after marking a message as reported."""
    reported: bool
    report_text: str


class ClearResponse(BaseModel):
    cleared: int
