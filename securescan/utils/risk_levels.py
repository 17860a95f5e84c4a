"""
Risk level utilities.
Score-derived severity for the counter-based heuristics.
"""

from typing import Optional

from securescan.schemas.scan_schemas import ResultType, RiskLevel


# Generic URL suspicion: this many signals flip an uncategorised URL to SUSPICIOUS
URL_SUSPICIOUS_THRESHOLD = 3

# SMS counter thresholds
SMS_DANGEROUS_THRESHOLD = 3
SMS_SUSPICIOUS_THRESHOLD = 1

_RESULT_RANK = {
    ResultType.SAFE: 0,
    ResultType.SUSPICIOUS: 1,
    ResultType.DANGEROUS: 2,
}


def derive_url_result(score: int, threshold: Optional[int] = None) -> ResultType:
    """
    Derive the result for a URL that matched no category.

    Args:
        score: Generic suspicion counter
        threshold: Score >= this = SUSPICIOUS (default URL_SUSPICIOUS_THRESHOLD)

    Returns:
        ResultType.SUSPICIOUS or ResultType.SAFE
    """
    limit = threshold if threshold is not None else URL_SUSPICIOUS_THRESHOLD
    if score >= limit:
        return ResultType.SUSPICIOUS
    return ResultType.SAFE


def derive_sms_risk(
    score: int,
    dangerous_threshold: Optional[int] = None,
    suspicious_threshold: Optional[int] = None,
) -> RiskLevel:
    """
    Derive an SMS risk level from its suspicion counter.

    Args:
        score: SMS suspicion counter
        dangerous_threshold: Score >= this = DANGEROUS
        suspicious_threshold: Score >= this = SUSPICIOUS (below = SAFE)
    """
    dangerous = dangerous_threshold if dangerous_threshold is not None else SMS_DANGEROUS_THRESHOLD
    suspicious = suspicious_threshold if suspicious_threshold is not None else SMS_SUSPICIOUS_THRESHOLD

    if score >= dangerous:
        return RiskLevel.DANGEROUS
    elif score >= suspicious:
        return RiskLevel.SUSPICIOUS
    else:
        return RiskLevel.SAFE


def severity_rank(result_type: ResultType) -> int:
    """Rank for ordering results; UNKNOWN sorts below SAFE."""
    return _RESULT_RANK.get(result_type, -1)


def worst_result(results) -> ResultType:
    """Most severe result type among the given ones (SAFE when empty)."""
    worst = ResultType.SAFE
    for result_type in results:
        if severity_rank(result_type) > severity_rank(worst):
            worst = result_type
    return worst
