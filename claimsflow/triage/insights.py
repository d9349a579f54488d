"""
Adjuster-facing insights and dashboard metrics derived from triage results.
"""

from typing import Dict, Iterable, List

from ..fnol.schema import AccidentType, Claim, ClaimScores, ClaimStatus

MAX_INSIGHTS = 4
HIGH_RISK_DASHBOARD_THRESHOLD = 50

DASHBOARD_VIEWS: Dict[str, List[ClaimStatus]] = {
    "pending": [ClaimStatus.FNOL_COMPLETE, ClaimStatus.TRIAGE],
    "active": [
        ClaimStatus.ASSIGNED,
        ClaimStatus.INVESTIGATION,
        ClaimStatus.ASSESSMENT,
        ClaimStatus.SETTLEMENT,
    ],
    "closed": [ClaimStatus.CLOSED],
}

ACCIDENT_TYPE_INSIGHTS = {
    AccidentType.COLLISION: "Collision claims typically resolve within 2-3 weeks with complete documentation",
    AccidentType.THEFT: "Theft claim registered - police report will be requested if not already provided",
    AccidentType.HIT_AND_RUN: "Hit-and-run claims are prioritized - your adjuster will contact you within 24 hours",
    AccidentType.WEATHER: "Weather-related damage confirmed - no additional verification typically required",
    AccidentType.VANDALISM: "Vandalism claim noted - police report recommended for faster processing",
    AccidentType.OTHER: "Your claim is being processed according to standard procedures",
}


def fraud_risk_level(fraud_risk: int) -> str:
    """Bucket a fraud risk score into High / Medium / Low."""
    if fraud_risk > 60:
        return "High"
    if fraud_risk > 30:
        return "Medium"
    return "Low"


def generate_insights(claim: Claim, scores: ClaimScores) -> List[str]:
    """
    Build up to four plain-language statements about a scored claim.

    Covers documentation (photos, description), complexity band, the
    accident type and the urgency flag, in that order.
    """
    insights = []

    photo_count = len(claim.photos)
    if photo_count >= 3:
        insights.append(f"{photo_count} photos uploaded - sufficient documentation for faster assessment")
    elif photo_count > 0:
        insights.append(f"{photo_count} photo(s) received - additional photos may speed up processing")
    else:
        insights.append("No photos uploaded - your adjuster may request photos to proceed")

    if len(claim.description) > 100:
        insights.append("Detailed incident description provided - helps expedite review")
    else:
        insights.append("Brief description noted - your adjuster may follow up for more details")

    if scores.complexity <= 4 and scores.severity <= 4:
        insights.append("Claim complexity is low - eligible for expedited processing")
    elif scores.complexity >= 7 or scores.severity >= 7:
        insights.append("Claim requires specialist review - assigned to experienced adjuster")

    insights.append(ACCIDENT_TYPE_INSIGHTS[claim.accident_type])

    if scores.urgency >= 7:
        insights.append("High priority flag applied - expect faster initial contact")

    return insights[:MAX_INSIGHTS]


def dashboard_stats(claims: Iterable[Claim]) -> Dict[str, int]:
    """Counts shown on the adjuster dashboard."""
    claims = list(claims)
    return {
        "total": len(claims),
        "pending": sum(1 for c in claims if c.status in DASHBOARD_VIEWS["pending"]),
        "active": sum(1 for c in claims if c.status in DASHBOARD_VIEWS["active"]),
        "closed": sum(1 for c in claims if c.status in DASHBOARD_VIEWS["closed"]),
        "high_risk": sum(
            1 for c in claims
            if c.scores is not None and c.scores.fraud_risk > HIGH_RISK_DASHBOARD_THRESHOLD
        ),
    }
