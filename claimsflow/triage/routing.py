"""
Claim routing decision table.

``route_scores`` is a pure function of ClaimScores: the rules are checked
top to bottom and the first match wins.
"""

from typing import Dict

from ..fnol.schema import AdjusterType, ClaimScores, RoutingRecommendation


# Adjuster assigned for each routed tier
ADJUSTER_NAMES: Dict[AdjusterType, str] = {
    AdjusterType.JUNIOR: "Alex Thompson",
    AdjusterType.SENIOR: "Sarah Mitchell",
    AdjusterType.SPECIALIST: "Dr. Michael Chen",
    AdjusterType.SIU: "James Rodriguez (SIU)",
}

ADJUSTER_TYPE_LABELS: Dict[AdjusterType, str] = {
    AdjusterType.JUNIOR: "Junior Adjuster",
    AdjusterType.SENIOR: "Senior Adjuster",
    AdjusterType.SPECIALIST: "Specialist",
    AdjusterType.SIU: "SIU Team",
}

SIU_FRAUD_THRESHOLD = 60
SPECIALIST_THRESHOLD = 7
SENIOR_COMPLEXITY_THRESHOLD = 4
STP_FRAUD_CEILING = 25


def route_scores(scores: ClaimScores) -> RoutingRecommendation:
    """
    Make the routing decision for a set of scores.

    Returns:
        RoutingRecommendation with tier, reason, STP flag and resolution days
    """
    # High fraud risk -> SIU
    if scores.fraud_risk > SIU_FRAUD_THRESHOLD:
        return RoutingRecommendation(
            adjuster_type=AdjusterType.SIU,
            reason="High fraud risk requires Special Investigation Unit review",
            stp_eligible=False,
            estimated_resolution_days=30,
        )

    if scores.complexity >= SPECIALIST_THRESHOLD or scores.severity >= SPECIALIST_THRESHOLD:
        return RoutingRecommendation(
            adjuster_type=AdjusterType.SPECIALIST,
            reason="High complexity/severity requires specialist expertise",
            stp_eligible=False,
            estimated_resolution_days=21,
        )

    if scores.complexity >= SENIOR_COMPLEXITY_THRESHOLD:
        return RoutingRecommendation(
            adjuster_type=AdjusterType.SENIOR,
            reason="Moderate complexity suitable for senior adjuster",
            stp_eligible=False,
            estimated_resolution_days=14,
        )

    # Low risk -> straight-through processing
    if (
        scores.complexity < SENIOR_COMPLEXITY_THRESHOLD
        and scores.severity < SENIOR_COMPLEXITY_THRESHOLD
        and scores.fraud_risk < STP_FRAUD_CEILING
    ):
        return RoutingRecommendation(
            adjuster_type=AdjusterType.JUNIOR,
            reason="Low complexity claim eligible for straight-through processing",
            stp_eligible=True,
            estimated_resolution_days=5,
        )

    return RoutingRecommendation(
        adjuster_type=AdjusterType.JUNIOR,
        reason="Standard claim suitable for junior adjuster",
        stp_eligible=False,
        estimated_resolution_days=10,
    )
