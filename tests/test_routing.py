"""
Tests for the routing decision table.
"""

import pytest

from claimsflow.fnol.schema import AdjusterType, ClaimScores
from claimsflow.triage.routing import ADJUSTER_NAMES, route_scores


def scores(complexity, severity, fraud_risk, urgency=5, customer_value=70):
    return ClaimScores(
        complexity=complexity,
        severity=severity,
        fraud_risk=fraud_risk,
        customer_value=customer_value,
        urgency=urgency,
    )


@pytest.mark.parametrize("claim_scores,expected_type,stp,days", [
    (scores(9, 2, 75), AdjusterType.SIU, False, 30),
    (scores(2, 2, 61), AdjusterType.SIU, False, 30),
    (scores(2, 2, 60), AdjusterType.JUNIOR, False, 10),
    (scores(7, 2, 30), AdjusterType.SPECIALIST, False, 21),
    (scores(2, 7, 30), AdjusterType.SPECIALIST, False, 21),
    (scores(4, 3, 30), AdjusterType.SENIOR, False, 14),
    (scores(6, 6, 10), AdjusterType.SENIOR, False, 14),
    (scores(2, 2, 10), AdjusterType.JUNIOR, True, 5),
    (scores(3, 3, 24), AdjusterType.JUNIOR, True, 5),
    (scores(3, 3, 25), AdjusterType.JUNIOR, False, 10),
    (scores(3, 5, 10), AdjusterType.JUNIOR, False, 10),
])
def test_decision_table(claim_scores, expected_type, stp, days):
    routing = route_scores(claim_scores)
    assert routing.adjuster_type == expected_type
    assert routing.stp_eligible is stp
    assert routing.estimated_resolution_days == days


def test_fraud_rule_wins_over_complexity():
    routing = route_scores(scores(9, 9, 75))
    assert routing.adjuster_type == AdjusterType.SIU
    assert "Special Investigation Unit" in routing.reason


def test_stp_only_for_junior():
    for c in range(1, 11):
        for s in range(1, 11):
            for f in (1, 20, 24, 25, 45, 61, 100):
                routing = route_scores(scores(c, s, f))
                if routing.stp_eligible:
                    assert routing.adjuster_type == AdjusterType.JUNIOR
                    assert routing.estimated_resolution_days == 5


def test_routing_is_pure():
    claim_scores = scores(5, 4, 33)
    assert route_scores(claim_scores) == route_scores(claim_scores)


def test_every_tier_has_adjuster():
    assert set(ADJUSTER_NAMES) == set(AdjusterType)
