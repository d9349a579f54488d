"""
Claim scoring.

Scores are a deterministic rule table over a claim's fixed facts
(accident type, photo count, description length) plus bounded
non-negative perturbation. Mutable triage state is never read.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict

from ..fnol.schema import AccidentType, Claim, ClaimScores

logger = logging.getLogger(__name__)


BASE_COMPLEXITY = 3
BASE_SEVERITY = 3
BASE_FRAUD_RISK = 15
BASE_URGENCY = 4

SHORT_DESCRIPTION_CHARS = 50

# (complexity, severity, fraud_risk, urgency) added per accident type
ACCIDENT_TYPE_ADJUSTMENTS: Dict[AccidentType, tuple] = {
    AccidentType.COLLISION: (2, 2, 0, 0),
    AccidentType.THEFT: (3, 0, 25, 2),
    AccidentType.HIT_AND_RUN: (4, 0, 15, 3),
    AccidentType.WEATHER: (1, 1, 0, 0),
    AccidentType.VANDALISM: (2, 0, 10, 0),
    AccidentType.OTHER: (0, 0, 0, 0),
}

# Inclusive perturbation ranges
COMPLEXITY_JITTER = (0, 1)
SEVERITY_JITTER = (0, 2)
FRAUD_RISK_JITTER = (0, 9)
URGENCY_JITTER = (0, 1)
CUSTOMER_VALUE_RANGE = (50, 89)


def clamp(value: int, low: int, high: int) -> int:
    return min(high, max(low, value))


@dataclass(frozen=True)
class ScoringInput:
    """The only claim facts scoring may read."""
    accident_type: AccidentType
    photo_count: int
    description_length: int

    @classmethod
    def from_claim(cls, claim: Claim) -> "ScoringInput":
        return cls(
            accident_type=claim.accident_type,
            photo_count=len(claim.photos),
            description_length=len(claim.description),
        )


def base_scores(facts: ScoringInput) -> Dict[str, int]:
    """
    Deterministic portion of the scores, before perturbation and clamping.

    Customer value has no deterministic base and is absent here.
    """
    complexity = BASE_COMPLEXITY
    severity = BASE_SEVERITY
    fraud_risk = BASE_FRAUD_RISK
    urgency = BASE_URGENCY

    d_complexity, d_severity, d_fraud, d_urgency = ACCIDENT_TYPE_ADJUSTMENTS[facts.accident_type]
    complexity += d_complexity
    severity += d_severity
    fraud_risk += d_fraud
    urgency += d_urgency

    # No photos
    if facts.photo_count == 0:
        fraud_risk += 20
        complexity += 1

    # Thin description
    if facts.description_length < SHORT_DESCRIPTION_CHARS:
        complexity += 1
        fraud_risk += 5

    return {
        "complexity": complexity,
        "severity": severity,
        "fraud_risk": fraud_risk,
        "urgency": urgency,
    }


def score_claim(facts: ScoringInput, rng: random.Random) -> ClaimScores:
    """
    Compute ClaimScores for one claim.

    Args:
        facts: Accident type, photo count and description length
        rng: Generator dedicated to this call

    Returns:
        ClaimScores with every value clamped to its range
    """
    base = base_scores(facts)

    complexity = base["complexity"] + rng.randint(*COMPLEXITY_JITTER)
    severity = base["severity"] + rng.randint(*SEVERITY_JITTER)
    fraud_risk = base["fraud_risk"] + rng.randint(*FRAUD_RISK_JITTER)
    urgency = base["urgency"] + rng.randint(*URGENCY_JITTER)
    customer_value = rng.randint(*CUSTOMER_VALUE_RANGE)

    # Clamping is always the last step
    return ClaimScores(
        complexity=clamp(complexity, 1, 10),
        severity=clamp(severity, 1, 10),
        fraud_risk=clamp(fraud_risk, 1, 100),
        customer_value=clamp(customer_value, 1, 100),
        urgency=clamp(urgency, 1, 10),
    )
