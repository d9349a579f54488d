"""Claim triage: scoring, routing and adjuster assignment."""

from .insights import DASHBOARD_VIEWS, dashboard_stats, fraud_risk_level, generate_insights
from .randomness import RandomSource, SeededRandomSource
from .routing import ADJUSTER_NAMES, ADJUSTER_TYPE_LABELS, route_scores
from .scoring import ScoringInput, base_scores, score_claim
from .workflow import TriageResult, TriageService, get_triage_service

__all__ = [
    "TriageService",
    "TriageResult",
    "get_triage_service",
    "RandomSource",
    "SeededRandomSource",
    "ScoringInput",
    "base_scores",
    "score_claim",
    "route_scores",
    "ADJUSTER_NAMES",
    "ADJUSTER_TYPE_LABELS",
    "DASHBOARD_VIEWS",
    "dashboard_stats",
    "fraud_risk_level",
    "generate_insights",
]
