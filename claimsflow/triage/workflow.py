"""
Claim triage workflow.

Handles post-intake claim processing:
- Scoring (rule table + seeded perturbation)
- Routing to an adjuster tier, moving the claim into triage
- Assignment to a named adjuster

Every step is a read-modify-write under the claim's lock in the
repository, so scoring for one claim never overlaps another scoring or
routing call for the same claim.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..fnol.schema import (
    Claim,
    ClaimScores,
    ClaimStatus,
    NotificationType,
    RoutingRecommendation,
)
from ..storage.claim_store import SERVICE_OWNED_STATUSES, ClaimStore, get_claim_store
from ..storage.notification_log import append_notification
from ..utils import utc_now
from ..utils.config import get_settings
from ..utils.errors import InvalidTransitionError, ValidationFailedError
from .randomness import RandomSource, SeededRandomSource
from .routing import ADJUSTER_NAMES, route_scores
from .scoring import ScoringInput, score_claim

logger = logging.getLogger(__name__)


@dataclass
class TriageResult:
    """Result of scoring and routing one claim."""
    claim_id: str
    scores: ClaimScores
    routing: RoutingRecommendation
    status: ClaimStatus

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "claim_id": self.claim_id,
            "scores": self.scores.model_dump(),
            "routing": self.routing.model_dump(mode="json"),
            "status": self.status.value,
        }


class TriageService:
    """
    Score, route and assign claims held in a ClaimStore.
    """

    def __init__(
        self,
        store: Optional[ClaimStore] = None,
        random_source: Optional[RandomSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store or get_claim_store()
        self.random_source = random_source or SeededRandomSource(get_settings().scoring_seed)
        self._clock = clock or utc_now

    def compute_scores(self, claim_id: str, recompute: bool = False) -> ClaimScores:
        """
        Score a claim and persist the scores on it.

        A claim that already has scores is returned as-is unless
        ``recompute`` is set. A routed claim keeps the scores its
        routing was computed from.

        Raises:
            NotFoundError: unknown claim
            InvalidTransitionError: ``recompute`` on a routed claim
        """
        result: List[ClaimScores] = []

        def _score(claim: Claim) -> Claim:
            if claim.scores is not None and not recompute:
                result.append(claim.scores)
                return claim
            if claim.routing is not None:
                raise InvalidTransitionError(
                    f"Claim {claim.id} is already routed; its scores are final",
                    current=claim.status.value,
                )
            rng = self.random_source.spawn(claim.id)
            scores = score_claim(ScoringInput.from_claim(claim), rng)
            result.append(scores)
            return claim.model_copy(update={"scores": scores})

        self.store.mutate(claim_id, _score)
        scores = result[0]
        logger.info(
            f"Claim {claim_id} scored: complexity={scores.complexity} severity={scores.severity} "
            f"fraud_risk={scores.fraud_risk} urgency={scores.urgency}"
        )
        return scores

    def compute_routing(self, claim_id: str, scores: Optional[ClaimScores] = None) -> RoutingRecommendation:
        """
        Route a scored claim and move it from fnol_complete to triage.

        Args:
            claim_id: Claim to route
            scores: Expected scores; must match the ones stored on the claim

        Raises:
            NotFoundError: unknown claim
            InvalidTransitionError: claim is unscored or not at fnol_complete
            ValidationFailedError: ``scores`` differ from the stored scores
        """
        result: List[RoutingRecommendation] = []

        def _route(claim: Claim) -> Claim:
            if claim.scores is None:
                raise InvalidTransitionError(
                    f"Claim {claim.id} must be scored before routing",
                    current=claim.status.value,
                    requested=ClaimStatus.TRIAGE.value,
                )
            if scores is not None and scores != claim.scores:
                raise ValidationFailedError(
                    "Scores supplied for routing do not match the claim's scores",
                    field="scores",
                )
            if claim.status != ClaimStatus.FNOL_COMPLETE:
                raise InvalidTransitionError(
                    f"Claim {claim.id} cannot enter triage from '{claim.status.value}'",
                    current=claim.status.value,
                    requested=ClaimStatus.TRIAGE.value,
                )
            routing = route_scores(claim.scores)
            result.append(routing)
            routed = claim.model_copy(update={"routing": routing, "status": ClaimStatus.TRIAGE})
            routed, _ = append_notification(
                routed,
                NotificationType.STATUS_UPDATE,
                f"Claim triaged successfully. Routed to {routing.adjuster_type.value} adjuster.",
                self._clock(),
            )
            return routed

        self.store.mutate(claim_id, _route)
        routing = result[0]
        logger.info(f"Claim {claim_id} routed: {routing.adjuster_type.value} - {routing.reason}")
        return routing

    def assign(self, claim_id: str) -> Claim:
        """
        Assign a triaged claim to the adjuster for its routed tier.

        Raises:
            NotFoundError: unknown claim
            InvalidTransitionError: claim is not in triage
        """
        def _assign(claim: Claim) -> Claim:
            if claim.status != ClaimStatus.TRIAGE or claim.routing is None:
                raise InvalidTransitionError(
                    f"Claim {claim.id} cannot be assigned from '{claim.status.value}'",
                    current=claim.status.value,
                    requested=ClaimStatus.ASSIGNED.value,
                )
            now = self._clock()
            adjuster = ADJUSTER_NAMES[claim.routing.adjuster_type]
            assigned = claim.model_copy(update={
                "status": ClaimStatus.ASSIGNED,
                "assigned_adjuster": adjuster,
                "estimated_completion": now + timedelta(days=claim.routing.estimated_resolution_days),
            })
            assigned, _ = append_notification(
                assigned,
                NotificationType.ASSIGNMENT,
                f"Your claim has been assigned to {adjuster}.",
                now,
            )
            return assigned

        claim = self.store.mutate(claim_id, _assign)
        logger.info(f"Claim {claim_id} assigned to {claim.assigned_adjuster}")
        return claim

    def triage_claim(self, claim_id: str) -> TriageResult:
        """Score then route a claim."""
        scores = self.compute_scores(claim_id)
        routing = self.compute_routing(claim_id, scores)
        return TriageResult(
            claim_id=claim_id,
            scores=scores,
            routing=routing,
            status=ClaimStatus.TRIAGE,
        )

    def advance_status(self, claim_id: str, status: ClaimStatus) -> Claim:
        """
        Move a claim one stage forward on behalf of an external process.

        Raises:
            InvalidTransitionError: regression, skipped stage, or a transition
                this service owns (triage, assigned)
        """
        target = ClaimStatus(status)
        if target in SERVICE_OWNED_STATUSES:
            raise InvalidTransitionError(
                f"Use routing/assignment to move a claim to '{target.value}'",
                requested=target.value,
            )

        def _advance(claim: Claim) -> Claim:
            if claim.status == target:
                raise InvalidTransitionError(
                    f"Claim {claim.id} is already '{target.value}'",
                    current=claim.status.value,
                    requested=target.value,
                )
            updated = claim.model_copy(update={"status": target})
            updated, _ = append_notification(
                updated,
                NotificationType.STATUS_UPDATE,
                f"Your claim has moved to {target.value}.",
                self._clock(),
            )
            return updated

        claim = self.store.mutate(claim_id, _advance)
        logger.info(f"Claim {claim_id} advanced to {target.value}")
        return claim


# Singleton instance
_service: Optional[TriageService] = None


def get_triage_service() -> TriageService:
    """Get or create the triage service singleton."""
    global _service
    if _service is None:
        _service = TriageService()
    return _service
