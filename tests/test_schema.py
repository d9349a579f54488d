"""
Tests for the claim schema.

Covers the status lifecycle order, frozen claims, score bounds and the
patch/draft helpers.
"""

import pytest
from pydantic import ValidationError

from claimsflow.fnol.schema import (
    STATUS_ORDER,
    ClaimDraft,
    ClaimPatch,
    ClaimScores,
    ClaimStatus,
    FNOLSession,
    FNOLStep,
    RoutingRecommendation,
    AdjusterType,
    VehicleInfo,
)


class TestClaimStatus:

    def test_declared_order(self):
        assert [s.value for s in STATUS_ORDER] == [
            "fnol_in_progress",
            "fnol_complete",
            "triage",
            "assigned",
            "investigation",
            "assessment",
            "settlement",
            "closed",
        ]

    def test_next_status_is_immediate_successor(self):
        assert ClaimStatus.FNOL_COMPLETE.next_status() == ClaimStatus.TRIAGE
        assert ClaimStatus.SETTLEMENT.next_status() == ClaimStatus.CLOSED
        assert ClaimStatus.CLOSED.next_status() is None

    def test_rank_increases(self):
        ranks = [s.rank for s in STATUS_ORDER]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == len(ranks)


class TestClaimScores:

    def test_valid_bounds(self):
        scores = ClaimScores(complexity=1, severity=10, fraud_risk=100, customer_value=1, urgency=10)
        assert scores.fraud_risk == 100

    @pytest.mark.parametrize("field,value", [
        ("complexity", 0),
        ("complexity", 11),
        ("severity", 11),
        ("fraud_risk", 0),
        ("fraud_risk", 101),
        ("customer_value", 101),
        ("urgency", 0),
    ])
    def test_out_of_range_rejected(self, field, value):
        data = dict(complexity=5, severity=5, fraud_risk=50, customer_value=50, urgency=5)
        data[field] = value
        with pytest.raises(ValidationError):
            ClaimScores(**data)

    def test_resolution_days_must_be_positive(self):
        with pytest.raises(ValidationError):
            RoutingRecommendation(
                adjuster_type=AdjusterType.JUNIOR,
                reason="x",
                stp_eligible=True,
                estimated_resolution_days=0,
            )


class TestClaim:

    def test_claim_is_frozen(self, claim_factory):
        claim = claim_factory()
        with pytest.raises(ValidationError):
            claim.status = ClaimStatus.TRIAGE

    def test_defaults(self, claim_factory):
        claim = claim_factory()
        assert claim.status == ClaimStatus.FNOL_COMPLETE
        assert claim.scores is None
        assert claim.routing is None
        assert claim.notifications == []
        assert claim.photo_count == 3

    def test_empty_id_rejected(self, claim_factory):
        with pytest.raises(ValidationError):
            claim_factory(claim_id="  ")

    def test_json_round_trip_preserves_claim(self, claim_factory):
        claim = claim_factory()
        assert type(claim).model_validate_json(claim.model_dump_json()) == claim


class TestClaimPatch:

    def test_fixed_facts_not_patchable(self):
        with pytest.raises(ValidationError):
            ClaimPatch(description="rewritten")

    def test_changes_only_include_set_fields(self):
        patch = ClaimPatch(assigned_adjuster="Alex Thompson")
        assert patch.changes() == {"assigned_adjuster": "Alex Thompson"}

    @pytest.mark.parametrize("field,value", [
        ("scores", {"complexity": 1, "severity": 1, "fraud_risk": 99, "customer_value": 50, "urgency": 1}),
        ("routing", {"adjuster_type": "junior", "reason": "forged", "stp_eligible": True, "estimated_resolution_days": 5}),
    ])
    def test_triage_output_not_patchable(self, field, value):
        with pytest.raises(ValidationError):
            ClaimPatch(**{field: value})


class TestDraft:

    def test_merge_ignores_none(self):
        draft = ClaimDraft(customer_name="John Smith")
        merged = draft.merge(customer_name=None, accident_location="Main St")
        assert merged.customer_name == "John Smith"
        assert merged.accident_location == "Main St"
        assert draft.accident_location is None

    def test_new_session_starts_at_greeting(self):
        session = FNOLSession()
        assert session.current_step == FNOLStep.GREETING
        assert not session.is_complete
        assert session.claim_id is None


def test_vehicle_label():
    assert VehicleInfo(make="Toyota", model="Camry", year=2022).label() == "2022 Toyota Camry"
    assert VehicleInfo(make="Unknown", model="Unknown").label() == "Unknown Unknown"


def test_vehicle_is_immutable():
    vehicle = VehicleInfo(make="Toyota", model="Camry", year=2022)
    with pytest.raises(ValidationError):
        vehicle.year = 1999
    assert vehicle.model_copy(update={"year": 2023}).year == 2023
