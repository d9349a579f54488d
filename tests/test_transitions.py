"""
Tests for the intake transition function.

apply_step is pure, so every case drives it directly with a fixed
instant and an explicit draft.
"""

from datetime import datetime, timedelta, timezone

import pytest

from claimsflow.fnol.collaborators import DEMO_POLICIES
from claimsflow.fnol.schema import (
    AccidentType,
    ClaimDraft,
    ClaimPhoto,
    FNOLStep,
    MessageRole,
    StepInput,
)
from claimsflow.fnol.transitions import (
    apply_step,
    is_affirmative,
    is_nothing_to_add,
    normalize_policy_number,
    parse_accident_time,
    render_summary,
)
from claimsflow.utils.errors import InvalidTransitionError, ValidationFailedError

NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)
POLICY = DEMO_POLICIES[0]


def step(current: FNOLStep, draft: ClaimDraft = None, **input_fields):
    return apply_step(current, StepInput(step=current, **input_fields), draft or ClaimDraft(), now=NOW)


# ============================================================================
# Step order
# ============================================================================


class TestStepOrder:

    def test_greeting_moves_to_policy_verification(self):
        outcome = apply_step(FNOLStep.GREETING, StepInput(step=FNOLStep.GREETING), ClaimDraft(), now=NOW)
        assert outcome.next_step == FNOLStep.POLICY_VERIFICATION
        assert outcome.messages[0].role == MessageRole.ASSISTANT
        assert "policy number" in outcome.messages[0].content

    def test_input_for_another_step_rejected(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_step(
                FNOLStep.POLICY_VERIFICATION,
                StepInput(step=FNOLStep.LOCATION, text="Main St"),
                ClaimDraft(),
                now=NOW,
            )
        assert exc_info.value.details == {"current": "policy_verification", "requested": "location"}

    def test_complete_is_terminal(self):
        with pytest.raises(InvalidTransitionError):
            apply_step(FNOLStep.COMPLETE, StepInput(step=FNOLStep.COMPLETE, text="yes"), ClaimDraft(), now=NOW)

    def test_draft_is_not_modified(self):
        draft = ClaimDraft()
        apply_step(
            FNOLStep.LOCATION,
            StepInput(step=FNOLStep.LOCATION, text="Main St"),
            draft,
            now=NOW,
        )
        assert draft.accident_location is None


# ============================================================================
# Policy verification
# ============================================================================


class TestPolicyVerification:

    def test_found_policy_fills_identity_and_vehicle(self):
        outcome = apply_step(
            FNOLStep.POLICY_VERIFICATION,
            StepInput(step=FNOLStep.POLICY_VERIFICATION, text=" pol-123456 "),
            ClaimDraft(),
            now=NOW,
            policy=POLICY,
        )
        assert outcome.next_step == FNOLStep.ACCIDENT_TYPE
        assert outcome.draft.policy_number == "POL-123456"
        assert outcome.draft.customer_name == "John Smith"
        assert outcome.draft.vehicle_info.make == "Toyota"
        assert outcome.messages[0].metadata.field_captured == "policy_number"

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            apply_step(
                FNOLStep.POLICY_VERIFICATION,
                StepInput(step=FNOLStep.POLICY_VERIFICATION, text="POL-000000"),
                ClaimDraft(),
                now=NOW,
                policy=None,
            )
        assert exc_info.value.details["field"] == "policy_number"

    @pytest.mark.parametrize("text", ["", "   ", "ab", "POL 123456", "POL_123456!"])
    def test_malformed_policy_number(self, text):
        with pytest.raises(ValidationFailedError):
            normalize_policy_number(text)


# ============================================================================
# Accident type
# ============================================================================


class TestAccidentType:

    def test_button_selection(self):
        outcome = step(FNOLStep.ACCIDENT_TYPE, accident_type=AccidentType.THEFT)
        assert outcome.next_step == FNOLStep.ACCIDENT_DETAILS
        assert outcome.draft.accident_type == AccidentType.THEFT

    def test_hint_emitted_for_known_pattern(self):
        outcome = step(FNOLStep.ACCIDENT_TYPE, accident_type=AccidentType.HIT_AND_RUN)
        system = [m for m in outcome.messages if m.role == MessageRole.SYSTEM]
        assert len(system) == 1
        assert system[0].metadata.ai_hint == "Pattern Recognition"

    def test_no_hint_for_vandalism(self):
        outcome = step(FNOLStep.ACCIDENT_TYPE, accident_type=AccidentType.VANDALISM)
        assert all(m.role == MessageRole.ASSISTANT for m in outcome.messages)

    def test_text_selection(self):
        outcome = step(FNOLStep.ACCIDENT_TYPE, text="Weather")
        assert outcome.draft.accident_type == AccidentType.WEATHER

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationFailedError):
            step(FNOLStep.ACCIDENT_TYPE, text="meteor strike")

    def test_missing_selection_rejected(self):
        with pytest.raises(ValidationFailedError):
            step(FNOLStep.ACCIDENT_TYPE)


# ============================================================================
# Details, location, description
# ============================================================================


class TestFreeTextSteps:

    def test_iso_date_parsed(self):
        outcome = step(FNOLStep.ACCIDENT_DETAILS, text="It happened on 2025-03-12 17:30")
        assert outcome.next_step == FNOLStep.LOCATION
        assert outcome.draft.accident_date == datetime(2025, 3, 12, 17, 30, tzinfo=timezone.utc)

    def test_yesterday(self):
        assert parse_accident_time("Yesterday evening", NOW) == NOW - timedelta(days=1)

    def test_unrecognized_timing_records_now(self):
        assert parse_accident_time("about an hour ago", NOW) == NOW

    def test_future_date_rejected(self):
        with pytest.raises(ValidationFailedError):
            step(FNOLStep.ACCIDENT_DETAILS, text="2030-01-01")

    def test_empty_details_rejected(self):
        with pytest.raises(ValidationFailedError):
            step(FNOLStep.ACCIDENT_DETAILS, text="  ")

    def test_location_with_advisory(self):
        outcome = apply_step(
            FNOLStep.LOCATION,
            StepInput(step=FNOLStep.LOCATION, text="  Main St & 5th Ave "),
            ClaimDraft(),
            now=NOW,
            advisory="Clear skies",
        )
        assert outcome.next_step == FNOLStep.DAMAGE_DESCRIPTION
        assert outcome.draft.accident_location == "Main St & 5th Ave"
        assert outcome.messages[0].role == MessageRole.SYSTEM
        assert outcome.messages[0].content == "Clear skies"

    def test_location_without_advisory(self):
        outcome = step(FNOLStep.LOCATION, text="Parking lot")
        assert [m.role for m in outcome.messages] == [MessageRole.ASSISTANT]

    def test_description_stored_verbatim(self):
        text = "  Rear bumper crushed.\nTrunk won't open.  "
        outcome = step(FNOLStep.DAMAGE_DESCRIPTION, text=text)
        assert outcome.next_step == FNOLStep.PHOTO_UPLOAD
        assert outcome.draft.description == text

    def test_empty_description_rejected(self):
        with pytest.raises(ValidationFailedError):
            step(FNOLStep.DAMAGE_DESCRIPTION, text="")


# ============================================================================
# Photos, additional info, review
# ============================================================================


class TestPhotoUpload:

    def test_photos_recorded_with_analysis_message(self):
        photos = [
            ClaimPhoto(url="a.jpg", ai_analysis="Dent on door"),
            ClaimPhoto(url="b.jpg", ai_analysis="Scratched bumper"),
        ]
        outcome = step(FNOLStep.PHOTO_UPLOAD, photos=photos)
        assert outcome.next_step == FNOLStep.ADDITIONAL_INFO
        assert [p.url for p in outcome.draft.photos] == ["a.jpg", "b.jpg"]
        system = outcome.messages[0]
        assert system.role == MessageRole.SYSTEM
        assert "Dent on door" in system.content
        assert system.metadata.photos == [p.id for p in photos]

    def test_empty_batch_skips_photos(self):
        outcome = step(FNOLStep.PHOTO_UPLOAD)
        assert outcome.next_step == FNOLStep.ADDITIONAL_INFO
        assert outcome.draft.photos == []
        assert "upload photos later" in outcome.messages[0].content


class TestAdditionalInfo:

    @pytest.mark.parametrize("text", ["none", "None.", "no", "", "N/A"])
    def test_nothing_to_add(self, text):
        assert is_nothing_to_add(text)
        outcome = step(FNOLStep.ADDITIONAL_INFO, text=text)
        assert outcome.next_step == FNOLStep.REVIEW
        assert outcome.draft.additional_info is None

    def test_info_recorded_and_summary_rendered(self):
        draft = ClaimDraft(policy_number="POL-123456", accident_type=AccidentType.COLLISION)
        outcome = step(FNOLStep.ADDITIONAL_INFO, draft, text="Police report #4471")
        assert outcome.draft.additional_info == "Police report #4471"
        assert "**Additional Info:** Police report #4471" in outcome.messages[0].content
        assert "**Policy:** POL-123456" in outcome.messages[0].content


class TestReview:

    @pytest.mark.parametrize("text", ["yes", "Yes, submit it", "y", "confirm"])
    def test_affirmative_finalizes(self, text):
        outcome = step(FNOLStep.REVIEW, text=text)
        assert outcome.next_step == FNOLStep.COMPLETE
        assert outcome.finalize is True

    @pytest.mark.parametrize("text", ["no", "the location is wrong", ""])
    def test_other_answers_stay_at_review(self, text):
        assert not is_affirmative(text)
        outcome = step(FNOLStep.REVIEW, text=text)
        assert outcome.next_step == FNOLStep.REVIEW
        assert outcome.finalize is False


def test_summary_for_empty_draft():
    summary = render_summary(ClaimDraft())
    assert "**Policy:** Not provided" in summary
    assert "**Photos:** 0 uploaded" in summary
