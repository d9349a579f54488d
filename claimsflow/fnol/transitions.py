"""
Intake transition function.

``apply_step`` maps (step, input, draft) to (next step, new draft,
messages). It performs no I/O: collaborator results (policy record,
location advisory) are resolved by the session engine and passed in, so
the function can be driven from an HTTP handler, the CLI or a test.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ..utils.errors import InvalidTransitionError, ValidationFailedError
from .collaborators import PolicyRecord
from .schema import (
    ACCIDENT_TYPE_LABELS,
    AccidentType,
    ChatMessage,
    ClaimDraft,
    ClaimPhoto,
    FNOLStep,
    MessageMetadata,
    MessageRole,
    StepInput,
)

POLICY_NUMBER_PATTERN = re.compile(r"^[A-Z0-9-]{4,32}$")
ISO_TIMESTAMP_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2})?)?")
AFFIRMATIVE_PATTERN = re.compile(r"\b(yes|y|yeah|yep|confirm|submit)\b")
NOTHING_TO_ADD = {"", "none", "no", "n/a", "na", "nothing", "nope"}

# Pattern-recognition hints shown after the accident type is chosen
AI_HINTS = {
    AccidentType.COLLISION: "Pattern detected: Intersection collision - gathering additional witness info may expedite claim",
    AccidentType.THEFT: "Alert: Theft claims require police report - will request documentation",
    AccidentType.HIT_AND_RUN: "Priority flag: Hit-and-run claims fast-tracked for investigation",
    AccidentType.WEATHER: "Weather data confirms severe conditions reported in your area on claim date",
}


@dataclass
class StepOutcome:
    """Result of applying one input to one step."""
    next_step: FNOLStep
    draft: ClaimDraft
    messages: List[ChatMessage] = field(default_factory=list)
    finalize: bool = False


# =============================================================================
# Helper Functions
# =============================================================================


def _assistant(content: str, now: datetime, field_captured: Optional[str] = None) -> ChatMessage:
    metadata = MessageMetadata(field_captured=field_captured) if field_captured else None
    return ChatMessage(role=MessageRole.ASSISTANT, content=content, timestamp=now, metadata=metadata)


def _system(content: str, now: datetime, hint: str, photos: Optional[List[str]] = None) -> ChatMessage:
    return ChatMessage(
        role=MessageRole.SYSTEM,
        content=content,
        timestamp=now,
        metadata=MessageMetadata(ai_hint=hint, photos=photos or []),
    )


def _require_text(step_input: StepInput, field_name: str) -> str:
    text = (step_input.text or "").strip()
    if not text:
        raise ValidationFailedError(f"{field_name} cannot be empty", field=field_name)
    return text


def normalize_policy_number(text: Optional[str]) -> str:
    """Strip and upper-case a policy number, rejecting malformed values."""
    value = (text or "").strip().upper()
    if not value:
        raise ValidationFailedError("Policy number cannot be empty", field="policy_number")
    if not POLICY_NUMBER_PATTERN.match(value):
        raise ValidationFailedError(
            f"Policy number '{value}' is not valid (4-32 letters, digits or dashes)",
            field="policy_number",
        )
    return value


def parse_accident_time(text: str, now: datetime) -> datetime:
    """
    Derive the accident timestamp from free-text timing.

    Recognizes an ISO-8601 date/time anywhere in the text and the words
    ``today``/``yesterday``. Anything else records ``now``.
    """
    lowered = text.lower()
    match = ISO_TIMESTAMP_PATTERN.search(text)
    if match:
        try:
            parsed = datetime.fromisoformat(match.group(0).replace(" ", "T"))
        except ValueError:
            raise ValidationFailedError(f"Could not read date '{match.group(0)}'", field="accident_date")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        if parsed > now:
            raise ValidationFailedError("Accident date cannot be in the future", field="accident_date")
        return parsed
    if "yesterday" in lowered:
        return now - timedelta(days=1)
    return now


def is_affirmative(text: Optional[str]) -> bool:
    return bool(AFFIRMATIVE_PATTERN.search((text or "").lower()))


def is_nothing_to_add(text: Optional[str]) -> bool:
    return (text or "").strip().lower().rstrip(".!") in NOTHING_TO_ADD


def render_summary(draft: ClaimDraft) -> str:
    """Generate the human-readable claim summary shown at review."""
    vehicle = draft.vehicle_info.label() if draft.vehicle_info else "Unknown"
    accident = ACCIDENT_TYPE_LABELS.get(draft.accident_type, "Not provided") if draft.accident_type else "Not provided"
    lines = [
        "**Claim Summary**",
        f"**Policy:** {draft.policy_number or 'Not provided'}",
        f"**Vehicle:** {vehicle}",
        f"**Incident Type:** {accident}",
        f"**Location:** {draft.accident_location or 'Not provided'}",
        f"**Description:** {draft.description or 'Not provided'}",
        f"**Photos:** {len(draft.photos or [])} uploaded",
    ]
    if draft.additional_info:
        lines.append(f"**Additional Info:** {draft.additional_info}")
    return "\n".join(lines)


# =============================================================================
# Step Handlers
# =============================================================================


def _greeting(step_input, draft, now, **_) -> StepOutcome:
    message = _assistant(
        "Hello! I'm your ClaimsFlow assistant, and I'm here to help you report your vehicle "
        "insurance claim quickly and easily.\n\nFirst, I need to verify your policy. Could you "
        "please provide your policy number? It should be on your insurance card.",
        now,
    )
    return StepOutcome(FNOLStep.POLICY_VERIFICATION, draft, [message])


def _policy_verification(step_input, draft, now, policy: Optional[PolicyRecord] = None, **_) -> StepOutcome:
    policy_number = normalize_policy_number(step_input.text)
    if policy is None:
        raise ValidationFailedError(
            f"No active policy found for {policy_number}. Please check the number and try again.",
            field="policy_number",
        )
    new_draft = draft.merge(
        policy_number=policy_number,
        customer_name=policy.customer_name,
        customer_email=policy.customer_email,
        customer_phone=policy.customer_phone,
        vehicle_info=policy.vehicle_info,
    )
    message = _assistant(
        f"Thank you! I found your policy.\n\n**Policy Holder:** {policy.customer_name}\n"
        f"**Vehicle:** {policy.vehicle_info.label()}\n**Policy Status:** Active\n\n"
        "Now, please tell me what type of incident occurred.",
        now,
        field_captured="policy_number",
    )
    return StepOutcome(FNOLStep.ACCIDENT_TYPE, new_draft, [message])


def _accident_type(step_input, draft, now, **_) -> StepOutcome:
    accident_type = step_input.accident_type
    if accident_type is None and step_input.text:
        try:
            accident_type = AccidentType(step_input.text.strip().lower())
        except ValueError:
            raise ValidationFailedError(
                f"'{step_input.text}' is not an accident type; choose one of "
                + ", ".join(t.value for t in AccidentType),
                field="accident_type",
            )
    if accident_type is None:
        raise ValidationFailedError("An accident type must be selected", field="accident_type")

    messages = []
    hint = AI_HINTS.get(accident_type)
    if hint:
        messages.append(_system(hint, now, "Pattern Recognition"))
    label = ACCIDENT_TYPE_LABELS[accident_type]
    messages.append(_assistant(
        f"I understand you're reporting a {label.lower()}.\n\n"
        "When did this incident occur? Please provide the date and approximate time.",
        now,
        field_captured="accident_type",
    ))
    return StepOutcome(FNOLStep.ACCIDENT_DETAILS, draft.merge(accident_type=accident_type), messages)


def _accident_details(step_input, draft, now, **_) -> StepOutcome:
    text = _require_text(step_input, "accident_details")
    accident_date = parse_accident_time(text, now)
    message = _assistant(
        "Got it. Now, where did the incident take place?\n\n"
        "Please provide the address or describe the location (intersection, parking lot, highway, etc.)",
        now,
        field_captured="accident_date",
    )
    return StepOutcome(FNOLStep.LOCATION, draft.merge(accident_date=accident_date), [message])


def _location(step_input, draft, now, advisory: Optional[str] = None, **_) -> StepOutcome:
    location = _require_text(step_input, "accident_location")
    messages = []
    if advisory:
        messages.append(_system(advisory, now, "Location Enrichment"))
    messages.append(_assistant(
        "Thank you. Now please describe the damage to your vehicle in detail.\n\n"
        "What parts of the vehicle were affected? How severe does the damage appear?",
        now,
        field_captured="accident_location",
    ))
    return StepOutcome(FNOLStep.DAMAGE_DESCRIPTION, draft.merge(accident_location=location), messages)


def _damage_description(step_input, draft, now, **_) -> StepOutcome:
    if not (step_input.text or "").strip():
        raise ValidationFailedError("description cannot be empty", field="description")
    message = _assistant(
        "I've recorded the damage description.\n\nNow I'd like you to upload photos of the damage. "
        "This will help our team assess your claim more quickly and accurately.",
        now,
        field_captured="description",
    )
    # Stored verbatim
    return StepOutcome(FNOLStep.PHOTO_UPLOAD, draft.merge(description=step_input.text), [message])


def _photo_upload(step_input, draft, now, **_) -> StepOutcome:
    photos: List[ClaimPhoto] = list(step_input.photos)
    messages = []
    analyses = [p.ai_analysis for p in photos if p.ai_analysis]
    if analyses:
        messages.append(_system(
            "AI Image Analysis Complete: " + ". ".join(analyses),
            now,
            "Damage Detection",
            photos=[p.id for p in photos],
        ))
    opener = (
        "Excellent! I've analyzed the photos you uploaded."
        if photos
        else "No problem, you can upload photos later through the claims portal."
    )
    messages.append(_assistant(
        f"{opener}\n\nIs there any additional information you'd like to add? For example:\n"
        "- Were there any injuries?\n- Were there other vehicles or parties involved?\n"
        "- Is there a police report number?\n\nType \"none\" if there's nothing to add.",
        now,
        field_captured="photos",
    ))
    # merge() skips None, so an empty batch is set explicitly
    new_draft = draft.model_copy(update={"photos": photos}, deep=True)
    return StepOutcome(FNOLStep.ADDITIONAL_INFO, new_draft, messages)


def _additional_info(step_input, draft, now, **_) -> StepOutcome:
    new_draft = draft
    if not is_nothing_to_add(step_input.text):
        new_draft = draft.merge(additional_info=step_input.text.strip())
    message = _assistant(
        "Thank you for providing all the information. Here's a summary of your claim:\n\n"
        f"{render_summary(new_draft)}\n\n"
        "Does everything look correct? Type \"yes\" to submit or \"no\" to make changes.",
        now,
    )
    return StepOutcome(FNOLStep.REVIEW, new_draft, [message])


def _review(step_input, draft, now, **_) -> StepOutcome:
    if is_affirmative(step_input.text):
        return StepOutcome(FNOLStep.COMPLETE, draft, [], finalize=True)
    message = _assistant(
        "No problem! What would you like to change? Please describe the correction needed.",
        now,
    )
    return StepOutcome(FNOLStep.REVIEW, draft, [message])


STEP_HANDLERS = {
    FNOLStep.GREETING: _greeting,
    FNOLStep.POLICY_VERIFICATION: _policy_verification,
    FNOLStep.ACCIDENT_TYPE: _accident_type,
    FNOLStep.ACCIDENT_DETAILS: _accident_details,
    FNOLStep.LOCATION: _location,
    FNOLStep.DAMAGE_DESCRIPTION: _damage_description,
    FNOLStep.PHOTO_UPLOAD: _photo_upload,
    FNOLStep.ADDITIONAL_INFO: _additional_info,
    FNOLStep.REVIEW: _review,
}


def apply_step(
    step: FNOLStep,
    step_input: StepInput,
    draft: ClaimDraft,
    *,
    now: datetime,
    policy: Optional[PolicyRecord] = None,
    advisory: Optional[str] = None,
) -> StepOutcome:
    """
    Apply one input to the current step.

    Args:
        step: The session's current step
        step_input: Input addressed to a step
        draft: Current claim draft (not modified)
        now: Instant used for timestamps
        policy: Policy record resolved for policy_verification (None = not found)
        advisory: Enrichment text resolved for location

    Returns:
        StepOutcome with the next step, new draft and emitted messages

    Raises:
        InvalidTransitionError: input addressed to another step, or step is terminal
        ValidationFailedError: malformed input for this step
    """
    if step_input.step != step:
        raise InvalidTransitionError(
            f"Session is at '{step.value}', cannot accept input for '{step_input.step.value}'",
            current=step.value,
            requested=step_input.step.value,
        )
    handler = STEP_HANDLERS.get(step)
    if handler is None:
        raise InvalidTransitionError(
            f"Session is at terminal step '{step.value}'",
            current=step.value,
            requested=step_input.step.value,
        )
    return handler(step_input, draft, now, policy=policy, advisory=advisory)
