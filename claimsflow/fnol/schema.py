"""
Canonical schema for motor claims.

Defines the Pydantic models shared by intake, storage and triage:
the finalized Claim, its triage results, photos, notifications and the
ephemeral FNOL session that produces it.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Enums
# ============================================================================


class AccidentType(str, Enum):
    """Closed set of incident categories offered during intake."""
    COLLISION = "collision"
    THEFT = "theft"
    WEATHER = "weather"
    VANDALISM = "vandalism"
    HIT_AND_RUN = "hit_and_run"
    OTHER = "other"


ACCIDENT_TYPE_LABELS = {
    AccidentType.COLLISION: "Collision with another vehicle",
    AccidentType.HIT_AND_RUN: "Hit and run",
    AccidentType.WEATHER: "Weather-related damage",
    AccidentType.THEFT: "Theft or attempted theft",
    AccidentType.VANDALISM: "Vandalism",
    AccidentType.OTHER: "Other",
}


class ClaimStatus(str, Enum):
    """Claim lifecycle stages, declared in their only legal order."""
    FNOL_IN_PROGRESS = "fnol_in_progress"
    FNOL_COMPLETE = "fnol_complete"
    TRIAGE = "triage"
    ASSIGNED = "assigned"
    INVESTIGATION = "investigation"
    ASSESSMENT = "assessment"
    SETTLEMENT = "settlement"
    CLOSED = "closed"

    @property
    def rank(self) -> int:
        return STATUS_ORDER.index(self)

    def next_status(self) -> Optional["ClaimStatus"]:
        """The immediate successor, or None for ``closed``."""
        idx = self.rank + 1
        return STATUS_ORDER[idx] if idx < len(STATUS_ORDER) else None


STATUS_ORDER = list(ClaimStatus)


class AdjusterType(str, Enum):
    """Adjuster tiers a claim can be routed to."""
    JUNIOR = "junior"
    SENIOR = "senior"
    SPECIALIST = "specialist"
    SIU = "siu"


class PhotoCategory(str, Enum):
    FRONT = "front"
    REAR = "rear"
    LEFT = "left"
    RIGHT = "right"
    INTERIOR = "interior"
    DAMAGE = "damage"
    DOCUMENT = "document"


class NotificationType(str, Enum):
    STATUS_UPDATE = "status_update"
    DOCUMENT_REQUEST = "document_request"
    ASSIGNMENT = "assignment"
    PAYMENT = "payment"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class FNOLStep(str, Enum):
    """Intake conversation steps, declared in conversation order."""
    GREETING = "greeting"
    POLICY_VERIFICATION = "policy_verification"
    ACCIDENT_TYPE = "accident_type"
    ACCIDENT_DETAILS = "accident_details"
    LOCATION = "location"
    DAMAGE_DESCRIPTION = "damage_description"
    PHOTO_UPLOAD = "photo_upload"
    ADDITIONAL_INFO = "additional_info"
    REVIEW = "review"
    COMPLETE = "complete"


# ============================================================================
# Claim Sections
# ============================================================================


class VehicleInfo(BaseModel):
    """Insured vehicle descriptor, sourced from the policy."""
    model_config = ConfigDict(frozen=True)

    make: str = Field(description="Vehicle make")
    model: str = Field(description="Vehicle model")
    year: Optional[int] = Field(None, ge=1900, le=2100, description="Model year")
    vin: str = Field(default="", description="Vehicle identification number")
    license_plate: str = Field(default="", description="Registration plate")

    def label(self) -> str:
        parts = [str(self.year) if self.year else "", self.make, self.model]
        return " ".join(p for p in parts if p)


class ClaimPhoto(BaseModel):
    """A photo captured during intake. ``ai_analysis`` is advisory only."""
    id: str = Field(default_factory=_new_id)
    url: str = Field(description="Storage reference for the image")
    category: PhotoCategory = PhotoCategory.DAMAGE
    timestamp: datetime = Field(default_factory=_now)
    ai_analysis: Optional[str] = None


class ClaimNotification(BaseModel):
    """One entry of a claim's append-only notification log."""
    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_now)
    type: NotificationType
    message: str
    read: bool = False


class ClaimScores(BaseModel):
    """Triage signals. Bounds are hard limits."""
    model_config = ConfigDict(frozen=True)

    complexity: int = Field(ge=1, le=10)
    severity: int = Field(ge=1, le=10)
    fraud_risk: int = Field(ge=1, le=100)
    customer_value: int = Field(ge=1, le=100)
    urgency: int = Field(ge=1, le=10)


class RoutingRecommendation(BaseModel):
    """Outcome of the routing decision table."""
    model_config = ConfigDict(frozen=True)

    adjuster_type: AdjusterType
    reason: str
    stp_eligible: bool
    estimated_resolution_days: int = Field(gt=0)


# ============================================================================
# Main Claim Schema
# ============================================================================


class Claim(BaseModel):
    """
    Durable record of a reported incident.

    Instances are frozen: the repository produces a new version for every
    mutation, so a Claim object never changes under a reader.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique claim identifier")

    # Fixed facts
    policy_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    vehicle_info: VehicleInfo
    accident_type: AccidentType
    accident_date: datetime
    accident_location: str
    description: str
    photos: List[ClaimPhoto] = Field(default_factory=list)
    additional_info: Optional[str] = None
    session_id: Optional[str] = None

    # Process state
    status: ClaimStatus = ClaimStatus.FNOL_COMPLETE
    scores: Optional[ClaimScores] = None
    routing: Optional[RoutingRecommendation] = None
    notifications: List[ClaimNotification] = Field(default_factory=list)
    assigned_adjuster: Optional[str] = None
    estimated_completion: Optional[datetime] = None

    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Ensure id is not empty."""
        if not v or not v.strip():
            raise ValueError("id cannot be empty")
        return v.strip()

    @property
    def photo_count(self) -> int:
        return len(self.photos)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)


class ClaimPatch(BaseModel):
    """
    Mutable-state changes accepted by ``update_claim``.

    Fixed facts are not patchable; unknown keys are rejected. Scores and
    routing are set only by the triage service.
    """
    model_config = ConfigDict(extra="forbid")

    status: Optional[ClaimStatus] = None
    assigned_adjuster: Optional[str] = None
    estimated_completion: Optional[datetime] = None

    def changes(self) -> dict:
        """Only the fields the caller actually set."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


# ============================================================================
# Intake Session
# ============================================================================


class MessageMetadata(BaseModel):
    field_captured: Optional[str] = None
    ai_hint: Optional[str] = None
    photos: List[str] = Field(default_factory=list)


class ChatMessage(BaseModel):
    id: str = Field(default_factory=_new_id)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_now)
    metadata: Optional[MessageMetadata] = None


class ClaimDraft(BaseModel):
    """Partially collected claim facts. Every field is optional."""
    policy_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    vehicle_info: Optional[VehicleInfo] = None
    accident_type: Optional[AccidentType] = None
    accident_date: Optional[datetime] = None
    accident_location: Optional[str] = None
    description: Optional[str] = None
    photos: Optional[List[ClaimPhoto]] = None
    additional_info: Optional[str] = None

    def merge(self, **patch) -> "ClaimDraft":
        """Return a new draft with ``patch`` applied; None values are ignored."""
        updates = {k: v for k, v in patch.items() if v is not None}
        return self.model_copy(update=updates, deep=True)


class StepInput(BaseModel):
    """
    One user input addressed to a specific intake step.

    ``text`` carries free-text answers, ``accident_type`` the button
    selection and ``photos`` the upload batch.
    """
    step: FNOLStep
    text: Optional[str] = None
    accident_type: Optional[AccidentType] = None
    photos: List[ClaimPhoto] = Field(default_factory=list)


class FNOLSession(BaseModel):
    """In-flight intake conversation. Never persisted with claims."""
    id: str = Field(default_factory=_new_id)
    messages: List[ChatMessage] = Field(default_factory=list)
    draft: ClaimDraft = Field(default_factory=ClaimDraft)
    current_step: FNOLStep = FNOLStep.GREETING
    is_complete: bool = False
    claim_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    last_activity_at: datetime = Field(default_factory=_now)
