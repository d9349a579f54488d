"""
First Notice of Loss (FNOL) module.

Conversational claim intake: claim schema, the step transition function,
external collaborators and the session engine.
"""

from .collaborators import (
    InMemoryPolicyLookup,
    KeywordPhotoAnalyzer,
    LocationEnricher,
    PhotoAnalyzer,
    PolicyLookup,
    PolicyRecord,
    StaticConditionsEnricher,
)
from .schema import (
    # Enums
    AccidentType,
    AdjusterType,
    ClaimStatus,
    FNOLStep,
    MessageRole,
    NotificationType,
    PhotoCategory,
    # Models
    ChatMessage,
    Claim,
    ClaimDraft,
    ClaimNotification,
    ClaimPatch,
    ClaimPhoto,
    ClaimScores,
    FNOLSession,
    RoutingRecommendation,
    StepInput,
    VehicleInfo,
)
from .session_engine import DRAFT_DEFAULTS, IntakeSessionEngine, build_claim
from .transitions import StepOutcome, apply_step

__all__ = [
    # Engine
    "IntakeSessionEngine",
    "build_claim",
    "DRAFT_DEFAULTS",
    "apply_step",
    "StepOutcome",
    # Collaborators
    "PolicyLookup",
    "PolicyRecord",
    "InMemoryPolicyLookup",
    "LocationEnricher",
    "StaticConditionsEnricher",
    "PhotoAnalyzer",
    "KeywordPhotoAnalyzer",
    # Enums
    "AccidentType",
    "AdjusterType",
    "ClaimStatus",
    "FNOLStep",
    "MessageRole",
    "NotificationType",
    "PhotoCategory",
    # Models
    "ChatMessage",
    "Claim",
    "ClaimDraft",
    "ClaimNotification",
    "ClaimPatch",
    "ClaimPhoto",
    "ClaimScores",
    "FNOLSession",
    "RoutingRecommendation",
    "StepInput",
    "VehicleInfo",
]
