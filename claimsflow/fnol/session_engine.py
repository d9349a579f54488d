"""
FNOL intake session engine.

Owns in-flight intake sessions, drives each one through the transition
function and hands the collected data over to the claim repository as
exactly one Claim at finalization.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional

from ..utils import KeyedLock, utc_now
from ..utils.config import get_settings
from ..utils.errors import InvalidTransitionError, NotFoundError
from .collaborators import (
    InMemoryPolicyLookup,
    LocationEnricher,
    PolicyLookup,
    StaticConditionsEnricher,
)
from .schema import (
    ACCIDENT_TYPE_LABELS,
    AccidentType,
    ChatMessage,
    Claim,
    ClaimDraft,
    ClaimNotification,
    ClaimPhoto,
    ClaimStatus,
    FNOLSession,
    FNOLStep,
    MessageRole,
    NotificationType,
    StepInput,
    VehicleInfo,
)
from .transitions import apply_step, normalize_policy_number

if TYPE_CHECKING:
    from ..storage.claim_store import ClaimStore

logger = logging.getLogger(__name__)


# Fallback for every claim field the conversation left unset
DRAFT_DEFAULTS = {
    "policy_number": "UNVERIFIED",
    "customer_name": "Unknown",
    "customer_email": "Not provided",
    "customer_phone": "Not provided",
    "vehicle_info": VehicleInfo(make="Unknown", model="Unknown", year=None, vin="", license_plate=""),
    "accident_type": AccidentType.COLLISION,
    "accident_location": "Unknown",
    "description": "No description provided",
}

SUBMITTED_MESSAGE = (
    "Your claim has been successfully submitted. A claims adjuster will be assigned shortly."
)


def build_claim(draft: ClaimDraft, now: datetime, session_id: Optional[str] = None) -> Claim:
    """
    Build a finalized Claim from a session draft.

    Unset fields take their DRAFT_DEFAULTS value; an unset accident date
    takes the finalization instant.
    """
    facts = {}
    for name, default in DRAFT_DEFAULTS.items():
        value = getattr(draft, name)
        facts[name] = value if value is not None else default

    return Claim(
        id=str(uuid.uuid4()),
        **facts,
        accident_date=draft.accident_date or now,
        photos=list(draft.photos or []),
        additional_info=draft.additional_info,
        session_id=session_id,
        status=ClaimStatus.FNOL_COMPLETE,
        notifications=[
            ClaimNotification(
                type=NotificationType.STATUS_UPDATE,
                message=SUBMITTED_MESSAGE,
                timestamp=now,
            )
        ],
        created_at=now,
        updated_at=now,
    )


class IntakeSessionEngine:
    """
    Manages FNOL intake sessions.

    Each session is advanced one input at a time under its own lock;
    separate sessions never block each other. Sessions idle for longer than
    ``idle_timeout`` expire and are reported as not found.
    """

    def __init__(
        self,
        store: Optional["ClaimStore"] = None,
        policy_lookup: Optional[PolicyLookup] = None,
        enricher: Optional[LocationEnricher] = None,
        idle_timeout: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if store is None:
            from ..storage.claim_store import get_claim_store
            store = get_claim_store()
        self.store = store
        self.policy_lookup = policy_lookup or InMemoryPolicyLookup()
        self.enricher = enricher or StaticConditionsEnricher()
        self.idle_timeout = idle_timeout or timedelta(minutes=get_settings().session_idle_minutes)
        self._clock = clock or utc_now

        self._sessions: Dict[str, FNOLSession] = {}
        self._registry_lock = threading.Lock()
        self._locks = KeyedLock()

    # -------------------------------------------------------------------------
    # Session registry
    # -------------------------------------------------------------------------

    def _is_expired(self, session: FNOLSession, now: datetime) -> bool:
        return now - session.last_activity_at > self.idle_timeout

    def _load(self, session_id: str) -> FNOLSession:
        now = self._clock()
        with self._registry_lock:
            session = self._sessions.get(session_id)
            if session is not None and self._is_expired(session, now):
                logger.info(f"Session {session_id} expired after {self.idle_timeout}")
                del self._sessions[session_id]
                session = None
        if session is None:
            self._locks.discard(session_id)
            raise NotFoundError("session", session_id)
        return session

    @contextmanager
    def _hold(self, session_id: str) -> Iterator[None]:
        """Hold a known session's lock; unknown ids never get one."""
        with self._registry_lock:
            known = session_id in self._sessions
        if not known:
            raise NotFoundError("session", session_id)
        with self._locks.hold(session_id):
            yield

    def _save(self, session: FNOLSession) -> None:
        with self._registry_lock:
            self._sessions[session.id] = session

    def expire_idle_sessions(self) -> int:
        """Drop every session idle past the timeout. Returns how many were dropped."""
        now = self._clock()
        with self._registry_lock:
            expired = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
            for sid in expired:
                del self._sessions[sid]
        for sid in expired:
            self._locks.discard(sid)
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")
        return len(expired)

    def active_session_count(self) -> int:
        with self._registry_lock:
            return sum(1 for s in self._sessions.values() if not s.is_complete)

    # -------------------------------------------------------------------------
    # Session operations
    # -------------------------------------------------------------------------

    def start_session(self) -> FNOLSession:
        """Open a new session; the greeting is emitted and policy verification awaits input."""
        now = self._clock()
        session = FNOLSession(created_at=now, last_activity_at=now)
        outcome = apply_step(
            FNOLStep.GREETING, StepInput(step=FNOLStep.GREETING), session.draft, now=now
        )
        session = session.model_copy(update={
            "current_step": outcome.next_step,
            "messages": outcome.messages,
        })
        self._save(session)
        logger.info(f"Intake session {session.id} started")
        return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> FNOLSession:
        """Snapshot of a session."""
        return self._load(session_id).model_copy(deep=True)

    def submit_step_input(self, session_id: str, step_input: StepInput) -> FNOLSession:
        """
        Apply one user input to a session.

        Raises:
            NotFoundError: unknown or expired session
            InvalidTransitionError: input is for another step, or session is complete
            ValidationFailedError: malformed input
            DependencyUnavailableError: policy lookup is down (retryable)
        """
        with self._hold(session_id):
            session = self._load(session_id)
            if session.is_complete:
                raise InvalidTransitionError(
                    f"Session {session_id} is complete; start a new session for another claim",
                    current=session.current_step.value,
                    requested=step_input.step.value,
                )
            if step_input.step != session.current_step:
                raise InvalidTransitionError(
                    f"Session is at '{session.current_step.value}', cannot accept input for '{step_input.step.value}'",
                    current=session.current_step.value,
                    requested=step_input.step.value,
                )

            now = self._clock()
            policy = None
            advisory = None
            if step_input.step == FNOLStep.POLICY_VERIFICATION:
                policy_number = normalize_policy_number(step_input.text)
                policy = self.policy_lookup.lookup_policy(policy_number)
            elif step_input.step == FNOLStep.LOCATION and (step_input.text or "").strip():
                advisory = self._enrich(step_input.text.strip(), session.draft.accident_date)

            outcome = apply_step(
                session.current_step,
                step_input,
                session.draft,
                now=now,
                policy=policy,
                advisory=advisory,
            )

            user_message = ChatMessage(
                role=MessageRole.USER,
                content=self._describe_input(step_input),
                timestamp=now,
            )
            updated = session.model_copy(update={
                "draft": outcome.draft,
                "current_step": outcome.next_step,
                "messages": [*session.messages, user_message, *outcome.messages],
                "last_activity_at": now,
            })
            logger.info(f"Session {session_id}: {session.current_step.value} -> {outcome.next_step.value}")

            if outcome.finalize:
                updated, _ = self._finalize(updated, now)

            self._save(updated)
            return updated.model_copy(deep=True)

    def select_accident_type(self, session_id: str, accident_type: AccidentType) -> FNOLSession:
        """Record the accident type button selection."""
        return self.submit_step_input(
            session_id,
            StepInput(step=FNOLStep.ACCIDENT_TYPE, accident_type=AccidentType(accident_type)),
        )

    def upload_photos(self, session_id: str, photos: List[ClaimPhoto]) -> FNOLSession:
        """Submit a photo batch; an empty batch skips photos."""
        return self.submit_step_input(
            session_id,
            StepInput(step=FNOLStep.PHOTO_UPLOAD, photos=list(photos)),
        )

    def finalize(self, session_id: str) -> Optional[Claim]:
        """
        Finalize a session into a Claim.

        Returns:
            The created Claim, or None when the session already produced one
        """
        with self._hold(session_id):
            session = self._load(session_id)
            if session.is_complete:
                logger.info(f"Session {session_id} already finalized as claim {session.claim_id}")
                return None
            now = self._clock()
            updated, claim = self._finalize(session, now)
            self._save(updated)
            return claim

    def abandon_session(self, session_id: str) -> None:
        """Discard a session without creating a claim."""
        with self._hold(session_id):
            self._load(session_id)
            with self._registry_lock:
                del self._sessions[session_id]
        self._locks.discard(session_id)
        logger.info(f"Session {session_id} abandoned")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _finalize(self, session: FNOLSession, now: datetime):
        claim = build_claim(session.draft, now, session_id=session.id)
        self.store.create(claim)
        confirmation = ChatMessage(
            role=MessageRole.ASSISTANT,
            content=(
                "Your claim has been successfully submitted!\n\n"
                f"**Claim ID:** {claim.id[:8].upper()}\n\n"
                "What happens next:\n"
                "1. Your claim will be analyzed and priority scores calculated\n"
                "2. Your claim will be assigned to the most suitable adjuster\n"
                "3. You'll receive updates through the claims portal"
            ),
            timestamp=now,
        )
        updated = session.model_copy(update={
            "current_step": FNOLStep.COMPLETE,
            "is_complete": True,
            "claim_id": claim.id,
            "messages": [*session.messages, confirmation],
            "last_activity_at": now,
        })
        logger.info(f"Session {session.id} finalized as claim {claim.id}")
        return updated, claim

    def _enrich(self, location: str, timestamp: Optional[datetime]) -> Optional[str]:
        """Advisory enrichment; failures never block intake."""
        try:
            return self.enricher.enrich(location, timestamp)
        except Exception as e:
            logger.warning(f"Location enrichment failed, continuing without it: {e}")
            return None

    @staticmethod
    def _describe_input(step_input: StepInput) -> str:
        if step_input.step == FNOLStep.ACCIDENT_TYPE and step_input.accident_type:
            return ACCIDENT_TYPE_LABELS[step_input.accident_type]
        if step_input.step == FNOLStep.PHOTO_UPLOAD:
            return f"Uploaded {len(step_input.photos)} photo(s)"
        return step_input.text or ""
