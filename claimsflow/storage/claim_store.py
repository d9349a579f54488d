"""
SQLite-based claim repository.

Stores each claim as a JSON document with indexed status, accident type
and creation columns. No external database setup required - just works.

Every mutation is a read-modify-write held under the claim's lock: the
new Claim version is computed in memory, checked against the lifecycle
invariants, then written in a single statement.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..fnol.schema import (
    AccidentType,
    Claim,
    ClaimNotification,
    ClaimPatch,
    ClaimStatus,
    NotificationType,
)
from ..utils import KeyedLock, utc_now
from ..utils.config import get_settings
from ..utils.errors import InvalidTransitionError, NotFoundError, ValidationFailedError
from . import notification_log

logger = logging.getLogger(__name__)


def validate_status_change(current: ClaimStatus, target: ClaimStatus) -> None:
    """
    Allow only a no-op or a move to the immediate successor.

    Raises:
        InvalidTransitionError: regression or skipped stage
    """
    if target == current:
        return
    if target.rank < current.rank:
        raise InvalidTransitionError(
            f"Claim status cannot move back from '{current.value}' to '{target.value}'",
            current=current.value,
            requested=target.value,
        )
    if target != current.next_status():
        raise InvalidTransitionError(
            f"Claim status cannot skip from '{current.value}' to '{target.value}'",
            current=current.value,
            requested=target.value,
        )


# Reached only through routing and assignment in the triage service
SERVICE_OWNED_STATUSES = (ClaimStatus.TRIAGE, ClaimStatus.ASSIGNED)


def apply_patch(claim: Claim, patch: ClaimPatch) -> Claim:
    """
    Apply a patch to the mutable state of a claim.

    Raises:
        InvalidTransitionError: invalid status change, or a move into a
            status owned by routing or assignment
    """
    changes = patch.changes()
    if "status" in changes:
        target = changes["status"]
        validate_status_change(claim.status, target)
        if target != claim.status and target in SERVICE_OWNED_STATUSES:
            raise InvalidTransitionError(
                f"Use routing/assignment to move a claim to '{target.value}'",
                current=claim.status.value,
                requested=target.value,
            )
    return claim.model_copy(update=changes)


class ClaimStore:
    """
    SQLite-based storage for claims.

    Usage:
        store = ClaimStore()

        # Save a finalized claim
        store.create(claim)

        # Retrieve
        claim = store.get(claim_id)

        # Read-modify-write under the claim's lock
        store.mutate(claim_id, lambda c: c.model_copy(update={...}))
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the claim store."""
        self.db_path = Path(db_path) if db_path else get_settings().database_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock or utc_now
        self._locks = KeyedLock()
        self._init_db()

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS claims (
                    claim_id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    status TEXT NOT NULL,
                    accident_type TEXT NOT NULL,
                    policy_number TEXT NOT NULL,
                    data TEXT NOT NULL
                )
            """)

            # Create indexes for common queries
            conn.execute("CREATE INDEX IF NOT EXISTS idx_claims_status ON claims(status)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_claims_created ON claims(created_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_claims_accident_type ON claims(accident_type)")

            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def now(self) -> datetime:
        return self._clock()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, claim_id: str) -> Optional[Claim]:
        """
        Retrieve a claim by ID.

        Returns:
            Claim or None if not found
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT data FROM claims WHERE claim_id = ?",
                (claim_id,)
            ).fetchone()

        if row:
            return Claim.model_validate_json(row["data"])
        return None

    def require(self, claim_id: str) -> Claim:
        """Retrieve a claim, raising NotFoundError when it does not exist."""
        claim = self.get(claim_id)
        if claim is None:
            raise NotFoundError("claim", claim_id)
        return claim

    def list_all(
        self,
        statuses: Optional[Iterable[ClaimStatus]] = None,
        accident_type: Optional[AccidentType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Claim]:
        """
        List claims, newest first, with optional filtering.

        Args:
            statuses: Only claims in one of these statuses
            accident_type: Filter by accident type
            limit: Max results
            offset: Pagination offset
        """
        query = "SELECT data FROM claims WHERE 1=1"
        params: list = []

        if statuses is not None:
            values = [ClaimStatus(s).value for s in statuses]
            if not values:
                return []
            query += f" AND status IN ({', '.join('?' for _ in values)})"
            params.extend(values)

        if accident_type:
            query += " AND accident_type = ?"
            params.append(AccidentType(accident_type).value)

        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Claim.model_validate_json(row["data"]) for row in rows]

    def count(self, status: Optional[ClaimStatus] = None) -> int:
        """Count claims, optionally by status."""
        with self._get_connection() as conn:
            if status:
                row = conn.execute(
                    "SELECT COUNT(*) FROM claims WHERE status = ?",
                    (ClaimStatus(status).value,)
                ).fetchone()
            else:
                row = conn.execute("SELECT COUNT(*) FROM claims").fetchone()
            return row[0]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, claim: Claim) -> Claim:
        """
        Save a new claim.

        Raises:
            ValidationFailedError: a claim with the same id already exists
        """
        with self._locks.hold(claim.id):
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        INSERT INTO claims (
                            claim_id, created_at, updated_at, status,
                            accident_type, policy_number, data
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """, (
                        claim.id,
                        claim.created_at.isoformat(),
                        claim.updated_at.isoformat(),
                        claim.status.value,
                        claim.accident_type.value,
                        claim.policy_number,
                        claim.model_dump_json(),
                    ))
                    conn.commit()
            except sqlite3.IntegrityError:
                raise ValidationFailedError(f"Claim {claim.id} already exists", field="id")

        logger.info(f"Claim {claim.id} saved ({claim.accident_type.value}, policy {claim.policy_number})")
        return claim

    def mutate(self, claim_id: str, mutation: Callable[[Claim], Claim]) -> Claim:
        """
        Read-modify-write a claim under its lock.

        ``mutation`` receives the current version and returns the new one. If
        it raises, or returns the current version unchanged, nothing is written.

        Raises:
            NotFoundError: unknown claim id
            InvalidTransitionError: the new version regresses or skips status
            ValidationFailedError: the new version breaks a claim invariant
        """
        with self._locks.hold(claim_id):
            current = self.require(claim_id)
            updated = mutation(current)
            if updated is current:
                return current

            if updated.id != current.id:
                raise ValidationFailedError("Claim id is immutable", field="id")
            validate_status_change(current.status, updated.status)
            if updated.routing is not None and updated.scores is None:
                raise ValidationFailedError("Routing requires scores", field="routing")
            if updated.routing is None and updated.status.rank >= ClaimStatus.TRIAGE.rank:
                raise ValidationFailedError(
                    f"Status '{updated.status.value}' requires a routing recommendation",
                    field="status",
                )

            updated = updated.model_copy(update={"updated_at": self.now()})
            self._write(updated)
            return updated

    def _write(self, claim: Claim) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE claims SET status = ?, updated_at = ?, data = ? WHERE claim_id = ?",
                (claim.status.value, claim.updated_at.isoformat(), claim.model_dump_json(), claim.id),
            )
            conn.commit()

    def update(self, claim_id: str, patch: ClaimPatch) -> Claim:
        """Apply a patch to a claim's mutable state."""
        return self.mutate(claim_id, lambda claim: apply_patch(claim, patch))

    def delete(self, claim_id: str) -> bool:
        """Delete a claim."""
        with self._locks.hold(claim_id):
            with self._get_connection() as conn:
                result = conn.execute(
                    "DELETE FROM claims WHERE claim_id = ?",
                    (claim_id,)
                )
                conn.commit()
        self._locks.discard(claim_id)
        return result.rowcount > 0

    # -------------------------------------------------------------------------
    # Notification log
    # -------------------------------------------------------------------------

    def add_notification(
        self,
        claim_id: str,
        notification_type: NotificationType,
        message: str,
    ) -> ClaimNotification:
        """Append a notification to a claim's log."""
        created: List[ClaimNotification] = []

        def _append(claim: Claim) -> Claim:
            updated, notification = notification_log.append_notification(
                claim, NotificationType(notification_type), message, self.now()
            )
            created.append(notification)
            return updated

        self.mutate(claim_id, _append)
        return created[0]

    def list_notifications(self, claim_id: str, read: Optional[bool] = None) -> List[ClaimNotification]:
        """Notifications in creation order, optionally filtered by read flag."""
        return notification_log.filter_notifications(self.require(claim_id), read)

    def mark_all_read(self, claim_id: str) -> Claim:
        """Mark every notification on a claim as read."""
        return self.mutate(claim_id, notification_log.mark_all_read)


# =============================================================================
# Convenience Functions
# =============================================================================

@lru_cache
def get_claim_store() -> ClaimStore:
    """Get the default claim store (singleton)."""
    return ClaimStore()


def get_claim(claim_id: str) -> Optional[Claim]:
    """Get a claim from the default store."""
    return get_claim_store().get(claim_id)


def update_claim(claim_id: str, patch: ClaimPatch) -> Claim:
    """Update a claim in the default store."""
    return get_claim_store().update(claim_id, patch)


def list_claims(**kwargs) -> List[Claim]:
    """List claims from the default store."""
    return get_claim_store().list_all(**kwargs)
