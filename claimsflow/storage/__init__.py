"""
Storage module for persisting claims.

Provides SQLite-based storage for finalized claims, their triage results
and their notification logs.
"""

from .claim_store import (
    ClaimStore,
    apply_patch,
    get_claim,
    get_claim_store,
    list_claims,
    update_claim,
    validate_status_change,
)

__all__ = [
    "ClaimStore",
    "apply_patch",
    "get_claim",
    "get_claim_store",
    "list_claims",
    "update_claim",
    "validate_status_change",
]
