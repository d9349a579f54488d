"""Shared configuration, errors and locking helpers."""

from datetime import datetime, timezone

from .config import Settings, get_settings
from .errors import (
    ClaimsFlowError,
    DependencyUnavailableError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from .locks import KeyedLock


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


__all__ = [
    "Settings",
    "get_settings",
    "ClaimsFlowError",
    "DependencyUnavailableError",
    "InvalidTransitionError",
    "NotFoundError",
    "ValidationFailedError",
    "KeyedLock",
    "utc_now",
]
