"""
Append-only notification log nested inside a Claim.

These helpers return new Claim versions; the repository persists them
under the claim's lock.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from ..fnol.schema import Claim, ClaimNotification, NotificationType


def append_notification(
    claim: Claim,
    notification_type: NotificationType,
    message: str,
    now: datetime,
) -> Tuple[Claim, ClaimNotification]:
    """Append a notification with a fresh id and timestamp."""
    notification = ClaimNotification(type=notification_type, message=message, timestamp=now)
    updated = claim.model_copy(update={"notifications": [*claim.notifications, notification]})
    return updated, notification


def filter_notifications(claim: Claim, read: Optional[bool] = None) -> List[ClaimNotification]:
    """Notifications in creation order, optionally only read or unread ones."""
    if read is None:
        return list(claim.notifications)
    return [n for n in claim.notifications if n.read == read]


def mark_all_read(claim: Claim) -> Claim:
    """Set every read flag; message, timestamp and order are untouched."""
    return claim.model_copy(update={
        "notifications": [n.model_copy(update={"read": True}) for n in claim.notifications],
    })
