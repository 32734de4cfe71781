"""
Event definitions for keyring notifications.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from eoa_keyring.accounts.models import KeyringAccount


class KeyringEventType(str, Enum):
    """Event types."""

    # Account lifecycle events
    ACCOUNT_CREATED = "notify:accountCreated"
    ACCOUNT_UPDATED = "notify:accountUpdated"
    ACCOUNT_DELETED = "notify:accountDeleted"

    # Request events
    REQUEST_APPROVED = "notify:requestApproved"
    REQUEST_REJECTED = "notify:requestRejected"


@dataclass
class KeyringEvent:
    """Base event class."""

    event_type: KeyringEventType
    timestamp: datetime
    data: Dict[str, Any]

    def __init__(self, event_type: KeyringEventType, data: Dict[str, Any]):
        self.event_type = event_type
        self.timestamp = datetime.now(timezone.utc)
        self.data = data

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }


# ============== ACCOUNT EVENTS ==============

class AccountCreatedEvent(KeyringEvent):
    """Event fired when an account is created."""

    def __init__(self, account: KeyringAccount):
        super().__init__(
            event_type=KeyringEventType.ACCOUNT_CREATED,
            data={"account": account.to_dict()},
        )


class AccountUpdatedEvent(KeyringEvent):
    """Event fired when account metadata is updated."""

    def __init__(self, account: KeyringAccount):
        super().__init__(
            event_type=KeyringEventType.ACCOUNT_UPDATED,
            data={"account": account.to_dict()},
        )


class AccountDeletedEvent(KeyringEvent):
    """Event fired when an account is deleted."""

    def __init__(self, account_id: str):
        super().__init__(
            event_type=KeyringEventType.ACCOUNT_DELETED,
            data={"id": account_id},
        )


# ============== REQUEST EVENTS ==============

class RequestApprovedEvent(KeyringEvent):
    """Event fired when a pending request is approved and signed."""

    def __init__(self, request_id: str, result: Any):
        super().__init__(
            event_type=KeyringEventType.REQUEST_APPROVED,
            data={"id": request_id, "result": result},
        )


class RequestRejectedEvent(KeyringEvent):
    """Event fired when a pending request is rejected."""

    def __init__(self, request_id: str):
        super().__init__(
            event_type=KeyringEventType.REQUEST_REJECTED,
            data={"id": request_id},
        )


__all__ = [
    "KeyringEventType",
    "KeyringEvent",
    "AccountCreatedEvent",
    "AccountUpdatedEvent",
    "AccountDeletedEvent",
    "RequestApprovedEvent",
    "RequestRejectedEvent",
]
