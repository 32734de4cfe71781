"""
Event notification to the host application.
"""

from eoa_keyring.messaging.events import *
from eoa_keyring.messaging.notifier import EventNotifier, LoggingEventNotifier, RedisEventNotifier

__all__ = [
    "EventNotifier",
    "LoggingEventNotifier",
    "RedisEventNotifier",
    "KeyringEventType",
    "KeyringEvent",
    "AccountCreatedEvent",
    "AccountUpdatedEvent",
    "AccountDeletedEvent",
    "RequestApprovedEvent",
    "RequestRejectedEvent",
]
