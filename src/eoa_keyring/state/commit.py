"""
Persist-then-notify helper shared by the account registry and request queue.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

from eoa_keyring.errors import PersistenceError
from eoa_keyring.messaging.events import KeyringEvent
from eoa_keyring.messaging.notifier import EventNotifier
from eoa_keyring.monitoring import metrics
from eoa_keyring.state.models import KeyringState
from eoa_keyring.state.store import StateStore

logger = structlog.get_logger()


class StateCommitter:
    """
    Applies mutations to the shared state and makes them durable.

    Usage:
        async with committer.transaction():
            state.wallets[wallet_id] = wallet
        await committer.notify(AccountCreatedEvent(account))

    A mutation that raises, or whose save fails, is rolled back so the
    in-memory state never runs ahead of the durable state.
    """

    def __init__(self, state: KeyringState, store: StateStore, notifier: EventNotifier):
        self.state = state
        self.store = store
        self.notifier = notifier

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[KeyringState]:
        snapshot = self.state.snapshot()
        try:
            yield self.state
            await self.save()
        except Exception:
            self.state.restore(snapshot)
            raise

        metrics.track_state_size(
            accounts=len(self.state.wallets),
            pending_requests=len(self.state.pending_requests),
        )

    async def save(self) -> None:
        """Persist the full state."""
        try:
            await self.store.save(self.state)
        except PersistenceError:
            metrics.persistence_failures_total.inc()
            raise
        except Exception as e:
            metrics.persistence_failures_total.inc()
            logger.error("state_save_failed", error=str(e))
            raise PersistenceError(f"Failed to save state: {e}") from e

    async def notify(self, event: KeyringEvent) -> None:
        """Deliver an event. Failures are logged and never propagate."""
        try:
            await self.notifier.notify(event)
        except Exception as e:
            metrics.notification_failures_total.labels(
                event_type=event.event_type.value,
            ).inc()
            logger.warning(
                "notification_failed",
                event_type=event.event_type.value,
                error=str(e),
            )


__all__ = ["StateCommitter"]
