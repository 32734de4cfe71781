"""
Engine state and its persistence.
"""

from eoa_keyring.state.models import KeyringState
from eoa_keyring.state.store import StateStore, InMemoryStateStore, JsonFileStateStore
from eoa_keyring.state.commit import StateCommitter

__all__ = [
    "KeyringState",
    "StateStore",
    "InMemoryStateStore",
    "JsonFileStateStore",
    "StateCommitter",
]
