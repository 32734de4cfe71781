"""
Durable storage for the keyring state.

The engine loads state once at start and saves the full state after every
mutation.
"""

import copy
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles
from cryptography.exceptions import InvalidTag
import structlog

from eoa_keyring.accounts.encryption import KeyEncryption
from eoa_keyring.errors import PersistenceError
from eoa_keyring.state.models import KeyringState

logger = structlog.get_logger()

STATE_VERSION = 1


class StateStore(ABC):
    """Abstract state store."""

    @abstractmethod
    async def load(self) -> KeyringState:
        """Load the persisted state, or a default state if none exists."""
        pass

    @abstractmethod
    async def save(self, state: KeyringState) -> None:
        """Persist the full state. Raises ``PersistenceError`` on failure."""
        pass


class InMemoryStateStore(StateStore):
    """Keeps the serialized state in memory. Useful for tests and sync-only hosts."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Optional[Dict[str, Any]] = copy.deepcopy(initial)

    async def load(self) -> KeyringState:
        if self._data is None:
            return KeyringState()
        return KeyringState.from_dict(copy.deepcopy(self._data))

    async def save(self, state: KeyringState) -> None:
        self._data = state.to_dict()

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        """Last saved state in wire shape."""
        return copy.deepcopy(self._data)


class JsonFileStateStore(StateStore):
    """
    JSON file state store.

    Storage format:
    {
      "version": 1,
      "encrypted": bool,
      "state": {"wallets": {...}, "pendingRequests": {...}, "useSyncApprovals": bool}
    }

    With an encryption helper, each wallet's ``privateKey`` is replaced by an
    AES-GCM ``encryptedPrivateKey``.
    """

    def __init__(
        self,
        path: str | Path,
        encryption: Optional[KeyEncryption] = None,
        default_sync_approvals: bool = False,
    ):
        self.path = Path(path).expanduser()
        self.encryption = encryption
        self.default_sync_approvals = default_sync_approvals

    async def load(self) -> KeyringState:
        if not self.path.exists():
            logger.info("state_file_missing", path=str(self.path))
            return KeyringState(use_sync_approvals=self.default_sync_approvals)

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                document = json.loads(await f.read())
            state_data = document["state"]
            if document.get("encrypted"):
                state_data = self._decrypt_keys(state_data)
            state = KeyringState.from_dict(state_data)

        except PersistenceError:
            raise
        except (OSError, ValueError, KeyError, TypeError, InvalidTag) as e:
            logger.error("state_load_failed", path=str(self.path), error=str(e))
            raise PersistenceError(f"Failed to load state from {self.path}: {e}") from e

        logger.debug(
            "state_loaded",
            path=str(self.path),
            wallets=len(state.wallets),
            pending_requests=len(state.pending_requests),
        )
        return state

    async def save(self, state: KeyringState) -> None:
        state_data = state.to_dict()
        if self.encryption is not None:
            state_data = self._encrypt_keys(state_data)

        document = {
            "version": STATE_VERSION,
            "encrypted": self.encryption is not None,
            "state": state_data,
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(document, indent=2, sort_keys=True))
                await f.flush()
            os.replace(tmp_path, self.path)

        except OSError as e:
            logger.error("state_save_failed", path=str(self.path), error=str(e))
            raise PersistenceError(f"Failed to save state to {self.path}: {e}") from e

    def _encrypt_keys(self, state_data: Dict[str, Any]) -> Dict[str, Any]:
        for wallet in state_data["wallets"].values():
            wallet["encryptedPrivateKey"] = self.encryption.encrypt(wallet.pop("privateKey"))
        return state_data

    def _decrypt_keys(self, state_data: Dict[str, Any]) -> Dict[str, Any]:
        if self.encryption is None:
            raise PersistenceError(
                f"State file {self.path} is encrypted but no encryption key is configured"
            )
        for wallet in (state_data.get("wallets") or {}).values():
            wallet["privateKey"] = self.encryption.decrypt(wallet.pop("encryptedPrivateKey"))
        return state_data


__all__ = ["StateStore", "InMemoryStateStore", "JsonFileStateStore"]
