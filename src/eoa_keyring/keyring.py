"""
Keyring engine.

The caller-facing surface: account lifecycle, signing request approval,
engine state access, and the approval-mode switch. Permission checks are
the caller's responsibility.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

import structlog

from eoa_keyring.accounts.models import KeyringAccount
from eoa_keyring.accounts.registry import AccountRegistry
from eoa_keyring.accounts.wallet import WalletOperations
from eoa_keyring.approval.models import KeyringRequest, SubmitRequestResponse
from eoa_keyring.approval.queue import RequestQueue
from eoa_keyring.errors import (
    DuplicateAddressError,
    InvalidKeyError,
    InvalidParametersError,
    PersistenceError,
)
from eoa_keyring.messaging.notifier import EventNotifier, LoggingEventNotifier
from eoa_keyring.signing.dispatcher import SigningDispatcher
from eoa_keyring.state.commit import StateCommitter
from eoa_keyring.state.models import KeyringState
from eoa_keyring.state.store import InMemoryStateStore, StateStore

logger = structlog.get_logger()


class SimpleKeyring:
    """
    Keyring engine for externally-owned accounts.

    Every mutating call runs under a single lock, so at most one mutation
    touches the state at a time.

    Usage:
        keyring = await SimpleKeyring.load(JsonFileStateStore(path))
        account = await keyring.create_account()
        response = await keyring.submit_request(request)
        result = await keyring.approve_request(request.id)
    """

    def __init__(
        self,
        state: Optional[KeyringState] = None,
        store: Optional[StateStore] = None,
        notifier: Optional[EventNotifier] = None,
        randbytes: Optional[Callable[[int], bytes]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._state = state if state is not None else KeyringState()
        self._committer = StateCommitter(
            state=self._state,
            store=store or InMemoryStateStore(),
            notifier=notifier or LoggingEventNotifier(),
        )

        registry_kwargs = {"id_factory": id_factory} if id_factory else {}
        self._wallet_ops = WalletOperations(randbytes=randbytes)
        self._registry = AccountRegistry(
            self._committer,
            wallet_ops=self._wallet_ops,
            **registry_kwargs,
        )
        self._dispatcher = SigningDispatcher(self._registry.get_wallet_by_address)
        self._queue = RequestQueue(self._committer, self._dispatcher)
        self._lock = asyncio.Lock()

    @classmethod
    async def load(
        cls,
        store: StateStore,
        notifier: Optional[EventNotifier] = None,
        **kwargs: Any,
    ) -> "SimpleKeyring":
        """Build an engine from the state persisted in ``store``."""
        try:
            state = await store.load()
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to load state: {e}") from e

        logger.info(
            "keyring_loaded",
            accounts=len(state.wallets),
            pending_requests=len(state.pending_requests),
            sync_approvals=state.use_sync_approvals,
        )
        return cls(state=state, store=store, notifier=notifier, **kwargs)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def list_accounts(self) -> List[KeyringAccount]:
        return self._registry.list_accounts()

    async def get_account(self, account_id: str) -> KeyringAccount:
        return self._registry.get_account(account_id)

    async def create_account(self, options: Optional[Dict[str, Any]] = None) -> KeyringAccount:
        async with self._lock:
            return await self._registry.create_account(options)

    async def update_account(
        self,
        account: Union[KeyringAccount, Dict[str, Any]],
    ) -> KeyringAccount:
        async with self._lock:
            return await self._registry.update_account(account)

    async def delete_account(self, account_id: str) -> None:
        async with self._lock:
            await self._registry.delete_account(account_id)

    async def export_account(self, account_id: str) -> str:
        return self._registry.export_account(account_id)

    async def filter_account_chains(self, account_id: str, chains: List[str]) -> List[str]:
        return self._registry.filter_account_chains(account_id, chains)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def list_requests(self) -> List[KeyringRequest]:
        return self._queue.list_requests()

    async def get_request(self, request_id: str) -> KeyringRequest:
        return self._queue.get_request(request_id)

    async def submit_request(
        self,
        request: Union[KeyringRequest, Dict[str, Any]],
    ) -> SubmitRequestResponse:
        async with self._lock:
            return await self._queue.submit_request(request)

    async def approve_request(self, request_id: str) -> Any:
        async with self._lock:
            return await self._queue.approve_request(request_id)

    async def reject_request(self, request_id: str) -> None:
        async with self._lock:
            await self._queue.reject_request(request_id)

    # ------------------------------------------------------------------
    # State and approval mode
    # ------------------------------------------------------------------

    async def get_state(self) -> Dict[str, Any]:
        """Full engine state in wire shape (includes key material)."""
        return self._state.to_dict()

    async def set_state(self, data: Dict[str, Any]) -> None:
        """
        Replace the full engine state and persist it.

        Every wallet key must be valid and derive to its account address.
        """
        try:
            new_state = KeyringState.from_dict(data)
            addresses = [wallet.account.address.lower() for wallet in new_state.wallets.values()]
        except (KeyError, TypeError, AttributeError) as e:
            raise InvalidParametersError(f"Malformed state: {e}") from e

        if len(addresses) != len(set(addresses)):
            raise DuplicateAddressError("State contains duplicate account addresses")

        for wallet in new_state.wallets.values():
            key = self._wallet_ops.parse_private_key(wallet.private_key)
            if self._wallet_ops.get_address(key).lower() != wallet.account.address.lower():
                raise InvalidKeyError(
                    f"Private key does not match account address {wallet.account.address}"
                )
            wallet.private_key = key.hex()

        async with self._lock:
            async with self._committer.transaction() as state:
                state.restore(new_state)

        logger.info(
            "state_replaced",
            accounts=len(new_state.wallets),
            pending_requests=len(new_state.pending_requests),
        )

    async def toggle_sync_approvals(self) -> bool:
        """Flip the approval mode. Returns the new value."""
        async with self._lock:
            async with self._committer.transaction() as state:
                state.use_sync_approvals = not state.use_sync_approvals

        logger.info("sync_approvals_toggled", sync_approvals=self._state.use_sync_approvals)
        return self._state.use_sync_approvals

    def is_synchronous_mode(self) -> bool:
        return self._state.use_sync_approvals


__all__ = ["SimpleKeyring"]
