"""
Account registry.

Owns the wallets (account record + private key) and enforces address
uniqueness and read-only account fields.
"""

from typing import Any, Callable, Dict, List, Optional, Union
from uuid import uuid4

import structlog

from eoa_keyring.accounts.models import (
    EOA_ACCOUNT_TYPE,
    READ_ONLY_FIELDS,
    KeyringAccount,
    Wallet,
)
from eoa_keyring.accounts.wallet import WalletOperations
from eoa_keyring.errors import DuplicateAddressError, InvalidParametersError, NotFoundError
from eoa_keyring.messaging.events import (
    AccountCreatedEvent,
    AccountDeletedEvent,
    AccountUpdatedEvent,
)
from eoa_keyring.monitoring import metrics
from eoa_keyring.signing.methods import ACCOUNT_METHODS
from eoa_keyring.state.commit import StateCommitter

logger = structlog.get_logger()

EVM_CHAIN_NAMESPACE = "eip155:"


def _new_account_id() -> str:
    return str(uuid4())


class AccountRegistry:
    """Registry of custodied accounts."""

    def __init__(
        self,
        committer: StateCommitter,
        wallet_ops: Optional[WalletOperations] = None,
        id_factory: Callable[[], str] = _new_account_id,
    ):
        self.committer = committer
        self.wallet_ops = wallet_ops or WalletOperations()
        self.id_factory = id_factory

    @property
    def _wallets(self) -> Dict[str, Wallet]:
        return self.committer.state.wallets

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def list_accounts(self) -> List[KeyringAccount]:
        """List all accounts in registry order."""
        return [wallet.account for wallet in self._wallets.values()]

    def find_account(self, account_id: str) -> Optional[KeyringAccount]:
        """Get account by ID, or ``None``."""
        wallet = self._wallets.get(account_id)
        return wallet.account if wallet else None

    def get_account(self, account_id: str) -> KeyringAccount:
        """Get account by ID. Raises ``NotFoundError`` if absent."""
        account = self.find_account(account_id)
        if account is None:
            raise NotFoundError(f"Account '{account_id}' not found")
        return account

    def find_wallet_by_address(self, address: str) -> Optional[Wallet]:
        """Get wallet by address (case-insensitive), or ``None``."""
        wanted = address.lower()
        for wallet in self._wallets.values():
            if wallet.account.address.lower() == wanted:
                return wallet
        return None

    def get_wallet_by_address(self, address: str) -> Wallet:
        """Get wallet by address. Raises ``NotFoundError`` if absent."""
        wallet = self.find_wallet_by_address(address)
        if wallet is None:
            raise NotFoundError(f"Account '{address}' not found")
        return wallet

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_account(self, options: Optional[Dict[str, Any]] = None) -> KeyringAccount:
        """
        Create a new account.

        Args:
            options: Options bag. An optional ``privateKey`` entry imports
                that key instead of generating one; it is not kept in the
                account's public options.

        Returns:
            Created account
        """
        if options is not None and not isinstance(options, dict):
            raise InvalidParametersError("Account options must be an object")

        options = dict(options or {})
        private_key = options.pop("privateKey", None)
        private_key_hex, address = self.wallet_ops.get_key_pair(private_key)

        if self.find_wallet_by_address(address) is not None:
            raise DuplicateAddressError(f"Account address already in use: {address}")

        account = KeyringAccount(
            id=self.id_factory(),
            address=address,
            options=options,
            methods=list(ACCOUNT_METHODS),
            type=EOA_ACCOUNT_TYPE,
        )

        async with self.committer.transaction() as state:
            state.wallets[account.id] = Wallet(account=account, private_key=private_key_hex)
        await self.committer.notify(AccountCreatedEvent(account))

        metrics.accounts_created_total.labels(
            source="imported" if private_key else "generated",
        ).inc()
        logger.info(
            "account_created",
            account_id=account.id,
            address=address,
            imported=bool(private_key),
        )
        return account

    async def update_account(
        self,
        patch: Union[KeyringAccount, Dict[str, Any]],
    ) -> KeyringAccount:
        """
        Update account metadata.

        Read-only fields (address, methods, type, options) are always
        restored from the stored account, whatever the patch contains.
        """
        patch_data = patch.to_dict() if isinstance(patch, KeyringAccount) else dict(patch)
        account_id = patch_data.get("id")
        if account_id not in self._wallets:
            raise NotFoundError(f"Account '{account_id}' not found")

        async with self.committer.transaction() as state:
            wallet = state.wallets[account_id]
            current = wallet.account.to_dict()
            merged = {**current, **patch_data}
            for name in READ_ONLY_FIELDS:
                merged[name] = current[name]
            wallet.account = KeyringAccount.from_dict(merged)
            updated = wallet.account

        await self.committer.notify(AccountUpdatedEvent(updated))
        logger.info("account_updated", account_id=account_id)
        return updated

    async def delete_account(self, account_id: str) -> None:
        """Delete an account and its key. Deleting an unknown id is a no-op."""
        async with self.committer.transaction() as state:
            removed = state.wallets.pop(account_id, None)
        await self.committer.notify(AccountDeletedEvent(account_id))

        if removed is not None:
            metrics.accounts_deleted_total.inc()
        logger.info("account_deleted", account_id=account_id, existed=removed is not None)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def export_account(self, account_id: str) -> str:
        """Return the account's private key as 0x-prefixed hex."""
        wallet = self._wallets.get(account_id)
        if wallet is None:
            raise NotFoundError(f"Account '{account_id}' not found")

        logger.warning("account_exported", account_id=account_id)
        return "0x" + wallet.private_key

    def filter_account_chains(self, account_id: str, chains: List[str]) -> List[str]:
        """Keep the CAIP-2 chain ids the account can sign for (every EVM chain)."""
        self.get_account(account_id)
        return [chain for chain in chains if chain.startswith(EVM_CHAIN_NAMESPACE)]


__all__ = ["AccountRegistry"]
