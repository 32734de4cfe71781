"""
Account management - wallets, keys, and the account registry.

The registry lives in ``eoa_keyring.accounts.registry``; it depends on the
state layer, which in turn depends on the models exported here.
"""

from eoa_keyring.accounts.models import KeyringAccount, Wallet
from eoa_keyring.accounts.encryption import KeyEncryption
from eoa_keyring.accounts.wallet import WalletOperations

__all__ = [
    "KeyringAccount",
    "Wallet",
    "KeyEncryption",
    "WalletOperations",
]
