"""
Signing methods and their dispatcher.
"""

from eoa_keyring.signing.methods import EthMethod, ACCOUNT_METHODS
from eoa_keyring.signing.dispatcher import SigningDispatcher

__all__ = ["EthMethod", "ACCOUNT_METHODS", "SigningDispatcher"]
