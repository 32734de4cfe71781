"""
EOA Keyring - Account custody and signing-request approval engine.

Holds private keys for externally-owned accounts and processes signing
requests on behalf of a calling application.
"""

__version__ = "1.0.0"
__author__ = "EOA Keyring Team"

from eoa_keyring.config import config

__all__ = ["config", "__version__"]
