"""
Wallet key operations.

Handles private key validation, generation, and address derivation.
"""

import secrets
from typing import Callable, Optional, Tuple

from eth_account import Account
import structlog

from eoa_keyring.errors import InvalidKeyError

logger = structlog.get_logger()

# Order of the secp256k1 group
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

PRIVATE_KEY_BYTES = 32


def is_valid_private_key(key: bytes) -> bool:
    """Check that ``key`` is a 32-byte scalar in ``[1, n)``."""
    if len(key) != PRIVATE_KEY_BYTES:
        return False
    return 0 < int.from_bytes(key, "big") < SECP256K1_N


class WalletOperations:
    """
    Key operations for externally-owned accounts.

    Handles:
    - Private key parsing and validation
    - Key generation from an injected randomness source
    - Checksum address derivation
    """

    def __init__(self, randbytes: Optional[Callable[[int], bytes]] = None):
        self.randbytes = randbytes or secrets.token_bytes

    def parse_private_key(self, private_key: str) -> bytes:
        """
        Parse a hex-encoded private key.

        Args:
            private_key: Hex string, with or without ``0x`` prefix

        Returns:
            Raw 32-byte key
        """
        if not isinstance(private_key, str):
            raise InvalidKeyError("Invalid private key")

        hex_key = private_key[2:] if private_key.lower().startswith("0x") else private_key
        try:
            key = bytes.fromhex(hex_key)
        except ValueError as e:
            raise InvalidKeyError("Invalid private key") from e

        if not is_valid_private_key(key):
            raise InvalidKeyError("Invalid private key")
        return key

    def generate_private_key(self) -> bytes:
        """
        Generate a new private key.

        Returns:
            Raw 32-byte key
        """
        key = self.randbytes(PRIVATE_KEY_BYTES)
        if not is_valid_private_key(key):
            raise InvalidKeyError("Invalid private key")
        return key

    def get_address(self, private_key: bytes) -> str:
        """
        Get checksum address from private key.

        Args:
            private_key: Raw private key

        Returns:
            Checksummed wallet address
        """
        return Account.from_key(private_key).address

    def get_key_pair(self, private_key: Optional[str] = None) -> Tuple[str, str]:
        """
        Resolve the key pair for a new account.

        Args:
            private_key: Optional hex private key (generated if not provided)

        Returns:
            Tuple of (private key hex without prefix, checksum address)
        """
        if private_key:
            key = self.parse_private_key(private_key)
        else:
            key = self.generate_private_key()

        address = self.get_address(key)
        logger.debug("key_pair_resolved", address=address, imported=bool(private_key))
        return key.hex(), address


__all__ = ["WalletOperations", "is_valid_private_key", "SECP256K1_N"]
