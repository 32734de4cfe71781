"""
Key encryption and decryption utilities.

Uses AES-256-GCM for private keys stored at rest.
"""

import os
import base64

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.exceptions import InvalidTag
import structlog

logger = structlog.get_logger()

NONCE_BYTES = 12
HKDF_INFO = b"eoa-keyring-v1"


class KeyEncryption:
    """
    Encrypt and decrypt sensitive data using AES-256-GCM.

    The AEAD key is derived from a master secret with HKDF-SHA256.
    """

    def __init__(self, master_secret: str):
        if not master_secret:
            raise ValueError("Encryption master secret must not be empty")

        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=None,
            info=HKDF_INFO,
        )
        self.key = hkdf.derive(master_secret.encode("utf-8"))

        # Initialize AES-GCM
        self.cipher = AESGCM(self.key)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt plaintext string.

        Args:
            plaintext: String to encrypt

        Returns:
            Base64-encoded encrypted data (nonce + ciphertext)
        """
        nonce = os.urandom(NONCE_BYTES)
        ciphertext = self.cipher.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("utf-8")

    def decrypt(self, encrypted_b64: str) -> str:
        """
        Decrypt encrypted string.

        Args:
            encrypted_b64: Base64-encoded encrypted data

        Returns:
            Decrypted plaintext string
        """
        try:
            combined = base64.b64decode(encrypted_b64)
            nonce = combined[:NONCE_BYTES]
            ciphertext = combined[NONCE_BYTES:]
            return self.cipher.decrypt(nonce, ciphertext, None).decode("utf-8")

        except (InvalidTag, ValueError) as e:
            logger.error("decryption_failed", error=type(e).__name__)
            raise


__all__ = ["KeyEncryption"]
