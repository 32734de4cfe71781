"""
Keyring error taxonomy.

Every failure surfaced to a caller is a subclass of ``KeyringError``.
"""


class KeyringError(Exception):
    """Base class for keyring failures."""
    pass


class NotFoundError(KeyringError):
    """Unknown account or request id (or address)."""
    pass


class DuplicateAddressError(KeyringError):
    """An account with the same address already exists."""
    pass


class InvalidKeyError(KeyringError):
    """A supplied private key is not a valid secp256k1 scalar."""
    pass


class InvalidParametersError(KeyringError):
    """Signing method parameters have the wrong shape."""
    pass


class UnsupportedMethodError(KeyringError):
    """The signing method is not handled by this keyring."""
    pass


class SignatureVerificationError(KeyringError):
    """A freshly produced signature did not recover to the signer."""
    pass


class PersistenceError(KeyringError):
    """The state store failed to load or save."""
    pass


class NotificationError(KeyringError):
    """The event notifier failed. Never fatal to the operation."""
    pass


__all__ = [
    "KeyringError",
    "NotFoundError",
    "DuplicateAddressError",
    "InvalidKeyError",
    "InvalidParametersError",
    "UnsupportedMethodError",
    "SignatureVerificationError",
    "PersistenceError",
    "NotificationError",
]
