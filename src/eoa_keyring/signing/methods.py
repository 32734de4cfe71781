"""
Signing methods handled by the keyring.
"""

from enum import Enum
from typing import Optional


class EthMethod(str, Enum):
    """EVM signing methods."""
    PERSONAL_SIGN = "personal_sign"
    SIGN = "eth_sign"
    SIGN_TRANSACTION = "eth_signTransaction"
    SIGN_TYPED_DATA_V1 = "eth_signTypedData_v1"
    SIGN_TYPED_DATA_V3 = "eth_signTypedData_v3"
    SIGN_TYPED_DATA_V4 = "eth_signTypedData_v4"


# Legacy name for typed data v1
METHOD_ALIASES = {
    "eth_signTypedData": EthMethod.SIGN_TYPED_DATA_V1,
}

# Capabilities advertised by every account
ACCOUNT_METHODS = [
    EthMethod.PERSONAL_SIGN.value,
    EthMethod.SIGN.value,
    EthMethod.SIGN_TRANSACTION.value,
    EthMethod.SIGN_TYPED_DATA_V1.value,
    EthMethod.SIGN_TYPED_DATA_V3.value,
    EthMethod.SIGN_TYPED_DATA_V4.value,
]


def resolve_method(name: str) -> Optional[EthMethod]:
    """Map a method name to ``EthMethod``, or ``None`` if unsupported."""
    if name in METHOD_ALIASES:
        return METHOD_ALIASES[name]
    try:
        return EthMethod(name)
    except ValueError:
        return None


__all__ = ["EthMethod", "METHOD_ALIASES", "ACCOUNT_METHODS", "resolve_method"]
