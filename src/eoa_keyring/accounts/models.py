"""
Account and wallet models.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List


EOA_ACCOUNT_TYPE = "eip155:eoa"

# Fields that never change after an account is created.
READ_ONLY_FIELDS = ("id", "address", "options", "methods", "type")


@dataclass
class KeyringAccount:
    """Public record of one custodied signing identity."""

    id: str
    address: str
    options: Dict[str, Any] = field(default_factory=dict)
    methods: List[str] = field(default_factory=list)
    type: str = EOA_ACCOUNT_TYPE

    # Mutable display fields
    name: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert account to a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "options": copy.deepcopy(self.options),
            "methods": list(self.methods),
            "type": self.type,
            "metadata": copy.deepcopy(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyringAccount":
        """Build an account from its dictionary form."""
        return cls(
            id=data["id"],
            address=data["address"],
            options=copy.deepcopy(data.get("options") or {}),
            methods=list(data.get("methods") or []),
            type=data.get("type", EOA_ACCOUNT_TYPE),
            name=data.get("name", ""),
            metadata=copy.deepcopy(data.get("metadata") or {}),
        )


@dataclass
class Wallet:
    """An account paired with its private key (hex, no 0x prefix)."""

    account: KeyringAccount
    private_key: str

    def __repr__(self) -> str:
        return f"Wallet(account={self.account!r}, private_key=<redacted>)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account.to_dict(),
            "privateKey": self.private_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Wallet":
        return cls(
            account=KeyringAccount.from_dict(data["account"]),
            private_key=data["privateKey"],
        )


__all__ = [
    "EOA_ACCOUNT_TYPE",
    "READ_ONLY_FIELDS",
    "KeyringAccount",
    "Wallet",
]
