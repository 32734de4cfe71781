"""
Engine state: the unit of persistence.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List

from eoa_keyring.accounts.models import Wallet
from eoa_keyring.approval.models import KeyringRequest


@dataclass
class KeyringState:
    """Engine state, persisted as one document."""

    wallets: Dict[str, Wallet] = field(default_factory=dict)
    pending_requests: Dict[str, KeyringRequest] = field(default_factory=dict)
    use_sync_approvals: bool = False

    # Approved or rejected request ids; never accepted again
    consumed_request_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert state to its JSON-compatible wire shape."""
        return {
            "wallets": {
                wallet_id: wallet.to_dict()
                for wallet_id, wallet in self.wallets.items()
            },
            "pendingRequests": {
                request_id: request.to_dict()
                for request_id, request in self.pending_requests.items()
            },
            "useSyncApprovals": self.use_sync_approvals,
            "consumedRequestIds": list(self.consumed_request_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyringState":
        """Build state from its wire shape. Missing sections default to empty."""
        return cls(
            wallets={
                wallet_id: Wallet.from_dict(wallet)
                for wallet_id, wallet in (data.get("wallets") or {}).items()
            },
            pending_requests={
                request_id: KeyringRequest.from_dict(request)
                for request_id, request in (data.get("pendingRequests") or {}).items()
            },
            use_sync_approvals=bool(data.get("useSyncApprovals", False)),
            consumed_request_ids=list(data.get("consumedRequestIds") or []),
        )

    def snapshot(self) -> "KeyringState":
        """Deep copy used to roll back a failed mutation."""
        return copy.deepcopy(self)

    def restore(self, snapshot: "KeyringState") -> None:
        """Replace contents in place with those of ``snapshot``."""
        self.wallets = snapshot.wallets
        self.pending_requests = snapshot.pending_requests
        self.use_sync_approvals = snapshot.use_sync_approvals
        self.consumed_request_ids = snapshot.consumed_request_ids


__all__ = ["KeyringState"]
