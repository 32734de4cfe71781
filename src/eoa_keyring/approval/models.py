"""
Signing request models.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class KeyringRequest:
    """A signing request submitted by a calling application."""

    id: str
    method: str
    params: Any = field(default_factory=list)
    account: Optional[str] = None
    scope: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert request to the keyring wire shape."""
        return {
            "id": self.id,
            "scope": self.scope,
            "account": self.account,
            "request": {
                "method": self.method,
                "params": copy.deepcopy(self.params),
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyringRequest":
        """
        Build a request from its wire shape.

        Accepts both the nested ``{"request": {"method", "params"}}`` form
        and a flat ``{"method", "params"}`` form.
        """
        inner = data.get("request") or data
        params = inner.get("params")
        return cls(
            id=data["id"],
            method=inner["method"],
            params=copy.deepcopy(params) if params is not None else [],
            account=data.get("account"),
            scope=data.get("scope", ""),
        )


@dataclass
class SubmitRequestResponse:
    """Outcome of submitting a request."""

    pending: bool
    result: Any = None
    redirect: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        if self.pending:
            return {"pending": True, "redirect": dict(self.redirect)}
        return {"pending": False, "result": self.result}


__all__ = ["KeyringRequest", "SubmitRequestResponse"]
