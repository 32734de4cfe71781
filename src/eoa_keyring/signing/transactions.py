"""
Transaction normalization and serialization for ``eth_signTransaction``.
"""

import string
from dataclasses import dataclass
from typing import Any, Dict, List

from eth_account.datastructures import SignedTransaction
from web3 import Web3

from eoa_keyring.errors import InvalidParametersError

LEGACY_TX_TYPE = 0x0
ACCESS_LIST_TX_TYPE = 0x1
FEE_MARKET_TX_TYPE = 0x2

QUANTITY_FIELDS = (
    "chainId",
    "nonce",
    "gas",
    "gasPrice",
    "maxFeePerGas",
    "maxPriorityFeePerGas",
    "value",
)

REQUIRED_FIELDS = {
    LEGACY_TX_TYPE: ("nonce", "gas", "gasPrice"),
    ACCESS_LIST_TX_TYPE: ("nonce", "gas", "gasPrice"),
    FEE_MARKET_TX_TYPE: ("nonce", "gas", "maxFeePerGas", "maxPriorityFeePerGas"),
}

# Output field order, matching the usual JSON transaction layout
OUTPUT_FIELDS = (
    "chainId",
    "nonce",
    "gasPrice",
    "maxPriorityFeePerGas",
    "maxFeePerGas",
    "gas",
    "to",
    "value",
    "data",
    "accessList",
)


@dataclass
class NormalizedTransaction:
    """A transaction ready for signing."""

    sender: str
    tx_type: int
    fields: Dict[str, Any]


def normalize_chain_id(chain_id: Any) -> str:
    """
    Return the chain id as canonical hex.

    ``"1"`` (decimal string) and ``1`` become ``"0x1"``; hex strings are
    kept as they are, lower-cased.
    """
    if isinstance(chain_id, bool):
        raise InvalidParametersError(f"Invalid chainId: {chain_id!r}")
    if isinstance(chain_id, int):
        return hex(chain_id)
    if isinstance(chain_id, str):
        if chain_id.lower().startswith("0x"):
            try:
                int(chain_id, 16)
            except ValueError as e:
                raise InvalidParametersError(f"Invalid chainId: {chain_id!r}") from e
            return chain_id.lower()
        try:
            return hex(int(chain_id, 10))
        except ValueError as e:
            raise InvalidParametersError(f"Invalid chainId: {chain_id!r}") from e
    raise InvalidParametersError(f"Invalid chainId: {chain_id!r}")


def _is_hex_data(value: Any) -> bool:
    return (
        isinstance(value, str)
        and value[:2].lower() == "0x"
        and all(c in string.hexdigits for c in value[2:])
    )


def _to_quantity(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidParametersError(f"Invalid {name}: {value!r}")
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, str):
        try:
            quantity = int(value, 16) if value.lower().startswith("0x") else int(value, 10)
        except ValueError as e:
            raise InvalidParametersError(f"Invalid {name}: {value!r}") from e
    else:
        raise InvalidParametersError(f"Invalid {name}: {value!r}")

    if quantity < 0:
        raise InvalidParametersError(f"Invalid {name}: {value!r}")
    return quantity


def select_tx_type(tx: Dict[str, Any]) -> int:
    """Pick the transaction type from the fee fields present."""
    if tx.get("maxFeePerGas") is not None or tx.get("maxPriorityFeePerGas") is not None:
        return FEE_MARKET_TX_TYPE
    if tx.get("accessList") is not None:
        return ACCESS_LIST_TX_TYPE
    return LEGACY_TX_TYPE


def normalize_transaction(tx: Dict[str, Any]) -> NormalizedTransaction:
    """
    Validate a transaction object and convert it for signing.

    The ``chainId`` of ``tx`` is rewritten in place to canonical hex.
    """
    if not isinstance(tx, dict):
        raise InvalidParametersError("Transaction must be an object")

    sender = tx.get("from")
    if not isinstance(sender, str) or not Web3.is_address(sender):
        raise InvalidParametersError(f"Invalid transaction sender: {sender!r}")
    if tx.get("chainId") is None:
        raise InvalidParametersError("Transaction chainId is required")

    tx["chainId"] = normalize_chain_id(tx["chainId"])

    source = dict(tx)
    if "gas" not in source and "gasLimit" in source:
        source["gas"] = source["gasLimit"]
    if "data" not in source and "input" in source:
        source["data"] = source["input"]

    tx_type = select_tx_type(source)
    missing = [name for name in REQUIRED_FIELDS[tx_type] if source.get(name) is None]
    if missing:
        raise InvalidParametersError(f"Transaction is missing fields: {', '.join(missing)}")

    fields: Dict[str, Any] = {}
    for name in QUANTITY_FIELDS:
        if source.get(name) is not None:
            fields[name] = _to_quantity(name, source[name])
    fields.setdefault("value", 0)

    if source.get("to"):
        if not isinstance(source["to"], str) or not Web3.is_address(source["to"]):
            raise InvalidParametersError(f"Invalid transaction recipient: {source['to']!r}")
        fields["to"] = Web3.to_checksum_address(source["to"])

    data = source.get("data") or "0x"
    if not _is_hex_data(data):
        raise InvalidParametersError("Transaction data must be a hex string")
    fields["data"] = data

    if tx_type == FEE_MARKET_TX_TYPE:
        fields.pop("gasPrice", None)
    if tx_type != LEGACY_TX_TYPE:
        access_list = source.get("accessList") or []
        if not isinstance(access_list, list):
            raise InvalidParametersError("Transaction accessList must be a list")
        fields["accessList"] = access_list
        fields["type"] = tx_type

    return NormalizedTransaction(sender=sender, tx_type=tx_type, fields=fields)


def _hex_access_list(access_list: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "address": entry["address"],
            "storageKeys": list(entry.get("storageKeys", [])),
        }
        for entry in access_list
    ]


def serialize_transaction(
    normalized: NormalizedTransaction,
    signed: SignedTransaction,
) -> Dict[str, Any]:
    """
    Serialize a signed transaction as JSON hex fields tagged with its type.

    ``gas`` is reported as ``gasLimit``; ``serialized`` carries the raw
    encoded transaction.
    """
    fields = normalized.fields
    result: Dict[str, Any] = {"type": hex(normalized.tx_type)}

    for name in OUTPUT_FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        key = "gasLimit" if name == "gas" else name
        if name in QUANTITY_FIELDS:
            result[key] = hex(value)
        elif name == "accessList":
            result[key] = _hex_access_list(value)
        else:
            result[key] = value

    result["v"] = hex(signed.v)
    result["r"] = hex(signed.r)
    result["s"] = hex(signed.s)
    result["hash"] = Web3.to_hex(signed.hash)
    result["serialized"] = Web3.to_hex(signed.raw_transaction)
    return result


__all__ = [
    "LEGACY_TX_TYPE",
    "ACCESS_LIST_TX_TYPE",
    "FEE_MARKET_TX_TYPE",
    "NormalizedTransaction",
    "normalize_chain_id",
    "normalize_transaction",
    "select_tx_type",
    "serialize_transaction",
]
