"""
Cryptographic primitives backed by eth-account and web3.

Nothing here implements signature math; every function delegates to the
libraries and only converts inputs and outputs.
"""

from typing import Any, Dict, List

from eth_account import Account
from eth_account.datastructures import SignedMessage, SignedTransaction
from eth_account.messages import encode_defunct
from web3 import Web3


def to_signature_hex(signed: SignedMessage) -> str:
    """Concatenated ``r || s || v`` signature as 0x-prefixed hex."""
    return Web3.to_hex(bytes(signed.signature))


def personal_sign(private_key: bytes, message: bytes) -> str:
    """Sign ``message`` with the EIP-191 personal message scheme."""
    signed = Account.sign_message(encode_defunct(primitive=message), private_key)
    return to_signature_hex(signed)


def recover_personal_signature(message: bytes, signature: str) -> str:
    """Recover the checksum address that produced a personal signature."""
    return Account.recover_message(encode_defunct(primitive=message), signature=signature)


def sign_hash(private_key: bytes, message_hash: bytes) -> str:
    """Sign a 32-byte hash directly (``eth_sign``)."""
    signed = Account.unsafe_sign_hash(message_hash, private_key)
    return to_signature_hex(signed)


# Solidity shorthand accepted by the legacy encoding
V1_TYPE_ALIASES = {"uint": "uint256", "int": "int256"}


def _v1_value(entry: Dict[str, Any]) -> Any:
    if entry["type"] == "bytes":
        return Web3.to_bytes(hexstr=entry["value"])
    if entry["type"] == "address":
        return Web3.to_checksum_address(entry["value"])
    return entry["value"]


def typed_data_v1_hash(typed_data: List[Dict[str, Any]]) -> bytes:
    """
    Hash legacy (v1) typed data.

    ``keccak(keccak(schema...) || keccak(values...))`` where the schema is
    ``"<type> <name>"`` per entry, all packed with solidity tight encoding.
    The schema keeps the type as written; values are packed with
    ``uint``/``int`` widened to 256 bits.
    """
    types = [V1_TYPE_ALIASES.get(entry["type"], entry["type"]) for entry in typed_data]
    values = [_v1_value(entry) for entry in typed_data]
    schema = [f"{entry['type']} {entry['name']}" for entry in typed_data]

    schema_hash = Web3.solidity_keccak(["string"] * len(schema), schema)
    values_hash = Web3.solidity_keccak(types, values)
    return bytes(Web3.solidity_keccak(["bytes32", "bytes32"], [schema_hash, values_hash]))


def sign_typed_data_v1(private_key: bytes, typed_data: List[Dict[str, Any]]) -> str:
    """Sign legacy (v1) typed data."""
    return sign_hash(private_key, typed_data_v1_hash(typed_data))


def sign_typed_data(private_key: bytes, typed_data: Dict[str, Any]) -> str:
    """Sign EIP-712 typed data (v3/v4 payload)."""
    signed = Account.sign_typed_data(private_key, full_message=typed_data)
    return to_signature_hex(signed)


def sign_transaction(private_key: bytes, transaction: Dict[str, Any]) -> SignedTransaction:
    """Sign a normalized transaction dict."""
    return Account.sign_transaction(transaction, private_key)


__all__ = [
    "to_signature_hex",
    "personal_sign",
    "recover_personal_signature",
    "sign_hash",
    "V1_TYPE_ALIASES",
    "typed_data_v1_hash",
    "sign_typed_data_v1",
    "sign_typed_data",
    "sign_transaction",
]
