"""
Signing method dispatcher.

Resolves a signing method to its handler, validates the parameters, and
returns the signature artifact. Has no persistence or eventing of its own.
"""

import copy
import json
import string
import time
from typing import Any, Callable, Dict, List

from web3 import Web3
import structlog

from eoa_keyring.accounts.models import Wallet
from eoa_keyring.errors import (
    InvalidParametersError,
    KeyringError,
    SignatureVerificationError,
    UnsupportedMethodError,
)
from eoa_keyring.monitoring import metrics
from eoa_keyring.signing.methods import EthMethod, resolve_method
from eoa_keyring.signing.primitives import (
    personal_sign,
    recover_personal_signature,
    sign_hash,
    sign_transaction,
    sign_typed_data,
    sign_typed_data_v1,
)
from eoa_keyring.signing.transactions import normalize_transaction, serialize_transaction

logger = structlog.get_logger()

# Errors raised by eth-account / web3 on malformed input
LIBRARY_INPUT_ERRORS = (TypeError, ValueError, KeyError, AttributeError)


def _parse_hex(name: str, value: Any) -> bytes:
    if (
        not isinstance(value, str)
        or value[:2].lower() != "0x"
        or len(value) % 2
        or not all(c in string.hexdigits for c in value[2:])
    ):
        raise InvalidParametersError(f"{name} must be a 0x-prefixed hex string")
    return bytes.fromhex(value[2:])


def _check_address(value: Any) -> str:
    if not isinstance(value, str) or not Web3.is_address(value):
        raise InvalidParametersError(f"Invalid account address: {value!r}")
    return value


def _unpack(params: Any, count: int, method: EthMethod) -> List[Any]:
    if not isinstance(params, (list, tuple)) or len(params) < count:
        raise InvalidParametersError(
            f"{method.value} expects {count} parameter(s), got {params!r}"
        )
    return list(params[:count])


class SigningDispatcher:
    """
    Dispatches signing requests to their handlers.

    Args:
        lookup: Resolves a signer address to its wallet; raises
            ``NotFoundError`` for unknown addresses.
    """

    def __init__(self, lookup: Callable[[str], Wallet]):
        self.lookup = lookup
        self._handlers: Dict[EthMethod, Callable[[Any], Any]] = {
            EthMethod.PERSONAL_SIGN: self._sign_personal_message,
            EthMethod.SIGN: self._sign_message,
            EthMethod.SIGN_TRANSACTION: self._sign_transaction,
            EthMethod.SIGN_TYPED_DATA_V1: self._sign_typed_data_v1,
            EthMethod.SIGN_TYPED_DATA_V3: self._sign_typed_data_v3,
            EthMethod.SIGN_TYPED_DATA_V4: self._sign_typed_data_v4,
        }

    def handle(self, method: str, params: Any) -> Any:
        """
        Execute a signing method.

        Args:
            method: Method name (e.g. ``personal_sign``)
            params: Method parameters; never mutated

        Returns:
            Signature hex string, or a serialized transaction dict
        """
        eth_method = resolve_method(method)
        if eth_method is None:
            raise UnsupportedMethodError(f"EVM method not supported: {method}")

        params = copy.deepcopy(params) if params is not None else []
        started = time.perf_counter()
        try:
            result = self._handlers[eth_method](params)
        except KeyringError as e:
            metrics.track_signing_failure(eth_method.value, e)
            logger.warning("signing_failed", method=eth_method.value, error=str(e))
            raise

        metrics.track_signing(eth_method.value, time.perf_counter() - started)
        return result

    def _private_key(self, address: str) -> bytes:
        return bytes.fromhex(self.lookup(address).private_key)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _sign_personal_message(self, params: Any) -> str:
        message_hex, sender = _unpack(params, 2, EthMethod.PERSONAL_SIGN)
        message = _parse_hex("Message", message_hex)
        sender = _check_address(sender)

        signature = personal_sign(self._private_key(sender), message)

        recovered = recover_personal_signature(message, signature)
        if recovered.lower() != sender.lower():
            raise SignatureVerificationError(
                f'Signature verification failed for account "{sender}" (got "{recovered}")'
            )
        return signature

    def _sign_message(self, params: Any) -> str:
        sender, data_hex = _unpack(params, 2, EthMethod.SIGN)
        sender = _check_address(sender)
        data = _parse_hex("Data", data_hex)
        if len(data) != 32:
            raise InvalidParametersError("eth_sign data must be exactly 32 bytes")

        return sign_hash(self._private_key(sender), data)

    def _sign_transaction(self, params: Any) -> Dict[str, Any]:
        (tx,) = _unpack(params, 1, EthMethod.SIGN_TRANSACTION)
        normalized = normalize_transaction(tx)
        private_key = self._private_key(normalized.sender)

        try:
            signed = sign_transaction(private_key, normalized.fields)
        except LIBRARY_INPUT_ERRORS as e:
            raise InvalidParametersError(f"Invalid transaction: {e}") from e

        logger.debug(
            "transaction_signed",
            sender=normalized.sender,
            tx_type=hex(normalized.tx_type),
            chain_id=tx["chainId"],
        )
        return serialize_transaction(normalized, signed)

    def _sign_typed_data_v1(self, params: Any) -> str:
        sender, data = _unpack(params, 2, EthMethod.SIGN_TYPED_DATA_V1)
        sender = _check_address(sender)
        data = self._load_typed_data(data)
        if not isinstance(data, list) or not all(
            isinstance(entry, dict) and {"type", "name", "value"} <= entry.keys()
            for entry in data
        ):
            raise InvalidParametersError(
                "Typed data v1 must be a list of {type, name, value} entries"
            )
        for entry in data:
            if entry["type"] == "address" and not (
                isinstance(entry["value"], str) and Web3.is_address(entry["value"])
            ):
                raise InvalidParametersError(
                    f"Typed data v1 field '{entry['name']}' is not an address: {entry['value']!r}"
                )

        private_key = self._private_key(sender)
        try:
            return sign_typed_data_v1(private_key, data)
        except LIBRARY_INPUT_ERRORS as e:
            raise InvalidParametersError(f"Invalid typed data: {e}") from e

    def _sign_typed_data_v3(self, params: Any) -> str:
        sender, data = _unpack(params, 2, EthMethod.SIGN_TYPED_DATA_V3)
        data = self._check_typed_message(self._load_typed_data(data))
        for fields in data["types"].values():
            if any(str(field.get("type", "")).endswith("]") for field in fields):
                raise InvalidParametersError(
                    "Arrays are not supported by typed data v3; use v4"
                )
        return self._sign_typed_message(_check_address(sender), data)

    def _sign_typed_data_v4(self, params: Any) -> str:
        sender, data = _unpack(params, 2, EthMethod.SIGN_TYPED_DATA_V4)
        data = self._check_typed_message(self._load_typed_data(data))
        return self._sign_typed_message(_check_address(sender), data)

    # ------------------------------------------------------------------
    # Typed data helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load_typed_data(data: Any) -> Any:
        if isinstance(data, str):
            try:
                return json.loads(data)
            except ValueError as e:
                raise InvalidParametersError(f"Typed data is not valid JSON: {e}") from e
        return data

    @staticmethod
    def _check_typed_message(data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict) or not {"types", "primaryType", "domain", "message"} <= data.keys():
            raise InvalidParametersError(
                "Typed data must contain types, primaryType, domain and message"
            )
        if not isinstance(data["types"], dict) or not all(
            isinstance(fields, list) and all(isinstance(field, dict) for field in fields)
            for fields in data["types"].values()
        ):
            raise InvalidParametersError("Typed data types must map names to field lists")
        return data

    def _sign_typed_message(self, sender: str, data: Dict[str, Any]) -> str:
        private_key = self._private_key(sender)
        try:
            return sign_typed_data(private_key, data)
        except LIBRARY_INPUT_ERRORS as e:
            raise InvalidParametersError(f"Invalid typed data: {e}") from e


__all__ = ["SigningDispatcher"]
