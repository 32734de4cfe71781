"""
Test signing dispatcher.
"""

import json

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from web3 import Web3

from eoa_keyring.accounts.models import KeyringAccount, Wallet
from eoa_keyring.errors import (
    InvalidParametersError,
    NotFoundError,
    SignatureVerificationError,
    UnsupportedMethodError,
)
from eoa_keyring.signing.dispatcher import SigningDispatcher
from eoa_keyring.signing.methods import EthMethod, resolve_method
from eoa_keyring.signing.primitives import sign_hash, typed_data_v1_hash

from conftest import KEY_ONE_ADDRESS, TEST_ADDRESS, TEST_PRIVATE_KEY

HASH_32 = "0x" + "ab" * 32


def legacy_typed_hash(schema, values):
    """keccak(keccak(packed schema) || keccak(packed values))"""
    return bytes(Web3.keccak(Web3.keccak(schema) + Web3.keccak(values)))


def signed_hash_hex(message_hash):
    signed = Account.unsafe_sign_hash(message_hash, TEST_PRIVATE_KEY)
    return Web3.to_hex(bytes(signed.signature))


def lookup(address):
    if address.lower() != TEST_ADDRESS.lower():
        raise NotFoundError(f"Account '{address}' not found")
    return Wallet(
        account=KeyringAccount(id="acc-1", address=TEST_ADDRESS),
        private_key=TEST_PRIVATE_KEY[2:],
    )


@pytest.fixture
def dispatcher():
    return SigningDispatcher(lookup)


class TestMethodResolution:
    """Test method names."""

    def test_legacy_typed_data_alias(self):
        assert resolve_method("eth_signTypedData") is EthMethod.SIGN_TYPED_DATA_V1

    def test_unknown_method(self, dispatcher):
        assert resolve_method("eth_sendTransaction") is None
        with pytest.raises(UnsupportedMethodError, match="eth_sendTransaction"):
            dispatcher.handle("eth_sendTransaction", [])


class TestPersonalSign:
    """Test personal_sign."""

    def test_signature_recovers_to_signer(self, dispatcher):
        message = "0x" + b"Example `personal_sign` message".hex()

        signature = dispatcher.handle("personal_sign", [message, TEST_ADDRESS])

        assert signature.startswith("0x") and len(signature) == 132
        assert Account.recover_message(
            encode_defunct(hexstr=message),
            signature=signature,
        ) == TEST_ADDRESS

    def test_lowercase_address_accepted(self, dispatcher):
        message = "0x" + b"hi".hex()

        signature = dispatcher.handle("personal_sign", [message, TEST_ADDRESS.lower()])

        assert signature == dispatcher.handle("personal_sign", [message, TEST_ADDRESS])

    def test_params_are_not_mutated(self, dispatcher):
        params = ["0x" + b"hi".hex(), TEST_ADDRESS]
        dispatcher.handle("personal_sign", params)
        assert params == ["0x" + b"hi".hex(), TEST_ADDRESS]

    def test_unknown_signer(self, dispatcher):
        with pytest.raises(NotFoundError):
            dispatcher.handle("personal_sign", ["0x00", KEY_ONE_ADDRESS])

    @pytest.mark.parametrize("params", [
        [],
        ["0x00"],
        ["not hex", TEST_ADDRESS],
        ["0x00", "not-an-address"],
        "0x00",
    ])
    def test_invalid_params(self, dispatcher, params):
        with pytest.raises(InvalidParametersError):
            dispatcher.handle("personal_sign", params)

    def test_verification_mismatch(self, dispatcher, monkeypatch):
        monkeypatch.setattr(
            "eoa_keyring.signing.dispatcher.recover_personal_signature",
            lambda message, signature: KEY_ONE_ADDRESS,
        )

        with pytest.raises(SignatureVerificationError, match=TEST_ADDRESS):
            dispatcher.handle("personal_sign", ["0x00", TEST_ADDRESS])


class TestEthSign:
    """Test eth_sign."""

    def test_signs_raw_hash(self, dispatcher):
        signature = dispatcher.handle("eth_sign", [TEST_ADDRESS, HASH_32])

        assert signature == sign_hash(bytes.fromhex(TEST_PRIVATE_KEY[2:]), bytes.fromhex("ab" * 32))
        assert len(signature) == 132

    @pytest.mark.parametrize("data", ["0x" + "ab" * 31, "0x" + "ab" * 33, "ab" * 32])
    def test_requires_32_bytes(self, dispatcher, data):
        with pytest.raises(InvalidParametersError):
            dispatcher.handle("eth_sign", [TEST_ADDRESS, data])


class TestTypedData:
    """Test eth_signTypedData v1, v3 and v4."""

    @pytest.fixture
    def typed_data_v1(self):
        return [
            {"type": "string", "name": "message", "value": "Hi, Alice!"},
            {"type": "uint32", "name": "value", "value": 42},
        ]

    def test_v1_signs_legacy_hash(self, dispatcher, typed_data_v1):
        expected_hash = legacy_typed_hash(
            b"string message" + b"uint32 value",
            b"Hi, Alice!" + (42).to_bytes(4, "big"),
        )
        assert typed_data_v1_hash(typed_data_v1) == expected_hash

        signature = dispatcher.handle("eth_signTypedData_v1", [TEST_ADDRESS, typed_data_v1])

        expected = signed_hash_hex(expected_hash)
        assert signature == expected
        assert dispatcher.handle("eth_signTypedData", [TEST_ADDRESS, typed_data_v1]) == expected

    def test_v1_rejects_malformed_entries(self, dispatcher):
        with pytest.raises(InvalidParametersError):
            dispatcher.handle("eth_signTypedData_v1", [TEST_ADDRESS, [{"type": "string"}]])

    def test_v1_integer_shorthand(self, dispatcher):
        typed_data = [
            {"type": "uint", "name": "amount", "value": 1},
            {"type": "int", "name": "delta", "value": -1},
        ]

        signature = dispatcher.handle("eth_signTypedData_v1", [TEST_ADDRESS, typed_data])

        expected_hash = legacy_typed_hash(
            b"uint amount" + b"int delta",
            (1).to_bytes(32, "big") + b"\xff" * 32,
        )
        assert signature == signed_hash_hex(expected_hash)

    @pytest.mark.parametrize("address", [KEY_ONE_ADDRESS, KEY_ONE_ADDRESS.lower()])
    def test_v1_address_value(self, dispatcher, address):
        typed_data = [{"type": "address", "name": "to", "value": address}]

        signature = dispatcher.handle("eth_signTypedData_v1", [TEST_ADDRESS, typed_data])

        expected_hash = legacy_typed_hash(b"address to", bytes.fromhex(KEY_ONE_ADDRESS[2:]))
        assert signature == signed_hash_hex(expected_hash)

    @pytest.mark.parametrize("value", ["nope", ["0x00"], 42, "0x1234"])
    def test_v1_rejects_invalid_address_value(self, dispatcher, value):
        typed_data = [{"type": "address", "name": "to", "value": value}]

        with pytest.raises(InvalidParametersError, match="not an address"):
            dispatcher.handle("eth_signTypedData_v1", [TEST_ADDRESS, typed_data])

    @pytest.mark.parametrize("method", ["eth_signTypedData_v3", "eth_signTypedData_v4"])
    def test_eip712_recovers_to_signer(self, dispatcher, sample_typed_data, method):
        signature = dispatcher.handle(method, [TEST_ADDRESS, sample_typed_data])

        signable = encode_typed_data(full_message=sample_typed_data)
        assert Account.recover_message(signable, signature=signature) == TEST_ADDRESS

    def test_json_string_payload(self, dispatcher, sample_typed_data):
        from_dict = dispatcher.handle("eth_signTypedData_v4", [TEST_ADDRESS, sample_typed_data])
        from_json = dispatcher.handle(
            "eth_signTypedData_v4",
            [TEST_ADDRESS, json.dumps(sample_typed_data)],
        )
        assert from_dict == from_json

    def test_v3_rejects_arrays(self, dispatcher, sample_typed_data):
        sample_typed_data["types"]["Mail"][1] = {"name": "to", "type": "Person[]"}
        sample_typed_data["message"]["to"] = [sample_typed_data["message"]["to"]]

        with pytest.raises(InvalidParametersError, match="v4"):
            dispatcher.handle("eth_signTypedData_v3", [TEST_ADDRESS, sample_typed_data])

    def test_v4_supports_arrays(self, dispatcher, sample_typed_data):
        sample_typed_data["types"]["Mail"][1] = {"name": "to", "type": "Person[]"}
        sample_typed_data["message"]["to"] = [sample_typed_data["message"]["to"]]

        signature = dispatcher.handle("eth_signTypedData_v4", [TEST_ADDRESS, sample_typed_data])

        signable = encode_typed_data(full_message=sample_typed_data)
        assert Account.recover_message(signable, signature=signature) == TEST_ADDRESS

    @pytest.mark.parametrize("payload", [
        "{not json",
        {"types": {}, "domain": {}},
        [1, 2, 3],
    ])
    def test_malformed_payload(self, dispatcher, payload):
        with pytest.raises(InvalidParametersError):
            dispatcher.handle("eth_signTypedData_v4", [TEST_ADDRESS, payload])
