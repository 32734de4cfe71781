"""
Test eth_signTransaction normalization and serialization.
"""

import pytest
from eth_account import Account

from eoa_keyring.accounts.models import KeyringAccount, Wallet
from eoa_keyring.errors import InvalidParametersError
from eoa_keyring.signing.dispatcher import SigningDispatcher
from eoa_keyring.signing.transactions import (
    ACCESS_LIST_TX_TYPE,
    FEE_MARKET_TX_TYPE,
    LEGACY_TX_TYPE,
    normalize_chain_id,
    normalize_transaction,
    select_tx_type,
)

from conftest import TEST_ADDRESS, TEST_PRIVATE_KEY


@pytest.fixture
def dispatcher():
    wallet = Wallet(
        account=KeyringAccount(id="acc-1", address=TEST_ADDRESS),
        private_key=TEST_PRIVATE_KEY[2:],
    )
    return SigningDispatcher(lambda address: wallet)


class TestChainId:
    """Test chainId normalization."""

    @pytest.mark.parametrize("chain_id, expected", [
        ("1", "0x1"),
        ("137", "0x89"),
        (1, "0x1"),
        ("0x1", "0x1"),
        ("0xAA36A7", "0xaa36a7"),
    ])
    def test_canonical_hex(self, chain_id, expected):
        assert normalize_chain_id(chain_id) == expected

    @pytest.mark.parametrize("chain_id", ["mainnet", "0xZZ", None, True, 1.5])
    def test_invalid(self, chain_id):
        with pytest.raises(InvalidParametersError):
            normalize_chain_id(chain_id)

    def test_rewritten_in_place(self, sample_transaction):
        normalize_transaction(sample_transaction)
        assert sample_transaction["chainId"] == "0x1"


class TestTypeSelection:
    """Test transaction type selection."""

    def test_types(self, sample_transaction):
        assert select_tx_type(sample_transaction) == LEGACY_TX_TYPE
        assert select_tx_type({**sample_transaction, "accessList": []}) == ACCESS_LIST_TX_TYPE
        assert select_tx_type({**sample_transaction, "maxFeePerGas": "0x1"}) == FEE_MARKET_TX_TYPE

    def test_fee_market_drops_gas_price(self, sample_transaction):
        sample_transaction.update(maxFeePerGas="0x77359400", maxPriorityFeePerGas="0x3b9aca00")

        normalized = normalize_transaction(sample_transaction)

        assert normalized.tx_type == FEE_MARKET_TX_TYPE
        assert "gasPrice" not in normalized.fields
        assert normalized.fields["type"] == FEE_MARKET_TX_TYPE
        assert normalized.fields["accessList"] == []

    def test_missing_fee_fields(self, sample_transaction):
        del sample_transaction["gasPrice"]
        with pytest.raises(InvalidParametersError, match="gasPrice"):
            normalize_transaction(sample_transaction)

    @pytest.mark.parametrize("field, value", [
        ("from", "0x123"),
        ("to", "not-an-address"),
        ("nonce", "-1"),
        ("value", "lots"),
        ("data", "xyz"),
    ])
    def test_invalid_fields(self, sample_transaction, field, value):
        sample_transaction[field] = value
        with pytest.raises(InvalidParametersError):
            normalize_transaction(sample_transaction)


class TestSignTransaction:
    """Test eth_signTransaction end to end."""

    def test_legacy(self, dispatcher, sample_transaction):
        result = dispatcher.handle("eth_signTransaction", [sample_transaction])

        assert result["type"] == "0x0"
        assert result["chainId"] == "0x1"
        assert result["nonce"] == "0x0"
        assert result["gasLimit"] == "0x5208"
        assert result["gasPrice"] == "0x4a817c800"
        assert result["value"] == "0xde0b6b3a7640000"
        assert result["to"] == "0x3535353535353535353535353535353535353535"
        assert "accessList" not in result
        assert {"v", "r", "s", "hash", "serialized"} <= result.keys()
        assert Account.recover_transaction(result["serialized"]) == TEST_ADDRESS

    def test_request_params_untouched(self, dispatcher, sample_transaction):
        params = [sample_transaction]
        dispatcher.handle("eth_signTransaction", params)
        assert params[0]["chainId"] == "1"

    def test_fee_market(self, dispatcher, sample_transaction):
        del sample_transaction["gasPrice"]
        sample_transaction.update(
            chainId="0x5",
            maxFeePerGas="0x77359400",
            maxPriorityFeePerGas="0x3b9aca00",
        )

        result = dispatcher.handle("eth_signTransaction", [sample_transaction])

        assert result["type"] == "0x2"
        assert result["chainId"] == "0x5"
        assert result["maxFeePerGas"] == "0x77359400"
        assert result["maxPriorityFeePerGas"] == "0x3b9aca00"
        assert result["accessList"] == []
        assert "gasPrice" not in result
        assert Account.recover_transaction(result["serialized"]) == TEST_ADDRESS

    def test_access_list(self, dispatcher, sample_transaction):
        sample_transaction["accessList"] = [{
            "address": "0x3535353535353535353535353535353535353535",
            "storageKeys": ["0x" + "00" * 32],
        }]

        result = dispatcher.handle("eth_signTransaction", [sample_transaction])

        assert result["type"] == "0x1"
        assert result["accessList"][0]["storageKeys"] == ["0x" + "00" * 32]
        assert Account.recover_transaction(result["serialized"]) == TEST_ADDRESS

    def test_missing_chain_id(self, dispatcher, sample_transaction):
        del sample_transaction["chainId"]
        with pytest.raises(InvalidParametersError, match="chainId"):
            dispatcher.handle("eth_signTransaction", [sample_transaction])
