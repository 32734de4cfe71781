"""
Test configuration and fixtures.
"""

import pytest
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog

from eoa_keyring.errors import NotificationError
from eoa_keyring.keyring import SimpleKeyring
from eoa_keyring.messaging.notifier import EventNotifier
from eoa_keyring.state.store import InMemoryStateStore


# Well-known test key (never use on a live network)
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"

# Addresses of private keys 0x...01 and 0x...02
KEY_ONE_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
KEY_TWO_ADDRESS = "0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF"


# ============== HELPERS ==============

class RecordingNotifier(EventNotifier):
    """Keeps every delivered event."""

    def __init__(self):
        self.events = []

    async def notify(self, event):
        self.events.append(event)

    @property
    def types(self):
        return [event.event_type.value for event in self.events]


class FailingNotifier(EventNotifier):
    """Fails every delivery."""

    def __init__(self):
        self.attempts = 0

    async def notify(self, event):
        self.attempts += 1
        raise NotificationError("host unreachable")


class FailingStore(InMemoryStateStore):
    """In-memory store whose saves fail while ``fail`` is set."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = False
        self.saves = 0

    async def save(self, state):
        if self.fail:
            raise OSError("disk full")
        self.saves += 1
        await super().save(state)


def sequential_randbytes(start=1):
    """Randomness source yielding private keys start, start + 1, ..."""
    counter = {"next": start}

    def randbytes(n):
        value = counter["next"]
        counter["next"] += 1
        return value.to_bytes(n, "big")

    return randbytes


def ids(prefix="acc"):
    counter = {"next": 0}

    def factory():
        counter["next"] += 1
        return f"{prefix}-{counter['next']}"

    return factory


# ============== FIXTURES ==============

@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by CLI tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def notifier():
    """Recording event notifier."""
    return RecordingNotifier()


@pytest.fixture
def store():
    """In-memory store that can be told to fail."""
    return FailingStore()


@pytest.fixture
def keyring(store, notifier):
    """Keyring in asynchronous approval mode with deterministic keys and ids."""
    return SimpleKeyring(
        store=store,
        notifier=notifier,
        randbytes=sequential_randbytes(),
        id_factory=ids(),
    )


@pytest.fixture
def sample_transaction():
    """Legacy transaction from TEST_ADDRESS."""
    return {
        "from": TEST_ADDRESS,
        "to": "0x3535353535353535353535353535353535353535",
        "nonce": "0x0",
        "gasPrice": "0x4a817c800",
        "gasLimit": "0x5208",
        "value": "0xde0b6b3a7640000",
        "data": "0x",
        "chainId": "1",
    }


@pytest.fixture
def sample_typed_data():
    """EIP-712 mail example."""
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "Person": [
                {"name": "name", "type": "string"},
                {"name": "wallet", "type": "address"},
            ],
            "Mail": [
                {"name": "from", "type": "Person"},
                {"name": "to", "type": "Person"},
                {"name": "contents", "type": "string"},
            ],
        },
        "primaryType": "Mail",
        "domain": {
            "name": "Ether Mail",
            "version": "1",
            "chainId": 1,
            "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
        },
        "message": {
            "from": {
                "name": "Cow",
                "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826",
            },
            "to": {
                "name": "Bob",
                "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB",
            },
            "contents": "Hello, Bob!",
        },
    }
