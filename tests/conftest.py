"""
Shared fixtures for the GalaChain Wallet test suite.

Nothing here touches the network or the real OS keychain.
"""

import json
from concurrent.futures import Future
from unittest.mock import Mock

import pytest
import requests

from networks import NETWORKS
from wallet import keychain

# Standard BIP-39 vector (all-zero entropy)
ZERO_PHRASE = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"
OTHER_PHRASE = "legal winner thank year wave sausage worth useful legal winner thank yellow"


def make_response(status: int = 200, body=None, text: str = None) -> requests.Response:
    """Build a real requests.Response with the given status and JSON body."""
    response = requests.Response()
    response.status_code = status
    if text is None:
        text = json.dumps(body) if body is not None else ""
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    response.url = "http://localhost/test"
    return response


class FakeSleep:
    """Awaitable sleep that records requested delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ManualExecutor:
    """Executor whose futures stay pending until the test resolves them."""

    def __init__(self):
        self.submitted = []  # (fn, args, future)
        self.shut_down = False

    def submit(self, fn, *args):
        future = Future()
        self.submitted.append((fn, args, future))
        return future

    def complete(self, index: int = -1, value=None) -> None:
        self.submitted[index][2].set_result(value)

    def fail(self, index: int = -1, error: BaseException = None) -> None:
        self.submitted[index][2].set_exception(error)

    def run(self, index: int = -1) -> None:
        """Execute the submitted callable now and resolve its future."""
        fn, args, future = self.submitted[index]
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)

    def shutdown(self, wait: bool = True) -> None:
        self.shut_down = True


@pytest.fixture
def chain_config():
    return NETWORKS["local"]


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def http_session():
    """Mocked requests session; set .post.side_effect / .return_value per test."""
    session = Mock()
    session.headers = {}
    return session


@pytest.fixture
def executor():
    return ManualExecutor()


@pytest.fixture
def fast_argon2(monkeypatch):
    """Cheap Argon2 parameters so encrypted store tests run quickly."""
    monkeypatch.setattr(keychain, "ARGON2_TIME_COST", 1)
    monkeypatch.setattr(keychain, "ARGON2_MEMORY_COST", 64)
    monkeypatch.setattr(keychain, "ARGON2_PARALLELISM", 1)
