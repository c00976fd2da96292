"""Shared fixtures and fakes for the sign-in flow tests."""

import threading
from typing import List, Optional

import pytest

from devbook_oauth.config import OAuthConfig
from devbook_oauth.models import TokenResult


class RecordingExchangeClient:
    """Exchange client stub that records every call."""

    def __init__(self, result: Optional[TokenResult] = None, error: Optional[Exception] = None):
        self.result = result or TokenResult(access_token="tok123")
        self.error = error
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def exchange(self, code, state, config=None):
        with self._lock:
            self.calls.append((code, state))
        if self.error is not None:
            raise self.error
        return self.result


class RecordingWindow:
    """Window controller that records show/hide calls in order."""

    def __init__(self):
        self.calls: List[str] = []

    def show(self):
        self.calls.append("show")

    def hide(self):
        self.calls.append("hide")


@pytest.fixture
def config():
    """Create test OAuth config."""
    return OAuthConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",
        callback_port=8020,
        scopes=["read:user", "repo"],
    )


@pytest.fixture
def exchange_client():
    return RecordingExchangeClient()


@pytest.fixture
def window():
    return RecordingWindow()
