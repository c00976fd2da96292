"""
Single-use anti-forgery state tokens.

Every flow gets its own token; the callback listener consumes it when the
matching redirect arrives. A token is accepted at most once.
"""

import logging
import secrets
import threading
import time
from typing import Dict, Optional

logger = logging.getLogger(__name__)

STATE_TOKEN_BYTES = 48


class NonceStore:
    """
    Issues and tracks pending OAuth state tokens.

    Membership checks and removal happen under one lock acquisition, so two
    concurrent callbacks replaying the same state cannot both succeed.
    """

    def __init__(self, ttl_seconds: Optional[float] = None):
        """
        Initialize the store.

        Args:
            ttl_seconds: Lifetime of unconsumed tokens. None keeps them until
                consumed or the process exits.
        """
        self.ttl_seconds = ttl_seconds
        self._pending: Dict[str, float] = {}
        self._lock = threading.Lock()

    def issue(self) -> str:
        """
        Generate a new state token and mark it pending.

        Returns:
            Hex-encoded token carrying 48 bytes of randomness
        """
        with self._lock:
            self._prune_expired_locked()
            token = secrets.token_hex(STATE_TOKEN_BYTES)
            while token in self._pending:
                token = secrets.token_hex(STATE_TOKEN_BYTES)
            self._pending[token] = time.monotonic()
            logger.debug(f"Issued state token ({len(self._pending)} pending)")
            return token

    def consume(self, token: Optional[str]) -> bool:
        """
        Remove a pending token if present.

        Args:
            token: State value received on a callback

        Returns:
            True the first time an issued, unexpired token is seen; False otherwise
        """
        if not token or not isinstance(token, str):
            return False

        with self._lock:
            issued_at = self._pending.pop(token, None)

        if issued_at is None:
            return False
        return not self._is_expired(issued_at)

    def prune_expired(self) -> int:
        """Drop expired tokens and return how many were removed."""
        with self._lock:
            return self._prune_expired_locked()

    def __contains__(self, token: object) -> bool:
        if not isinstance(token, str):
            return False
        with self._lock:
            issued_at = self._pending.get(token)
        return issued_at is not None and not self._is_expired(issued_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def _is_expired(self, issued_at: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return time.monotonic() - issued_at > self.ttl_seconds

    def _prune_expired_locked(self) -> int:
        if self.ttl_seconds is None:
            return 0
        expired = [t for t, issued in self._pending.items() if self._is_expired(issued)]
        for token in expired:
            del self._pending[token]
        if expired:
            logger.info(f"Dropped {len(expired)} expired state token(s)")
        return len(expired)
