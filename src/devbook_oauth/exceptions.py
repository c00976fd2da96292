"""
OAuth exception classes for the GitHub sign-in flow.

This module defines the exception hierarchy for every error the loopback
authorization flow can raise or report through a failure event.
"""

from typing import Optional


class DevbookOAuthError(Exception):
    """Base exception for all sign-in flow errors."""

    pass


class ConfigurationError(DevbookOAuthError):
    """OAuth configuration error (missing or invalid configuration)."""

    pass


class PortUnavailableError(DevbookOAuthError):
    """The local callback listener could not bind its port."""

    pass


class InvalidOrReplayedStateError(DevbookOAuthError):
    """Callback state is missing, unknown, expired or already consumed."""

    pass


class AuthorizationError(DevbookOAuthError):
    """The provider redirected back with an error instead of a code."""

    pass


class FlowCancelledError(DevbookOAuthError):
    """The caller cancelled a flow before its callback arrived."""

    pass


class ExchangeError(DevbookOAuthError):
    """
    Failed to exchange an authorization code for an access token.

    Attributes:
        status_code: HTTP status returned by the token endpoint, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ExchangeTimeoutError(ExchangeError):
    """The token endpoint did not answer within the configured deadline."""

    pass
