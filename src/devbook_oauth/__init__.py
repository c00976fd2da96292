"""
Loopback OAuth sign-in for the Devbook desktop app.

This package runs the GitHub OAuth 2.0 authorization-code flow through a
local HTTP listener: it opens the provider page in the system browser,
validates the redirect against a single-use state token, exchanges the code
for an access token and reports the outcome as an event.

Public API:
    OAuthConfig: OAuth configuration management
    NonceStore: Single-use state tokens
    CallbackListener: Local redirect listener
    TokenExchangeClient: Code-for-token exchange
    OAuthCoordinator: High-level sign-in interface
    FlowEventChannel, FlowSucceeded, FlowFailed: Outcome events

Exceptions:
    DevbookOAuthError: Base exception
    ConfigurationError: Configuration error
    PortUnavailableError: Callback port could not be bound
    InvalidOrReplayedStateError: Forged, stale or replayed callback
    AuthorizationError: Provider denied the authorization
    FlowCancelledError: Flow cancelled by the caller
    ExchangeError: Token exchange failed
    ExchangeTimeoutError: Token endpoint timed out
"""

from .callback_listener import CallbackListener
from .config import OAuthConfig
from .coordinator import OAuthCoordinator
from .events import (
    ACCESS_TOKEN_EVENT,
    ERROR_EVENT,
    FlowEventChannel,
    FlowFailed,
    FlowOutcomeEvent,
    FlowSucceeded,
)
from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    DevbookOAuthError,
    ExchangeError,
    ExchangeTimeoutError,
    FlowCancelledError,
    InvalidOrReplayedStateError,
    PortUnavailableError,
)
from .models import (
    AuthorizationFlow,
    AuthorizationRequest,
    CallbackPayload,
    FlowState,
    TokenResult,
)
from .nonce_store import NonceStore
from .token_exchange import TokenExchangeClient
from .window import CallbackWindowController, NullWindowController, WindowController

__all__ = [
    # Configuration
    "OAuthConfig",
    # Models
    "AuthorizationFlow",
    "AuthorizationRequest",
    "CallbackPayload",
    "FlowState",
    "TokenResult",
    # Components
    "NonceStore",
    "CallbackListener",
    "TokenExchangeClient",
    "OAuthCoordinator",
    # Events
    "ACCESS_TOKEN_EVENT",
    "ERROR_EVENT",
    "FlowEventChannel",
    "FlowFailed",
    "FlowOutcomeEvent",
    "FlowSucceeded",
    # Window
    "WindowController",
    "NullWindowController",
    "CallbackWindowController",
    # Exceptions
    "DevbookOAuthError",
    "ConfigurationError",
    "PortUnavailableError",
    "InvalidOrReplayedStateError",
    "AuthorizationError",
    "FlowCancelledError",
    "ExchangeError",
    "ExchangeTimeoutError",
]
