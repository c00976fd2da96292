"""
OAuth coordinator for the GitHub sign-in flow.

This module provides the main interface the application uses to sign in.
It issues a state token, opens the provider page in the system browser,
hides the application window, and when the redirect arrives exchanges the
code, publishes exactly one outcome event and shows the window again.

Flow states:
    IDLE -> AWAITING_CALLBACK -> EXCHANGING -> COMPLETED | FAILED
"""

import logging
import threading
import webbrowser
from typing import Callable, Dict, List, Optional

from .callback_listener import CallbackListener
from .config import OAuthConfig
from .events import EventHandler, FlowEventChannel, FlowFailed, FlowOutcomeEvent, FlowSucceeded
from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    FlowCancelledError,
    PortUnavailableError,
)
from .models import AuthorizationFlow, AuthorizationRequest, CallbackPayload, FlowState
from .nonce_store import NonceStore
from .token_exchange import TokenExchangeClient
from .window import NullWindowController, WindowController

logger = logging.getLogger(__name__)


class OAuthCoordinator:
    """
    High-level coordinator for loopback OAuth sign-in.

    Collaborators are injected so the coordinator can run without a real
    browser, window system or network.

    Example:
        coordinator = OAuthCoordinator(config, window=main_window)
        coordinator.subscribe(on_token, event_name="access-token")
        coordinator.request_oauth()
    """

    def __init__(
        self,
        config: Optional[OAuthConfig] = None,
        nonce_store: Optional[NonceStore] = None,
        exchange_client: Optional[TokenExchangeClient] = None,
        listener: Optional[CallbackListener] = None,
        events: Optional[FlowEventChannel] = None,
        window: Optional[WindowController] = None,
        open_url: Callable[[str], object] = webbrowser.open,
    ):
        """
        Initialize OAuth coordinator.

        Args:
            config: OAuth configuration (loads from environment if not provided)
            nonce_store: State token store shared with the listener
            exchange_client: Client for the code-for-token POST
            listener: Callback listener (built on config's port if not provided)
            events: Channel outcome events are published on
            window: Show/hide hooks for the application window
            open_url: Opens a URL in the system browser
        """
        self.config = config if config is not None else OAuthConfig.from_env()
        self.nonce_store = (
            nonce_store if nonce_store is not None else NonceStore(self.config.state_ttl_seconds)
        )
        self.exchange_client = (
            exchange_client if exchange_client is not None else TokenExchangeClient(self.config)
        )
        if listener is None:
            listener = CallbackListener(
                self.nonce_store,
                host=self.config.callback_host,
                port=self.config.callback_port,
            )
        self.listener = listener
        self.listener.handler = self.handle_callback
        self.events = events if events is not None else FlowEventChannel()
        self.window = window if window is not None else NullWindowController()
        self.open_url = open_url
        self._flows: Dict[str, AuthorizationFlow] = {}
        # reentrant: a callback may complete a flow while cancel_flow holds the lock
        self._lock = threading.RLock()

    def subscribe(
        self, handler: EventHandler, event_name: Optional[str] = None
    ) -> Callable[[], None]:
        """Register an outcome event handler; returns its unsubscribe callable."""
        return self.events.subscribe(handler, event_name)

    def start_flow(self, config: Optional[OAuthConfig] = None) -> AuthorizationFlow:
        """
        Start a sign-in flow.

        Starts the callback listener on first use, issues a state token,
        opens the authorization URL in the browser and hides the window.

        Args:
            config: Flow-specific configuration (defaults to the coordinator's);
                must use the coordinator's callback port

        Returns:
            The flow, in AWAITING_CALLBACK state

        Raises:
            ConfigurationError: If config redirects to a different port
            PortUnavailableError: If the callback listener cannot bind
        """
        config = config if config is not None else self.config
        if config.redirect_uri != self.config.redirect_uri:
            raise ConfigurationError(
                f"Flow redirect URI {config.redirect_uri} does not match the "
                f"callback listener at {self.config.redirect_uri}"
            )

        flow = AuthorizationFlow(config=config)

        try:
            self.listener.start(self.config.callback_port)
        except PortUnavailableError as e:
            logger.error(f"Cannot start sign-in flow: {e}")
            flow.state = FlowState.FAILED
            flow.error_kind = type(e).__name__
            self._finish(FlowFailed(state=None, error_kind=flow.error_kind, message=str(e)))
            raise

        state = self.nonce_store.issue()
        flow.request = AuthorizationRequest.for_config(config, state)
        flow.state = FlowState.AWAITING_CALLBACK
        with self._lock:
            self._flows[state] = flow

        logger.info("Starting OAuth sign-in flow")
        url = flow.request.to_url()
        try:
            self.open_url(url)
        except Exception as e:
            logger.warning(f"Could not open browser automatically: {e}")
            logger.warning(f"Open this URL to continue signing in: {url}")
        self.window.hide()
        return flow

    def request_oauth(self) -> None:
        """
        Start a sign-in flow for UI callers that only observe events.

        A listener bind failure has already been published as an error event
        by start_flow, so it is only logged here.
        """
        try:
            self.start_flow()
        except PortUnavailableError:
            logger.error("Sign-in flow could not start; error event published")

    def handle_callback(self, payload: CallbackPayload) -> None:
        """
        Complete the flow a validated callback belongs to.

        Called by the callback listener after the callback state has been
        consumed. Never raises: every outcome becomes one event.

        Args:
            payload: Parsed redirect parameters with a consumed state
        """
        with self._lock:
            flow = self._flows.pop(payload.state, None)
            if flow is not None:
                flow.state = FlowState.EXCHANGING

        if flow is None:
            # state issued directly through the shared store
            flow = AuthorizationFlow(config=self.config, state=FlowState.EXCHANGING)

        if payload.error or not payload.code:
            error = AuthorizationError(
                f"{payload.error}: {payload.error_description}"
                if payload.error
                else "Callback carried no authorization code"
            )
            logger.error(f"Authorization failed: {error}")
            self._fail(flow, payload.state, error)
            return

        try:
            result = self.exchange_client.exchange(payload.code, payload.state, flow.config)
        except Exception as e:
            logger.error(f"Token exchange failed: {e}")
            self._fail(flow, payload.state, e)
            return

        flow.state = FlowState.COMPLETED
        logger.info("Sign-in flow completed")
        self._finish(FlowSucceeded(state=payload.state, result=result))

    def cancel_flow(self, flow: Optional[AuthorizationFlow] = None) -> List[AuthorizationFlow]:
        """
        Cancel flows still waiting for their callback.

        The state token is consumed so a late callback for a cancelled flow
        is rejected by the listener. Flows already exchanging or finished
        are left alone.

        Args:
            flow: Flow to cancel (None cancels every waiting flow)

        Returns:
            The flows that were cancelled
        """
        cancelled = []
        with self._lock:
            if flow is None:
                targets = list(self._flows.values())
            else:
                targets = [flow] if self._flows.get(flow.state_token) is flow else []
            for target in targets:
                # a callback that consumed the state first owns the outcome
                if not self.nonce_store.consume(target.state_token):
                    continue
                if self._flows.get(target.state_token) is target:
                    del self._flows[target.state_token]
                    cancelled.append(target)

        for target in cancelled:
            logger.info("Sign-in flow cancelled")
            self._fail(target, target.state_token, FlowCancelledError("Sign-in was cancelled"))
        return cancelled

    def pending_flows(self) -> List[AuthorizationFlow]:
        """Flows currently awaiting their callback."""
        with self._lock:
            return list(self._flows.values())

    def shutdown(self) -> None:
        """Stop the callback listener. Pending flows can no longer complete."""
        self.listener.stop()

    def __enter__(self) -> "OAuthCoordinator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def _fail(self, flow: AuthorizationFlow, state: Optional[str], error: Exception) -> None:
        flow.state = FlowState.FAILED
        flow.error_kind = type(error).__name__
        self._finish(FlowFailed(state=state, error_kind=flow.error_kind, message=str(error)))

    def _finish(self, event: FlowOutcomeEvent) -> None:
        try:
            self.events.publish(event)
        finally:
            self.window.show()
