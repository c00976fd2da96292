"""
Local HTTP listener for the OAuth redirect.

The listener binds a fixed loopback port once and keeps serving across
flows, so a user can retry sign-in after an error. It answers a single
route; every accepted request is handled on its own thread.

Security:
- Callbacks whose state is missing, unknown, expired or already used are
  dropped with one generic error response
- Only validated callbacks reach the handler (and thus the token exchange)
- The browser receives a page that closes its own tab
"""

import logging
import threading
from typing import Callable, Optional

from flask import Flask, Response, request
from werkzeug.serving import BaseWSGIServer, WSGIRequestHandler, make_server

from .config import DEFAULT_CALLBACK_PORT
from .exceptions import InvalidOrReplayedStateError, PortUnavailableError
from .models import CallbackPayload
from .nonce_store import NonceStore

logger = logging.getLogger(__name__)

CALLBACK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CLOSE_TAB_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Devbook</title>
</head>
<body>
  <script>
    window.open('', '_parent', '');
    window.close();
  </script>
</body>
</html>"""

REJECTED_BODY = "Bad Request"

CallbackHandler = Callable[[CallbackPayload], None]


class _QuietRequestHandler(WSGIRequestHandler):
    """Request handler that keeps the query string out of access logs."""

    def log_request(self, code="-", size="-") -> None:
        # the query string carries the authorization code and state
        path = self.path.split("?", 1)[0]
        logger.debug(f"{self.command} {path} {code}")


class CallbackListener:
    """
    Loopback HTTP server receiving the provider redirect.

    The handler is called only for callbacks whose state token was
    successfully consumed from the NonceStore.
    """

    def __init__(
        self,
        nonce_store: NonceStore,
        handler: Optional[CallbackHandler] = None,
        host: str = "localhost",
        port: int = DEFAULT_CALLBACK_PORT,
    ):
        """
        Initialize callback listener.

        Args:
            nonce_store: Store the callback state is validated against
            handler: Receives validated callback payloads
            host: Interface to bind
            port: Default port used by start()
        """
        self.nonce_store = nonce_store
        self.handler = handler
        self.host = host
        self.default_port = port
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        self.app.add_url_rule(
            "/", "oauth_callback", self._handle_callback, methods=CALLBACK_METHODS
        )

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, or None if the listener is not running."""
        return self._server.port if self._server else None

    def _handle_callback(self) -> Response:
        """Handle the OAuth redirect from the provider."""
        payload = CallbackPayload.from_query(request.args)

        try:
            self._validate_state(payload)
        except InvalidOrReplayedStateError as e:
            logger.warning(f"Rejected OAuth callback: {e}")
            return Response(REJECTED_BODY, status=400, content_type="text/plain")

        logger.info("Received OAuth callback with valid state")
        if self.handler is None:
            logger.error("No callback handler registered; dropping validated callback")
        else:
            try:
                self.handler(payload)
            except Exception:
                logger.exception("Callback handler failed")

        response = Response(CLOSE_TAB_PAGE, status=200, content_type="text/html")
        response.headers["Cache-Control"] = "no-store"
        return response

    def _validate_state(self, payload: CallbackPayload) -> None:
        """
        Consume the callback state.

        Raises:
            InvalidOrReplayedStateError: If the state is absent or not pending
        """
        if not payload.state:
            raise InvalidOrReplayedStateError("callback carried no state")
        if not self.nonce_store.consume(payload.state):
            raise InvalidOrReplayedStateError("state is not pending")

    def start(self, port: Optional[int] = None) -> None:
        """
        Bind the listener and serve from a background thread.

        Starting an already running listener does nothing; the port is
        bound once and held until stop().

        Args:
            port: Port to bind (defaults to the configured one; 0 picks a free port)

        Raises:
            PortUnavailableError: If the port cannot be bound
        """
        with self._lock:
            if self._server is not None:
                return

            port = self.default_port if port is None else port
            try:
                server = make_server(
                    self.host,
                    port,
                    self.app,
                    threaded=True,
                    request_handler=_QuietRequestHandler,
                )
            except OSError as e:
                raise PortUnavailableError(
                    f"Cannot listen on {self.host}:{port}: {e.strerror or e}"
                ) from e
            except SystemExit as e:
                # werkzeug reports bind failures by exiting
                raise PortUnavailableError(
                    f"Cannot listen on {self.host}:{port}: address in use or not permitted"
                ) from e

            self._server = server
            self._thread = threading.Thread(
                target=server.serve_forever, name="oauth-callback-listener", daemon=True
            )
            self._thread.start()

        logger.info(f"OAuth callback listener started on {self.host}:{server.port}")

    def stop(self) -> None:
        """Shut the listener down and release the port."""
        with self._lock:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None

        if server is None:
            return

        logger.info("OAuth callback listener shutting down")
        server.shutdown()
        server.server_close()
        if thread is not None:
            thread.join(timeout=5)
