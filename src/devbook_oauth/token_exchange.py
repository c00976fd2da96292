"""
Authorization code exchange against the GitHub token endpoint.

The exchange runs on the callback listener's per-request thread, so a slow
provider never blocks the listener from accepting other callbacks. Every
call is bounded by the configured timeout.
"""

import logging
from typing import Optional

import requests

from .config import OAuthConfig
from .exceptions import ExchangeError, ExchangeTimeoutError
from .models import TokenResult

logger = logging.getLogger(__name__)


class TokenExchangeClient:
    """
    Trades authorization codes for access tokens.

    The client secret is sent from this process, as GitHub OAuth apps
    require for the authorization-code grant.
    """

    def __init__(self, config: OAuthConfig, session: Optional[requests.Session] = None):
        """
        Initialize exchange client.

        Args:
            config: OAuth configuration with client credentials and token URL
            session: HTTP session (creates one if not provided)
        """
        self.config = config
        self.session = session if session is not None else requests.Session()

    def exchange(
        self, code: str, state: str, config: Optional[OAuthConfig] = None
    ) -> TokenResult:
        """
        Exchange an authorization code for an access token.

        Args:
            code: Code received on the OAuth callback
            state: State token the callback was validated against
            config: Flow-specific configuration (defaults to the client's)

        Returns:
            TokenResult with the access token

        Raises:
            ExchangeTimeoutError: If the token endpoint does not answer in time
            ExchangeError: On transport errors, non-2xx responses or a body
                without an access token
        """
        config = config if config is not None else self.config
        logger.info("Exchanging authorization code for access token")

        try:
            response = self.session.post(
                config.token_url,
                headers={"Accept": "application/json"},
                data={
                    "client_id": config.client_id,
                    "client_secret": config.client_secret,
                    "redirect_uri": config.redirect_uri,
                    "code": code,
                    "state": state,
                },
                # bounds the connect and each read, not the whole response
                timeout=config.exchange_timeout_seconds,
            )
        except requests.Timeout as e:
            logger.error(
                f"Token endpoint did not respond within {config.exchange_timeout_seconds}s"
            )
            raise ExchangeTimeoutError(
                f"Token exchange timed out after {config.exchange_timeout_seconds}s"
            ) from e
        except requests.RequestException as e:
            logger.error(f"Network error during token exchange: {e}")
            raise ExchangeError(f"Network error during token exchange: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(
                f"Token exchange failed: {response.status_code} - {response.text[:200]}"
            )
            raise ExchangeError(
                f"Token exchange failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Invalid response from token endpoint: {e}")
            raise ExchangeError(
                "Token endpoint returned a non-JSON body",
                status_code=response.status_code,
            ) from e

        try:
            result = TokenResult.from_payload(payload)
        except ExchangeError as e:
            logger.error(f"Token exchange rejected: {e}")
            e.status_code = response.status_code
            raise

        logger.info("Successfully obtained access token")
        return result

    def close(self) -> None:
        self.session.close()
