"""
OAuth configuration for the GitHub sign-in flow.

Configuration can be loaded from environment variables or provided
programmatically. The redirect URI is derived from the callback port and
must match the one registered with the GitHub OAuth app exactly.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from .exceptions import ConfigurationError

DEFAULT_CALLBACK_PORT = 8020


def _split_scopes(raw: str) -> List[str]:
    return [scope for scope in raw.replace(",", " ").split() if scope]


@dataclass
class OAuthConfig:
    """
    Configuration for the loopback authorization-code flow.

    Attributes:
        client_id: GitHub OAuth app client ID
        client_secret: GitHub OAuth app client secret (embedded in the app)
        callback_host: Host the callback listener binds to
        callback_port: Fixed port for the callback listener (default: 8020)
        scopes: Requested OAuth scopes (empty means GitHub's default)
        login: Suggested GitHub account to sign in with
        allow_signup: Whether GitHub offers account creation on the sign-in page
        authorization_url: GitHub authorization endpoint
        token_url: GitHub token endpoint
        exchange_timeout_seconds: Deadline for connecting to the token endpoint
            and for each read from it. A provider that keeps trickling bytes can
            hold the exchange open longer than this.
        state_ttl_seconds: Lifetime of unconsumed state tokens (None: unlimited)
    """

    # Required - from the GitHub OAuth app settings
    client_id: str
    client_secret: str

    # Callback configuration
    callback_host: str = "localhost"
    callback_port: int = DEFAULT_CALLBACK_PORT

    # Authorization request parameters
    scopes: List[str] = field(default_factory=list)
    login: str = ""
    allow_signup: bool = True

    # GitHub OAuth endpoints
    authorization_url: str = "https://github.com/login/oauth/authorize"
    token_url: str = "https://github.com/login/oauth/access_token"

    exchange_timeout_seconds: float = 20.0
    state_ttl_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.client_id:
            raise ConfigurationError("client_id cannot be empty")

        if not self.client_secret:
            raise ConfigurationError("client_secret cannot be empty")

        if not isinstance(self.callback_port, int) or not (
            1 <= self.callback_port <= 65535
        ):
            raise ConfigurationError(
                f"callback_port must be between 1 and 65535, got {self.callback_port}"
            )

        if self.exchange_timeout_seconds <= 0:
            raise ConfigurationError("exchange_timeout_seconds must be positive")

        if self.state_ttl_seconds is not None and self.state_ttl_seconds <= 0:
            raise ConfigurationError("state_ttl_seconds must be positive when set")

    @property
    def redirect_uri(self) -> str:
        """
        Redirect URI registered with GitHub.

        Returns:
            Loopback URL of the callback listener (e.g., http://localhost:8020)
        """
        return f"http://{self.callback_host}:{self.callback_port}"

    @classmethod
    def from_env(cls) -> "OAuthConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            DEVBOOK_GITHUB_CLIENT_ID: GitHub OAuth app client ID
            DEVBOOK_GITHUB_CLIENT_SECRET: GitHub OAuth app client secret

        Optional environment variables:
            DEVBOOK_OAUTH_PORT: Callback port (default: 8020)
            DEVBOOK_OAUTH_SCOPES: Comma or space separated scopes
            DEVBOOK_OAUTH_EXCHANGE_TIMEOUT: Token exchange timeout in seconds (default: 20)
            DEVBOOK_OAUTH_STATE_TTL: State token lifetime in seconds (default: unlimited)

        Returns:
            OAuthConfig instance

        Raises:
            ConfigurationError: If required variables are missing or malformed
        """
        client_id = os.environ.get("DEVBOOK_GITHUB_CLIENT_ID")
        client_secret = os.environ.get("DEVBOOK_GITHUB_CLIENT_SECRET")

        if not client_id or not client_secret:
            raise ConfigurationError(
                "Missing GitHub OAuth credentials. Set environment variables:\n"
                "  DEVBOOK_GITHUB_CLIENT_ID=your_client_id\n"
                "  DEVBOOK_GITHUB_CLIENT_SECRET=your_client_secret\n"
                "\n"
                "Get credentials from: https://github.com/settings/developers"
            )

        state_ttl = os.environ.get("DEVBOOK_OAUTH_STATE_TTL")
        try:
            return cls(
                client_id=client_id,
                client_secret=client_secret,
                callback_port=int(
                    os.environ.get("DEVBOOK_OAUTH_PORT", str(DEFAULT_CALLBACK_PORT))
                ),
                scopes=_split_scopes(os.environ.get("DEVBOOK_OAUTH_SCOPES", "")),
                exchange_timeout_seconds=float(
                    os.environ.get("DEVBOOK_OAUTH_EXCHANGE_TIMEOUT", "20")
                ),
                state_ttl_seconds=float(state_ttl) if state_ttl else None,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid OAuth environment setting: {e}") from e
