"""
Value types for the loopback authorization-code flow.

AuthorizationRequest and CallbackPayload describe the two legs of the
browser round trip, TokenResult is what the token endpoint hands back, and
AuthorizationFlow tracks one flow through its states.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urlencode

from .config import OAuthConfig
from .exceptions import ExchangeError


@dataclass(frozen=True)
class AuthorizationRequest:
    """
    Parameters of one provider authorization request.

    Built fresh for every flow and never reused. The client secret is not
    part of it and never appears in the browser-visible URL.
    """

    client_id: str
    redirect_uri: str
    state: str
    scopes: Tuple[str, ...] = ()
    login: str = ""
    allow_signup: bool = True
    authorization_url: str = "https://github.com/login/oauth/authorize"

    @classmethod
    def for_config(cls, config: OAuthConfig, state: str) -> "AuthorizationRequest":
        return cls(
            client_id=config.client_id,
            redirect_uri=config.redirect_uri,
            state=state,
            scopes=tuple(config.scopes),
            login=config.login,
            allow_signup=config.allow_signup,
            authorization_url=config.authorization_url,
        )

    def to_url(self) -> str:
        """
        Render the authorization URL opened in the system browser.

        Returns:
            Complete authorization URL with query parameters
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "state": self.state,
            "login": self.login,
            "allow_signup": "true" if self.allow_signup else "false",
        }
        return f"{self.authorization_url}?{urlencode(params)}"


@dataclass(frozen=True)
class CallbackPayload:
    """Query parameters of one provider redirect."""

    code: Optional[str]
    state: Optional[str]
    error: Optional[str] = None
    error_description: Optional[str] = None

    @classmethod
    def from_query(cls, args: Mapping[str, str]) -> "CallbackPayload":
        return cls(
            code=args.get("code") or None,
            state=args.get("state") or None,
            error=args.get("error") or None,
            error_description=args.get("error_description") or None,
        )


@dataclass(frozen=True)
class TokenResult:
    """
    Successful token endpoint response.

    Attributes:
        access_token: Token used for GitHub API calls
        token_type: Token type (typically "bearer")
        scope: Scopes GitHub actually granted
    """

    access_token: str = field(repr=False)
    token_type: str = "bearer"
    scope: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "TokenResult":
        """
        Parse a token endpoint JSON body.

        GitHub reports a rejected code with HTTP 200 and an ``error`` field,
        so a missing access token is treated as an exchange failure.

        Raises:
            ExchangeError: If the payload carries no access token
        """
        if not isinstance(payload, dict):
            raise ExchangeError("Token response is not a JSON object")

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            error = payload.get("error")
            if error:
                description = payload.get("error_description", "")
                raise ExchangeError(f"Token request rejected: {error} {description}".strip())
            raise ExchangeError("Token response missing access_token")

        return cls(
            access_token=access_token,
            token_type=str(payload.get("token_type", "bearer")),
            scope=str(payload.get("scope", "")),
        )


class FlowState(Enum):
    """Lifecycle of one authorization flow."""

    IDLE = "idle"
    AWAITING_CALLBACK = "awaiting_callback"
    EXCHANGING = "exchanging"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FlowState.COMPLETED, FlowState.FAILED)


@dataclass
class AuthorizationFlow:
    """
    One sign-in attempt, from start_flow to its terminal outcome.

    Attributes:
        config: Configuration the flow was started with
        request: Authorization request opened in the browser (None until issued)
        state: Current lifecycle state
        error_kind: Exception class name of the failure, if the flow failed
        started_at: Wall-clock start time
    """

    config: OAuthConfig
    request: Optional[AuthorizationRequest] = None
    state: FlowState = FlowState.IDLE
    error_kind: Optional[str] = None
    started_at: float = field(default_factory=time.time)

    @property
    def state_token(self) -> Optional[str]:
        return self.request.state if self.request else None

    @property
    def authorization_url(self) -> Optional[str]:
        return self.request.to_url() if self.request else None
