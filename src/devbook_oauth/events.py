"""
Flow outcome events and the channel that delivers them.

The coordinator publishes exactly one event per flow that reaches a
terminal state. Subscribers (UI layers, the CLI) register handlers without
the coordinator knowing who they are.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from .models import TokenResult

logger = logging.getLogger(__name__)

ACCESS_TOKEN_EVENT = "access-token"
ERROR_EVENT = "error"


@dataclass(frozen=True)
class FlowSucceeded:
    """A flow obtained an access token."""

    state: str = field(repr=False)
    result: TokenResult

    name = ACCESS_TOKEN_EVENT

    @property
    def payload(self) -> Dict[str, str]:
        return {"accessToken": self.result.access_token}


@dataclass(frozen=True)
class FlowFailed:
    """
    A flow ended without an access token.

    Attributes:
        state: State token of the failed flow (None if none was issued)
        error_kind: Exception class name describing the failure
        message: Diagnostic message, safe to show to the user
    """

    state: Optional[str] = field(repr=False)
    error_kind: str
    message: str = ""

    name = ERROR_EVENT

    @property
    def payload(self) -> Dict[str, str]:
        return {"errorKind": self.error_kind, "message": self.message}


FlowOutcomeEvent = Union[FlowSucceeded, FlowFailed]
EventHandler = Callable[[FlowOutcomeEvent], None]


class FlowEventChannel:
    """Fan-out of flow outcome events to registered handlers."""

    def __init__(self) -> None:
        self._subscribers: List[Tuple[Optional[str], EventHandler]] = []
        self._lock = threading.Lock()

    def subscribe(
        self, handler: EventHandler, event_name: Optional[str] = None
    ) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Called with each published event
            event_name: Only deliver events with this name ("access-token"
                or "error"); None delivers both

        Returns:
            Callable that removes the subscription
        """
        if event_name not in (None, ACCESS_TOKEN_EVENT, ERROR_EVENT):
            raise ValueError(f"Unknown event name: {event_name}")

        entry = (event_name, handler)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: FlowOutcomeEvent) -> None:
        """
        Deliver an event to every matching handler in registration order.

        A handler that raises is logged and skipped; the remaining handlers
        still receive the event.
        """
        with self._lock:
            subscribers = list(self._subscribers)

        for event_name, handler in subscribers:
            if event_name is not None and event_name != event.name:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(f"Subscriber failed while handling '{event.name}' event")
