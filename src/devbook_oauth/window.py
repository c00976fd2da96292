"""
Window visibility capability.

The coordinator hides the application window while the provider page is
shown in the browser and shows it again once the flow ends. UI layers pass
in their own implementation; tests use the null one.
"""

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class WindowController(Protocol):
    """Show/hide hooks for the main application window."""

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...


class NullWindowController:
    """Window controller for headless callers (CLI, tests)."""

    def show(self) -> None:
        logger.debug("Window show requested (no window attached)")

    def hide(self) -> None:
        logger.debug("Window hide requested (no window attached)")


class CallbackWindowController:
    """Adapts a pair of plain callables to the WindowController interface."""

    def __init__(self, show: Callable[[], None], hide: Callable[[], None]):
        self._show = show
        self._hide = hide

    def show(self) -> None:
        self._show()

    def hide(self) -> None:
        self._hide()
