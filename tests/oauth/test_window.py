"""Tests for window visibility controllers."""

from unittest import mock

from devbook_oauth.window import CallbackWindowController, NullWindowController


class TestWindowControllers:
    """Tests for the bundled WindowController implementations."""

    def test_callback_controller_forwards_calls(self):
        """CallbackWindowController adapts plain show/hide callables."""
        show, hide = mock.Mock(), mock.Mock()
        window = CallbackWindowController(show=show, hide=hide)

        window.hide()
        window.show()

        hide.assert_called_once_with()
        show.assert_called_once_with()

    def test_null_controller_does_nothing(self):
        """NullWindowController accepts calls without a window."""
        window = NullWindowController()

        assert window.show() is None
        assert window.hide() is None
