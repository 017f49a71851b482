"""User commands of the viewer: Clear and Scroll Lock."""

from __future__ import annotations

import logging

from .display_model import DisplayModel
from .scroll_policy import ScrollPolicy

log = logging.getLogger(__name__)


class ControlPanel:
    """Command surface behind the Clear button and the Scroll Lock checkbox.

    Runs on the presentation thread only.
    """

    def __init__(self, model: DisplayModel, policy: ScrollPolicy) -> None:
        self._model = model
        self._policy = policy

    def clear(self) -> None:
        """Empty the display and restart it with the "Logging restarted." sentinel."""
        log.debug("Clearing %d events", self._model.size())
        self._model.clear()

    def toggle_scroll_lock(self) -> bool:
        locked = self._policy.toggle_lock()
        log.debug("Scroll lock %s", "on" if locked else "off")
        return locked

    def set_scroll_locked(self, locked: bool) -> None:
        if locked != self._policy.locked:
            self.toggle_scroll_lock()

    def is_scroll_locked(self) -> bool:
        return self._policy.locked
