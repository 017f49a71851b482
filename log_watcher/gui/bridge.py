"""Bridge between the ingestion thread and the Qt main thread.

Anything the background worker wants to show is posted here as a
zero-argument callable; Qt's queued connection runs it later on the thread
that owns the bridge, in post order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial

from PyQt6.QtCore import QObject, Qt, pyqtSignal, pyqtSlot

from ..core.ingestion import ConnectionState
from ..core.log_event import LogEvent

log = logging.getLogger(__name__)


class MainThreadBridge(QObject):
    """Fire-and-forget scheduling of mutations onto the GUI thread.

    ``post`` is safe from any thread and never blocks. Each mutation runs
    exactly once, FIFO across all callers. Posts made after the bridge is
    destroyed are dropped.
    """

    _posted = pyqtSignal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._posted.connect(self._dispatch, Qt.ConnectionType.QueuedConnection)

    def post(self, mutation: Callable[[], None]) -> None:
        try:
            self._posted.emit(mutation)
        except RuntimeError:
            # C++ side already deleted: the event loop is gone
            log.debug("Dropped mutation posted after shutdown")

    @pyqtSlot(object)
    def _dispatch(self, mutation: Callable[[], None]) -> None:
        try:
            mutation()
        except Exception:
            log.exception("Posted mutation failed")


class LogChannel:
    """The only handle the ingestion worker gets on the display.

    Wraps the bridge and the GUI-side handlers so the worker can publish
    events and state changes without holding the model itself.
    """

    def __init__(
        self,
        bridge: MainThreadBridge,
        sink: Callable[[LogEvent], None],
        state_sink: Callable[[ConnectionState], None] | None = None,
    ) -> None:
        self._bridge = bridge
        self._sink = sink
        self._state_sink = state_sink

    def publish(self, event: LogEvent) -> None:
        self._bridge.post(partial(self._sink, event))

    def post_state(self, state: ConnectionState) -> None:
        if self._state_sink is not None:
            self._bridge.post(partial(self._state_sink, state))
