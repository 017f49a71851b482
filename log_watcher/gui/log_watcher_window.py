"""Main window: wires the ingestion worker to the display through the bridge."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from PyQt6.QtWidgets import QMainWindow, QVBoxLayout, QWidget

from ..core.config import ConfigManager, get_config
from ..core.constants import (
    DEFAULT_MAX_EVENTS,
    POLL_TIMEOUT,
    STARTED_TEXT,
    WINDOW_HEIGHT,
    WINDOW_TITLE,
    WINDOW_WIDTH,
)
from ..core.control_panel import ControlPanel
from ..core.display_model import DisplayModel, ModelChange
from ..core.ingestion import Backoff, IngestionWorker
from ..core.log_event import LogEvent, Severity
from ..core.message_source import MessageSource, ZmqMessageSource
from ..core.scroll_policy import ScrollPolicy
from .bridge import LogChannel, MainThreadBridge
from .log_table_model import LogTableModel
from .widgets.control_bar import ControlBar
from .widgets.log_table import LogTable
from .widgets.status_bar import StatusBar

log = logging.getLogger(__name__)

# Seconds to wait for the worker on close; it is a daemon thread either way
SHUTDOWN_JOIN_TIMEOUT = 2.0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


class LogWatcherWindow(QMainWindow):
    """Desktop window which displays new log events as they arrive.

    Layout:
    ┌──────────────────────────────────────────┐
    │                     [Clear] [Scroll Lock] │
    ├──────────────────────────────────────────┤
    │ Timestamp | Reporter | Severity | Text    │
    │ ...                                       │
    ├──────────────────────────────────────────┤
    │ ● tcp://host:port: subscribed  N events   │
    └──────────────────────────────────────────┘

    The ingestion worker only ever sees a LogChannel. It does not connect
    until the window has been shown for the first time.
    """

    def __init__(
        self,
        config: ConfigManager | None = None,
        source: MessageSource | None = None,
        address: str | None = None,
        topic: str | None = None,
    ) -> None:
        super().__init__()
        self._config = config if config is not None else get_config()
        self._address = address or self._config.get("broker.address")
        self._topic = topic or self._config.get("broker.topic")

        self.setWindowTitle(WINDOW_TITLE)
        self.resize(
            self._setting("window.width", WINDOW_WIDTH, _is_positive_int),
            self._setting("window.height", WINDOW_HEIGHT, _is_positive_int),
        )

        # --- Presentation-side state (GUI thread only) ---
        self._events = DisplayModel(
            max_events=self._setting(
                "display.max_events",
                DEFAULT_MAX_EVENTS,
                lambda v: v is None or _is_positive_int(v),
            ),
            initial=[LogEvent.system(Severity.INFO, STARTED_TEXT)],
        )
        # Table model first: rows must exist before the scroll policy scrolls
        self._table_model = LogTableModel(self._events, self)
        self._table = LogTable(self._table_model)
        self._scroll = ScrollPolicy(self._events, self._table.scroll_to_row, anchor=self._table)
        self._panel = ControlPanel(self._events, self._scroll)
        self._controls = ControlBar(self._panel)
        self._status = StatusBar(self._address)
        self._events.add_observer(self._on_events_changed)
        self._on_events_changed(None)

        # --- Cross-thread plumbing ---
        self._bridge = MainThreadBridge(self)
        self._channel = LogChannel(self._bridge, self._events.append, self._status.set_state)
        self._ready = threading.Event()
        self._worker = self._create_worker(source if source is not None else ZmqMessageSource())

        self._build_ui()

    def _setting(self, key_path: str, default, valid: Callable[[object], bool]):
        """Config value at ``key_path``, or ``default`` if missing or invalid."""
        value = self._config.get(key_path)
        if valid(value):
            return value
        if value is not None:
            log.warning("Invalid config value %s=%r; using %r", key_path, value, default)
        return default

    def _create_worker(self, source: MessageSource) -> IngestionWorker:
        cfg = self._config
        try:
            backoff = Backoff(
                initial=cfg.get("ingestion.reconnect_initial_delay"),
                maximum=cfg.get("ingestion.reconnect_max_delay"),
                multiplier=cfg.get("ingestion.reconnect_multiplier"),
            )
        except (TypeError, ValueError) as e:
            log.warning("Invalid reconnect settings (%s); using defaults", e)
            backoff = Backoff()
        return IngestionWorker(
            source,
            self._channel.publish,
            self._address,
            self._topic,
            ready=self._ready,
            ready_timeout=self._setting(
                "ingestion.ready_timeout", None, lambda v: v is None or (_is_number(v) and v >= 0),
            ),
            poll_timeout=self._setting(
                "ingestion.poll_timeout", POLL_TIMEOUT, lambda v: _is_number(v) and v > 0,
            ),
            reconnect=bool(cfg.get("ingestion.reconnect", True)),
            backoff=backoff,
            on_state_changed=self._channel.post_state,
        )

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        root = QVBoxLayout(central)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)
        root.addWidget(self._controls)
        root.addWidget(self._table, 1)
        root.addWidget(self._status)

    # --- Accessors ---

    @property
    def events(self) -> DisplayModel:
        return self._events

    @property
    def scroll_policy(self) -> ScrollPolicy:
        return self._scroll

    @property
    def control_panel(self) -> ControlPanel:
        return self._panel

    @property
    def controls(self) -> ControlBar:
        return self._controls

    @property
    def table(self) -> LogTable:
        return self._table

    @property
    def status_bar(self) -> StatusBar:
        return self._status

    @property
    def bridge(self) -> MainThreadBridge:
        return self._bridge

    @property
    def worker(self) -> IngestionWorker:
        return self._worker

    @property
    def ready(self) -> threading.Event:
        return self._ready

    # --- Lifecycle ---

    def start_ingestion(self) -> None:
        """Start the background worker. It waits until the window is shown."""
        self._worker.start()

    def shutdown(self) -> None:
        self._worker.stop()
        self._worker.join(SHUTDOWN_JOIN_TIMEOUT)
        if self._worker.is_alive():
            log.warning("Ingestion worker still running after %.1fs", SHUTDOWN_JOIN_TIMEOUT)

    def showEvent(self, event) -> None:  # noqa: N802
        super().showEvent(event)
        if not self._ready.is_set():
            log.debug("Display ready; releasing ingestion worker")
            self._ready.set()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.shutdown()
        super().closeEvent(event)

    def _on_events_changed(self, change: ModelChange | None) -> None:
        self._status.set_event_count(self._events.size(), self._events.max_events)
