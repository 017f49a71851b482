"""End-to-end tests for LogWatcherWindow with an in-memory message source."""

from __future__ import annotations

import logging

import pytest
from fakes import FakeSource, object_envelope

from log_watcher.core.ingestion import ConnectionState
from log_watcher.core.log_event import LogEvent, Severity
from log_watcher.gui.log_watcher_window import LogWatcherWindow

ADDRESS = "tcp://test-broker:61616"


def _envelope(reporter: str, severity: Severity, text: str):
    return object_envelope(LogEvent(reporter, severity, text).to_wire())


@pytest.fixture
def make_window(qtbot, clean_config):
    clean_config.set("ingestion.poll_timeout", 0.02)
    windows = []

    def _make(source: FakeSource, **kwargs) -> LogWatcherWindow:
        window = LogWatcherWindow(clean_config, source=source, address=ADDRESS, **kwargs)
        qtbot.addWidget(window)
        windows.append(window)
        return window

    yield _make
    for window in windows:
        window.shutdown()


def _rows(window: LogWatcherWindow) -> list[tuple[str, Severity, str]]:
    return [(e.reporter, e.severity, e.text) for e in window.events]


class TestWindowSetup:
    def test_title_and_startup_sentinel(self, make_window):
        window = make_window(FakeSource())
        assert window.windowTitle() == "Log Watcher"
        assert window.width() == 795
        assert window.height() == 350
        assert _rows(window) == [("Logger", Severity.INFO, "Logging started.")]
        assert window.status_bar.count_text == "1 / 10000 events"

    def test_worker_uses_config(self, make_window, clean_config):
        clean_config.set("broker.topic", "audit")
        window = make_window(FakeSource())
        assert window.worker.address == ADDRESS
        assert window.worker.topic == "audit"

    def test_topic_override(self, make_window):
        window = make_window(FakeSource(), topic="metrics")
        assert window.worker.topic == "metrics"

    def test_unbounded_display(self, make_window, clean_config):
        clean_config.set("display.max_events", None)
        window = make_window(FakeSource())
        assert window.events.max_events is None
        assert window.status_bar.count_text == "1 events"


class TestInvalidConfig:
    @pytest.mark.parametrize("value", [0, -5, "many", 2.5, True])
    def test_bad_max_events_uses_default(self, make_window, clean_config, caplog, value):
        clean_config.set("display.max_events", value)
        with caplog.at_level(logging.WARNING, logger="log_watcher.gui.log_watcher_window"):
            window = make_window(FakeSource())
        assert window.events.max_events == 10000
        assert any("display.max_events" in r.getMessage() for r in caplog.records)

    def test_bad_reconnect_delays_use_default_backoff(self, make_window, clean_config, caplog):
        clean_config.set("ingestion.reconnect_initial_delay", -1)
        clean_config.set("ingestion.reconnect_max_delay", "soon")
        with caplog.at_level(logging.WARNING, logger="log_watcher.gui.log_watcher_window"):
            window = make_window(FakeSource())
        assert window.worker._backoff.next_delay() == 1.0
        assert any("reconnect" in r.getMessage() for r in caplog.records)

    def test_bad_timeouts_use_defaults(self, make_window, clean_config):
        clean_config.set("ingestion.poll_timeout", 0)
        clean_config.set("ingestion.ready_timeout", -3)
        window = make_window(FakeSource())
        assert window.worker._poll_timeout == 1.0
        assert window.worker._ready_timeout is None

    def test_bad_window_size_uses_default(self, make_window, clean_config):
        clean_config.set("window.width", "wide")
        window = make_window(FakeSource())
        assert window.width() == 795


class TestWindowIngestion:
    def test_worker_waits_for_first_show(self, qtbot, make_window):
        source = FakeSource([_envelope("svcA", Severity.INFO, "hello")])
        window = make_window(source)
        window.start_ingestion()

        qtbot.wait(100)
        assert not window.ready.is_set()
        assert source.addresses == []

        window.show()
        assert window.ready.is_set()
        qtbot.waitUntil(lambda: window.events.size() == 2, timeout=3000)
        assert window.events.last().text == "hello"
        assert source.addresses == [ADDRESS]

    def test_status_bar_follows_connection_state(self, qtbot, make_window):
        window = make_window(FakeSource())
        window.start_ingestion()
        window.show()

        qtbot.waitUntil(
            lambda: window.status_bar.connection_text == f"{ADDRESS}: subscribed",
            timeout=3000,
        )
        assert window.worker.state == ConnectionState.STREAMING

    def test_malformed_input_shows_error_row(self, qtbot, make_window):
        source = FakeSource([object_envelope({"unexpected": True})])
        window = make_window(source)
        window.start_ingestion()
        window.show()

        qtbot.waitUntil(lambda: window.events.size() == 2, timeout=3000)
        last = window.events.last()
        assert last.reporter == "Logger"
        assert last.severity is Severity.ERROR
        assert last.text.startswith("Ignoring non-log payload: ")

    def test_lock_unlock_clear_scenario(self, qtbot, make_window):
        source = FakeSource([_envelope("svcA", Severity.WARNING, "disk 80% full")])
        window = make_window(source)
        window.start_ingestion()
        window.show()

        qtbot.waitUntil(lambda: window.events.size() == 2, timeout=3000)
        assert _rows(window)[1] == ("svcA", Severity.WARNING, "disk 80% full")
        assert window.scroll_policy.viewport_index == 1

        window.controls.scroll_lock_box.setChecked(True)
        consumer = source.connections[0].consumer
        for i in range(3):
            consumer.feed(_envelope("svcB", Severity.INFO, f"line {i}"))
        qtbot.waitUntil(lambda: window.events.size() == 5, timeout=3000)
        assert window.scroll_policy.viewport_index == 1

        window.controls.scroll_lock_box.setChecked(False)
        assert window.scroll_policy.viewport_index == 4

        window.controls.clear_button.click()
        assert _rows(window) == [("Logger", Severity.INFO, "Logging restarted.")]
        assert window.scroll_policy.viewport_index == 0
        assert window.table.model().rowCount() == 1

    def test_close_stops_worker(self, qtbot, make_window):
        window = make_window(FakeSource())
        window.start_ingestion()
        window.show()
        qtbot.waitUntil(lambda: window.worker.state == ConnectionState.STREAMING, timeout=3000)

        window.close()
        assert not window.worker.is_alive()
        assert window.worker.state == ConnectionState.STOPPED
