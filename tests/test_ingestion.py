"""Tests for log_watcher.core.ingestion: envelope translation, backoff and the worker thread."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone

import pytest
from fakes import Collector, FakeSource, object_envelope, wait_until

from log_watcher.core.ingestion import (
    Backoff,
    ConnectionState,
    IngestionWorker,
    translate_envelope,
)
from log_watcher.core.log_event import LogEvent, Severity
from log_watcher.core.message_source import Envelope, SourceError

ADDRESS = "tcp://broker:61616"
TOPIC = "logging"
TS = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _event(n: int) -> LogEvent:
    return LogEvent(f"svc{n}", Severity.INFO, f"message {n}", TS)


def _make_worker(source, collector, **kwargs) -> IngestionWorker:
    kwargs.setdefault("poll_timeout", 0.02)
    kwargs.setdefault("backoff", Backoff(initial=0.01, maximum=0.05))
    return IngestionWorker(
        source,
        collector,
        ADDRESS,
        TOPIC,
        on_state_changed=collector.on_state,
        **kwargs,
    )


@pytest.fixture
def collector():
    return Collector()


@pytest.fixture
def running():
    """Stops and joins every worker started by a test."""
    workers = []

    def _start(worker: IngestionWorker) -> IngestionWorker:
        workers.append(worker)
        worker.start()
        return worker

    yield _start
    for worker in workers:
        worker.stop()
        worker.join(2.0)


class TestTranslateEnvelope:
    def test_valid_log_event(self):
        event = LogEvent("svcA", Severity.WARNING, "disk 80% full")
        assert translate_envelope(object_envelope(event.to_wire())) == event

    def test_unexpected_envelope(self):
        env = Envelope((b"logging", b"text", b"hello"))
        result = translate_envelope(env)
        assert result.severity is Severity.ERROR
        assert result.reporter == "Logger"
        assert result.text == "Ignoring unexpected envelope: " + str(env)

    def test_non_log_payload(self):
        env = object_envelope({"hello": "world"})
        result = translate_envelope(env)
        assert result.severity is Severity.ERROR
        assert result.text == "Ignoring non-log payload: " + str(env)

    def test_non_object_payload(self):
        result = translate_envelope(object_envelope([1, 2, 3]))
        assert result.text.startswith("Ignoring non-log payload: ")

    def test_undecodable_body_is_fatal(self):
        with pytest.raises(SourceError):
            translate_envelope(Envelope((b"logging", b"object", b"{oops")))


class TestBackoff:
    def test_exponential_growth_capped(self):
        backoff = Backoff(initial=1.0, maximum=5.0, multiplier=2.0)
        assert [backoff.next_delay() for _ in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]
        assert backoff.attempts == 5

    def test_reset(self):
        backoff = Backoff(initial=0.5, maximum=10.0)
        backoff.next_delay()
        backoff.next_delay()
        backoff.reset()
        assert backoff.attempts == 0
        assert backoff.next_delay() == 0.5

    @pytest.mark.parametrize("kwargs", [
        {"initial": 0},
        {"initial": 2.0, "maximum": 1.0},
        {"multiplier": 0.5},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            Backoff(**kwargs)


class TestIngestionWorker:
    def test_preserves_order(self, collector, running):
        events = [_event(i) for i in range(50)]
        source = FakeSource([object_envelope(e.to_wire()) for e in events])
        running(_make_worker(source, collector))

        assert wait_until(lambda: len(collector.events) == 50)
        assert collector.events == events

    def test_first_connection_is_silent(self, collector, running):
        source = FakeSource([object_envelope(_event(1).to_wire())])
        worker = running(_make_worker(source, collector))

        assert wait_until(lambda: len(collector.events) == 1)
        assert collector.events == [_event(1)]
        assert source.addresses == [ADDRESS]
        assert source.connections[0].topics == [TOPIC]
        assert worker.state == ConnectionState.STREAMING

    def test_malformed_input_is_reported_and_ingestion_continues(self, collector, running):
        good = _event(7)
        source = FakeSource([
            Envelope((b"logging", b"text", b"plain text")),
            object_envelope({"not": "a log event"}),
            object_envelope(good.to_wire()),
        ])
        worker = running(_make_worker(source, collector))

        assert wait_until(lambda: len(collector.events) == 3)
        first, second, third = collector.events
        assert first.severity is Severity.ERROR
        assert first.text.startswith("Ignoring unexpected envelope: ")
        assert second.severity is Severity.ERROR
        assert second.text.startswith("Ignoring non-log payload: ")
        assert third == good
        assert worker.state == ConnectionState.STREAMING
        assert len(source.addresses) == 1

    def test_waits_for_ready_signal(self, collector, running):
        ready = threading.Event()
        source = FakeSource([object_envelope(_event(1).to_wire())])
        running(_make_worker(source, collector, ready=ready))

        time.sleep(0.15)
        assert source.addresses == []
        assert collector.events == []

        ready.set()
        assert wait_until(lambda: collector.events == [_event(1)])

    def test_ready_timeout_connects_anyway(self, collector, running):
        source = FakeSource([object_envelope(_event(1).to_wire())])
        running(_make_worker(source, collector, ready=threading.Event(), ready_timeout=0.05))
        assert wait_until(lambda: collector.events == [_event(1)])

    def test_stop_before_ready(self, collector):
        source = FakeSource()
        worker = _make_worker(source, collector, ready=threading.Event())
        worker.start()
        worker.stop()
        worker.join(2.0)
        assert not worker.is_alive()
        assert source.addresses == []
        assert worker.state == ConnectionState.STOPPED

    def test_connect_failure_then_reconnect(self, collector, running):
        good = _event(1)
        source = FakeSource(SourceError("connection refused"), [object_envelope(good.to_wire())])
        running(_make_worker(source, collector))

        assert wait_until(lambda: len(collector.events) == 4)
        error, retry, reconnected, data = collector.events
        assert error.severity is Severity.ERROR
        assert error.text == "Exception: SourceError: connection refused"
        assert retry.severity is Severity.WARNING
        assert retry.text == "Reconnecting in 0.01s (attempt 1)"
        assert reconnected.severity is Severity.INFO
        assert reconnected.text == f"Reconnected to {ADDRESS} (topic '{TOPIC}')"
        assert data == good
        assert collector.states[:4] == [
            ConnectionState.CONNECTING,
            ConnectionState.DISCONNECTED,
            ConnectionState.CONNECTING,
            ConnectionState.STREAMING,
        ]

    def test_mid_stream_failure_closes_and_reconnects(self, collector, running):
        before, after = _event(1), _event(2)
        source = FakeSource(
            [object_envelope(before.to_wire()), SourceError("connection lost")],
            [object_envelope(after.to_wire())],
        )
        running(_make_worker(source, collector))

        assert wait_until(lambda: after in collector.events)
        texts = collector.texts()
        assert texts[0] == before.text
        assert texts[1] == "Exception: SourceError: connection lost"
        assert texts[-1] == after.text
        assert source.connections[0].closed
        assert source.connections[0].consumer.closed
        assert len(source.addresses) == 2

    def test_undecodable_body_is_fatal_to_connection(self, collector, running):
        source = FakeSource([Envelope((b"logging", b"object", b"{broken"))])
        running(_make_worker(source, collector))

        assert wait_until(lambda: len(source.addresses) >= 2)
        first = collector.events[0]
        assert first.severity is Severity.ERROR
        assert first.text.startswith("Exception: SourceError: undecodable envelope body")

    def test_backoff_resets_after_a_message(self, collector, running):
        source = FakeSource(
            SourceError("down"),
            [object_envelope(_event(1).to_wire()), SourceError("lost")],
        )
        running(_make_worker(source, collector))

        assert wait_until(lambda: len(source.addresses) >= 3)
        retries = [t for t in collector.texts() if t.startswith("Reconnecting")]
        assert retries[:2] == [
            "Reconnecting in 0.01s (attempt 1)",
            "Reconnecting in 0.01s (attempt 1)",
        ]

    def test_backoff_grows_across_failures(self, collector, running):
        source = FakeSource(SourceError("a"), SourceError("b"), SourceError("c"))
        running(_make_worker(source, collector))

        assert wait_until(lambda: len(source.addresses) >= 4)
        retries = [t for t in collector.texts() if t.startswith("Reconnecting")]
        assert retries[:3] == [
            "Reconnecting in 0.01s (attempt 1)",
            "Reconnecting in 0.02s (attempt 2)",
            "Reconnecting in 0.04s (attempt 3)",
        ]

    def test_reconnect_disabled_terminates(self, collector):
        source = FakeSource(SourceError("refused"))
        worker = _make_worker(source, collector, reconnect=False)
        worker.start()
        worker.join(2.0)

        assert not worker.is_alive()
        assert collector.texts() == ["Exception: SourceError: refused"]
        assert worker.state == ConnectionState.DISCONNECTED
        assert source.addresses == [ADDRESS]

    def test_stop_closes_connection(self, collector):
        source = FakeSource([])
        worker = _make_worker(source, collector)
        worker.start()
        assert wait_until(lambda: worker.state == ConnectionState.STREAMING)

        worker.stop()
        worker.join(2.0)
        assert not worker.is_alive()
        assert worker.state == ConnectionState.STOPPED
        assert source.connections[0].closed
        assert collector.states[-1] == ConnectionState.STOPPED

    def test_stop_during_backoff(self, collector):
        source = FakeSource(SourceError("refused"))
        worker = _make_worker(source, collector, backoff=Backoff(initial=30.0, maximum=30.0))
        worker.start()
        assert wait_until(lambda: any(t.startswith("Reconnecting") for t in collector.texts()))

        worker.stop()
        worker.join(2.0)
        assert not worker.is_alive()
        assert worker.state == ConnectionState.STOPPED

    def test_start_twice_is_harmless(self, collector, running):
        source = FakeSource([])
        worker = running(_make_worker(source, collector))
        worker.start()
        assert wait_until(lambda: worker.state == ConnectionState.STREAMING)
        assert len(source.addresses) == 1
