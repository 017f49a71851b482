"""Background ingestion of log events from the message source.

The worker runs on its own ``threading.Thread``. It never touches display
state: every event it produces, including the error events it synthesizes,
goes through the ``publish`` callable it was given, which in the GUI is a
``LogChannel`` that marshals onto the Qt main thread.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import IntEnum, auto

from .constants import (
    EXCEPTION_PREFIX,
    NON_LOG_PAYLOAD_PREFIX,
    POLL_TIMEOUT,
    RECONNECT_INITIAL_DELAY,
    RECONNECT_MAX_DELAY,
    RECONNECT_MULTIPLIER,
    UNEXPECTED_ENVELOPE_PREFIX,
)
from .log_event import LogEvent, PayloadError, Severity
from .message_source import Connection, Consumer, Envelope, MessageSource

log = logging.getLogger(__name__)


class ConnectionState(IntEnum):
    """Worker lifecycle.

    STREAMING means the consumer is subscribed and polling. ZeroMQ connects
    SUB sockets asynchronously and never reports a missing publisher, so it
    says nothing about whether anyone is publishing.
    """
    DISCONNECTED = auto()
    CONNECTING = auto()
    STREAMING = auto()
    STOPPED = auto()


class Backoff:
    """Bounded exponential delay between reconnect attempts."""

    def __init__(
        self,
        initial: float = RECONNECT_INITIAL_DELAY,
        maximum: float = RECONNECT_MAX_DELAY,
        multiplier: float = RECONNECT_MULTIPLIER,
    ) -> None:
        if initial <= 0 or maximum < initial or multiplier < 1:
            raise ValueError("backoff requires 0 < initial <= maximum and multiplier >= 1")
        self._initial = initial
        self._maximum = maximum
        self._multiplier = multiplier
        self._attempts = 0

    @property
    def attempts(self) -> int:
        return self._attempts

    def next_delay(self) -> float:
        self._attempts += 1
        delay = self._initial * self._multiplier ** (self._attempts - 1)
        return min(delay, self._maximum)

    def reset(self) -> None:
        self._attempts = 0


def translate_envelope(envelope: Envelope) -> LogEvent:
    """Turn one received envelope into the event to display.

    Malformed input becomes an Error event describing the raw envelope.
    A body that cannot be decoded at all raises ``SourceError``, which the
    worker treats as fatal to the current connection.
    """
    if not envelope.is_object_envelope():
        return LogEvent.system(Severity.ERROR, UNEXPECTED_ENVELOPE_PREFIX + str(envelope))

    payload = envelope.unwrap()
    try:
        return LogEvent.from_wire(payload)
    except PayloadError as e:
        log.debug("Rejected payload: %s", e)
        return LogEvent.system(Severity.ERROR, NON_LOG_PAYLOAD_PREFIX + str(envelope))


def describe_failure(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


class IngestionWorker:
    """Polls a MessageSource on a background thread and publishes LogEvents.

    Connection lifecycle::

        CONNECTING -> STREAMING -> DISCONNECTED -> (backoff) -> CONNECTING ...
                                                 \\-> STOPPED on stop()

    With ``reconnect=False`` the worker ends in DISCONNECTED after the first
    fatal error.

    Args:
        source: Message source to connect through.
        publish: Called on the worker thread with every event to display.
            Must not block.
        address: Broker address passed to ``source.connect``.
        topic: Topic to subscribe to.
        ready: Set by the presentation side once it can accept events.
            The worker does not connect before it is set.
        ready_timeout: Give up waiting for ``ready`` after this many seconds
            and connect anyway. ``None`` waits until set or stopped.
        poll_timeout: Bounded wait of each receive call, in seconds.
        reconnect: Reconnect with backoff after a fatal error.
        backoff: Delay policy between reconnect attempts.
        on_state_changed: Called on the worker thread with each new state.
    """

    def __init__(
        self,
        source: MessageSource,
        publish: Callable[[LogEvent], None],
        address: str,
        topic: str,
        *,
        ready: threading.Event | None = None,
        ready_timeout: float | None = None,
        poll_timeout: float = POLL_TIMEOUT,
        reconnect: bool = True,
        backoff: Backoff | None = None,
        on_state_changed: Callable[[ConnectionState], None] | None = None,
    ) -> None:
        self._source = source
        self._publish = publish
        self._address = address
        self._topic = topic
        self._ready = ready
        self._ready_timeout = ready_timeout
        self._poll_timeout = poll_timeout
        self._reconnect = reconnect
        self._backoff = backoff if backoff is not None else Backoff()
        self._on_state_changed = on_state_changed

        self._state = ConnectionState.DISCONNECTED
        self._stop_flag = threading.Event()
        self._thread: threading.Thread | None = None
        self._connection: Connection | None = None
        self._consumer: Consumer | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def address(self) -> str:
        return self._address

    @property
    def topic(self) -> str:
        return self._topic

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_flag.clear()
        self._thread = threading.Thread(
            target=self._run, daemon=True, name="log-ingestion",
        )
        self._thread.start()

    def stop(self) -> None:
        """Request the loop to end; noticed within one poll timeout."""
        self._stop_flag.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # --- Worker thread ---

    def _run(self) -> None:
        if not self._wait_ready():
            self._set_state(ConnectionState.STOPPED)
            return

        had_failure = False
        while not self._stop_flag.is_set():
            self._set_state(ConnectionState.CONNECTING)
            try:
                self._open()
                log.info("Subscribed to %s, topic %r", self._address, self._topic)
                if had_failure:
                    self._emit(Severity.INFO, f"Reconnected to {self._address} (topic '{self._topic}')")
                self._set_state(ConnectionState.STREAMING)
                self._stream()
            except Exception as e:
                had_failure = True
                log.exception("Ingestion from %s failed", self._address)
                self._emit(Severity.ERROR, EXCEPTION_PREFIX + describe_failure(e))
            finally:
                self._close()

            if self._stop_flag.is_set():
                break
            self._set_state(ConnectionState.DISCONNECTED)
            if not self._reconnect:
                log.warning("Reconnect disabled; ingestion stopped")
                return

            delay = self._backoff.next_delay()
            log.warning("Reconnecting to %s in %gs (attempt %d)", self._address, delay, self._backoff.attempts)
            self._emit(
                Severity.WARNING,
                f"Reconnecting in {delay:g}s (attempt {self._backoff.attempts})",
            )
            if self._stop_flag.wait(delay):
                break

        self._set_state(ConnectionState.STOPPED)

    def _wait_ready(self) -> bool:
        """Block until the presentation side is ready. False if stopped first."""
        if self._ready is None:
            return not self._stop_flag.is_set()
        deadline = None
        if self._ready_timeout is not None:
            deadline = time.monotonic() + self._ready_timeout
        while not self._ready.wait(self._poll_timeout):
            if self._stop_flag.is_set():
                return False
            if deadline is not None and time.monotonic() >= deadline:
                log.warning("Display not ready after %.1fs; connecting anyway", self._ready_timeout)
                break
        return not self._stop_flag.is_set()

    def _open(self) -> None:
        self._connection = self._source.connect(self._address)
        self._consumer = self._connection.subscribe(self._topic)

    def _stream(self) -> None:
        consumer = self._consumer
        assert consumer is not None
        while not self._stop_flag.is_set():
            envelope = consumer.receive(self._poll_timeout)
            if envelope is None:
                continue
            event = translate_envelope(envelope)
            self._backoff.reset()
            self._publish(event)

    def _close(self) -> None:
        consumer, self._consumer = self._consumer, None
        connection, self._connection = self._connection, None
        for closeable in (consumer, connection):
            if closeable is None:
                continue
            try:
                closeable.close()
            except Exception:
                log.warning("Error while closing %r", closeable, exc_info=True)

    def _emit(self, severity: Severity, text: str) -> None:
        self._publish(LogEvent.system(severity, text))

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        self._state = state
        log.debug("Ingestion state -> %s", state.name)
        if self._on_state_changed is not None:
            self._on_state_changed(state)
