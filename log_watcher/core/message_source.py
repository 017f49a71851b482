"""Publish/subscribe message source boundary and its ZeroMQ implementation.

The ingestion worker only depends on the ``MessageSource`` / ``Connection`` /
``Consumer`` protocols, so tests can drive it with an in-memory source.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import zmq

from .constants import ENVELOPE_FRAME_COUNT, MAX_RAW_DESCRIPTION, OBJECT_KIND

log = logging.getLogger(__name__)


class SourceError(Exception):
    """Connection, subscription or decode failure of the message source."""


@dataclass(frozen=True, slots=True)
class Envelope:
    """Outer wire wrapper of one bus message: ``[topic, kind, body]`` frames."""
    frames: tuple[bytes, ...]

    @property
    def topic(self) -> bytes | None:
        return self.frames[0] if self.frames else None

    def is_object_envelope(self) -> bool:
        return len(self.frames) == ENVELOPE_FRAME_COUNT and self.frames[1] == OBJECT_KIND

    def unwrap(self) -> Any:
        """Decode the JSON body of an object envelope.

        Raises:
            SourceError: if this is not an object envelope or the body
                cannot be decoded.
        """
        if not self.is_object_envelope():
            raise SourceError("not an object envelope")
        try:
            return json.loads(self.frames[2].decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SourceError(f"undecodable envelope body: {e}") from e

    def __str__(self) -> str:
        text = f"Envelope({len(self.frames)} frames: {list(self.frames)!r})"
        if len(text) > MAX_RAW_DESCRIPTION:
            text = text[: MAX_RAW_DESCRIPTION - 3] + "..."
        return text


class Consumer(Protocol):
    def receive(self, timeout: float) -> Envelope | None: ...

    def close(self) -> None: ...


class Connection(Protocol):
    def subscribe(self, topic: str) -> Consumer: ...

    def close(self) -> None: ...


class MessageSource(Protocol):
    def connect(self, address: str) -> Connection: ...


# ──────────────────────────────────────────────
# ZeroMQ SUB implementation
# ──────────────────────────────────────────────

class ZmqConsumer:
    """Receives envelopes from a subscribed SUB socket."""

    def __init__(self, socket: zmq.Socket, topic: str) -> None:
        self._socket = socket
        self._topic = topic

    def receive(self, timeout: float) -> Envelope | None:
        """Wait up to ``timeout`` seconds for one message; ``None`` on timeout."""
        try:
            if not self._socket.poll(int(timeout * 1000), zmq.POLLIN):
                return None
            frames = self._socket.recv_multipart(zmq.NOBLOCK)
        except zmq.Again:
            return None
        except zmq.ZMQError as e:
            raise SourceError(f"receive failed: {e}") from e
        return Envelope(tuple(frames))

    def close(self) -> None:
        if self._socket.closed:
            return
        try:
            self._socket.setsockopt_string(zmq.UNSUBSCRIBE, self._topic)
        except zmq.ZMQError:
            log.debug("Unsubscribe from %r failed", self._topic, exc_info=True)


class ZmqConnection:
    """A SUB socket connected to one publisher address."""

    def __init__(self, context: zmq.Context, address: str) -> None:
        self._address = address
        self._socket = context.socket(zmq.SUB)
        self._socket.setsockopt(zmq.LINGER, 0)
        try:
            self._socket.connect(address)
        except zmq.ZMQError as e:
            self._socket.close()
            raise SourceError(f"cannot connect to {address}: {e}") from e
        log.info("Connected SUB socket to %s", address)

    @property
    def address(self) -> str:
        return self._address

    def subscribe(self, topic: str) -> ZmqConsumer:
        try:
            self._socket.setsockopt_string(zmq.SUBSCRIBE, topic)
        except zmq.ZMQError as e:
            raise SourceError(f"cannot subscribe to {topic!r}: {e}") from e
        log.info("Subscribed to topic %r", topic)
        return ZmqConsumer(self._socket, topic)

    def close(self) -> None:
        if not self._socket.closed:
            self._socket.close()
            log.info("Closed connection to %s", self._address)


class ZmqMessageSource:
    """MessageSource backed by a shared ZeroMQ context."""

    def __init__(self, context: zmq.Context | None = None) -> None:
        self._context = context if context is not None else zmq.Context.instance()

    def connect(self, address: str) -> ZmqConnection:
        try:
            return ZmqConnection(self._context, address)
        except zmq.ZMQError as e:
            raise SourceError(f"cannot create socket for {address}: {e}") from e
