"""Producer side of the log topic: publishes LogEvents in the envelope format."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

import zmq

from .constants import DEFAULT_TOPIC, OBJECT_KIND
from .log_event import LogEvent

log = logging.getLogger(__name__)


class LogPublisher:
    """Binds a PUB socket and sends ``[topic, b"object", json]`` messages.

    Usable as a context manager::

        with LogPublisher("tcp://*:61616") as pub:
            pub.publish(LogEvent("svcA", Severity.WARNING, "disk 80% full"))
    """

    def __init__(
        self,
        address: str,
        topic: str = DEFAULT_TOPIC,
        context: zmq.Context | None = None,
    ) -> None:
        self._topic = topic.encode("utf-8")
        ctx = context if context is not None else zmq.Context.instance()
        self._socket = ctx.socket(zmq.PUB)
        self._socket.setsockopt(zmq.LINGER, 0)
        try:
            self._socket.bind(address)
        except zmq.ZMQError:
            self._socket.close()
            raise
        log.info("Publishing topic %r on %s", topic, address)

    def publish(self, event: LogEvent) -> None:
        body = json.dumps(event.to_wire(), ensure_ascii=False).encode("utf-8")
        self._socket.send_multipart([self._topic, OBJECT_KIND, body])

    def publish_raw(self, frames: Sequence[bytes]) -> None:
        """Send arbitrary frames (used to exercise malformed-input handling)."""
        self._socket.send_multipart(list(frames))

    def close(self) -> None:
        if not self._socket.closed:
            self._socket.close()

    def __enter__(self) -> LogPublisher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
