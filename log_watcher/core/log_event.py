"""Structured log events and their wire representation.

Pure Python, importable without Qt or zmq.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .constants import SYSTEM_REPORTER


class PayloadError(ValueError):
    """Raised when a decoded payload does not have the LogEvent shape."""


class Severity(Enum):
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"

    @classmethod
    def parse(cls, value: Any) -> Severity:
        if isinstance(value, Severity):
            return value
        try:
            return cls(value)
        except ValueError:
            raise PayloadError(f"unknown severity: {value!r}") from None

    def __str__(self) -> str:
        return self.value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime.

    Naive ISO timestamps are taken as UTC.
    """
    if isinstance(value, bool):
        raise PayloadError(f"invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise PayloadError(f"timestamp out of range: {value!r}") from None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise PayloadError(f"invalid timestamp: {value!r}") from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise PayloadError(f"invalid timestamp: {value!r}")


@dataclass(frozen=True, slots=True)
class LogEvent:
    """A single log line as shown in the viewer."""
    reporter: str
    severity: Severity
    text: str
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def system(cls, severity: Severity, text: str) -> LogEvent:
        """Build an event synthesized by the viewer itself."""
        return cls(SYSTEM_REPORTER, severity, text)

    @classmethod
    def from_wire(cls, obj: Any) -> LogEvent:
        """Validate a decoded payload and build a LogEvent from it.

        Expected shape::

            {"reporter": str, "severity": "Info"|"Warning"|"Error",
             "text": str, "timestamp": ISO-8601 | epoch millis}

        ``timestamp`` may be omitted, in which case the decode time is used.

        Raises:
            PayloadError: if ``obj`` is not a LogEvent-shaped mapping.
        """
        if not isinstance(obj, Mapping):
            raise PayloadError(f"expected an object, got {type(obj).__name__}")

        for key in ("reporter", "severity", "text"):
            if key not in obj:
                raise PayloadError(f"missing field: {key}")

        reporter = obj["reporter"]
        text = obj["text"]
        if not isinstance(reporter, str):
            raise PayloadError("reporter must be a string")
        if not isinstance(text, str):
            raise PayloadError("text must be a string")

        severity = Severity.parse(obj["severity"])

        raw_ts = obj.get("timestamp")
        if raw_ts is None:
            return cls(reporter, severity, text)
        return cls(reporter, severity, text, parse_timestamp(raw_ts))

    def to_wire(self) -> dict[str, str]:
        return {
            "reporter": self.reporter,
            "severity": self.severity.value,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }

    def format_timestamp(self) -> str:
        """Local-time timestamp for display, millisecond precision."""
        return self.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
