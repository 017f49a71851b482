"""Ordered, observable collection of the log events on screen.

Owned by the presentation thread: nothing here is locked, and the ingestion
worker never holds a reference to a DisplayModel.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import IntEnum, auto

from .constants import RESTARTED_TEXT
from .log_event import LogEvent, Severity


class ChangeKind(IntEnum):
    INSERTED = auto()
    REMOVED = auto()
    RESET = auto()


@dataclass(frozen=True, slots=True)
class ModelChange:
    """Rows ``first..last`` (inclusive) inserted or removed, or a full reset."""
    kind: ChangeKind
    first: int = 0
    last: int = -1

    @property
    def count(self) -> int:
        return self.last - self.first + 1


ChangeCallback = Callable[[ModelChange], None]


class DisplayModel:
    """Append-only event list with full clear and oldest-first eviction.

    Observers are called synchronously, in registration order. The optional
    ``on_about_to_change`` hook runs before the rows move and ``on_changed``
    after they are visible to readers.
    """

    def __init__(self, max_events: int | None = None, initial: Iterable[LogEvent] = ()) -> None:
        if max_events is not None and max_events < 1:
            raise ValueError("max_events must be at least 1")
        self._events: deque[LogEvent] = deque(initial, maxlen=max_events)
        self._max_events = max_events
        self._observers: list[tuple[ChangeCallback, ChangeCallback | None]] = []

    @property
    def max_events(self) -> int | None:
        return self._max_events

    def add_observer(
        self,
        on_changed: ChangeCallback,
        on_about_to_change: ChangeCallback | None = None,
    ) -> None:
        self._observers.append((on_changed, on_about_to_change))

    def remove_observer(self, on_changed: ChangeCallback) -> None:
        self._observers = [pair for pair in self._observers if pair[0] != on_changed]

    # --- Reads ---

    def size(self) -> int:
        return len(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> LogEvent:
        return self._events[index]

    def __iter__(self) -> Iterator[LogEvent]:
        return iter(self._events)

    def events(self) -> list[LogEvent]:
        return list(self._events)

    def last(self) -> LogEvent | None:
        return self._events[-1] if self._events else None

    # --- Mutations ---

    def append(self, event: LogEvent) -> None:
        if self._max_events is not None and len(self._events) >= self._max_events:
            self._evict_oldest()
        row = len(self._events)
        change = ModelChange(ChangeKind.INSERTED, row, row)
        self._notify_before(change)
        self._events.append(event)
        self._notify_after(change)

    def clear(self) -> None:
        """Drop everything and restart with the "Logging restarted." sentinel.

        Reported as a single RESET, so observers never see an empty model.
        """
        change = ModelChange(ChangeKind.RESET)
        self._notify_before(change)
        self._events.clear()
        self._events.append(LogEvent.system(Severity.INFO, RESTARTED_TEXT))
        self._notify_after(change)

    def _evict_oldest(self) -> None:
        change = ModelChange(ChangeKind.REMOVED, 0, 0)
        self._notify_before(change)
        self._events.popleft()
        self._notify_after(change)

    def _notify_before(self, change: ModelChange) -> None:
        for _, before in list(self._observers):
            if before is not None:
                before(change)

    def _notify_after(self, change: ModelChange) -> None:
        for after, _ in list(self._observers):
            after(change)
