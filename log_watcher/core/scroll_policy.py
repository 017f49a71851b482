"""Auto-scroll ("scroll-follow") decisions driven by model changes and scroll lock."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum, auto
from typing import Protocol

from .display_model import ChangeKind, DisplayModel, ModelChange


class ScrollMode(IntEnum):
    FOLLOWING = auto()
    LOCKED = auto()


@dataclass(slots=True)
class ScrollState:
    """Scroll lock flag. Only ScrollPolicy changes ``mode``."""
    mode: ScrollMode = ScrollMode.FOLLOWING

    @property
    def locked(self) -> bool:
        return self.mode == ScrollMode.LOCKED


class ViewAnchor(Protocol):
    """Top edge of the real view, held still while scroll lock is on."""

    def top_row(self) -> int | None: ...

    def set_top_row(self, row: int) -> None: ...


class ScrollPolicy:
    """Keeps the viewport on the newest row unless scroll lock is on.

    * FOLLOWING: every insert moves the viewport to the new last row.
    * LOCKED: inserts never move the viewport; evictions shift it so the same
      row stays in view. With an ``anchor``, the view's top row is read
      before each eviction and moved up by the evicted count afterwards, so
      whatever the user scrolled to stays on screen.
    * LOCKED -> FOLLOWING jumps straight to the last row.

    Registers itself as a DisplayModel observer. Register it after any view
    adapter so the rows exist before ``scroll_to`` runs.
    """

    def __init__(
        self,
        model: DisplayModel,
        scroll_to: Callable[[int], None] | None = None,
        state: ScrollState | None = None,
        *,
        anchor: ViewAnchor | None = None,
    ) -> None:
        self._model = model
        self._scroll_to = scroll_to
        self._anchor = anchor
        self._state = state if state is not None else ScrollState()
        self._viewport_index: int | None = None
        self._held_top: int | None = None
        model.add_observer(self._on_model_changed, self._before_model_change)

    @property
    def state(self) -> ScrollState:
        return self._state

    @property
    def locked(self) -> bool:
        return self._state.locked

    @property
    def viewport_index(self) -> int | None:
        return self._viewport_index

    def toggle_lock(self) -> bool:
        """Flip scroll lock. Returns the new locked value."""
        self.set_locked(not self._state.locked)
        return self._state.locked

    def set_locked(self, locked: bool) -> None:
        new_mode = ScrollMode.LOCKED if locked else ScrollMode.FOLLOWING
        if new_mode == self._state.mode:
            return
        self._state.mode = new_mode
        if new_mode == ScrollMode.FOLLOWING:
            self._follow_latest()

    def _before_model_change(self, change: ModelChange) -> None:
        if self._state.locked and change.kind == ChangeKind.REMOVED and self._anchor is not None:
            self._held_top = self._anchor.top_row()

    def _on_model_changed(self, change: ModelChange) -> None:
        if not self._state.locked:
            self._follow_latest()
            return

        if change.kind == ChangeKind.REMOVED:
            self._hold_view(change)

        size = self._model.size()
        if self._viewport_index is None:
            return
        if change.kind == ChangeKind.REMOVED and change.first <= self._viewport_index:
            self._viewport_index = max(0, self._viewport_index - change.count)
        elif change.kind == ChangeKind.RESET:
            self._viewport_index = min(self._viewport_index, size - 1) if size else None

    def _hold_view(self, change: ModelChange) -> None:
        held, self._held_top = self._held_top, None
        if held is None or self._anchor is None or change.first > held:
            return
        self._anchor.set_top_row(max(0, held - change.count))

    def _follow_latest(self) -> None:
        size = self._model.size()
        if size == 0:
            return
        self._move_to(size - 1)

    def _move_to(self, index: int) -> None:
        self._viewport_index = index
        if self._scroll_to is not None:
            self._scroll_to(index)
