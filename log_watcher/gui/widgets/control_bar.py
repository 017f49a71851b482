"""Top button panel with the 'Clear' and 'Scroll Lock' options."""

from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QCheckBox, QHBoxLayout, QPushButton, QWidget

from ...core.control_panel import ControlPanel


class ControlBar(QWidget):
    """Forwards button presses to ControlPanel; holds no state of its own."""

    def __init__(self, panel: ControlPanel, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._panel = panel

        layout = QHBoxLayout(self)
        layout.setContentsMargins(5, 5, 5, 5)
        layout.setSpacing(10)
        layout.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
        layout.addStretch()

        self._clear_btn = QPushButton("Clear")
        self._clear_btn.setToolTip("Clears the Log Message window")
        self._clear_btn.clicked.connect(self._on_clear)
        layout.addWidget(self._clear_btn)

        self._scroll_lock = QCheckBox("Scroll Lock")
        self._scroll_lock.setToolTip("Disables auto-scrolling of the Log Message window")
        self._scroll_lock.setChecked(panel.is_scroll_locked())
        self._scroll_lock.toggled.connect(self._on_scroll_lock_toggled)
        layout.addWidget(self._scroll_lock)

    @property
    def clear_button(self) -> QPushButton:
        return self._clear_btn

    @property
    def scroll_lock_box(self) -> QCheckBox:
        return self._scroll_lock

    def _on_clear(self) -> None:
        self._panel.clear()

    def _on_scroll_lock_toggled(self, checked: bool) -> None:
        self._panel.set_scroll_locked(checked)
