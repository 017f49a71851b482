"""Status bar with broker connection indicator and event count."""

from __future__ import annotations

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QColor, QPainter
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QWidget

from ...core.ingestion import ConnectionState
from ..theme import ACCENT, ERROR, TEXT_DISABLED, WARNING

# state -> (label suffix, QSS class, dot color)
# STREAMING only means subscribed; a SUB socket never sees a missing publisher
_STATE_STYLE = {
    ConnectionState.CONNECTING: ("connecting...", "status-warn", WARNING),
    ConnectionState.STREAMING: ("subscribed", "status-ok", ACCENT),
    ConnectionState.DISCONNECTED: ("disconnected", "status-error", ERROR),
    ConnectionState.STOPPED: ("stopped", "status-off", TEXT_DISABLED),
}


class _StatusDot(QWidget):
    """Small colored circle indicator."""

    def __init__(self, color: str = TEXT_DISABLED, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._color = QColor(color)
        self.setFixedSize(10, 10)

    def color(self) -> str:
        return self._color.name()

    def set_color(self, color: str) -> None:
        self._color = QColor(color)
        self.update()

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(self._color)
        painter.drawEllipse(QRectF(1, 1, 8, 8))
        painter.end()


class StatusBar(QWidget):
    """Connection state of the ingestion worker plus the number of rows shown."""

    def __init__(self, address: str, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._address = address
        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 4, 8, 4)

        self._conn_dot = _StatusDot(TEXT_DISABLED)
        layout.addWidget(self._conn_dot)
        layout.addSpacing(4)

        self._conn_label = QLabel(f"{address}: waiting")
        self._conn_label.setProperty("class", "status-off")
        layout.addWidget(self._conn_label)

        layout.addStretch()

        self._count_label = QLabel("")
        self._count_label.setProperty("class", "secondary")
        layout.addWidget(self._count_label)

    @property
    def connection_text(self) -> str:
        return self._conn_label.text()

    @property
    def count_text(self) -> str:
        return self._count_label.text()

    def set_state(self, state: ConnectionState) -> None:
        suffix, css_class, color = _STATE_STYLE[state]
        self._conn_label.setText(f"{self._address}: {suffix}")
        self._conn_label.setProperty("class", css_class)
        self._conn_label.style().unpolish(self._conn_label)
        self._conn_label.style().polish(self._conn_label)
        self._conn_dot.set_color(color)

    def set_event_count(self, count: int, capacity: int | None = None) -> None:
        if capacity is None:
            self._count_label.setText(f"{count} events")
        else:
            self._count_label.setText(f"{count} / {capacity} events")
