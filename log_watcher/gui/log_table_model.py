"""Qt item model exposing a DisplayModel to a QTableView."""

from __future__ import annotations

from PyQt6.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt

from ..core.display_model import ChangeKind, DisplayModel, ModelChange
from ..core.log_event import LogEvent

COLUMNS = ("Timestamp", "Reporter", "Severity", "Text")
TEXT_COLUMN = 3


def _cell(event: LogEvent, column: int) -> str:
    if column == 0:
        return event.format_timestamp()
    if column == 1:
        return event.reporter
    if column == 2:
        return str(event.severity)
    return event.text


class LogTableModel(QAbstractTableModel):
    """Read-only table view of the events, in arrival order.

    Brackets every DisplayModel change with the matching begin/end calls so
    attached views stay consistent. Must be created before any ScrollPolicy
    on the same DisplayModel.
    """

    def __init__(self, events: DisplayModel, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._events = events
        events.add_observer(self._after_change, self._before_change)

    @property
    def events(self) -> DisplayModel:
        return self._events

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802, B008
        if parent.isValid():
            return 0
        return self._events.size()

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802, B008
        if parent.isValid():
            return 0
        return len(COLUMNS)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):
        if not index.isValid() or not 0 <= index.row() < self._events.size():
            return None
        if role in (Qt.ItemDataRole.DisplayRole, Qt.ItemDataRole.ToolTipRole):
            return _cell(self._events[index.row()], index.column())
        return None

    def headerData(  # noqa: N802
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if role != Qt.ItemDataRole.DisplayRole:
            return None
        if orientation == Qt.Orientation.Horizontal and 0 <= section < len(COLUMNS):
            return COLUMNS[section]
        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        return Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable

    # --- DisplayModel observer ---

    def _before_change(self, change: ModelChange) -> None:
        if change.kind == ChangeKind.INSERTED:
            self.beginInsertRows(QModelIndex(), change.first, change.last)
        elif change.kind == ChangeKind.REMOVED:
            self.beginRemoveRows(QModelIndex(), change.first, change.last)
        else:
            self.beginResetModel()

    def _after_change(self, change: ModelChange) -> None:
        if change.kind == ChangeKind.INSERTED:
            self.endInsertRows()
        elif change.kind == ChangeKind.REMOVED:
            self.endRemoveRows()
        else:
            self.endResetModel()
