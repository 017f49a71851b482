"""Scrollable log message table."""

from __future__ import annotations

from PyQt6.QtWidgets import QAbstractItemView, QHeaderView, QTableView, QWidget

from ..log_table_model import TEXT_COLUMN, LogTableModel


class LogTable(QTableView):
    """Unsortable, read-only table of log events.

    ``scroll_to_row`` is the viewport hook handed to ScrollPolicy, and
    ``top_row`` / ``set_top_row`` make it the policy's view anchor.
    Styling is handled by the global QSS theme.
    """

    TEXT_COLUMN_WIDTH = 500

    def __init__(self, model: LogTableModel, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setModel(model)
        self.setSortingEnabled(False)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.setWordWrap(False)
        self.verticalHeader().setVisible(False)
        self.verticalHeader().setDefaultSectionSize(22)

        header = self.horizontalHeader()
        header.setSectionsClickable(False)
        header.setSectionResizeMode(QHeaderView.ResizeMode.Interactive)
        header.setStretchLastSection(True)
        self.setColumnWidth(TEXT_COLUMN, self.TEXT_COLUMN_WIDTH)

    def scroll_to_row(self, row: int) -> None:
        index = self.model().index(row, 0)
        if index.isValid():
            self.scrollTo(index, QAbstractItemView.ScrollHint.PositionAtBottom)

    def top_row(self) -> int | None:
        row = self.rowAt(0)
        return row if row >= 0 else None

    def set_top_row(self, row: int) -> None:
        index = self.model().index(row, 0)
        if index.isValid():
            self.scrollTo(index, QAbstractItemView.ScrollHint.PositionAtTop)
