"""Dark console theme for the log watcher window."""

from __future__ import annotations

import ctypes
import sys

from PyQt6.QtWidgets import QApplication

# ═══════════════════════════════════════════════════════════════
# Color Palette
# ═══════════════════════════════════════════════════════════════

# --- Backgrounds ---
BG_BASE = "#0A0E14"  # Main background
BG_PANEL = "#15191F"  # Table background
BG_RAISED = "#1A1F2E"  # Buttons, headers
BG_HOVER = "#2C3444"  # Hover / selection

# --- Accent ---
ACCENT = "#4A90E2"
ACCENT_DIM = "#356BAA"

# --- Text ---
TEXT_PRIMARY = "#E8E6E3"
TEXT_SECONDARY = "#A0A8B8"
TEXT_DISABLED = "#5A6270"

# --- Semantic ---
SUCCESS = "#5C9C7D"
WARNING = "#E5A84B"
ERROR = "#C84B31"

# --- Borders ---
DIVIDER = "#1E2D3D"
BORDER = "#404759"

# --- Typography ---
FONT_FAMILY = '"Inter", "Segoe UI", sans-serif'
FONT_MONO = '"Cascadia Code", Consolas, monospace'


def get_stylesheet() -> str:
    """Generate the complete application stylesheet."""
    return f"""
    QMainWindow, QWidget {{
        background-color: {BG_BASE};
        color: {TEXT_PRIMARY};
        font-family: {FONT_FAMILY};
        font-size: 13px;
    }}

    /* Labels */
    QLabel {{
        background: transparent;
        color: {TEXT_PRIMARY};
    }}
    QLabel[class="secondary"] {{
        color: {TEXT_SECONDARY};
    }}
    QLabel[class="status-ok"] {{
        color: {SUCCESS};
        font-weight: 600;
    }}
    QLabel[class="status-warn"] {{
        color: {WARNING};
        font-weight: 600;
    }}
    QLabel[class="status-error"] {{
        color: {ERROR};
        font-weight: 600;
    }}
    QLabel[class="status-off"] {{
        color: {TEXT_DISABLED};
        font-weight: 600;
    }}

    /* Buttons */
    QPushButton {{
        background-color: {BG_RAISED};
        color: {TEXT_PRIMARY};
        border: 1px solid {BORDER};
        border-radius: 6px;
        padding: 6px 16px;
        font-weight: 600;
    }}
    QPushButton:hover {{
        border-color: {ACCENT};
    }}
    QPushButton:pressed {{
        background-color: {BG_HOVER};
        border-color: {ACCENT_DIM};
    }}

    /* CheckBox */
    QCheckBox {{
        color: {TEXT_PRIMARY};
        spacing: 8px;
    }}
    QCheckBox::indicator {{
        width: 16px;
        height: 16px;
        border: 2px solid {BORDER};
        border-radius: 4px;
        background: {BG_RAISED};
    }}
    QCheckBox::indicator:hover {{
        border-color: {ACCENT};
    }}
    QCheckBox::indicator:checked {{
        background: {ACCENT};
        border-color: {ACCENT};
    }}

    /* Log table */
    QTableView {{
        background-color: {BG_PANEL};
        alternate-background-color: {BG_RAISED};
        color: {TEXT_PRIMARY};
        gridline-color: {DIVIDER};
        border: 1px solid {DIVIDER};
        font-family: {FONT_MONO};
        font-size: 12px;
        selection-background-color: {BG_HOVER};
        selection-color: {TEXT_PRIMARY};
    }}
    QHeaderView::section {{
        background-color: {BG_RAISED};
        color: {TEXT_SECONDARY};
        border: none;
        border-right: 1px solid {DIVIDER};
        padding: 4px 8px;
        font-weight: 600;
    }}

    /* ScrollBar */
    QScrollBar:vertical {{
        background: transparent;
        width: 10px;
        margin: 0;
    }}
    QScrollBar::handle:vertical {{
        background: {BG_HOVER};
        border-radius: 5px;
        min-height: 30px;
    }}
    QScrollBar::handle:vertical:hover {{
        background: {ACCENT};
    }}
    QScrollBar::add-line:vertical, QScrollBar::sub-line:vertical {{
        height: 0;
    }}
    QScrollBar:horizontal {{
        background: transparent;
        height: 10px;
        margin: 0;
    }}
    QScrollBar::handle:horizontal {{
        background: {BG_HOVER};
        border-radius: 5px;
        min-width: 30px;
    }}
    QScrollBar::add-line:horizontal, QScrollBar::sub-line:horizontal {{
        width: 0;
    }}

    QToolTip {{
        background-color: {BG_RAISED};
        color: {TEXT_PRIMARY};
        border: 1px solid {ACCENT};
        border-radius: 4px;
        padding: 6px 10px;
        font-size: 12px;
    }}
    """


def enable_dark_title_bar(hwnd: int) -> None:
    """Enable Windows 10/11 dark title bar via DwmSetWindowAttribute.

    Args:
        hwnd: Window handle (HWND) from QWidget.winId()
    """
    if sys.platform != "win32":
        return
    try:
        DWMWA_USE_IMMERSIVE_DARK_MODE = 20
        ctypes.windll.dwmapi.DwmSetWindowAttribute(
            hwnd,
            DWMWA_USE_IMMERSIVE_DARK_MODE,
            ctypes.byref(ctypes.c_int(1)),
            4,
        )
    except (AttributeError, OSError):
        pass  # Older Windows without dwmapi support


def apply_theme(app: QApplication) -> None:
    """Apply the dark console theme to the application."""
    app.setStyle("Fusion")
    app.setStyleSheet(get_stylesheet())
