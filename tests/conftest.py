"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

# Widgets are created in tests; no display is needed
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    """Provide a QApplication instance for the entire test session."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def clean_config(tmp_path):
    """Isolated ConfigManager installed as the global config."""
    import log_watcher.core.config as config_module
    from log_watcher.core.config import ConfigManager

    config_module._global_config = None
    config_module._global_config = ConfigManager(tmp_path / ".log_watcher")

    yield config_module._global_config

    config_module._global_config = None
