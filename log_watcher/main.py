"""Entry point: logging, command line overrides and QApplication startup."""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from pathlib import Path

from PyQt6.QtWidgets import QApplication, QMessageBox

from . import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-watcher",
        description="Display log events published on a ZeroMQ topic as they arrive.",
    )
    parser.add_argument("--address", help="publisher address, e.g. tcp://localhost:61616")
    parser.add_argument("--topic", help="topic to subscribe to")
    parser.add_argument(
        "--config-dir",
        type=Path,
        help="directory holding config.json (default: ~/.log_watcher)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Log Watcher")
    app.setOrganizationName("LogWatcher")

    from .core.config import get_config
    from .gui.theme import apply_theme

    config = get_config(args.config_dir)
    apply_theme(app)

    from .gui.log_watcher_window import LogWatcherWindow

    window = LogWatcherWindow(config, address=args.address, topic=args.topic)

    if sys.platform == "win32":
        from .gui.theme import enable_dark_title_bar
        enable_dark_title_bar(int(window.winId()))

    # Global exception handler
    def exception_hook(exctype, value, tb):
        traceback_str = "".join(traceback.format_exception(exctype, value, tb))
        logging.error("Unhandled exception:\n%s", traceback_str)

        msg = QMessageBox()
        msg.setIcon(QMessageBox.Icon.Critical)
        msg.setWindowTitle("Log Watcher Error")
        msg.setText("An unexpected error occurred; the application will close.")
        msg.setInformativeText(str(value))
        msg.setDetailedText(traceback_str)
        msg.exec()

        sys.__excepthook__(exctype, value, tb)
        sys.exit(1)

    sys.excepthook = exception_hook

    # The worker waits for the window's first show before connecting
    window.start_ingestion()
    window.show()

    exit_code = app.exec()
    window.shutdown()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
