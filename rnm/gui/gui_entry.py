"""
gui_entry.py - GUI Entry

Launch PySide6 GUI application
"""

import argparse
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from .. import __version__
from ..cli.cli_report import LOG_LEVELS, setup_logging
from .gui_mainwindow import MainWindow


def main(argv: Optional[List[str]] = None):
    """GUI main entry; Qt options are passed through to QApplication"""
    if argv is None:
        argv = sys.argv[1:]
    parser = argparse.ArgumentParser(prog="rnm", description="Batch Rename Tool (GUI)")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="WARNING", help="Logging verbosity")
    args, qt_args = parser.parse_known_args(argv)
    setup_logging(args.log_level)

    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication([sys.argv[0]] + qt_args)
    app.setApplicationName("Batch Rename Tool")
    app.setApplicationVersion(__version__)
    app.setStyle("Fusion")

    window = MainWindow()
    window.show()

    return app.exec()
