"""
gui_workers.py - GUI Worker Threads

Plan building and rename execution run off the UI thread
"""

import logging
from typing import Optional, List

from PySide6.QtCore import QThread, Signal, QObject

from ..core import (
    RenameToolError, FileItem, RenamePlan, RenameOptions, SortKey, TransformSpec,
    collect_files, plan_for_files, execute_rename,
)

log = logging.getLogger(__name__)


class ScanWorker(QThread):
    """File listing worker thread"""

    finished = Signal(list)         # List[FileItem]
    error = Signal(str)

    def __init__(self, source: str, include_hidden: bool = False, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.source = source
        self.include_hidden = include_hidden

    def run(self):
        try:
            files = collect_files(self.source, include_hidden=self.include_hidden)
        except (OSError, ValueError) as e:
            self.error.emit(str(e))
            return
        self.finished.emit(files)


class PlanWorker(QThread):
    """Rename plan generation worker thread"""

    progress = Signal(str)
    finished = Signal(object)       # RenamePlan
    error = Signal(str)

    def __init__(
        self,
        files: List[FileItem],
        spec: TransformSpec,
        sort_by: SortKey = SortKey.NAME,
        reverse: bool = False,
        options: Optional[RenameOptions] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.files = files
        self.spec = spec
        self.sort_by = sort_by
        self.reverse = reverse
        self.options = options or RenameOptions()

    def run(self):
        self.progress.emit("Generating rename plan...")
        try:
            plan = plan_for_files(self.files, self.spec, self.sort_by, self.reverse, self.options)
        except (OSError, RenameToolError) as e:
            log.debug("Plan generation failed: %s", e)
            self.error.emit(str(e))
            return
        self.finished.emit(plan)


class RenameWorker(QThread):
    """Rename execution worker thread"""

    progress = Signal(int, int, str)    # current, total, message
    finished = Signal(object)           # ExecutionResult
    error = Signal(str)

    def __init__(self, plan: RenamePlan, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.plan = plan

    def run(self):
        try:
            result = execute_rename(self.plan, progress_callback=self.progress.emit)
        except (OSError, RenameToolError) as e:
            self.error.emit(str(e))
            return
        self.finished.emit(result)
