"""
gui_mainwindow.py - GUI Main Window

One window: pick files (directory or glob), choose a rename mode, preview
the resolved plan with conflicts highlighted, then execute it.
"""

import logging
from typing import Optional, List, Dict

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QFormLayout,
    QStackedWidget, QLabel, QLineEdit, QPushButton, QCheckBox, QComboBox,
    QSpinBox, QTableWidget, QTableWidgetItem, QProgressBar, QFileDialog,
    QMessageBox, QHeaderView, QGroupBox, QInputDialog
)
from PySide6.QtCore import Slot
from PySide6.QtGui import QColor

from ..core import (
    RenameToolError, FileItem, RenamePlan, ExecutionResult, SortKey, Stage,
    AffixMode, CaseMode, DatePosition, TransformSpec, SearchReplace, RegexReplace,
    Numbering, Prefix, Suffix, ChangeCase, DateInsert, DuplicateTarget, ExternalCollision,
    InvalidName, Config, Preset, describe,
)
from .gui_workers import ScanWorker, PlanWorker, RenameWorker

log = logging.getLogger(__name__)

MODE_LABELS = [
    "Search and Replace",
    "Regular Expression",
    "Numbering",
    "Prefix",
    "Suffix",
    "Change Case",
    "Insert Date",
]

GREEN = QColor(0, 150, 0)
GRAY = QColor(150, 150, 150)
AMBER = QColor(200, 150, 0)
RED = QColor(200, 0, 0)
RED_BG = QColor(255, 220, 220)
AMBER_BG = QColor(255, 255, 200)


def conflict_sources(plan: RenamePlan) -> Dict[str, str]:
    """Map source path -> short conflict label"""
    labels = {}
    for conflict in plan.conflicts:
        if isinstance(conflict, DuplicateTarget):
            for src in conflict.sources:
                labels[str(src)] = f"Duplicate target: {conflict.target.name}"
        elif isinstance(conflict, ExternalCollision):
            labels[str(conflict.source)] = f"Exists: {conflict.target.name}"
        elif isinstance(conflict, InvalidName):
            labels[str(conflict.source)] = f"Invalid name: {conflict.reason}"
        else:
            for src in conflict.paths:
                labels[str(src)] = "Cycle"
    return labels


class RenamePanel(QWidget):
    """File selection, transform settings, preview and execution"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.files: List[FileItem] = []
        self.plan: Optional[RenamePlan] = None
        self.scan_worker: Optional[ScanWorker] = None
        self.plan_worker: Optional[PlanWorker] = None
        self.rename_worker: Optional[RenameWorker] = None

        self._init_ui()
        self._load_config()

    def _init_ui(self):
        layout = QVBoxLayout(self)

        # Source group
        source_group = QGroupBox("Files")
        source_layout = QGridLayout(source_group)

        source_layout.addWidget(QLabel("Directory or glob:"), 0, 0)
        self.source_edit = QLineEdit()
        self.source_edit.setPlaceholderText("e.g. ~/photos or ~/photos/*.jpg")
        self.source_edit.returnPressed.connect(self._do_scan)
        source_layout.addWidget(self.source_edit, 0, 1)
        self.browse_btn = QPushButton("Browse...")
        self.browse_btn.clicked.connect(self._browse_directory)
        source_layout.addWidget(self.browse_btn, 0, 2)
        self.scan_btn = QPushButton("Load")
        self.scan_btn.clicked.connect(self._do_scan)
        source_layout.addWidget(self.scan_btn, 0, 3)

        self.hidden_check = QCheckBox("Include Hidden Files")
        source_layout.addWidget(self.hidden_check, 1, 1)

        layout.addWidget(source_group)

        # Mode group
        mode_group = QGroupBox("Rename Settings")
        mode_layout = QVBoxLayout(mode_group)

        top_row = QHBoxLayout()
        top_row.addWidget(QLabel("Mode:"))
        self.mode_combo = QComboBox()
        self.mode_combo.addItems(MODE_LABELS)
        top_row.addWidget(self.mode_combo)
        top_row.addSpacing(20)
        top_row.addWidget(QLabel("Order:"))
        self.sort_combo = QComboBox()
        for key in SortKey:
            self.sort_combo.addItem(key.value, key)
        top_row.addWidget(self.sort_combo)
        self.reverse_check = QCheckBox("Reverse")
        top_row.addWidget(self.reverse_check)
        top_row.addStretch()
        mode_layout.addLayout(top_row)

        self.stack = QStackedWidget()
        self.stack.addWidget(self._search_form())
        self.stack.addWidget(self._regex_form())
        self.stack.addWidget(self._numbering_form())
        self.stack.addWidget(self._affix_form("prefix"))
        self.stack.addWidget(self._affix_form("suffix"))
        self.stack.addWidget(self._case_form())
        self.stack.addWidget(self._date_form())
        self.mode_combo.currentIndexChanged.connect(self.stack.setCurrentIndex)
        mode_layout.addWidget(self.stack)

        preset_row = QHBoxLayout()
        preset_row.addWidget(QLabel("Preset:"))
        self.preset_combo = QComboBox()
        self.preset_combo.setMinimumWidth(160)
        preset_row.addWidget(self.preset_combo)
        self.load_preset_btn = QPushButton("Apply")
        self.load_preset_btn.clicked.connect(self._apply_preset)
        preset_row.addWidget(self.load_preset_btn)
        self.save_preset_btn = QPushButton("Save As...")
        self.save_preset_btn.clicked.connect(self._save_preset)
        preset_row.addWidget(self.save_preset_btn)
        preset_row.addStretch()
        self.preview_btn = QPushButton("Preview")
        self.preview_btn.clicked.connect(self._do_preview)
        self.preview_btn.setEnabled(False)
        preset_row.addWidget(self.preview_btn)
        mode_layout.addLayout(preset_row)

        layout.addWidget(mode_group)

        # Results table
        self.table = QTableWidget()
        self.table.setColumnCount(3)
        self.table.setHorizontalHeaderLabels(["Original Name", "New Name", "Status"])
        self.table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        self.table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        self.table.horizontalHeader().setSectionResizeMode(2, QHeaderView.ResizeMode.ResizeToContents)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        layout.addWidget(self.table, 1)

        # Progress and execution
        bottom_layout = QHBoxLayout()

        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        bottom_layout.addWidget(self.progress_bar, 1)

        self.execute_btn = QPushButton("Execute Rename")
        self.execute_btn.clicked.connect(self._do_execute)
        self.execute_btn.setEnabled(False)
        self.execute_btn.setStyleSheet("QPushButton { background-color: #4CAF50; color: white; font-weight: bold; padding: 8px 16px; }")
        bottom_layout.addWidget(self.execute_btn)

        layout.addLayout(bottom_layout)

        self.status_label = QLabel("")
        layout.addWidget(self.status_label)

    # ---- parameter forms ----

    def _search_form(self) -> QWidget:
        form = QWidget()
        layout = QFormLayout(form)
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Text to replace (every occurrence)")
        self.replace_edit = QLineEdit()
        self.replace_edit.setPlaceholderText("Replacement (leave empty to delete)")
        self.search_case_check = QCheckBox("Case Sensitive")
        self.search_case_check.setChecked(True)
        layout.addRow("Find:", self.search_edit)
        layout.addRow("Replace with:", self.replace_edit)
        layout.addRow("", self.search_case_check)
        return form

    def _regex_form(self) -> QWidget:
        form = QWidget()
        layout = QFormLayout(form)
        self.regex_edit = QLineEdit()
        self.regex_edit.setPlaceholderText(r"e.g. IMG_(\d+)")
        self.regex_replace_edit = QLineEdit()
        self.regex_replace_edit.setPlaceholderText("e.g. photo_$1 (use ${name} for named groups)")
        layout.addRow("Pattern:", self.regex_edit)
        layout.addRow("Replacement:", self.regex_replace_edit)
        return form

    def _numbering_form(self) -> QWidget:
        form = QWidget()
        layout = QFormLayout(form)
        self.number_pattern_edit = QLineEdit("file_###")
        self.number_pattern_edit.setToolTip("Each run of '#' is replaced by the number, zero-padded to the run length")
        self.start_spin = QSpinBox()
        self.start_spin.setRange(0, 999999)
        self.start_spin.setValue(1)
        layout.addRow("Pattern:", self.number_pattern_edit)
        layout.addRow("Start:", self.start_spin)
        return form

    def _affix_form(self, kind: str) -> QWidget:
        form = QWidget()
        layout = QFormLayout(form)
        text_edit = QLineEdit()
        action_combo = QComboBox()
        for mode in AffixMode:
            action_combo.addItem(mode.value, mode)
        layout.addRow("Text:", text_edit)
        layout.addRow("Action:", action_combo)
        if kind == "prefix":
            self.prefix_edit, self.prefix_action = text_edit, action_combo
        else:
            self.suffix_edit, self.suffix_action = text_edit, action_combo
        return form

    def _case_form(self) -> QWidget:
        form = QWidget()
        layout = QFormLayout(form)
        self.case_combo = QComboBox()
        for mode in CaseMode:
            self.case_combo.addItem(mode.value, mode)
        layout.addRow("Case:", self.case_combo)
        return form

    def _date_form(self) -> QWidget:
        form = QWidget()
        layout = QFormLayout(form)
        self.date_combo = QComboBox()
        for pos in DatePosition:
            self.date_combo.addItem(pos.value, pos)
        layout.addRow("Position:", self.date_combo)
        return form

    def current_transform(self) -> TransformSpec:
        """Build the transform from the visible form (raises TransformError)"""
        index = self.mode_combo.currentIndex()
        if index == 0:
            return SearchReplace(self.search_edit.text(), self.replace_edit.text(),
                                 self.search_case_check.isChecked())
        if index == 1:
            return RegexReplace(self.regex_edit.text(), self.regex_replace_edit.text())
        if index == 2:
            return Numbering(self.number_pattern_edit.text(), self.start_spin.value())
        if index == 3:
            return Prefix(self.prefix_edit.text(), self.prefix_action.currentData())
        if index == 4:
            return Suffix(self.suffix_edit.text(), self.suffix_action.currentData())
        if index == 5:
            return ChangeCase(self.case_combo.currentData())
        return DateInsert(self.date_combo.currentData())

    def show_transform(self, spec: TransformSpec):
        """Fill the forms from a saved transform"""
        if isinstance(spec, SearchReplace):
            self.mode_combo.setCurrentIndex(0)
            self.search_edit.setText(spec.search)
            self.replace_edit.setText(spec.replace)
            self.search_case_check.setChecked(spec.case_sensitive)
        elif isinstance(spec, RegexReplace):
            self.mode_combo.setCurrentIndex(1)
            self.regex_edit.setText(spec.pattern)
            self.regex_replace_edit.setText(spec.replacement)
        elif isinstance(spec, Numbering):
            self.mode_combo.setCurrentIndex(2)
            self.number_pattern_edit.setText(spec.pattern)
            self.start_spin.setValue(spec.start)
        elif isinstance(spec, Prefix):
            self.mode_combo.setCurrentIndex(3)
            self.prefix_edit.setText(spec.text)
            self.prefix_action.setCurrentIndex(self.prefix_action.findData(spec.action))
        elif isinstance(spec, Suffix):
            self.mode_combo.setCurrentIndex(4)
            self.suffix_edit.setText(spec.text)
            self.suffix_action.setCurrentIndex(self.suffix_action.findData(spec.action))
        elif isinstance(spec, ChangeCase):
            self.mode_combo.setCurrentIndex(5)
            self.case_combo.setCurrentIndex(self.case_combo.findData(spec.case))
        else:
            self.mode_combo.setCurrentIndex(6)
            self.date_combo.setCurrentIndex(self.date_combo.findData(spec.position))

    # ---- presets ----

    def _load_config(self):
        try:
            self.config = Config.load()
        except RenameToolError as e:
            log.warning("Ignoring unreadable config: %s", e)
            self.config = Config()
        self.sort_combo.setCurrentIndex(self.sort_combo.findData(self.config.default_sort))
        self.reverse_check.setChecked(self.config.default_reverse)
        self._refresh_presets()

    def _refresh_presets(self):
        self.preset_combo.clear()
        self.preset_combo.addItems(self.config.list_presets())
        self.load_preset_btn.setEnabled(self.preset_combo.count() > 0)

    def _apply_preset(self):
        preset = self.config.get_preset(self.preset_combo.currentText())
        if preset is None:
            return
        self.show_transform(preset.transform)
        self.sort_combo.setCurrentIndex(self.sort_combo.findData(preset.sort))
        self.reverse_check.setChecked(preset.reverse)
        self.status_label.setText(f"Preset '{preset.name}': {describe(preset.transform)}")

    def _save_preset(self):
        try:
            spec = self.current_transform()
        except RenameToolError as e:
            QMessageBox.warning(self, "Warning", str(e))
            return

        name, ok = QInputDialog.getText(self, "Save Preset", "Preset name:")
        name = name.strip()
        if not ok or not name:
            return

        self.config.add_preset(Preset(name, spec, self.sort_combo.currentData(), self.reverse_check.isChecked()))
        try:
            path = self.config.save()
        except RenameToolError as e:
            QMessageBox.critical(self, "Error", f"Failed to save preset: {e}")
            return
        self._refresh_presets()
        self.preset_combo.setCurrentText(name)
        self.status_label.setText(f"Preset '{name}' saved to {path}")

    # ---- scan ----

    def _browse_directory(self):
        """Browse and select directory"""
        directory = QFileDialog.getExistingDirectory(self, "Select Directory")
        if directory:
            self.source_edit.setText(directory)
            self._do_scan()

    def _do_scan(self):
        source = self.source_edit.text().strip()
        if not source:
            QMessageBox.warning(self, "Warning", "Please select a directory first")
            return

        self.scan_btn.setEnabled(False)
        self.preview_btn.setEnabled(False)
        self.execute_btn.setEnabled(False)
        self.plan = None

        self.scan_worker = ScanWorker(source, include_hidden=self.hidden_check.isChecked())
        self.scan_worker.finished.connect(self._on_scan_finished)
        self.scan_worker.error.connect(self._on_scan_error)
        self.scan_worker.start()

    @Slot(list)
    def _on_scan_finished(self, files: List[FileItem]):
        self.files = files
        self.scan_btn.setEnabled(True)

        self.table.setRowCount(len(files))
        for i, f in enumerate(files):
            self.table.setItem(i, 0, QTableWidgetItem(f.name))
            self.table.setItem(i, 1, QTableWidgetItem(""))
            self.table.setItem(i, 2, QTableWidgetItem(""))

        if files:
            self.preview_btn.setEnabled(True)
            self.status_label.setText(f"Found {len(files)} files")
        else:
            self.status_label.setText("No matching files found")

    @Slot(str)
    def _on_scan_error(self, error: str):
        self.scan_btn.setEnabled(True)
        QMessageBox.critical(self, "Error", f"Failed to list files: {error}")

    # ---- preview ----

    def _do_preview(self):
        try:
            spec = self.current_transform()
        except RenameToolError as e:
            QMessageBox.warning(self, "Warning", str(e))
            return

        self.preview_btn.setEnabled(False)
        self.preview_btn.setText("Generating...")
        self.execute_btn.setEnabled(False)

        self.plan_worker = PlanWorker(
            self.files,
            spec,
            sort_by=self.sort_combo.currentData(),
            reverse=self.reverse_check.isChecked(),
        )
        self.plan_worker.progress.connect(self.status_label.setText)
        self.plan_worker.finished.connect(self._on_plan_finished)
        self.plan_worker.error.connect(self._on_plan_error)
        self.plan_worker.start()

    @Slot(object)
    def _on_plan_finished(self, plan: RenamePlan):
        self.plan = plan
        self.preview_btn.setEnabled(True)
        self.preview_btn.setText("Preview")

        if plan.errors:
            QMessageBox.warning(self, "Warning", "\n".join(plan.errors))
            return

        self._update_table_preview()

        if plan.conflicts:
            self.status_label.setText(f"{plan.conflict_count} conflicts must be fixed before renaming")
        elif plan.valid_ops:
            self.execute_btn.setEnabled(plan.is_executable)
            staged = sum(1 for op in plan.ops if op.stage is Stage.TEMPORARY)
            self.status_label.setText(
                f"Will rename {plan.total_count} files in {len(plan.ops)} steps ({staged} via temporary names)"
            )
        else:
            self.status_label.setText("; ".join(plan.warnings) or "No files need renaming")

    @Slot(str)
    def _on_plan_error(self, error: str):
        self.preview_btn.setEnabled(True)
        self.preview_btn.setText("Preview")
        QMessageBox.critical(self, "Error", f"Failed to generate preview: {error}")

    def _update_table_preview(self):
        """Show the requested renames in plan order with their status"""
        conflicts = conflict_sources(self.plan)
        staged = {str(op.src) for op in self.plan.ops if op.stage is Stage.TEMPORARY}

        self.table.setRowCount(len(self.plan.requested))
        for i, op in enumerate(self.plan.requested):
            key = str(op.src)
            new_name_item = QTableWidgetItem(op.dst.name)
            if key in conflicts:
                new_name_item.setBackground(RED_BG)
                status_item = QTableWidgetItem(conflicts[key])
                status_item.setForeground(RED)
            elif key in staged:
                new_name_item.setBackground(AMBER_BG)
                status_item = QTableWidgetItem("Via Temporary Name")
                status_item.setForeground(AMBER)
            elif op.is_same:
                status_item = QTableWidgetItem("No Change")
                status_item.setForeground(GRAY)
            else:
                status_item = QTableWidgetItem("Will Rename")
                status_item.setForeground(GREEN)

            self.table.setItem(i, 0, QTableWidgetItem(op.src.name))
            self.table.setItem(i, 1, new_name_item)
            self.table.setItem(i, 2, status_item)

    # ---- execute ----

    def _do_execute(self):
        if not self.plan or not self.plan.is_executable or not self.plan.valid_ops:
            return

        reply = QMessageBox.question(
            self, "Confirm",
            f"Are you sure you want to rename {self.plan.total_count} files?\n\n"
            "If any step fails, the renames already done are reverted.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        self.execute_btn.setEnabled(False)
        self.execute_btn.setText("Executing...")
        self.preview_btn.setEnabled(False)
        self.scan_btn.setEnabled(False)
        self.progress_bar.setVisible(True)
        self.progress_bar.setRange(0, len(self.plan.ops))

        self.rename_worker = RenameWorker(self.plan)
        self.rename_worker.progress.connect(self._on_rename_progress)
        self.rename_worker.finished.connect(self._on_rename_finished)
        self.rename_worker.error.connect(self._on_rename_error)
        self.rename_worker.start()

    @Slot(int, int, str)
    def _on_rename_progress(self, current: int, total: int, msg: str):
        self.progress_bar.setValue(current)
        self.status_label.setText(msg)

    @Slot(object)
    def _on_rename_finished(self, result: ExecutionResult):
        self.execute_btn.setText("Execute Rename")
        self.scan_btn.setEnabled(True)
        self.progress_bar.setVisible(False)

        if result.success:
            QMessageBox.information(self, "Complete", result.summary())
        else:
            QMessageBox.critical(self, "Rename Failed", result.summary())

        self.plan = None
        self.status_label.setText("Complete" if result.success else "Failed, see details")
        self._do_scan()

    @Slot(str)
    def _on_rename_error(self, error: str):
        self.execute_btn.setText("Execute Rename")
        self.preview_btn.setEnabled(True)
        self.scan_btn.setEnabled(True)
        self.progress_bar.setVisible(False)
        QMessageBox.critical(self, "Error", f"Execution failed: {error}")


class MainWindow(QMainWindow):
    """Main window"""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Batch Rename Tool")
        self.setMinimumSize(800, 600)

        self.panel = RenamePanel()
        self.setCentralWidget(self.panel)

        self.statusBar().showMessage("Ready")
