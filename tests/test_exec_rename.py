"""Tests for plan execution, rollback and temp-file recovery."""

from __future__ import annotations

import errno
import json
import os
from pathlib import Path

import pytest

from rnm.core import (
    CaseMode, ChangeCase, Numbering, Prefix, RenameOptions, RenamePlan, RegexReplace, Stage,
    PlanNotExecutableError, CrossDeviceError, SourceMissingError, TargetExistsError,
    build_plan, prepare_plan, resolve_plan, execute_rename, recover_temp_files,
)
from rnm.core import exec_rename, safety_checks
from rnm.core.plan_rename import detect_conflicts
from rnm.core.resolve_conflicts import TEMP_PREFIX
from rnm.core.text_match import MAX_NAME_LENGTH


def test_execute_simple_plan(make_files, options):
    """Test a plain prefix rename."""
    a, b = make_files("a.txt", "b.txt")
    plan = prepare_plan([a, b], Prefix("x_"), options)

    result = execute_rename(plan)

    assert result.success
    assert result.applied_count == 2
    assert (a.parent / "x_a.txt").read_text() == "a.txt"
    assert not a.exists()


def test_execute_swap_exchanges_contents(make_files, options):
    """Test a swap through temporary names."""
    one, two = make_files("1.txt", "2.txt")
    plan = prepare_plan([two, one], Numbering("#"), options)

    result = execute_rename(plan)

    assert result.success
    assert result.applied_count == 4
    assert one.read_text() == "2.txt"
    assert two.read_text() == "1.txt"
    assert not list(one.parent.glob(f"{TEMP_PREFIX}*"))


def test_execute_case_only_rename(make_files):
    """Test a staged case-only rename ends under the new spelling."""
    (path,) = make_files("Readme.txt")
    plan = prepare_plan([path], ChangeCase(CaseMode.UPPER), RenameOptions(case_insensitive_detect=True))

    result = execute_rename(plan)

    assert result.success
    assert [p.name for p in path.parent.iterdir()] == ["README.TXT"]


def test_failure_rolls_back(make_files, options, monkeypatch):
    """Test a failing second step reverts the first."""
    a, b, c = make_files("a.txt", "b.txt", "c.txt")
    plan = prepare_plan([a, b, c], Prefix("x_"), options)
    op1, op2, _ = plan.ops

    real_rename = os.rename

    def failing_rename(src, dst):
        if Path(src) == b:
            raise PermissionError(errno.EACCES, "Permission denied", str(src))
        real_rename(src, dst)

    monkeypatch.setattr(os, "rename", failing_rename)
    result = execute_rename(plan)

    assert not result.success
    assert result.applied == [op1]
    assert result.failed.op == op2
    assert isinstance(result.failed.error, PermissionError)
    assert result.rolled_back == [op1]
    assert result.rollback_errors == []
    assert result.inconsistent == []
    assert a.exists() and b.exists() and c.exists()
    assert not (a.parent / "x_a.txt").exists()
    assert "Rolled back: 1" in result.summary()


def test_rollback_failure_is_reported(make_files, options, monkeypatch):
    """Test a step that cannot be reversed is listed as inconsistent."""
    a, b = make_files("a.txt", "b.txt")
    plan = prepare_plan([a, b], Prefix("x_"), options)
    op1 = plan.ops[0]
    renamed_a = a.parent / "x_a.txt"

    real_rename = os.rename

    def failing_rename(src, dst):
        if Path(src) in (b, renamed_a):
            raise OSError(errno.EIO, "I/O error", str(src))
        real_rename(src, dst)

    monkeypatch.setattr(os, "rename", failing_rename)
    result = execute_rename(plan)

    assert not result.success
    assert result.rolled_back == []
    assert [op for op, _ in result.rollback_errors] == [op1]
    assert result.inconsistent == [op1]
    assert "Not restored" in result.summary()


def test_target_appearing_after_planning(make_files, options):
    """Test a target created between planning and execution stops the run."""
    (a,) = make_files("a.txt")
    plan = prepare_plan([a], Prefix("x_"), options)
    (a.parent / "x_a.txt").write_text("intruder")

    result = execute_rename(plan)

    assert isinstance(result.failed.error, TargetExistsError)
    assert (a.parent / "x_a.txt").read_text() == "intruder"
    assert a.exists()


def test_source_vanishing_after_planning(make_files, options):
    """Test a missing source stops the run and reverts earlier steps."""
    a, b = make_files("a.txt", "b.txt")
    plan = prepare_plan([a, b], Prefix("x_"), options)
    b.unlink()

    result = execute_rename(plan)

    assert isinstance(result.failed.error, SourceMissingError)
    assert result.rolled_back == [plan.ops[0]]
    assert a.exists()


def test_cross_device_detected_before_rename(make_files, options, monkeypatch):
    """Test a target on another filesystem is refused."""
    (a,) = make_files("a.txt")
    plan = prepare_plan([a], Prefix("x_"), options)
    monkeypatch.setattr(safety_checks, "is_same_filesystem", lambda p1, p2: False)

    result = execute_rename(plan)

    assert isinstance(result.failed.error, CrossDeviceError)
    assert a.exists()


def test_exdev_from_rename_is_cross_device(make_files, options, monkeypatch):
    """Test EXDEV raised by the rename itself is reported as cross-device."""
    (a,) = make_files("a.txt")
    plan = prepare_plan([a], Prefix("x_"), options)

    def exdev_rename(src, dst):
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(os, "rename", exdev_rename)
    result = execute_rename(plan)

    assert isinstance(result.failed.error, CrossDeviceError)


def test_refuses_plan_with_conflicts(make_files, options):
    """Test executing a conflicted plan raises and touches nothing."""
    paths = make_files("x1.txt", "x2.txt")
    plan = prepare_plan(paths, RegexReplace(r"\d", ""), options)

    with pytest.raises(PlanNotExecutableError):
        execute_rename(plan)
    assert all(p.exists() for p in paths)


def test_refuses_unresolved_plan(make_files, options):
    """Test an unresolved plan is refused."""
    (a,) = make_files("a.txt")
    plan = build_plan([a], Prefix("x_"), options)

    with pytest.raises(PlanNotExecutableError):
        execute_rename(plan)


def test_refuses_plan_with_errors(tmp_path: Path, options):
    """Test a plan with source errors is refused."""
    plan = prepare_plan([tmp_path / "missing.txt"], Prefix("x_"), options)

    with pytest.raises(PlanNotExecutableError):
        execute_rename(plan)


def test_progress_and_logs(make_files, tmp_path: Path):
    """Test progress callback and JSON logs."""
    one, two = make_files("1.txt", "2.txt")
    log_dir = tmp_path / "logs"
    options = RenameOptions(case_insensitive_detect=False, log_dir=log_dir)
    plan = prepare_plan([two, one], Numbering("#"), options)
    calls = []

    result = execute_rename(plan, progress_callback=lambda cur, total, msg: calls.append((cur, total)))

    assert result.success
    assert calls == [(1, 4), (2, 4), (3, 4), (4, 4)]

    plan_log = next(log_dir.glob("rename_plan_*.json"))
    data = json.loads(plan_log.read_text(encoding="utf-8"))
    assert data["total_ops"] == 4
    assert data["operations"][0]["stage"] == Stage.TEMPORARY.value

    result_log = next(log_dir.glob("rename_result_*.json"))
    assert json.loads(result_log.read_text(encoding="utf-8"))["success"] is True


def test_recover_temp_files(make_files, tmp_path: Path):
    """Test leftover temporary files are restored unless the name is taken."""
    make_files(f"{TEMP_PREFIX}0__photo.jpg", f"{TEMP_PREFIX}1__taken.jpg", "taken.jpg", "other.jpg")

    assert recover_temp_files(tmp_path) == 1
    assert (tmp_path / "photo.jpg").read_text() == f"{TEMP_PREFIX}0__photo.jpg"
    assert (tmp_path / f"{TEMP_PREFIX}1__taken.jpg").exists()
    assert (tmp_path / "taken.jpg").read_text() == "taken.jpg"


def test_failure_inside_staged_swap_restores_originals(make_files, options, monkeypatch):
    """Test a failing final step undoes the final and both temporary steps."""
    one, two = make_files("1.txt", "2.txt")
    plan = prepare_plan([two, one], Numbering("#"), options)
    failing = plan.ops[3]
    assert failing.stage is Stage.FINAL

    real_rename = os.rename

    def failing_rename(src, dst):
        if Path(src) == failing.src and Path(dst) == failing.dst:
            raise PermissionError(errno.EACCES, "Permission denied", str(src))
        real_rename(src, dst)

    monkeypatch.setattr(os, "rename", failing_rename)
    result = execute_rename(plan)

    assert not result.success
    assert result.applied == plan.ops[:3]
    assert result.rolled_back == list(reversed(plan.ops[:3]))
    assert result.inconsistent == []
    assert one.read_text() == "1.txt"
    assert two.read_text() == "2.txt"
    assert not list(one.parent.glob(f"{TEMP_PREFIX}*"))


def test_swap_of_long_names(make_files, options):
    """Test temporary names stay within the name length limit."""
    long_a, long_b = "a" * 246 + ".txt", "b" * 246 + ".txt"
    a, b = make_files(long_a, long_b)
    plan = RenamePlan(options=options)
    plan.add_op(a, b)
    plan.add_op(b, a)
    detect_conflicts(plan)
    plan = resolve_plan(plan)

    assert plan.is_executable
    assert all(len(op.dst.name.encode("utf-8")) <= MAX_NAME_LENGTH for op in plan.ops)

    result = execute_rename(plan)

    assert result.success
    assert a.read_text() == long_b
    assert b.read_text() == long_a


def test_unwritable_log_dir_still_returns_result(make_files, tmp_path: Path, caplog):
    """Test a log directory that cannot be created does not stop the rename."""
    (a,) = make_files("a.txt")
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    options = RenameOptions(case_insensitive_detect=False, log_dir=blocker / "logs")
    plan = prepare_plan([a], Prefix("x_"), options)

    result = execute_rename(plan)

    assert result.success
    assert (tmp_path / "x_a.txt").exists()
    assert "Cannot write plan log" in caplog.text
    assert "Cannot write result log" in caplog.text


def test_result_log_failure_keeps_result(make_files, tmp_path: Path, monkeypatch, caplog):
    """Test a failing result log write after a rollback still reports the failure."""
    a, b = make_files("a.txt", "b.txt")
    options = RenameOptions(case_insensitive_detect=False, log_dir=tmp_path / "logs")
    plan = prepare_plan([a, b], Prefix("x_"), options)
    b.unlink()

    def broken_log(result, log_dir):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(exec_rename, "save_result_log", broken_log)
    result = execute_rename(plan)

    assert isinstance(result.failed.error, SourceMissingError)
    assert result.rolled_back == [plan.ops[0]]
    assert a.exists()
    assert "Cannot write result log" in caplog.text


def test_progress_callback_error_rolls_back(make_files, options):
    """Test an exception from the progress callback reverts applied steps."""
    a, b, c = make_files("a.txt", "b.txt", "c.txt")
    plan = prepare_plan([a, b, c], Prefix("x_"), options)

    def progress(current, total, msg):
        if current == 3:
            raise RuntimeError("cancelled")

    with pytest.raises(RuntimeError):
        execute_rename(plan, progress_callback=progress)
    assert a.exists() and b.exists() and c.exists()
    assert not list(a.parent.glob("x_*"))


def test_recover_skips_shortened_temp_names(make_files, tmp_path: Path):
    """Test a temporary name whose original was cut short is left alone."""
    name = f"{TEMP_PREFIX}0t__abc"
    make_files(name)

    assert recover_temp_files(tmp_path) == 0
    assert (tmp_path / name).exists()
