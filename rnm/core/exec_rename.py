"""
exec_rename.py - Rename Execution Module

Responsibilities:
- Run a resolved plan's ops strictly in order, one atomic rename per step
- Stop at the first failing step and roll back what was applied, newest first
- Execution logs (JSON) and recovery of leftover temporary files
"""

from pathlib import Path
from typing import List, Tuple, Optional, Callable
from dataclasses import dataclass, field
from datetime import datetime
import errno
import json
import logging
import os

from .errors import PlanNotExecutableError, RenameStepError, CrossDeviceError
from .models_fs import RenamePlan, RenameOp
from .resolve_conflicts import is_temp_name, original_name_from_temp
from .safety_checks import check_rename_op

log = logging.getLogger(__name__)


@dataclass
class StepFailure:
    """The step that stopped execution"""
    op: RenameOp
    error: Exception

    @property
    def cause(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class ExecutionResult:
    """Rename execution result"""
    applied: List[RenameOp] = field(default_factory=list)
    failed: Optional[StepFailure] = None
    rolled_back: List[RenameOp] = field(default_factory=list)
    rollback_errors: List[Tuple[RenameOp, str]] = field(default_factory=list)  # (op, error_msg)

    @property
    def success(self) -> bool:
        return self.failed is None

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def inconsistent(self) -> List[RenameOp]:
        """Ops applied before a failure that could not be reversed"""
        if self.failed is None:
            return []
        return [op for op in self.applied if op not in self.rolled_back]

    def summary(self) -> str:
        """Generate summary"""
        if self.success:
            return "\n".join([
                f"Execution Result:",
                f"  - Steps applied: {self.applied_count}",
            ])

        lines = [
            f"Execution Result:",
            f"  - Steps applied before failure: {self.applied_count}",
            f"  - Failed: {self.failed.op.src.name} -> {self.failed.op.dst.name}: {self.failed.cause}",
            f"  - Rolled back: {len(self.rolled_back)}",
        ]
        if self.inconsistent:
            lines.append("Not restored:")
            for op in self.inconsistent[:10]:  # Show at most 10
                lines.append(f"  - {op.src} is now {op.dst}")
            if len(self.inconsistent) > 10:
                lines.append(f"  ... and {len(self.inconsistent) - 10} more")
        return "\n".join(lines)


def rename_step(op: RenameOp) -> None:
    """
    Perform one rename as a single os.rename, never copy+delete

    Args:
        op: Operation

    Raises:
        RenameStepError: pre-flight check failed (missing source, occupied target, other device)
        OSError: the rename itself failed
    """
    check_rename_op(op.src, op.dst)
    try:
        os.rename(op.src, op.dst)
    except OSError as e:
        if e.errno == errno.EXDEV:
            raise CrossDeviceError(f"Cannot rename across filesystems: {op.src} -> {op.dst}", op.src, op.dst) from e
        raise


def rollback(applied: List[RenameOp]) -> Tuple[List[RenameOp], List[Tuple[RenameOp, str]]]:
    """
    Reverse applied ops, newest first; failures are recorded, never raised

    Args:
        applied: Ops applied so far, in execution order

    Returns:
        (ops successfully reversed, [(op, error message), ...])
    """
    rolled_back: List[RenameOp] = []
    errors: List[Tuple[RenameOp, str]] = []

    for op in reversed(applied):
        try:
            rename_step(op.reversed())
        except (OSError, RenameStepError) as e:
            log.error("Rollback failed for %s -> %s: %s", op.dst, op.src, e)
            errors.append((op, str(e)))
            continue
        log.info("Rolled back %s -> %s", op.dst.name, op.src.name)
        rolled_back.append(op)

    return rolled_back, errors


def execute_rename(
    plan: RenamePlan,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
    log_dir: Optional[Path] = None
) -> ExecutionResult:
    """
    Execute a resolved rename plan

    Args:
        plan: Resolved plan (is_executable must be true)
        progress_callback: Progress callback (current, total, message)
        log_dir: Log directory (defaults to plan.options.log_dir; None disables logs)

    Returns:
        Execution result

    Raises:
        PlanNotExecutableError: plan unresolved, with errors, or with conflicts
    """
    if not plan.resolved:
        raise PlanNotExecutableError("Plan has not been resolved")
    if plan.errors:
        raise PlanNotExecutableError("Plan has errors: " + "; ".join(plan.errors))
    if plan.conflicts:
        raise PlanNotExecutableError(
            "Plan has unresolved conflicts: " + "; ".join(c.describe() for c in plan.conflicts)
        )

    if log_dir is None:
        log_dir = plan.options.log_dir

    result = ExecutionResult()
    total = len(plan.ops)

    if total == 0:
        return result

    # Save execution plan log
    if log_dir:
        try:
            save_plan_log(plan, log_dir)
        except OSError as e:
            log.error("Cannot write plan log to %s: %s", log_dir, e)

    for i, op in enumerate(plan.ops):
        try:
            if progress_callback:
                progress_callback(i + 1, total, f"[{op.stage.value}] {op.src.name} -> {op.dst.name}")
            rename_step(op)
        except (OSError, RenameStepError) as e:
            log.error("Rename failed at step %d/%d %s -> %s: %s", i + 1, total, op.src, op.dst, e)
            result.failed = StepFailure(op=op, error=e)
            result.rolled_back, result.rollback_errors = rollback(result.applied)
            break
        except Exception:
            log.error("Execution interrupted at step %d/%d, rolling back", i + 1, total)
            rollback(result.applied)
            raise

        log.debug("Renamed %s -> %s (%s)", op.src, op.dst, op.stage.value)
        result.applied.append(op)

    if result.success:
        log.info("Applied %d rename steps", result.applied_count)

    # Save execution result log
    if log_dir:
        try:
            save_result_log(result, log_dir)
        except OSError as e:
            log.error("Cannot write result log to %s: %s", log_dir, e)

    return result


def save_plan_log(plan: RenamePlan, log_dir: Path) -> Path:
    """Save execution plan log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"rename_plan_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "total_ops": len(plan.ops),
        "operations": [
            {
                "src": str(op.src),
                "dst": str(op.dst),
                "stage": op.stage.value,
                "note": op.note
            }
            for op in plan.ops
        ],
        "conflicts": [c.describe() for c in plan.conflicts],
        "warnings": plan.warnings,
        "errors": plan.errors
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file


def save_result_log(result: ExecutionResult, log_dir: Path) -> Path:
    """Save execution result log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"rename_result_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "success": result.success,
        "applied": [
            {"src": str(op.src), "dst": str(op.dst), "stage": op.stage.value}
            for op in result.applied
        ],
        "failed": None if result.failed is None else {
            "src": str(result.failed.op.src),
            "dst": str(result.failed.op.dst),
            "error": result.failed.cause,
        },
        "rolled_back": [
            {"src": str(op.src), "dst": str(op.dst)}
            for op in result.rolled_back
        ],
        "rollback_errors": [
            {"src": str(op.src), "dst": str(op.dst), "error": error}
            for op, error in result.rollback_errors
        ]
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file


def recover_temp_files(directory: Path) -> int:
    """
    Restore temporary files left by an interrupted run to their original names

    Args:
        directory: Directory

    Returns:
        Number of restored files
    """
    count = 0
    for item in sorted(Path(directory).iterdir()):
        if not item.is_file() or not is_temp_name(item.name):
            continue

        # Temporary name format: .__tmp_rename__{n}__{original_name}
        original_name = original_name_from_temp(item.name)
        if original_name is None:
            log.warning("Cannot restore %s: original name not recorded, see the rename logs", item.name)
            continue

        original_path = item.parent / original_name
        if os.path.lexists(original_path):
            log.warning("Cannot restore %s: %s already exists", item.name, original_name)
            continue

        try:
            os.rename(item, original_path)
        except OSError as e:
            log.warning("Cannot restore %s: %s", item.name, e)
            continue
        log.info("Restored %s -> %s", item.name, original_name)
        count += 1
    return count
