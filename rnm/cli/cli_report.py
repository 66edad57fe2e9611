"""
cli_report.py - Console Output Helpers

Plan previews, execution summaries and logging setup shared by the
command-line and interactive modes
"""

import logging

from ..core import RenamePlan, ExecutionResult, Stage

LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


def setup_logging(level: str) -> None:
    """
    Configure logging with consistent format

    Args:
        level: Logging level (CRITICAL, ERROR, WARNING, INFO, DEBUG)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_plan(plan: RenamePlan, limit: int = 20, width: int = 80) -> None:
    """
    Print a plan preview: renamed files, staging steps, conflicts, warnings

    Args:
        plan: Resolved plan
        limit: Maximum number of rows to show
        width: Width of the separator lines
    """
    if plan.errors:
        print("Errors:")
        for err in plan.errors:
            print(f"  - {err}")
        return

    changes = plan.valid_ops
    print(f"Will rename {len(changes)} of {len(plan.requested)} files:")
    print("-" * width)
    for op in changes[:limit]:
        print(f"  {op.src.name:<40} -> {op.dst.name}")
    if len(changes) > limit:
        print(f"  ... and {len(changes) - limit} more operations")
    print("-" * width)

    staged = [op for op in plan.ops if op.stage is Stage.TEMPORARY]
    if staged:
        print(f"Note: {len(staged)} files go through a temporary name (swaps/cycles)")

    if plan.conflicts:
        print("Conflicts:")
        for conflict in plan.conflicts:
            print(f"  - {conflict.describe()}")

    if plan.warnings:
        print("Warnings:")
        for warn in plan.warnings:
            print(f"  - {warn}")


def print_result(result: ExecutionResult) -> None:
    """Print execution summary"""
    print(result.summary())
    if result.rollback_errors:
        print("Rollback errors:")
        for op, error in result.rollback_errors:
            print(f"  - {op.dst.name} -> {op.src.name}: {error}")
