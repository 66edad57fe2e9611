"""
plan_rename.py - Rename Plan Generation Module

Responsibilities:
- Validate the source list (non-empty, unique, existing files)
- Generate target names with the transform (one direct op per source, input order)
- Detect conflicts: duplicate targets, collisions with unselected files,
  rename cycles, unusable names
- Output RenamePlan (never touches the filesystem beyond stat/exists)
"""

from pathlib import Path
from typing import List, Dict, Optional, Sequence, Union
from collections import defaultdict
import logging
import os

from .models_fs import (
    FileItem, RenameOp, RenamePlan, RenameOptions, SortKey, TransformSpec, DateInsert,
    DuplicateTarget, ExternalCollision, Cycle, InvalidName, path_key,
)
from .text_match import is_valid_filename
from .transform import apply, describe
from .sort_rules import sort_files
from .resolve_conflicts import resolve_plan

log = logging.getLogger(__name__)


def validate_sources(sources: Sequence[Path], case_insensitive: bool = False) -> List[str]:
    """
    Check the source list before planning

    Args:
        sources: Source paths in caller order
        case_insensitive: Whether path identity ignores case

    Returns:
        Error list (empty when the sources are usable)
    """
    if not sources:
        return ["No source files given"]

    errors = []
    seen: Dict[str, Path] = {}
    for src in sources:
        key = path_key(src, case_insensitive)
        if key in seen:
            errors.append(f"Duplicate source: {src}")
            continue
        seen[key] = src

        if not src.exists():
            errors.append(f"Source file does not exist: {src}")
        elif not src.is_file():
            errors.append(f"Source path is not a file: {src}")

    return errors


def find_cycles(ops: Sequence[RenameOp], case_insensitive: bool = False) -> List[List[Path]]:
    """
    Find chains of renames that return to a path already visited

    Follows source -> target -> (target is also a source?) -> its target...
    A case-only rename on a case-insensitive filesystem is a cycle of one.

    Args:
        ops: Requested operations
        case_insensitive: Whether path identity ignores case

    Returns:
        Cycles as lists of source paths, each starting at its earliest input member
    """
    effective = [op for op in ops if not op.is_same]
    by_source = {path_key(op.src, case_insensitive): op for op in effective}

    cycles: List[List[Path]] = []
    visited = set()

    for op in effective:
        key = path_key(op.src, case_insensitive)
        if key in visited:
            continue

        chain: List[str] = []
        position: Dict[str, int] = {}
        while key in by_source and key not in visited and key not in position:
            position[key] = len(chain)
            chain.append(key)
            key = path_key(by_source[key].dst, case_insensitive)

        if key in position:
            cycles.append([by_source[k].src for k in chain[position[key]:]])

        visited.update(chain)

    return cycles


def detect_conflicts(plan: RenamePlan) -> None:
    """
    Attach DuplicateTarget, ExternalCollision and Cycle conflicts to the plan

    Args:
        plan: Plan with requested operations
    """
    ci = plan.options.case_insensitive_detect
    source_keys = {path_key(op.src, ci) for op in plan.requested}

    # Unchanged sources still claim their own name
    by_target: Dict[str, List[RenameOp]] = defaultdict(list)
    for op in plan.requested:
        by_target[path_key(op.dst, ci)].append(op)

    for ops in by_target.values():
        if len(ops) > 1:
            plan.add_conflict(DuplicateTarget(target=ops[0].dst, sources=tuple(op.src for op in ops)))

    for op in plan.requested:
        if op.is_same or path_key(op.dst, ci) in source_keys:
            continue
        if os.path.lexists(op.dst):
            plan.add_conflict(ExternalCollision(source=op.src, target=op.dst))

    for cycle in find_cycles(plan.requested, ci):
        plan.add_conflict(Cycle(paths=tuple(cycle)))


def build_plan(
    sources: Sequence[Union[Path, str]],
    spec: TransformSpec,
    options: Optional[RenameOptions] = None
) -> RenamePlan:
    """
    Generate the unresolved rename plan

    Args:
        sources: Existing file paths in caller order (numbering follows this order)
        spec: Transform to apply to every filename
        options: Rename options

    Returns:
        Rename plan with one direct op per source and the detected conflicts;
        on invalid sources, an empty plan carrying errors
    """
    if options is None:
        options = RenameOptions()

    plan = RenamePlan(options=options)
    paths = [Path(s) for s in sources]

    errors = validate_sources(paths, options.case_insensitive_detect)
    if errors:
        for err in errors:
            plan.add_error(err)
        log.debug("Rejected %d sources: %s", len(paths), "; ".join(errors))
        return plan

    for index, src in enumerate(paths):
        modified = src.stat().st_mtime if isinstance(spec, DateInsert) else None
        new_name = apply(src.name, spec, index, modified)

        valid, reason = is_valid_filename(new_name)
        if not valid:
            # Keep the source in the preview under its own name
            plan.add_conflict(InvalidName(source=src, name=new_name, reason=reason))
            plan.add_op(src, src, note=f"invalid name: {reason}")
            continue

        plan.add_op(src, src.parent / new_name)

    if not plan.valid_ops and not plan.conflicts:
        plan.add_warning(f"{describe(spec)} changes none of the {len(paths)} filenames")

    detect_conflicts(plan)

    log.debug(
        "Built plan: %d sources, %d to rename, %d conflicts",
        len(paths), plan.total_count, plan.conflict_count,
    )
    return plan


def prepare_plan(
    sources: Sequence[Union[Path, str]],
    spec: TransformSpec,
    options: Optional[RenameOptions] = None
) -> RenamePlan:
    """
    Build and resolve a plan; this is both the preview and the input to execution

    Args:
        sources: Existing file paths in caller order
        spec: Transform to apply
        options: Rename options

    Returns:
        Resolved rename plan (check is_executable before executing)
    """
    return resolve_plan(build_plan(sources, spec, options))


def plan_for_files(
    files: List[FileItem],
    spec: TransformSpec,
    sort_by: Optional[SortKey] = None,
    reverse: bool = False,
    options: Optional[RenameOptions] = None
) -> RenamePlan:
    """
    Sort scanned files, then build and resolve a plan

    Args:
        files: Scanned files
        spec: Transform to apply
        sort_by: Sorting method (None keeps the given order)
        reverse: Whether to sort in reverse
        options: Rename options

    Returns:
        Resolved rename plan
    """
    if sort_by is not None:
        files = sort_files(files, sort_by, reverse)
    elif reverse:
        files = list(reversed(files))
    return prepare_plan([f.path for f in files], spec, options)
