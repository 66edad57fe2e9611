"""
resolve_conflicts.py - Conflict Resolution Module

Responsibilities:
- Consume resolvable conflicts (cycles, collisions with a file that the
  plan itself moves away)
- Order operations so every target is vacated before it is claimed
  (stable topological sort, ties keep input order)
- Break cycles with temporary names: all participants go to a temporary
  name first, then each temporary goes to its final target
- Leave unresolvable conflicts on the plan so callers refuse to execute it
"""

from pathlib import Path
from typing import List, Dict, Set, Optional, Tuple
import heapq
import logging
import os
import unicodedata

from .models_fs import (
    RenameOp, RenamePlan, Stage, Cycle, ExternalCollision, Conflict, path_key,
)
from .text_match import MAX_NAME_LENGTH

log = logging.getLogger(__name__)

TEMP_PREFIX = ".__tmp_rename__"
TRUNCATED_MARK = "t"


def temp_name_for(original: Path, n: int) -> Path:
    """
    Temporary path for a source: .__tmp_rename__{n}__{name} in the same directory

    When the result would exceed MAX_NAME_LENGTH bytes, the original name is
    cut to fit and the counter becomes '{n}t', so recovery never restores a
    file under its shortened name.
    """
    name = f"{TEMP_PREFIX}{n}__{original.name}"
    if len(name.encode("utf-8")) <= MAX_NAME_LENGTH:
        return original.parent / name

    head = f"{TEMP_PREFIX}{n}{TRUNCATED_MARK}__"
    room = MAX_NAME_LENGTH - len(head.encode("utf-8"))
    kept = original.name.encode("utf-8")[:room].decode("utf-8", errors="ignore")
    return original.parent / (head + kept)


def is_temp_name(name: str) -> bool:
    """Check if it's a temporary filename"""
    return name.startswith(TEMP_PREFIX)


def original_name_from_temp(name: str) -> Optional[str]:
    """Recover the original filename from a temporary name, or None"""
    if not is_temp_name(name):
        return None
    parts = name.split("__", 3)
    if len(parts) < 4 or not parts[2].isdigit() or not parts[3]:
        return None
    return parts[3]


def _alias_key(path: Path) -> str:
    return unicodedata.normalize("NFC", path_key(path, True))


def verify_order(ops: List[RenameOp], sources: List[Path], case_insensitive: bool = False) -> List[str]:
    """
    Replay ops against the set of paths the plan occupies and report violations

    Args:
        ops: Operations in execution order
        sources: Paths present before execution
        case_insensitive: Whether path identity ignores case

    Returns:
        Error list (empty when every target is unique and free when claimed)
    """
    errors = []
    live = {path_key(p, case_insensitive) for p in sources}
    claimed: Set[str] = set()

    for op in ops:
        src_key = path_key(op.src, case_insensitive)
        dst_key = path_key(op.dst, case_insensitive)
        if dst_key in claimed:
            errors.append(f"Target claimed twice: {op.dst}")
        if dst_key in live and dst_key != src_key:
            errors.append(f"Target still occupied when claimed: {op.src} -> {op.dst}")
        if op.stage is not Stage.TEMPORARY:
            claimed.add(dst_key)
        live.discard(src_key)
        live.add(dst_key)

    return errors


class ConflictResolver:
    """Conflict resolver"""

    def __init__(self, plan: RenamePlan):
        """
        Initialize conflict resolver

        Args:
            plan: Plan produced by the plan builder
        """
        self.plan = plan
        self.case_insensitive = plan.options.case_insensitive_detect
        self.effective = [op for op in plan.requested if not op.is_same]
        self.by_source: Dict[str, RenameOp] = {self._key(op.src): op for op in self.effective}
        # Names the plan already uses; temporary names must avoid them
        self.reserved: Set[str] = set()
        for op in plan.requested:
            self.reserved.add(self._key(op.src))
            self.reserved.add(self._key(op.dst))

    def _key(self, path: Path) -> str:
        return path_key(path, self.case_insensitive)

    def temp_path(self, src: Path) -> Path:
        """
        Allocate a collision-free temporary path for a source

        Args:
            src: Source path

        Returns:
            Temporary path, free on disk and unused by the plan
        """
        n = 0
        while True:
            candidate = temp_name_for(src, n)
            key = self._key(candidate)
            if key not in self.reserved and not os.path.lexists(candidate):
                self.reserved.add(key)
                return candidate
            n += 1
            # Safety limit
            if n > 10000:
                raise RuntimeError(f"Cannot find a temporary name for {src} (tried over 10000 times)")

    def vacating_op(self, collision: ExternalCollision) -> Optional[RenameOp]:
        """
        Find the op whose source is the collision target under another spelling

        Hard links are not aliases: moving one name leaves the other in place,
        so the paths must also match ignoring case and Unicode normalization.

        Args:
            collision: Target exists and is not a source by path

        Returns:
            Op that moves that file away, or None if the target is truly external
        """
        target_alias = _alias_key(collision.target)
        for op in self.effective:
            if _alias_key(op.src) != target_alias:
                continue
            try:
                if os.path.samefile(op.src, collision.target):
                    return op
            except OSError:
                continue
        return None

    def _stage(self, sources: List[Path], note: str) -> List[RenameOp]:
        """Temporary ops for every source, then final ops"""
        temps: List[Tuple[RenameOp, Path]] = []
        for src in sources:
            op = self.by_source[self._key(src)]
            temps.append((op, self.temp_path(op.src)))

        staged = [RenameOp(op.src, tmp, Stage.TEMPORARY, note) for op, tmp in temps]
        staged += [RenameOp(tmp, op.dst, Stage.FINAL, note) for op, tmp in temps]
        return staged

    def resolve(self) -> RenamePlan:
        """
        Rewrite the plan's ops into a safe execution order

        Returns:
            The same plan, resolved; conflicts now only hold unresolvable entries
        """
        plan = self.plan
        plan.resolved = True

        if plan.errors:
            plan.ops = []
            return plan

        cycles: List[Cycle] = []
        remaining: List[Conflict] = []
        extra_edges: List[Tuple[RenameOp, RenameOp]] = []

        for conflict in plan.conflicts:
            if isinstance(conflict, Cycle):
                cycles.append(conflict)
            elif isinstance(conflict, ExternalCollision):
                vacating = self.vacating_op(conflict)
                if vacating is None:
                    remaining.append(conflict)
                elif self._key(vacating.src) == self._key(conflict.source):
                    # Target is the source itself (case-only rename the options did not foresee)
                    cycles.append(Cycle(paths=(conflict.source,)))
                else:
                    claimer = self.by_source[self._key(conflict.source)]
                    extra_edges.append((vacating, claimer))
            else:
                remaining.append(conflict)

        plan.conflicts = remaining
        if remaining:
            plan.ops = list(self.effective)
            log.info("Plan has %d unresolvable conflicts", len(remaining))
            return plan

        plan.ops = self._order(cycles, extra_edges)

        for err in verify_order(plan.ops, [op.src for op in plan.requested], self.case_insensitive):
            plan.add_error(err)

        log.debug(
            "Resolved plan: %d steps, %d cycles staged",
            len(plan.ops), len(cycles),
        )
        return plan

    def _order(self, cycles: List[Cycle], extra_edges: List[Tuple[RenameOp, RenameOp]]) -> List[RenameOp]:
        """Stable topological order over units (single ops and whole cycles)"""
        rank = {self._key(op.src): i for i, op in enumerate(self.effective)}

        # unit id -> member source keys; non-cycle ops are their own unit
        unit_of: Dict[str, int] = {}
        members: List[List[str]] = []
        notes: List[str] = []
        for cycle in cycles:
            keys = [self._key(p) for p in cycle.paths]
            for k in keys:
                unit_of[k] = len(members)
            members.append(keys)
            notes.append(cycle.describe())
        for op in self.effective:
            k = self._key(op.src)
            if k not in unit_of:
                unit_of[k] = len(members)
                members.append([k])
                notes.append("")

        unit_rank = [min(rank[k] for k in keys) for keys in members]
        cyclic = [len(keys) > 1 or notes[u] != "" for u, keys in enumerate(members)]

        # An op may run only after the op occupying its target has run
        edges: Dict[int, Set[int]] = {u: set() for u in range(len(members))}
        for op in self.effective:
            before = unit_of.get(self._key(op.dst))
            after = unit_of[self._key(op.src)]
            if before is not None and before != after:
                edges[before].add(after)
        for vacating, claimer in extra_edges:
            before, after = unit_of[self._key(vacating.src)], unit_of[self._key(claimer.src)]
            if before != after:
                edges[before].add(after)

        indegree = {u: 0 for u in edges}
        for targets in edges.values():
            for u in targets:
                indegree[u] += 1

        ready = [(unit_rank[u], u) for u, d in indegree.items() if d == 0]
        heapq.heapify(ready)
        order: List[int] = []
        while ready:
            _, u = heapq.heappop(ready)
            order.append(u)
            for v in edges[u]:
                indegree[v] -= 1
                if indegree[v] == 0:
                    heapq.heappush(ready, (unit_rank[v], v))

        ops: List[RenameOp] = []
        for u in order:
            if cyclic[u]:
                paths = [self.by_source[k].src for k in members[u]]
                ops.extend(self._stage(paths, notes[u]))
            else:
                ops.append(self.by_source[members[u][0]])

        # Units left over depend on each other in a loop; staging them all is always safe
        leftover = sorted((u for u in indegree if indegree[u] > 0), key=lambda u: unit_rank[u])
        if leftover:
            paths = [self.by_source[k].src for u in leftover for k in members[u]]
            log.warning("Breaking dependency loop over %d files with temporary names", len(paths))
            ops.extend(self._stage(paths, "dependency loop"))

        return ops


def resolve_plan(plan: RenamePlan) -> RenamePlan:
    """
    Resolve a built plan

    Args:
        plan: Plan produced by build_plan

    Returns:
        The resolved plan (ordered ops, or unresolvable conflicts left in place)
    """
    return ConflictResolver(plan).resolve()
