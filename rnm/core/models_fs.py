"""
models_fs.py - Core Data Structure Definitions

Contains:
- FileItem: File information
- Transform specs: SearchReplace, RegexReplace, Numbering, Prefix, Suffix,
  ChangeCase, DateInsert (closed set, see TransformSpec)
- RenameOp: Single rename operation with its execution stage
- Conflicts: DuplicateTarget, ExternalCollision, Cycle, InvalidName
- RenamePlan: Batch rename plan
- RenameOptions: Rename options configuration
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional, List, Tuple, Union
from enum import Enum
import platform
import os
import re

from .errors import TransformError, InvalidPatternError


NUMBER_PLACEHOLDER = "#"


class SortKey(Enum):
    """Sort key enumeration"""
    MTIME = "mtime"      # Modification time
    SIZE = "size"        # File size
    NAME = "name"        # Filename
    CTIME = "ctime"      # Creation time (varies across platforms)


class Stage(Enum):
    """Position of a RenameOp in a multi-step sequence"""
    DIRECT = "direct"        # Straight source -> target
    TEMPORARY = "temporary"  # Source -> temporary name (cycle breaking)
    FINAL = "final"          # Temporary name -> target


class AffixMode(Enum):
    """Prefix/suffix action"""
    ADD = "add"
    REMOVE = "remove"


class CaseMode(Enum):
    """Case conversion"""
    UPPER = "upper"
    LOWER = "lower"
    TITLE = "title"


class DatePosition(Enum):
    """Where the modification date goes"""
    PREFIX = "prefix"
    SUFFIX = "suffix"
    REPLACE = "replace"


# ---------------------------------------------------------------------------
# Transform specs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchReplace:
    """Literal substring replacement, all occurrences"""
    search: str
    replace: str = ""
    case_sensitive: bool = True

    mode: ClassVar[str] = "search"

    def __post_init__(self):
        if not self.search:
            raise TransformError("Search text cannot be empty")


@dataclass(frozen=True)
class RegexReplace:
    """Regular expression replacement ($1, ${name} and $$ in replacement)"""
    pattern: str
    replacement: str = ""
    compiled: "re.Pattern" = field(init=False, repr=False, compare=False)

    mode: ClassVar[str] = "regex"

    def __post_init__(self):
        if not self.pattern:
            raise InvalidPatternError("Regex pattern cannot be empty")
        try:
            compiled = re.compile(self.pattern)
        except re.error as e:
            raise InvalidPatternError(f"Invalid regex '{self.pattern}': {e}") from e
        object.__setattr__(self, "compiled", compiled)


@dataclass(frozen=True)
class Numbering:
    """Sequential numbering; each run of '#' is one zero-padded number"""
    pattern: str
    start: int = 1

    mode: ClassVar[str] = "numbering"

    def __post_init__(self):
        if NUMBER_PLACEHOLDER not in self.pattern:
            raise TransformError(
                f"Numbering pattern needs at least one '{NUMBER_PLACEHOLDER}': {self.pattern!r}"
            )
        if self.start < 0:
            raise TransformError(f"Starting number cannot be negative: {self.start}")


@dataclass(frozen=True)
class Prefix:
    """Add or remove a prefix"""
    text: str
    action: AffixMode = AffixMode.ADD

    mode: ClassVar[str] = "prefix"

    def __post_init__(self):
        if not self.text:
            raise TransformError("Prefix cannot be empty")


@dataclass(frozen=True)
class Suffix:
    """Add or remove a suffix before the extension"""
    text: str
    action: AffixMode = AffixMode.ADD

    mode: ClassVar[str] = "suffix"

    def __post_init__(self):
        if not self.text:
            raise TransformError("Suffix cannot be empty")


@dataclass(frozen=True)
class ChangeCase:
    """Upper/lower case the whole name, or title case the stem"""
    case: CaseMode

    mode: ClassVar[str] = "case"


@dataclass(frozen=True)
class DateInsert:
    """Insert modification date (YYYYMMDD)"""
    position: DatePosition = DatePosition.PREFIX

    mode: ClassVar[str] = "date"


TransformSpec = Union[SearchReplace, RegexReplace, Numbering, Prefix, Suffix, ChangeCase, DateInsert]


# ---------------------------------------------------------------------------
# Files and operations
# ---------------------------------------------------------------------------

@dataclass
class FileItem:
    """File information data class"""
    path: Path                      # Full path
    name: str                       # Filename (with suffix)
    stem: str                       # Filename (without suffix)
    suffix: str                     # Suffix (e.g., .png)
    size: int                       # File size (bytes)
    mtime: float                    # Modification time (timestamp)
    ctime: float                    # Creation/change time (timestamp)

    @classmethod
    def from_path(cls, p: Path) -> "FileItem":
        """Create FileItem from Path object"""
        stat = p.stat()
        return cls(
            path=p,
            name=p.name,
            stem=p.stem,
            suffix=p.suffix,
            size=stat.st_size,
            mtime=stat.st_mtime,
            ctime=stat.st_ctime,
        )


@dataclass(frozen=True)
class RenameOp:
    """Single rename operation"""
    src: Path                       # Source path
    dst: Path                       # Destination path
    stage: Stage = Stage.DIRECT
    note: str = ""                  # Note (e.g., which cycle it breaks)

    @property
    def is_same(self) -> bool:
        """Whether source and destination are the same"""
        return self.src == self.dst

    def reversed(self) -> "RenameOp":
        """Operation that undoes this one"""
        return RenameOp(src=self.dst, dst=self.src, stage=self.stage, note="rollback")


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DuplicateTarget:
    """Two or more sources map to the same target (always unresolvable)"""
    target: Path
    sources: Tuple[Path, ...]

    resolvable: ClassVar[bool] = False

    def describe(self) -> str:
        names = ", ".join(p.name for p in self.sources)
        return f"Duplicate target {self.target.name}: {names}"


@dataclass(frozen=True)
class ExternalCollision:
    """Target exists on disk and is not vacated by this plan"""
    source: Path
    target: Path

    resolvable: ClassVar[bool] = False

    def describe(self) -> str:
        return f"Target already exists: {self.source.name} -> {self.target.name}"


@dataclass(frozen=True)
class Cycle:
    """Renames that chain back onto themselves (swaps, permutations)"""
    paths: Tuple[Path, ...]

    resolvable: ClassVar[bool] = True

    def describe(self) -> str:
        chain = " -> ".join(p.name for p in self.paths)
        return f"Rename cycle: {chain} -> {self.paths[0].name}"


@dataclass(frozen=True)
class InvalidName:
    """Transform produced a name that cannot be used as a filename"""
    source: Path
    name: str
    reason: str

    resolvable: ClassVar[bool] = False

    def describe(self) -> str:
        return f"Invalid name for {self.source.name}: {self.name!r} ({self.reason})"


Conflict = Union[DuplicateTarget, ExternalCollision, Cycle, InvalidName]


# ---------------------------------------------------------------------------
# Options and plan
# ---------------------------------------------------------------------------

@dataclass
class RenameOptions:
    """Rename options configuration"""
    # Case-insensitive detection (Windows/macOS default to insensitive)
    case_insensitive_detect: bool = field(default_factory=lambda: is_case_insensitive_fs())

    # Execution options
    log_dir: Optional[Path] = None  # Where to save JSON execution logs (None = off)


@dataclass
class RenamePlan:
    """Batch rename plan"""
    requested: List[RenameOp] = field(default_factory=list)    # Input order, one per source
    ops: List[RenameOp] = field(default_factory=list)          # Execution order
    conflicts: List[Conflict] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    options: RenameOptions = field(default_factory=RenameOptions)
    resolved: bool = False

    @property
    def valid_ops(self) -> List[RenameOp]:
        """Get requested operations that change something"""
        return [op for op in self.requested if not op.is_same]

    @property
    def pairs(self) -> List[Tuple[str, str]]:
        """(source filename, target filename) in input order, for previews"""
        return [(op.src.name, op.dst.name) for op in self.requested]

    @property
    def conflict_count(self) -> int:
        """Number of conflicts still attached to the plan"""
        return len(self.conflicts)

    @property
    def blocking_conflicts(self) -> List[Conflict]:
        """Conflicts that cannot be resolved by ordering or staging"""
        return [c for c in self.conflicts if not c.resolvable]

    @property
    def total_count(self) -> int:
        """Total number of files that will change name"""
        return len(self.valid_ops)

    @property
    def is_executable(self) -> bool:
        """Resolved, error-free and conflict-free"""
        return self.resolved and not self.errors and not self.conflicts

    def add_op(self, src: Path, dst: Path, note: str = "") -> None:
        """Add requested (direct) operation"""
        op = RenameOp(src=src, dst=dst, note=note)
        self.requested.append(op)
        self.ops.append(op)

    def add_conflict(self, conflict: Conflict) -> None:
        """Add conflict"""
        self.conflicts.append(conflict)

    def add_warning(self, msg: str) -> None:
        """Add warning"""
        self.warnings.append(msg)

    def add_error(self, msg: str) -> None:
        """Add error"""
        self.errors.append(msg)

    def summary(self) -> str:
        """Generate summary"""
        staged = sum(1 for op in self.ops if op.stage is Stage.TEMPORARY)
        lines = [
            f"Rename Plan Summary:",
            f"  - Files to rename: {self.total_count}",
            f"  - Execution steps: {len(self.ops)}",
            f"  - Staged through temporary names: {staged}",
            f"  - Conflicts: {self.conflict_count}",
            f"  - Warnings: {len(self.warnings)}",
            f"  - Errors: {len(self.errors)}",
        ]
        return "\n".join(lines)


def is_case_insensitive_fs() -> bool:
    """Detect if current filesystem is case-insensitive"""
    return platform.system() in ("Windows", "Darwin")


def normalize_for_comparison(name: str, case_insensitive: bool) -> str:
    """Normalize filename for comparison"""
    if case_insensitive:
        return name.casefold()
    return name


def path_key(path: Path, case_insensitive: bool) -> str:
    """Identity key of a path: absolute, normalized, optionally casefolded"""
    return normalize_for_comparison(os.path.normcase(os.path.abspath(path)), case_insensitive)


def split_extension(name: str) -> Tuple[str, str]:
    """
    Split filename into stem and extension

    The extension runs from the last '.' to the end; a leading dot
    (hidden files such as '.bashrc') does not start an extension.

    Args:
        name: Filename

    Returns:
        (stem, extension) where extension includes the dot or is empty
    """
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]
