"""
core - Batch Rename Engine

Transforms filenames, builds and resolves rename plans (collisions, swaps,
cycles) and executes them with rollback on failure.
"""

from .errors import (
    RenameToolError,
    TransformError,
    InvalidPatternError,
    PresetError,
    PlanNotExecutableError,
    RenameStepError,
    SourceMissingError,
    TargetExistsError,
    CrossDeviceError,
)

from .models_fs import (
    FileItem,
    SortKey,
    Stage,
    AffixMode,
    CaseMode,
    DatePosition,
    SearchReplace,
    RegexReplace,
    Numbering,
    Prefix,
    Suffix,
    ChangeCase,
    DateInsert,
    TransformSpec,
    RenameOp,
    DuplicateTarget,
    ExternalCollision,
    Cycle,
    InvalidName,
    Conflict,
    RenamePlan,
    RenameOptions,
)

from .transform import (
    apply,
    describe,
)

from .scan_files import (
    parse_input,
    scan_directory,
    expand_glob,
    collect_files,
    list_suffixes,
)

from .sort_rules import (
    sort_files,
    parse_sort_key,
)

from .plan_rename import (
    build_plan,
    prepare_plan,
    plan_for_files,
)

from .resolve_conflicts import (
    resolve_plan,
    ConflictResolver,
)

from .exec_rename import (
    execute_rename,
    ExecutionResult,
    StepFailure,
    recover_temp_files,
)

from .presets import (
    Config,
    Preset,
    config_path,
    transform_to_dict,
    transform_from_dict,
)

__all__ = [
    # Errors
    "RenameToolError",
    "TransformError",
    "InvalidPatternError",
    "PresetError",
    "PlanNotExecutableError",
    "RenameStepError",
    "SourceMissingError",
    "TargetExistsError",
    "CrossDeviceError",

    # Data models
    "FileItem",
    "SortKey",
    "Stage",
    "AffixMode",
    "CaseMode",
    "DatePosition",
    "SearchReplace",
    "RegexReplace",
    "Numbering",
    "Prefix",
    "Suffix",
    "ChangeCase",
    "DateInsert",
    "TransformSpec",
    "RenameOp",
    "DuplicateTarget",
    "ExternalCollision",
    "Cycle",
    "InvalidName",
    "Conflict",
    "RenamePlan",
    "RenameOptions",
    "ExecutionResult",
    "StepFailure",

    # Transform
    "apply",
    "describe",

    # Listing
    "parse_input",
    "scan_directory",
    "expand_glob",
    "collect_files",
    "list_suffixes",

    # Sorting
    "sort_files",
    "parse_sort_key",

    # Planning
    "build_plan",
    "prepare_plan",
    "plan_for_files",
    "resolve_plan",
    "ConflictResolver",

    # Execution
    "execute_rename",
    "recover_temp_files",

    # Presets
    "Config",
    "Preset",
    "config_path",
    "transform_to_dict",
    "transform_from_dict",
]
