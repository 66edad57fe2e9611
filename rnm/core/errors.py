"""
errors.py - Exception Definitions

Build-time problems are reported in RenamePlan.errors / conflicts and
execution failures in ExecutionResult. The exceptions below are raised for
invalid transform construction, contract violations, and as the recorded
cause of a failed rename step.
"""


class RenameToolError(Exception):
    """Base exception for all rename tool errors."""

    pass


class TransformError(RenameToolError):
    """Invalid transform parameters."""

    pass


class InvalidPatternError(TransformError):
    """Regular expression could not be compiled."""

    pass


class PresetError(RenameToolError):
    """Preset or config file could not be read, written or decoded."""

    pass


class PlanNotExecutableError(RenameToolError):
    """Plan has errors, unresolved conflicts, or was never resolved."""

    pass


class RenameStepError(RenameToolError):
    """A single rename step could not be performed."""

    def __init__(self, message: str, src=None, dst=None):
        super().__init__(message)
        self.src = src
        self.dst = dst


class SourceMissingError(RenameStepError):
    """Source file vanished between planning and execution."""

    pass


class TargetExistsError(RenameStepError):
    """Target path is unexpectedly occupied."""

    pass


class CrossDeviceError(RenameStepError):
    """Source and target are on different filesystems (no atomic rename)."""

    pass
