"""
safety_checks.py - Safety Check Module

Checks performed right before each rename step
"""

from pathlib import Path
from typing import Tuple, Optional
import os
import platform

from .errors import SourceMissingError, TargetExistsError, CrossDeviceError, RenameStepError


def check_path_length(path: Path, max_length: int = 260) -> Tuple[bool, Optional[str]]:
    """
    Check if path length exceeds limit (mainly for Windows)

    Args:
        path: Path to check
        max_length: Maximum length

    Returns:
        (is_valid, error_reason)
    """
    path_str = str(path)
    if len(path_str) > max_length:
        return False, f"Path length ({len(path_str)}) exceeds limit ({max_length}): {path}"
    return True, None


def is_same_filesystem(path1: Path, path2: Path) -> bool:
    """
    Check if two paths are on the same filesystem

    Args:
        path1: Path 1
        path2: Path 2

    Returns:
        Whether on the same filesystem
    """
    try:
        # Get parent directory (if file doesn't exist)
        p1 = path1 if os.path.lexists(path1) else path1.parent
        p2 = path2 if os.path.lexists(path2) else path2.parent

        stat1 = os.lstat(p1)
        stat2 = os.stat(p2)

        # Compare device IDs
        return stat1.st_dev == stat2.st_dev
    except OSError:
        return False


def check_rename_op(src: Path, dst: Path) -> None:
    """
    Check if a single rename step can run as one atomic rename

    Args:
        src: Source path
        dst: Destination path

    Raises:
        SourceMissingError: source vanished
        TargetExistsError: destination is occupied
        CrossDeviceError: destination directory is on another filesystem
        RenameStepError: destination path too long (Windows)
    """
    if not os.path.lexists(src):
        raise SourceMissingError(f"Source file does not exist: {src}", src, dst)

    if os.path.lexists(dst):
        raise TargetExistsError(f"Target already exists: {dst}", src, dst)

    if not dst.parent.is_dir():
        raise RenameStepError(f"Target directory does not exist: {dst.parent}", src, dst)

    if not is_same_filesystem(src, dst.parent):
        raise CrossDeviceError(f"Source and target are on different filesystems: {src} -> {dst}", src, dst)

    if platform.system() == "Windows":
        valid, error = check_path_length(dst)
        if not valid:
            raise RenameStepError(error, src, dst)
