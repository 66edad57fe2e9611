"""
scan_files.py - File Listing Module

Selects the files to rename: a directory listing (non-recursive) or the
matches of a glob pattern
"""

from pathlib import Path
from typing import List, Optional, Callable, Tuple
import glob
import logging

from .models_fs import FileItem
from .text_match import contains

log = logging.getLogger(__name__)

GLOB_CHARS = ("*", "?", "[")


def parse_input(text: str) -> Tuple[Path, Optional[str]]:
    """
    Split a command-line path into directory and optional glob pattern

    Args:
        text: Directory path or glob such as "photos/*.jpg"

    Returns:
        (directory, pattern) where pattern is None for a plain directory
    """
    if not any(c in text for c in GLOB_CHARS):
        return Path(text), None

    path = Path(text)
    directory = path.parent if str(path.parent) else Path(".")
    return directory, path.name


def scan_directory(
    directory: Path,
    suffix_filter: Optional[str] = None,
    include_hidden: bool = False,
    file_filter: Optional[Callable[[Path], bool]] = None
) -> List[FileItem]:
    """
    Scan single directory (non-recursive)

    Args:
        directory: Target directory
        suffix_filter: Suffix filter (e.g., ".jpg", must include dot)
        include_hidden: Whether to include hidden files
        file_filter: Additional file filter function

    Returns:
        File list, sorted by name
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ValueError(f"Directory does not exist: {directory}")

    results: List[FileItem] = []

    for item in sorted(directory.iterdir()):
        # Only process files, not directories
        if not item.is_file():
            continue

        # Skip hidden files
        if not include_hidden and item.name.startswith('.'):
            continue

        # Suffix filter
        if suffix_filter and item.suffix.lower() != suffix_filter.lower():
            continue

        # Additional filter
        if file_filter and not file_filter(item):
            continue

        try:
            results.append(FileItem.from_path(item))
        except OSError as e:
            log.warning("Skipping %s: %s", item, e)

    return results


def expand_glob(directory: Path, pattern: str, include_hidden: bool = False) -> List[FileItem]:
    """
    List regular files in a directory matching a glob pattern (no '**' recursion)

    Args:
        directory: Directory the pattern is relative to
        pattern: Glob pattern for the filename
        include_hidden: Whether '*' may match a leading dot

    Returns:
        Matching files, sorted by name
    """
    full_pattern = str(Path(directory) / pattern)
    results: List[FileItem] = []

    for match in sorted(glob.glob(full_pattern, include_hidden=include_hidden)):
        path = Path(match)
        if not path.is_file():
            continue
        try:
            results.append(FileItem.from_path(path))
        except OSError as e:
            log.warning("Skipping %s: %s", path, e)

    return results


def collect_files(
    text: str,
    include_hidden: bool = False,
    keyword: str = "",
    case_sensitive: bool = True
) -> List[FileItem]:
    """
    Collect files from a directory or glob argument

    Args:
        text: Directory path or glob pattern
        include_hidden: Whether to include hidden files
        keyword: Only keep names containing this text (empty keeps all)
        case_sensitive: Whether the keyword match is case-sensitive

    Returns:
        File list
    """
    directory, pattern = parse_input(text)
    if pattern is None:
        files = scan_directory(directory, include_hidden=include_hidden)
    else:
        if not directory.is_dir():
            raise ValueError(f"Directory does not exist: {directory}")
        files = expand_glob(directory, pattern, include_hidden=include_hidden)

    if keyword:
        files = [f for f in files if contains(f.name, keyword, case_sensitive)]

    log.debug("Collected %d files from %s", len(files), text)
    return files


def list_suffixes(directory: Path, include_hidden: bool = False) -> List[str]:
    """
    List all file suffixes in the directory

    Args:
        directory: Target directory
        include_hidden: Whether to include hidden files

    Returns:
        Suffix list (deduplicated, sorted)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    suffixes = set()
    for item in directory.iterdir():
        if item.is_file():
            if not include_hidden and item.name.startswith('.'):
                continue
            if item.suffix:
                suffixes.add(item.suffix.lower())

    return sorted(suffixes)
