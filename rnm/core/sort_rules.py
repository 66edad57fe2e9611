"""
sort_rules.py - Sorting Rules Module

Fixes the order files are handed to the planner in (numbering follows it)
"""

from typing import List, Callable
from .models_fs import FileItem, SortKey


def parse_sort_key(text: str) -> SortKey:
    """
    Parse a sort key name

    Args:
        text: "name", "mtime", "ctime" or "size" (case-insensitive)

    Returns:
        SortKey

    Raises:
        ValueError: unknown name
    """
    try:
        return SortKey(text.strip().lower())
    except ValueError:
        choices = ", ".join(k.value for k in SortKey)
        raise ValueError(f"Unknown sort order: {text} (allowed: {choices})") from None


def get_sort_key(sort_by: SortKey) -> Callable[[FileItem], tuple]:
    """
    Get sort key function; ties break on case-insensitive name, then name

    Args:
        sort_by: Sorting method

    Returns:
        Sort key function
    """
    if sort_by == SortKey.MTIME:
        return lambda f: (f.mtime, f.name.lower(), f.name)
    elif sort_by == SortKey.SIZE:
        return lambda f: (f.size, f.name.lower(), f.name)
    elif sort_by == SortKey.CTIME:
        return lambda f: (f.ctime, f.name.lower(), f.name)
    else:
        return lambda f: (f.name.lower(), f.name)


def sort_files(
    files: List[FileItem],
    sort_by: SortKey = SortKey.NAME,
    reverse: bool = False
) -> List[FileItem]:
    """
    Sort file list

    Args:
        files: File list
        sort_by: Sorting method
        reverse: Whether to sort in reverse

    Returns:
        Sorted file list (new list)
    """
    return sorted(files, key=get_sort_key(sort_by), reverse=reverse)
