"""
text_match.py - Text Matching Tools

Provides string matching, replacement and filename validity checks
"""

from typing import Optional
import platform
import re


WINDOWS_INVALID_CHARS = '<>:"/\\|?*'

WINDOWS_RESERVED_NAMES = {
    'CON', 'PRN', 'AUX', 'NUL',
    'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
    'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
}

MAX_NAME_LENGTH = 255


def contains(text: str, keyword: str, case_sensitive: bool = True) -> bool:
    """
    Check if text contains keyword

    Args:
        text: Text to check
        keyword: Keyword
        case_sensitive: Whether case-sensitive

    Returns:
        Whether contains
    """
    if not keyword:
        return True

    if case_sensitive:
        return keyword in text
    else:
        return keyword.casefold() in text.casefold()


def replace_text(text: str, old: str, new: str, case_sensitive: bool = True) -> str:
    """
    Replace every occurrence of a string in text, left to right

    Args:
        text: Original text
        old: String to replace
        new: Replacement string (taken literally)
        case_sensitive: Whether case-sensitive

    Returns:
        Replaced text
    """
    if not old:
        return text

    if case_sensitive:
        return text.replace(old, new)
    else:
        # Case-insensitive replacement; lambda keeps backslashes in `new` literal
        pattern = re.compile(re.escape(old), re.IGNORECASE)
        return pattern.sub(lambda _m: new, text)


def is_valid_filename(name: str, windows_rules: Optional[bool] = None) -> tuple[bool, Optional[str]]:
    """
    Check if filename is valid

    Args:
        name: Filename
        windows_rules: Also apply Windows restrictions (defaults to running on Windows)

    Returns:
        (is_valid, error_reason)
    """
    if windows_rules is None:
        windows_rules = platform.system() == "Windows"

    if not name:
        return False, "Filename cannot be empty"

    if name in (".", ".."):
        return False, f"Filename cannot be '{name}'"

    if "/" in name or "\x00" in name:
        return False, "Filename contains a path separator or NUL"

    if len(name) > MAX_NAME_LENGTH:
        return False, f"Filename exceeds {MAX_NAME_LENGTH} characters"

    if not windows_rules:
        return True, None

    for char in WINDOWS_INVALID_CHARS:
        if char in name:
            return False, f"Filename contains invalid character: {char}"

    # Trailing space or dot
    if name.endswith(' ') or name.endswith('.'):
        return False, "Filename cannot end with space or dot"

    name_upper = name.upper().split('.')[0]
    if name_upper in WINDOWS_RESERVED_NAMES:
        return False, f"Filename is a Windows reserved name: {name_upper}"

    return True, None
