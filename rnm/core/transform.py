"""
transform.py - Filename Transform Module

Responsibilities:
- Map one source filename to one target filename for a TransformSpec
- Never touch the filesystem (the modification time used by DateInsert
  is passed in by the caller)

Only the filename component is transformed; directories are the plan
builder's business.
"""

from datetime import datetime, timezone
from typing import Optional
import os
import re

from .errors import TransformError
from .models_fs import (
    NUMBER_PLACEHOLDER, AffixMode, CaseMode, DatePosition,
    SearchReplace, RegexReplace, Numbering, Prefix, Suffix, ChangeCase, DateInsert,
    TransformSpec, split_extension,
)
from .text_match import replace_text


# $$ | ${name} | $12 | $name
_GROUP_REF = re.compile(r"\$(?:(\$)|\{(\w+)\}|(\d+)|([A-Za-z_]\w*))")

_PLACEHOLDER_RUN = re.compile(re.escape(NUMBER_PLACEHOLDER) + "+")

_WORD_BREAKS = {"_", "-"}

NO_DATE = "00000000"


def expand_replacement(match: "re.Match", template: str) -> str:
    """
    Expand $-style group references in a replacement template

    Args:
        match: Regex match
        template: Replacement text; $1 / ${1} positional, $name / ${name} named, $$ literal $

    Returns:
        Expanded text (unknown or non-participating groups expand to "")
    """
    def _sub(ref: "re.Match") -> str:
        if ref.group(1):
            return "$"
        name = ref.group(2) or ref.group(3) or ref.group(4)
        key = int(name) if name.isdigit() else name
        try:
            value = match.group(key)
        except IndexError:
            return ""
        return value or ""

    return _GROUP_REF.sub(_sub, template)


def format_number(pattern: str, number: int) -> str:
    """Replace each run of placeholders with the number zero-padded to the run length (never truncated)"""
    return _PLACEHOLDER_RUN.sub(lambda m: str(number).zfill(len(m.group())), pattern)


def padding_width(pattern: str) -> int:
    """Width of the longest placeholder run in a numbering pattern"""
    runs = _PLACEHOLDER_RUN.findall(pattern)
    return max((len(r) for r in runs), default=0)


def title_case(text: str) -> str:
    """Capitalize the first letter of each word, lower-case the rest"""
    result = []
    capitalize_next = True
    for c in text:
        if c.isspace() or c in _WORD_BREAKS:
            result.append(c)
            capitalize_next = True
        elif capitalize_next:
            result.append(c.upper())
            capitalize_next = False
        else:
            result.append(c.lower())
    return "".join(result)


def format_date(modified: Optional[float]) -> str:
    """Format a timestamp as YYYYMMDD (UTC)"""
    if modified is None:
        return NO_DATE
    return datetime.fromtimestamp(modified, tz=timezone.utc).strftime("%Y%m%d")


def apply(
    filename: str,
    spec: TransformSpec,
    index: int = 0,
    modified: Optional[float] = None,
) -> str:
    """
    Compute the target filename for one source filename

    Args:
        filename: Source filename (no directory part)
        spec: Transform to apply
        index: Zero-based position of the file in the caller's order (Numbering)
        modified: Modification timestamp of the file (DateInsert)

    Returns:
        New filename; unchanged when the transform does not apply
        (regex without match, prefix/suffix to remove not present)

    Raises:
        TransformError: filename contains a directory part, or spec is not a known transform
    """
    if os.sep in filename or (os.altsep and os.altsep in filename):
        raise TransformError(f"Expected a bare filename, got a path: {filename}")

    if isinstance(spec, SearchReplace):
        return replace_text(filename, spec.search, spec.replace, spec.case_sensitive)

    elif isinstance(spec, RegexReplace):
        return spec.compiled.sub(lambda m: expand_replacement(m, spec.replacement), filename)

    elif isinstance(spec, Numbering):
        _, ext = split_extension(filename)
        return format_number(spec.pattern, spec.start + index) + ext

    elif isinstance(spec, Prefix):
        if spec.action is AffixMode.ADD:
            return spec.text + filename
        if filename.startswith(spec.text):
            return filename[len(spec.text):]
        return filename

    elif isinstance(spec, Suffix):
        stem, ext = split_extension(filename)
        if spec.action is AffixMode.ADD:
            return stem + spec.text + ext
        if stem.endswith(spec.text):
            return stem[:len(stem) - len(spec.text)] + ext
        return filename

    elif isinstance(spec, ChangeCase):
        if spec.case is CaseMode.UPPER:
            return filename.upper()
        if spec.case is CaseMode.LOWER:
            return filename.lower()
        stem, ext = split_extension(filename)
        return title_case(stem) + ext

    elif isinstance(spec, DateInsert):
        date_str = format_date(modified)
        stem, ext = split_extension(filename)
        if spec.position is DatePosition.PREFIX:
            return f"{date_str}_{stem}{ext}"
        if spec.position is DatePosition.SUFFIX:
            return f"{stem}_{date_str}{ext}"
        return f"{date_str}{ext}"

    raise TransformError(f"Unknown transform: {spec!r}")


def describe(spec: TransformSpec) -> str:
    """One-line human readable description of a transform"""
    if isinstance(spec, SearchReplace):
        flag = "" if spec.case_sensitive else " (ignore case)"
        return f"Search '{spec.search}' -> Replace '{spec.replace}'{flag}"
    elif isinstance(spec, RegexReplace):
        return f"Regex '{spec.pattern}' -> '{spec.replacement}'"
    elif isinstance(spec, Numbering):
        return f"Numbering '{spec.pattern}' from {spec.start} (width {padding_width(spec.pattern)})"
    elif isinstance(spec, Prefix):
        return f"Prefix '{spec.text}' ({spec.action.value})"
    elif isinstance(spec, Suffix):
        return f"Suffix '{spec.text}' ({spec.action.value})"
    elif isinstance(spec, ChangeCase):
        return f"Case: {spec.case.value}"
    elif isinstance(spec, DateInsert):
        return f"Date (YYYYMMDD): {spec.position.value}"
    raise TransformError(f"Unknown transform: {spec!r}")
