"""Tests for filename transforms."""

from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

from rnm.core import (
    AffixMode, CaseMode, DatePosition, SearchReplace, RegexReplace, Numbering,
    Prefix, Suffix, ChangeCase, DateInsert, TransformError, InvalidPatternError,
    apply, describe,
)
from rnm.core.models_fs import split_extension
from rnm.core.transform import format_number, padding_width, title_case


def test_search_replaces_every_occurrence():
    """Test literal replacement of all occurrences."""
    spec = SearchReplace("a", "o")
    assert apply("banana.txt", spec) == "bonono.txt"


def test_search_ignore_case_keeps_replacement_literal():
    """Test case-insensitive replacement with a backslash in the replacement."""
    spec = SearchReplace("img", r"p\1", case_sensitive=False)
    assert apply("IMG_1.jpg", spec) == r"p\1_1.jpg"


def test_search_empty_rejected():
    """Test empty search text is rejected at construction."""
    with pytest.raises(TransformError):
        SearchReplace("")


def test_regex_with_group():
    """Test regex replacement with a positional group."""
    spec = RegexReplace(r"IMG_(\d+)", "photo_$1")
    assert apply("IMG_007.jpg", spec) == "photo_007.jpg"
    assert apply("DOC_1.pdf", spec) == "DOC_1.pdf"


def test_regex_named_and_braced_groups():
    """Test ${name}, ${1} and $$ in the replacement."""
    spec = RegexReplace(r"(?P<year>\d{4})-(\d{2})", "${2}_${year}$$")
    assert apply("2024-05.log", spec) == "05_2024$.log"


def test_regex_unknown_group_expands_empty():
    """Test that a reference to a missing group expands to nothing."""
    spec = RegexReplace(r"a(b)?", "[$1$7]")
    assert apply("ac", spec) == "[]c"


@pytest.mark.parametrize("pattern", ["", "(unclosed"])
def test_regex_invalid_pattern(pattern):
    """Test empty or malformed regex raises InvalidPatternError."""
    with pytest.raises(InvalidPatternError):
        RegexReplace(pattern)


def test_numbering_pads_and_keeps_extension():
    """Test numbering pattern padding and extension."""
    spec = Numbering("file_###", start=1)
    assert apply("a.jpg", spec, index=0) == "file_001.jpg"
    assert apply("b.jpg", spec, index=41) == "file_042.jpg"


def test_numbering_grows_past_padding():
    """Test the 1001st file is numbered 1001, not truncated."""
    spec = Numbering("file_###", start=1)
    assert apply("x.txt", spec, index=1000) == "file_1001.txt"
    assert apply("x", spec, index=1000) == "file_1001"


def test_numbering_multiple_runs():
    """Test every run of '#' receives the same number."""
    assert format_number("#-##", 7) == "7-07"
    assert padding_width("a_#_###") == 3


@pytest.mark.parametrize("pattern,start", [("file", 1), ("file_#", -1)])
def test_numbering_invalid(pattern, start):
    """Test pattern without placeholder or negative start."""
    with pytest.raises(TransformError):
        Numbering(pattern, start)


def test_prefix_add_remove_round_trip():
    """Test adding then removing a prefix restores the name."""
    added = apply("report.pdf", Prefix("2024_"))
    assert added == "2024_report.pdf"
    assert apply(added, Prefix("2024_", AffixMode.REMOVE)) == "report.pdf"


def test_prefix_remove_absent_is_unchanged():
    """Test removing a prefix that is not there."""
    assert apply("report.pdf", Prefix("x_", AffixMode.REMOVE)) == "report.pdf"


def test_suffix_goes_before_extension():
    """Test suffix add/remove around the extension."""
    assert apply("report.pdf", Suffix("_v2")) == "report_v2.pdf"
    assert apply("report_v2.pdf", Suffix("_v2", AffixMode.REMOVE)) == "report.pdf"
    assert apply("archive.tar.gz", Suffix("_old")) == "archive.tar_old.gz"


def test_change_case():
    """Test upper, lower and title case."""
    assert apply("My File.TXT", ChangeCase(CaseMode.LOWER)) == "my file.txt"
    assert apply("My File.txt", ChangeCase(CaseMode.UPPER)) == "MY FILE.TXT"
    assert apply("my_holiday-PHOTO.JPG", ChangeCase(CaseMode.TITLE)) == "My_Holiday-Photo.JPG"


def test_title_case_words():
    """Test word boundaries for title case."""
    assert title_case("hello wORLD") == "Hello World"


def test_split_extension_leading_dot():
    """Test hidden files have no extension."""
    assert split_extension(".bashrc") == (".bashrc", "")
    assert split_extension("a.b.c") == ("a.b", ".c")
    assert split_extension("noext") == ("noext", "")


def test_date_insert_positions():
    """Test date prefix, suffix and replace."""
    ts = datetime(2024, 3, 9, 12, 0, tzinfo=timezone.utc).timestamp()
    assert apply("a.jpg", DateInsert(DatePosition.PREFIX), modified=ts) == "20240309_a.jpg"
    assert apply("a.jpg", DateInsert(DatePosition.SUFFIX), modified=ts) == "a_20240309.jpg"
    assert apply("a.jpg", DateInsert(DatePosition.REPLACE), modified=ts) == "20240309.jpg"


def test_date_insert_without_time():
    """Test missing modification time gives the placeholder date."""
    assert apply("a.jpg", DateInsert()) == "00000000_a.jpg"


def test_apply_rejects_paths():
    """Test that a filename with a directory part is rejected."""
    with pytest.raises(TransformError):
        apply(os.path.join("dir", "a.txt"), Prefix("x"))


def test_apply_unknown_spec():
    """Test an object that is not a transform."""
    with pytest.raises(TransformError):
        apply("a.txt", object())


def test_describe_mentions_parameters():
    """Test transform descriptions."""
    assert "IMG" in describe(SearchReplace("IMG", "photo"))
    assert "width 3" in describe(Numbering("f_###"))
    assert describe(ChangeCase(CaseMode.UPPER)) == "Case: upper"
