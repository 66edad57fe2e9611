"""Tests for rename plan generation and conflict detection."""

from __future__ import annotations

from pathlib import Path

from rnm.core import (
    AffixMode, CaseMode, Prefix, RegexReplace, SearchReplace, Numbering, ChangeCase,
    DuplicateTarget, ExternalCollision, Cycle, InvalidName, FileItem, SortKey,
    build_plan, prepare_plan, plan_for_files,
)
from rnm.core.plan_rename import find_cycles, validate_sources
from rnm.core.models_fs import RenameOp


def test_one_op_per_source_in_input_order(make_files, options):
    """Test requested ops follow the input order."""
    paths = make_files("b.txt", "a.txt")
    plan = build_plan(paths, Prefix("x_"), options)

    assert plan.pairs == [("b.txt", "x_b.txt"), ("a.txt", "x_a.txt")]
    assert plan.conflicts == []
    assert plan.total_count == 2


def test_unchanged_source_stays_in_preview(make_files, options):
    """Test sources the transform leaves alone are kept as identity ops."""
    paths = make_files("IMG_1.jpg", "DOC_1.pdf")
    plan = prepare_plan(paths, RegexReplace(r"IMG_(\d+)", "photo_$1"), options)

    assert plan.pairs == [("IMG_1.jpg", "photo_1.jpg"), ("DOC_1.pdf", "DOC_1.pdf")]
    assert len(plan.valid_ops) == 1
    assert plan.is_executable


def test_duplicate_target(make_files, options):
    """Test two sources mapping to one name."""
    paths = make_files("x1.txt", "x2.txt")
    plan = prepare_plan(paths, RegexReplace(r"\d", ""), options)

    assert len(plan.conflicts) == 1
    conflict = plan.conflicts[0]
    assert isinstance(conflict, DuplicateTarget)
    assert conflict.target.name == "x.txt"
    assert set(conflict.sources) == set(paths)
    assert not plan.is_executable


def test_duplicate_target_with_unchanged_source(make_files, options):
    """Test an unchanged source still claims its own name."""
    paths = make_files("a.txt", "A.txt")
    plan = build_plan(paths, ChangeCase(CaseMode.LOWER), options)

    assert any(isinstance(c, DuplicateTarget) for c in plan.conflicts)


def test_external_collision(make_files, options):
    """Test a target occupied by a file outside the selection."""
    a, _ = make_files("a.txt", "b.txt")
    plan = prepare_plan([a], SearchReplace("a", "b"), options)

    assert plan.conflicts == [ExternalCollision(source=a, target=a.parent / "b.txt")]
    assert plan.blocking_conflicts == plan.conflicts
    assert not plan.is_executable


def test_invalid_name(make_files, options):
    """Test an empty result name is reported, not planned."""
    (path,) = make_files("abc")
    plan = build_plan([path], Prefix("abc", AffixMode.REMOVE), options)

    assert len(plan.conflicts) == 1
    assert isinstance(plan.conflicts[0], InvalidName)
    assert plan.requested[0].is_same


def test_swap_is_detected_as_cycle(make_files, options):
    """Test a two-file swap is reported as a cycle before resolution."""
    one, two = make_files("1.txt", "2.txt")
    plan = build_plan([two, one], Numbering("#"), options)

    assert plan.pairs == [("2.txt", "1.txt"), ("1.txt", "2.txt")]
    assert plan.conflicts == [Cycle(paths=(two, one))]
    assert plan.conflicts[0].resolvable
    assert find_cycles([RenameOp(one, two), RenameOp(two, one)]) == [[one, two]]


def test_chain_is_not_a_cycle(tmp_path: Path):
    """Test a chain ending on a free name."""
    a, b, c = tmp_path / "a", tmp_path / "b", tmp_path / "c"
    assert find_cycles([RenameOp(a, b), RenameOp(b, c)]) == []


def test_case_only_rename_is_cycle_when_case_insensitive(tmp_path: Path):
    """Test a case-only rename forms a cycle of one on case-insensitive filesystems."""
    src = tmp_path / "Readme.txt"
    ops = [RenameOp(src, tmp_path / "README.TXT")]
    assert find_cycles(ops, case_insensitive=True) == [[src]]
    assert find_cycles(ops, case_insensitive=False) == []


def test_validate_sources(tmp_path: Path, make_files):
    """Test source validation errors."""
    (a,) = make_files("a.txt")
    (tmp_path / "sub").mkdir()

    assert validate_sources([]) == ["No source files given"]
    assert validate_sources([a]) == []

    errors = validate_sources([a, a, tmp_path / "missing.txt", tmp_path / "sub"])
    assert errors[0].startswith("Duplicate source")
    assert errors[1].startswith("Source file does not exist")
    assert errors[2].startswith("Source path is not a file")


def test_invalid_sources_give_empty_plan(tmp_path: Path, options):
    """Test missing sources make the plan an error plan."""
    plan = prepare_plan([tmp_path / "missing.txt"], Prefix("x"), options)

    assert plan.errors
    assert plan.ops == []
    assert not plan.is_executable


def test_plan_for_files_sorts_before_numbering(make_files, options):
    """Test numbering follows the requested order."""
    paths = make_files("c.txt", "a.txt", "b.txt")
    files = [FileItem.from_path(p) for p in paths]

    plan = plan_for_files(files, Numbering("n_#"), SortKey.NAME, reverse=True, options=options)

    assert plan.pairs == [("c.txt", "n_1.txt"), ("b.txt", "n_2.txt"), ("a.txt", "n_3.txt")]


def test_numbering_many_files(tmp_path: Path, options):
    """Test padding grows past the pattern width for the 1001st file."""
    paths = []
    for i in range(1001):
        path = tmp_path / f"src{i:04d}.dat"
        path.touch()
        paths.append(path)

    plan = prepare_plan(paths, Numbering("file_###"), options)

    assert plan.is_executable
    assert plan.requested[0].dst.name == "file_001.dat"
    assert plan.requested[-1].dst.name == "file_1001.dat"


def test_transform_matching_nothing_warns(make_files, options):
    """Test a pattern that changes no filename leaves a warning."""
    paths = make_files("a.txt", "b.txt")
    plan = build_plan(paths, SearchReplace("zzz", "y"), options)

    assert plan.valid_ops == []
    assert plan.warnings == ["Search 'zzz' -> Replace 'y' changes none of the 2 filenames"]


def test_no_warning_when_something_changes(make_files, options):
    """Test a partly matching pattern has no warning."""
    paths = make_files("IMG_1.jpg", "DOC_1.pdf")
    plan = build_plan(paths, RegexReplace(r"IMG_", "photo_"), options)

    assert plan.warnings == []
