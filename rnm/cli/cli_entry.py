"""
cli_entry.py - CLI Entry Point

Supports:
- Command-line argument mode (list, rename, presets, recover)
- Interactive mode (no subcommand)
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from ..core import (
    RenameToolError, PresetError, TransformSpec, SortKey, AffixMode, CaseMode, DatePosition,
    SearchReplace, RegexReplace, Numbering, Prefix, Suffix, ChangeCase, DateInsert,
    RenameOptions, Config, Preset, collect_files, sort_files, plan_for_files,
    execute_rename, recover_temp_files, describe, parse_sort_key,
)
from .cli_interactive import interactive_mode, confirm
from .cli_report import LOG_LEVELS, setup_logging, print_plan, print_result


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="rnm",
        description="Batch Rename Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  rnm --cli

  # List files
  rnm --cli list ./photos

  # String replacement (preview only)
  rnm --cli rename ./photos --search "IMG" --replace "photo" --dry-run

  # Regex with groups
  rnm --cli rename "./photos/*.jpg" --regex "IMG_(\\d+)" --replace 'photo_$1'

  # Numbering by modification time
  rnm --cli rename ./photos --pattern "holiday_###" --start 1 --sort mtime

  # Renumber files already named 1.jpg, 2.jpg... in reverse (chains and
  # cycles are ordered or staged through temporary names)
  rnm --cli rename "./*.jpg" --pattern "#" --sort name --reverse

  # Save a preset, then use it
  rnm --cli rename --case title --save-preset titles
  rnm --cli rename ./docs --preset titles
"""
    )

    parser.add_argument("--log-level", choices=LOG_LEVELS, default="WARNING", help="Logging verbosity")

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    # list subcommand
    list_parser = subparsers.add_parser("list", help="List files")
    list_parser.add_argument("path", nargs="?", default=".", help="Directory or glob pattern")
    list_parser.add_argument("--keyword", "-k", type=str, default="", help="Only names containing this text")
    list_parser.add_argument("--case-sensitive", "-c", action="store_true", help="Case-sensitive keyword")
    list_parser.add_argument("--include-hidden", action="store_true", help="Include hidden files")
    list_parser.add_argument("--sort", type=str, default="name",
                             choices=[k.value for k in SortKey], help="Sort method")
    list_parser.add_argument("--reverse", "-r", action="store_true", help="Reverse sort")

    # rename subcommand
    rename_parser = subparsers.add_parser("rename", help="Rename files")
    rename_parser.add_argument("path", nargs="?", default=".", help="Directory or glob pattern")

    modes = rename_parser.add_mutually_exclusive_group(required=True)
    modes.add_argument("--search", "-s", type=str, help="Literal text to replace (all occurrences)")
    modes.add_argument("--regex", type=str, help="Regular expression to replace")
    modes.add_argument("--pattern", type=str, help="Numbering pattern, '#' runs set the padding (e.g. photo_###)")
    modes.add_argument("--prefix", type=str, help="Add prefix")
    modes.add_argument("--remove-prefix", type=str, help="Remove prefix")
    modes.add_argument("--suffix", type=str, help="Add suffix before the extension")
    modes.add_argument("--remove-suffix", type=str, help="Remove suffix before the extension")
    modes.add_argument("--case", choices=[c.value for c in CaseMode], help="Change case")
    modes.add_argument("--date", nargs="?", const="prefix", choices=[p.value for p in DatePosition],
                       help="Insert modification date (YYYYMMDD)")
    modes.add_argument("--preset", "-p", type=str, help="Use a saved preset")

    rename_parser.add_argument("--replace", "-r", type=str, default="",
                               help="Replacement for --search / --regex ($1, ${name} for groups)")
    rename_parser.add_argument("--ignore-case", "-i", action="store_true", help="Case-insensitive --search")
    rename_parser.add_argument("--start", type=int, default=1, help="Starting number for --pattern")
    rename_parser.add_argument("--sort", type=str, default=None,
                               choices=[k.value for k in SortKey], help="Order files before numbering")
    rename_parser.add_argument("--reverse", action="store_true", help="Reverse sort")
    rename_parser.add_argument("--include-hidden", action="store_true", help="Include hidden files")
    rename_parser.add_argument("--dry-run", "-n", action="store_true", help="Preview only, do not execute")
    rename_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    rename_parser.add_argument("--log-dir", type=str, default=None, help="Write JSON plan/result logs here")
    rename_parser.add_argument("--save-preset", type=str, metavar="NAME",
                               help="Save the transform as a preset and exit")

    # presets subcommand
    presets_parser = subparsers.add_parser("presets", help="List saved presets")
    presets_parser.add_argument("--delete", type=str, metavar="NAME", help="Delete a preset")

    # recover subcommand
    recover_parser = subparsers.add_parser("recover", help="Restore temporary files left by an interrupted run")
    recover_parser.add_argument("directory", type=str, help="Directory")

    return parser


def build_transform(args, config: Config) -> Tuple[TransformSpec, SortKey, bool]:
    """
    Determine transform and file order from arguments

    Args:
        args: Parsed rename arguments
        config: Loaded config (presets, default sort)

    Returns:
        (transform, sort key, reverse)

    Raises:
        PresetError: preset not found
        TransformError: invalid transform parameters
    """
    sort_key = parse_sort_key(args.sort) if args.sort else config.default_sort
    reverse = args.reverse or config.default_reverse

    if args.preset:
        preset = config.get_preset(args.preset)
        if preset is None:
            raise PresetError(f"Preset not found: {args.preset}")
        if args.sort:
            return preset.transform, sort_key, args.reverse
        return preset.transform, preset.sort, preset.reverse or args.reverse

    if args.search is not None:
        spec = SearchReplace(args.search, args.replace, case_sensitive=not args.ignore_case)
    elif args.regex is not None:
        spec = RegexReplace(args.regex, args.replace)
    elif args.pattern is not None:
        spec = Numbering(args.pattern, args.start)
    elif args.prefix is not None:
        spec = Prefix(args.prefix, AffixMode.ADD)
    elif args.remove_prefix is not None:
        spec = Prefix(args.remove_prefix, AffixMode.REMOVE)
    elif args.suffix is not None:
        spec = Suffix(args.suffix, AffixMode.ADD)
    elif args.remove_suffix is not None:
        spec = Suffix(args.remove_suffix, AffixMode.REMOVE)
    elif args.case is not None:
        spec = ChangeCase(CaseMode(args.case))
    else:
        spec = DateInsert(DatePosition(args.date))

    return spec, sort_key, reverse


def cmd_list(args):
    """Handle list command"""
    files = collect_files(
        args.path,
        include_hidden=args.include_hidden,
        keyword=args.keyword,
        case_sensitive=args.case_sensitive,
    )

    if not files:
        print("No matching files found")
        return 0

    files = sort_files(files, parse_sort_key(args.sort), args.reverse)

    print(f"Found {len(files)} files:")
    print("-" * 80)
    for f in files:
        size_kb = f.size / 1024
        print(f"  {f.name:<60} {size_kb:>10.1f} KB")
    print("-" * 80)

    return 0


def cmd_rename(args):
    """Handle rename command"""
    config = Config.load()
    spec, sort_key, reverse = build_transform(args, config)

    if args.save_preset:
        config.add_preset(Preset(args.save_preset, spec, sort_key, reverse))
        path = config.save()
        print(f"Preset '{args.save_preset}' saved to {path}")
        return 0

    files = collect_files(args.path, include_hidden=args.include_hidden)
    if not files:
        print("No matching files found")
        return 0

    print(f"Source: {args.path}")
    print(f"Mode: {describe(spec)}")
    print(f"Order: {sort_key.value}{' (reversed)' if reverse else ''}")
    print(f"Files: {len(files)}")
    print()

    options = RenameOptions(log_dir=Path(args.log_dir) if args.log_dir else None)
    plan = plan_for_files(files, spec, sort_key, reverse, options)

    print_plan(plan)

    if plan.errors:
        return 1

    if plan.conflicts:
        print("\nRefusing to rename while conflicts remain")
        return 1

    if not plan.ops:
        print("No files need renaming")
        return 0

    # Confirmation
    if args.dry_run:
        print("\n[Preview mode] Will not actually execute")
        return 0

    if not args.yes and not confirm("\nConfirm execution?"):
        print("Cancelled")
        return 0

    # Execute
    print("\nExecuting...")
    result = execute_rename(plan)
    print_result(result)

    return 0 if result.success else 1


def cmd_presets(args):
    """Handle presets command"""
    config = Config.load()

    if args.delete:
        if config.remove_preset(args.delete) is None:
            print(f"Preset not found: {args.delete}")
            return 1
        config.save()
        print(f"Preset '{args.delete}' deleted")
        return 0

    names = config.list_presets()
    if not names:
        print("No presets saved.")
        print("\nCreate one with:")
        print("  rnm --cli rename --search 'old' --replace 'new' --save-preset my-preset")
        return 0

    print("Available presets:\n")
    for name in names:
        preset = config.presets[name]
        print(f"  {name}")
        print(f"    Mode: {describe(preset.transform)}")
        print(f"    Order: {preset.sort.value}{' (reversed)' if preset.reverse else ''}")
    return 0


def cmd_recover(args):
    """Handle recover command"""
    directory = Path(args.directory)
    if not directory.is_dir():
        print(f"Error: Directory does not exist: {directory}")
        return 1

    count = recover_temp_files(directory)
    print(f"Restored {count} files")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command is None:
        # No subcommand, enter interactive mode
        return interactive_mode()

    handlers = {
        "list": cmd_list,
        "rename": cmd_rename,
        "presets": cmd_presets,
        "recover": cmd_recover,
    }

    try:
        return handlers[args.command](args)
    except (RenameToolError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
