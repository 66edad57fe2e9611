"""
cli_interactive.py - Interactive CLI

Provides a menu-style interactive interface
"""

import os
from typing import Optional, List

from ..core import (
    RenameToolError, TransformSpec, FileItem, SortKey, AffixMode, CaseMode, DatePosition,
    SearchReplace, RegexReplace, Numbering, Prefix, Suffix, ChangeCase, DateInsert,
    Config, collect_files, plan_for_files, execute_rename, describe,
)
from .cli_report import print_plan, print_result


MODES = [
    ("1", "Search and replace"),
    ("2", "Regular expression"),
    ("3", "Numbering"),
    ("4", "Add / remove prefix"),
    ("5", "Add / remove suffix"),
    ("6", "Change case"),
    ("7", "Insert modification date"),
]


def clear_screen():
    """Clear screen"""
    os.system('cls' if os.name == 'nt' else 'clear')


def print_header(title: str):
    """Print header"""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


def confirm(prompt: str, default: bool = False) -> bool:
    """Ask a yes/no question"""
    return input_bool(prompt, default=default)


def input_source(prompt: str = "Directory or glob pattern") -> Optional[List[FileItem]]:
    """Input a directory or glob and list its files"""
    while True:
        text = input(f"{prompt} (q to return): ").strip()
        if text.lower() == 'q':
            return None
        if not text:
            text = "."

        try:
            files = collect_files(os.path.expanduser(text))
        except ValueError as e:
            print(f"Error: {e}")
            continue

        if not files:
            print("No matching files found")
            continue
        return files


def input_choice(prompt: str, choices: List[str], default: Optional[str] = None) -> Optional[str]:
    """Input choice"""
    choices_str = "/".join(choices)
    default_str = f" [{default}]" if default else ""

    while True:
        value = input(f"{prompt} ({choices_str}){default_str}: ").strip()
        if not value and default:
            return default
        if value.lower() == 'q':
            return None
        if value in choices:
            return value
        print(f"Invalid choice, please enter: {choices_str}")


def input_bool(prompt: str, default: bool = False) -> bool:
    """Input boolean value"""
    default_str = "Y/n" if default else "y/N"
    value = input(f"{prompt} ({default_str}): ").strip().lower()
    if not value:
        return default
    return value == 'y'


def input_int(prompt: str, default: int = 0, min_val: int = 0) -> int:
    """Input integer"""
    while True:
        value = input(f"{prompt} [{default}]: ").strip()
        if not value:
            return default
        try:
            num = int(value)
            if num < min_val:
                print(f"Value cannot be less than {min_val}")
                continue
            return num
        except ValueError:
            print("Please enter a valid integer")


def input_transform() -> Optional[TransformSpec]:
    """Ask for a rename mode and its parameters"""
    print("Rename mode:")
    for key, label in MODES:
        print(f"  {key}. {label}")

    mode = input_choice("Select mode", [key for key, _ in MODES], "1")
    if mode is None:
        return None

    if mode == "1":
        search = input("Text to replace: ")
        replace = input("Replace with (leave empty to delete): ")
        case_sensitive = input_bool("Case sensitive", default=True)
        return SearchReplace(search, replace, case_sensitive)
    elif mode == "2":
        pattern = input("Regex pattern: ")
        replacement = input("Replacement ($1, ${name} for groups): ")
        return RegexReplace(pattern, replacement)
    elif mode == "3":
        pattern = input("Pattern, '#' marks the digits (e.g. photo_###): ").strip()
        start = input_int("Starting number", default=1, min_val=0)
        return Numbering(pattern, start)
    elif mode in ("4", "5"):
        text = input("Text: ")
        action = AffixMode.REMOVE if input_bool("Remove instead of add", default=False) else AffixMode.ADD
        return Prefix(text, action) if mode == "4" else Suffix(text, action)
    elif mode == "6":
        case = input_choice("Case", [c.value for c in CaseMode], CaseMode.LOWER.value)
        return ChangeCase(CaseMode(case)) if case else None
    else:
        position = input_choice("Date position", [p.value for p in DatePosition], DatePosition.PREFIX.value)
        return DateInsert(DatePosition(position)) if position else None


def input_sort(default: SortKey) -> Optional[SortKey]:
    """Ask for the file order"""
    print("\nSorting method:")
    print("  name  - File name")
    print("  mtime - Modification time")
    print("  ctime - Creation time")
    print("  size  - File size")
    choice = input_choice("Select sorting method", [k.value for k in SortKey], default.value)
    return SortKey(choice) if choice else None


def run_plan(files: List[FileItem], spec: TransformSpec, sort_key: SortKey, reverse: bool):
    """Preview, confirm and execute"""
    print(f"\nMode: {describe(spec)}")
    print("Generating rename plan...\n")
    plan = plan_for_files(files, spec, sort_key, reverse)
    print_plan(plan, limit=15, width=70)

    if plan.errors or plan.conflicts:
        print("\nCannot rename while errors or conflicts remain")
        return

    if not plan.ops:
        print("No files need renaming")
        return

    print()
    if not input_bool("Confirm execution", default=False):
        print("Cancelled")
        return

    print("\nExecuting...")
    result = execute_rename(plan)
    print()
    print_result(result)


def menu_list_files():
    """List files menu"""
    print_header("List Files")

    files = input_source()
    if files is None:
        return

    print(f"\nFound {len(files)} files:")
    print("-" * 80)
    for i, f in enumerate(files):
        if i >= 50:
            print(f"... and {len(files) - 50} more files")
            break
        size_kb = f.size / 1024
        print(f"  {f.name:<55} {size_kb:>10.1f} KB")
    print("-" * 80)

    input("\nPress Enter to return...")


def menu_rename():
    """Rename menu"""
    print_header("Rename Files")

    files = input_source()
    if files is None:
        return
    print(f"Found {len(files)} files\n")

    config = Config.load()
    try:
        spec = input_transform()
    except RenameToolError as e:
        print(f"Error: {e}")
        input("Press Enter to return...")
        return
    if spec is None:
        return

    sort_key = input_sort(config.default_sort)
    if sort_key is None:
        return
    reverse = input_bool("Reverse sort", default=config.default_reverse)

    run_plan(files, spec, sort_key, reverse)
    input("\nPress Enter to return...")


def menu_preset():
    """Rename with a saved preset"""
    print_header("Rename With Preset")

    config = Config.load()
    names = config.list_presets()
    if not names:
        print("No presets saved")
        input("Press Enter to return...")
        return

    for i, name in enumerate(names, 1):
        print(f"  {i}. {name}: {describe(config.presets[name].transform)}")
    choice = input_choice("Select preset", [str(i) for i in range(1, len(names) + 1)])
    if choice is None:
        return
    preset = config.presets[names[int(choice) - 1]]

    files = input_source()
    if files is None:
        return

    run_plan(files, preset.transform, preset.sort, preset.reverse)
    input("\nPress Enter to return...")


def interactive_mode() -> int:
    """Interactive mode main loop"""
    while True:
        clear_screen()
        print_header("Batch Rename Tool")

        print("Please select function:")
        print()
        print("  1. List files")
        print("  2. Rename files")
        print("  3. Rename with preset")
        print()
        print("  q. Exit")
        print()

        choice = input("Please select (1/2/3/q): ").strip().lower()

        try:
            if choice == 'q':
                print("Goodbye!")
                return 0
            elif choice == '1':
                menu_list_files()
            elif choice == '2':
                menu_rename()
            elif choice == '3':
                menu_preset()
            else:
                print("Invalid choice")
                input("Press Enter to continue...")
        except RenameToolError as e:
            print(f"Error: {e}")
            input("Press Enter to continue...")
