"""
Batch Rename Tool - Main Entry

Supports:
- GUI mode (default startup)
- CLI mode (--cli or -c parameter)

Usage:
    python -m rnm                          # GUI mode (default)
    python -m rnm --cli                    # CLI interactive mode
    python -m rnm --cli list ./dir         # CLI command mode
    python -m rnm -c rename ./dir --prefix "2024_"
"""

import sys

# Global options that consume the next argument
VALUE_OPTIONS = {"--log-level"}


def find_cli_switch(argv):
    """Index of --cli/-c among the leading options, or None; later -c belongs to a subcommand"""
    skip = False
    for index, arg in enumerate(argv):
        if skip:
            skip = False
            continue
        if arg in ("--cli", "-c"):
            return index
        if arg in VALUE_OPTIONS:
            skip = True
        elif not arg.startswith("-"):
            return None
    return None


def main():
    """Main entry point"""
    argv = sys.argv[1:]
    index = find_cli_switch(argv)
    if index is not None:
        from .cli import main as cli_main
        return cli_main(argv[:index] + argv[index + 1:])

    try:
        from .gui import main as gui_main
    except ImportError as e:
        print("Error: Unable to start GUI, please ensure PySide6 is installed")
        print(f"Detailed error: {e}")
        print("\nInstall command: pip install PySide6")
        print("\nTo use CLI mode, run:")
        print("    rnm --cli")
        return 1
    return gui_main()


if __name__ == "__main__":
    sys.exit(main())
