"""CLI - main entry point."""

import sys


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Typer runs in standalone mode and exits the process itself; the
    return value only matters for --version.
    """
    from autorun import __version__
    from autorun.cli._create_app import _create_app

    if argv is None:
        argv = sys.argv[1:]

    if "--version" in argv:
        print(f"autorun {__version__}")
        return 0

    app = _create_app()
    app(argv, prog_name="autorun")
    return 0
