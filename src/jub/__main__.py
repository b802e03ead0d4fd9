"""CLI entry point for jub."""

import sys


def main() -> int:
    """Main entry point for the jub CLI."""
    from jub.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
