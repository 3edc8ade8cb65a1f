"""Framebar package entrypoint."""

from framebar.cli.app import main as _cli_main

__version__ = "0.1.0"


def main() -> None:
    """Run the Framebar CLI."""
    _cli_main()
