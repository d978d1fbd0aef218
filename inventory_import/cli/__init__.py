"""Command line entrypoint (python -m inventory_import.cli)."""

from .__main__ import main

__all__ = ["main"]
