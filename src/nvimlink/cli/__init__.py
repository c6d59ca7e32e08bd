"""CLI package for nvimlink."""

from nvimlink.cli.app import entrypoint, main

__all__ = [
    "entrypoint",
    "main",
]
