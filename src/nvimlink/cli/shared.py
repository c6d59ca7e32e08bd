"""Shared CLI helpers."""

import argparse
import logging
import os
import sys

BOLD = "\033[1m"
RESET = "\033[0m"


def supports_color() -> bool:
    """Return whether ANSI color output should be used."""
    if os.getenv("NO_COLOR") is not None:
        return False
    if os.getenv("TERM", "").lower() == "dumb":
        return False
    return sys.stdout.isatty()


def format_status_line(label: str, value: str) -> str:
    if supports_color():
        return f"  {BOLD}{label}:{RESET} {value}"
    return f"  {label}: {value}"


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--vault",
        help="Directory that relative file paths are resolved against (default: config or cwd)",
    )


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )
