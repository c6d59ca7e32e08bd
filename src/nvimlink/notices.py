"""User-facing notices."""

import sys
from collections.abc import Callable

Notifier = Callable[[str], None]


def notify_stderr(message: str) -> None:
    print(f"nvimlink: {message}", file=sys.stderr)
