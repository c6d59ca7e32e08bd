"""Terminal emulator classification and launch planning."""

from nvimlink.terminal.detection import classify_terminal, get_login_shell
from nvimlink.terminal.planner import plan_launch

__all__ = [
    "classify_terminal",
    "get_login_shell",
    "plan_launch",
]
