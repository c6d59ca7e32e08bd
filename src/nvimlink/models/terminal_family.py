"""Terminal emulator families with distinct launch conventions."""

from enum import Enum


class TerminalFamily(Enum):
    GPU = "gpu"
    TABBED = "tabbed"
    POWERSHELL = "powershell"
    CMD = "cmd"
    UNKNOWN = "unknown"
