"""Terminal family detection and login shell lookup."""

import ntpath
import os
import posixpath

from nvimlink.models import TerminalFamily

_FAMILIES = {
    "alacritty": TerminalFamily.GPU,
    "wezterm": TerminalFamily.GPU,
    "kitty": TerminalFamily.GPU,
    "wt": TerminalFamily.TABBED,
    "powershell": TerminalFamily.POWERSHELL,
    "pwsh": TerminalFamily.POWERSHELL,
    "cmd": TerminalFamily.CMD,
}


def classify_terminal(path: str, platform: str) -> TerminalFamily:
    """Return the launch family for a terminal executable path."""
    # ntpath understands both separators, which Windows paths may mix.
    basename = ntpath.basename(path) if platform == "win32" else posixpath.basename(path)
    name = basename.lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    return _FAMILIES.get(name, TerminalFamily.UNKNOWN)


def get_login_shell() -> str | None:
    """Return the user's configured login shell, if the platform has one."""
    if os.name == "nt":
        return None
    try:
        import pwd

        shell = pwd.getpwuid(os.getuid()).pw_shell
    except (ImportError, KeyError):
        shell = ""
    return shell or os.environ.get("SHELL", "").strip() or None
