"""Build the command line that opens a terminal running a listening Neovim."""

import logging
from collections.abc import Mapping

from nvimlink.models import LaunchPlan, TerminalFamily
from nvimlink.terminal.detection import classify_terminal

log = logging.getLogger(__name__)

WINDOW_TITLE = "Neovim"


def _exec_in_terminal_args(nvim_path: str, listen_on: str) -> tuple[str, ...]:
    return ("-e", nvim_path, "--listen", listen_on)


def _windows_args(
    family: TerminalFamily, terminal_path: str, nvim_path: str, listen_on: str
) -> tuple[tuple[str, ...], bool]:
    """Return (args, use_shell) for a terminal on Windows."""
    if family is TerminalFamily.GPU:
        return _exec_in_terminal_args(nvim_path, listen_on), False
    if family is TerminalFamily.TABBED:
        return ("new-tab", "--title", WINDOW_TITLE, nvim_path, "--listen", listen_on), False
    if family is TerminalFamily.POWERSHELL:
        command = (
            f"Start-Process -FilePath '{nvim_path}' "
            f"-ArgumentList '--listen {listen_on}' -WindowStyle Normal"
        )
        return ("-ExecutionPolicy", "Bypass", "-NoProfile", "-NoExit", "-Command", command), True
    if family is TerminalFamily.CMD:
        return ("/c", "start", f'"{WINDOW_TITLE}"', f'"{nvim_path}"', "--listen", listen_on), True
    log.warning(
        "unknown Windows terminal %s; attempting generic '-e' execution without a shell",
        terminal_path,
    )
    return _exec_in_terminal_args(nvim_path, listen_on), False


def plan_launch(
    terminal_path: str,
    nvim_path: str,
    listen_on: str,
    platform: str,
    *,
    cwd: str,
    env_overrides: Mapping[str, str] | None = None,
    login_shell: str | None = None,
) -> LaunchPlan:
    """Return the launch plan for ``terminal_path`` on ``platform``.

    Pure: the caller supplies the login shell and environment, so identical
    inputs always give an identical plan. Both paths must already be resolved.
    """
    family = classify_terminal(terminal_path, platform)
    overrides = dict(env_overrides or {})

    if platform != "win32":
        # On POSIX every terminal takes -e; the login shell sets up PATH.
        return LaunchPlan(
            executable=terminal_path,
            args=_exec_in_terminal_args(nvim_path, listen_on),
            use_shell=True,
            shell_override=login_shell or None,
            cwd=cwd,
            platform=platform,
            family=family,
            env_overrides=overrides,
        )

    args, use_shell = _windows_args(family, terminal_path, nvim_path, listen_on)
    return LaunchPlan(
        executable=terminal_path,
        args=args,
        use_shell=use_shell,
        cwd=cwd,
        platform=platform,
        family=family,
        env_overrides=overrides,
    )
