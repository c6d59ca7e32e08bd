"""Terminal launch model."""

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field

from nvimlink.models.terminal_family import TerminalFamily


@dataclass(frozen=True)
class LaunchPlan:
    """How to open a terminal emulator running a listening Neovim."""

    executable: str
    args: tuple[str, ...]
    use_shell: bool
    cwd: str
    platform: str
    family: TerminalFamily
    shell_override: str | None = None
    env_overrides: Mapping[str, str] = field(default_factory=dict)

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def command(self) -> list[str] | str:
        """Return the value to hand to ``subprocess.Popen`` as its first argument."""
        if not self.use_shell:
            return self.argv
        if self.platform == "win32":
            # Windows arguments are pre-quoted; the shell sees them verbatim.
            executable = self.executable
            if " " in executable and not executable.startswith('"'):
                executable = f'"{executable}"'
            return " ".join([executable, *self.args])
        return shlex.join(self.argv)

    def environment(self, base: Mapping[str, str]) -> dict[str, str]:
        return {**base, **self.env_overrides}
