"""Core wiring for nvimlink: one linked Neovim per configuration."""

import logging
import subprocess
import sys
from concurrent.futures import Future

import pynvim

from nvimlink.binaries import find_terminal, resolve_nvim
from nvimlink.config import API_KEY_ENV
from nvimlink.errors import ConfigurationError
from nvimlink.models import LaunchPlan, ListenAddress, NvimLinkConfig, OpenRequest
from nvimlink.notices import Notifier, notify_stderr
from nvimlink.router import RemoteOpenResult, RemoteOpenRouter
from nvimlink.supervisor import OwnedState, ProcessSupervisor, RpcSessionManager
from nvimlink.terminal import get_login_shell, plan_launch

log = logging.getLogger("nvimlink")


class NvimLink:
    """Resolves binaries once, then launches, routes to, and closes Neovim."""

    def __init__(
        self,
        config: NvimLinkConfig,
        notifier: Notifier = notify_stderr,
        *,
        platform: str = sys.platform,
        search_dirs: list[str] | None = None,
        popen=subprocess.Popen,
        run=subprocess.run,
        attach=pynvim.attach,
    ) -> None:
        self.config = config
        self.notify = notifier
        self.platform = platform
        self.address = ListenAddress.parse(config.listen_on)
        self.state = OwnedState()

        self.term_binary = find_terminal(config.terminal, search_dirs)
        self.nvim_binary = resolve_nvim(config.nvim_path, search_dirs)

        self.sessions = RpcSessionManager(self.state, self.address, notifier, attach=attach)
        self.supervisor = ProcessSupervisor(self.state, self.sessions, notifier, popen=popen)
        self.router = RemoteOpenRouter(config, self.nvim_binary, self.state, notifier, run=run)

        for label, value in self.describe():
            log.debug("%s: %s", label, value)

    def describe(self) -> list[tuple[str, str]]:
        return [
            ("Term Path", self.term_binary or "Not Found/Not Set"),
            ("Nvim Path", self.nvim_binary.path or "Not Found"),
            ("Version", self.nvim_binary.version or "N/A"),
            ("Error State", self.nvim_binary.error or "None"),
            ("Listen On", self.address.raw),
        ]

    def build_plan(self) -> LaunchPlan:
        if not self.term_binary:
            raise ConfigurationError(
                f"Unknown terminal: '{self.config.terminal}'. "
                "Is it installed and on your PATH? Cannot start Neovim."
            )
        if not self.nvim_binary.resolved:
            raise ConfigurationError(
                "Neovim binary path is not configured correctly. Cannot start Neovim."
            )
        env_overrides = {API_KEY_ENV: self.config.api_key} if self.config.api_key else {}
        return plan_launch(
            self.term_binary,
            self.nvim_binary.path,
            self.address.raw,
            self.platform,
            cwd=self.config.resolved_vault_path(),
            env_overrides=env_overrides,
            login_shell=get_login_shell() if self.platform != "win32" else None,
        )

    def launch(self) -> bool:
        """Start the owned Neovim; True only if a new process was spawned."""
        if self.state.has_process():
            log.info("launch called, but process already exists")
            self.notify("Linked Neovim instance already running")
            return False
        try:
            plan = self.build_plan()
        except ConfigurationError as e:
            log.error("launch failed: %s", e)
            self.notify(str(e))
            return False
        return self.supervisor.launch(plan)

    def open_file(self, path: str) -> "Future[RemoteOpenResult] | None":
        return self.router.open_file(OpenRequest.from_path(path))

    def list_buffers(self) -> list[str]:
        return self.sessions.list_buffers()

    def is_running(self) -> bool:
        return self.state.has_owned_instance()

    def wait(self, timeout: float | None = None) -> bool:
        return self.supervisor.wait(timeout)

    def close(self) -> None:
        self.sessions.close()
