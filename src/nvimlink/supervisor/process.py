"""Spawn and watch the terminal process that hosts the owned Neovim."""

import errno
import logging
import os
import subprocess
import threading

from nvimlink.errors import SpawnError
from nvimlink.models import LaunchPlan
from nvimlink.notices import Notifier, notify_stderr
from nvimlink.supervisor.rpc import RpcSessionManager
from nvimlink.supervisor.state import LifecycleEvent, OwnedState, SupervisedProcess

log = logging.getLogger(__name__)

# Shell exit codes for "not executable" / "command not found".
SHELL_LAUNCH_FAILURES = {126, 127}


def classify_spawn_error(error: BaseException, executable: str) -> SpawnError:
    """Map an OS-level spawn failure to a SpawnError with a user-facing message."""
    code = getattr(error, "errno", None)
    if isinstance(error, FileNotFoundError) or code == errno.ENOENT:
        return SpawnError(
            f"Could not find executable: {executable}. Is it installed and in PATH?",
            SpawnError.NOT_FOUND,
        )
    if isinstance(error, PermissionError) or code == errno.EACCES:
        return SpawnError(
            f"Permission denied executing: {executable}", SpawnError.PERMISSION_DENIED
        )
    return SpawnError(f"Failed to start Neovim process: {error}", SpawnError.OTHER)


class ProcessSupervisor:
    """Owns the spawned terminal process and tears down its session with it."""

    def __init__(
        self,
        state: OwnedState,
        sessions: RpcSessionManager,
        notifier: Notifier = notify_stderr,
        *,
        popen=subprocess.Popen,
    ) -> None:
        self.state = state
        self.sessions = sessions
        self.notify = notifier
        self._popen = popen
        self._watcher: threading.Thread | None = None
        sessions.on_lifecycle_event = self.handle_lifecycle_event

    def launch(self, plan: LaunchPlan) -> bool:
        """Spawn the planned terminal; refuse while an owned process exists."""
        if not self.state.begin_launch():
            log.info("launch called, but an owned process already exists")
            self.notify("Linked Neovim instance already running")
            return False

        log.info(
            "attempting to spawn process: platform=%s executable=%s args=%s shell=%s cwd=%s",
            plan.platform,
            plan.executable,
            list(plan.args),
            plan.shell_override or plan.use_shell,
            plan.cwd,
        )
        try:
            popen = self._popen(
                plan.command(),
                shell=plan.use_shell,
                executable=plan.shell_override if plan.use_shell else None,
                cwd=plan.cwd,
                env=plan.environment(os.environ),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            self.state.abort_launch()
            spawn_error = classify_spawn_error(e, plan.executable)
            log.error("error during spawn of %s: %s", plan.executable, e)
            self.notify(str(spawn_error))
            return False

        if popen is None or popen.pid is None:
            self.state.abort_launch()
            log.error("spawn returned no process object or PID")
            self.notify("Failed to create Neovim process object.")
            return False

        process = SupervisedProcess(popen=popen, pid=popen.pid, executable=plan.executable)
        session = self.sessions.attach(process)
        self.state.mark_running(process, session)
        log.info("process spawned with PID %s", process.pid)

        self._watcher = threading.Thread(
            target=self._watch,
            args=(process,),
            daemon=True,
            name=f"nvimlink-watch-{process.pid}",
        )
        self._watcher.start()
        self.sessions.schedule_probe(session)
        return True

    def _watch(self, process: SupervisedProcess) -> None:
        try:
            code = process.wait()
        except OSError as e:
            self.handle_lifecycle_event(LifecycleEvent.ERROR, process, e)
            return
        if code in SHELL_LAUNCH_FAILURES:
            log.warning("terminal %s exited with code %s", process.executable, code)
        else:
            log.info("terminal process %s exited with code %s", process.pid, code)
        self.handle_lifecycle_event(LifecycleEvent.EXIT, process)
        # stdio is DEVNULL, so close follows exit immediately.
        self.handle_lifecycle_event(LifecycleEvent.CLOSE, process)

    def handle_lifecycle_event(
        self,
        event: LifecycleEvent,
        process: SupervisedProcess,
        error: BaseException | None = None,
    ) -> bool:
        """Apply any lifecycle event: the Running -> Idle transition, once."""
        if event is LifecycleEvent.ERROR:
            log.error("Neovim process %s emitted error: %s", process.pid, error)
            if error is not None:
                self.notify(str(classify_spawn_error(error, process.executable)))
        _, session = self.state.current()
        cleared = self.state.clear(event, process)
        if cleared and session is not None:
            session.close()
        return cleared

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the watched process exits; False on timeout."""
        watcher = self._watcher
        if watcher is None:
            return True
        watcher.join(timeout)
        return not watcher.is_alive()
