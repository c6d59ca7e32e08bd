"""Route file-open requests to a running Neovim with ``--remote``.

The target is either the owned instance or an external one found by probing
the listen port. Opening a file never spawns Neovim.
"""

import errno
import logging
import os
import subprocess
import threading
from concurrent.futures import Future
from dataclasses import dataclass

from nvimlink.errors import ConfigurationError, ReachabilityFailure, RemoteOpenFailure
from nvimlink.models import DEFAULT_HOST, BinaryLocation, ListenAddress, NvimLinkConfig, OpenRequest
from nvimlink.notices import Notifier, notify_stderr
from nvimlink.ports import PORT_PROBE_TIMEOUT_SECONDS, is_port_in_use
from nvimlink.supervisor.state import OwnedState

log = logging.getLogger(__name__)

REMOTE_OPEN_TIMEOUT_SECONDS = 10.0
OWNED = "owned"
EXTERNAL = "external"


@dataclass(frozen=True)
class RemoteOpenResult:
    """Outcome of one ``--remote`` invocation."""

    ok: bool
    message: str
    command: list[str]
    kind: str | None = None
    stdout: str = ""
    stderr: str = ""


def classify_remote_failure(
    nvim_path: str,
    address: str,
    absolute_path: str,
    basename: str,
    *,
    stderr: str = "",
    error: BaseException | None = None,
    returncode: int | None = None,
) -> RemoteOpenFailure:
    """Turn a failed ``--remote`` run into a RemoteOpenFailure with a user message."""
    code = getattr(error, "errno", None)
    if isinstance(error, FileNotFoundError) or code == errno.ENOENT:
        return RemoteOpenFailure(
            f"Neovim executable not found at: {nvim_path}", RemoteOpenFailure.NOT_FOUND
        )
    if stderr and ("ECONNREFUSED" in stderr or "Connection refused" in stderr):
        return RemoteOpenFailure(
            f"Could not connect to Neovim server at {address}. Is it running?",
            RemoteOpenFailure.CONNECTION_REFUSED,
        )
    if stderr and "No such file or directory" in stderr and absolute_path in stderr:
        return RemoteOpenFailure(
            f"Neovim server reported error finding file: {basename}",
            RemoteOpenFailure.FILE_MISSING,
        )
    if stderr and stderr.strip():
        first_line = stderr.strip().splitlines()[0]
        return RemoteOpenFailure(
            f"Error opening file in Neovim: {first_line}", RemoteOpenFailure.GENERIC
        )
    detail = error if error is not None else f"exit code {returncode}"
    return RemoteOpenFailure(f"Error opening file in Neovim: {detail}", RemoteOpenFailure.GENERIC)


class RemoteOpenRouter:
    """Decides where a file should open and sends the ``--remote`` command."""

    def __init__(
        self,
        config: NvimLinkConfig,
        nvim_binary: BinaryLocation,
        state: OwnedState,
        notifier: Notifier = notify_stderr,
        *,
        run=subprocess.run,
        port_probe=is_port_in_use,
        probe_timeout: float = PORT_PROBE_TIMEOUT_SECONDS,
        remote_timeout: float = REMOTE_OPEN_TIMEOUT_SECONDS,
    ) -> None:
        self.config = config
        self.nvim_binary = nvim_binary
        self.state = state
        self.notify = notifier
        self.address = ListenAddress.parse(config.listen_on)
        self.vault_path = config.resolved_vault_path()
        self._run = run
        self._port_probe = port_probe
        self.probe_timeout = probe_timeout
        self.remote_timeout = remote_timeout

    def accepts(self, request: OpenRequest) -> bool:
        """Return whether the request's file type is enabled."""
        supported = self.config.supported_file_types
        if request.is_excalidraw:
            if "md" in supported and self.config.excalidraw_enabled:
                log.debug("opening Excalidraw file: %s", request.path)
                return True
            log.debug("skipping Excalidraw file (type not enabled): %s", request.path)
            return False
        if request.extension in supported:
            return True
        log.debug("skipping unsupported file type '%s': %s", request.extension, request.path)
        return False

    def find_instance(self) -> str | None:
        """Return OWNED, EXTERNAL, or None when nothing is listening."""
        if self.state.has_owned_instance():
            log.debug("found active Neovim instance managed by nvimlink")
            return OWNED
        port = self.address.port
        if port is None:
            log.debug("listen address %s has no port to probe", self.address)
            return None
        log.debug("checking if external Neovim is listening on port %s", port)
        if self._port_probe(port, DEFAULT_HOST, self.probe_timeout):
            log.info("port %s is in use; assuming an external Neovim instance", port)
            return EXTERNAL
        log.debug("port %s is not in use", port)
        return None

    def is_reachable(self) -> bool:
        return self.find_instance() is not None

    def absolute_path(self, request: OpenRequest) -> str:
        if os.path.isabs(request.path):
            return os.path.normpath(request.path)
        return os.path.normpath(os.path.join(self.vault_path, *request.path.split("/")))

    def remote_command(self, absolute_path: str) -> list[str]:
        return [self.nvim_binary.path, "--server", self.address.raw, "--remote", absolute_path]

    def _require_nvim(self) -> str:
        if not self.nvim_binary.resolved:
            raise ConfigurationError("Neovim path unknown, cannot open file.")
        return self.nvim_binary.path

    def _require_instance(self) -> str:
        instance = self.find_instance()
        if instance is None:
            raise ReachabilityFailure(
                "No running Neovim found. Use 'nvimlink launch' or ensure an external "
                f"instance is listening on {self.address}."
            )
        return instance

    def open_file(self, request: OpenRequest) -> "Future[RemoteOpenResult] | None":
        """Send ``request`` to a running Neovim.

        Returns a future for the one-shot command, or None when nothing was
        sent. Failures are reported through the notifier, never raised.
        """
        if not self.accepts(request):
            return None
        try:
            self._require_nvim()
            instance = self._require_instance()
        except ConfigurationError as e:
            log.error("cannot open %s: %s", request.path, e)
            self.notify(str(e))
            return None
        except ReachabilityFailure as e:
            log.info("no running Neovim instance (owned or external) to open %s", request.path)
            self.notify(str(e))
            return None

        if instance == EXTERNAL:
            self.notify(f"Opening file in external Neovim on {self.address}...")

        absolute_path = self.absolute_path(request)
        command = self.remote_command(absolute_path)
        log.info("requesting Neovim on %s to open: %s", self.address, absolute_path)

        future: Future[RemoteOpenResult] = Future()
        worker = threading.Thread(
            target=self._complete,
            args=(future, command, request, absolute_path),
            daemon=True,
            name="nvimlink-remote-open",
        )
        try:
            worker.start()
        except RuntimeError as e:
            log.error("could not start --remote worker: %s", e)
            self.notify(f"Failed to run Neovim command: {e}")
            return None
        return future

    def _complete(
        self,
        future: "Future[RemoteOpenResult]",
        command: list[str],
        request: OpenRequest,
        absolute_path: str,
    ) -> None:
        if not future.set_running_or_notify_cancel():
            return
        future.set_result(self.run_remote(command, request, absolute_path))

    def run_remote(
        self, command: list[str], request: OpenRequest, absolute_path: str
    ) -> RemoteOpenResult:
        """Run the ``--remote`` command to completion and classify the outcome."""
        stdout = stderr = ""
        try:
            completed = self._run(
                command, capture_output=True, text=True, timeout=self.remote_timeout
            )
        except subprocess.TimeoutExpired:
            failure = RemoteOpenFailure(
                f"Timed out waiting for Neovim at {self.address}", RemoteOpenFailure.GENERIC
            )
        except OSError as e:
            failure = classify_remote_failure(
                command[0], self.address.raw, absolute_path, request.basename, error=e
            )
        else:
            stdout, stderr = completed.stdout or "", completed.stderr or ""
            if completed.returncode == 0:
                if stdout:
                    log.debug("--remote stdout: %s", stdout)
                if stderr:
                    log.warning("--remote stderr: %s", stderr)
                log.info("sent '--remote' command for: %s", request.path)
                return RemoteOpenResult(
                    ok=True,
                    message=f"Opened {request.path}",
                    command=command,
                    stdout=stdout,
                    stderr=stderr,
                )
            failure = classify_remote_failure(
                command[0],
                self.address.raw,
                absolute_path,
                request.basename,
                stderr=stderr,
                returncode=completed.returncode,
            )

        log.error("--remote failed for %s (%s): %s; stderr=%r", command, failure.kind, failure, stderr)
        self.notify(str(failure))
        return RemoteOpenResult(
            ok=False,
            message=str(failure),
            command=command,
            kind=failure.kind,
            stdout=stdout,
            stderr=stderr,
        )
