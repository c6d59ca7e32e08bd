"""Control channel to the owned Neovim instance over msgpack-RPC."""

import logging
import threading
from collections.abc import Callable

import pynvim
from pynvim.api import NvimError

from nvimlink.errors import AttachError, NvimLinkError, ProbeFailure
from nvimlink.models import ListenAddress
from nvimlink.notices import Notifier, notify_stderr
from nvimlink.ports import PORT_PROBE_TIMEOUT_SECONDS, is_port_in_use
from nvimlink.supervisor.state import LifecycleEvent, OwnedState, SupervisedProcess

log = logging.getLogger(__name__)

PROBE_DELAY_SECONDS = 1.5
PROBE_EXPRESSION = "1"
QUIT_LOCK_TIMEOUT_SECONDS = 1.0

# Raised by pynvim when a request fails or the connection drops.
RPC_ERRORS = (NvimLinkError, NvimError, OSError, EOFError)
DISCONNECT_ERRORS = (EOFError, ConnectionError)

LifecycleHandler = Callable[[LifecycleEvent, SupervisedProcess], None]


class ControlSession:
    """A pynvim client bound to one owned process.

    Creating a session never touches the network; the connection is opened
    on the first call, since Neovim may still be starting.
    """

    def __init__(self, address: ListenAddress, pid: int, attach=pynvim.attach) -> None:
        self.address = address
        self.pid = pid
        self._attach = attach
        self._nvim = None
        self._lock = threading.Lock()

    def _client(self):
        if self._nvim is None:
            try:
                if self.address.is_tcp:
                    self._nvim = self._attach(
                        "tcp", address=self.address.host, port=self.address.port
                    )
                else:
                    self._nvim = self._attach("socket", path=self.address.raw)
            except Exception as e:
                raise AttachError(f"could not connect to Neovim at {self.address}: {e}") from e
            log.debug("attached RPC client to %s", self.address)
        return self._nvim

    def eval(self, expression: str):
        with self._lock:
            return self._client().eval(expression)

    def buffers(self) -> list[str]:
        with self._lock:
            return [buffer.name for buffer in self._client().buffers]

    def quit(self) -> bool:
        """Ask Neovim to quit; False when skipped.

        Gives up after QUIT_LOCK_TIMEOUT_SECONDS if another request (a hung
        probe) still holds the session, so shutdown can go on to terminate.
        """
        if not self._lock.acquire(timeout=QUIT_LOCK_TIMEOUT_SECONDS):
            log.warning("RPC session for PID %s is busy; skipping graceful quit", self.pid)
            return False
        try:
            if self._nvim is None:
                log.debug("no RPC connection to quit for PID %s", self.pid)
                return False
            self._nvim.quit()
            return True
        finally:
            self._lock.release()

    def close(self) -> None:
        # Not under the lock: closing the transport also unblocks a pending request.
        nvim, self._nvim = self._nvim, None
        if nvim is None:
            return
        try:
            nvim.close()
        except (OSError, EOFError, RuntimeError) as e:
            log.debug("error closing RPC client: %s", e)


class RpcSessionManager:
    """Attaches control sessions, probes them, and shuts them down."""

    def __init__(
        self,
        state: OwnedState,
        address: ListenAddress,
        notifier: Notifier = notify_stderr,
        *,
        probe_delay: float = PROBE_DELAY_SECONDS,
        probe_timeout: float = PORT_PROBE_TIMEOUT_SECONDS,
        attach=pynvim.attach,
    ) -> None:
        self.state = state
        self.address = address
        self.notify = notifier
        self.probe_delay = probe_delay
        self.probe_timeout = probe_timeout
        self._attach = attach
        self.on_lifecycle_event: LifecycleHandler = self._clear_on_event

    def _clear_on_event(self, event: LifecycleEvent, process: SupervisedProcess) -> None:
        self.state.clear(event, process)

    def attach(self, process: SupervisedProcess) -> ControlSession:
        log.info("attaching control session to PID %s via %s", process.pid, self.address)
        return ControlSession(self.address, process.pid, attach=self._attach)

    def schedule_probe(self, session: ControlSession) -> threading.Timer:
        timer = threading.Timer(self.probe_delay, self.probe, args=(session,))
        timer.daemon = True
        timer.name = "nvimlink-probe"
        timer.start()
        return timer

    def check_alive(self, session: ControlSession) -> None:
        """Raise ProbeFailure unless the session answers a trivial eval.

        TCP sessions first get a bounded connect probe, so a dead port fails
        within ``probe_timeout`` instead of blocking in the RPC client.
        """
        address = session.address
        if address.is_tcp and not is_port_in_use(address.port, address.host, self.probe_timeout):
            raise ProbeFailure(f"nothing is listening on {address}")
        try:
            session.eval(PROBE_EXPRESSION)
        except RPC_ERRORS as e:
            raise ProbeFailure(str(e)) from e

    def probe(self, session: ControlSession) -> bool:
        if self.state.current()[1] is not session:
            log.debug("skipping probe for stale session (PID %s)", session.pid)
            return False
        try:
            self.check_alive(session)
        except ProbeFailure as e:
            if self.state.current()[1] is not session:
                log.debug("probe for closed session (PID %s) failed: %s", session.pid, e)
                return False
            log.error("Neovim RPC connection failed after spawn: %s", e)
            self.notify(f"Failed to establish RPC connection: {e}")
            self.close(quiet=True)
            return False
        if self.state.current()[1] is not session:
            log.debug("session for PID %s closed while probing", session.pid)
            return False
        log.info("Neovim RPC connection test successful")
        self.notify("Neovim instance started and connected.")
        return True

    def list_buffers(self) -> list[str]:
        process, session = self.state.current()
        if session is None:
            return []
        try:
            return session.buffers()
        except RPC_ERRORS as e:
            log.error("failed to get Neovim buffers: %s", e)
            self.notify(f"Error communicating with Neovim: {e}")
            cause = e.__cause__ if isinstance(e, AttachError) else e
            if process is not None and isinstance(cause, DISCONNECT_ERRORS):
                self.on_lifecycle_event(LifecycleEvent.DISCONNECT, process)
            return []

    def close(self, quiet: bool = False) -> None:
        """Quit over RPC, terminate the process, and always clear both."""
        process, session = self.state.begin_shutdown()
        try:
            if session is not None:
                log.info("attempting to quit Neovim instance via RPC")
                try:
                    session.quit()
                except Exception as e:
                    log.error("error during quit: %s", e)
                finally:
                    session.close()
            else:
                log.debug("no active Neovim session to quit via RPC")

            if process is not None:
                log.info("terminating Neovim process (PID: %s)", process.pid)
                try:
                    killed = process.terminate()
                    log.debug("terminate() sent: %s", killed)
                except OSError as e:
                    log.error("failed to terminate PID %s: %s", process.pid, e)
            else:
                log.debug("no owned Neovim process to terminate")
        finally:
            self.state.finish_shutdown()

        log.info("Neovim instance and process references cleared")
        if not quiet:
            self.notify("Neovim instance closed.")
