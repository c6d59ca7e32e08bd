"""Owned process/session state shared by the supervisor and session manager.

The process and its control session are only ever published or cleared
together, under one lock, so a session never outlives its process.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nvimlink.supervisor.rpc import ControlSession

log = logging.getLogger(__name__)


class SessionStatus(Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class LifecycleEvent(Enum):
    ERROR = "error"
    CLOSE = "close"
    EXIT = "exit"
    DISCONNECT = "disconnect"


TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.IDLE: frozenset({SessionStatus.LAUNCHING}),
    SessionStatus.LAUNCHING: frozenset({SessionStatus.RUNNING, SessionStatus.IDLE}),
    SessionStatus.RUNNING: frozenset({SessionStatus.SHUTTING_DOWN, SessionStatus.IDLE}),
    SessionStatus.SHUTTING_DOWN: frozenset({SessionStatus.IDLE}),
}


class InvalidTransition(RuntimeError):
    """Raised when a state change is not in the transition table."""


@dataclass
class SupervisedProcess:
    """A terminal process spawned and owned by nvimlink."""

    popen: subprocess.Popen
    pid: int
    executable: str = ""

    def poll(self) -> int | None:
        return self.popen.poll()

    def wait(self, timeout: float | None = None) -> int:
        return self.popen.wait(timeout=timeout)

    def terminate(self) -> bool:
        """Send SIGTERM; return False when the process was already gone."""
        if self.poll() is not None:
            return False
        try:
            self.popen.terminate()
        except ProcessLookupError:
            return False
        return True


@dataclass
class OwnedState:
    """The single owned process/session pair, guarded by one lock."""

    status: SessionStatus = SessionStatus.IDLE
    process: SupervisedProcess | None = None
    session: ControlSession | None = None
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def _transition(self, target: SessionStatus) -> None:
        if target not in TRANSITIONS[self.status]:
            raise InvalidTransition(f"{self.status.value} -> {target.value}")
        log.debug("state %s -> %s", self.status.value, target.value)
        self.status = target

    def has_process(self) -> bool:
        with self._lock:
            return self.process is not None

    def has_owned_instance(self) -> bool:
        """Return whether both an owned process and its session exist."""
        with self._lock:
            return self.process is not None and self.session is not None

    def current(self) -> tuple[SupervisedProcess | None, ControlSession | None]:
        with self._lock:
            return self.process, self.session

    def begin_launch(self) -> bool:
        """Reserve the slot for a new launch; False if one is active."""
        with self._lock:
            if self.status is not SessionStatus.IDLE or self.process is not None:
                return False
            self._transition(SessionStatus.LAUNCHING)
            return True

    def abort_launch(self) -> None:
        with self._lock:
            self.process = None
            self.session = None
            if self.status is SessionStatus.LAUNCHING:
                self._transition(SessionStatus.IDLE)

    def mark_running(self, process: SupervisedProcess, session: ControlSession) -> None:
        with self._lock:
            self._transition(SessionStatus.RUNNING)
            self.process = process
            self.session = session

    def begin_shutdown(self) -> tuple[SupervisedProcess | None, ControlSession | None]:
        """Detach and return the current pair, entering SHUTTING_DOWN if running."""
        with self._lock:
            process, session = self.process, self.session
            if self.status is SessionStatus.RUNNING:
                self._transition(SessionStatus.SHUTTING_DOWN)
            return process, session

    def finish_shutdown(self) -> None:
        with self._lock:
            self.process = None
            self.session = None
            if self.status is SessionStatus.SHUTTING_DOWN:
                self._transition(SessionStatus.IDLE)

    def clear(self, event: LifecycleEvent, process: SupervisedProcess | None = None) -> bool:
        """Apply a lifecycle event: drop process and session in one step.

        Only acts while ``process`` (or, if omitted, any process) is still the
        owned one, so repeated or stale events are no-ops.
        """
        with self._lock:
            if self.process is None:
                return False
            if process is not None and self.process is not process:
                return False
            self.process = None
            self.session = None
            if self.status in (SessionStatus.RUNNING, SessionStatus.SHUTTING_DOWN):
                self._transition(SessionStatus.IDLE)
            log.info("owned Neovim state cleared on '%s'", event.value)
            return True
