"""Shared fixtures for nvimlink tests."""

import subprocess
import threading
from unittest.mock import MagicMock

import pytest

from nvimlink.models import ListenAddress
from nvimlink.supervisor import OwnedState, ProcessSupervisor, RpcSessionManager


class FakePopen:
    """Popen stand-in whose exit is controlled by the test."""

    def __init__(self, pid: int | None = 4242) -> None:
        self.pid = pid
        self.returncode: int | None = None
        self.terminate_calls = 0
        self._exited = threading.Event()

    def poll(self) -> int | None:
        return self.returncode

    def wait(self, timeout: float | None = None) -> int:
        if not self._exited.wait(timeout):
            raise subprocess.TimeoutExpired("fake-terminal", timeout)
        return self.returncode

    def exit(self, code: int = 0) -> None:
        self.returncode = code
        self._exited.set()

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.exit(-15)


class PopenFactory:
    """Records spawn calls and hands out FakePopen objects."""

    def __init__(self) -> None:
        self.calls: list[tuple[tuple, dict]] = []
        self.spawned: list[FakePopen] = []
        self.next_pid = 4242

    def __call__(self, *args, **kwargs) -> FakePopen:
        self.calls.append((args, kwargs))
        popen = FakePopen(pid=self.next_pid)
        self.next_pid += 1
        self.spawned.append(popen)
        return popen


@pytest.fixture
def notices() -> list[str]:
    return []


@pytest.fixture
def nvim_client() -> MagicMock:
    client = MagicMock(name="Nvim")
    client.eval.return_value = 1
    return client


@pytest.fixture
def attach(nvim_client) -> MagicMock:
    return MagicMock(name="attach", return_value=nvim_client)


@pytest.fixture
def popen_factory() -> PopenFactory:
    return PopenFactory()


@pytest.fixture
def state() -> OwnedState:
    return OwnedState()


@pytest.fixture
def sessions(state, notices, attach) -> RpcSessionManager:
    manager = RpcSessionManager(
        state, ListenAddress.parse("127.0.0.1:7777"), notices.append, attach=attach
    )
    # Probes are exercised directly; never let a timer fire mid-test.
    manager.schedule_probe = MagicMock(name="schedule_probe")
    return manager


@pytest.fixture
def supervisor(state, sessions, notices, popen_factory) -> ProcessSupervisor:
    return ProcessSupervisor(state, sessions, notices.append, popen=popen_factory)
