"""Owned Neovim process supervision and its RPC control session."""

from nvimlink.supervisor.process import ProcessSupervisor, classify_spawn_error
from nvimlink.supervisor.rpc import PROBE_DELAY_SECONDS, ControlSession, RpcSessionManager
from nvimlink.supervisor.state import (
    LifecycleEvent,
    OwnedState,
    SessionStatus,
    SupervisedProcess,
)

__all__ = [
    "ControlSession",
    "LifecycleEvent",
    "OwnedState",
    "PROBE_DELAY_SECONDS",
    "ProcessSupervisor",
    "RpcSessionManager",
    "SessionStatus",
    "SupervisedProcess",
    "classify_spawn_error",
]
