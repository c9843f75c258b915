"""Result synchronization: actions, timers and the response cache."""

from benchscope.sync.actions import ActionKind, ActionStateMachine
from benchscope.sync.cache import ResponseCache
from benchscope.sync.probe import RunState, StatusContainer
from benchscope.sync.timers import AsyncioScheduler, CancelToken, SettledCell

__all__ = [
    "ActionKind",
    "ActionStateMachine",
    "ResponseCache",
    "RunState",
    "StatusContainer",
    "AsyncioScheduler",
    "CancelToken",
    "SettledCell",
]
