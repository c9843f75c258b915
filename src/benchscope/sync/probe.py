"""Benchmark run state and the status output surface."""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

MESSAGE_CLASS = "bs-rt-message"


class RunStateProbe(Protocol):
    """Reports whether benchmarks are executing and emits run events."""

    def is_busy(self) -> bool:
        ...

    def on(self, event: str, handler: Callable[[], Any]) -> Any:
        ...


class RunState:
    """Minimal run-state emitter for the benchmark runner.

    Emits ``start``, ``complete`` and ``abort`` events.
    """

    def __init__(self):
        self.running = False
        self._listeners: Dict[str, List[Callable[[], Any]]] = defaultdict(list)

    def is_busy(self) -> bool:
        return self.running

    def on(self, event: str, handler: Callable[[], Any]) -> "RunState":
        self._listeners[event].append(handler)
        return self

    def emit(self, event: str) -> None:
        for handler in list(self._listeners[event]):
            handler()

    def start(self) -> None:
        self.running = True
        self.emit("start")

    def complete(self) -> None:
        self.running = False
        self.emit("complete")

    def abort(self) -> None:
        self.running = False
        self.emit("abort")


class StatusContainer:
    """Output region showing either a status message or rendered content."""

    def __init__(self, width: int = 0):
        self.width = width
        self.css_class = ""
        self.message: Optional[str] = None
        self.content: Optional[str] = None
        self.ready = False
        self.highlighted_row: Optional[int] = None
        self._listeners: List[Callable[["StatusContainer"], Any]] = []

    def subscribe(self, listener: Callable[["StatusContainer"], Any]) -> None:
        """Call ``listener`` after every change of the container."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def set_message(self, text: str) -> None:
        self.css_class = MESSAGE_CLASS
        self.message = text
        self.content = None
        self.ready = False
        self.highlighted_row = None
        logger.debug(f"Status message: {text!r}")
        self._changed()

    def clear_message(self) -> None:
        self.css_class = ""
        self.message = None

    def show(self, content: str) -> None:
        self.css_class = ""
        self.message = None
        self.content = content
        self.ready = False
        self._changed()

    def mark_ready(self, highlighted_row: Optional[int] = None) -> None:
        self.ready = True
        self.highlighted_row = highlighted_row
        self._changed()
