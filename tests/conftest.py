"""Shared fixtures: virtual-time scheduler, fake transports and renderer."""

import copy

import pytest

from benchscope.config import AppConfig
from benchscope.results.base import RemoteResponse, parse_data_table
from benchscope.sync.actions import ActionStateMachine
from benchscope.sync.probe import RunState, StatusContainer


RAW_TABLE = {
    "cols": [
        {"id": "browser", "label": "Browser", "type": "string"},
        {"id": "t1", "label": "Test A", "type": "number"},
        {"id": "t2", "label": "Test B", "type": "number"},
        {"id": "runs", "label": "# Tests", "type": "number"},
    ],
    "rows": [
        {"c": [
            {"v": "Chrome 45.0", "f": "Chrome 45.0", "p": {}},
            {"v": 1200, "f": "1,200"},
            {"v": 800, "f": "800"},
            {"v": 4},
        ]},
        {"c": [
            {"v": "Firefox 40", "f": "Firefox 40", "p": {}},
            {"v": 900, "f": "900"},
            None,
            {"v": 2},
        ]},
        {"c": [
            {"v": "Safari 8.0.6", "f": "Safari 8.0.6", "p": {}},
            {"v": None, "f": ""},
            {"v": None, "f": ""},
            {"v": 0},
        ]},
    ],
}


def make_response(raw=None) -> RemoteResponse:
    return RemoteResponse(table=parse_data_table(copy.deepcopy(raw or RAW_TABLE)))


class ManualTimer:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by explicit ``advance`` calls."""

    def __init__(self):
        self.now = 0.0
        self._timers = []

    def call_later(self, delay, callback):
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self):
        return [timer for timer in self._timers if not timer.cancelled and not timer.fired]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = sorted(
                (timer for timer in self.pending if timer.when <= target),
                key=lambda timer: timer.when,
            )
            if not due:
                break
            timer = due[0]
            self.now = timer.when
            timer.fired = True
            timer.callback()
        self.now = target


class FakeResultsTransport:
    def __init__(self):
        self.queries = []

    def query(self, key, filter_param, on_result):
        self.queries.append((key, filter_param, on_result))

    def respond(self, index, response):
        self.queries[index][2](response)


class FakeBeacon:
    def __init__(self, name):
        self.name = name
        self.posts = []

    def post(self, key, payload, on_success):
        self.posts.append((key, payload, on_success))

    def confirm(self):
        self.posts[-1][2]()


class FakeRenderer:
    def __init__(self, available=True):
        self.available = available
        self.draws = []

    def supports(self, kind):
        return kind in ("table", "bar", "column", "pie")

    def draw(self, container, data, on_ready):
        self.draws.append(data)
        container.show(f"{data.kind} chart")
        on_ready()


class Harness:
    """An ActionStateMachine wired to fakes."""

    def __init__(self, container=True, renderer_available=True, platform_name="Linux", **config_values):
        config_values.setdefault("key", "agt1YS1wcm9maWxlcnINCxIEVGVzdBjd")
        config_values.setdefault("postable", True)
        self.config = AppConfig(**config_values)
        self.scheduler = ManualScheduler()
        self.transport = FakeResultsTransport()
        self.beacons = []
        self.renderer = FakeRenderer(available=renderer_available)
        self.container = StatusContainer(width=948) if container else None
        self.probe = RunState()
        self.machine = ActionStateMachine(
            self.config,
            results_transport=self.transport,
            beacon_factory=self._beacon,
            renderer=self.renderer,
            container=self.container,
            scheduler=self.scheduler,
            probe=self.probe,
            browser_name="Chrome 45.0.2454.85",
            platform_name=platform_name,
        )

    def _beacon(self, name):
        beacon = FakeBeacon(name)
        self.beacons.append(beacon)
        return beacon


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def make_harness():
    return Harness


@pytest.fixture
def response():
    return make_response()
