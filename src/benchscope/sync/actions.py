"""Load / post / render coordination for the cumulative results chart.

One ActionStateMachine owns the current action, the active filter, the
response cache and every timer. Entering an action cancels the pending
timers of the previously current action, so at most one action's timers
are ever live. Failures never raise: they end up as a status message in the
output container and, where sensible, a scheduled retry.
"""

import logging
import platform
import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from benchscope.clients.browserscope_client import BeaconTransport, ResultsTransport
from benchscope.config import AppConfig
from benchscope.eval.snapshot import Snapshot, create_snapshot
from benchscope.report.chart_data import CHART_KINDS, ChartDataAdapter, ChartRenderer
from benchscope.results.base import FILTER_MAP, BenchmarkResult, RemoteResponse
from benchscope.sync.cache import ResponseCache
from benchscope.sync.probe import RunStateProbe, StatusContainer
from benchscope.sync.timers import CancelToken, Scheduler, SettledCell

logger = logging.getLogger(__name__)

_UNSET = object()

_SIMULATOR = re.compile(r"simulator", re.IGNORECASE)


class ActionKind(str, Enum):
    LOAD = "load"
    POST = "post"
    RENDER = "render"


class ActionStateMachine:
    """Coordinates loading, posting and rendering of cumulative results."""

    def __init__(
        self,
        config: AppConfig,
        *,
        results_transport: ResultsTransport,
        beacon_factory: Callable[[str], BeaconTransport],
        renderer: Optional[ChartRenderer],
        container: Optional[StatusContainer],
        scheduler: Scheduler,
        probe: Optional[RunStateProbe] = None,
        benchmarks: Sequence[BenchmarkResult] = (),
        browser_name: str = "",
        platform_name: Optional[str] = None,
        cache: Optional[ResponseCache] = None,
        adapter: Optional[ChartDataAdapter] = None,
    ):
        """Initialize the state machine.

        Args:
            config: Application configuration
            results_transport: Queries cumulative results
            beacon_factory: Creates one beacon per post, given a beacon name
            renderer: Chart-drawing collaborator (None until it is loaded)
            container: Output region (None disables all output)
            scheduler: Runs delayed callbacks
            probe: Benchmark run state; its start/abort events are observed
            benchmarks: Local benchmark results
            browser_name: The user's browser name with version
            platform_name: Platform description; simulators never post
            cache: Response cache shared by all actions
            adapter: Table to chart data adapter
        """
        self.config = config
        self.results_transport = results_transport
        self.beacon_factory = beacon_factory
        self.renderer = renderer
        self.container = container
        self.scheduler = scheduler
        self.probe = probe
        self.benchmarks: List[BenchmarkResult] = list(benchmarks)
        self.browser_name = browser_name
        self.platform_name = platform.platform() if platform_name is None else platform_name
        self.cache = cache if cache is not None else ResponseCache()
        self.adapter = adapter or ChartDataAdapter(ua_class=config.ua_class)

        self.last_action = ActionKind.LOAD
        self.last_chart = config.chart
        self.last_filter = config.filter_by
        self.snapshot: Optional[Snapshot] = None
        self.chart_data = None

        self._tokens: Dict[ActionKind, CancelToken] = {}
        self._beacon_counter = 0

        if probe is not None:
            probe.on("start", self.on_start)
            probe.on("abort", self.on_abort)

    # ------------------------------------------------------------------
    # helpers

    @property
    def busy(self) -> bool:
        return self.probe is not None and self.probe.is_busy()

    @property
    def capable(self) -> bool:
        """Whether the chart renderer has finished loading."""
        return self.renderer is not None and bool(getattr(self.renderer, "available", False))

    def pending_token(self, action: ActionKind) -> Optional[CancelToken]:
        token = self._tokens.get(action)
        return None if token is None or token.cancelled else token

    def _set_action(self, action: ActionKind) -> None:
        """Cancel the previous current action's timers and switch actions."""
        token = self._tokens.pop(self.last_action, None)
        if token is not None:
            token.cancel()
        if action != self.last_action:
            logger.debug(f"Action {self.last_action.value} -> {action.value}")
        self.last_action = action

    def _arm(self, action: ActionKind, delay: float, callback: Callable[[], None]) -> CancelToken:
        """Schedule ``callback`` as the single pending timer of ``action``."""
        previous = self._tokens.get(action)
        if previous is not None:
            previous.cancel()
        token = CancelToken(action.value)
        token.schedule(self.scheduler, delay, callback)
        self._tokens[action] = token
        return token

    def _set_message(self, text: str) -> None:
        if self.container is not None:
            self.container.set_message(text)

    # ------------------------------------------------------------------
    # run-state events

    def on_start(self) -> None:
        """Hide the chart while benchmarks are running."""
        self._set_message(self.config.texts.wait)

    def on_abort(self) -> None:
        self.render(force=True)

    # ------------------------------------------------------------------
    # actions

    def load(self, filter_by: Optional[str] = None) -> None:
        """Load the cumulative results table for a filter category."""
        filter_by = self.last_filter = filter_by or self.last_filter
        if filter_by not in FILTER_MAP:
            raise ValueError(f"Unknown filter category: {filter_by}")

        cached = self.cache.get(filter_by)
        settled: SettledCell[RemoteResponse] = SettledCell()

        def on_complete(response: Optional[RemoteResponse] = None) -> None:
            last_response = self.cache.get(filter_by)
            if not settled.settle(response):
                logger.debug(f"Ignoring late completion for '{filter_by}'")
                return
            # render if the filter is still the same, else cache the result
            if filter_by == self.last_filter:
                self.render(force=True, response=last_response or response)
            elif last_response is None and response is not None and not response.is_error:
                self.cache.store(filter_by, response)

        # set the action first in case loading fails and needs a retry
        self._set_action(ActionKind.LOAD)

        if self.container is None or not self.capable or cached is not None:
            self._set_message("")
            if self.container is not None:
                on_complete(cached)
        elif not self.busy:
            def on_timeout():
                logger.warning(f"Results query for '{filter_by}' timed out")
                on_complete(None)

            self._arm(ActionKind.LOAD, self.config.timings.timeout, on_timeout)
            self._set_message(self.config.texts.loading)
            logger.info(f"Loading cumulative results (filter={filter_by})")
            self.results_transport.query(self.config.key, FILTER_MAP[filter_by], on_complete)

    def post(self) -> None:
        """Post a snapshot of the local results, then refresh the chart."""
        key = self.config.key
        snapshot = create_snapshot(self.benchmarks)

        # set the action first in case posting fails and needs a retry
        self._set_action(ActionKind.POST)

        if not (
            key
            and snapshot
            and self.config.postable
            and not self.busy
            and not _SIMULATOR.search(self.platform_name or "")
        ):
            self.load()
            return

        name = f"browserscope-{self._beacon_counter}"
        self._beacon_counter += 1
        beacon = self.beacon_factory(name)

        self.snapshot = snapshot
        self._set_message(self.config.texts.post)

        settled: SettledCell[bool] = SettledCell()

        def on_timeout():
            if settled.settle(False):
                logger.warning(f"{name}: no confirmation received, giving up")
                self.render(force=True)

        token = self._arm(ActionKind.POST, self.config.timings.timeout, on_timeout)

        def refresh():
            self.purge()
            self.load()

        def on_success():
            if token.cancelled:
                logger.debug(f"{name}: confirmation arrived after the post was superseded")
                return
            if settled.settle(True):
                logger.info(f"{name}: snapshot posted, refreshing in {self.config.timings.refresh}s")
                self._arm(ActionKind.POST, self.config.timings.refresh, refresh)

        logger.info(f"{name}: posting {len(snapshot)} results")
        beacon.post(key, dict(snapshot), on_success)

    def purge(self, key: Optional[str] = None) -> None:
        """Purge one filter's cached response, or all of them."""
        self.cache.purge(key)

    def render(
        self,
        chart: Optional[str] = None,
        filter_by: Optional[str] = None,
        force: bool = False,
        response=_UNSET,
    ) -> None:
        """Render the cumulative results chart."""
        if chart is not None and chart.lower() not in CHART_KINDS:
            raise ValueError(f"Unsupported chart kind: {chart}")
        if filter_by is not None and filter_by not in FILTER_MAP:
            raise ValueError(f"Unknown filter category: {filter_by}")

        options = {"chart": chart, "filter_by": filter_by, "force": force}
        if response is not _UNSET:
            options["response"] = response

        last_chart = self.last_chart
        chart = self.last_chart = (chart or last_chart).lower()
        last_filter = self.last_filter
        filter_by = self.last_filter = filter_by or last_filter
        last_response = self.cache.get(filter_by)

        if response is _UNSET:
            response = last_response
        else:
            if response is not None and not response.is_error:
                self.cache.store(filter_by, response)
            else:
                response = None
                self.cache.purge(filter_by)

        def retry(force_retry: bool = False) -> None:
            action = self.last_action
            if force_retry or self.busy:
                self._arm(action, self.config.timings.retry, retry)
            elif action == ActionKind.RENDER:
                self.render(**options)
            elif action == ActionKind.POST:
                self.post()
            else:
                self.load()

        # set the action to clear pending timers and prepare for retries
        self._set_action(ActionKind.RENDER if response is not None else self.last_action)

        capable = self.capable
        if self.container is None or (capable and (
            filter_by != last_filter
            or (not force and chart == last_chart and response is last_response)
        )):
            # switching filters always needs a fresh load
            if self.container is not None and filter_by != last_filter:
                self.load(filter_by)
            return

        if response is None or not capable:
            if response is None and capable:
                self._set_message(self.config.texts.error)
            retry(True)
            return

        if self.busy:
            return

        try:
            self._draw(response, chart, filter_by)
        except Exception as e:
            logger.error(f"Rendering results for '{filter_by}' failed: {e}", exc_info=True)
            # unusable data is dropped and loaded again
            self.cache.purge(filter_by)
            self._set_message(self.config.texts.error)
            self._set_action(ActionKind.LOAD)
            retry(True)

    def _draw(self, response: RemoteResponse, chart: str, filter_by: str) -> None:
        container = self.container
        data = self.adapter.adapt(
            response.table,
            chart,
            benchmarks=self.benchmarks,
            browser_name=self.browser_name,
            filter_by=filter_by,
            width=container.width or None,
        )
        self.chart_data = data
        container.clear_message()

        if data.rows and self.renderer.supports(data.kind):
            logger.info(f"Rendering {data.kind} chart with {len(data.rows)} rows (filter={filter_by})")
            self.renderer.draw(container, data, lambda: container.mark_ready(data.highlighted_row))
        else:
            logger.info(f"No data to render (filter={filter_by})")
            self._set_message(self.config.texts.empty)
