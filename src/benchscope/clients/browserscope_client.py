"""Browserscope transports: cumulative results queries and result beacons."""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol, Set, Union

import httpx

from benchscope.results.base import RemoteResponse, parse_data_table

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.browserscope.org"


class ResultsTransport(Protocol):
    """Delivers exactly one RemoteResponse per query, asynchronously."""

    def query(
        self,
        key: str,
        filter_param: Union[int, str],
        on_result: Callable[[RemoteResponse], Any],
    ) -> None:
        ...


class BeaconTransport(Protocol):
    """Fire-and-forget post of a results snapshot.

    ``on_success`` is called at most once; failures are never reported.
    """

    def post(
        self,
        key: str,
        payload: Dict[str, int],
        on_success: Callable[[], Any],
    ) -> None:
        ...


def parse_gviz_payload(text: str) -> RemoteResponse:
    """Parse a (JSONP wrapped) visualization query response.

    Args:
        text: Body such as ``setResponse({"status": "ok", "table": {...}})``

    Returns:
        RemoteResponse, in an error state when the body cannot be used
    """
    start = text.find("(")
    end = text.rfind(")")
    body = text[start + 1:end] if start != -1 and end > start else text

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        return RemoteResponse.failed(f"Malformed response: {e}")

    if not isinstance(payload, dict):
        return RemoteResponse.failed("Malformed response: expected an object")

    if payload.get("status") == "error":
        errors = payload.get("errors") or []
        reason = "; ".join(
            str(error.get("detailed_message") or error.get("message") or error.get("reason"))
            for error in errors if isinstance(error, dict)
        )
        return RemoteResponse.failed(reason or "Query failed")

    table = payload.get("table")
    if not isinstance(table, dict):
        return RemoteResponse.failed("Response has no table")

    try:
        return RemoteResponse(table=parse_data_table(table))
    except ValueError as e:
        return RemoteResponse.failed(str(e))


class _TaskRunner:
    """Keeps references to fire-and-forget tasks until they finish."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"{type(self).__name__} task failed: {error}", exc_info=error)

    def close(self) -> None:
        """Cancel requests still in flight."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()


class HttpResultsTransport(_TaskRunner):
    """Queries Browserscope's cumulative results table over HTTP."""

    def __init__(self, client: httpx.AsyncClient):
        """Initialize the transport.

        Args:
            client: Client whose ``base_url`` points at the results service
        """
        super().__init__()
        self.client = client

    def query(
        self,
        key: str,
        filter_param: Union[int, str],
        on_result: Callable[[RemoteResponse], Any],
    ) -> None:
        self.spawn(self._fetch(key, filter_param, on_result))

    async def _fetch(self, key, filter_param, on_result) -> None:
        params = {"category": f"usertest_{key}", "v": filter_param}
        try:
            response = await self.client.get("/gviz_table_data", params=params)
            response.raise_for_status()
            result = parse_gviz_payload(response.text)
        except httpx.HTTPError as e:
            logger.warning(f"Results query failed (v={filter_param}): {e}")
            result = RemoteResponse.failed(str(e))

        if result.is_error:
            logger.warning(f"Results query returned an error: {result.error}")
        try:
            on_result(result)
        except Exception as e:
            logger.error(f"Handling results for v={filter_param} failed: {e}", exc_info=True)


class HttpBeaconTransport(_TaskRunner):
    """Posts one results snapshot to the Browserscope beacon."""

    def __init__(self, client: httpx.AsyncClient, name: str = "beacon"):
        super().__init__()
        self.client = client
        self.name = name

    def post(
        self,
        key: str,
        payload: Dict[str, int],
        on_success: Callable[[], Any],
    ) -> None:
        self.spawn(self._send(key, dict(payload), on_success))

    async def _send(self, key, payload, on_success) -> None:
        try:
            response = await self.client.post(f"/user/beacon/{key}", data=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"{self.name}: beacon post failed: {e}")
            return
        logger.info(f"{self.name}: posted {len(payload)} results")
        try:
            on_success()
        except Exception as e:
            logger.error(f"{self.name}: success callback failed: {e}", exc_info=True)


def create_http_client(
    base_url: str = DEFAULT_BASE_URL,
    timeout: Optional[float] = None,
) -> httpx.AsyncClient:
    """Factory function to create the shared HTTP client.

    Args:
        base_url: Results service root URL
        timeout: Per-request timeout in seconds (None disables httpx's own)

    Returns:
        httpx.AsyncClient instance
    """
    return httpx.AsyncClient(base_url=base_url, timeout=timeout, follow_redirects=True)
