"""Transport clients for the Browserscope results service."""

from benchscope.clients.browserscope_client import (
    BeaconTransport,
    HttpBeaconTransport,
    HttpResultsTransport,
    ResultsTransport,
    create_http_client,
    parse_gviz_payload,
)

__all__ = [
    "BeaconTransport",
    "HttpBeaconTransport",
    "HttpResultsTransport",
    "ResultsTransport",
    "create_http_client",
    "parse_gviz_payload",
]
