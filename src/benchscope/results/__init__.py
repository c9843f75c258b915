"""Results data structures."""

from benchscope.results.base import (
    FILTER_MAP,
    BenchmarkResult,
    Cell,
    Column,
    RemoteResponse,
    ResultTable,
    Row,
    parse_data_table,
)

__all__ = [
    "FILTER_MAP",
    "BenchmarkResult",
    "Cell",
    "Column",
    "RemoteResponse",
    "ResultTable",
    "Row",
    "parse_data_table",
]
