"""Benchmark result and remote results-table data structures."""

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from benchscope.eval.statistics import BenchmarkStats, ComparisonOutcome, compare_stats


# Browserscope filter categories and their `v` query parameter
# https://www.browserscope.org/user/tests/howto#urlparams
FILTER_MAP: Dict[str, Union[int, str]] = {
    "all": 3,
    "desktop": "top-d",
    "family": 0,
    "major": 1,
    "minor": 2,
    "mobile": "top-m",
    "popular": "top",
    "prerelease": "top-d-e",
}


@dataclass
class BenchmarkResult:
    """A locally run benchmark as reported by the benchmark runner."""

    name: str
    id: int
    count: int = 0
    cycles: int = 0
    hz: float = 0.0
    stats: BenchmarkStats = field(default_factory=BenchmarkStats)
    error: Optional[str] = None
    aborted: bool = False

    @property
    def successful(self) -> bool:
        """Ran without error and produced a finite, positive rate."""
        return (
            self.error is None
            and not self.aborted
            and self.cycles > 0
            and math.isfinite(self.hz)
            and self.hz > 0
            and self.stats.mean > 0
        )

    def clone(self) -> "BenchmarkResult":
        return copy.deepcopy(self)

    def compare(self, other: "BenchmarkResult") -> ComparisonOutcome:
        if other is self:
            return ComparisonOutcome.INDISTINGUISHABLE
        return compare_stats(self.stats, other.stats)

    @classmethod
    def from_dict(cls, data: dict) -> "BenchmarkResult":
        """Create a BenchmarkResult from a dictionary.

        ``stats`` may be a full statistics mapping, or a raw ``sample`` list
        may be given at the top level. ``hz`` defaults to the inverse of the
        mean period.
        """
        stats_data = data.get("stats")
        if stats_data is None and data.get("sample"):
            stats_data = {"sample": data["sample"]}
        stats = BenchmarkStats.from_dict(stats_data or {})

        hz = data.get("hz")
        if hz is None:
            hz = 1 / stats.mean if stats.mean > 0 else 0.0
        cycles = data.get("cycles")
        if cycles is None:
            cycles = len(stats.sample)

        return cls(
            name=str(data.get("name", "")),
            id=int(data["id"]),
            count=int(data.get("count", 0)),
            cycles=int(cycles),
            hz=float(hz),
            stats=stats,
            error=data.get("error"),
            aborted=bool(data.get("aborted", False)),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "id": self.id,
            "count": self.count,
            "cycles": self.cycles,
            "hz": self.hz,
            "stats": self.stats.to_dict(),
            "error": self.error,
            "aborted": self.aborted,
        }


@dataclass
class Column:
    """A column label of a results table."""

    id: str
    label: str
    type: str

    @classmethod
    def from_dict(cls, data: dict) -> "Column":
        return cls(
            id=str(data.get("id", "")),
            label=str(data.get("label", "")),
            type=str(data["type"]),
        )


@dataclass
class Cell:
    """A table cell: raw value ``v``, formatted text ``f`` and properties ``p``."""

    v: Any = None
    f: Optional[str] = None
    p: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Cell":
        f = data.get("f")
        return cls(
            v=data.get("v"),
            f=None if f is None else str(f),
            p=dict(data.get("p") or {}),
        )


@dataclass
class Row:
    """A table row. Missing cells stay as ``None`` placeholders."""

    cells: List[Optional[Cell]] = field(default_factory=list)

    @property
    def present_cells(self) -> List[Cell]:
        """Cells with empty entries removed; the cell objects are shared."""
        return [cell for cell in self.cells if cell is not None]


@dataclass
class ResultTable:
    """Cumulative results table returned by the results service."""

    columns: List[Column] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    def clone(self) -> "ResultTable":
        return copy.deepcopy(self)


@dataclass
class RemoteResponse:
    """Payload of one results query, possibly in an error state."""

    table: Optional[ResultTable] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None or self.table is None

    @classmethod
    def failed(cls, error: str) -> "RemoteResponse":
        return cls(table=None, error=error)


def _first_list(mapping: dict, predicate) -> List[Any]:
    for value in mapping.values():
        if isinstance(value, list) and predicate(value):
            return value
    return []


def _is_label_list(value: list) -> bool:
    return len(value) > 0 and isinstance(value[0], dict) and "type" in value[0]


def _is_row_list(value: list) -> bool:
    return len(value) > 0 and not (isinstance(value[0], dict) and "type" in value[0])


def parse_data_table(raw: dict) -> ResultTable:
    """Build a typed ResultTable from a raw results-table mapping.

    Field names of the raw table are not stable, so everything is found by
    shape:

    - labels: the first list whose first element is a mapping with ``type``
    - rows: the first non-empty list whose first element has no ``type``
    - a row's cells: the first list-valued field of the row mapping (a row
      given directly as a list is taken as its cells)

    Raises:
        ValueError: If ``raw`` is not a mapping
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a table mapping, got {type(raw).__name__}")

    columns = [Column.from_dict(item) for item in _first_list(raw, _is_label_list)]

    rows = []
    for raw_row in _first_list(raw, _is_row_list):
        if isinstance(raw_row, dict):
            raw_cells = _first_list(raw_row, lambda value: True)
        elif isinstance(raw_row, list):
            raw_cells = raw_row
        else:
            continue
        rows.append(Row(cells=[
            Cell.from_dict(cell) if isinstance(cell, dict) else None
            for cell in raw_cells
        ]))

    return ResultTable(columns=columns, rows=rows)
