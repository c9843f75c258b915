"""Turn a cumulative results table into chart-ready data."""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Sequence

import pandas as pd

from benchscope.eval.snapshot import assign_labels
from benchscope.results.base import BenchmarkResult, Column, ResultTable, Row

logger = logging.getLogger(__name__)

CHART_KINDS = ("table", "bar", "column", "pie", "line", "area")

# Prepended to the user's browser name so renderers can find and style it;
# a line separator is not rendered by chart libraries
UA_TOKEN = "\u2028"

RATE_SUFFIX = " ops/sec"
H_TITLE = "operations per second (higher is better)"
PIE_TITLE = "Total operations per second by browser (higher is better)"

# Formatted rates such as "1,234" or "1234.5"
_RATE_TEXT = re.compile(r"^\d{1,3}(?:,\d{3})*(?:\.\d+)?$|^\d+(?:\.\d+)?$")


def parse_rate(text: Optional[str]) -> Optional[float]:
    """Parse formatted rate text, or return None when it is not a rate."""
    if text is None or not _RATE_TEXT.match(text):
        return None
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return None


def format_number(value: float) -> str:
    """Format a number with thousands separators, keeping any decimals."""
    number = float(value)
    if not math.isfinite(number):
        return str(number)
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,}"


def to_browser_name(name: Optional[str], filter_by: str) -> str:
    """Convert a browser name's version to the granularity of a filter.

    - ``all``: drop trailing ``.0`` groups (``1.0.0`` -> ``1``)
    - ``family``: drop the version entirely (``XYZ 1.2`` -> ``XYZ``)
    - ``minor``/``popular``: ``1.2.3`` -> ``1.2`` when the version ends in
      non-zero components
    - otherwise ``1.0`` -> ``1`` and ``1.2.3`` -> ``1``, leaving ``1.2`` alone
    """
    name = name or ""
    if filter_by == "all":
        return re.sub(r"(\d+)(?:\.0+)+$", r"\1", name, count=1)
    if filter_by == "family":
        return re.sub(r"[.\d\s]+$", "", name, count=1)
    if filter_by in ("minor", "popular") and re.search(r"\d+(?:\.[1-9])+$", name):
        return re.sub(r"(\d+\.[1-9])(\.[.\d]+$)", r"\1", name, count=1)
    return re.sub(
        r"(\d+)(?:(\.[1-9]$)|(\.[.\d]+$))",
        lambda match: match.group(1) + (match.group(2) or ""),
        name,
        count=1,
    )


@dataclass
class ChartGeometry:
    """Layout of a chart; coordinates and sizes are in px, areas in percent."""

    width: float
    height: Optional[float] = None
    left: float = 240
    top: float = 50
    area_width: float = 100.0
    area_height: Optional[float] = None
    font_size: int = 13
    legend: str = "top"
    title: str = ""
    h_title: str = H_TITLE
    v_title: str = ""

    def to_options(self) -> dict:
        """Chart options in the shape chart libraries usually expect."""
        return {
            "fontSize": self.font_size,
            "height": "auto" if self.height is None else self.height,
            "legend": self.legend,
            "title": self.title,
            "width": self.width,
            "chartArea": {
                "height": None if self.area_height is None else f"{self.area_height}%",
                "left": self.left,
                "top": self.top,
                "width": f"{self.area_width}%",
            },
            "hAxis": {"baseline": 0, "title": self.h_title},
            "vAxis": {"baseline": 0, "title": self.v_title},
        }


def _cell_text(cell) -> str:
    if cell is None:
        return ""
    if cell.f is not None:
        return cell.f
    return "" if cell.v is None else str(cell.v)


@dataclass
class ChartData:
    """Chart-ready projection of a results table."""

    kind: str
    columns: List[Column]
    rows: List[Row]
    geometry: ChartGeometry
    filter_by: str = "all"
    highlighted_row: Optional[int] = None
    max_rate: float = 0.0
    max_chars: int = 0

    def to_frame(self) -> pd.DataFrame:
        """Formatted cell text as a DataFrame, one column per label."""
        records = []
        for row in self.rows:
            texts = [_cell_text(cell) for cell in row.cells]
            records.append(texts[:len(self.columns)] if self.columns else texts)
        labels = [column.label for column in self.columns]
        width = max([len(labels)] + [len(record) for record in records])
        labels += [""] * (width - len(labels))
        records = [record + [""] * (width - len(record)) for record in records]
        return pd.DataFrame(records, columns=labels)


class ChartRenderer(Protocol):
    """External chart-drawing collaborator."""

    available: bool

    def supports(self, kind: str) -> bool:
        ...

    def draw(self, container: Any, data: ChartData, on_ready: Callable[[], Any]) -> None:
        ...


@dataclass
class ChartDataAdapter:
    """Adapts results tables for one chart kind.

    Sizing heuristics assume ``font_size`` px text.
    """

    ua_class: str = "rt-ua-cur"
    font_size: int = 13
    max_chars_limit: int = 20
    cell_height: int = 80
    min_height: int = 480
    default_width: int = 948
    top: int = 50

    def label_map(self, benchmarks: Sequence[BenchmarkResult]) -> dict:
        """Map Browserscope labels back to local benchmark names."""
        return {
            label: bench.name
            for label, bench in zip(assign_labels(benchmarks), benchmarks)
        }

    def extract_columns(self, table: ResultTable, benchmarks: Sequence[BenchmarkResult]) -> List[Column]:
        names = self.label_map(benchmarks)
        for column in table.columns:
            name = names.get(column.label)
            if name:
                column.label = name
        return table.columns

    def extract_rows(self, table: ResultTable, browser_name: str, filter_by: str) -> List[Row]:
        """Drop rows without recorded rates and mark the user's browser row."""
        user_name = to_browser_name(browser_name, filter_by)
        rows = []
        for row in table.rows:
            cells = row.present_cells
            # cells[0] is the browser name, cells[1] tells if any rate is recorded
            if len(cells) < 2 or not cells[1].f:
                continue
            first = cells[0]
            first.p.pop("className", None)
            if user_name and user_name == to_browser_name(first.f, filter_by):
                first.p["className"] = self.ua_class
            rows.append(row)
        table.rows = rows
        return rows

    def adapt(
        self,
        table: ResultTable,
        kind: str,
        benchmarks: Sequence[BenchmarkResult] = (),
        browser_name: str = "",
        filter_by: str = "all",
        width: Optional[int] = None,
    ) -> ChartData:
        """Prepare a copy of ``table`` for a chart of the given kind.

        Args:
            table: Cumulative results table
            kind: One of CHART_KINDS
            benchmarks: Local benchmarks used to restore label names
            browser_name: The user's browser name, including its version
            filter_by: Active filter category
            width: Width of the output container (px)

        Returns:
            ChartData with adjusted cells and computed geometry
        """
        kind = kind.lower()
        if kind not in CHART_KINDS:
            raise ValueError(f"Unsupported chart kind: {kind}")

        data = table.clone()
        columns = self.extract_columns(data, benchmarks)
        rows = self.extract_rows(data, browser_name, filter_by)
        width = width or self.default_width
        geometry = ChartGeometry(width=width, top=self.top, font_size=self.font_size)
        chart = ChartData(
            kind=kind, columns=columns, rows=rows, geometry=geometry, filter_by=filter_by,
        )

        for index, row in enumerate(rows):
            first = row.present_cells[0]
            if first.p.get("className"):
                chart.highlighted_row = index

        if kind == "table":
            return chart

        # The run count column has no backing data once rows are pruned
        if columns:
            columns.pop()

        for row in rows:
            self._adjust_cells(row.present_cells, chart)

        self._layout(chart, len(rows))
        return chart

    def _adjust_cells(self, cells: List, chart: ChartData) -> None:
        pie = chart.kind == "pie"
        last_index = len(cells) - 1

        for index, cell in enumerate(cells):
            # cells[1] through cells[last_index - 1] are rate cells
            rate = parse_rate(cell.f)
            if rate is not None:
                cell.v = rate
                cell.f += RATE_SUFFIX
                chart.max_rate = max(chart.max_rate, cell.v)
            # cells[0] is the browser name, cells[last_index] the run count
            elif cell.f:
                if not pie:
                    cell.f += f" ({cells[last_index].v or 1})"
                chart.max_chars = min(self.max_chars_limit, max(chart.max_chars, len(cell.f)))

            if pie:
                if index == last_index:
                    total = cells[1].v if isinstance(cells[1].v, (int, float)) else 0
                    cells[1].f = format_number(total) + " total" + RATE_SUFFIX
                elif index > 1 and isinstance(cell.v, (int, float)) and isinstance(cells[1].v, (int, float)):
                    cells[1].v += cell.v

            if cell.p.get("className"):
                cell.f = UA_TOKEN + (cell.f or "")

    def _layout(self, chart: ChartData, row_count: int) -> None:
        geometry = chart.geometry
        font_size = self.font_size
        h_title_height = 48
        v_title_width = 48

        if chart.kind == "bar":
            # min height avoids sizing issues with a single bar
            geometry.height = max(self.min_height, self.top + row_count * self.cell_height)
            # longest approximate axis text plus a 10px pad
            geometry.left = chart.max_chars * (font_size / 1.6) + 10
            # room left after the chart's left coordinate and the rate text
            geometry.area_width = 100 - ((geometry.left + 50) / geometry.width) * 100
        else:
            geometry.v_title, geometry.h_title = geometry.h_title, geometry.v_title
            geometry.height = self.min_height

            if chart.kind == "pie":
                geometry.legend = "right"
                geometry.title = PIE_TITLE
            else:
                h_title_height = 28
                # axis title, approximate axis text width and a 13px gap
                geometry.left = v_title_width + len(format_number(chart.max_rate)) * (font_size / 1.6) + 13
                cell_width = chart.max_chars * (font_size / 2) + 26
                # min width avoids clipping the key
                geometry.width = max(geometry.width, geometry.left + row_count * cell_width)

        geometry.area_height = 100 - ((h_title_height + font_size + geometry.top + 8) / geometry.height) * 100
