"""Render cumulative results chart data as a Markdown report."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional

from benchscope.report.chart_data import CHART_KINDS, UA_TOKEN, ChartData

logger = logging.getLogger(__name__)


def _escape(text: str) -> str:
    return text.replace(UA_TOKEN, "").replace("|", "\\|")


def render_markdown_report(data: ChartData, key: str = "") -> str:
    """Generate a Markdown report from chart data.

    Args:
        data: Adapted chart data
        key: Browserscope test key, used for the source link

    Returns:
        Markdown report as string
    """
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    frame = data.to_frame()
    geometry = data.geometry

    report_lines = [
        "# Cumulative Benchmark Results",
        "",
        f"**Generated:** {timestamp}",
        f"**Filter:** `{data.filter_by}`",
        f"**Chart:** {data.kind}",
    ]
    if key:
        report_lines.append(f"**Source:** https://www.browserscope.org/user/tests/table/{key}")
    if geometry.title:
        report_lines.extend(["", f"## {geometry.title}"])

    report_lines.append("")
    if frame.empty:
        report_lines.append("*No data available*")
        return "\n".join(report_lines)

    headers = [_escape(str(label)) or " " for label in frame.columns]
    report_lines.append("| " + " | ".join(headers) + " |")
    report_lines.append("|" + "|".join("-" * (len(header) + 2) for header in headers) + "|")

    for index, (_, row) in enumerate(frame.iterrows()):
        cells = [_escape(str(value)) for value in row.tolist()]
        if index == data.highlighted_row and cells:
            # the user's own browser
            cells[0] = f"**{cells[0]}**"
        report_lines.append("| " + " | ".join(cells) + " |")

    report_lines.append("")
    if data.kind != "table":
        axis_title = geometry.h_title or geometry.v_title
        if axis_title:
            report_lines.append(f"*{axis_title}*")
            report_lines.append("")
    report_lines.extend([
        "---",
        "",
        "*Report generated by benchscope*",
    ])

    return "\n".join(report_lines)


class MarkdownRenderer:
    """Chart renderer producing Markdown into the status container.

    When ``output_path`` is set every drawn report is also written there.
    """

    available = True

    def __init__(
        self,
        output_path: Optional[Path] = None,
        key: str = "",
    ):
        self.output_path = Path(output_path) if output_path else None
        self.key = key
        self.reports: List[str] = []

    def supports(self, kind: str) -> bool:
        return kind in CHART_KINDS

    def draw(self, container: Any, data: ChartData, on_ready: Callable[[], Any]) -> None:
        report = render_markdown_report(data, key=self.key)
        self.reports.append(report)

        if self.output_path is not None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_path, "w") as f:
                f.write(report)
            logger.info(f"Report written to {self.output_path}")

        container.show(report)
        on_ready()
