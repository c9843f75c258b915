"""Chart data adaptation and reporting."""

from .aggregate import load_benchmark_results, save_snapshot
from .chart_data import ChartData, ChartDataAdapter, to_browser_name
from .render_md import MarkdownRenderer, render_markdown_report

__all__ = [
    "load_benchmark_results",
    "save_snapshot",
    "ChartData",
    "ChartDataAdapter",
    "to_browser_name",
    "MarkdownRenderer",
    "render_markdown_report",
]
