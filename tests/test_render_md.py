"""Test Markdown report rendering."""

from benchscope.report.chart_data import UA_TOKEN, ChartDataAdapter
from benchscope.report.render_md import MarkdownRenderer, render_markdown_report
from benchscope.results.base import parse_data_table
from benchscope.sync.probe import StatusContainer

from conftest import RAW_TABLE


def _chart_data(kind="bar"):
    table = parse_data_table(RAW_TABLE)
    return ChartDataAdapter().adapt(table, kind, browser_name="Chrome 45.0.2454.85", filter_by="major")


def test_report_highlights_user_browser():
    report = render_markdown_report(_chart_data(), key="abc")

    assert "| Browser | Test A | Test B |" in report
    assert "| **Chrome 45.0 (4)** | 1,200 ops/sec | 800 ops/sec |" in report
    assert "| Firefox 40 (2) | 900 ops/sec |  |" in report
    assert UA_TOKEN not in report
    assert "**Filter:** `major`" in report
    assert "https://www.browserscope.org/user/tests/table/abc" in report


def test_pie_report_has_title():
    report = render_markdown_report(_chart_data("pie"))

    assert "## Total operations per second by browser" in report
    assert "2,000 total ops/sec" in report


def test_empty_report():
    data = _chart_data()
    data.rows = []

    report = render_markdown_report(data)

    assert "*No data available*" in report


def test_renderer_writes_file_and_marks_ready(tmp_path):
    output = tmp_path / "reports" / "chart.md"
    renderer = MarkdownRenderer(output_path=output)
    container = StatusContainer()
    ready = []

    renderer.draw(container, _chart_data(), lambda: ready.append(True))

    assert ready == [True]
    assert output.read_text() == container.content == renderer.reports[0]
    assert renderer.supports("bar")
    assert not renderer.supports("radar")
