"""Test adaptation of results tables for each chart kind."""

import copy

import pytest

from benchscope.eval.statistics import BenchmarkStats
from benchscope.report.chart_data import UA_TOKEN, ChartDataAdapter, format_number, parse_rate
from benchscope.results.base import BenchmarkResult, parse_data_table

from conftest import RAW_TABLE

USER_BROWSER = "Chrome 45.0.2454.85"


@pytest.fixture
def table():
    return parse_data_table(RAW_TABLE)


def adapt(table, kind, **kwargs):
    kwargs.setdefault("browser_name", USER_BROWSER)
    kwargs.setdefault("filter_by", "major")
    return ChartDataAdapter().adapt(table, kind, **kwargs)


def test_format_number():
    assert format_number(2000.0) == "2,000"
    assert format_number(1234567) == "1,234,567"
    assert format_number(1234.5) == "1,234.5"
    assert format_number(-1500) == "-1,500"
    assert format_number(float("inf")) == "inf"


def test_parse_rate():
    assert parse_rate("1,200") == 1200.0
    assert parse_rate("1234.5") == 1234.5
    assert parse_rate("12,345,678") == 12345678.0
    for text in [None, "", ".", "1.2.3", "1,2", ",,", "Chrome 45"]:
        assert parse_rate(text) is None


def test_table_kind_keeps_cells(table):
    data = adapt(table, "table")

    assert [column.label for column in data.columns] == ["Browser", "Test A", "Test B", "# Tests"]
    # the row without recorded rates is dropped
    assert len(data.rows) == 2
    assert data.highlighted_row == 0
    assert data.rows[0].cells[0].p["className"] == "rt-ua-cur"
    assert data.rows[0].cells[1].f == "1,200"


def test_source_table_is_not_modified(table):
    adapt(table, "bar")

    assert len(table.rows) == 3
    assert table.rows[0].cells[1].f == "1,200"


def test_bar_cells(table):
    data = adapt(table, "bar")
    chrome, firefox = (row.present_cells for row in data.rows)

    assert [column.label for column in data.columns] == ["Browser", "Test A", "Test B"]
    assert chrome[0].f == UA_TOKEN + "Chrome 45.0 (4)"
    assert chrome[1].v == 1200.0
    assert chrome[1].f == "1,200 ops/sec"
    assert chrome[2].f == "800 ops/sec"
    assert firefox[0].f == "Firefox 40 (2)"
    assert data.max_rate == 1200.0
    assert data.max_chars == 15


def test_bar_geometry(table):
    geometry = adapt(table, "bar").geometry

    assert geometry.height == 480
    assert geometry.left == pytest.approx(15 * 13 / 1.6 + 10)
    assert geometry.area_width == pytest.approx(100 - (geometry.left + 50) / 948 * 100)
    assert geometry.area_height == pytest.approx(100 - (48 + 13 + 50 + 8) / 480 * 100)
    assert geometry.h_title == "operations per second (higher is better)"


def test_bar_height_grows_with_rows(table):
    table.rows = [copy.deepcopy(table.rows[0]) for _ in range(10)]

    geometry = adapt(table, "bar").geometry

    assert geometry.height == 50 + 10 * 80


def test_column_geometry(table):
    geometry = adapt(table, "column").geometry

    assert geometry.v_title == "operations per second (higher is better)"
    assert geometry.h_title == ""
    assert geometry.height == 480
    assert geometry.left == pytest.approx(48 + len("1,200") * 13 / 1.6 + 13)
    assert geometry.width == 948
    assert geometry.area_height == pytest.approx(100 - (28 + 13 + 50 + 8) / 480 * 100)


def test_column_width_grows_with_rows(table):
    table.rows = [copy.deepcopy(table.rows[0]) for _ in range(20)]

    data = adapt(table, "column")
    cell_width = data.max_chars * 13 / 2 + 26

    assert data.geometry.width == pytest.approx(data.geometry.left + 20 * cell_width)


def test_pie_totals(table):
    data = adapt(table, "pie")
    chrome, firefox = (row.present_cells for row in data.rows)

    assert chrome[0].f == UA_TOKEN + "Chrome 45.0"
    assert chrome[1].v == 2000.0
    assert chrome[1].f == "2,000 total ops/sec"
    assert firefox[1].f == "900 total ops/sec"
    assert data.geometry.legend == "right"
    assert data.geometry.title.startswith("Total operations per second")


def test_labels_restored_from_benchmarks(table):
    benchmarks = [
        BenchmarkResult(name="Test: A", id=1, cycles=1, hz=1, stats=BenchmarkStats(mean=1)),
    ]
    table.columns[1].label = "Test A"

    data = adapt(table, "table", benchmarks=benchmarks)

    assert data.columns[1].label == "Test: A"


def test_no_highlight_for_other_browser(table):
    data = adapt(table, "bar", browser_name="Opera 12.1")

    assert data.highlighted_row is None
    assert all(UA_TOKEN not in row.cells[0].f for row in data.rows)


def test_unknown_kind(table):
    with pytest.raises(ValueError):
        adapt(table, "radar")


def test_to_frame(table):
    frame = adapt(table, "bar").to_frame()

    assert list(frame.columns) == ["Browser", "Test A", "Test B"]
    assert frame.iloc[1].tolist() == ["Firefox 40 (2)", "900 ops/sec", ""]
