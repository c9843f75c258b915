"""Test browser-name normalization per filter category."""

import pytest

from benchscope.report.chart_data import to_browser_name

VERSIONS = ["1", "1.0", "1.2", "1.2.0", "1.2.3"]

EXPECTED = {
    "all": ["1", "1", "1.2", "1.2", "1.2.3"],
    "family": [None] * 5,
    "minor": ["1", "1", "1.2", "1", "1.2"],
    "popular": ["1", "1", "1.2", "1", "1.2"],
    "desktop": ["1", "1", "1.2", "1", "1"],
    "major": ["1", "1", "1.2", "1", "1"],
    "mobile": ["1", "1", "1.2", "1", "1"],
    "prerelease": ["1", "1", "1.2", "1", "1"],
}

CASES = [
    (filter_by, version, expected)
    for filter_by, outputs in EXPECTED.items()
    for version, expected in zip(VERSIONS, outputs)
]


@pytest.mark.parametrize("filter_by,version,expected", CASES)
def test_version_granularity(filter_by, version, expected):
    name = to_browser_name(f"Browser {version}", filter_by)

    assert name == ("Browser" if expected is None else f"Browser {expected}")


def test_major_drops_minor_and_patch():
    assert to_browser_name("Opera 5.1.2", "major") == "Opera 5"


def test_all_is_idempotent():
    names = ["Chrome 45.0.2454.85", "Firefox 40.0", "IE 11", "Safari 8.0.6", "Chrome 1.0.0"]

    for name in names:
        once = to_browser_name(name, "all")
        assert to_browser_name(once, "all") == once


def test_all_keeps_trailing_zeros_of_whole_numbers():
    assert to_browser_name("IE 10", "all") == "IE 10"
    assert to_browser_name("IE 10.0", "all") == "IE 10"


def test_missing_name():
    assert to_browser_name(None, "all") == ""
