"""benchscope: cumulative cross-browser benchmark results."""

__version__ = "0.1.0"
