"""Benchmark statistics and snapshot reduction."""
