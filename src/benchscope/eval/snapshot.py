"""Reduce local benchmark results to a results snapshot.

A snapshot maps a Browserscope-safe label to an integer rate (ops/sec).
Benchmarks whose confidence intervals overlap are reported with identical
values so repeated runs produce stable, comparably ranked results instead of
near-duplicate noise.
"""

import logging
import math
import re
from typing import Dict, List, Optional, Sequence

from benchscope.eval.statistics import ComparisonOutcome
from benchscope.results.base import BenchmarkResult

logger = logging.getLogger(__name__)

Snapshot = Dict[str, int]

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+", re.IGNORECASE)


def to_label(text: Optional[str]) -> str:
    """Replace runs of non-alphanumeric characters with a single space.

    Browserscope labels may only contain alphanumerics and spaces.
    https://code.google.com/p/browserscope/issues/detail?id=271
    """
    return _NON_ALPHANUMERIC.sub(" ", text or "").strip()


def assign_labels(benchmarks: Sequence[BenchmarkResult]) -> List[str]:
    """Compute one unique label per benchmark, in input order.

    Empty or already used labels get the benchmark id appended.
    """
    used = set()
    labels = []
    for bench in benchmarks:
        label = to_label(bench.name)
        if not label or label in used:
            label = f"{label}{bench.id}"
            while label in used:
                label = f"{label}{bench.id}"
        used.add(label)
        labels.append(label)
    return labels


def _merge(destination: BenchmarkResult, source: BenchmarkResult) -> None:
    destination.count = source.count
    destination.cycles = source.cycles
    destination.hz = source.hz
    destination.stats = source.stats.copy()


def _contains(benchmarks: Sequence[BenchmarkResult], bench: BenchmarkResult) -> bool:
    return any(item is bench for item in benchmarks)


def _extremes(benchmarks: List[BenchmarkResult], fastest: bool) -> List[BenchmarkResult]:
    """Benchmarks indistinguishable from the fastest (or slowest) one."""
    ranked = sorted(
        benchmarks,
        key=lambda bench: bench.stats.pessimistic_period,
        reverse=not fastest,
    )
    if not ranked:
        return []
    leader = ranked[0]
    return [bench for bench in ranked if leader.compare(bench) == ComparisonOutcome.INDISTINGUISHABLE]


def create_snapshot(benchmarks: Sequence[BenchmarkResult]) -> Optional[Snapshot]:
    """Create a results snapshot from local benchmark results.

    Errored, unrun, aborted and infinite-rate benchmarks are excluded. The
    inputs are cloned and never modified.

    Args:
        benchmarks: Local benchmark results

    Returns:
        Label to rate mapping, or None when no benchmark succeeded
    """
    benches = [bench.clone() for bench in benchmarks if bench.successful]
    if not benches:
        return None

    fastest = _extremes(benches, fastest=True)
    slowest = _extremes(benches, fastest=False)
    neither = [
        bench for bench in benches
        if not _contains(fastest, bench) and not _contains(slowest, bench)
    ]

    # Normalize ties on one representative per category
    for bench in fastest + slowest:
        _merge(bench, fastest[-1] if _contains(fastest, bench) else slowest[0])

    # Slowest to fastest (a larger pessimistic period is slower)
    neither.sort(key=lambda bench: bench.stats.pessimistic_period, reverse=True)

    # Adjacent indistinguishable benchmarks take the slower neighbour's values
    for previous, current in zip(neither, neither[1:]):
        if previous.compare(current) == ComparisonOutcome.INDISTINGUISHABLE:
            _merge(current, previous)

    # The upper limit of the confidence interval gives a lower rate so high
    # margins of error never inflate recorded results
    snapshot: Snapshot = {}
    for label, bench in zip(assign_labels(benches), benches):
        snapshot[label] = math.floor(1 / bench.stats.pessimistic_period)

    logger.debug(f"Snapshot of {len(snapshot)} benchmarks: {snapshot}")
    return snapshot
