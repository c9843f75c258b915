"""Timing statistics and confidence-interval comparison for benchmark results.

A benchmark reports seconds per operation for every sampled cycle. From those
samples we derive the mean, the standard error and a margin of error at 95%
confidence. Two results are compared either with a Mann-Whitney U test (when
both carry enough samples) or by checking whether their confidence intervals
overlap.
"""

import math
import warnings
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Sequence

import numpy as np
from scipy import stats


# Smallest sample size (per side) for which the rank test is used
MIN_RANK_TEST_SAMPLES = 5
SIGNIFICANCE_LEVEL = 0.05


class ComparisonOutcome(IntEnum):
    """Result of comparing two benchmarks' timing distributions."""

    SLOWER = -1
    INDISTINGUISHABLE = 0
    FASTER = 1


@dataclass
class BenchmarkStats:
    """Statistics record of a single benchmark run.

    All times are in seconds per operation.
    """

    mean: float = 0.0
    moe: float = 0.0
    rme: float = 0.0
    sem: float = 0.0
    deviation: float = 0.0
    variance: float = 0.0
    sample: List[float] = field(default_factory=list)

    @property
    def pessimistic_period(self) -> float:
        """Upper limit of the confidence interval (mean + margin of error)."""
        return self.mean + self.moe

    @property
    def ci_lower(self) -> float:
        return self.mean - self.moe

    @property
    def ci_upper(self) -> float:
        return self.mean + self.moe

    def copy(self) -> "BenchmarkStats":
        """Copy the record, including its own sample list."""
        return replace(self, sample=list(self.sample))

    @classmethod
    def from_samples(
        cls,
        sample: Sequence[float],
        confidence_level: float = 0.95,
    ) -> "BenchmarkStats":
        """Compute a statistics record from per-cycle timings.

        Args:
            sample: Seconds per operation for each sampled cycle
            confidence_level: Confidence level of the margin of error

        Returns:
            BenchmarkStats; an empty sample yields an all-zero record
        """
        data = np.asarray(list(sample), dtype=float)
        data = data[~np.isnan(data)]

        if len(data) == 0:
            return cls()

        size = len(data)
        mean = float(np.mean(data))
        variance = float(np.var(data, ddof=1)) if size > 1 else 0.0
        deviation = math.sqrt(variance)
        sem = deviation / math.sqrt(size)

        # Student-t critical value; a single observation is treated as df=1
        degrees_of_freedom = max(size - 1, 1)
        critical = float(stats.t.ppf(1 - (1 - confidence_level) / 2, degrees_of_freedom))
        moe = sem * critical
        rme = (moe / mean) * 100 if mean else 0.0

        return cls(
            mean=mean,
            moe=moe,
            rme=rme,
            sem=sem,
            deviation=deviation,
            variance=variance,
            sample=data.tolist(),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "BenchmarkStats":
        """Create a record from a mapping; a bare ``sample`` is summarized."""
        if "mean" not in data and data.get("sample"):
            return cls.from_samples(data["sample"])
        return cls(
            mean=float(data.get("mean", 0.0)),
            moe=float(data.get("moe", 0.0)),
            rme=float(data.get("rme", 0.0)),
            sem=float(data.get("sem", 0.0)),
            deviation=float(data.get("deviation", 0.0)),
            variance=float(data.get("variance", 0.0)),
            sample=[float(x) for x in data.get("sample", [])],
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "mean": self.mean,
            "moe": self.moe,
            "rme": self.rme,
            "sem": self.sem,
            "deviation": self.deviation,
            "variance": self.variance,
            "sample": list(self.sample),
        }


def _intervals_overlap(a: BenchmarkStats, b: BenchmarkStats) -> bool:
    return a.ci_lower <= b.ci_upper and b.ci_lower <= a.ci_upper


def compare_stats(a: BenchmarkStats, b: BenchmarkStats) -> ComparisonOutcome:
    """Compare two statistics records.

    Uses a two-sided Mann-Whitney U test when both samples have at least
    ``MIN_RANK_TEST_SAMPLES`` observations, and confidence-interval overlap
    otherwise.

    Returns:
        FASTER if ``a`` is faster than ``b``, SLOWER if it is slower, and
        INDISTINGUISHABLE when no significant difference can be claimed
    """
    if a is b:
        return ComparisonOutcome.INDISTINGUISHABLE

    if len(a.sample) >= MIN_RANK_TEST_SAMPLES and len(b.sample) >= MIN_RANK_TEST_SAMPLES:
        sample_a = np.asarray(a.sample, dtype=float)
        sample_b = np.asarray(b.sample, dtype=float)
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                result = stats.mannwhitneyu(sample_a, sample_b, alternative="two-sided")
        except ValueError:
            # Identical samples
            return ComparisonOutcome.INDISTINGUISHABLE

        p_value = float(result.pvalue)
        if not np.isfinite(p_value) or p_value >= SIGNIFICANCE_LEVEL:
            return ComparisonOutcome.INDISTINGUISHABLE
        if np.mean(sample_a) < np.mean(sample_b):
            return ComparisonOutcome.FASTER
        return ComparisonOutcome.SLOWER

    if _intervals_overlap(a, b):
        return ComparisonOutcome.INDISTINGUISHABLE
    return ComparisonOutcome.FASTER if a.mean < b.mean else ComparisonOutcome.SLOWER
