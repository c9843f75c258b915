"""Load local benchmark results and export snapshots."""

import json
import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from benchscope.eval.statistics import BenchmarkStats
from benchscope.results.base import BenchmarkResult

logger = logging.getLogger(__name__)


def aggregate_samples(samples_df: pd.DataFrame) -> List[BenchmarkResult]:
    """Aggregate long-format timing samples into benchmark results.

    Args:
        samples_df: One row per sampled cycle with ``name`` and ``seconds``
            columns (seconds per operation); an optional ``id`` column fixes
            benchmark ids

    Returns:
        One BenchmarkResult per benchmark name, in order of first appearance
    """
    missing = {"name", "seconds"} - set(samples_df.columns)
    if missing:
        raise ValueError(f"Samples are missing columns: {', '.join(sorted(missing))}")

    results = []
    for index, (name, group) in enumerate(samples_df.groupby("name", sort=False), start=1):
        stats = BenchmarkStats.from_samples(group["seconds"].astype(float).tolist())
        bench_id = int(group["id"].iloc[0]) if "id" in group.columns else index
        results.append(BenchmarkResult(
            name=str(name),
            id=bench_id,
            count=int(group["count"].iloc[0]) if "count" in group.columns else 1,
            cycles=len(group),
            hz=1 / stats.mean if stats.mean > 0 else 0.0,
            stats=stats,
        ))
    return results


def load_benchmark_results(path: Path) -> List[BenchmarkResult]:
    """Load local benchmark results from a file.

    Supported formats:
    - ``.json``: a list of result records
    - ``.jsonl``: one result record per line
    - ``.csv``: long-format samples (see ``aggregate_samples``)

    A result record carries ``name`` and ``id`` plus either ``stats`` or a
    raw ``sample`` list.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Results file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        results = aggregate_samples(pd.read_csv(path))
    elif suffix == ".jsonl":
        records = []
        with open(path) as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError as e:
                    raise ValueError(f"{path}:{line_number}: invalid JSON: {e}") from e
        results = [BenchmarkResult.from_dict(record) for record in records]
    elif suffix == ".json":
        with open(path) as f:
            records = json.load(f)
        if isinstance(records, dict):
            records = records.get("benchmarks", [])
        results = [BenchmarkResult.from_dict(record) for record in records]
    else:
        raise ValueError(f"Unsupported results format: {path.suffix}")

    logger.info(f"Loaded {len(results)} benchmark results from {path}")
    return results


def snapshot_frame(snapshot: Dict[str, int]) -> pd.DataFrame:
    """Snapshot as a DataFrame sorted by rate, fastest first."""
    frame = pd.DataFrame(
        [{"label": label, "ops_per_sec": rate} for label, rate in snapshot.items()],
        columns=["label", "ops_per_sec"],
    )
    return frame.sort_values("ops_per_sec", ascending=False, kind="stable").reset_index(drop=True)


def save_snapshot(snapshot: Dict[str, int], output_dir: Path) -> Dict[str, Path]:
    """Save a snapshot to CSV and JSONL."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    frame = snapshot_frame(snapshot)

    csv_file = output_dir / "snapshot.csv"
    frame.to_csv(csv_file, index=False)

    # JSON lines for easier processing
    jsonl_file = output_dir / "snapshot.jsonl"
    with open(jsonl_file, "w") as f:
        for _, row in frame.iterrows():
            f.write(row.to_json() + "\n")

    logger.info(f"Snapshot saved to {output_dir}")
    return {"csv": csv_file, "jsonl": jsonl_file}
