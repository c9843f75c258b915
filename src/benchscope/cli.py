"""CLI for benchscope."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from benchscope.results.base import FILTER_MAP
from benchscope.report.chart_data import CHART_KINDS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _load_config(args, **overrides):
    from benchscope.config import load_config
    return load_config(args.config, key=args.key, **overrides)


async def _run_session(args, config, benchmarks, action: str) -> int:
    """Run the state machine until a chart or a final message is shown."""
    from benchscope.clients.browserscope_client import (
        HttpBeaconTransport,
        HttpResultsTransport,
        create_http_client,
    )
    from benchscope.report.render_md import MarkdownRenderer
    from benchscope.sync.actions import ActionStateMachine
    from benchscope.sync.probe import RunState, StatusContainer
    from benchscope.sync.timers import AsyncioScheduler

    container = StatusContainer(width=args.width)
    renderer = MarkdownRenderer(output_path=args.output, key=config.key)
    finished = asyncio.Event()

    def on_change(changed: StatusContainer) -> None:
        # an empty result is final, errors are retried
        if changed.ready or changed.message == config.texts.empty:
            finished.set()

    container.subscribe(on_change)

    async with create_http_client(config.base_url) as client:
        results_transport = HttpResultsTransport(client)
        beacons = []

        def beacon_factory(name: str) -> HttpBeaconTransport:
            beacon = HttpBeaconTransport(client, name)
            beacons.append(beacon)
            return beacon

        machine = ActionStateMachine(
            config,
            results_transport=results_transport,
            beacon_factory=beacon_factory,
            renderer=renderer,
            container=container,
            scheduler=AsyncioScheduler(),
            probe=RunState(),
            benchmarks=benchmarks,
            browser_name=args.browser,
        )

        if action == "post":
            machine.post()
        else:
            machine.load()

        try:
            await asyncio.wait_for(finished.wait(), timeout=args.wait)
        except asyncio.TimeoutError:
            logger.error(f"Gave up after {args.wait}s: {container.message or 'no response'}")
            return 1
        finally:
            results_transport.close()
            for beacon in beacons:
                beacon.close()

    if machine.snapshot:
        print(f"✓ Posted {len(machine.snapshot)} results")
    print(container.content if container.content is not None else container.message)
    return 0


def cmd_snapshot(args):
    """Reduce local benchmark results to a snapshot."""
    from benchscope.eval.snapshot import create_snapshot
    from benchscope.report.aggregate import load_benchmark_results, save_snapshot, snapshot_frame

    benchmarks = load_benchmark_results(args.results)
    snapshot = create_snapshot(benchmarks)

    if not snapshot:
        print("No successful benchmarks to report")
        return 1

    print(snapshot_frame(snapshot).to_string(index=False))

    if args.output:
        files = save_snapshot(snapshot, args.output)
        print(f"✓ Snapshot saved")
        print(f"  - CSV: {files['csv']}")
        print(f"  - JSONL: {files['jsonl']}")
    return 0


def cmd_chart(args):
    """Load and render cumulative results."""
    from benchscope.report.aggregate import load_benchmark_results

    config = _load_config(args, chart=args.chart, filter_by=args.filter)
    benchmarks = load_benchmark_results(args.results) if args.results else []
    return asyncio.run(_run_session(args, config, benchmarks, "load"))


def cmd_post(args):
    """Post a snapshot of local results, then render the refreshed results."""
    from benchscope.report.aggregate import load_benchmark_results

    config = _load_config(args, chart=args.chart, filter_by=args.filter)
    benchmarks = load_benchmark_results(args.results)
    return asyncio.run(_run_session(args, config, benchmarks, "post"))


def _add_session_arguments(parser):
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--key", default=None, help="Browserscope test key")
    parser.add_argument("--filter", choices=list(FILTER_MAP), default=None, help="Browser filter category")
    parser.add_argument("--chart", choices=list(CHART_KINDS), default=None, help="Chart kind")
    parser.add_argument("--browser", default="", help="Your browser name and version, e.g. 'Chrome 45.0'")
    parser.add_argument("--width", type=int, default=948, help="Output width (px)")
    parser.add_argument("--output", type=Path, default=None, help="Write the Markdown report here")
    parser.add_argument("--wait", type=float, default=60.0, help="Give up after this many seconds")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="benchscope: cumulative cross-browser benchmark results"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # snapshot
    parser_snap = subparsers.add_parser("snapshot", help="Reduce local results to a snapshot")
    parser_snap.add_argument("--results", type=Path, required=True, help="Local results (.json, .jsonl, .csv)")
    parser_snap.add_argument("--output", type=Path, default=None, help="Directory for snapshot.csv/.jsonl")
    parser_snap.set_defaults(func=cmd_snapshot)

    # chart
    parser_chart = subparsers.add_parser("chart", help="Render cumulative results")
    parser_chart.add_argument("--results", type=Path, default=None, help="Local results used for labels")
    _add_session_arguments(parser_chart)
    parser_chart.set_defaults(func=cmd_chart)

    # post
    parser_post = subparsers.add_parser("post", help="Post local results, then render")
    parser_post.add_argument("--results", type=Path, required=True, help="Local results (.json, .jsonl, .csv)")
    _add_session_arguments(parser_post)
    parser_post.set_defaults(func=cmd_post)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
