"""Command-line interface for running jet-hadron correlations on event inputs."""

from __future__ import annotations

import argparse
import dataclasses
import importlib.util
import logging
from pathlib import Path
from typing import Any

from .correlator import MODE_LEADING_JET_HADRON, MODES, JetHadronCorrelator
from .io import (
    load_config_json,
    load_events_json,
    load_mc_events_json,
    write_correlations_table,
    write_counters_json,
)
from .models import AnalysisConfig, CorrelationTuple, Level, MixingFailurePolicy
from .sink import MemorySink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="jet-hadron-corr",
        description="Same-event and mixed-event jet-hadron angular correlations.",
    )
    parser.add_argument(
        "--events",
        required=True,
        help="Input JSON with key 'events' (data, mcd) or 'mc_events' (mcp).",
    )
    parser.add_argument(
        "--mode",
        choices=list(MODES),
        default=MODE_LEADING_JET_HADRON,
        help="Correlate every accepted jet or the leading jet of a dijet.",
    )
    parser.add_argument("--mixed", action="store_true", help="Pair jets with partners of pooled events.")
    parser.add_argument(
        "--level",
        choices=[level.value for level in Level],
        default=Level.DATA.value,
        help="Analysis level: data, detector-level (mcd) or particle-level (mcp) simulation.",
    )
    parser.add_argument(
        "--weighted",
        action="store_true",
        help="Weight fills by the event weight and apply pT-hat outlier rejection.",
    )
    parser.add_argument("--config", default=None, help="Optional analysis configuration JSON.")
    parser.add_argument("--events-mixed", type=int, default=None, help="Override the mixing pool depth.")
    parser.add_argument(
        "--mixing-policy",
        choices=[policy.value for policy in MixingFailurePolicy],
        default=None,
        help="What a failing mixed pair does to the rest of the step.",
    )
    parser.add_argument(
        "--step-size",
        type=int,
        default=0,
        help="Events per processing step (0 processes all events in one step).",
    )
    parser.add_argument(
        "--out",
        required=True,
        help="Output table file for correlation tuples (.parquet, .csv, .pkl).",
    )
    parser.add_argument("--counters-out", default=None, help="Optional JSON file for diagnostic counters.")
    parser.add_argument(
        "--custom-script",
        default=None,
        help="Path to Python file with process(results, context) function.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint: load inputs, run the correlator, write tables, optional custom hook."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.step_size < 0:
        raise ValueError("--step-size must be >= 0.")

    config = _build_config(args)
    level = Level(args.level)
    if level is Level.MCP:
        events: list[Any] = load_mc_events_json(args.events)
    else:
        events = load_events_json(args.events)
    logger.info("Loaded %d %s events from %s", len(events), level.value, args.events)

    sink = MemorySink()
    correlator = JetHadronCorrelator(config=config, sink=sink)
    step = args.step_size or max(len(events), 1)
    results: list[CorrelationTuple] = []
    for start in range(0, len(events), step):
        chunk = events[start : start + step]
        if level is not Level.MCP:
            for event in chunk:
                correlator.process_collision(event.collision, weighted=args.weighted)
        for event in chunk:
            correlator.process_track_qc(event, weighted=args.weighted)
            correlator.process_jet_spectra(event, weighted=args.weighted)
        results.extend(
            correlator.process_events(chunk, mode=args.mode, mixed=args.mixed, weighted=args.weighted)
        )
    logger.info("Accumulated %d correlation tuples", len(results))

    write_correlations_table(args.out, results)
    if args.counters_out:
        write_counters_json(args.counters_out, sink)

    if args.custom_script:
        run_custom_script(
            script_path=args.custom_script,
            results=results,
            context={
                "events_path": args.events,
                "mode": args.mode,
                "mixed": args.mixed,
                "level": level.value,
                "weighted": args.weighted,
                "config": config,
                "sink": sink,
                "output_path": args.out,
            },
        )
    return 0


def _build_config(args: argparse.Namespace) -> AnalysisConfig:
    """Load the JSON configuration and apply the command-line overrides."""
    config = load_config_json(args.config) if args.config else AnalysisConfig()
    mixing_overrides: dict[str, Any] = {}
    if args.events_mixed is not None:
        mixing_overrides["events_mixed"] = args.events_mixed
    if args.mixing_policy is not None:
        mixing_overrides["failure_policy"] = args.mixing_policy
    if mixing_overrides:
        config = dataclasses.replace(config, mixing=dataclasses.replace(config.mixing, **mixing_overrides))
    return config


def run_custom_script(
    script_path: str, results: list[CorrelationTuple], context: dict[str, Any]
) -> None:
    """Execute user-supplied post-processing callback `process(results, context)`."""
    module = _load_module(script_path)
    process = getattr(module, "process", None)
    if process is None or not callable(process):
        raise ValueError(
            f"Custom script {script_path} must define callable process(results, context)."
        )
    process(results, context)


def _load_module(script_path: str):
    """Import a Python module from an arbitrary file path."""
    path = Path(script_path)
    spec = importlib.util.spec_from_file_location(path.stem, path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot import custom script: {script_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


if __name__ == "__main__":
    raise SystemExit(main())
