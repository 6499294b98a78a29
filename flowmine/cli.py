#!/usr/bin/env python3
"""
Command-line interface for FlowMine: analyze an event log CSV and write the results.
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from termcolor import colored

from flowmine.cli_modules.logging_setup import setup_logging
from flowmine.config import load_config_from_args
from flowmine.exceptions import FlowMineError

logger = logging.getLogger("flowmine")


def _split_labels(value: str) -> List[str]:
    return [label.strip() for label in value.split(",")]


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="FlowMine: process flow, conformance and bottleneck analysis",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    subparsers = parser.add_subparsers(dest="mode", help="Operation mode")
    subparsers.required = True

    analysis_parser = subparsers.add_parser("analyze", help="Analyze an event log CSV")
    analysis_parser.add_argument("data_path", help="CSV with case_id, activity, timestamp, resource columns")
    _add_analysis_arguments(analysis_parser)
    _add_common_arguments(analysis_parser)

    return parser.parse_args(argv)


def _add_common_arguments(parser):
    """Add common arguments for all modes"""
    output_group = parser.add_argument_group('Output')
    output_group.add_argument("--output-dir", help="Custom output directory")

    system_group = parser.add_argument_group('System')
    system_group.add_argument("--config-file", help="YAML configuration file")
    system_group.add_argument("--verbose", action="store_true", help="Show progress bars")
    system_group.add_argument("--debug", action="store_true", help="Enable debug logging")


def _add_analysis_arguments(parser):
    """Add arguments for analysis mode"""
    analysis_group = parser.add_argument_group('Analysis')
    analysis_group.add_argument("--ideal-flow", type=_split_labels,
                                help="Comma-separated reference activity flow")
    analysis_group.add_argument("--top-n", type=int,
                                help="Number of ranked bottleneck transitions")
    analysis_group.add_argument("--top-activities", type=int,
                                help="Number of activities in the frequency ranking")
    analysis_group.add_argument("--anomaly-source", choices=["none", "random"],
                                help="Source of per-resource error counts")
    analysis_group.add_argument("--anomaly-rate", type=float,
                                help="Per-event error probability for the random source")
    analysis_group.add_argument("--seed", type=int, help="Seed for the random anomaly source")


def _print_summary(result):
    from flowmine.core.reporting import print_section_header

    print_section_header("Analysis Summary")
    summary = result.summary
    print(colored(f"Events: {summary.total_events:,}  Cases: {summary.total_cases:,}  "
                  f"Activities: {summary.total_activities}  Resources: {summary.total_resources}", "cyan"))

    conformance = result.conformance
    print(colored(f"Overall conformance: {conformance.overall_conformance}% "
                  f"({conformance.conforming_cases}/{conformance.total_cases} cases)", "green"))

    for entry in result.bottlenecks.bottlenecks[:3]:
        print(colored(f"Bottleneck: {entry.transition} avg {entry.avg_duration:.2f}h "
                      f"(max {entry.max_duration:.2f}h, n={entry.occurrences})", "yellow"))

    for issue in result.issues:
        if issue.count:
            print(colored(f"{issue.category}: {issue.count} ({issue.severity})", "red"))


def run(args) -> int:
    from flowmine.core.runner import run_analysis, save_analysis
    from flowmine.data.loader import load_event_log

    if args.output_dir:
        output_dir = Path(args.output_dir)
    else:
        output_dir = Path("results") / f"run_{time.strftime('%Y%m%d_%H%M%S')}"

    setup_logging(debug=args.debug, log_dir=output_dir / "logs")
    logger.info(f"Output directory: {output_dir}")

    config = load_config_from_args(args)
    config.save(str(output_dir / "config.yaml"))

    log = load_event_log(args.data_path)
    result = run_analysis(log, config, verbose=args.verbose)
    metrics_path = save_analysis(result, output_dir)

    _print_summary(result)
    print(colored(f"Results written to {metrics_path.parent}", "cyan"))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    try:
        return run(args)
    except FlowMineError as e:
        logger.error(f"Analysis failed: {e}")
        return 1
    except FileNotFoundError as e:
        logger.error(f"Input not found: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
