#!/usr/bin/env python3
"""
Flight Delay CLI

Usage:
    # Packaged nycflights13 data with defaults:
    python scripts/run_flight_delays.py

    # YAML config plus overrides:
    python scripts/run_flight_delays.py \
        --config config/flight_delays.yaml \
        --seed 123 --output-dir outputs/flights
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = str(Path(__file__).resolve().parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from tidyflow.config.loader import load_config
from tidyflow.config.schema import FlightDelayConfig
from tidyflow.core.exceptions import PipelineException
from tidyflow.core.logger import setup_logging
from tidyflow.data.readers import NycFlightsReader
from tidyflow.io.output_manager import OutputManager
from tidyflow.pipelines.flight_delays import FlightDelayPipeline


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Flight delay classification pipeline',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        '--config', default=None,
        help='Path to YAML config file (e.g., config/flight_delays.yaml)',
    )
    parser.add_argument(
        '--flights', default=None,
        help='CSV export of the flights table (default: nycflights13 package)',
    )
    parser.add_argument(
        '--weather', default=None,
        help='CSV export of the weather table (default: nycflights13 package)',
    )
    parser.add_argument(
        '--prop', type=float, default=None,
        help='Fraction of rows in the training partition',
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Split seed',
    )
    parser.add_argument(
        '--threshold', type=float, default=None,
        help='Arrival delay in minutes at or above which a flight is late',
    )
    parser.add_argument(
        '--output-dir', default=None,
        help='Base directory for output files (enables output)',
    )
    parser.add_argument(
        '--log-level', default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Console log level',
    )
    parser.add_argument(
        '--show', action='store_true',
        help='Show figures interactively after the run',
    )
    return parser.parse_args(argv)


def _build_cli_overrides(args) -> dict:
    """Build a flat dot-notation override dict from CLI args."""
    overrides = {}

    if args.flights is not None and args.weather is not None:
        overrides["data.source"] = "csv"
        overrides["data.flights_path"] = args.flights
        overrides["data.weather_path"] = args.weather
    if args.prop is not None:
        overrides["splitting.prop"] = args.prop
    if args.seed is not None:
        overrides["splitting.seed"] = args.seed
    if args.threshold is not None:
        overrides["data.delay_threshold"] = args.threshold
    if args.output_dir is not None:
        overrides["output.enabled"] = True
        overrides["output.base_dir"] = args.output_dir
    if args.log_level is not None:
        overrides["reproducibility.log_level"] = args.log_level
    if args.show:
        overrides["output.show_figures"] = True

    return overrides


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(
            FlightDelayConfig, yaml_path=args.config, cli_overrides=_build_cli_overrides(args)
        )
    except PipelineException as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    output_manager = OutputManager(config, pipeline_name="flight_delays") if config.output.enabled else None
    setup_logging(
        log_level=config.reproducibility.log_level,
        log_file=str(output_manager.get_log_path()) if output_manager else config.reproducibility.log_file,
    )

    reader = NycFlightsReader(config={"timezone": config.data.timezone})
    try:
        flights, weather = reader.read_tables(config.data.flights_path, config.data.weather_path)
        result = FlightDelayPipeline(config, output_manager=output_manager).run(flights, weather)
    except PipelineException as e:
        print(f"\nPipeline failed: {e}", file=sys.stderr)
        return 1

    print(f"\n{'='*60}")
    print(f"Pipeline completed: {result.run_info.status}")
    print(f"Split: {result.split.summary()}")
    print(f"Test ROC AUC: {result.auc:.4f}")
    if result.unseen_levels:
        print(f"Levels only in test data: {result.unseen_levels}")
    if output_manager is not None:
        print(f"Run directory: {output_manager.run_dir}")
    print(f"{'='*60}")

    if config.output.show_figures:
        import matplotlib.pyplot as plt
        plt.show()

    return 0


if __name__ == '__main__':
    sys.exit(main())
