#!/usr/bin/env python3
"""
Urchin Growth CLI

Usage:
    # Published urchins CSV with defaults:
    python scripts/run_urchin_growth.py

    # Local copy, fewer sampler iterations, save outputs:
    python scripts/run_urchin_growth.py \
        --input data/urchins.csv --iter 1000 --output-dir outputs/urchins
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = str(Path(__file__).resolve().parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from tidyflow.config.loader import load_config
from tidyflow.config.schema import UrchinGrowthConfig
from tidyflow.core.exceptions import PipelineException
from tidyflow.core.logger import setup_logging
from tidyflow.data.readers import CsvReader
from tidyflow.io.output_manager import OutputManager
from tidyflow.pipelines.urchin_growth import UrchinGrowthPipeline


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Urchin growth regression pipeline',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        '--config', default=None,
        help='Path to YAML config file (e.g., config/urchin_growth.yaml)',
    )
    parser.add_argument(
        '--input', default=None,
        help='Urchins CSV path or URL (overrides config)',
    )
    parser.add_argument(
        '--initial-volume', type=float, default=None,
        help='Initial volume of the prediction grid',
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Sampler seed',
    )
    parser.add_argument(
        '--chains', type=int, default=None,
        help='Number of sampler chains',
    )
    parser.add_argument(
        '--iter', type=int, default=None,
        help='Iterations per chain, warmup included',
    )
    parser.add_argument(
        '--warmup', type=int, default=None,
        help='Warmup iterations per chain',
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

    if args.input is not None:
        overrides["data.url"] = args.input
    if args.initial_volume is not None:
        overrides["prediction.initial_volume"] = args.initial_volume
    if args.seed is not None:
        overrides["bayes.seed"] = args.seed
    if args.chains is not None:
        overrides["bayes.chains"] = args.chains
    if args.iter is not None:
        overrides["bayes.iter"] = args.iter
    if args.warmup is not None:
        overrides["bayes.warmup"] = args.warmup
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
            UrchinGrowthConfig, yaml_path=args.config, cli_overrides=_build_cli_overrides(args)
        )
    except PipelineException as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    output_manager = OutputManager(config, pipeline_name="urchin_growth") if config.output.enabled else None
    setup_logging(
        log_level=config.reproducibility.log_level,
        log_file=str(output_manager.get_log_path()) if output_manager else config.reproducibility.log_file,
    )

    reader = CsvReader(config={"column_names": list(config.data.column_names)})
    try:
        raw = reader.read(config.data.url)
        result = UrchinGrowthPipeline(config, output_manager=output_manager).run(raw)
    except PipelineException as e:
        print(f"\nPipeline failed: {e}", file=sys.stderr)
        return 1

    print(f"\n{'='*60}")
    print(f"Pipeline completed: {result.run_info.status}")
    print("\nLeast squares coefficients:")
    print(result.lm_coefficients.to_string(index=False))
    print("\nMean predictions (least squares):")
    print(result.lm_predictions.to_string(index=False))
    print()
    result.bayes_fit.print_summary(digits=5)
    print("\nMean predictions (Bayesian):")
    print(result.bayes_predictions.to_string(index=False))
    if output_manager is not None:
        print(f"\nRun directory: {output_manager.run_dir}")
    print(f"{'='*60}")

    if config.output.show_figures:
        import matplotlib.pyplot as plt
        plt.show()

    return 0


if __name__ == '__main__':
    sys.exit(main())
