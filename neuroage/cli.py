"""
Command-line entry point for brain age and gender prediction.

Usage:
    neuroage-predict outputCsvFile inputT1_1 [inputT1_2 ...]

Use "None" or "none" as outputCsvFile to print the results instead of
writing a CSV file.
"""

import argparse
import sys
from typing import List, Optional

import numpy as np

from . import config
from .asset_client import AssetDownloadError
from .backend.aggregation import NO_OUTPUT_NAMES, build_results_table, write_results
from .backend.brain_age_predictor import BrainAgePredictionError, BrainAgePredictor
from .backend.preprocessing import PreprocessingError
from .backend.registration import RegistrationError
from .backend.template import prepare_template
from .backend.worker import run_batch


PIPELINE_ERRORS = (
    AssetDownloadError,
    PreprocessingError,
    RegistrationError,
    BrainAgePredictionError,
    RuntimeError,
    ValueError,
    OSError,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neuroage-predict",
        description="Predict brain age and gender from T1-weighted MRI volumes"
    )
    parser.add_argument("output_csv_file", metavar="outputCsvFile",
                        help='Output CSV file ("None" or "none" prints the table instead)')
    parser.add_argument("input_files", metavar="inputT1", nargs="+",
                        help="Input T1-weighted image(s)")
    parser.add_argument("--cache-dir", default=None,
                        help="Directory for downloaded template and weight files (default: current directory)")
    parser.add_argument("--samples-per-subject", type=int, default=config.NUMBER_OF_SAMPLES_PER_SUBJECT,
                        help=f"Augmented replicas per subject, default {config.NUMBER_OF_SAMPLES_PER_SUBJECT}")
    parser.add_argument("--affine-std", type=float, default=config.AFFINE_STD,
                        help=f"Standard deviation of the random affine jitter, default {config.AFFINE_STD}")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible augmentation")
    parser.add_argument("--include-std", action="store_true",
                        help="Add AgeStd and GenderStd columns to the output")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.samples_per_subject < 1:
        parser.error("--samples-per-subject must be at least 1")

    config.load_environment()
    verbose = config.is_verbose() and not args.quiet

    rng = np.random.default_rng(args.seed)
    if args.seed is not None:
        # The random affine augmentation draws from numpy's global generator.
        np.random.seed(args.seed)

    try:
        cache_dir = config.validate_config(args.cache_dir)
        template = prepare_template(str(cache_dir), verbose=verbose)
        predictor = BrainAgePredictor(str(cache_dir), verbose=verbose)

        results = run_batch(
            args.input_files,
            template,
            predictor,
            number_of_samples=args.samples_per_subject,
            affine_std=args.affine_std,
            rng=rng,
            verbose=verbose
        )

        table = build_results_table(results, include_std=args.include_std)
        write_results(table, args.output_csv_file)

    except PIPELINE_ERRORS as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        return 1

    if verbose and args.output_csv_file not in NO_OUTPUT_NAMES:
        print(f"✓ Results written to {args.output_csv_file}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
