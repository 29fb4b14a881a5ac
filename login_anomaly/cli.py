"""
Command-line entry point.

Usage:
    login-anomaly train <training.csv>
    login-anomaly predict <data.csv> <model-version>

Examples:
    login-anomaly train data/TrainingData.csv
    login-anomaly predict data/PredictionData.csv 3
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_config
from .data.loader import load_records
from .exceptions import LoginAnomalyError
from .pipeline import LoginAnomalyDetector
from .reporting import LoggingReportSink
from .utils.logging import ROOT_LOGGER, setup_logger
from .utils.reproducibility import get_environment_info, set_all_seeds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="login-anomaly",
        description="Detect unusual login activity (user, workstation, time of day)",
    )
    parser.add_argument("--config", type=Path, help="JSON settings file")
    parser.add_argument("--model-dir", type=Path, help="Directory of model artifacts")
    parser.add_argument("--model-prefix", type=str, help="Model file name prefix")
    parser.add_argument("--log-file", type=Path, help="Also write the report and diagnostics to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug diagnostics")

    commands = parser.add_subparsers(dest="command", required=True)

    train = commands.add_parser("train", help="Train and save a new model version")
    train.add_argument("data", type=Path, help="Training CSV (User,Computer,Time,Date)")

    predict = commands.add_parser("predict", help="Report anomalies with a saved model")
    predict.add_argument("data", type=Path, help="Prediction CSV (User,Computer,Time,Date)")
    predict.add_argument("version", type=int, help="Model version to use")
    predict.add_argument(
        "--ownership-baseline",
        type=Path,
        help="CSV that defines monthly computer owners (default: the prediction data)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    sink = LoggingReportSink()

    try:
        config = load_config(args.config)
        if args.model_dir is not None:
            config.store.model_dir = args.model_dir
        if args.model_prefix is not None:
            config.store.model_prefix = args.model_prefix
        if args.log_file is not None:
            config.log_file = args.log_file
        if args.verbose:
            config.log_level = "DEBUG"

        logger = setup_logger(ROOT_LOGGER, level=config.log_level, log_file=config.log_file)
        sink = LoggingReportSink(log_file=config.log_file)
        logger.debug(f"Environment: {get_environment_info()}")
        logger.debug(f"Configuration: {config.to_dict()}")
        set_all_seeds(config.seed)

        detector = LoginAnomalyDetector(config, sink=sink)
        records = load_records(args.data)

        if args.command == "train":
            detector.train(records)
        else:
            baseline = None
            if args.ownership_baseline is not None:
                baseline = load_records(args.ownership_baseline)
            detector.report(records, args.version, ownership_baseline=baseline)
    except LoginAnomalyError as e:
        sink.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
