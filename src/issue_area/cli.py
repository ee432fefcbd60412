#!/usr/bin/env python3
"""
End-to-end run of the GitHub issue area classifier.

- Loads the training TSV and builds the feature pipeline
- Trains the model and predicts one sample issue with it
- Evaluates on the test TSV and prints the metrics block
- Saves the model with the training schema, reloads it, and predicts another issue

Example:
    issue-area \
        --train data/issues_train.tsv \
        --test data/issues_test.tsv \
        --model models/model.joblib
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .config import (
    DEFAULT_MODEL_PATH,
    DEFAULT_SEED,
    DEFAULT_TEST_PATH,
    DEFAULT_TRAIN_PATH,
    Paths,
    Settings,
)
from .errors import IssueAreaError
from .evaluate import Metrics, evaluate, print_metrics
from .features import FeaturePipeline, build_feature_pipeline
from .load_data import load_dataset
from .model_store import load_model, save_model
from .predict import Predictor
from .schema import InputSchema, IssueRecord, PredictionResult
from .train import TrainedModel, train

SMOKE_TEST_ISSUE = IssueRecord(
    title="WebSockets communication is slow in my machine",
    description="The WebSockets communication used under the covers by SignalR "
                "looks like is going slow in my development machine..",
)
RELOADED_ISSUE = IssueRecord(
    title="Entity Framework crashes",
    description="When connecting to the database, EF is crashing",
)


# -----------------------
# Logging configuration
# -----------------------
def setup_logging(level: int = logging.INFO) -> None:
    fmt = "%(asctime)s | %(levelname)-8s | %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt)


# -----------------------
# Session
# -----------------------
@dataclass
class Session:
    """Everything the run owns: settings, the trained model and its predictor."""
    settings: Settings
    model: Optional[TrainedModel] = None
    schema: Optional[InputSchema] = None
    predictor: Optional[Predictor] = None

    def publish(self, model: TrainedModel, schema: InputSchema) -> None:
        self.model, self.schema, self.predictor = model, schema, Predictor(model)


# -----------------------
# Stages
# -----------------------
def process_data(session: Session) -> FeaturePipeline:
    s = session.settings
    return build_feature_pipeline(cache=s.cache, cache_dir=s.cache_dir, settings=s.featurizer)


def build_and_train_model(session: Session, training: pd.DataFrame, pipeline: FeaturePipeline) -> PredictionResult:
    """Train, publish the model on the session, and predict the sample issue with it."""
    s = session.settings
    model = train(training, pipeline, seed=s.seed, settings=s.trainer)
    session.publish(model, InputSchema.from_frame(training))

    prediction = session.predictor.predict(SMOKE_TEST_ISSUE)
    print(f"=============== Single Prediction just-trained-model - Result: {prediction.area} ===============")
    return prediction


def evaluate_and_save(session: Session) -> Metrics:
    paths = session.settings.paths
    test = load_dataset(paths.test)
    metrics = evaluate(session.model, test)
    print_metrics(metrics)
    save_model(session.model, session.schema, paths.model)
    return metrics


def predict_issue(session: Session, issue: IssueRecord = RELOADED_ISSUE) -> PredictionResult:
    loaded, schema = load_model(session.settings.paths.model)
    session.publish(loaded, schema)
    prediction = session.predictor.predict(issue)
    print(f"=============== Single Prediction - Result: {prediction.area} ===============")
    return prediction


def run(session: Session) -> Metrics:
    training = load_dataset(session.settings.paths.train)
    pipeline = process_data(session)
    build_and_train_model(session, training, pipeline)
    metrics = evaluate_and_save(session)
    predict_issue(session)
    return metrics


# -----------------------
# CLI / Main
# -----------------------
def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Train and evaluate the GitHub issue area classifier.")
    p.add_argument("--train", type=Path, default=DEFAULT_TRAIN_PATH, help="Training TSV path.")
    p.add_argument("--test", type=Path, default=DEFAULT_TEST_PATH, help="Test TSV path.")
    p.add_argument("--model", type=Path, default=DEFAULT_MODEL_PATH, help="Output model path.")
    p.add_argument("--cache-dir", type=Path, default=None,
                   help="Persistent featurizer cache directory (default: temporary, removed after training).")
    p.add_argument("--no-cache", action="store_true",
                   help="Disable the featurizer cache (use for datasets that do not fit in memory).")
    p.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(list(argv) if argv is not None else None)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    settings = Settings(
        paths=Paths(train=args.train, test=args.test, model=args.model),
        cache=not args.no_cache,
        cache_dir=args.cache_dir,
        seed=args.seed,
    )
    try:
        run(Session(settings))
    except IssueAreaError as e:
        logging.error("%s: %s", type(e).__name__, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
