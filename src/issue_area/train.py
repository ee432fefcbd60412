"""
Fit the issue area classifier.

The feature pipeline is extended with a multinomial logistic regression
(maximum entropy) classifier over Features and a key -> value decoding step,
then fitted in one blocking call. The lbfgs solver plus a fixed random_state
makes the fit reproducible: same data, same pipeline, same seed, same model.
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import LabelEncoder

from .config import DEFAULT_SEED, TrainerSettings
from .errors import TrainingError
from .features import FeaturePipeline, Stage
from .schema import (
    AREA_COL,
    FEATURES_COL,
    LABEL_COL,
    PREDICTED_LABEL_COL,
    SCORE_COL,
    TEXT_COLS,
)

logger = logging.getLogger(__name__)

CLASSIFIER_STAGES = (
    Stage("maximum_entropy", (LABEL_COL, FEATURES_COL), SCORE_COL),
    Stage("map_key_to_value", (PREDICTED_LABEL_COL,), PREDICTED_LABEL_COL),
)


class TrainedModel:
    """
    Fitted label encoder + featurizer + classifier.

    Read-only after construction; every method is safe to call repeatedly.
    """

    def __init__(self, label_encoder: LabelEncoder, estimator: Pipeline, stages: Tuple[Stage, ...]):
        self.label_encoder = label_encoder
        self.estimator = estimator
        self.stages = stages

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(str(c) for c in self.label_encoder.classes_)

    def encode(self, areas: Iterable[str]) -> np.ndarray:
        return self.label_encoder.transform(list(areas))

    def decode(self, keys: Iterable[int]) -> np.ndarray:
        return self.label_encoder.inverse_transform(np.asarray(list(keys), dtype=int))

    def predict_keys(self, frame: pd.DataFrame) -> np.ndarray:
        return self.estimator.predict(frame[list(TEXT_COLS)])

    def predict_proba(self, frame: pd.DataFrame) -> np.ndarray:
        """Class probabilities, columns in label key order (see `labels`)."""
        return self.estimator.predict_proba(frame[list(TEXT_COLS)])

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        return self.decode(self.predict_keys(frame))

    def transform(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of frame with PredictedLabel and Score columns appended."""
        out = frame.copy()
        out[PREDICTED_LABEL_COL] = self.predict(frame)
        out[SCORE_COL] = list(self.predict_proba(frame))
        return out

    def __repr__(self) -> str:
        return f"TrainedModel(labels={list(self.labels)})"


def _check_dataset(dataset: pd.DataFrame) -> None:
    if dataset is None or len(dataset) == 0:
        raise TrainingError("training dataset is empty")
    missing = {AREA_COL, *TEXT_COLS} - set(dataset.columns)
    if missing:
        raise TrainingError(f"training dataset missing columns: {sorted(missing)}")
    n_labels = dataset[AREA_COL].nunique()
    if n_labels < 2:
        raise TrainingError(f"training dataset needs at least 2 distinct {AREA_COL} values, found {n_labels}")


def build_training_estimator(
    feature_pipeline: FeaturePipeline,
    seed: int = DEFAULT_SEED,
    settings: Optional[TrainerSettings] = None,
    cache_location: Optional[Path] = None,
) -> Pipeline:
    s = settings or TrainerSettings()
    classifier = LogisticRegression(
        C=s.C,
        solver="lbfgs",
        max_iter=s.max_iter,
        tol=s.tol,
        random_state=seed,
    )
    steps: List[Tuple[str, object]] = [
        ("featurize", feature_pipeline.make_featurizer()),
        ("classifier", classifier),
    ]
    return Pipeline(steps, memory=feature_pipeline.make_memory(cache_location))


def train(
    dataset: pd.DataFrame,
    feature_pipeline: FeaturePipeline,
    seed: int = DEFAULT_SEED,
    settings: Optional[TrainerSettings] = None,
) -> TrainedModel:
    """Fit the full pipeline on dataset. Raises TrainingError on degenerate data or non-convergence."""
    _check_dataset(dataset)
    training_pipeline = feature_pipeline.append(*CLASSIFIER_STAGES)

    encoder = feature_pipeline.make_label_encoder()
    y = encoder.fit_transform(dataset[AREA_COL].astype(str))

    logger.info("Training on %d rows, %d labels (seed=%d, cached=%s)",
                len(dataset), len(encoder.classes_), seed, feature_pipeline.cached)
    with feature_pipeline.cache_location() as location, warnings.catch_warnings():
        estimator = build_training_estimator(feature_pipeline, seed=seed, settings=settings,
                                             cache_location=location)
        warnings.simplefilter("error", category=ConvergenceWarning)
        try:
            estimator.fit(dataset[list(TEXT_COLS)], y)
        except ConvergenceWarning as e:
            raise TrainingError(f"classifier did not converge: {e}") from e
        except ValueError as e:
            raise TrainingError(f"training failed: {e}") from e
        # the cache location belongs to this fit, not to the persisted model
        estimator.set_params(memory=None)

    model = TrainedModel(encoder, estimator, training_pipeline.stages)
    logger.info("Training done: %s", model)
    return model
