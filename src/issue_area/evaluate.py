"""
Multiclass evaluation of a trained model against a labeled test set.

Rows whose Area was never seen in training cannot be scored, so they are
rejected with EvaluationError rather than dropped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, confusion_matrix, log_loss, recall_score

from .errors import EvaluationError
from .schema import AREA_COL
from .train import TrainedModel

logger = logging.getLogger(__name__)

BANNER = "*" * 109
RULE = "*" + "-" * 108


def _trim3(value: float, leading_zero: bool = True) -> str:
    """
    Up to three decimals with trailing zeros dropped: 0.500 -> "0.5", 1.000 -> "1".
    Without leading_zero a zero integer part is omitted: 0.25 -> ".25", 0 -> "".
    """
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    if not leading_zero:
        if text == "0":
            return ""
        text = text.replace("0.", ".", 1) if text.lstrip("-").startswith("0.") else text
    return text


@dataclass(frozen=True)
class Metrics:
    micro_accuracy: float
    macro_accuracy: float
    log_loss: float
    log_loss_reduction: float
    per_class_log_loss: Dict[str, float] = field(default_factory=dict)
    confusion_matrix: pd.DataFrame = field(default_factory=pd.DataFrame, compare=False)
    n_rows: int = 0

    def format_report(self) -> str:
        lines = [
            BANNER,
            "*       Metrics for Multi-class Classification model - Test Data     ",
            RULE,
            f"*       MicroAccuracy:    {_trim3(self.micro_accuracy)}",
            f"*       MacroAccuracy:    {_trim3(self.macro_accuracy)}",
            f"*       LogLoss:          {_trim3(self.log_loss, leading_zero=False)}",
            f"*       LogLossReduction: {_trim3(self.log_loss_reduction, leading_zero=False)}",
            BANNER,
        ]
        return "\n".join(lines)


def _check_test_set(model: TrainedModel, test: pd.DataFrame) -> None:
    if AREA_COL not in test.columns:
        raise EvaluationError(f"test dataset has no {AREA_COL} column")
    if len(test) == 0:
        raise EvaluationError("test dataset is empty")
    unseen = sorted(set(test[AREA_COL].astype(str)) - set(model.labels))
    if unseen:
        raise EvaluationError(f"test dataset has labels unseen during training: {unseen}")


def evaluate(model: TrainedModel, test_dataset: pd.DataFrame) -> Metrics:
    """Score every row of test_dataset and aggregate accuracy and log-loss metrics."""
    _check_test_set(model, test_dataset)

    keys = np.arange(len(model.labels))
    y_true = model.encode(test_dataset[AREA_COL].astype(str))
    y_pred = model.predict_keys(test_dataset)
    proba = model.predict_proba(test_dataset)

    micro = float(accuracy_score(y_true, y_pred))
    # mean recall over the classes actually present in the test set
    macro = float(recall_score(y_true, y_pred, labels=np.unique(y_true), average="macro", zero_division=0))
    ll = float(log_loss(y_true, proba, labels=keys))
    prior_ll = math.log(len(keys))
    reduction = 1.0 - ll / prior_ll

    per_class = {}
    for key in np.unique(y_true):
        mask = y_true == key
        per_class[model.labels[key]] = float(log_loss(y_true[mask], proba[mask], labels=keys))

    cm = pd.DataFrame(
        confusion_matrix(y_true, y_pred, labels=keys),
        index=pd.Index(model.labels, name=AREA_COL),
        columns=pd.Index(model.labels, name="Predicted"),
    )

    metrics = Metrics(
        micro_accuracy=micro,
        macro_accuracy=macro,
        log_loss=ll,
        log_loss_reduction=reduction,
        per_class_log_loss=per_class,
        confusion_matrix=cm,
        n_rows=len(test_dataset),
    )
    logger.info("Evaluated %d rows: micro=%.3f macro=%.3f logloss=%.3f",
                metrics.n_rows, micro, macro, ll)
    return metrics


def print_metrics(metrics: Metrics) -> None:
    print(metrics.format_report())
