"""Single-issue inference on a trained or reloaded model."""

from __future__ import annotations

from typing import Iterable, List, Union

import pandas as pd

from .errors import PredictionError
from .schema import DESCRIPTION_COL, TITLE_COL, IssueRecord, PredictionResult
from .train import TrainedModel


def _coerce_text(value: Union[str, bytes, None], field: str) -> str:
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PredictionError(f"{field} is not valid UTF-8: {e}") from e
    if not isinstance(value, str):
        raise PredictionError(f"{field} must be text, got {type(value).__name__}")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PredictionError(f"{field} cannot be encoded: {e}") from e
    return value


class Predictor:
    """
    Wraps a trained model for one-issue-at-a-time inference. The model is only
    read, so a single Predictor can serve any number of calls.
    """

    def __init__(self, model: TrainedModel):
        self.model = model

    def _frame(self, issues: Iterable[IssueRecord]) -> pd.DataFrame:
        rows = [
            {
                TITLE_COL: _coerce_text(issue.title, TITLE_COL),
                DESCRIPTION_COL: _coerce_text(issue.description, DESCRIPTION_COL),
            }
            for issue in issues
        ]
        return pd.DataFrame(rows, columns=[TITLE_COL, DESCRIPTION_COL])

    def predict_many(self, issues: Iterable[IssueRecord]) -> List[PredictionResult]:
        frame = self._frame(issues)
        if frame.empty:
            return []
        try:
            areas = self.model.predict(frame)
            proba = self.model.predict_proba(frame)
        except (ValueError, TypeError) as e:
            raise PredictionError(f"could not featurize issue: {e}") from e

        labels = self.model.labels
        return [
            PredictionResult(area=str(area), scores=tuple(float(p) for p in row), labels=labels)
            for area, row in zip(areas, proba)
        ]

    def predict(self, issue: IssueRecord) -> PredictionResult:
        return self.predict_many([issue])[0]


def predict(model: TrainedModel, issue: IssueRecord) -> PredictionResult:
    return Predictor(model).predict(issue)
