"""
Record shapes shared by every stage.

- IssueRecord: one GitHub issue (title, description, optional area label)
- PredictionResult: decoded area plus per-class scores
- InputSchema: column layout of the training data, persisted with the model
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

import pandas as pd

from .errors import ModelIOError


# --------------------------------------------------------------------------------------
# Column names
# --------------------------------------------------------------------------------------

ID_COL = "ID"
AREA_COL = "Area"
TITLE_COL = "Title"
DESCRIPTION_COL = "Description"

LABEL_COL = "Label"
TITLE_FEATURES_COL = "TitleFeaturized"
DESCRIPTION_FEATURES_COL = "DescriptionFeaturized"
FEATURES_COL = "Features"
PREDICTED_LABEL_COL = "PredictedLabel"
SCORE_COL = "Score"

TEXT_COLS = (TITLE_COL, DESCRIPTION_COL)
# Positional layout of the headerless issue files.
POSITIONAL_COLS = (ID_COL, AREA_COL, TITLE_COL, DESCRIPTION_COL)


# --------------------------------------------------------------------------------------
# Records
# --------------------------------------------------------------------------------------

@dataclass(frozen=True)
class IssueRecord:
    title: str
    description: str
    area: Optional[str] = None
    id: Optional[str] = None

    def to_row(self) -> Dict[str, object]:
        return {TITLE_COL: self.title, DESCRIPTION_COL: self.description}


@dataclass(frozen=True)
class PredictionResult:
    area: str
    scores: Tuple[float, ...]
    labels: Tuple[str, ...]

    def score_for(self, label: str) -> float:
        return self.scores[self.labels.index(label)]


@dataclass(frozen=True)
class InputSchema:
    """Ordered (column, dtype) pairs of the frame a model was trained on."""
    columns: Tuple[Tuple[str, str], ...]

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "InputSchema":
        return cls(tuple((str(c), str(df[c].dtype)) for c in df.columns))

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.columns)

    def require(self, columns: Iterable[str]) -> None:
        missing = [c for c in columns if c not in self.names]
        if missing:
            raise ModelIOError(f"model schema missing required columns: {sorted(missing)}")
