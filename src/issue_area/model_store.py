"""
Persist a trained model together with the schema of the data it was trained on.

The artifact is a single joblib file. It is a pickle underneath, so only load
models from trusted locations.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import joblib

from .errors import ModelIOError
from .schema import TEXT_COLS, InputSchema
from .train import TrainedModel

logger = logging.getLogger(__name__)

ARTIFACT_FORMAT = "issue-area-model"
ARTIFACT_VERSION = 1


def save_model(model: TrainedModel, schema: InputSchema, path: Union[str, Path]) -> Path:
    """Write model + schema to path atomically (temp file, then rename)."""
    path = Path(path)
    payload = {
        "format": ARTIFACT_FORMAT,
        "version": ARTIFACT_VERSION,
        "model": model,
        "schema": schema,
    }
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(payload, tmp)
        os.replace(tmp, path)
    except Exception as e:
        tmp.unlink(missing_ok=True)
        raise ModelIOError(f"failed to save model to {path}: {e}") from e

    logger.info("Saved model → %s", path)
    return path


def load_model(
    path: Union[str, Path],
    expected_columns: Optional[Iterable[str]] = TEXT_COLS,
) -> Tuple[TrainedModel, InputSchema]:
    """
    Inverse of save_model. Raises ModelIOError on a missing or unreadable file,
    an artifact that is not an issue area model, or a schema lacking any of
    expected_columns.
    """
    path = Path(path)
    if not path.is_file():
        raise ModelIOError(f"model file not found: {path}")

    try:
        payload = joblib.load(path)
    except Exception as e:
        raise ModelIOError(f"model file {path} is corrupt or truncated: {e}") from e

    if not isinstance(payload, dict) or payload.get("format") != ARTIFACT_FORMAT:
        raise ModelIOError(f"{path} is not an issue area model artifact")
    if payload.get("version") != ARTIFACT_VERSION:
        raise ModelIOError(
            f"{path} has artifact version {payload.get('version')!r}, expected {ARTIFACT_VERSION}"
        )

    model = payload.get("model")
    schema = payload.get("schema")
    if not isinstance(model, TrainedModel) or not isinstance(schema, InputSchema):
        raise ModelIOError(f"{path} is missing its model or schema")

    if expected_columns is not None:
        schema.require(expected_columns)

    logger.info("Loaded model ← %s (%d labels)", path, len(model.labels))
    return model, schema
