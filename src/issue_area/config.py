"""
Default locations and hyperparameters for the issue area classifier.

Paths are resolved relative to the project checkout (two levels above this
package when installed in src layout), mirroring the Data/ and Models/
folders the training run expects to sit next to the program.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


# --------------------------------------------------------------------------------------
# Locations
# --------------------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_TRAIN_PATH = PROJECT_ROOT / "data" / "issues_train.tsv"
DEFAULT_TEST_PATH = PROJECT_ROOT / "data" / "issues_test.tsv"
DEFAULT_MODEL_PATH = PROJECT_ROOT / "models" / "model.joblib"


# --------------------------------------------------------------------------------------
# Reproducibility
# --------------------------------------------------------------------------------------

DEFAULT_SEED = 0


# --------------------------------------------------------------------------------------
# Data classes
# --------------------------------------------------------------------------------------

@dataclass(frozen=True)
class Paths:
    train: Path = DEFAULT_TRAIN_PATH
    test: Path = DEFAULT_TEST_PATH
    model: Path = DEFAULT_MODEL_PATH


@dataclass(frozen=True)
class FeaturizerSettings:
    """TF-IDF parameters shared by the title and description featurizers."""
    ngram_range: Tuple[int, int] = (1, 2)
    # None drops the character n-gram half of each featurizer
    char_ngram_range: Optional[Tuple[int, int]] = (3, 3)
    min_df: int = 1
    max_features: Optional[int] = 50_000
    sublinear_tf: bool = True
    lowercase: bool = True


@dataclass(frozen=True)
class TrainerSettings:
    max_iter: int = 1000
    C: float = 1.0
    tol: float = 1e-4


@dataclass(frozen=True)
class Settings:
    paths: Paths = field(default_factory=Paths)
    featurizer: FeaturizerSettings = field(default_factory=FeaturizerSettings)
    trainer: TrainerSettings = field(default_factory=TrainerSettings)
    cache: bool = True
    # None keeps the cache in a temporary directory removed after each fit
    cache_dir: Optional[Path] = None
    seed: int = DEFAULT_SEED
