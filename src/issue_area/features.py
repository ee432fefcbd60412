"""
Feature pipeline for GitHub issues.

The untrained pipeline is a value: an ordered tuple of stage descriptors plus
the settings needed to instantiate them. Appending returns a new pipeline and
the scikit-learn objects are created fresh every time the pipeline is
consumed, so two trainings never share fitted state.

Stages, in order:
  1. map_value_to_key      Area -> Label (integer key, vocabulary fixed on fit)
  2. featurize_text        Title -> TitleFeaturized
  3. featurize_text        Description -> DescriptionFeaturized
  4. concatenate           TitleFeaturized + DescriptionFeaturized -> Features
  5. cache_checkpoint      optional; caches the fitted featurizer through joblib

The checkpoint is a joblib disk cache. By default it lives in a temporary
directory that exists only for the duration of one fit and is removed
afterwards; an explicit cache_dir is kept between runs and is never pruned.
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

from joblib import Memory
from sklearn.compose import ColumnTransformer
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.pipeline import FeatureUnion
from sklearn.preprocessing import LabelEncoder

from .config import FeaturizerSettings
from .schema import (
    AREA_COL,
    DESCRIPTION_COL,
    DESCRIPTION_FEATURES_COL,
    FEATURES_COL,
    LABEL_COL,
    TITLE_COL,
    TITLE_FEATURES_COL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    kind: str
    inputs: Tuple[str, ...]
    output: Optional[str] = None

    def __str__(self) -> str:
        target = f" -> {self.output}" if self.output else ""
        return f"{self.kind}({', '.join(self.inputs)}){target}"


@dataclass(frozen=True)
class FeaturePipeline:
    stages: Tuple[Stage, ...]
    featurizer: FeaturizerSettings
    cache: bool = False
    cache_dir: Optional[Path] = None

    @property
    def cached(self) -> bool:
        return self.cache

    def append(self, *stages: Stage) -> "FeaturePipeline":
        return FeaturePipeline(self.stages + tuple(stages), self.featurizer, self.cache, self.cache_dir)

    def describe(self) -> str:
        return " | ".join(str(s) for s in self.stages)

    # ----------------------------------------------------------------------------------
    # scikit-learn factories
    # ----------------------------------------------------------------------------------

    def make_label_encoder(self) -> LabelEncoder:
        return LabelEncoder()

    def make_text_featurizer(self) -> FeatureUnion:
        """Word n-gram TF-IDF, optionally unioned with character n-gram TF-IDF."""
        s = self.featurizer
        parts = [
            (
                "words",
                TfidfVectorizer(
                    ngram_range=s.ngram_range,
                    min_df=s.min_df,
                    max_features=s.max_features,
                    sublinear_tf=s.sublinear_tf,
                    lowercase=s.lowercase,
                ),
            )
        ]
        if s.char_ngram_range is not None:
            parts.append(
                (
                    "chars",
                    TfidfVectorizer(
                        analyzer="char_wb",
                        ngram_range=s.char_ngram_range,
                        min_df=s.min_df,
                        max_features=s.max_features,
                        sublinear_tf=s.sublinear_tf,
                        lowercase=s.lowercase,
                    ),
                )
            )
        return FeatureUnion(parts)

    def make_featurizer(self) -> ColumnTransformer:
        # ColumnTransformer hstacks its outputs, which is the concatenate stage
        return ColumnTransformer(
            transformers=[
                (TITLE_FEATURES_COL, self.make_text_featurizer(), TITLE_COL),
                (DESCRIPTION_FEATURES_COL, self.make_text_featurizer(), DESCRIPTION_COL),
            ],
            remainder="drop",
            sparse_threshold=1.0,
        )

    @contextmanager
    def cache_location(self) -> Iterator[Optional[Path]]:
        """Yield where the checkpoint lives for one fit; temporary locations are removed on exit."""
        if not self.cache:
            yield None
        elif self.cache_dir is not None:
            yield self.cache_dir
        else:
            with tempfile.TemporaryDirectory(prefix="issue-area-cache-") as tmp:
                yield Path(tmp)

    def make_memory(self, location: Optional[Path]) -> Optional[Memory]:
        if not self.cache or location is None:
            return None
        return Memory(location=str(location), verbose=0)


def build_feature_pipeline(
    cache: bool = True,
    cache_dir: Optional[Path] = None,
    settings: Optional[FeaturizerSettings] = None,
) -> FeaturePipeline:
    """
    Return the issue feature pipeline. Pass cache=False for datasets too
    large to materialize; the checkpoint is only a speed-up. cache_dir keeps
    the checkpoint in a persistent directory instead of a per-fit temporary one.
    """
    stages = [
        Stage("map_value_to_key", (AREA_COL,), LABEL_COL),
        Stage("featurize_text", (TITLE_COL,), TITLE_FEATURES_COL),
        Stage("featurize_text", (DESCRIPTION_COL,), DESCRIPTION_FEATURES_COL),
        Stage("concatenate", (TITLE_FEATURES_COL, DESCRIPTION_FEATURES_COL), FEATURES_COL),
    ]
    if cache:
        stages.append(Stage("cache_checkpoint", (FEATURES_COL,)))

    pipeline = FeaturePipeline(
        stages=tuple(stages),
        featurizer=settings or FeaturizerSettings(),
        cache=cache,
        cache_dir=Path(cache_dir) if cache and cache_dir is not None else None,
    )
    logger.debug("Feature pipeline: %s", pipeline.describe())
    return pipeline
