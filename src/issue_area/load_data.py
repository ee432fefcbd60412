"""
Load GitHub issue datasets into memory.

- Tab-separated files, quoting disabled, every column read as text
- Header row matched by column name (any order); without a header the
  columns are taken positionally as ID, Area, Title, Description
- Parquet files are accepted as well and validated the same way
- Empty fields stay empty strings; missing fields are an error

The returned DataFrame is fully materialized, so training and evaluation can
iterate it as many times as they like without touching the source file.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import List, Union

import pandas as pd

from .errors import DataFormatError
from .schema import AREA_COL, DESCRIPTION_COL, ID_COL, POSITIONAL_COLS, TEXT_COLS, TITLE_COL

logger = logging.getLogger(__name__)

PARQUET_SUFFIXES = (".parquet", ".pq")


# --------------------------------------------------------------------------------------
# Utilities
# --------------------------------------------------------------------------------------

def _required_columns(require_label: bool) -> List[str]:
    cols = list(TEXT_COLS)
    if require_label:
        cols.append(AREA_COL)
    return cols


def _ensure_columns(df: pd.DataFrame, required: List[str], path: Path) -> None:
    missing = set(required) - set(df.columns)
    if missing:
        raise DataFormatError(f"{path} missing required columns: {sorted(missing)}")


def _check_field_counts(path: Path) -> None:
    """
    Every non-blank line must have as many tab-separated fields as the first.
    pandas pads short rows with "" when NA parsing is off, so they are caught here.
    """
    expected = None
    try:
        with path.open("r", encoding="utf-8", newline="") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.rstrip("\r\n")
                if not line:
                    continue
                n_fields = line.count("\t") + 1
                if expected is None:
                    expected = n_fields
                elif n_fields != expected:
                    raise DataFormatError(
                        f"{path}: line {lineno} has {n_fields} fields, expected {expected}"
                    )
    except UnicodeDecodeError as e:
        raise DataFormatError(f"{path} is not valid UTF-8: {e}") from e


def _read_tsv(path: Path, has_header: bool) -> pd.DataFrame:
    _check_field_counts(path)
    # header=None so every line, the header included, is held to the same field count
    try:
        raw = pd.read_csv(
            path,
            sep="\t",
            header=None,
            dtype=str,
            quoting=csv.QUOTE_NONE,
            keep_default_na=False,
            encoding="utf-8",
        )
    except pd.errors.EmptyDataError as e:
        raise DataFormatError(f"{path} is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DataFormatError(f"{path} could not be parsed: {e}") from e

    if has_header:
        header = [str(c).strip() for c in raw.iloc[0]]
        df = raw.iloc[1:].reset_index(drop=True)
        df.columns = header
        return df

    if raw.shape[1] != len(POSITIONAL_COLS):
        raise DataFormatError(
            f"{path} has {raw.shape[1]} columns; headerless files need "
            f"{len(POSITIONAL_COLS)} ({', '.join(POSITIONAL_COLS)})"
        )
    raw.columns = list(POSITIONAL_COLS)
    return raw


def _read_parquet(path: Path) -> pd.DataFrame:
    try:
        return pd.read_parquet(path)
    except (OSError, ValueError) as e:
        raise DataFormatError(f"{path} could not be read as parquet: {e}") from e


# --------------------------------------------------------------------------------------
# Loader
# --------------------------------------------------------------------------------------

def load_dataset(
    path: Union[str, Path],
    has_header: bool = True,
    require_label: bool = True,
) -> pd.DataFrame:
    """
    Read an issue dataset and return a DataFrame with Title, Description and
    (when present) Area and ID columns, all as str.

    Raises DataFormatError on a missing file, missing required columns, rows
    with the wrong number of fields, or null values in required columns.
    """
    path = Path(path)
    if not path.is_file():
        raise DataFormatError(f"data file not found: {path}")

    if path.suffix.lower() in PARQUET_SUFFIXES:
        df = _read_parquet(path)
    else:
        df = _read_tsv(path, has_header)

    required = _required_columns(require_label)
    _ensure_columns(df, required, path)

    keep = [c for c in (ID_COL, AREA_COL, TITLE_COL, DESCRIPTION_COL) if c in df.columns]
    df = df[keep].copy()

    bad = df[required].isna().any(axis=1)
    if bad.any():
        first = int(bad.to_numpy().nonzero()[0][0])
        line = first + (2 if has_header else 1)
        raise DataFormatError(
            f"{path}: {int(bad.sum())} row(s) with missing fields (first at line {line})"
        )

    df = df.fillna("").astype(str).reset_index(drop=True)
    logger.info("Loaded %d rows from %s", len(df), path)
    return df
