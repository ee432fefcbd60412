from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Sequence

import pandas as pd
import pytest

from issue_area.features import build_feature_pipeline
from issue_area.train import TrainedModel, train


# -------------------------------
# Helpers
# -------------------------------
ISSUES: List[tuple] = [
    ("1", "Networking", "HttpClient timeout on redirect", "The socket timeout is ignored after an HTTP redirect."),
    ("2", "Networking", "WebSocket close hangs", "Closing the websocket connection hangs when the server is silent."),
    ("3", "Networking", "Socket connect fails over IPv6", "Dual mode socket cannot connect to the remote host."),
    ("4", "Networking", "SignalR transport slow", "WebSockets transport used by SignalR is slow on the network."),
    ("5", "Build", "Build fails on Ubuntu", "The official build fails because the compiler toolchain is missing."),
    ("6", "Build", "CI leg times out", "Continuous integration build times out while compiling native code."),
    ("7", "Build", "build.sh ignores release flag", "Running build.sh with release configuration still builds debug."),
    ("8", "Build", "Package restore fails in build", "Restoring packages during the build fails on the agent."),
    ("9", "Data", "Database connection pool exhausted", "Opening database connections under load exhausts the pool."),
    ("10", "Data", "Entity Framework query crashes", "EF crashes when connecting to the database with a null filter."),
    ("11", "Data", "DataTable merge loses types", "Merging DataTable rows converts typed database columns to strings."),
    ("12", "Data", "SqlCommand cancel ignored", "Cancelling the SQL command leaves the database query running."),
]


def issues_frame(rows: Iterable[tuple] = ISSUES) -> pd.DataFrame:
    return pd.DataFrame(list(rows), columns=["ID", "Area", "Title", "Description"])


def write_tsv(path: Path, header: Sequence[str] | None, rows: Iterable[Sequence[str]]) -> Path:
    lines = []
    if header is not None:
        lines.append("\t".join(header))
    lines.extend("\t".join(r) for r in rows)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


# -------------------------------
# Fixtures
# -------------------------------
@pytest.fixture
def train_df() -> pd.DataFrame:
    return issues_frame()


@pytest.fixture
def tsv_writer(tmp_path: Path) -> Callable[..., Path]:
    def _write(name: str, rows: Iterable[Sequence[str]], header: Sequence[str] | None = ("ID", "Area", "Title", "Description")) -> Path:
        return write_tsv(tmp_path / name, header, rows)
    return _write


@pytest.fixture(scope="session")
def trained_model() -> TrainedModel:
    return train(issues_frame(), build_feature_pipeline(cache=False), seed=0)
