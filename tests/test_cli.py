from __future__ import annotations

from pathlib import Path

from issue_area.cli import Session, build_and_train_model, main
from issue_area.config import Paths, Settings
from issue_area.features import build_feature_pipeline
from issue_area.model_store import load_model

from conftest import ISSUES, issues_frame, write_tsv

HEADER = ("ID", "Area", "Title", "Description")
TEST_ROWS = [
    ("t1", "Networking", "Socket timeout on connect", "The HTTP socket connection times out"),
    ("t2", "Build", "Official build broken", "The CI build fails compiling native code"),
    ("t3", "Data", "Database query crashes", "EF crashes connecting to the database"),
]


def _argv(tmp_path: Path, *extra: str) -> list:
    train = write_tsv(tmp_path / "train.tsv", HEADER, ISSUES)
    test = write_tsv(tmp_path / "test.tsv", HEADER, TEST_ROWS)
    return [
        "--train", str(train),
        "--test", str(test),
        "--model", str(tmp_path / "models" / "model.joblib"),
        "--cache-dir", str(tmp_path / "cache"),
        "--log-level", "WARNING",
        *extra,
    ]


def test_main_end_to_end(tmp_path: Path, capsys):
    assert main(_argv(tmp_path)) == 0

    out = capsys.readouterr().out
    assert "Single Prediction just-trained-model - Result:" in out
    assert "=============== Single Prediction - Result:" in out
    assert "MicroAccuracy" in out and "LogLossReduction" in out

    model, schema = load_model(tmp_path / "models" / "model.joblib")
    assert set(model.labels) == {"Networking", "Build", "Data"}
    assert schema.names == HEADER


def test_main_without_cache(tmp_path: Path):
    assert main(_argv(tmp_path, "--no-cache")) == 0
    assert not (tmp_path / "cache").exists()


def test_main_reports_failure(tmp_path: Path, capsys):
    argv = _argv(tmp_path)
    argv[argv.index("--train") + 1] = str(tmp_path / "missing.tsv")

    assert main(argv) == 1
    assert "Result:" not in capsys.readouterr().out
    assert not (tmp_path / "models" / "model.joblib").exists()


def test_main_rejects_unseen_test_labels(tmp_path: Path):
    argv = _argv(tmp_path)
    write_tsv(tmp_path / "test.tsv", HEADER, TEST_ROWS + [("t9", "Security", "Leak", "Token logged")])
    assert main(argv) == 1


def test_training_publishes_model_on_session(tmp_path: Path, capsys):
    session = Session(Settings(paths=Paths(model=tmp_path / "model.joblib"), cache=False))
    prediction = build_and_train_model(session, issues_frame(), build_feature_pipeline())

    assert session.model is not None and session.predictor is not None
    assert session.predictor.model is session.model
    assert prediction.area in session.model.labels
    assert f"Result: {prediction.area}" in capsys.readouterr().out
