from __future__ import annotations

import math

import pandas as pd
import pytest

from issue_area.errors import EvaluationError
from issue_area.evaluate import Metrics, evaluate, print_metrics
from issue_area.predict import Predictor
from issue_area.schema import IssueRecord
from issue_area.train import TrainedModel

from conftest import issues_frame

TEST_ROWS = [
    ("t1", "Networking", "Socket timeout on connect", "The HTTP socket connection times out"),
    ("t2", "Build", "Official build broken", "The CI build fails compiling native code"),
    ("t3", "Data", "Database query crashes", "EF crashes connecting to the database"),
    ("t4", "Data", "Connection pool exhausted", "Database connections run out under load"),
    ("t5", "Networking", "Database socket", "Build fails when the websocket connects"),
]


def test_metrics_ranges(trained_model: TrainedModel):
    m = evaluate(trained_model, issues_frame(TEST_ROWS))

    assert isinstance(m, Metrics)
    assert m.n_rows == len(TEST_ROWS)
    assert 0.0 <= m.micro_accuracy <= 1.0
    assert 0.0 <= m.macro_accuracy <= 1.0
    assert m.log_loss > 0.0
    assert set(m.per_class_log_loss) == {"Networking", "Build", "Data"}


def test_micro_accuracy_matches_predictor(trained_model: TrainedModel):
    test = issues_frame(TEST_ROWS)
    m = evaluate(trained_model, test)

    predictor = Predictor(trained_model)
    hits = [
        predictor.predict(IssueRecord(row.Title, row.Description)).area == row.Area
        for row in test.itertuples()
    ]
    assert m.micro_accuracy == pytest.approx(sum(hits) / len(hits))


def test_macro_accuracy_is_mean_per_class_recall(trained_model: TrainedModel):
    test = issues_frame(TEST_ROWS)
    m = evaluate(trained_model, test)

    predicted = trained_model.predict(test)
    recalls = []
    for area, group in test.groupby("Area"):
        recalls.append((predicted[group.index] == area).mean())
    assert m.macro_accuracy == pytest.approx(sum(recalls) / len(recalls))


def test_log_loss_reduction_against_uniform_prior(trained_model: TrainedModel):
    m = evaluate(trained_model, issues_frame(TEST_ROWS))
    k = len(trained_model.labels)
    assert m.log_loss_reduction == pytest.approx(1.0 - m.log_loss / math.log(k))


def test_confusion_matrix_counts_rows(trained_model: TrainedModel):
    m = evaluate(trained_model, issues_frame(TEST_ROWS))
    cm = m.confusion_matrix

    assert list(cm.index) == list(trained_model.labels)
    assert int(cm.to_numpy().sum()) == len(TEST_ROWS)
    assert cm.loc["Data"].sum() == 2


def test_unseen_label_rejected(trained_model: TrainedModel):
    rows = TEST_ROWS + [("t6", "Security", "Token leak", "Credentials logged in plain text")]
    with pytest.raises(EvaluationError, match="Security"):
        evaluate(trained_model, issues_frame(rows))


def test_empty_test_set_rejected(trained_model: TrainedModel):
    with pytest.raises(EvaluationError, match="empty"):
        evaluate(trained_model, issues_frame([]))


def test_missing_area_rejected(trained_model: TrainedModel):
    test = issues_frame(TEST_ROWS).drop(columns=["Area"])
    with pytest.raises(EvaluationError):
        evaluate(trained_model, test)


def test_print_metrics_block(trained_model: TrainedModel, capsys):
    m = evaluate(trained_model, issues_frame(TEST_ROWS))
    print_metrics(m)
    out = capsys.readouterr().out

    for name in ("MicroAccuracy", "MacroAccuracy", "LogLoss:", "LogLossReduction"):
        assert name in out
    assert out.startswith("*" * 20)


def test_report_trims_trailing_zeros():
    m = Metrics(micro_accuracy=0.5, macro_accuracy=1.0, log_loss=0.25, log_loss_reduction=0.12345)
    lines = m.format_report().splitlines()

    assert "*       MicroAccuracy:    0.5" in lines
    assert "*       MacroAccuracy:    1" in lines
    assert "*       LogLoss:          .25" in lines
    assert "*       LogLossReduction: .123" in lines


def test_report_log_loss_keeps_integer_part_and_sign():
    m = Metrics(micro_accuracy=0.0, macro_accuracy=0.0, log_loss=1.2, log_loss_reduction=-0.5)
    lines = m.format_report().splitlines()

    assert "*       MicroAccuracy:    0" in lines
    assert "*       LogLoss:          1.2" in lines
    assert "*       LogLossReduction: -.5" in lines
