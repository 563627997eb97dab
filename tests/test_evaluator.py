import numpy as np
import pytest

from attrition_pipeline import ConfusionMatrix, Evaluator, ModelTrainer, SchemaError


def test_metrics_from_counts():
    cm = ConfusionMatrix(tp=8, fp=2, fn=4, tn=86)
    assert cm.accuracy == pytest.approx(0.94)
    assert cm.recall == pytest.approx(8 / 12)
    assert cm.precision == pytest.approx(0.8)


def test_no_true_positives_gives_zero_not_nan():
    cm = ConfusionMatrix(tp=0, fp=3, fn=5, tn=10)
    assert cm.recall == 0.0
    assert cm.precision == 0.0
    assert cm.f1 == 0.0


@pytest.mark.parametrize('counts', [
    (0, 0, 0, 0), (0, 0, 0, 7), (5, 0, 0, 0), (1, 2, 3, 4), (0, 9, 0, 0),
])
def test_metric_bounds(counts):
    cm = ConfusionMatrix(*counts)
    for value in (cm.accuracy, cm.recall, cm.precision, cm.f1):
        assert 0.0 <= value <= 1.0
        assert not np.isnan(value)


def test_from_labels_uses_configured_positive():
    actual = ['Yes', 'No', 'Yes', 'No']
    predicted = ['Yes', 'Yes', 'No', 'No']
    cm = ConfusionMatrix.from_labels(actual, predicted, positive_label='Yes')
    assert (cm.tp, cm.fp, cm.fn, cm.tn) == (1, 1, 1, 1)
    flipped = ConfusionMatrix.from_labels(actual, predicted, positive_label='No')
    assert (flipped.tp, flipped.fp, flipped.fn, flipped.tn) == (1, 1, 1, 1)
    assert cm.as_frame('Yes', 'No').loc['Yes', 'No'] == 1


@pytest.fixture
def fitted(attrition_dataset):
    from attrition_pipeline import Cleaner, DataSplitter

    cleaned = Cleaner(verbose=False).clean(attrition_dataset)
    train, test = DataSplitter(verbose=False).split(cleaned)
    trainer = ModelTrainer('logistic_regression', tune=False, verbose=False)
    trainer.fit(train)
    return trainer, train, test


def test_evaluate_and_compare(fitted):
    trainer, _, test = fitted
    evaluator = Evaluator(positive_label='Yes', verbose=False)
    report = evaluator.evaluate('logreg', trainer, test)

    assert report.confusion.total == len(test)
    assert 0.0 <= report.roc_auc <= 1.0
    table = evaluator.compare()
    assert list(table.index) == ['logreg']
    assert table.loc['logreg', 'accuracy'] == pytest.approx(report.accuracy)


def test_reports_must_share_test_data(fitted):
    trainer, train, test = fitted
    evaluator = Evaluator(positive_label='Yes', verbose=False)
    evaluator.evaluate('first', trainer, test)
    with pytest.raises(SchemaError, match='identical test data'):
        evaluator.evaluate('second', trainer, train)


def test_positive_label_must_match(fitted):
    trainer, _, test = fitted
    with pytest.raises(SchemaError, match='positive label'):
        Evaluator(positive_label='No', verbose=False).evaluate('m', trainer, test)


def test_save_report(tmp_path, fitted):
    trainer, _, test = fitted
    evaluator = Evaluator(positive_label='Yes', verbose=False)
    evaluator.evaluate('logreg', trainer, test)
    path = evaluator.save_report(tmp_path)
    assert path.exists()
    assert '"logreg"' in path.read_text()
