import numpy as np
import pandas as pd
import pytest

from attrition_pipeline import Cleaner, FeatureSelector, SchemaError, SelectionError


@pytest.fixture
def cleaned(attrition_dataset):
    return Cleaner(verbose=False).clean(attrition_dataset)


def test_keeps_all_but_drop_count(cleaned):
    selector = FeatureSelector(drop_count=3, n_estimators=100, verbose=False)
    selected = selector.fit_transform(cleaned)

    assert len(selected.schema) == len(cleaned.schema) - 3
    assert selected.label_column in selected.frame.columns
    assert set(selector.dropped_features_) | set(selector.selected_features_) == set(cleaned.schema.names)
    # Overtime and income drive attrition in the fixture
    assert 'OverTime' in selector.selected_features_
    assert 'MonthlyIncome' in selector.selected_features_


def test_importances_sorted_descending(cleaned):
    selector = FeatureSelector(drop_count=1, n_estimators=100, verbose=False).fit(cleaned)
    values = selector.importances_.to_numpy()
    assert np.all(values[:-1] >= values[1:])
    assert selector.importances_.sum() == pytest.approx(1.0)


def test_reselecting_with_zero_drop_is_idempotent(cleaned):
    first = FeatureSelector(drop_count=2, n_estimators=100, verbose=False).fit_transform(cleaned)
    again = FeatureSelector(drop_count=0, n_estimators=100, verbose=False).fit_transform(first)
    assert again.schema.names == first.schema.names


def test_ties_keep_column_order(loader):
    frame = pd.DataFrame({
        'signal': list(range(20)),
        'flat_a': [1.0] * 20,
        'flat_b': [1.0] * 20,
        'Attrition': ['No'] * 10 + ['Yes'] * 10,
    })
    selector = FeatureSelector(drop_count=1, n_estimators=50, verbose=False)
    selector.fit(loader.load_tabular(frame))
    assert list(selector.importances_.index) == ['signal', 'flat_a', 'flat_b']
    assert selector.dropped_features_ == ['flat_b']


def test_too_few_features(cleaned):
    drop = len(cleaned.schema) - 1
    with pytest.raises(SelectionError, match='Fewer than 2'):
        FeatureSelector(drop_count=drop, verbose=False).fit(cleaned)


def test_transform_requires_selected_features(cleaned):
    selector = FeatureSelector(drop_count=1, n_estimators=50, verbose=False).fit(cleaned)
    kept = selector.selected_features_[0]
    reduced = cleaned.replace_frame(
        cleaned.frame.drop(columns=kept), schema=cleaned.schema.without([kept])
    )
    with pytest.raises(SchemaError):
        selector.transform(reduced)
