import numpy as np
import pandas as pd
import pytest

from attrition_pipeline import Cleaner, DataSplitter, Resampler, ResampleError


def imbalanced(loader, n_major=90, n_minor=10, seed=1):
    rng = np.random.default_rng(seed)
    frame = pd.DataFrame({
        'Age': np.concatenate([rng.normal(40, 5, n_major), rng.normal(30, 5, n_minor)]),
        'MonthlyIncome': np.concatenate([rng.normal(6000, 800, n_major), rng.normal(3500, 800, n_minor)]),
        'Attrition': ['No'] * n_major + ['Yes'] * n_minor,
    })
    return loader.load_tabular(frame)


def imbalance(counts):
    return max(counts.values()) / min(counts.values())


def test_ratio_moves_toward_balance(loader):
    dataset = imbalanced(loader)
    resampler = Resampler(over_sample_pct=300, under_sample_pct=150, verbose=False)
    result = resampler.resample(dataset)

    counts = result.class_counts()
    assert counts == {'Yes': 40, 'No': 45}
    assert imbalance(counts) < imbalance(dataset.class_counts())
    assert resampler.stats['synthetic_records'] == 30


def test_synthetic_numeric_values_are_interpolated(loader):
    dataset = imbalanced(loader)
    result = Resampler(verbose=False).resample(dataset)
    minority = dataset.frame[dataset.labels == 'Yes']
    synthetic = result.frame[result.labels == 'Yes']
    assert synthetic['Age'].min() >= minority['Age'].min() - 1e-9
    assert synthetic['Age'].max() <= minority['Age'].max() + 1e-9


def test_test_split_untouched(attrition_dataset):
    cleaned = Cleaner(verbose=False).clean(attrition_dataset)
    train, test = DataSplitter(verbose=False).split(cleaned)
    test_before = test.frame.copy(deep=True)
    train_before = train.frame.copy(deep=True)

    Resampler(verbose=False).resample(train)

    pd.testing.assert_frame_equal(test.frame, test_before, check_exact=True)
    pd.testing.assert_frame_equal(train.frame, train_before, check_exact=True)


def test_mixed_features_keep_categorical_levels(attrition_dataset):
    cleaned = Cleaner(verbose=False).clean(attrition_dataset)
    result = Resampler(verbose=False).resample(cleaned)

    for name in ['OverTime', 'Department', 'JobSatisfaction']:
        assert isinstance(result.frame[name].dtype, pd.CategoricalDtype)
        assert set(result.frame[name].dropna()) <= set(cleaned.frame[name].cat.categories)
        assert result.frame[name].notna().all()
    assert result.schema == cleaned.schema


def test_minority_too_small(loader):
    dataset = imbalanced(loader, n_major=50, n_minor=5)
    with pytest.raises(ResampleError, match='too small') as info:
        Resampler(k_neighbors=5, verbose=False).resample(dataset)
    assert info.value.context['minority_records'] == 5


def test_invalid_configuration():
    with pytest.raises(ResampleError):
        Resampler(over_sample_pct=50)
