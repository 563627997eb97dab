import pandas as pd
import pytest

from attrition_pipeline import Cleaner, FeatureType, SchemaError


def test_drops_zero_variance_and_id_columns(attrition_dataset):
    cleaner = Cleaner(verbose=False)
    cleaned = cleaner.clean(attrition_dataset)

    assert set(cleaner.dropped_features) == {'EmployeeNumber', 'StandardHours', 'Over18'}
    for name in cleaner.dropped_features:
        assert name not in cleaned.schema


def test_no_remaining_feature_is_constant(attrition_dataset):
    cleaned = Cleaner(verbose=False).clean(attrition_dataset)
    for name in cleaned.schema.names_of(FeatureType.NUMERIC):
        assert cleaned.frame[name].std() > 0
    for name in cleaned.schema.names_of(FeatureType.CATEGORICAL):
        assert cleaned.frame[name].nunique() > 1


def test_ordinal_and_character_features_become_categorical(attrition_dataset):
    cleaned = Cleaner(verbose=False).clean(attrition_dataset)
    assert cleaned.schema.type_of('JobSatisfaction') == FeatureType.CATEGORICAL
    assert cleaned.schema.type_of('Department') == FeatureType.CATEGORICAL
    assert isinstance(cleaned.frame['OverTime'].dtype, pd.CategoricalDtype)
    assert cleaned.schema.type_of('MonthlyIncome') == FeatureType.NUMERIC


def test_text_column_is_not_coerced(review_frame, loader):
    dataset = loader.load_text(review_frame.assign(Team=['a', 'b'] * 18))
    cleaned = Cleaner(verbose=False).clean(dataset)
    assert cleaned.schema.type_of('Review') == FeatureType.TEXT
    assert cleaned.schema.type_of('Team') == FeatureType.CATEGORICAL


def test_explicit_ordinal_list_must_exist(attrition_dataset):
    with pytest.raises(SchemaError, match='does not exist'):
        Cleaner(ordinal_features=['JobSatisfaction', 'JobLevel'], verbose=False).clean(attrition_dataset)


def test_input_dataset_untouched(attrition_dataset):
    before = attrition_dataset.frame.copy()
    Cleaner(verbose=False).clean(attrition_dataset)
    pd.testing.assert_frame_equal(attrition_dataset.frame, before)
