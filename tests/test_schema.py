import pandas as pd
import pytest

from attrition_pipeline import Dataset, FeatureSchema, FeatureType, SchemaError


@pytest.fixture
def schema():
    frame = pd.DataFrame({
        'Age': [30, 40],
        'Department': pd.Categorical(['Sales', 'HR']),
        'Label': ['Yes', 'No'],
    })
    return FeatureSchema.infer(frame, exclude=['Label'])


def test_infer(schema):
    assert schema.names == ['Age', 'Department']
    assert schema.names_of(FeatureType.NUMERIC) == ['Age']
    assert set(schema.levels['Department']) == {'Sales', 'HR'}


def test_require_unknown_feature(schema):
    with pytest.raises(SchemaError, match='does not exist') as info:
        schema.require('Age', 'Salary')
    assert info.value.context['features'] == ['Salary']


def test_unseen_level(schema):
    frame = pd.DataFrame({'Age': [25], 'Department': ['Legal'], 'Label': ['No']})
    with pytest.raises(SchemaError, match='not seen') as info:
        schema.check_compatible(frame, label_column='Label')
    assert info.value.context['feature'] == 'Department'


def test_feature_set_mismatch(schema):
    frame = pd.DataFrame({'Age': [25], 'Tenure': [3]})
    with pytest.raises(SchemaError, match='mismatch'):
        schema.check_compatible(frame)


def test_error_message_carries_stage_and_context():
    err = SchemaError('bad', context={'feature': 'Age'})
    assert str(err) == "[schema] bad (feature='Age')"


def test_take_keeps_schema_and_index(attrition_dataset):
    subset = attrition_dataset.take([5, 1])
    assert list(subset.frame.index) == [5, 1]
    assert subset.schema == attrition_dataset.schema
    assert isinstance(subset, Dataset)
