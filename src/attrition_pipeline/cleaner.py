"""
Cleaning stage: drops identifier and zero-variance features and settles the
final type of every feature.
"""

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pandas.api.types import is_bool_dtype, is_object_dtype, is_string_dtype

from . import config
from .exceptions import SchemaError
from .schema import Dataset, FeatureSchema


class Cleaner:
    """
    Finalizes the FeatureSchema of a Dataset:
    - removes identifier columns
    - coerces integer-coded ordinal/nominal features to categorical
    - coerces character features to categorical (except the text column)
    - drops zero-variance features, recording their names
    """

    def __init__(
        self,
        ordinal_features: Optional[Sequence[str]] = None,
        id_columns: Optional[Sequence[str]] = None,
        verbose: bool = True
    ):
        """
        Args:
            ordinal_features: Integer-coded features to treat as categorical.
                An explicit list must name existing features; the default
                list is applied to whichever of its features are present.
            id_columns: Identifier columns to drop when present
            verbose: Print progress
        """
        self._explicit_ordinals = ordinal_features is not None
        self.ordinal_features = list(
            ordinal_features if ordinal_features is not None else config.ORDINAL_FEATURES
        )
        self.id_columns = list(id_columns if id_columns is not None else config.ID_COLUMNS)
        self.verbose = verbose

        self.dropped_features: List[str] = []
        self.stats: Dict[str, Any] = {}

    def _ordinals_for(self, dataset: Dataset) -> List[str]:
        if self._explicit_ordinals:
            return dataset.schema.require(*self.ordinal_features)
        return [f for f in self.ordinal_features if f in dataset.schema]

    @staticmethod
    def _is_constant(column: pd.Series) -> bool:
        return column.nunique(dropna=True) <= 1

    def clean(self, dataset: Dataset) -> Dataset:
        """
        Clean a Dataset.

        Args:
            dataset: Freshly loaded Dataset

        Returns:
            New Dataset with a finalized FeatureSchema
        """
        if self.verbose:
            print(f"\n{'=' * 60}")
            print(" CLEANING")
            print(f"{'=' * 60}")

        frame = dataset.frame.copy()
        text_column = dataset.text_column

        id_columns = [c for c in self.id_columns if c in dataset.schema]
        frame = frame.drop(columns=id_columns)

        ordinals = [c for c in self._ordinals_for(dataset) if c not in id_columns]
        for name in ordinals:
            if name == text_column:
                raise SchemaError(
                    'Text column cannot be coerced to categorical',
                    stage='clean', context={'feature': name}
                )
            frame[name] = frame[name].astype('category')

        coerced = []
        for name in frame.columns:
            if name in (dataset.label_column, text_column):
                continue
            column = frame[name]
            if isinstance(column.dtype, pd.CategoricalDtype):
                continue
            if is_object_dtype(column.dtype) or is_string_dtype(column.dtype) \
                    or is_bool_dtype(column.dtype):
                frame[name] = column.astype('category')
                coerced.append(name)

        constant = [
            name for name in frame.columns
            if name not in (dataset.label_column, text_column)
            and self._is_constant(frame[name])
        ]
        frame = frame.drop(columns=constant)

        # Categories of a coerced column may include levels no row still has
        for name in frame.columns:
            if name != dataset.label_column and isinstance(frame[name].dtype, pd.CategoricalDtype):
                frame[name] = frame[name].cat.remove_unused_categories()

        self.dropped_features = id_columns + constant
        self.stats = {
            'id_columns_dropped': id_columns,
            'zero_variance_dropped': constant,
            'ordinal_coerced': ordinals,
            'character_coerced': coerced,
        }

        if self.verbose:
            print(f"\n   Identifier columns dropped: {id_columns}")
            print(f"   Zero-variance features dropped: {constant}")
            print(f"   Ordinal features coerced: {ordinals}")
            print(f"   Character features coerced: {coerced}")

        text_columns = [text_column] if text_column else []
        schema = FeatureSchema.infer(frame, exclude=[dataset.label_column], text_columns=text_columns)
        return dataset.replace_frame(frame, schema=schema)
