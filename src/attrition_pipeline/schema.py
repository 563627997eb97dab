"""
Typed feature schema and the immutable Dataset passed between stages.

Columns are looked up by name through FeatureSchema.require so a request for a
feature that does not exist fails with SchemaError instead of producing an
empty or NA column.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from .exceptions import SchemaError


class FeatureType(str, Enum):
    NUMERIC = 'numeric'
    CATEGORICAL = 'categorical'
    TEXT = 'text'


def _levels_of(column: pd.Series) -> Tuple[Any, ...]:
    if isinstance(column.dtype, pd.CategoricalDtype):
        return tuple(column.cat.categories)
    return tuple(pd.unique(column.dropna()))


@dataclass(frozen=True)
class FeatureSchema:
    """
    Ordered mapping feature-name -> FeatureType, plus the levels of every
    categorical feature as seen when the schema was built.
    """

    types: Mapping[str, FeatureType]
    levels: Mapping[str, Tuple[Any, ...]] = field(default_factory=dict)

    @classmethod
    def infer(
        cls,
        frame: pd.DataFrame,
        exclude: Iterable[str] = (),
        text_columns: Iterable[str] = ()
    ) -> 'FeatureSchema':
        """
        Derive a schema from a DataFrame.

        Args:
            frame: Source data
            exclude: Columns that are not features (e.g. the label)
            text_columns: Columns holding free text

        Returns:
            FeatureSchema in the frame's column order
        """
        exclude = set(exclude)
        text_columns = set(text_columns)
        types: Dict[str, FeatureType] = {}
        levels: Dict[str, Tuple[Any, ...]] = {}

        for name in frame.columns:
            if name in exclude:
                continue
            column = frame[name]
            if name in text_columns:
                types[name] = FeatureType.TEXT
            elif is_numeric_dtype(column.dtype) and not is_bool_dtype(column.dtype) \
                    and not isinstance(column.dtype, pd.CategoricalDtype):
                types[name] = FeatureType.NUMERIC
            else:
                types[name] = FeatureType.CATEGORICAL
                levels[name] = _levels_of(column)

        return cls(types=types, levels=levels)

    @property
    def names(self) -> List[str]:
        return list(self.types)

    def __len__(self) -> int:
        return len(self.types)

    def __contains__(self, name: str) -> bool:
        return name in self.types

    def names_of(self, feature_type: FeatureType) -> List[str]:
        return [n for n, t in self.types.items() if t == feature_type]

    def require(self, *names: str) -> List[str]:
        """Return names unchanged, raising SchemaError for any unknown feature."""
        missing = [n for n in names if n not in self.types]
        if missing:
            raise SchemaError(
                'Requested feature does not exist',
                context={'features': missing, 'available': self.names}
            )
        return list(names)

    def type_of(self, name: str) -> FeatureType:
        self.require(name)
        return self.types[name]

    def subset(self, names: Iterable[str]) -> 'FeatureSchema':
        names = self.require(*names)
        return FeatureSchema(
            types={n: self.types[n] for n in names},
            levels={n: self.levels[n] for n in names if n in self.levels}
        )

    def without(self, names: Iterable[str]) -> 'FeatureSchema':
        drop = set(self.require(*names))
        return self.subset([n for n in self.names if n not in drop])

    def with_feature(
        self,
        name: str,
        feature_type: FeatureType,
        levels: Optional[Tuple[Any, ...]] = None
    ) -> 'FeatureSchema':
        types = dict(self.types)
        types[name] = feature_type
        new_levels = {k: v for k, v in self.levels.items() if k != name}
        if feature_type == FeatureType.CATEGORICAL:
            new_levels[name] = tuple(levels or ())
        return FeatureSchema(types=types, levels=new_levels)

    def with_observed_levels(self, frame: pd.DataFrame) -> 'FeatureSchema':
        """
        Same features, with categorical levels narrowed to the values that
        actually occur in frame. Declared categories with no rows are dropped.
        """
        levels = {
            name: tuple(pd.unique(frame[name].dropna()))
            for name in self.levels
        }
        return FeatureSchema(types=dict(self.types), levels=levels)

    def check_compatible(self, frame: pd.DataFrame, label_column: Optional[str] = None) -> None:
        """
        Verify that a frame carries exactly this schema's features and no
        categorical level unseen when the schema was built.

        Raises:
            SchemaError: on missing/extra features or unseen levels
        """
        present = [c for c in frame.columns if c != label_column]
        missing = [n for n in self.names if n not in present]
        extra = [n for n in present if n not in self.types]
        if missing or extra:
            raise SchemaError(
                'Feature set mismatch',
                context={'missing': missing, 'unexpected': extra}
            )

        for name, known in self.levels.items():
            seen = set(pd.unique(frame[name].dropna()))
            unseen = sorted(map(str, seen - set(known)))
            if unseen:
                raise SchemaError(
                    'Categorical level not seen at fit time',
                    context={'feature': name, 'levels': unseen}
                )


@dataclass(frozen=True)
class Dataset:
    """
    Ordered employee records sharing one FeatureSchema, plus the binary label.

    The wrapped frame is treated as read-only: stages build a new Dataset via
    replace_frame rather than mutating this one.
    """

    frame: pd.DataFrame
    schema: FeatureSchema
    label_column: str
    positive_label: Any
    text_column: Optional[str] = None

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        label_column: str,
        positive_label: Any,
        text_column: Optional[str] = None
    ) -> 'Dataset':
        text_columns = [text_column] if text_column else []
        schema = FeatureSchema.infer(frame, exclude=[label_column], text_columns=text_columns)
        return cls(
            frame=frame,
            schema=schema,
            label_column=label_column,
            positive_label=positive_label,
            text_column=text_column
        )

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def features(self) -> pd.DataFrame:
        return self.frame[self.schema.names]

    @property
    def labels(self) -> pd.Series:
        return self.frame[self.label_column]

    @property
    def y(self) -> np.ndarray:
        """Binary target with 1 for the configured positive class."""
        return (self.labels == self.positive_label).astype(int).to_numpy()

    @property
    def negative_label(self) -> Any:
        categories = list(self.labels.cat.categories) \
            if isinstance(self.labels.dtype, pd.CategoricalDtype) \
            else list(pd.unique(self.labels.dropna()))
        others = [c for c in categories if c != self.positive_label]
        return others[0] if others else None

    def class_counts(self) -> Dict[Any, int]:
        counts = self.labels.value_counts()
        return {k: int(v) for k, v in counts.items() if v > 0}

    def replace_frame(
        self,
        frame: pd.DataFrame,
        schema: Optional[FeatureSchema] = None
    ) -> 'Dataset':
        """Return a new Dataset over frame, keeping label configuration."""
        if schema is None:
            text_columns = [self.text_column] if self.text_column in frame.columns else []
            schema = FeatureSchema.infer(frame, exclude=[self.label_column], text_columns=text_columns)
        text_column = self.text_column if self.text_column in schema else None
        return Dataset(
            frame=frame,
            schema=schema,
            label_column=self.label_column,
            positive_label=self.positive_label,
            text_column=text_column
        )

    def take(self, positions: Iterable[int]) -> 'Dataset':
        """Rows at the given positions, keeping the original index."""
        positions = list(positions)
        return self.replace_frame(self.frame.iloc[positions].copy(), schema=self.schema)

    def corpus(self) -> 'Corpus':
        if self.text_column is None:
            raise SchemaError('Dataset has no designated text column')
        return tuple('' if pd.isna(t) else str(t) for t in self.frame[self.text_column])

    def fingerprint(self) -> str:
        """Stable content hash, used to check evaluations share test data."""
        hashed = pd.util.hash_pandas_object(self.frame, index=True)
        return f"{int(hashed.sum()) & 0xFFFFFFFFFFFFFFFF:016x}-{len(self.frame)}"


# Documents aligned 1:1 with the Dataset rows they came from
Corpus = Tuple[str, ...]
