"""
Loading of the tabular attrition file, the free-text review file and
secondary-language stop-word lists.
"""

from pathlib import Path
from typing import Any, FrozenSet, Optional, Union

import pandas as pd

from . import config
from .exceptions import LoadError
from .schema import Dataset

Source = Union[str, Path, pd.DataFrame]


class DataLoader:
    """
    Reads delimited sources into Datasets with a two-level categorical label.
    """

    def __init__(
        self,
        label_column: str = config.LABEL_COLUMN,
        positive_label: Any = config.POSITIVE_LABEL,
        text_column: str = config.TEXT_COLUMN,
        sep: str = ',',
        encoding: Optional[str] = None,
        verbose: bool = True
    ):
        """
        Args:
            label_column: Column holding the binary outcome
            positive_label: Label value of the positive (minority) class
            text_column: Column holding review text (text sources only)
            sep: Field delimiter
            encoding: File encoding passed to pandas
            verbose: Print progress
        """
        self.label_column = label_column
        self.positive_label = positive_label
        self.text_column = text_column
        self.sep = sep
        self.encoding = encoding
        self.verbose = verbose

    def _read(self, source: Source) -> pd.DataFrame:
        if isinstance(source, pd.DataFrame):
            return source.copy()

        path = Path(source)
        if not path.exists():
            raise LoadError('Input file not found', context={'path': str(path)})

        try:
            frame = pd.read_csv(path, sep=self.sep, encoding=self.encoding)
        except OSError as exc:
            raise LoadError(f'Could not read input: {exc}', context={'path': str(path)}) from exc
        except ValueError as exc:
            # ParserError, EmptyDataError and UnicodeDecodeError
            raise LoadError(f'Could not parse input: {exc}', context={'path': str(path)}) from exc

        if self.verbose:
            print(f"\n   Loaded {len(frame)} rows from {path}")
            print(f"   Columns: {list(frame.columns)}")
        return frame

    def _coerce_label(self, frame: pd.DataFrame) -> pd.DataFrame:
        if self.label_column not in frame.columns:
            raise LoadError(
                'Label column is missing',
                context={'label_column': self.label_column, 'columns': list(frame.columns)}
            )

        labels = frame[self.label_column]
        n_missing = int(labels.isna().sum())
        if n_missing:
            raise LoadError(
                'Label column has missing values',
                context={'label_column': self.label_column, 'missing': n_missing}
            )

        values = list(pd.unique(labels))
        if len(values) != 2:
            raise LoadError(
                'Label column must have exactly two distinct values',
                context={'label_column': self.label_column, 'values': values}
            )
        if self.positive_label not in values:
            raise LoadError(
                'Positive label not present in label column',
                context={'positive_label': self.positive_label, 'values': values}
            )

        negative = [v for v in values if v != self.positive_label][0]
        frame[self.label_column] = pd.Categorical(
            labels, categories=[negative, self.positive_label]
        )
        return frame

    def load_tabular(self, source: Source) -> Dataset:
        """
        Load the employee attribute table.

        Args:
            source: CSV path or an already loaded DataFrame

        Returns:
            Dataset with an inferred FeatureSchema
        """
        frame = self._coerce_label(self._read(source))
        dataset = Dataset.from_frame(frame, self.label_column, self.positive_label)

        if self.verbose:
            print(f"   Class distribution: {dataset.class_counts()}")
        return dataset

    def load_text(self, source: Source) -> Dataset:
        """
        Load the review file: one row per employee with a free-text column.

        Args:
            source: CSV path or an already loaded DataFrame

        Returns:
            Dataset whose text_column is the review column
        """
        frame = self._read(source)
        if self.text_column not in frame.columns:
            raise LoadError(
                'Text column is missing',
                context={'text_column': self.text_column, 'columns': list(frame.columns)}
            )
        frame = self._coerce_label(frame)
        frame[self.text_column] = frame[self.text_column].fillna('').astype(str)

        dataset = Dataset.from_frame(
            frame, self.label_column, self.positive_label, text_column=self.text_column
        )
        if self.verbose:
            print(f"   Documents: {len(dataset)}")
            print(f"   Class distribution: {dataset.class_counts()}")
        return dataset

    @staticmethod
    def load_stopwords(path: Union[str, Path], encoding: str = 'utf-8') -> FrozenSet[str]:
        """
        Load a stop-word list with one term per line.

        Blank lines are skipped and terms are lowercased.
        """
        path = Path(path)
        if not path.exists():
            raise LoadError('Stop-word file not found', context={'path': str(path)})

        try:
            with open(path, 'r', encoding=encoding) as f:
                terms = [line.strip().lower() for line in f]
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f'Could not read stop-word file: {exc}', context={'path': str(path)}) from exc
        return frozenset(t for t in terms if t)
