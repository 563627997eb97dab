"""
Train/test splitting with duplicate handling for anti data-leakage.

Strategy:
1. Detect duplicate employee records (identical features, whatever the label)
2. Split on UNIQUE rows only (stratified on the label)
3. Reinject "safe" duplicates (those whose original is in train, not test)
4. Optionally save positions for reproducibility
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from . import config
from .exceptions import PipelineError
from .schema import Dataset


class DataSplitter:
    """
    Handles the train/test split of a Dataset.
    Ensures no data leakage by:
    - Splitting on unique rows only
    - Only adding duplicates back to train if their original is in train
    """

    def __init__(
        self,
        test_size: float = config.TEST_SIZE,
        random_state: int = config.RANDOM_STATE,
        stratify: bool = True,
        handle_duplicates: bool = True,
        verbose: bool = True
    ):
        """
        Args:
            test_size: Proportion of data for test set
            random_state: Random seed for reproducibility
            stratify: Whether to stratify by the label
            handle_duplicates: Whether to detect and handle duplicate rows
            verbose: Print progress
        """
        self.test_size = test_size
        self.random_state = random_state
        self.stratify = stratify
        self.handle_duplicates = handle_duplicates
        self.verbose = verbose

        self.train_positions: List[int] = []
        self.test_positions: List[int] = []
        self.stats: Dict[str, Any] = {}

    @staticmethod
    def _row_hashes(frame: pd.DataFrame) -> np.ndarray:
        return pd.util.hash_pandas_object(frame, index=False).to_numpy()

    def split(self, dataset: Dataset) -> Tuple[Dataset, Dataset]:
        """
        Split a Dataset into train and test Datasets.

        Args:
            dataset: Cleaned Dataset

        Returns:
            Tuple of (train, test)
        """
        if self.verbose:
            print(f"\n{'=' * 60}")
            print(" DATA SPLITTING WITH DUPLICATE HANDLING")
            print(f"{'=' * 60}")

        positions = np.arange(len(dataset))
        hashes = self._row_hashes(dataset.features)

        if self.handle_duplicates:
            duplicated = pd.Series(hashes).duplicated(keep='first').to_numpy()
        else:
            duplicated = np.zeros(len(dataset), dtype=bool)

        unique_positions = positions[~duplicated]
        y_unique = dataset.y[unique_positions]

        try:
            train_positions, test_positions = train_test_split(
                unique_positions,
                test_size=self.test_size,
                random_state=self.random_state,
                stratify=y_unique if self.stratify else None
            )
        except ValueError as exc:
            raise PipelineError(
                f'Could not split dataset: {exc}', stage='split',
                context={'rows': len(dataset), 'class_counts': dataset.class_counts()}
            ) from exc

        test_hashes = set(hashes[test_positions])
        safe = [p for p in positions[duplicated] if hashes[p] not in test_hashes]
        unsafe_count = int(duplicated.sum()) - len(safe)

        train_positions = np.sort(np.concatenate([train_positions, np.array(safe, dtype=int)]))
        test_positions = np.sort(test_positions)

        self._verify(hashes, train_positions, test_positions)

        self.train_positions = [int(p) for p in train_positions]
        self.test_positions = [int(p) for p in test_positions]
        self.stats = {
            'total_rows': len(dataset),
            'unique_rows': len(unique_positions),
            'safe_duplicates_added': len(safe),
            'unsafe_duplicates_discarded': unsafe_count,
            'train_size': len(self.train_positions),
            'test_size': len(self.test_positions),
            'duplicates_handled': self.handle_duplicates,
        }

        if self.verbose:
            print(f"\n   Total rows: {len(dataset)}")
            print(f"   Unique rows: {len(unique_positions)}")
            print(f"   Safe duplicates (added to train): {len(safe)}")
            print(f"   Unsafe duplicates (discarded): {unsafe_count}")
            print(f"\n   Train: {len(self.train_positions)}")
            print(f"   Test: {len(self.test_positions)}")

        return dataset.take(self.train_positions), dataset.take(self.test_positions)

    def _verify(
        self,
        hashes: np.ndarray,
        train_positions: np.ndarray,
        test_positions: np.ndarray
    ) -> None:
        overlap = set(train_positions.tolist()) & set(test_positions.tolist())
        if self.handle_duplicates:
            overlap |= set(hashes[train_positions].tolist()) & set(hashes[test_positions].tolist())
        if overlap:
            raise PipelineError(
                'Data leakage detected: rows present in both train and test',
                stage='split', context={'overlap': len(overlap)}
            )

    def save_split(self, dataset: Dataset, output_dir: Union[str, Path]) -> Path:
        """Save split positions and metadata as JSON."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        with open(output_dir / 'train_indices.json', 'w') as f:
            json.dump(self.train_positions, f)
        with open(output_dir / 'test_indices.json', 'w') as f:
            json.dump(self.test_positions, f)

        metadata = {
            'test_size': self.test_size,
            'random_state': self.random_state,
            'stratify': self.stratify,
            'handle_duplicates': self.handle_duplicates,
            'label_column': dataset.label_column,
            'total_samples': len(dataset),
            'train_samples': len(self.train_positions),
            'test_samples': len(self.test_positions),
            'created_at': datetime.now().isoformat(),
            'class_distribution_train': dataset.take(self.train_positions).class_counts(),
            'class_distribution_test': dataset.take(self.test_positions).class_counts(),
        }
        with open(output_dir / 'split_metadata.json', 'w') as f:
            json.dump(metadata, f, indent=2, default=str)

        if self.verbose:
            print(f"\n   Split saved to: {output_dir}")
        return output_dir

    def load_split(self, dataset: Dataset, split_dir: Union[str, Path]) -> Tuple[Dataset, Dataset]:
        """
        Load a previously saved split.

        Args:
            dataset: Dataset the split was made from (must match original)
            split_dir: Directory containing split indices

        Returns:
            Tuple of (train, test)
        """
        split_dir = Path(split_dir)
        metadata = self.get_split_metadata(split_dir)
        if metadata.get('total_samples') != len(dataset):
            raise PipelineError(
                'Saved split does not match dataset size', stage='split',
                context={'saved': metadata.get('total_samples'), 'actual': len(dataset)}
            )

        with open(split_dir / 'train_indices.json', 'r') as f:
            self.train_positions = json.load(f)
        with open(split_dir / 'test_indices.json', 'r') as f:
            self.test_positions = json.load(f)

        if self.verbose:
            print(f"Loading existing split from: {split_dir}")
            print(f"  Train samples: {len(self.train_positions)}")
            print(f"  Test samples: {len(self.test_positions)}")

        return dataset.take(self.train_positions), dataset.take(self.test_positions)

    def get_split_metadata(self, split_dir: Union[str, Path]) -> Dict[str, Any]:
        """Load and return split metadata."""
        with open(Path(split_dir) / 'split_metadata.json', 'r') as f:
            return json.load(f)

    def split_exists(self, split_dir: Optional[Union[str, Path]]) -> bool:
        """Check if a split already exists."""
        if split_dir is None:
            return False
        split_dir = Path(split_dir)
        return all(
            (split_dir / name).exists()
            for name in ('train_indices.json', 'test_indices.json', 'split_metadata.json')
        )
