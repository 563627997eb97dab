"""
Class-imbalance correction for training data: SMOTE-style synthesis of
minority records combined with random undersampling of the majority class.

Never apply this to a test split; evaluating on synthetic records is
meaningless.
"""

from typing import Any, Dict

import numpy as np
import pandas as pd
from imblearn.over_sampling import SMOTE, SMOTEN, SMOTENC
from imblearn.under_sampling import RandomUnderSampler

from . import config
from .exceptions import ResampleError, SchemaError
from .schema import Dataset, FeatureType


class Resampler:
    """
    Oversamples the minority class and undersamples the majority class.

    For m minority records:
    - m * over_sample_pct / 100 synthetic minority records are created
    - the majority class keeps synthetic * under_sample_pct / 100 records
      (never more than it has)

    Neighbour search and interpolation come from imbalanced-learn:
    SMOTE (all numeric), SMOTENC (mixed) or SMOTEN (all categorical).
    """

    def __init__(
        self,
        over_sample_pct: int = config.OVER_SAMPLE_PCT,
        under_sample_pct: int = config.UNDER_SAMPLE_PCT,
        k_neighbors: int = config.K_NEIGHBORS,
        random_state: int = config.RANDOM_STATE,
        verbose: bool = True
    ):
        """
        Args:
            over_sample_pct: Synthetic minority records per 100 minority records
            under_sample_pct: Majority records kept per 100 synthetic records
            k_neighbors: Minority neighbours used for interpolation
            random_state: Random seed for reproducibility
            verbose: Print progress
        """
        if over_sample_pct < 100 or under_sample_pct <= 0 or k_neighbors < 1:
            raise ResampleError(
                'Invalid resampling configuration',
                context={
                    'over_sample_pct': over_sample_pct,
                    'under_sample_pct': under_sample_pct,
                    'k_neighbors': k_neighbors,
                }
            )
        self.over_sample_pct = over_sample_pct
        self.under_sample_pct = under_sample_pct
        self.k_neighbors = k_neighbors
        self.random_state = random_state
        self.verbose = verbose

        self.stats: Dict[str, Any] = {}

    def _sampler(self, numeric, categorical, features: pd.DataFrame, strategy: Dict[int, int]):
        common = dict(
            sampling_strategy=strategy,
            k_neighbors=self.k_neighbors,
            random_state=self.random_state,
        )
        if not categorical:
            return SMOTE(**common)
        if not numeric:
            return SMOTEN(**common)
        return SMOTENC(
            categorical_features=[features.columns.get_loc(c) for c in categorical],
            **common
        )

    def resample(self, dataset: Dataset) -> Dataset:
        """
        Rebalance a training Dataset.

        Args:
            dataset: Training split (never the test split)

        Returns:
            New Dataset; the input is left untouched
        """
        if self.verbose:
            print(f"\n{'=' * 60}")
            print(" RESAMPLING (SMOTE + undersampling)")
            print(f"{'=' * 60}")

        schema = dataset.schema
        text_features = schema.names_of(FeatureType.TEXT)
        if text_features:
            raise SchemaError(
                'Text features cannot be resampled',
                stage='resample', context={'features': text_features}
            )

        y = dataset.y
        counts = np.bincount(y, minlength=2)
        if (counts == 0).any():
            raise ResampleError(
                'Both classes are required for resampling',
                context={'class_counts': dataset.class_counts()}
            )

        minority = int(np.argmin(counts))
        majority = 1 - minority
        n_minority, n_majority = int(counts[minority]), int(counts[majority])
        if n_minority < self.k_neighbors + 1:
            raise ResampleError(
                'Minority class too small to synthesize records',
                context={'minority_records': n_minority, 'k_neighbors': self.k_neighbors}
            )

        numeric = schema.names_of(FeatureType.NUMERIC)
        categorical = schema.names_of(FeatureType.CATEGORICAL)

        features = dataset.features.copy()
        with_missing = [c for c in features.columns if features[c].isna().any()]
        if with_missing:
            raise ResampleError(
                'Features with missing values cannot be interpolated',
                context={'features': with_missing}
            )
        for name in categorical:
            features[name] = features[name].astype(object)

        n_synthetic = n_minority * self.over_sample_pct // 100
        n_majority_kept = max(1, min(n_majority, n_synthetic * self.under_sample_pct // 100))

        sampler = self._sampler(numeric, categorical, features, {minority: n_minority + n_synthetic})
        try:
            X_res, y_res = sampler.fit_resample(features, y)
            X_res, y_res = RandomUnderSampler(
                sampling_strategy={majority: n_majority_kept},
                random_state=self.random_state
            ).fit_resample(X_res, y_res)
        except ValueError as exc:
            raise ResampleError(f'Resampling failed: {exc}') from exc

        frame = pd.DataFrame(X_res, columns=features.columns).reset_index(drop=True)
        for name in categorical:
            frame[name] = pd.Categorical(
                frame[name], categories=dataset.frame[name].cat.categories
            ) if isinstance(dataset.frame[name].dtype, pd.CategoricalDtype) else frame[name]
        for name in numeric:
            frame[name] = pd.to_numeric(frame[name])

        labels = dataset.labels
        categories = list(labels.cat.categories) if isinstance(labels.dtype, pd.CategoricalDtype) \
            else [dataset.negative_label, dataset.positive_label]
        frame[dataset.label_column] = pd.Categorical(
            np.where(np.asarray(y_res) == 1, dataset.positive_label, dataset.negative_label),
            categories=categories
        )

        result = dataset.replace_frame(frame, schema=schema)

        self.stats = {
            'before': dataset.class_counts(),
            'after': result.class_counts(),
            'synthetic_records': n_synthetic,
            'majority_kept': n_majority_kept,
            'over_sample_pct': self.over_sample_pct,
            'under_sample_pct': self.under_sample_pct,
        }

        if self.verbose:
            print(f"\n   Before: {self.stats['before']}")
            print(f"   Synthetic minority records: {n_synthetic}")
            print(f"   Majority records kept: {n_majority_kept}")
            print(f"   After: {self.stats['after']}")

        return result
