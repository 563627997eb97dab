"""
Variable-importance feature selection for mixed numeric/categorical data.
"""

from typing import Any, Dict, List, Optional

import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.pipeline import Pipeline

from . import config
from .exceptions import SchemaError, SelectionError
from .pipeline_builder import build_preprocessor, feature_sources
from .schema import Dataset, FeatureType


class FeatureSelector:
    """
    Ranks features by random-forest importance and keeps all but the
    `drop_count` least important ones.

    Importance of a categorical feature is the sum over its one-hot columns.
    Ties keep the original column order.
    """

    def __init__(
        self,
        drop_count: int = config.DROP_COUNT,
        n_estimators: int = config.IMPORTANCE_N_ESTIMATORS,
        random_state: int = config.RANDOM_STATE,
        verbose: bool = True
    ):
        self.drop_count = drop_count
        self.n_estimators = n_estimators
        self.random_state = random_state
        self.verbose = verbose

        self.importances_: Optional[pd.Series] = None
        self.selected_features_: Optional[List[str]] = None
        self.dropped_features_: List[str] = []
        self.stats: Dict[str, Any] = {}

    def fit(self, dataset: Dataset) -> 'FeatureSelector':
        """
        Fit the importance model on the full feature set.

        Args:
            dataset: Cleaned training Dataset

        Returns:
            self
        """
        if self.verbose:
            print(f"\n{'=' * 60}")
            print(" FEATURE SELECTION (variable importance)")
            print(f"{'=' * 60}")

        schema = dataset.schema
        text_features = schema.names_of(FeatureType.TEXT)
        if text_features:
            raise SchemaError(
                'Text features must be vectorized before feature selection',
                stage='feature_selection', context={'features': text_features}
            )

        n_features = len(schema)
        keep = n_features - self.drop_count
        if self.drop_count < 0 or keep < 2:
            raise SelectionError(
                'Fewer than 2 features would remain',
                context={'n_features': n_features, 'drop_count': self.drop_count}
            )

        model = Pipeline([
            ('preprocess', build_preprocessor(schema, scale=False)),
            ('classifier', RandomForestClassifier(
                n_estimators=self.n_estimators,
                random_state=self.random_state,
                n_jobs=-1
            )),
        ])
        model.fit(dataset.features, dataset.y)

        sources = feature_sources(model.named_steps['preprocess'])
        raw = pd.Series(model.named_steps['classifier'].feature_importances_, index=sources)
        importances = raw.groupby(level=0, sort=False).sum().reindex(schema.names, fill_value=0.0)

        # mergesort is stable: equal importances keep column order
        ranked = importances.sort_values(ascending=False, kind='mergesort')
        kept = set(ranked.index[:keep])

        self.importances_ = ranked
        self.selected_features_ = [n for n in schema.names if n in kept]
        self.dropped_features_ = [n for n in ranked.index[keep:]]
        self.stats = {
            'n_features': n_features,
            'n_selected': len(self.selected_features_),
            'dropped': self.dropped_features_,
        }

        if self.verbose:
            print(f"\n   Features ranked: {n_features}")
            for name, score in ranked.items():
                print(f"     {name}: {score:.4f}")
            print(f"\n   Dropped (least important): {self.dropped_features_}")

        return self

    def transform(self, dataset: Dataset) -> Dataset:
        """Restrict a Dataset to the selected features plus the label."""
        if self.selected_features_ is None:
            raise SelectionError('FeatureSelector has not been fitted')

        selected = dataset.schema.require(*self.selected_features_)
        frame = dataset.frame[selected + [dataset.label_column]].copy()
        return dataset.replace_frame(frame, schema=dataset.schema.subset(selected))

    def fit_transform(self, dataset: Dataset) -> Dataset:
        return self.fit(dataset).transform(dataset)
