"""
Trainer module for the attrition classifiers.
Handles hyperparameter search, cross-validation, final fitting and prediction
for every model family, with ROC-AUC as the selection metric.
"""

import json
import time
import warnings
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import joblib
import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.model_selection import GridSearchCV, cross_validate
from sklearn.pipeline import Pipeline

from . import config
from .cross_validation import make_cv
from .exceptions import SchemaError, TrainError
from .pipeline_builder import ModelPipelineBuilder
from .schema import Dataset, FeatureSchema, FeatureType


class ModelTrainer:
    """
    Fits and applies one model family:
    - Hyperparameter search with GridSearchCV (ROC-AUC) over the configured
      resampling scheme (repeated k-fold or bootstrap)
    - Cross-validation summaries on training data
    - Prediction with a schema check against the training features
    - Model saving and loading
    """

    def __init__(
        self,
        classifier_name: str = 'random_forest',
        cv_scheme: str = config.CV_SCHEME,
        n_folds: int = config.N_FOLDS,
        n_repeats: int = config.N_REPEATS,
        n_bootstrap: int = config.N_BOOTSTRAP,
        scoring: str = config.SCORING,
        random_state: int = config.RANDOM_STATE,
        classifier_params: Optional[Dict[str, Any]] = None,
        param_grid: Optional[Dict[str, list]] = None,
        tune: bool = True,
        strict: bool = True,
        n_jobs: Optional[int] = None,
        verbose: bool = True
    ):
        """
        Args:
            classifier_name: Model family (see ModelPipelineBuilder.CLASSIFIERS)
            cv_scheme: 'repeated_kfold' or 'bootstrap'
            n_folds: Folds per repeat (also used for stacking out-of-fold)
            n_repeats: k-fold repeats
            n_bootstrap: Bootstrap draws
            scoring: Metric optimized during the search
            random_state: Random seed for reproducibility
            classifier_params: Override classifier parameters
            param_grid: Override the default hyperparameter grid
            tune: Run the grid search; otherwise fit the defaults directly
            strict: Treat convergence warnings as training failures (TrainError)
            n_jobs: Parallel jobs for the search
            verbose: Print progress
        """
        self.classifier_name = classifier_name
        self.cv_scheme = cv_scheme
        self.n_folds = n_folds
        self.n_repeats = n_repeats
        self.n_bootstrap = n_bootstrap
        self.scoring = scoring
        self.random_state = random_state
        self.classifier_params = classifier_params
        self.param_grid = param_grid
        self.tune = tune
        self.strict = strict
        self.n_jobs = n_jobs
        self.verbose = verbose

        self.model: Optional[Pipeline] = None
        self.schema: Optional[FeatureSchema] = None
        self.labels: Dict[int, Any] = {}
        self.best_params_: Dict[str, Any] = {}
        self.cv_score_: Optional[float] = None
        self.cv_results: Optional[Dict[str, Any]] = None
        self.training_time: float = 0.0

    def _build_pipeline(self, schema: FeatureSchema) -> Pipeline:
        """Build a fresh pipeline instance."""
        builder = ModelPipelineBuilder(
            classifier_name=self.classifier_name,
            classifier_params=self.classifier_params,
            random_state=self.random_state,
            stacking_folds=self.n_folds
        )
        return builder.build(schema)

    def _cv(self):
        return make_cv(
            scheme=self.cv_scheme,
            n_folds=self.n_folds,
            n_repeats=self.n_repeats,
            n_bootstrap=self.n_bootstrap,
            random_state=self.random_state
        )

    def _grid(self) -> Dict[str, list]:
        if self.param_grid is not None:
            return self.param_grid
        return ModelPipelineBuilder.get_param_grid(self.classifier_name)

    @staticmethod
    def _check_trainable(dataset: Dataset) -> None:
        text_features = dataset.schema.names_of(FeatureType.TEXT)
        if text_features:
            raise SchemaError(
                'Text features must be vectorized before training',
                stage='train', context={'features': text_features}
            )
        if len(np.unique(dataset.y)) < 2:
            raise TrainError(
                'Training data must contain both classes',
                context={'class_counts': dataset.class_counts()}
            )

    def fit(self, dataset: Dataset, params: Optional[Dict[str, Any]] = None) -> Pipeline:
        """
        Train the final model on a training Dataset.

        Args:
            dataset: Training data (already resampled if needed)
            params: Fixed pipeline parameters; disables the grid search

        Returns:
            Trained pipeline
        """
        if self.verbose:
            print(f"\n{'=' * 60}")
            print(f" MODEL TRAINING: {self.classifier_name}")
            print(f"{'=' * 60}")
            print(f"\n   Training samples: {len(dataset)}")
            print(f"   Features: {len(dataset.schema)}")

        self._check_trainable(dataset)
        X, y = dataset.features, dataset.y
        pipeline = self._build_pipeline(dataset.schema)
        grid = self._grid()

        start_time = time.time()
        with warnings.catch_warnings():
            if self.strict:
                warnings.simplefilter('error', ConvergenceWarning)
            try:
                if params:
                    pipeline.set_params(**params)
                    pipeline.fit(X, y)
                    self.best_params_ = dict(params)
                    self.cv_score_ = None
                elif self.tune and grid:
                    search = GridSearchCV(
                        pipeline,
                        grid,
                        cv=self._cv(),
                        scoring=self.scoring,
                        n_jobs=self.n_jobs,
                        error_score='raise',
                        refit=True
                    )
                    search.fit(X, y)
                    pipeline = search.best_estimator_
                    self.best_params_ = dict(search.best_params_)
                    self.cv_score_ = float(search.best_score_)
                else:
                    pipeline.fit(X, y)
                    self.best_params_ = {}
                    self.cv_score_ = None
            except (ValueError, ConvergenceWarning, np.linalg.LinAlgError) as exc:
                raise TrainError(
                    f'Fitting failed: {exc}',
                    context={'classifier': self.classifier_name}
                ) from exc
        self.training_time = time.time() - start_time

        self.model = pipeline
        self.schema = dataset.schema.with_observed_levels(dataset.frame)
        self.labels = {0: dataset.negative_label, 1: dataset.positive_label}

        if self.verbose:
            print(f"\n   Training completed in {self.training_time:.1f}s")
            if self.best_params_:
                print(f"   Best params: {self.best_params_}")
            if self.cv_score_ is not None:
                print(f"   CV {self.scoring}: {self.cv_score_:.4f}")

        return pipeline

    def _resolve(self, model: Optional[Pipeline]) -> Pipeline:
        model = model if model is not None else self.model
        if model is None:
            raise TrainError('No trained model available', context={'classifier': self.classifier_name})
        return model

    def _features_for(self, dataset: Dataset) -> pd.DataFrame:
        if self.schema is not None:
            self.schema.check_compatible(dataset.frame, label_column=dataset.label_column)
            return dataset.frame[self.schema.names]
        return dataset.features

    def predict(self, model: Optional[Pipeline], dataset: Dataset) -> pd.Series:
        """
        Predict labels for a Dataset.

        Args:
            model: Trained pipeline (None uses the last model fitted here)
            dataset: Records to label; must match the training schema

        Returns:
            Series of labels in the training label vocabulary
        """
        model = self._resolve(model)
        encoded = model.predict(self._features_for(dataset))
        labels = self.labels or {0: dataset.negative_label, 1: dataset.positive_label}
        return pd.Series(
            pd.Categorical([labels[int(v)] for v in encoded], categories=[labels[0], labels[1]]),
            index=dataset.frame.index,
            name=dataset.label_column
        )

    def predict_proba(self, model: Optional[Pipeline], dataset: Dataset) -> np.ndarray:
        """Probability of the positive class for each record."""
        model = self._resolve(model)
        return model.predict_proba(self._features_for(dataset))[:, 1]

    def cross_validate(
        self,
        dataset: Dataset,
        scoring: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """
        Perform cross-validation on the training data.

        IMPORTANT: This should only be called with training data,
        never with test data!

        Args:
            dataset: Training Dataset
            scoring: List of scoring metrics

        Returns:
            Dictionary of CV results
        """
        if scoring is None:
            scoring = ['roc_auc', 'accuracy', 'recall', 'precision']

        self._check_trainable(dataset)

        if self.verbose:
            print(f"\n{'=' * 60}")
            print(f" CROSS-VALIDATION ({self.cv_scheme})")
            print(f"{'=' * 60}")
            print(f"\n   Classifier: {self.classifier_name}")
            print(f"   Training samples: {len(dataset)}")

        start_time = time.time()
        with warnings.catch_warnings():
            if self.strict:
                warnings.simplefilter('error', ConvergenceWarning)
            try:
                cv_scores = cross_validate(
                    self._build_pipeline(dataset.schema),
                    dataset.features,
                    dataset.y,
                    cv=self._cv(),
                    scoring=scoring,
                    return_train_score=True,
                    n_jobs=self.n_jobs,
                    error_score='raise'
                )
            except (ValueError, ConvergenceWarning) as exc:
                raise TrainError(
                    f'Cross-validation failed: {exc}',
                    context={'classifier': self.classifier_name}
                ) from exc
        cv_time = time.time() - start_time

        results = {
            'classifier': self.classifier_name,
            'cv_scheme': self.cv_scheme,
            'cv_time_seconds': cv_time,
            'n_samples': len(dataset),
            'scores': {}
        }
        for metric in scoring:
            test_scores = cv_scores[f'test_{metric}']
            train_scores = cv_scores[f'train_{metric}']
            results['scores'][metric] = {
                'cv_mean': float(np.mean(test_scores)),
                'cv_std': float(np.std(test_scores)),
                'train_mean': float(np.mean(train_scores)),
                'train_std': float(np.std(train_scores)),
            }

        self.cv_results = results

        if self.verbose:
            print(f"\n   Completed in {cv_time:.1f}s")
            for metric, scores in results['scores'].items():
                print(f"     {metric}:")
                print(f"       CV:    {scores['cv_mean']:.4f} (+/- {scores['cv_std']:.4f})")
                print(f"       Train: {scores['train_mean']:.4f} (+/- {scores['train_std']:.4f})")

        return results

    def save(self, output_dir: Union[str, Path]) -> Dict[str, Path]:
        """
        Save the trained pipeline and training metadata.

        Args:
            output_dir: Directory to save models

        Returns:
            Dictionary of saved file paths
        """
        model = self._resolve(None)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        saved_files = {}
        model_path = output_dir / f'{self.classifier_name}.pkl'
        joblib.dump(
            {
                'classifier': self.classifier_name,
                'model': model,
                'schema': self.schema,
                'labels': self.labels,
            },
            model_path
        )
        saved_files['model'] = model_path

        metadata = {
            'classifier': self.classifier_name,
            'cv_scheme': self.cv_scheme,
            'scoring': self.scoring,
            'cv_score': self.cv_score_,
            'best_params': self.best_params_,
            'training_time_seconds': self.training_time,
            'trained_at': datetime.now().isoformat(),
            'features': self.schema.names if self.schema else None,
            'labels': {str(k): v for k, v in self.labels.items()},
            'cv_results': self.cv_results,
        }
        metadata_path = output_dir / f'{self.classifier_name}_metadata.json'
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2, default=str)
        saved_files['metadata'] = metadata_path

        if self.verbose:
            print(f"Model saved to: {model_path}")
            print(f"Metadata saved to: {metadata_path}")

        return saved_files

    @classmethod
    def load(cls, model_path: Union[str, Path], **kwargs) -> 'ModelTrainer':
        """
        Load a saved model into a trainer ready for prediction.

        Args:
            model_path: Path of a .pkl written by save()

        Returns:
            ModelTrainer holding the loaded model
        """
        model_path = Path(model_path)
        if not model_path.exists():
            raise FileNotFoundError(f"Model not found at: {model_path}")

        bundle = joblib.load(model_path)
        trainer = cls(classifier_name=bundle['classifier'], **kwargs)
        trainer.model = bundle['model']
        trainer.schema = bundle['schema']
        trainer.labels = bundle['labels']
        return trainer
