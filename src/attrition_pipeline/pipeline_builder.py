"""
Builds sklearn Pipelines (preprocessing + classifier) for every model family
the trainer supports.
"""

from typing import Any, Dict, List, Optional

from sklearn.calibration import CalibratedClassifierCV
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import (
    GradientBoostingClassifier,
    RandomForestClassifier,
    StackingClassifier,
)
from sklearn.impute import SimpleImputer
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import StratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.svm import SVC

from . import config
from .schema import FeatureSchema, FeatureType


def build_preprocessor(schema: FeatureSchema, scale: bool = True) -> ColumnTransformer:
    """
    Column transformer for numeric and categorical features.

    Text features are never passed through; they must be vectorized first.
    """
    numeric = schema.names_of(FeatureType.NUMERIC)
    categorical = schema.names_of(FeatureType.CATEGORICAL)

    transformers = []
    if numeric:
        steps = [('impute', SimpleImputer(strategy='median'))]
        if scale:
            steps.append(('scale', StandardScaler()))
        transformers.append(('numeric', Pipeline(steps), numeric))
    if categorical:
        transformers.append((
            'categorical',
            OneHotEncoder(handle_unknown='ignore', sparse_output=False),
            categorical
        ))

    return ColumnTransformer(transformers=transformers, remainder='drop')


def feature_sources(preprocessor: ColumnTransformer) -> List[str]:
    """
    Source feature name of every output column of a fitted preprocessor,
    so importances of one-hot columns can be folded back onto their feature.
    """
    sources: List[str] = []
    for name, transformer, columns in preprocessor.transformers_:
        if name == 'numeric':
            sources.extend(columns)
        elif name == 'categorical':
            for column, categories in zip(columns, transformer.categories_):
                sources.extend([column] * len(categories))
    return sources


class ModelPipelineBuilder:
    """
    Builds a complete Pipeline:
    preprocess (impute/scale numeric, one-hot categorical) -> classifier
    """

    CLASSIFIERS = ['svm', 'random_forest', 'gradient_boosting', 'logistic_regression', 'stacking']

    PARAM_GRIDS: Dict[str, Dict[str, list]] = {
        'svm': {
            'classifier__estimator__C': [0.5, 1.0, 2.0],
            'classifier__estimator__gamma': ['scale', 0.01],
        },
        'random_forest': {
            'classifier__n_estimators': [300],
            'classifier__max_features': ['sqrt', 0.5],
        },
        'gradient_boosting': {
            'classifier__n_estimators': [100, 200],
            'classifier__learning_rate': [0.05, 0.1],
            'classifier__max_depth': [2, 3],
        },
        'logistic_regression': {
            'classifier__C': [0.1, 1.0, 10.0],
        },
        'stacking': {
            'classifier__final_estimator__C': [0.1, 1.0, 10.0],
        },
    }

    def __init__(
        self,
        classifier_name: str = 'random_forest',
        classifier_params: Optional[Dict[str, Any]] = None,
        random_state: int = config.RANDOM_STATE,
        stacking_folds: int = config.N_FOLDS
    ):
        """
        Args:
            classifier_name: One of CLASSIFIERS
            classifier_params: Override classifier constructor parameters
                (svm: prefix SVC parameters with estimator__, e.g. estimator__C)
            random_state: Seed for stochastic models and stacking folds
            stacking_folds: Folds used for the stacking out-of-fold predictions
        """
        if classifier_name not in self.CLASSIFIERS:
            raise ValueError(
                f"Unknown classifier: {classifier_name}. "
                f"Available: {self.CLASSIFIERS}"
            )
        self.classifier_name = classifier_name
        self.classifier_params = classifier_params or {}
        self.random_state = random_state
        self.stacking_folds = stacking_folds

    def _base_estimators(self) -> Dict[str, Any]:
        return {
            # Platt scaling over internal folds, one SVC refit on all rows
            'svm': CalibratedClassifierCV(SVC(kernel='rbf'), method='sigmoid', ensemble=False),
            'random_forest': RandomForestClassifier(
                n_estimators=300, random_state=self.random_state, n_jobs=-1
            ),
            'gradient_boosting': GradientBoostingClassifier(random_state=self.random_state),
            'logistic_regression': LogisticRegression(max_iter=1000),
        }

    def _build_classifier(self):
        if self.classifier_name == 'stacking':
            base = self._base_estimators()
            # Every base model sees the same folds, so their out-of-fold
            # probabilities line up row for row
            classifier = StackingClassifier(
                estimators=[(name, base[name]) for name in ('svm', 'random_forest', 'gradient_boosting')],
                final_estimator=LogisticRegression(max_iter=1000),
                cv=StratifiedKFold(
                    n_splits=self.stacking_folds, shuffle=True, random_state=self.random_state
                ),
                stack_method='predict_proba',
                passthrough=False
            )
        else:
            classifier = self._base_estimators()[self.classifier_name]

        if self.classifier_params:
            classifier.set_params(**self.classifier_params)
        return classifier

    def build(self, schema: FeatureSchema) -> Pipeline:
        """Build a fresh, unfitted pipeline for the given feature schema."""
        return Pipeline([
            ('preprocess', build_preprocessor(schema)),
            ('classifier', self._build_classifier()),
        ])

    @classmethod
    def get_param_grid(cls, classifier_name: str) -> Dict[str, list]:
        """Default hyperparameter grid of a classifier."""
        return dict(cls.PARAM_GRIDS.get(classifier_name, {}))

    @classmethod
    def list_available_classifiers(cls) -> List[str]:
        return list(cls.CLASSIFIERS)
