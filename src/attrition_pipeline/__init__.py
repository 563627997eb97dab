"""
Employee attrition prediction pipelines.

This package provides:
- DataLoader: Load tabular and review files into typed Datasets
- Cleaner: Drop zero-variance/identifier features, settle feature types
- FeatureSelector: Variable-importance feature selection
- DataSplitter: Leakage-free stratified train/test split
- Resampler: SMOTE oversampling + majority undersampling (train only)
- ModelTrainer: SVM, random forest, gradient boosting, stacking
- Evaluator: Confusion matrix, accuracy, recall, precision per model
- TextNormalizer / Vectorizer: Review text to term matrix
- SentimentScorer: Sentiment feature from an external service
- AttritionPipeline / TextSentimentPipeline: End-to-end runs
"""

from .cleaner import Cleaner
from .data_loader import DataLoader
from .data_splitter import DataSplitter
from .evaluator import ConfusionMatrix, EvaluationReport, Evaluator
from .exceptions import (
    LoadError,
    PipelineError,
    ResampleError,
    SchemaError,
    SelectionError,
    ServiceError,
    TrainError,
)
from .feature_selector import FeatureSelector
from .pipeline_builder import ModelPipelineBuilder
from .pipelines import AttritionPipeline, PipelineResult, TextSentimentPipeline
from .resampler import Resampler
from .schema import Corpus, Dataset, FeatureSchema, FeatureType
from .sentiment import SentimentScorer
from .services import (
    HuggingFaceSentimentService,
    HuggingFaceTranslationService,
    RetryingService,
)
from .trainer import ModelTrainer
from .transformers import TextNormalizer
from .vectorizer import TermMatrix, Vectorizer

__version__ = '0.1.0'

__all__ = [
    'AttritionPipeline',
    'Cleaner',
    'ConfusionMatrix',
    'Corpus',
    'DataLoader',
    'DataSplitter',
    'Dataset',
    'EvaluationReport',
    'Evaluator',
    'FeatureSchema',
    'FeatureSelector',
    'FeatureType',
    'HuggingFaceSentimentService',
    'HuggingFaceTranslationService',
    'LoadError',
    'ModelPipelineBuilder',
    'ModelTrainer',
    'PipelineError',
    'PipelineResult',
    'ResampleError',
    'RetryingService',
    'SchemaError',
    'SelectionError',
    'SentimentScorer',
    'ServiceError',
    'TermMatrix',
    'TextNormalizer',
    'TextSentimentPipeline',
    'TrainError',
    'Vectorizer',
]
