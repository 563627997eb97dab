"""
End-to-end orchestration of the two pipelines:

- AttritionPipeline:
  clean -> split -> select features -> resample (train only) -> train -> evaluate
- TextSentimentPipeline:
  split -> normalize -> vectorize -> (sentiment score) -> train -> evaluate

Each stage receives the previous stage's output and returns a new value; a
failing stage aborts the run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from . import config
from .cleaner import Cleaner
from .data_splitter import DataSplitter
from .evaluator import EvaluationReport, Evaluator
from .feature_selector import FeatureSelector
from .resampler import Resampler
from .schema import Dataset, FeatureSchema, FeatureType
from .sentiment import SentimentScorer
from .trainer import ModelTrainer
from .transformers import TextNormalizer
from .vectorizer import TermMatrix, Vectorizer


@dataclass
class PipelineResult:
    reports: Dict[str, EvaluationReport]
    comparison: pd.DataFrame
    train: Dataset
    test: Dataset
    trainers: Dict[str, ModelTrainer] = field(default_factory=dict)
    dropped_features: List[str] = field(default_factory=list)
    selected_features: List[str] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)


def _train_and_evaluate(
    models: Sequence[str],
    trainer_params: Dict[str, Any],
    train: Dataset,
    test: Dataset,
    evaluator: Evaluator,
    verbose: bool
) -> Dict[str, ModelTrainer]:
    trainers = {}
    for name in models:
        trainer = ModelTrainer(classifier_name=name, verbose=verbose, **trainer_params)
        trainer.fit(train)
        evaluator.evaluate(name, trainer, test)
        trainers[name] = trainer
    return trainers


def _save(output_dir: Optional[Union[str, Path]], trainers: Dict[str, ModelTrainer], evaluator: Evaluator) -> None:
    if output_dir is None:
        return
    output_dir = Path(output_dir)
    for trainer in trainers.values():
        trainer.save(output_dir / 'models')
    evaluator.save_report(output_dir / 'reports')


class AttritionPipeline:
    """Tabular attrition prediction with several model families."""

    def __init__(
        self,
        models: Optional[Sequence[str]] = None,
        cleaner: Optional[Cleaner] = None,
        splitter: Optional[DataSplitter] = None,
        selector: Optional[FeatureSelector] = None,
        resampler: Optional[Resampler] = None,
        evaluator: Optional[Evaluator] = None,
        trainer_params: Optional[Dict[str, Any]] = None,
        select_features: bool = True,
        resample: bool = True,
        output_dir: Optional[Union[str, Path]] = None,
        verbose: bool = True
    ):
        """
        Args:
            models: Model families to train (default: config.DEFAULT_MODELS)
            cleaner, splitter, selector, resampler, evaluator: Stage
                instances; defaults are built from config
            trainer_params: Keyword arguments for every ModelTrainer
            select_features: Run variable-importance selection
            resample: Rebalance the training split
            output_dir: Save models and reports here when given
            verbose: Print progress
        """
        self.models = list(models or config.DEFAULT_MODELS)
        self.cleaner = cleaner or Cleaner(verbose=verbose)
        self.splitter = splitter or DataSplitter(verbose=verbose)
        self.selector = selector or FeatureSelector(verbose=verbose)
        self.resampler = resampler or Resampler(verbose=verbose)
        self.evaluator = evaluator
        self.trainer_params = dict(trainer_params or {})
        self.select_features = select_features
        self.resample = resample
        self.output_dir = output_dir
        self.verbose = verbose

    def run(self, dataset: Dataset) -> PipelineResult:
        """
        Run the pipeline on a loaded Dataset.

        Returns:
            PipelineResult with one report per model
        """
        evaluator = self.evaluator or Evaluator(positive_label=dataset.positive_label, verbose=self.verbose)

        cleaned = self.cleaner.clean(dataset)
        train, test = self.splitter.split(cleaned)

        selected = train.schema.names
        if self.select_features:
            self.selector.fit(train)
            train = self.selector.transform(train)
            test = self.selector.transform(test)
            selected = list(self.selector.selected_features_)

        if self.resample:
            train = self.resampler.resample(train)

        trainers = _train_and_evaluate(self.models, self.trainer_params, train, test, evaluator, self.verbose)
        comparison = evaluator.compare([evaluator.reports[m] for m in self.models])

        if self.verbose:
            print(f"\n{'=' * 60}")
            print(" MODEL COMPARISON")
            print(f"{'=' * 60}")
            print(f"\n{comparison.round(4)}")

        _save(self.output_dir, trainers, evaluator)

        return PipelineResult(
            reports={m: evaluator.reports[m] for m in self.models},
            comparison=comparison,
            train=train,
            test=test,
            trainers=trainers,
            dropped_features=list(self.cleaner.dropped_features),
            selected_features=selected,
            stats={
                'clean': self.cleaner.stats,
                'split': self.splitter.stats,
                'selection': self.selector.stats if self.select_features else {},
                'resample': self.resampler.stats if self.resample else {},
            }
        )


class TextSentimentPipeline:
    """Attrition prediction from review text, optionally with a sentiment feature."""

    def __init__(
        self,
        models: Optional[Sequence[str]] = None,
        normalizer: Optional[TextNormalizer] = None,
        vectorizer: Optional[Vectorizer] = None,
        scorer: Optional[SentimentScorer] = None,
        splitter: Optional[DataSplitter] = None,
        evaluator: Optional[Evaluator] = None,
        trainer_params: Optional[Dict[str, Any]] = None,
        language_column: Optional[str] = None,
        term_prefix: str = 'term_',
        output_dir: Optional[Union[str, Path]] = None,
        verbose: bool = True
    ):
        """
        Args:
            models: Model families to train (default: random forest)
            normalizer: TextNormalizer (default: English nltk stop words)
            vectorizer: Vectorizer (default: config weighting and sparsity)
            scorer: SentimentScorer adding a sentiment feature; None skips it
            splitter, evaluator: Stage instances
            trainer_params: Keyword arguments for every ModelTrainer
            language_column: Column with per-document language tags
            term_prefix: Prefix of term feature names
            output_dir: Save models and reports here when given
            verbose: Print progress
        """
        self.models = list(models or ['random_forest'])
        self.normalizer = normalizer or TextNormalizer()
        self.vectorizer = vectorizer or Vectorizer(verbose=verbose)
        self.scorer = scorer
        self.splitter = splitter or DataSplitter(verbose=verbose)
        self.evaluator = evaluator
        self.trainer_params = dict(trainer_params or {})
        self.language_column = language_column
        self.term_prefix = term_prefix
        self.output_dir = output_dir
        self.verbose = verbose

    def _languages(self, dataset: Dataset) -> Optional[List[str]]:
        if self.language_column is None:
            return None
        dataset.schema.require(self.language_column)
        return [str(v) for v in dataset.frame[self.language_column]]

    def _term_dataset(self, source: Dataset, terms: TermMatrix) -> Dataset:
        frame = terms.to_frame(index=source.frame.index, prefix=self.term_prefix)
        frame[source.label_column] = source.labels
        schema = FeatureSchema(types={c: FeatureType.NUMERIC for c in frame.columns if c != source.label_column})
        return Dataset(
            frame=frame,
            schema=schema,
            label_column=source.label_column,
            positive_label=source.positive_label
        )

    def _with_sentiment(self, features: Dataset, source: Dataset) -> Dataset:
        return self.scorer.add_scores(features, corpus=source.corpus())

    def run(self, dataset: Dataset) -> PipelineResult:
        """
        Run the pipeline on a loaded text Dataset.

        Returns:
            PipelineResult with one report per model
        """
        evaluator = self.evaluator or Evaluator(positive_label=dataset.positive_label, verbose=self.verbose)

        train_source, test_source = self.splitter.split(dataset)

        if self.verbose:
            print(f"\n{'=' * 60}")
            print(f" TEXT NORMALIZATION (strategy: {self.normalizer.strategy})")
            print(f"{'=' * 60}")

        self.normalizer.fit()
        train_corpus = self.normalizer.normalize_corpus(train_source.corpus(), self._languages(train_source))
        test_corpus = self.normalizer.normalize_corpus(test_source.corpus(), self._languages(test_source))

        train_terms = self.vectorizer.build(train_corpus)
        test_terms = self.vectorizer.transform(test_corpus)

        train = self._term_dataset(train_source, train_terms)
        test = self._term_dataset(test_source, test_terms)
        if self.scorer is not None:
            train = self._with_sentiment(train, train_source)
            test = self._with_sentiment(test, test_source)

        trainers = _train_and_evaluate(self.models, self.trainer_params, train, test, evaluator, self.verbose)
        comparison = evaluator.compare([evaluator.reports[m] for m in self.models])

        _save(self.output_dir, trainers, evaluator)

        return PipelineResult(
            reports={m: evaluator.reports[m] for m in self.models},
            comparison=comparison,
            train=train,
            test=test,
            trainers=trainers,
            selected_features=train.schema.names,
            stats={
                'split': self.splitter.stats,
                'vectorize': self.vectorizer.stats,
                'sentiment': self.scorer.stats if self.scorer is not None else {},
            }
        )
