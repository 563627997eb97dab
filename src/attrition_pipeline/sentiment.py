"""
Adds a sentiment feature, scored by an external service, to a text Dataset.
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .exceptions import ServiceError
from .schema import Dataset, FeatureType
from .services import RetryingService


class SentimentScorer:
    """Scores every document and appends the scores as a numeric feature."""

    def __init__(
        self,
        service,
        column: str = 'sentiment',
        retry: bool = True,
        verbose: bool = True
    ):
        """
        Args:
            service: Object with score(text) -> float in [0, 1]
            column: Name of the feature to add
            retry: Wrap the service in RetryingService
            verbose: Print progress
        """
        self.service = RetryingService(service) if retry and not isinstance(service, RetryingService) \
            else service
        self.column = column
        self.verbose = verbose
        self.stats: Dict[str, Any] = {}

    def score_corpus(self, corpus: Sequence[str]) -> np.ndarray:
        scores: List[float] = []
        for position, text in enumerate(corpus):
            try:
                score = float(self.service.score(text))
            except ServiceError as exc:
                exc.context['document'] = position
                raise
            if not 0.0 <= score <= 1.0:
                raise ServiceError(
                    'Sentiment score outside [0, 1]',
                    context={'document': position, 'score': score}
                )
            scores.append(score)
        return np.asarray(scores, dtype=float)

    def add_scores(self, dataset: Dataset, corpus: Optional[Sequence[str]] = None) -> Dataset:
        """
        Append the sentiment feature.

        Args:
            dataset: Text Dataset
            corpus: Documents to score; defaults to the Dataset's raw text

        Returns:
            New Dataset with a numeric sentiment feature
        """
        corpus = dataset.corpus() if corpus is None else corpus
        if self.verbose:
            print(f"\n   Scoring sentiment for {len(corpus)} documents...")

        scores = self.score_corpus(corpus)
        frame = dataset.frame.copy()
        frame[self.column] = pd.Series(scores, index=frame.index)

        self.stats = {
            'documents': len(scores),
            'mean_score': float(scores.mean()) if len(scores) else None,
        }
        if self.verbose and len(scores):
            print(f"   Mean sentiment: {scores.mean():.3f}")

        return dataset.replace_frame(
            frame, schema=dataset.schema.with_feature(self.column, FeatureType.NUMERIC)
        )
