"""
Document-term matrix construction with sparsity pruning.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import sparse
from sklearn.feature_extraction.text import CountVectorizer, TfidfTransformer

from . import config
from .exceptions import PipelineError

WEIGHTINGS = ('tf', 'tfidf')


@dataclass(frozen=True)
class TermMatrix:
    """Rows follow corpus order; columns follow `vocabulary`."""

    matrix: sparse.csr_matrix
    vocabulary: Tuple[str, ...]
    weighting: str

    @property
    def shape(self) -> Tuple[int, int]:
        return self.matrix.shape

    def to_frame(self, index: Optional[Sequence] = None, prefix: str = '') -> pd.DataFrame:
        """Dense DataFrame view, one column per term."""
        return pd.DataFrame(
            self.matrix.toarray(),
            columns=[f"{prefix}{t}" for t in self.vocabulary],
            index=index
        )


class Vectorizer:
    """
    Builds a TermMatrix from a normalized corpus.

    Terms found in fewer than `min_doc_frac` of the documents are pruned
    before any TF-IDF weighting is applied.
    """

    def __init__(
        self,
        weighting: str = config.WEIGHTING,
        min_doc_frac: float = config.MIN_DOC_FRAC,
        verbose: bool = True
    ):
        if weighting not in WEIGHTINGS:
            raise ValueError(f"Unknown weighting: {weighting}. Available: {WEIGHTINGS}")
        if not 0.0 <= min_doc_frac <= 1.0:
            raise ValueError(f"min_doc_frac must be in [0, 1], got {min_doc_frac}")
        self.weighting = weighting
        self.min_doc_frac = min_doc_frac
        self.verbose = verbose

        self.vocabulary_: Optional[List[str]] = None
        self._counter: Optional[CountVectorizer] = None
        self._tfidf: Optional[TfidfTransformer] = None
        self.stats: Dict[str, Any] = {}

    @staticmethod
    def _counter_for(vocabulary=None) -> CountVectorizer:
        # Documents are already normalized: split on whitespace only
        return CountVectorizer(
            tokenizer=str.split,
            token_pattern=None,
            lowercase=False,
            vocabulary=vocabulary
        )

    def build(self, corpus: Sequence[str]) -> TermMatrix:
        """
        Build the vocabulary and matrix from scratch for this corpus.

        Args:
            corpus: Normalized documents

        Returns:
            TermMatrix with one row per document
        """
        if self.verbose:
            print(f"\n{'=' * 60}")
            print(f" VECTORIZING ({self.weighting})")
            print(f"{'=' * 60}")

        counter = self._counter_for()
        try:
            counts = counter.fit_transform(list(corpus))
        except ValueError as exc:
            raise PipelineError(
                f'Could not build vocabulary: {exc}', stage='vectorize',
                context={'documents': len(corpus)}
            ) from exc

        terms = counter.get_feature_names_out()
        doc_freq = np.asarray((counts > 0).sum(axis=0)).ravel()
        keep = np.flatnonzero(doc_freq >= self.min_doc_frac * len(corpus))
        if len(keep) == 0:
            raise PipelineError(
                'Sparsity pruning removed every term', stage='vectorize',
                context={'min_doc_frac': self.min_doc_frac, 'terms': len(terms)}
            )

        self.vocabulary_ = [str(terms[i]) for i in keep]
        self._counter = self._counter_for(self.vocabulary_)
        matrix = counts[:, keep].tocsr()

        self._tfidf = None
        if self.weighting == 'tfidf':
            self._tfidf = TfidfTransformer()
            matrix = self._tfidf.fit_transform(matrix).tocsr()

        self.stats = {
            'documents': len(corpus),
            'n_terms_before': len(terms),
            'n_terms_after': len(self.vocabulary_),
        }

        if self.verbose:
            print(f"\n   Documents: {len(corpus)}")
            print(f"   Terms before pruning: {len(terms)}")
            print(f"   Terms after pruning: {len(self.vocabulary_)}")

        return TermMatrix(matrix=matrix, vocabulary=tuple(self.vocabulary_), weighting=self.weighting)

    def transform(self, corpus: Sequence[str]) -> TermMatrix:
        """Map another corpus (e.g. the test split) onto the built vocabulary."""
        if self._counter is None:
            raise PipelineError('Vectorizer has not been built', stage='vectorize')

        matrix = self._counter.transform(list(corpus)).tocsr()
        if self._tfidf is not None:
            matrix = self._tfidf.transform(matrix).tocsr()
        return TermMatrix(matrix=matrix, vocabulary=tuple(self.vocabulary_), weighting=self.weighting)
