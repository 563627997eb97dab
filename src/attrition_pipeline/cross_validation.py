"""
Resampling schemes used for hyperparameter selection: repeated stratified
k-fold or stratified bootstrap with out-of-bag validation.
"""

from typing import Iterator, Optional, Tuple

import numpy as np
from sklearn.model_selection import RepeatedStratifiedKFold

from . import config


class BootstrapSplit:
    """
    sklearn-compatible splitter drawing bootstrap training sets.

    Each draw samples every class with replacement up to its own size, and
    validates on the out-of-bag rows. Draws whose out-of-bag set lacks a class
    are redrawn, so ROC-AUC is always defined.
    """

    def __init__(
        self,
        n_bootstrap: int = config.N_BOOTSTRAP,
        random_state: Optional[int] = config.RANDOM_STATE,
        max_attempts: int = 100
    ):
        self.n_bootstrap = n_bootstrap
        self.random_state = random_state
        self.max_attempts = max_attempts

    def get_n_splits(self, X=None, y=None, groups=None) -> int:
        return self.n_bootstrap

    def split(self, X, y=None, groups=None) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        n = len(X)
        y = np.zeros(n, dtype=int) if y is None else np.asarray(y)
        classes = np.unique(y)
        by_class = [np.flatnonzero(y == c) for c in classes]
        rng = np.random.default_rng(self.random_state)

        produced = 0
        attempts = 0
        while produced < self.n_bootstrap:
            attempts += 1
            if attempts > self.max_attempts * self.n_bootstrap:
                raise ValueError('Could not draw bootstrap samples with both classes out of bag')

            train = np.concatenate([rng.choice(idx, size=len(idx), replace=True) for idx in by_class])
            oob = np.setdiff1d(np.arange(n), train)
            if len(np.unique(y[oob])) < len(classes):
                continue

            produced += 1
            yield np.sort(train), oob


def make_cv(
    scheme: str = config.CV_SCHEME,
    n_folds: int = config.N_FOLDS,
    n_repeats: int = config.N_REPEATS,
    n_bootstrap: int = config.N_BOOTSTRAP,
    random_state: Optional[int] = config.RANDOM_STATE
):
    """
    Build the configured resampling scheme.

    Args:
        scheme: 'repeated_kfold' or 'bootstrap'
        n_folds: Folds per repeat
        n_repeats: Number of k-fold repeats
        n_bootstrap: Number of bootstrap draws
        random_state: Seed

    Returns:
        A splitter accepted by sklearn's model selection tools
    """
    if scheme == 'repeated_kfold':
        return RepeatedStratifiedKFold(
            n_splits=n_folds, n_repeats=n_repeats, random_state=random_state
        )
    if scheme == 'bootstrap':
        return BootstrapSplit(n_bootstrap=n_bootstrap, random_state=random_state)
    raise ValueError(f"Unknown cross-validation scheme: {scheme}")
