"""
Utility functions for permutation importance experiments.

This module provides helper functions for:
- Synthetic benchmark data with known informative features
- Comparison with scikit-learn's permutation_importance
- Small result comparison and formatting helpers
"""

import time
from typing import Optional, Tuple

import numpy as np
from scipy.stats import spearmanr
from sklearn.metrics import make_scorer

from .engine import ImportanceConfig, importance
from .scoring import ScoreKind, symmetric_mean_absolute_percentage_error


def friedman_function(X: np.ndarray) -> np.ndarray:
    """
    Compute the Friedman benchmark function.

    The function is: y = 10*sin(π*x1*x2) + 20*(x3 - 0.5)^2 + 10*x4 + 5*x5

    Only the first 5 features are used; remaining features are noise.

    Parameters
    ----------
    X : np.ndarray of shape (n_samples, n_features)
        Feature matrix with features in [0, 1]
        Must have at least 5 columns

    Returns
    -------
    y : np.ndarray of shape (n_samples,)
        Target values

    References
    ----------
    Friedman, J. H. (1991). "Multivariate adaptive regression splines."
    The Annals of Statistics, 19(1), 1-67.

    Examples
    --------
    >>> rng = np.random.RandomState(42)
    >>> X = rng.uniform(0, 1, size=(100, 10))
    >>> y = friedman_function(X)
    >>> y.shape
    (100,)
    """
    if X.shape[1] < 5:
        raise ValueError("X must have at least 5 features for Friedman function")

    x1, x2, x3, x4, x5 = X[:, 0], X[:, 1], X[:, 2], X[:, 3], X[:, 4]

    return (
        10 * np.sin(np.pi * x1 * x2) +
        20 * (x3 - 0.5) ** 2 +
        10 * x4 +
        5 * x5
    )


def generate_friedman_data(
    n: int,
    p: int,
    sigma_epsilon: float = 1.0,
    random_state: int = 42
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate uniform features with a Friedman function response.

    Parameters
    ----------
    n : int
        Number of samples
    p : int
        Number of features (must be >= 5; features 5.. are noise)
    sigma_epsilon : float, default=1.0
        Standard deviation of Gaussian noise added to the response
    random_state : int, default=42
        Random seed

    Returns
    -------
    X : np.ndarray of shape (n, p)
    y : np.ndarray of shape (n,)
    """
    if p < 5:
        raise ValueError("Friedman function requires at least 5 features")

    rng = np.random.RandomState(random_state)
    X = rng.uniform(0, 1, size=(n, p))
    y = friedman_function(X) + sigma_epsilon * rng.randn(n)
    return X, y


def generate_linear_data(
    n: int,
    p: int,
    sigma_epsilon: float = 1.0,
    rho: float = 0.0,
    random_state: int = 42
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Generate synthetic data with linear response.

    Creates data where y = X @ beta + noise. The first half of the features
    is informative, the second half has zero coefficients.

    Parameters
    ----------
    n : int
        Number of samples
    p : int
        Number of features
    sigma_epsilon : float, default=1.0
        Standard deviation of Gaussian noise
    rho : float, default=0.0
        Correlation between informative features (0 = independent)
    random_state : int, default=42
        Random seed

    Returns
    -------
    X : np.ndarray of shape (n, p)
        Feature matrix
    y : np.ndarray of shape (n,)
        Continuous target
    beta : np.ndarray of shape (p,)
        True coefficients (zero for noise features)
    """
    rng = np.random.RandomState(random_state)
    n_informative = p // 2

    if rho > 0:
        cov_matrix = np.eye(p)
        block = np.full((n_informative, n_informative), rho)
        np.fill_diagonal(block, 1.0)
        cov_matrix[:n_informative, :n_informative] = block
        X = rng.multivariate_normal(np.zeros(p), cov_matrix, size=n)
    else:
        X = rng.randn(n, p)

    beta = np.zeros(p)
    beta[:n_informative] = rng.randn(n_informative)

    y = X @ beta + sigma_epsilon * rng.randn(n)
    return X, y, beta


def sklearn_scoring(kind):
    """
    scikit-learn scoring equivalent to a score kind.

    Error metrics map to their ``neg_*`` scorers so that sklearn's
    importances (baseline - permuted) share the sign convention of this
    package.

    Parameters
    ----------
    kind : ScoreKind or str

    Returns
    -------
    scoring : str or callable
        Value for the ``scoring`` argument of sklearn functions
    """
    kind = ScoreKind.resolve(kind)
    if kind is ScoreKind.SMAPE:
        return make_scorer(symmetric_mean_absolute_percentage_error, greater_is_better=False)
    return {
        ScoreKind.MAE: 'neg_mean_absolute_error',
        ScoreKind.MSE: 'neg_mean_squared_error',
        ScoreKind.RMSE: 'neg_root_mean_squared_error',
        ScoreKind.ACCURACY: 'accuracy',
    }[kind]


def compare_with_sklearn(
    model,
    X: np.ndarray,
    y: np.ndarray,
    score_kind='mse',
    trial_count: int = 10,
    random_state: int = 42,
    n_jobs: Optional[int] = 1
) -> dict:
    """
    Benchmark this engine against sklearn's permutation_importance.

    Parameters
    ----------
    model : estimator
        Trained scikit-learn estimator with predict() method
    X : np.ndarray of shape (n_samples, n_features)
        Feature matrix
    y : np.ndarray of shape (n_samples,)
        Target values
    score_kind : ScoreKind or str, default='mse'
        Metric used by both implementations
    trial_count : int, default=10
        Number of repetitions per feature for both implementations
    random_state : int, default=42
        Random seed for both implementations
    n_jobs : int or None, default=1
        Parallel workers for both implementations

    Returns
    -------
    results : dict
        Dictionary containing:
        - 'sklearn_means': Mean importances from sklearn
        - 'sklearn_time': Time taken by sklearn (seconds)
        - 'our_means': Mean importances from this package
        - 'our_time': Time taken by this package (seconds)
        - 'pearson': Pearson correlation of the two mean vectors
        - 'spearman': Spearman rank correlation of the two mean vectors

    Examples
    --------
    >>> from sklearn.linear_model import LinearRegression
    >>> X, y, _ = generate_linear_data(n=500, p=6)
    >>> model = LinearRegression().fit(X, y)
    >>> results = compare_with_sklearn(model, X, y)
    >>> print(f"Correlation: {results['pearson']:.3f}")
    """
    from sklearn.inspection import permutation_importance

    start = time.time()
    sk_result = permutation_importance(
        model, X, y,
        scoring=sklearn_scoring(score_kind),
        n_repeats=trial_count,
        random_state=random_state,
        n_jobs=n_jobs
    )
    sklearn_time = time.time() - start

    config = ImportanceConfig(
        score_kind=score_kind,
        trial_count=trial_count,
        random_state=random_state,
        n_jobs=n_jobs
    )
    start = time.time()
    ours = importance(model, X, y, config)
    our_time = time.time() - start

    sklearn_means = sk_result.importances_mean
    our_means = ours.importances_mean

    if len(our_means) > 1:
        pearson = np.corrcoef(sklearn_means, our_means)[0, 1]
        spearman = spearmanr(sklearn_means, our_means).correlation
    else:
        pearson = spearman = 1.0 if np.allclose(sklearn_means, our_means) else 0.0

    return {
        'sklearn_means': sklearn_means,
        'sklearn_time': sklearn_time,
        'our_means': our_means,
        'our_time': our_time,
        'pearson': float(pearson),
        'spearman': float(spearman),
    }


def top_k_overlap(scores1: np.ndarray, scores2: np.ndarray, k: int = 5) -> int:
    """
    Count overlap in top-k features between two importance vectors.

    Returns
    -------
    overlap : int
        Number of features in both top-k sets (0 to k)
    """
    top_k_1 = set(np.argsort(scores1)[::-1][:k])
    top_k_2 = set(np.argsort(scores2)[::-1][:k])
    return len(top_k_1 & top_k_2)


def format_mean_std(mean: float, std: Optional[float], precision: int = 2) -> str:
    """
    Format mean ± std for table display.

    Returns
    -------
    formatted : str
        Formatted string like "0.48 ± 0.08", or just the mean if std is None
    """
    fmt = f"{{:.{precision}f}}"
    if std is None:
        return fmt.format(mean)
    return f"{fmt.format(mean)} ± {fmt.format(std)}"
