"""
Permutation feature importance engine.

For every feature, the engine repeatedly shuffles that feature's column,
scores the model on the shuffled data and records how much the score
moved away from the unpermuted baseline. Trials are independent and are
evaluated in parallel, one worker per feature, each with its own random
generator.

Optionally, importances are rescaled against a fully permuted baseline
(every column shuffled independently), which puts results obtained with
different metrics or datasets on a comparable scale.

Rows are assumed exchangeable: a shuffle gives each row the value of
another row, which keeps the column's marginal distribution but breaks
any ordering (e.g. time) the rows may carry.
"""

import warnings
from dataclasses import dataclass, replace
from typing import List, Optional, Union

import numpy as np
from joblib import Parallel, delayed
from sklearn.utils import check_random_state

from .exceptions import EmptyInputError, InvalidConfigurationError
from .models import as_model
from .scoring import ZERO_DIVISION_POLICIES, ScoreKind, score, score_with_indices


_MAX_SEED = np.iinfo(np.int32).max


def _check_trial_count(trial_count) -> int:
    if trial_count is None:
        raise InvalidConfigurationError("trial_count is required")
    if isinstance(trial_count, bool) or not isinstance(trial_count, (int, np.integer)):
        raise InvalidConfigurationError(
            f"trial_count must be an integer, got {type(trial_count).__name__}"
        )
    if trial_count < 1:
        raise InvalidConfigurationError(
            f"trial_count must be positive, got {trial_count}"
        )
    return int(trial_count)


@dataclass
class ImportanceConfig:
    """
    Options for a single importance() call.

    Attributes
    ----------
    score_kind : ScoreKind or str
        Metric used to score the model (required)
    trial_count : int
        Number of permutation trials per feature (required, > 0)
    means_only : bool, default=False
        Keep only per-feature means; drop raw trial values and stds
    rescale : bool, default=False
        Divide importances by the distance between the ideal score and
        the fully permuted baseline score
    verbose : bool, default=False
        Print progress; has no effect on computed values
    random_state : int, RandomState or None, default=None
        Seed for reproducible permutations
    n_jobs : int or None, default=1
        Number of parallel workers (-1 uses all CPUs)
    zero_division : {'zero', 'raise'}, default='zero'
        SMAPE handling of rows where target and prediction are both 0
    """

    score_kind: Optional[Union[ScoreKind, str]] = None
    trial_count: Optional[int] = None
    means_only: bool = False
    rescale: bool = False
    verbose: bool = False
    random_state: Optional[Union[int, np.random.RandomState]] = None
    n_jobs: Optional[int] = 1
    zero_division: str = 'zero'

    def validate(self) -> "ImportanceConfig":
        """
        Check required options and return a normalized copy.

        Raises
        ------
        InvalidConfigurationError
            If score_kind or trial_count is missing or invalid, or if
            zero_division is not a known policy.
        """
        if self.score_kind is None:
            raise InvalidConfigurationError("score_kind is required")
        kind = ScoreKind.resolve(self.score_kind)
        trial_count = _check_trial_count(self.trial_count)

        if self.zero_division not in ZERO_DIVISION_POLICIES:
            raise InvalidConfigurationError(
                f"zero_division must be one of {ZERO_DIVISION_POLICIES}, "
                f"got {self.zero_division!r}"
            )

        return replace(self, score_kind=kind, trial_count=trial_count)


@dataclass
class ImportanceResult:
    """
    Per-feature permutation importances.

    Positive importances mean that shuffling the feature made the model
    worse, for every score kind.

    Attributes
    ----------
    importances_mean : np.ndarray of shape (n_features,)
        Mean importance over trials
    importances_std : np.ndarray of shape (n_features,) or None
        Population standard deviation over trials (None if means_only)
    importances : np.ndarray of shape (n_features, trial_count) or None
        Raw importance of every trial (None if means_only)
    baseline_score : float
        Score on the unpermuted data
    score_kind : ScoreKind
        Metric used
    trial_count : int
        Trials per feature
    permutation_score : float or None
        Mean score with every column shuffled (only when rescaled)
    scale_factor : float
        Divisor applied to raw importances (1.0 when not rescaled)
    feature_names : list of str or None
        Feature names if provided
    """

    importances_mean: np.ndarray
    importances_std: Optional[np.ndarray]
    importances: Optional[np.ndarray]
    baseline_score: float
    score_kind: ScoreKind
    trial_count: int
    permutation_score: Optional[float] = None
    scale_factor: float = 1.0
    feature_names: Optional[List[str]] = None

    @property
    def n_features(self) -> int:
        return len(self.importances_mean)

    def get_top_features(self, n: int = 5) -> list:
        """
        Get the n features with the largest mean importance.

        Returns
        -------
        top_features : list of tuple
            (feature_name or index, mean importance), most important first
        """
        n = min(n, self.n_features)
        top_idx = np.argsort(self.importances_mean)[::-1][:n]

        if self.feature_names is not None:
            return [(self.feature_names[i], self.importances_mean[i]) for i in top_idx]
        return [(int(i), self.importances_mean[i]) for i in top_idx]

    def to_dict(self) -> dict:
        """Convert to plain Python types for serialization."""
        def _list(a):
            return None if a is None else a.tolist()

        return {
            'importances_mean': _list(self.importances_mean),
            'importances_std': _list(self.importances_std),
            'importances': _list(self.importances),
            'baseline_score': self.baseline_score,
            'score_kind': self.score_kind.value,
            'trial_count': self.trial_count,
            'permutation_score': self.permutation_score,
            'scale_factor': self.scale_factor,
            'feature_names': self.feature_names,
        }


def _shuffle_columns(X: np.ndarray, rng: np.random.RandomState) -> np.ndarray:
    """Copy of X with every column permuted independently."""
    n_samples = X.shape[0]
    X_shuffled = np.empty_like(X)
    for j in range(X.shape[1]):
        X_shuffled[:, j] = X[rng.permutation(n_samples), j]
    return X_shuffled


def _trial_scores(
    model,
    X: np.ndarray,
    y: np.ndarray,
    kind: ScoreKind,
    column: Optional[int],
    trial_count: int,
    seed: int,
    zero_division: str
) -> np.ndarray:
    """
    Run trial_count shuffle trials and return their scores.

    ``column`` selects the shuffle scope: a column index shuffles only
    that column (scored through the index fast path), None shuffles every
    column. Each call owns its generator, so calls are safe to run in
    parallel on a shared X.
    """
    rng = np.random.RandomState(seed)
    n_samples = X.shape[0]
    scores = np.empty(trial_count)

    for t in range(trial_count):
        if column is None:
            scores[t] = score(model, _shuffle_columns(X, rng), y, kind, zero_division)
        else:
            indices = rng.permutation(n_samples)
            scores[t] = score_with_indices(model, X, indices, y, kind, column, zero_division)

    return scores


def _check_X(X) -> np.ndarray:
    X = np.asarray(X, dtype=float)
    if X.ndim != 2:
        raise ValueError(f"X must be 2D, got shape {X.shape}")
    if X.shape[1] == 0:
        raise ValueError("X must have at least one feature")
    return X


def _draw_seed(random_state) -> int:
    return int(check_random_state(random_state).randint(_MAX_SEED))


def permutation_scores(
    model,
    X: np.ndarray,
    y: np.ndarray,
    kind,
    column: int,
    trial_count: int,
    random_state=None,
    zero_division: str = 'zero'
) -> np.ndarray:
    """
    Score the model trial_count times with one column shuffled.

    Parameters
    ----------
    model : Model, estimator or callable
        Fitted model
    X : np.ndarray of shape (n_samples, n_features)
        Feature matrix (not modified)
    y : np.ndarray of shape (n_samples,)
        True target values
    kind : ScoreKind or str
        Metric to use
    column : int
        Index of the feature to shuffle
    trial_count : int
        Number of independent trials
    random_state : int, RandomState or None, default=None
        Seed for reproducibility
    zero_division : {'zero', 'raise'}, default='zero'
        SMAPE handling of 0/0 rows

    Returns
    -------
    scores : np.ndarray of shape (trial_count,)
        Score of every trial (not importances)

    Raises
    ------
    InvalidConfigurationError
        If trial_count is not a positive integer.
    """
    trial_count = _check_trial_count(trial_count)
    X = _check_X(X)
    if not 0 <= column < X.shape[1]:
        raise IndexError(f"column {column} out of range for {X.shape[1]} features")

    return _trial_scores(
        as_model(model), X, np.asarray(y, dtype=float), ScoreKind.resolve(kind),
        column, trial_count, _draw_seed(random_state), zero_division
    )


def full_permutation_score(
    model,
    X: np.ndarray,
    y: np.ndarray,
    kind,
    trial_count: int,
    random_state=None,
    zero_division: str = 'zero'
) -> float:
    """
    Mean score over trial_count trials with every column shuffled.

    This is the score of a model that can no longer use any feature, and
    serves as the reference point for rescaled importances.

    Returns
    -------
    permutation_score : float

    Raises
    ------
    InvalidConfigurationError
        If trial_count is not a positive integer.
    """
    trial_count = _check_trial_count(trial_count)
    X = _check_X(X)
    scores = _trial_scores(
        as_model(model), X, np.asarray(y, dtype=float), ScoreKind.resolve(kind),
        None, trial_count, _draw_seed(random_state), zero_division
    )
    return float(np.mean(scores))


def importance(
    model,
    X: np.ndarray,
    y: np.ndarray,
    config: ImportanceConfig,
    feature_names: Optional[List[str]] = None
) -> ImportanceResult:
    """
    Compute permutation importance for every feature of X.

    Parameters
    ----------
    model : Model, estimator or callable
        Fitted model with predict(), or a callable (X) -> predictions
    X : np.ndarray of shape (n_samples, n_features)
        Feature matrix (typically held-out data)
    y : np.ndarray of shape (n_samples,)
        True target values
    config : ImportanceConfig
        Metric, trial count and output options
    feature_names : list of str, optional
        Feature names for reference

    Returns
    -------
    result : ImportanceResult

    Raises
    ------
    InvalidConfigurationError
        If required options are missing or invalid.
    EmptyInputError
        If y is empty. This is checked before the shape of X.
    LengthMismatchError
        If the baseline cannot be scored; nothing is computed in that case.

    Notes
    -----
    Raw importance of trial t for feature i is
    ``direction * (baseline_score - trial_score[i, t])`` where direction
    is +1 for accuracy and -1 for error metrics, so positive values always
    mean the feature helps the model.

    With rescale, every raw value is divided by
    ``direction * (ideal - permutation_score)``; a factor of 0 is replaced
    by 1 with a RuntimeWarning.
    """
    config = config.validate()
    kind = config.score_kind
    trial_count = config.trial_count
    verbose = config.verbose

    model = as_model(model)
    y = np.asarray(y, dtype=float)
    if y.size == 0:
        raise EmptyInputError("Target vector is empty")
    X = _check_X(X)
    n_samples, n_features = X.shape

    if feature_names is not None and len(feature_names) != n_features:
        raise ValueError(
            f"Got {len(feature_names)} feature names for {n_features} features"
        )

    if verbose:
        print(f"Computing baseline {kind.value} score on {n_samples} samples...")
    baseline_score = score(model, X, y, kind, config.zero_division)
    if verbose:
        print(f"  Baseline score: {baseline_score:.6g}")

    # One seed per feature plus one for the fully permuted baseline
    seeds = check_random_state(config.random_state).randint(_MAX_SEED, size=n_features + 1)
    scopes = list(range(n_features))
    if config.rescale:
        scopes.append(None)

    if verbose:
        print(
            f"Running {trial_count} trials for {n_features} features "
            f"(n_jobs={config.n_jobs})..."
        )
    all_scores = Parallel(n_jobs=config.n_jobs, prefer="threads", verbose=10 if verbose else 0)(
        delayed(_trial_scores)(
            model, X, y, kind, column, trial_count,
            seeds[-1] if column is None else seeds[column],
            config.zero_division
        )
        for column in scopes
    )

    trial_scores = np.vstack(all_scores[:n_features])
    direction = 1.0 if kind.greater_is_better else -1.0
    importances = direction * (baseline_score - trial_scores)

    permutation_score = None
    scale_factor = 1.0
    if config.rescale:
        permutation_score = float(np.mean(all_scores[n_features]))
        scale_factor = direction * (kind.ideal - permutation_score)
        if scale_factor == 0:
            warnings.warn(
                f"Fully permuted {kind.value} score equals the ideal score "
                f"{kind.ideal}; importances are not rescaled",
                RuntimeWarning
            )
            scale_factor = 1.0
        importances = importances / scale_factor
        if verbose:
            print(f"  Permuted baseline: {permutation_score:.6g}, scale factor: {scale_factor:.6g}")

    importances_mean = importances.sum(axis=1) / trial_count

    if config.means_only:
        return ImportanceResult(
            importances_mean=importances_mean,
            importances_std=None,
            importances=None,
            baseline_score=baseline_score,
            score_kind=kind,
            trial_count=trial_count,
            permutation_score=permutation_score,
            scale_factor=scale_factor,
            feature_names=feature_names,
        )

    importances_std = np.sqrt(
        ((importances - importances_mean[:, np.newaxis]) ** 2).sum(axis=1) / trial_count
    )

    return ImportanceResult(
        importances_mean=importances_mean,
        importances_std=importances_std,
        importances=importances,
        baseline_score=baseline_score,
        score_kind=kind,
        trial_count=trial_count,
        permutation_score=permutation_score,
        scale_factor=scale_factor,
        feature_names=feature_names,
    )


class PermutationImportance:
    """
    Permutation feature importance with repeated random shuffles.

    Each feature is shuffled trial_count times; its importance is the
    average change of the chosen score relative to the unpermuted data.
    Positive values mean the model relies on the feature.

    Parameters
    ----------
    score_kind : {'mae', 'mse', 'rmse', 'smape', 'accuracy'} or ScoreKind
        Metric used to score the model:
        - 'mae': Mean Absolute Error
        - 'mse': Mean Squared Error
        - 'rmse': Root Mean Squared Error
        - 'smape': Symmetric Mean Absolute Percentage Error (0-200)
        - 'accuracy': Fraction of exact matches (classification)

    trial_count : int, default=10
        Number of random permutations per feature.

    means_only : bool, default=False
        If True, raw trial importances and standard deviations are not kept.

    rescale : bool, default=False
        If True, divide importances by the gap between the ideal score and
        the score obtained with every feature shuffled.

    random_state : int or None, default=None
        Random seed for reproducibility.

    n_jobs : int or None, default=1
        Number of features evaluated in parallel (-1 for all CPUs).

    verbose : bool, default=False
        Print progress information.

    zero_division : {'zero', 'raise'}, default='zero'
        SMAPE handling of rows where target and prediction are both 0.

    Attributes
    ----------
    importances_mean_ : np.ndarray of shape (n_features,)
        Mean importance per feature after calling fit()

    importances_std_ : np.ndarray of shape (n_features,) or None
        Standard deviation per feature

    importances_ : np.ndarray of shape (n_features, trial_count) or None
        Raw importance of every trial

    baseline_score_ : float
        Score on the unpermuted data

    result_ : ImportanceResult
        Full result of the last fit()

    n_features_ : int
        Number of features

    feature_names_ : list of str or None
        Feature names if provided during fit()

    Examples
    --------
    >>> from sklearn.linear_model import LinearRegression
    >>> from sklearn.datasets import make_regression
    >>> X, y = make_regression(n_samples=500, n_features=5,
    ...                        n_informative=2, random_state=42)
    >>> model = LinearRegression().fit(X, y)
    >>> pi = PermutationImportance(score_kind='mae', trial_count=20, random_state=0)
    >>> result = pi.fit(model, X, y)
    >>> top_idx, top_score = pi.get_top_features(n=1)[0]
    """

    def __init__(
        self,
        score_kind: Union[ScoreKind, str] = 'mae',
        trial_count: int = 10,
        means_only: bool = False,
        rescale: bool = False,
        random_state: Optional[int] = None,
        n_jobs: Optional[int] = 1,
        verbose: bool = False,
        zero_division: str = 'zero'
    ):
        self.config = ImportanceConfig(
            score_kind=score_kind,
            trial_count=trial_count,
            means_only=means_only,
            rescale=rescale,
            verbose=verbose,
            random_state=random_state,
            n_jobs=n_jobs,
            zero_division=zero_division,
        ).validate()

        # To be set during fit()
        self.result_ = None
        self.importances_ = None
        self.importances_mean_ = None
        self.importances_std_ = None
        self.baseline_score_ = None
        self.n_features_ = None
        self.feature_names_ = None

    def fit(
        self,
        model,
        X: np.ndarray,
        y: np.ndarray,
        feature_names: Optional[list] = None
    ) -> ImportanceResult:
        """
        Compute permutation importances.

        Parameters
        ----------
        model : estimator or callable
            Trained model with predict(), or a callable (X) -> predictions
        X : np.ndarray of shape (n_samples, n_features)
            Feature matrix (typically test set)
        y : np.ndarray of shape (n_samples,)
            True target values
        feature_names : list of str, optional
            Feature names for reference

        Returns
        -------
        result : ImportanceResult
        """
        result = importance(model, X, y, self.config, feature_names=feature_names)

        self.result_ = result
        self.importances_ = result.importances
        self.importances_mean_ = result.importances_mean
        self.importances_std_ = result.importances_std
        self.baseline_score_ = result.baseline_score
        self.n_features_ = result.n_features
        self.feature_names_ = feature_names
        return result

    def get_feature_importance(self, feature_idx: int) -> float:
        """Mean importance of a single feature."""
        if self.result_ is None:
            raise ValueError("Call fit() before accessing importances")
        return self.importances_mean_[feature_idx]

    def get_top_features(self, n: int = 5) -> list:
        """
        Get names (or indices) and mean importances of the top n features.

        Returns
        -------
        top_features : list of tuple
            (feature, importance) pairs, most important first
        """
        if self.result_ is None:
            raise ValueError("Call fit() before accessing importances")
        return self.result_.get_top_features(n)

    def __repr__(self) -> str:
        """String representation."""
        parts = [
            f"score_kind='{self.config.score_kind.value}'",
            f"trial_count={self.config.trial_count}",
        ]
        if self.config.means_only:
            parts.append("means_only=True")
        if self.config.rescale:
            parts.append("rescale=True")
        random_state = self.config.random_state
        if isinstance(random_state, (int, np.integer)) and not isinstance(random_state, bool):
            parts.append(f"random_state={random_state}")
        if self.config.n_jobs != 1:
            parts.append(f"n_jobs={self.config.n_jobs}")
        return f"PermutationImportance({', '.join(parts)})"
