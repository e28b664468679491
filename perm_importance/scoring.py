"""
Score metrics and model evaluation.

This module defines the metrics used to measure predictive performance
and two evaluation paths:
- score(): predict on a full matrix
- score_with_indices(): predict as if one column were permuted by a
  vector of row indices, without building a permuted matrix when the
  model supports it
"""

from enum import Enum
from typing import Callable, Dict

import numpy as np

from .exceptions import (
    DegenerateMetricError,
    EmptyInputError,
    InvalidConfigurationError,
    LengthMismatchError,
)


ZERO_DIVISION_POLICIES = ('zero', 'raise')


class ScoreKind(Enum):
    """
    Metric used to compare predictions against targets.

    Members can be created from their string value, e.g.
    ``ScoreKind('smape')``.
    """

    MAE = 'mae'
    MSE = 'mse'
    RMSE = 'rmse'
    SMAPE = 'smape'
    ACCURACY = 'accuracy'

    @property
    def greater_is_better(self) -> bool:
        return self is ScoreKind.ACCURACY

    @property
    def ideal(self) -> float:
        """Best attainable score: 1.0 for accuracy, 0.0 for error metrics."""
        return 1.0 if self is ScoreKind.ACCURACY else 0.0

    @classmethod
    def resolve(cls, kind) -> "ScoreKind":
        """Convert a ``ScoreKind`` or its string value to a ``ScoreKind``."""
        if isinstance(kind, cls):
            return kind
        try:
            return cls(str(kind).lower())
        except ValueError:
            valid = ", ".join(repr(k.value) for k in cls)
            raise InvalidConfigurationError(
                f"score_kind must be one of {valid}, got {kind!r}"
            ) from None


def mean_absolute_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    return float(np.mean(np.abs(y_true - y_pred)))


def mean_squared_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    return float(np.mean((y_true - y_pred) ** 2))


def root_mean_squared_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def symmetric_mean_absolute_percentage_error(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    zero_division: str = 'zero'
) -> float:
    """
    Symmetric mean absolute percentage error on a 0-200 scale.

    Parameters
    ----------
    y_true : np.ndarray of shape (n_samples,)
        True values
    y_pred : np.ndarray of shape (n_samples,)
        Predicted values
    zero_division : {'zero', 'raise'}, default='zero'
        Handling of rows where both the true and predicted value are 0:
        - 'zero': the row contributes no error
        - 'raise': raise DegenerateMetricError

    Returns
    -------
    smape : float
        mean(2 * |t - p| / (|t| + |p|)) * 100

    Raises
    ------
    DegenerateMetricError
        If a 0/0 row is found and ``zero_division='raise'``.
    """
    if zero_division not in ZERO_DIVISION_POLICIES:
        raise InvalidConfigurationError(
            f"zero_division must be one of {ZERO_DIVISION_POLICIES}, "
            f"got {zero_division!r}"
        )

    numerator = 2.0 * np.abs(y_true - y_pred)
    denominator = np.abs(y_true) + np.abs(y_pred)
    degenerate = denominator == 0

    if degenerate.any() and zero_division == 'raise':
        raise DegenerateMetricError(
            f"SMAPE is undefined for {int(degenerate.sum())} row(s) where "
            f"both true and predicted values are 0"
        )

    # Degenerate rows have numerator 0 too, so dividing by 1 yields 0
    ratios = numerator / np.where(degenerate, 1.0, denominator)
    return float(np.mean(ratios) * 100.0)


def accuracy(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Fraction of exact matches (intended for label-valued predictions)."""
    return float(np.mean(y_true == y_pred))


METRICS: Dict[ScoreKind, Callable[[np.ndarray, np.ndarray], float]] = {
    ScoreKind.MAE: mean_absolute_error,
    ScoreKind.MSE: mean_squared_error,
    ScoreKind.RMSE: root_mean_squared_error,
    ScoreKind.SMAPE: symmetric_mean_absolute_percentage_error,
    ScoreKind.ACCURACY: accuracy,
}


def compute_metric(
    kind,
    y_true: np.ndarray,
    y_pred: np.ndarray,
    zero_division: str = 'zero'
) -> float:
    """Reduce ``(y_true, y_pred)`` through the metric named by ``kind``."""
    kind = ScoreKind.resolve(kind)
    if kind is ScoreKind.SMAPE:
        return symmetric_mean_absolute_percentage_error(
            y_true, y_pred, zero_division=zero_division
        )
    return METRICS[kind](y_true, y_pred)


def _check_targets(X: np.ndarray, y: np.ndarray) -> np.ndarray:
    if y.ndim == 2 and y.shape[1] == 1:
        y = y.ravel()
    if y.ndim != 1:
        raise ValueError(f"y must be 1D, got shape {y.shape}")
    if len(y) == 0:
        raise EmptyInputError("Target vector is empty")
    if len(y) != X.shape[0]:
        raise LengthMismatchError(
            f"Targets have length {len(y)} but X has {X.shape[0]} rows"
        )
    return y


def _as_predictions(predictions, n_samples: int) -> np.ndarray:
    predictions = np.asarray(predictions, dtype=float)
    if predictions.ndim == 2 and predictions.shape[1] == 1:
        predictions = predictions.ravel()
    if predictions.ndim != 1:
        raise ValueError(
            f"Model must return one prediction per row, got shape {predictions.shape}"
        )
    if len(predictions) != n_samples:
        raise LengthMismatchError(
            f"Model returned {len(predictions)} predictions for {n_samples} rows"
        )
    return predictions


def score(
    model,
    X: np.ndarray,
    y: np.ndarray,
    kind,
    zero_division: str = 'zero'
) -> float:
    """
    Score a model's predictions on ``X`` against ``y``.

    Parameters
    ----------
    model : object with predict()
        Model to evaluate
    X : np.ndarray of shape (n_samples, n_features)
        Feature matrix
    y : np.ndarray of shape (n_samples,) or (n_samples, 1)
        True target values
    kind : ScoreKind or str
        Metric to use
    zero_division : {'zero', 'raise'}, default='zero'
        SMAPE handling of 0/0 rows

    Returns
    -------
    score : float

    Raises
    ------
    EmptyInputError
        If ``y`` is empty.
    ValueError
        If ``y`` is not 1D or a single column.
    LengthMismatchError
        If ``len(y)`` differs from the number of rows of ``X`` or from the
        number of predictions.
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    y = _check_targets(X, y)

    y_pred = _as_predictions(model.predict(X), len(y))
    return compute_metric(kind, y, y_pred, zero_division=zero_division)


def score_with_indices(
    model,
    X: np.ndarray,
    indices: np.ndarray,
    y: np.ndarray,
    kind,
    column: int,
    zero_division: str = 'zero'
) -> float:
    """
    Score a model as if column ``column`` of ``X`` were permuted by ``indices``.

    Row ``r`` of the evaluated matrix holds ``X[indices[r], column]`` in
    the permuted column and its own values elsewhere. When the model has
    ``predict_with_permuted_column`` it is handed the base matrix and the
    gathered column; otherwise a private copy is built and passed to
    ``predict``. ``X`` is never modified.

    Parameters
    ----------
    model : object with predict()
        Model to evaluate
    X : np.ndarray of shape (n_samples, n_features)
        Base feature matrix (shared, read-only)
    indices : np.ndarray of shape (n_samples,)
        Permutation of row positions
    y : np.ndarray of shape (n_samples,)
        True target values
    kind : ScoreKind or str
        Metric to use
    column : int
        Index of the permuted column
    zero_division : {'zero', 'raise'}, default='zero'
        SMAPE handling of 0/0 rows

    Returns
    -------
    score : float

    Raises
    ------
    EmptyInputError, LengthMismatchError
        Same conditions as score(); also if ``indices`` does not have one
        entry per row.
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    y = _check_targets(X, y)

    indices = np.asarray(indices)
    if len(indices) != X.shape[0]:
        raise LengthMismatchError(
            f"indices have length {len(indices)} but X has {X.shape[0]} rows"
        )

    values = X[indices, column]
    if hasattr(model, 'predict_with_permuted_column'):
        predictions = model.predict_with_permuted_column(X, column, values)
    else:
        X_permuted = X.copy()
        X_permuted[:, column] = values
        predictions = model.predict(X_permuted)

    y_pred = _as_predictions(predictions, len(y))
    return compute_metric(kind, y, y_pred, zero_division=zero_division)
