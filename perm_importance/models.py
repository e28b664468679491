"""
Model capability consumed by the scoring module.

A model only has to expose ``predict(X)``. Models that can evaluate a
single permuted column without copying the whole matrix may override
``predict_with_permuted_column``.
"""

from abc import ABC, abstractmethod
from typing import Callable

import numpy as np


class Model(ABC):
    """
    Base class for models scored by permutation importance.

    Subclasses implement ``predict``. ``predict`` must be deterministic for
    a fixed input and safe to call from several threads at once.

    Examples
    --------
    >>> class RowSum(Model):
    ...     def predict(self, X):
    ...         return X.sum(axis=1)
    >>> RowSum().predict(np.array([[1.0, 2.0], [3.0, 4.0]]))
    array([3., 7.])
    """

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Predict one value per row of ``X``, in row order.

        Parameters
        ----------
        X : np.ndarray of shape (n_samples, n_features)
            Feature matrix

        Returns
        -------
        predictions : np.ndarray of shape (n_samples,)
        """

    def predict_with_permuted_column(
        self,
        X: np.ndarray,
        column: int,
        values: np.ndarray
    ) -> np.ndarray:
        """
        Predict as if column ``column`` of ``X`` held ``values``.

        The default materializes a private copy of ``X``. Overrides must
        return exactly what this default returns; ``X`` itself must never
        be modified.

        Parameters
        ----------
        X : np.ndarray of shape (n_samples, n_features)
            Base feature matrix (shared, read-only)
        column : int
            Index of the replaced column
        values : np.ndarray of shape (n_samples,)
            Replacement values in row order

        Returns
        -------
        predictions : np.ndarray of shape (n_samples,)
        """
        X_permuted = X.copy()
        X_permuted[:, column] = values
        return self.predict(X_permuted)


class CallableModel(Model):
    """Adapts a plain prediction function ``f(X) -> predictions``."""

    def __init__(self, predict_fn: Callable[[np.ndarray], np.ndarray]):
        self.predict_fn = predict_fn

    def predict(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self.predict_fn(X))

    def __repr__(self) -> str:
        name = getattr(self.predict_fn, '__name__', type(self.predict_fn).__name__)
        return f"CallableModel({name})"


def as_model(model):
    """
    Resolve ``model`` into something with a ``predict`` method.

    Parameters
    ----------
    model : Model, estimator or callable
        A ``Model`` subclass, any object with ``predict()`` (e.g. a fitted
        scikit-learn estimator), or a callable (X) -> predictions

    Returns
    -------
    model : object with ``predict()``
        Objects that already have ``predict`` are returned unchanged;
        callables are wrapped in ``CallableModel``.

    Raises
    ------
    TypeError
        If ``model`` has no ``predict`` method and is not callable.
    """
    if hasattr(model, 'predict'):
        return model
    if callable(model):
        return CallableModel(model)
    raise TypeError(
        f"model must have a predict() method or be callable, "
        f"got {type(model).__name__}"
    )
