# tests/test_models.py
"""
Tests for the model capability contract and adapters.
"""
import numpy as np
import pytest
from sklearn.linear_model import LinearRegression

from perm_importance.models import CallableModel, Model, as_model


class RowSumModel(Model):
    def predict(self, X):
        return X.sum(axis=1)


def double_first(X):
    return 2.0 * X[:, 0]


class TestModel:

    def test_abstract(self):
        with pytest.raises(TypeError):
            Model()

    def test_default_permuted_column_matches_copy(self):
        X = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
        values = np.array([6.0, 2.0, 4.0])
        X_expected = X.copy()
        X_expected[:, 1] = values

        result = RowSumModel().predict_with_permuted_column(X, 1, values)

        np.testing.assert_array_equal(result, RowSumModel().predict(X_expected))

    def test_default_permuted_column_leaves_input(self):
        X = np.array([[1.0, 2.0], [3.0, 4.0]])
        original = X.copy()
        RowSumModel().predict_with_permuted_column(X, 0, np.array([3.0, 1.0]))
        np.testing.assert_array_equal(X, original)


class TestCallableModel:

    def test_predict(self):
        model = CallableModel(double_first)
        X = np.array([[1.0, 5.0], [2.0, 7.0]])
        np.testing.assert_array_equal(model.predict(X), [2.0, 4.0])

    def test_inherits_permuted_column(self):
        model = CallableModel(double_first)
        X = np.array([[1.0, 5.0], [2.0, 7.0]])
        result = model.predict_with_permuted_column(X, 0, np.array([2.0, 1.0]))
        np.testing.assert_array_equal(result, [4.0, 2.0])

    def test_repr(self):
        assert repr(CallableModel(double_first)) == "CallableModel(double_first)"


class TestAsModel:

    def test_model_passthrough(self):
        model = RowSumModel()
        assert as_model(model) is model

    def test_estimator_passthrough(self):
        X = np.array([[0.0], [1.0], [2.0]])
        estimator = LinearRegression().fit(X, [0.0, 1.0, 2.0])
        assert as_model(estimator) is estimator

    def test_callable_wrapped(self):
        model = as_model(lambda X: X[:, 0])
        assert isinstance(model, CallableModel)
        np.testing.assert_array_equal(model.predict(np.array([[3.0, 1.0]])), [3.0])

    def test_invalid(self):
        with pytest.raises(TypeError, match="predict"):
            as_model(42)
