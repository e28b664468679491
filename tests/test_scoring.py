# tests/test_scoring.py
"""
Tests for score metrics and model evaluation.

Tests cover:
- Metric values on perfect and imperfect predictions
- SMAPE handling of 0/0 rows
- Empty and mismatched inputs for every score kind
- Index-based scoring and its fast path
"""
import math

import numpy as np
import pytest

from perm_importance.exceptions import (
    DegenerateMetricError,
    EmptyInputError,
    InvalidConfigurationError,
    LengthMismatchError,
    PermutationImportanceError,
)
from perm_importance.models import Model
from perm_importance.scoring import (
    ScoreKind,
    accuracy,
    compute_metric,
    mean_absolute_error,
    mean_squared_error,
    root_mean_squared_error,
    score,
    score_with_indices,
    symmetric_mean_absolute_percentage_error,
)


ERROR_KINDS = [ScoreKind.MAE, ScoreKind.MSE, ScoreKind.RMSE, ScoreKind.SMAPE]


class FixedModel:
    """Returns the same predictions whatever the input."""

    def __init__(self, predictions):
        self.predictions = np.asarray(predictions, dtype=float)

    def predict(self, X):
        return self.predictions


class RowSumModel(Model):
    def predict(self, X):
        return X.sum(axis=1)


class PlainRowSumModel:
    """Row sum without the permuted-column fast path."""

    def predict(self, X):
        return X.sum(axis=1)


class SpyModel(RowSumModel):
    def __init__(self):
        self.fast_calls = 0

    def predict_with_permuted_column(self, X, column, values):
        self.fast_calls += 1
        return super().predict_with_permuted_column(X, column, values)


# =============================================================================
# ScoreKind
# =============================================================================

class TestScoreKind:

    def test_resolve_from_string(self):
        assert ScoreKind.resolve('mae') is ScoreKind.MAE
        assert ScoreKind.resolve('SMAPE') is ScoreKind.SMAPE
        assert ScoreKind.resolve(ScoreKind.RMSE) is ScoreKind.RMSE

    def test_resolve_unknown(self):
        with pytest.raises(InvalidConfigurationError, match="score_kind"):
            ScoreKind.resolve('r2')

    def test_ideal_and_direction(self):
        for kind in ERROR_KINDS:
            assert kind.ideal == 0.0
            assert not kind.greater_is_better
        assert ScoreKind.ACCURACY.ideal == 1.0
        assert ScoreKind.ACCURACY.greater_is_better


# =============================================================================
# Metric functions
# =============================================================================

class TestMetrics:

    y_true = np.array([1.0, 2.0, 3.0])
    y_pred = np.array([2.0, 2.0, 5.0])

    def test_mae(self):
        assert mean_absolute_error(self.y_true, self.y_pred) == pytest.approx(1.0)

    def test_mse(self):
        assert mean_squared_error(self.y_true, self.y_pred) == pytest.approx(5.0 / 3.0)

    def test_rmse(self):
        assert root_mean_squared_error(self.y_true, self.y_pred) == pytest.approx(math.sqrt(5.0 / 3.0))

    def test_smape(self):
        # (2/3 + 0 + 1/2) / 3 * 100
        expected = (2.0 / 3.0 + 0.5) / 3.0 * 100.0
        assert symmetric_mean_absolute_percentage_error(self.y_true, self.y_pred) == pytest.approx(expected)

    def test_accuracy(self):
        assert accuracy(self.y_true, self.y_pred) == pytest.approx(1.0 / 3.0)

    def test_compute_metric_dispatch(self):
        assert compute_metric('mae', self.y_true, self.y_pred) == pytest.approx(1.0)
        assert compute_metric(ScoreKind.ACCURACY, self.y_true, self.y_true) == 1.0


class TestSmapeZeroDivision:

    def test_zero_rows_contribute_nothing(self):
        y_true = np.array([0.0, 2.0])
        y_pred = np.array([0.0, 1.0])
        # Only the second row counts: 2 * 1 / 3, averaged over 2 rows
        expected = (2.0 / 3.0) / 2.0 * 100.0
        assert symmetric_mean_absolute_percentage_error(y_true, y_pred) == pytest.approx(expected)

    def test_all_zero_is_perfect(self):
        zeros = np.zeros(4)
        result = symmetric_mean_absolute_percentage_error(zeros, zeros)
        assert result == 0.0
        assert not np.isnan(result)

    def test_raise_policy(self):
        with pytest.raises(DegenerateMetricError, match="1 row"):
            symmetric_mean_absolute_percentage_error(
                np.array([0.0, 1.0]), np.array([0.0, 2.0]), zero_division='raise'
            )

    def test_raise_policy_without_zero_rows(self):
        value = symmetric_mean_absolute_percentage_error(
            np.array([1.0]), np.array([1.0]), zero_division='raise'
        )
        assert value == 0.0

    def test_unknown_policy(self):
        with pytest.raises(InvalidConfigurationError, match="zero_division"):
            symmetric_mean_absolute_percentage_error(
                np.array([1.0]), np.array([1.0]), zero_division='nan'
            )


# =============================================================================
# score()
# =============================================================================

class TestScore:

    X = np.zeros((3, 2))
    y = [0.4, 0.6, 0.8]

    @pytest.mark.parametrize("kind", ERROR_KINDS)
    def test_perfect_predictions_error_metrics(self, kind):
        model = FixedModel([0.4, 0.6, 0.8])
        assert score(model, self.X, self.y, kind) == 0.0

    def test_perfect_predictions_accuracy(self):
        model = FixedModel([0.4, 0.6, 0.8])
        assert score(model, self.X, self.y, ScoreKind.ACCURACY) == 1.0

    def test_string_kind(self):
        model = FixedModel([0.4, 0.6, 1.8])
        assert score(model, self.X, self.y, 'mae') == pytest.approx(1.0 / 3.0)

    @pytest.mark.parametrize("kind", list(ScoreKind))
    def test_empty_targets(self, kind):
        with pytest.raises(EmptyInputError):
            score(FixedModel([]), self.X, [], kind)

    @pytest.mark.parametrize("kind", list(ScoreKind))
    def test_empty_targets_empty_matrix(self, kind):
        with pytest.raises(EmptyInputError):
            score(FixedModel([]), np.zeros((0, 2)), [], kind)

    @pytest.mark.parametrize("kind", list(ScoreKind))
    def test_length_mismatch(self, kind):
        with pytest.raises(LengthMismatchError, match="3 rows"):
            score(FixedModel([1.0, 2.0]), self.X, [1.0, 2.0], kind)

    def test_wrong_number_of_predictions(self):
        with pytest.raises(LengthMismatchError, match="predictions"):
            score(FixedModel([1.0, 2.0]), self.X, self.y, 'mse')

    def test_column_vector_predictions(self):
        model = FixedModel([[0.4], [0.6], [0.8]])
        assert score(model, self.X, self.y, 'mae') == 0.0

    @pytest.mark.parametrize("kind", ERROR_KINDS)
    def test_column_vector_targets(self, kind):
        X = np.array([[1.0], [2.0], [3.0]])
        y = np.array([[1.0], [2.0], [3.0]])
        assert score(RowSumModel(), X, y, kind) == 0.0

    def test_column_vector_targets_imperfect(self):
        X = np.array([[1.0], [2.0], [3.0]])
        y = np.array([[1.0], [2.0], [6.0]])
        assert score(RowSumModel(), X, y, 'mae') == pytest.approx(1.0)

    def test_matrix_targets(self):
        with pytest.raises(ValueError, match="y must be 1D"):
            score(FixedModel([0.4, 0.6, 0.8]), self.X, np.zeros((3, 2)), 'mae')

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            score(FixedModel([]), self.X, [], 'mae')
        assert issubclass(LengthMismatchError, PermutationImportanceError)

    def test_row_sum_model(self):
        X = np.array([[1.0, 0.0, 3.0], [4.0, 0.0, 6.0], [7.0, 0.0, 9.0]])
        y = [4.0, 10.0, 16.0]
        assert score(RowSumModel(), X, y, 'smape') == 0.0


# =============================================================================
# score_with_indices()
# =============================================================================

class TestScoreWithIndices:

    X = np.array([[1.0, 10.0], [2.0, 20.0], [3.0, 30.0], [4.0, 40.0]])
    y = np.array([11.0, 22.0, 33.0, 44.0])
    indices = np.array([3, 0, 2, 1])

    def _manual_score(self, column, kind):
        X_perm = self.X.copy()
        X_perm[:, column] = self.X[self.indices, column]
        return score(PlainRowSumModel(), X_perm, self.y, kind)

    @pytest.mark.parametrize("kind", list(ScoreKind))
    @pytest.mark.parametrize("column", [0, 1])
    def test_matches_materialized_permutation(self, kind, column):
        expected = self._manual_score(column, kind)
        fast = score_with_indices(RowSumModel(), self.X, self.indices, self.y, kind, column)
        fallback = score_with_indices(PlainRowSumModel(), self.X, self.indices, self.y, kind, column)
        assert fast == pytest.approx(expected)
        assert fallback == pytest.approx(expected)

    def test_identity_permutation_equals_score(self):
        identity = np.arange(len(self.y))
        assert score_with_indices(RowSumModel(), self.X, identity, self.y, 'mse', 0) == \
            score(RowSumModel(), self.X, self.y, 'mse')

    def test_uses_fast_path(self):
        model = SpyModel()
        score_with_indices(model, self.X, self.indices, self.y, 'mae', 1)
        assert model.fast_calls == 1

    def test_does_not_modify_matrix(self):
        X = self.X.copy()
        score_with_indices(PlainRowSumModel(), X, self.indices, self.y, 'mae', 0)
        score_with_indices(RowSumModel(), X, self.indices, self.y, 'mae', 1)
        np.testing.assert_array_equal(X, self.X)

    def test_wrong_index_length(self):
        with pytest.raises(LengthMismatchError, match="indices"):
            score_with_indices(RowSumModel(), self.X, np.array([0, 1]), self.y, 'mae', 0)

    @pytest.mark.parametrize("kind", list(ScoreKind))
    def test_empty_targets(self, kind):
        with pytest.raises(EmptyInputError):
            score_with_indices(RowSumModel(), self.X, self.indices, [], kind, 0)

    def test_length_mismatch(self):
        with pytest.raises(LengthMismatchError):
            score_with_indices(RowSumModel(), self.X, self.indices, self.y[:3], 'mae', 0)

    def test_column_vector_targets(self):
        expected = score_with_indices(RowSumModel(), self.X, self.indices, self.y, 'mae', 0)
        got = score_with_indices(
            RowSumModel(), self.X, self.indices, self.y.reshape(-1, 1), 'mae', 0
        )
        assert got == expected
