"""
Example: Permutation Feature Importance

This example demonstrates PermutationImportance on synthetic regression
and classification tasks, and compares score kinds.
"""

import numpy as np
from sklearn.ensemble import RandomForestRegressor, RandomForestClassifier
from sklearn.datasets import make_classification
from sklearn.model_selection import train_test_split

from perm_importance import PermutationImportance
from perm_importance.reporting import print_importances
from perm_importance.utils import compare_with_sklearn, generate_friedman_data


def example_regression():
    """Permutation importance on the Friedman benchmark."""
    print("=" * 60)
    print("Example 1: Regression Task (Friedman function)")
    print("=" * 60)

    # Features 0-4 are informative, 5-9 are noise
    X, y = generate_friedman_data(n=1000, p=10, sigma_epsilon=1.0, random_state=42)
    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=0.3, random_state=42
    )

    print("\nTraining Random Forest Regressor...")
    model = RandomForestRegressor(n_estimators=100, random_state=42)
    model.fit(X_train, y_train)
    print(f"Test R²: {model.score(X_test, y_test):.4f}")

    pi = PermutationImportance(score_kind='mae', trial_count=20, random_state=0, n_jobs=-1)
    result = pi.fit(model, X_test, y_test)
    print_importances(result, title="MAE importances")

    print("Top 5 Features:")
    for idx, value in pi.get_top_features(n=5):
        print(f"  Feature {idx}: {value:.4f}")

    # Same seed, same answer
    again = pi.fit(model, X_test, y_test)
    max_diff = np.max(np.abs(result.importances_mean - again.importances_mean))
    print(f"\nMaximum difference between two seeded runs: {max_diff:.10f}")


def example_classification():
    """Accuracy-based importance for a classifier."""
    print("\n\n")
    print("=" * 60)
    print("Example 2: Classification Task")
    print("=" * 60)

    X, y = make_classification(
        n_samples=1000,
        n_features=8,
        n_informative=4,
        n_redundant=0,
        random_state=42
    )
    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=0.3, random_state=42
    )

    model = RandomForestClassifier(n_estimators=100, random_state=42)
    model.fit(X_train, y_train)
    print(f"Test Accuracy: {model.score(X_test, y_test):.4f}")

    pi = PermutationImportance(score_kind='accuracy', trial_count=20, rescale=True, random_state=0)
    result = pi.fit(model, X_test, y_test, feature_names=[f"x{i}" for i in range(8)])
    print_importances(result, title="Rescaled accuracy importances")
    print(f"Fully permuted accuracy: {result.permutation_score:.4f}")


def example_different_metrics():
    """Compare score kinds, and compare with scikit-learn."""
    print("\n\n")
    print("=" * 60)
    print("Example 3: Comparing Score Kinds")
    print("=" * 60)

    X, y = generate_friedman_data(n=500, p=8, random_state=1)
    model = RandomForestRegressor(n_estimators=50, random_state=42)
    model.fit(X, y)

    kinds = ['mae', 'mse', 'rmse', 'smape']
    results = {}
    for kind in kinds:
        pi = PermutationImportance(score_kind=kind, trial_count=10, rescale=True, random_state=0)
        results[kind] = pi.fit(model, X, y).importances_mean

    print("\nRescaled Feature Importances by Score Kind:")
    print(f"{'Feature':<10} " + " ".join(f"{k.upper():<10}" for k in kinds))
    print("-" * 54)
    for i in range(X.shape[1]):
        print(f"Feature {i:<2} " + " ".join(f"{results[k][i]:>10.4f}" for k in kinds))

    comparison = compare_with_sklearn(model, X, y, score_kind='mse', trial_count=10)
    print("\nAgreement with sklearn.inspection.permutation_importance (MSE):")
    print(f"  Pearson:  {comparison['pearson']:.4f}")
    print(f"  Spearman: {comparison['spearman']:.4f}")
    print(f"  Time (ours / sklearn): {comparison['our_time']:.3f}s / {comparison['sklearn_time']:.3f}s")


if __name__ == "__main__":
    example_regression()
    example_classification()
    example_different_metrics()

    print("\n\n" + "=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)
