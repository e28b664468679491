"""
Permutation Feature Importance

Estimates how much each input feature contributes to a fitted model's
predictive performance by measuring how a score metric changes when that
feature's values are randomly shuffled across samples.

This package provides:
- importance(): functional entry point driven by an ImportanceConfig
- PermutationImportance: estimator-style wrapper with fit()
- score() / score_with_indices(): metric evaluation of a model
"""

from .engine import (
    ImportanceConfig,
    ImportanceResult,
    PermutationImportance,
    full_permutation_score,
    importance,
    permutation_scores,
)
from .exceptions import (
    DegenerateMetricError,
    EmptyInputError,
    InvalidConfigurationError,
    LengthMismatchError,
    PermutationImportanceError,
)
from .models import CallableModel, Model, as_model
from .scoring import ScoreKind, score, score_with_indices

__version__ = "0.1.0"

__all__ = [
    "importance",
    "permutation_scores",
    "full_permutation_score",
    "ImportanceConfig",
    "ImportanceResult",
    "PermutationImportance",
    "ScoreKind",
    "score",
    "score_with_indices",
    "Model",
    "CallableModel",
    "as_model",
    "PermutationImportanceError",
    "LengthMismatchError",
    "EmptyInputError",
    "InvalidConfigurationError",
    "DegenerateMetricError",
]
