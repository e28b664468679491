"""
Error types raised by scoring and importance computation.

All errors derive from ``ValueError`` so callers that already guard
against bad input with ``except ValueError`` keep working.
"""


class PermutationImportanceError(ValueError):
    """Base class for precondition failures in this package."""


class LengthMismatchError(PermutationImportanceError):
    """Targets, matrix rows, predictions or indices disagree in length."""


class EmptyInputError(PermutationImportanceError):
    """The target vector is empty."""


class InvalidConfigurationError(PermutationImportanceError):
    """A required option is missing or has an unusable value."""


class DegenerateMetricError(PermutationImportanceError):
    """The metric is undefined for the given inputs (e.g. SMAPE on 0/0)."""
