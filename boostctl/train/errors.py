"""Errors raised while validating boosting configuration."""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when configuration is malformed or contradictory."""


class ConflictError(ConfigError):
    """Raised when two mutually exclusive sources set the same logical option."""


class UnsupportedError(ConfigError):
    """Raised for a valid configuration that has no implementation (e.g. CV folds for ranking)."""


class EvaluationReportError(ValueError):
    """Raised when the engine's textual evaluation report cannot be parsed."""


__all__ = ["ConfigError", "ConflictError", "UnsupportedError", "EvaluationReportError"]
