"""Control plane for gradient-boosting training: parameters, hooks, CV folds."""

__version__ = "0.1.0"
