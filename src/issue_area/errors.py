"""Exceptions raised by the issue area pipeline stages."""


class IssueAreaError(Exception):
    """Base class for every error raised by this package."""


class DataFormatError(IssueAreaError):
    """Input file is missing, has missing columns, or has unparseable rows."""


class TrainingError(IssueAreaError):
    """Training data is degenerate or the classifier failed to fit."""


class EvaluationError(IssueAreaError):
    """Test data cannot be scored against the trained label space."""


class ModelIOError(IssueAreaError):
    """Persisted model is missing, corrupt, or incompatible with the caller."""


class PredictionError(IssueAreaError):
    """A single issue could not be featurized."""
