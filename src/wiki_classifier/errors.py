"""Exception types raised by the wiki classifier."""

from __future__ import annotations

from pathlib import Path


class WikiClassifierError(Exception):
    """Base exception for classifier errors."""


class InputError(WikiClassifierError):
    """Raised when an input file or directory is missing or unreadable."""

    def __init__(self, path: str | Path, reason: str = "not found") -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Input {reason}: {self.path}")

    def __reduce__(self):
        return (self.__class__, (self.path, self.reason))


class UntrainedModel(WikiClassifierError, RuntimeError):
    """Raised when a model is queried before it was trained or restored."""


class TrainingWindowClosed(WikiClassifierError, RuntimeError):
    """Raised when a purged (read-only) model receives training input."""


class CorpusBuildFailure(WikiClassifierError):
    """Raised when a single training file cannot be turned into features.

    The whole corpus build is aborted; the underlying error is chained as
    ``__cause__``.
    """

    def __init__(self, path: str | Path, label: str, reason: str) -> None:
        self.path = Path(path)
        self.label = label
        self.reason = reason
        super().__init__(f"Failed to parse training file {self.path} (label '{label}'): {reason}")


class PersistenceError(WikiClassifierError):
    """Raised when a model cannot be saved to or restored from disk."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Model persistence failed for {self.path}: {reason}")
