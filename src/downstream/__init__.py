"""Downstream pull requests for published modules."""

from downstream.config import (
    DEPENDENTS_FILENAME,
    Dependent,
    DependentsError,
    FileReplacement,
    load_dependents,
)
from downstream.notify import (
    DependentOutcome,
    DownstreamNotifier,
    NotifyReport,
    PullRequestClient,
    PullRequestError,
    apply_replacements,
)

__all__ = [
    "DEPENDENTS_FILENAME",
    "Dependent",
    "DependentOutcome",
    "DependentsError",
    "DownstreamNotifier",
    "FileReplacement",
    "NotifyReport",
    "PullRequestClient",
    "PullRequestError",
    "apply_replacements",
    "load_dependents",
]
