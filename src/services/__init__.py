"""Service layer that persists engine snapshots for learners."""

from .progress import DueQuestion, DueVocabulary, ProgressService, SessionResult

__all__ = ["DueQuestion", "DueVocabulary", "ProgressService", "SessionResult"]
