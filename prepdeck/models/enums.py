"""
Enums for PrepDeck.
"""
from enum import Enum


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class DeletionScope(str, Enum):
    """Which questions of a round a bulk delete removes."""
    ALL = "all"
    BY_LANGUAGE = "language"
    BY_DIFFICULTY = "difficulty"


class GenerationState(str, Enum):
    """Lifecycle of a single generation attempt."""
    IDLE = "idle"
    VALIDATING = "validating"
    QUOTA_CHECK = "quota_check"
    REQUESTING = "requesting"
    READY = "ready"
    BLOCKED = "blocked"
    FAILED = "failed"


class CollectionState(str, Enum):
    """Load state of a question collection."""
    IDLE = "idle"
    LOADED = "loaded"
    EMPTY = "empty"  # Valid result, not an error
    FAILED = "failed"


class EntryStatus(str, Enum):
    """State of an optimistically applied list change."""
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
