"""
PrepDeck models.

This module re-exports all model classes for convenient importing.
"""

# Enums
from .enums import (
    Difficulty,
    DeletionScope,
    GenerationState,
    CollectionState,
    EntryStatus,
    Severity,
)

# Question models
from .question import (
    Question,
    GenerationRequest,
    GeneratedSet,
    Explanation,
    FALLBACK_EXPLANATION,
    requires_language,
)

# Quota models
from .quota import QuotaRecord, QuotaStatus, ServerQuota

# Company and round models
from .company import Company, Round, DashboardDetails

# Deletion models
from .deletion import DeletionIntent, DeletionSelection, DeleteResult

# Locations
from .location import ResultsLocation, previous_questions_path

__all__ = [
    "Difficulty",
    "DeletionScope",
    "GenerationState",
    "CollectionState",
    "EntryStatus",
    "Severity",
    "Question",
    "GenerationRequest",
    "GeneratedSet",
    "Explanation",
    "FALLBACK_EXPLANATION",
    "requires_language",
    "QuotaRecord",
    "QuotaStatus",
    "ServerQuota",
    "Company",
    "Round",
    "DashboardDetails",
    "DeletionIntent",
    "DeletionSelection",
    "DeleteResult",
    "ResultsLocation",
    "previous_questions_path",
]
