"""
Service layer for client-side logic.
"""
from .backend_client import BackendClient, BackendConfig
from .notifications import (
    NotificationSink,
    LoggingNotificationSink,
    MemoryNotificationSink,
    Notification,
)
from .quota_store import QuotaStore, QuotaTicket
from .generation_service import (
    GenerationCoordinator,
    GenerationOutcome,
    build_generation_request,
)
from .question_collection import (
    QuestionCollection,
    filter_questions,
    group_by_language,
)
from .company_service import CompanyDirectory, RoundBoard
from .last_generated import LastGeneratedStore

__all__ = [
    "BackendClient",
    "BackendConfig",
    "NotificationSink",
    "LoggingNotificationSink",
    "MemoryNotificationSink",
    "Notification",
    "QuotaStore",
    "QuotaTicket",
    "GenerationCoordinator",
    "GenerationOutcome",
    "build_generation_request",
    "QuestionCollection",
    "filter_questions",
    "group_by_language",
    "CompanyDirectory",
    "RoundBoard",
    "LastGeneratedStore",
]
