"""
Application context and factories.

Everything stateful (backend client, quota ledger, notification sink)
is built once per application by `create_context()` and handed to the
view-models through the context. There are no module-level instances.
"""
from dataclasses import dataclass, field
from typing import Optional

import httpx

from prepdeck.services import (
    BackendClient,
    BackendConfig,
    CompanyDirectory,
    GenerationCoordinator,
    LastGeneratedStore,
    LoggingNotificationSink,
    NotificationSink,
    QuestionCollection,
    QuotaStore,
    RoundBoard,
)


@dataclass
class AppContext:
    """Shared services for one signed-in user."""
    user_id: str
    client: BackendClient
    quota: QuotaStore
    notifier: NotificationSink
    last_generated: Optional[LastGeneratedStore] = None
    _coordinator: Optional[GenerationCoordinator] = field(default=None, repr=False)

    @property
    def generation(self) -> GenerationCoordinator:
        """The single coordinator for this user, so the in-flight guard is shared."""
        if self._coordinator is None:
            self._coordinator = GenerationCoordinator(
                self.client,
                self.quota,
                self.notifier,
                user_id=self.user_id,
                last_generated=self.last_generated,
            )
        return self._coordinator

    def questions(self, company_id: str, round_id: str, round_name: Optional[str] = None) -> QuestionCollection:
        return QuestionCollection(self.client, self.notifier, company_id, round_id, round_name)

    def companies(self) -> CompanyDirectory:
        return CompanyDirectory(self.client, self.notifier, self.user_id)

    def rounds(self, company_id: str) -> RoundBoard:
        return RoundBoard(self.client, self.notifier, company_id, self.user_id)

    async def aclose(self) -> None:
        await self.client.aclose()


def create_context(
    user_id: str,
    notifier: Optional[NotificationSink] = None,
    quota: Optional[QuotaStore] = None,
    last_generated: Optional[LastGeneratedStore] = None,
    backend_config: Optional[BackendConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AppContext:
    """Build the context from environment configuration, overriding any piece given."""
    return AppContext(
        user_id=user_id,
        client=BackendClient(backend_config, transport=transport),
        quota=quota or QuotaStore.from_env(),
        notifier=notifier or LoggingNotificationSink(),
        last_generated=last_generated or LastGeneratedStore.from_env(),
    )
