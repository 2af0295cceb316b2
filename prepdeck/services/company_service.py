"""
Company and round management for the dashboard.

Single-item creates and deletes are applied optimistically and rolled
back if the backend refuses them.
"""
import logging
import uuid
from typing import Optional

from prepdeck.config import ROUND_OPTIONS
from prepdeck.exceptions import BackendError, RateLimitedError
from prepdeck.models import (
    Company,
    DashboardDetails,
    Round,
    Severity,
    previous_questions_path,
)
from prepdeck.utils import OptimisticList
from .backend_client import BackendClient
from .notifications import NotificationSink

logger = logging.getLogger(__name__)


def _placeholder_id() -> str:
    return f"pending-{uuid.uuid4().hex[:12]}"


class CompanyDirectory:
    """A user's companies plus the dashboard totals."""

    def __init__(self, client: BackendClient, notifier: NotificationSink, user_id: str):
        self.client = client
        self.notifier = notifier
        self.user_id = user_id
        self.dashboard = DashboardDetails()
        self._companies: OptimisticList[Company] = OptimisticList(key=lambda c: c.id)

    @property
    def companies(self) -> list[Company]:
        return self._companies.items

    async def load(self) -> bool:
        """Fetch companies and dashboard totals. Returns False on failure."""
        try:
            companies = await self.client.fetch_companies(self.user_id)
            dashboard = await self.client.get_dashboard_details(self.user_id)
        except RateLimitedError as e:
            self.notifier.notify(Severity.ERROR, e.message)
            return False
        except BackendError as e:
            logger.error(f"Failed to load dashboard for {self.user_id}: {e.message}")
            self.notifier.notify(Severity.ERROR, "Failed to load dashboard data")
            return False

        self._companies.replace(companies)
        self.dashboard = dashboard
        return True

    async def add_company(self, company_name: str) -> Optional[Company]:
        name = (company_name or "").strip()
        if not name:
            self.notifier.notify(Severity.ERROR, "Company name cannot be empty!")
            return None

        placeholder = Company(id=_placeholder_id(), company_name=name)
        try:
            entry = await self._companies.insert(
                placeholder, lambda: self.client.create_company(self.user_id, name)
            )
        except (BackendError, RateLimitedError) as e:
            logger.error(f"Failed to create company {name}: {e.message}")
            self.notifier.notify(Severity.ERROR, "Failed to add company")
            return None

        self.dashboard.total_companies += 1
        self.notifier.notify(Severity.SUCCESS, "Company added successfully")
        return entry.item

    async def delete_company(self, company_id: str) -> bool:
        if self._companies.find(company_id) is None:
            logger.warning(f"Company {company_id} is not loaded, nothing to delete")
            return False

        try:
            await self._companies.remove(
                company_id, lambda: self.client.delete_company(self.user_id, company_id)
            )
        except (BackendError, RateLimitedError) as e:
            logger.error(f"Failed to delete company {company_id}: {e.message}")
            self.notifier.notify(Severity.ERROR, "Failed to delete company")
            return False

        self.dashboard.total_companies = max(self.dashboard.total_companies - 1, 0)
        self.notifier.notify(Severity.SUCCESS, "Company deleted")
        return True


class RoundBoard:
    """The interview rounds of one company."""

    def __init__(self, client: BackendClient, notifier: NotificationSink, company_id: str, user_id: str):
        self.client = client
        self.notifier = notifier
        self.company_id = company_id
        self.user_id = user_id
        self._rounds: OptimisticList[Round] = OptimisticList(key=lambda r: r.id)

    @property
    def rounds(self) -> list[Round]:
        return self._rounds.items

    async def load(self) -> bool:
        try:
            rounds = await self.client.fetch_rounds(self.company_id)
        except (BackendError, RateLimitedError) as e:
            logger.error(f"Error fetching rounds for company {self.company_id}: {e.message}")
            self.notifier.notify(Severity.WARNING, "Can't fetch rounds, try creating a new one!")
            return False

        self._rounds.replace(rounds)
        self.notifier.notify(Severity.SUCCESS, "Successfully fetched interview rounds!")
        return True

    async def add_round(self, round_name: str) -> Optional[Round]:
        if round_name not in ROUND_OPTIONS:
            self.notifier.notify(Severity.ERROR, f"Unknown round type: {round_name}")
            return None

        async def create() -> Round:
            round_id = await self.client.create_round(self.company_id, round_name)
            return Round(id=round_id, round_name=round_name)

        placeholder = Round(id=_placeholder_id(), round_name=round_name)
        try:
            entry = await self._rounds.insert(placeholder, create)
        except (BackendError, RateLimitedError) as e:
            logger.error(f"Error adding round {round_name}: {e.message}")
            self.notifier.notify(Severity.ERROR, "Failed to add interview round. Please try again.")
            return None

        self.notifier.notify(Severity.SUCCESS, f"{round_name} added successfully!")
        return entry.item

    async def delete_round(self, round_id: str) -> bool:
        entry = self._rounds.find(round_id)
        if entry is None:
            logger.warning(f"Round {round_id} is not loaded, nothing to delete")
            return False

        round_name = entry.item.round_name
        try:
            await self._rounds.remove(
                round_id, lambda: self.client.delete_round(self.user_id, self.company_id, round_id)
            )
        except (BackendError, RateLimitedError) as e:
            logger.error(f"Error deleting round {round_id}: {e.message}")
            self.notifier.notify(Severity.ERROR, "Failed to delete interview round. Please try again.")
            return False

        self.notifier.notify(Severity.SUCCESS, f"{round_name} deleted successfully!")
        return True

    def previous_questions(self, round_: Round) -> str:
        """Location of the browse view for a round's earlier questions."""
        return previous_questions_path(self.company_id, round_.id, round_.round_name)
