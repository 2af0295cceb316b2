"""
Question backend HTTP client.

Thin async wrapper over the backend's company, round and question
endpoints. Every call returns typed models or raises one of the
exceptions in prepdeck.exceptions; nothing is swallowed here.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from prepdeck import config
from prepdeck.exceptions import BackendError, RateLimitedError
from prepdeck.models import (
    Company,
    DashboardDetails,
    DeleteResult,
    DeletionIntent,
    Explanation,
    GenerationRequest,
    Question,
    Round,
    ServerQuota,
)

logger = logging.getLogger(__name__)


@dataclass
class BackendConfig:
    """Backend connection settings."""
    base_url: str
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "BackendConfig":
        """Load configuration from environment variables."""
        if not config.BACKEND_URL:
            logger.warning("BACKEND_URL is empty, requests will go to relative paths")
        return cls(base_url=config.BACKEND_URL.rstrip("/"), timeout=config.HTTP_TIMEOUT)


class BackendClient:
    """
    Client for the interview question backend.

    One instance is created per application and handed to the
    view-models that need it. Use as an async context manager or call
    `aclose()` when done.

    Pass `transport` to route requests somewhere other than the network
    (for example an in-process ASGI app).
    """

    def __init__(
        self,
        backend_config: Optional[BackendConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = backend_config or BackendConfig.from_env()
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # =========================================================================
    # Plumbing
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> httpx.Response:
        """Send one request and map 429 / non-2xx / transport failures to exceptions."""
        logger.debug(f"{method} {path} params={params}")
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise BackendError(f"Request to {path} failed: {e}") from e

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            body = self._safe_json(response)
            message = body.get("message") or config.RATE_LIMIT_FALLBACK_MESSAGE
            logger.warning(f"{method} {path} rate limited: {message}")
            raise RateLimitedError(message, reset_in=body.get("resetIn"), details=body)

        if not response.is_success:
            body = self._safe_json(response)
            logger.error(f"❌ {method} {path} returned {response.status_code} - {response.text}")
            raise BackendError(
                body.get("message") or f"{path} returned {response.status_code}",
                status_code=response.status_code,
                details=body,
            )

        return response

    @staticmethod
    def _safe_json(response: httpx.Response) -> dict:
        """Error bodies are best-effort; a non-JSON error body yields {}."""
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        """Parse a success body, which must be a JSON object."""
        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(f"Malformed response from {response.request.url.path}") from e
        if not isinstance(body, dict):
            raise BackendError(f"Unexpected response shape from {response.request.url.path}")
        return body

    @staticmethod
    def _parse_list(model, items: Any, path: str) -> list:
        if items is None:
            return []
        if not isinstance(items, list):
            raise BackendError(f"Expected a list from {path}")
        try:
            return [model.model_validate(item) for item in items]
        except PydanticValidationError as e:
            raise BackendError(f"Malformed item in response from {path}: {e}") from e

    @staticmethod
    def _parse_one(model, data: Any, path: str):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise BackendError(f"Malformed response from {path}: {e}") from e

    # =========================================================================
    # Health
    # =========================================================================

    async def ping(self) -> None:
        """
        Check that the backend is reachable.

        Raises:
            BackendError: "Backend is down!" for any transport failure or non-2xx answer
        """
        try:
            await self._request("GET", "/health")
        except (BackendError, RateLimitedError) as e:
            raise BackendError("Backend is down!", status_code=e.status_code, details=e.details) from e
        logger.info("✅ Backend is up")

    # =========================================================================
    # Companies
    # =========================================================================

    async def fetch_companies(self, user_id: str) -> list[Company]:
        path = "/company/fetch-companies"
        response = await self._request("GET", path, params={"userId": user_id})
        return self._parse_list(Company, self._json(response).get("companies"), path)

    async def get_dashboard_details(self, user_id: str) -> DashboardDetails:
        path = "/company/get-dashboard-details"
        response = await self._request("GET", path, params={"userId": user_id})
        return self._parse_one(DashboardDetails, self._json(response).get("dashboardDetails") or {}, path)

    async def create_company(self, user_id: str, company_name: str) -> Company:
        path = "/company/create-company"
        response = await self._request(
            "POST", path, json={"userId": user_id, "companyName": company_name}
        )
        company = self._parse_one(Company, self._json(response), path)
        logger.info(f"Created company {company.id} ({company.company_name})")
        return company

    async def delete_company(self, user_id: str, company_id: str) -> None:
        await self._request(
            "DELETE", "/company/delete-company", json={"userId": user_id, "companyId": company_id}
        )
        logger.info(f"Deleted company {company_id}")

    # =========================================================================
    # Rounds
    # =========================================================================

    async def fetch_rounds(self, company_id: str) -> list[Round]:
        path = "/company/fetch-rounds"
        response = await self._request("GET", path, params={"companyId": company_id})
        return self._parse_list(Round, self._json(response).get("rounds"), path)

    async def create_round(self, company_id: str, round_name: str) -> str:
        """Create a round and return its id."""
        path = "/company/create-round"
        response = await self._request(
            "POST", path, json={"companyId": company_id, "roundName": round_name}
        )
        round_id = self._json(response).get("roundId")
        if round_id is None:
            raise BackendError(f"{path} did not return a roundId")
        logger.info(f"Created round {round_id} ({round_name}) for company {company_id}")
        return str(round_id)

    async def delete_round(self, user_id: str, company_id: str, round_id: str) -> None:
        await self._request(
            "DELETE",
            "/company/delete-round",
            json={"userId": user_id, "companyId": company_id, "roundId": round_id},
        )
        logger.info(f"Deleted round {round_id} of company {company_id}")

    # =========================================================================
    # Questions
    # =========================================================================

    async def generate_questions(self, request: GenerationRequest, user_id: Optional[str]) -> list[Question]:
        """
        Ask the backend to generate a question set.

        Raises:
            RateLimitedError: the backend refused with 429 (message and resetIn kept)
            BackendError: any other failure, including a body without `questions`
        """
        path = "/question/generate-questions"
        response = await self._request("POST", path, json=request.to_payload(user_id))
        body = self._json(response)
        if "questions" not in body:
            raise BackendError(f"{path} returned no questions")
        questions = self._parse_list(Question, body["questions"], path)
        logger.info(
            f"✅ Generated {len(questions)} questions for round {request.round_id} "
            f"({request.difficulty.value}, {request.language or 'no language'})"
        )
        return questions

    async def track_generation_limit(self, user_id: Optional[str]) -> ServerQuota:
        path = "/question/track-generation-limit"
        response = await self._request("POST", path, json={"userId": user_id})
        return self._parse_one(ServerQuota, self._json(response), path)

    @staticmethod
    def _question_params(
        company_id: str,
        round_id: str,
        language: Optional[str],
        difficulty: Optional[str],
    ) -> dict:
        params = {"companyId": company_id, "roundId": round_id}
        if language:
            params["language"] = language
        if difficulty:
            params["difficulty"] = getattr(difficulty, "value", difficulty)
        return params

    async def fetch_questions(
        self,
        company_id: str,
        round_id: str,
        language: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> list[Question]:
        path = "/question/fetch-questions"
        params = self._question_params(company_id, round_id, language, difficulty)
        response = await self._request("GET", path, params=params)
        return self._parse_list(Question, self._json(response).get("questions"), path)

    async def fetch_questions_by_round(
        self,
        company_id: str,
        round_id: str,
        language: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> list[Question]:
        """Questions of a round, filtered server-side when filters are given."""
        path = "/question/fetch-questions-by-round"
        params = self._question_params(company_id, round_id, language, difficulty)
        response = await self._request("GET", path, params=params)
        body = self._json(response)
        if not body.get("success"):
            raise BackendError("Failed to fetch questions", details=body)
        return self._parse_list(Question, body.get("questions"), path)

    async def delete_questions(self, intent: DeletionIntent, company_id: str, round_id: str) -> DeleteResult:
        """Bulk-delete the questions matching `intent`. The backend applies it atomically."""
        response = await self._request(
            "DELETE", intent.endpoint, json=intent.payload(company_id, round_id)
        )
        result = self._parse_one(DeleteResult, self._json(response), intent.endpoint)
        if not result.status:
            raise BackendError(result.message or "Failed to delete questions", details=result.model_dump())
        logger.info(f"{intent.label()} for round {round_id}: {result.message}")
        return result

    async def explain_question(self, question_id: str, question: str) -> Explanation:
        path = "/question/explain-questions"
        response = await self._request(
            "POST", path, json={"questionId": question_id, "question": question}
        )
        body = self._json(response)
        if body.get("status") != 200:
            raise BackendError("Failed to fetch explanation", details=body)
        return self._parse_one(Explanation, body.get("explanation"), path)
