"""
Tests for the backend HTTP client: endpoint shapes and error mapping.

Run with: pytest tests/test_backend_client.py -v
"""
import httpx
import pytest

from prepdeck.exceptions import BackendError, RateLimitedError
from prepdeck.models import DeletionIntent, Difficulty
from prepdeck.services import BackendClient, BackendConfig, build_generation_request

from conftest import BASE_URL, USER_ID


def client_for(handler) -> BackendClient:
    """Client whose requests are answered by `handler` instead of the network."""
    return BackendClient(BackendConfig(base_url=BASE_URL), transport=httpx.MockTransport(handler))


class TestCompanyEndpoints:

    @pytest.mark.asyncio
    async def test_fetch_companies(self, client, backend, company):
        backend.add_company("Someone else's", "other_user")

        companies = await client.fetch_companies(USER_ID)

        assert [c.company_name for c in companies] == ["Acme"]
        assert companies[0].id == company["id"]

    @pytest.mark.asyncio
    async def test_dashboard_details(self, client, company, technical_round):
        details = await client.get_dashboard_details(USER_ID)

        assert details.total_companies == 1
        assert details.total_rounds == 1

    @pytest.mark.asyncio
    async def test_create_and_delete_company(self, client, backend):
        created = await client.create_company(USER_ID, "Globex")

        assert created.company_name == "Globex"
        assert created.id in backend.companies

        await client.delete_company(USER_ID, created.id)
        assert created.id not in backend.companies

    @pytest.mark.asyncio
    async def test_not_found_maps_to_backend_error(self, client):
        with pytest.raises(BackendError) as exc_info:
            await client.delete_company(USER_ID, "missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Company not found"

    @pytest.mark.asyncio
    async def test_create_round_returns_id(self, client, backend, company):
        round_id = await client.create_round(company["id"], "System Design")

        assert isinstance(round_id, str)
        assert backend.rounds[round_id]["roundName"] == "System Design"
        rounds = await client.fetch_rounds(company["id"])
        assert [r.round_name for r in rounds] == ["System Design"]


class TestQuestionEndpoints:

    @pytest.mark.asyncio
    async def test_fetch_questions_sends_filters(self, client, backend, company, seeded_round):
        questions = await client.fetch_questions(
            company["id"], seeded_round["id"], language="python", difficulty=Difficulty.EASY
        )

        assert [q.question for q in questions] == ["Explain Python decorators"]

    @pytest.mark.asyncio
    async def test_track_generation_limit(self, client, backend):
        backend.generations_used[USER_ID] = 2

        server = await client.track_generation_limit(USER_ID)

        assert server.success
        assert server.used == 2
        assert server.remaining == 3
        assert server.reset_in == "24 hours"

    @pytest.mark.asyncio
    async def test_delete_uses_scope_endpoint(self, client, backend, company, seeded_round):
        result = await client.delete_questions(DeletionIntent.by_difficulty("hard"), company["id"], seeded_round["id"])

        assert result.status
        assert result.deleted_count == 1
        assert backend.calls[-1] == ("DELETE", "/question/delete-questions-by-difficulty")

    @pytest.mark.asyncio
    async def test_rate_limit_keeps_message_and_reset(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"message": "Too many today", "resetIn": "3 hours"})

        async with client_for(handler) as client:
            with pytest.raises(RateLimitedError) as exc_info:
                await client.track_generation_limit(USER_ID)

        assert exc_info.value.message == "Too many today"
        assert exc_info.value.reset_in == "3 hours"
        assert exc_info.value.status_code == 429


class TestErrorMapping:
    """Transport failures and unexpected bodies."""

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(BackendError) as exc_info:
                await client.fetch_companies(USER_ID)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_unsuccessful_fetch_by_round(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "questions": []})

        async with client_for(handler) as client:
            with pytest.raises(BackendError):
                await client.fetch_questions_by_round("c1", "r1")

    @pytest.mark.asyncio
    async def test_delete_with_false_status_is_an_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": False, "message": "Nothing matched"})

        async with client_for(handler) as client:
            with pytest.raises(BackendError) as exc_info:
                await client.delete_questions(DeletionIntent.all_questions(), "c1", "r1")

        assert exc_info.value.message == "Nothing matched"

    @pytest.mark.asyncio
    async def test_explain_requires_status_200_in_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": 500, "explanation": None})

        async with client_for(handler) as client:
            with pytest.raises(BackendError):
                await client.explain_question("1", "What is a closure?")

    @pytest.mark.asyncio
    async def test_generate_without_questions_key(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"message": "ok"})

        request = build_generation_request("c1", "r1", "HR Round", "easy")
        async with client_for(handler) as client:
            with pytest.raises(BackendError):
                await client.generate_questions(request, USER_ID)

    @pytest.mark.asyncio
    async def test_malformed_item_is_an_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"companies": [{"id": "1"}]})

        async with client_for(handler) as client:
            with pytest.raises(BackendError):
                await client.fetch_companies(USER_ID)


class TestPing:
    """Reachability check against /health."""

    @pytest.mark.asyncio
    async def test_ping_succeeds_when_backend_answers(self, client, backend):
        await client.ping()

        assert backend.call_count("/health") == 1

    @pytest.mark.asyncio
    async def test_ping_error_status_reports_backend_down(self, client, backend):
        backend.fail("/health", 503)

        with pytest.raises(BackendError) as exc_info:
            await client.ping()

        assert exc_info.value.message == "Backend is down!"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_ping_unreachable_reports_backend_down(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(BackendError) as exc_info:
                await client.ping()

        assert exc_info.value.message == "Backend is down!"
        assert exc_info.value.status_code is None
