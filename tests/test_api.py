"""Tests for the HTTP transport using mocked responses."""

import asyncio

import httpx
import pytest
import respx

from clinic_query import (
    CancellationError,
    CancellationToken,
    ClinicApiClient,
    ProducerError,
    QueryParams,
    SortDirection,
    TransportError,
)

BASE_URL = "https://clinic.test/api"


@pytest.fixture
async def api():
    """Create a ClinicApiClient against the mocked base URL."""
    client = ClinicApiClient(BASE_URL, token="test-token")
    yield client
    await client.aclose()


class TestClinicApiClient:
    """Tests for ClinicApiClient."""

    @respx.mock
    async def test_get_returns_json(self, api: ClinicApiClient) -> None:
        route = respx.get(f"{BASE_URL}/users").mock(
            return_value=httpx.Response(200, json=[{"id": 1}])
        )
        assert await api.get("/users") == [{"id": 1}]
        request = route.calls[0].request
        assert request.headers["Authorization"] == "Bearer test-token"

    @respx.mock
    async def test_get_page_sends_params(self, api: ClinicApiClient) -> None:
        route = respx.get(f"{BASE_URL}/patients").mock(
            return_value=httpx.Response(200, json={"content": []})
        )
        params = QueryParams(
            page=2, size=20, sort_by="lastName", sort_direction=SortDirection.DESC,
            search="ann",
        )
        await api.get_page("/patients", params)
        sent = route.calls[0].request.url.params
        assert sent["page"] == "2"
        assert sent["size"] == "20"
        assert sent["sortBy"] == "lastName"
        assert sent["sortDirection"] == "desc"
        assert sent["search"] == "ann"

    @respx.mock
    async def test_error_status_uses_body_message(self, api: ClinicApiClient) -> None:
        respx.get(f"{BASE_URL}/patients/9").mock(
            return_value=httpx.Response(404, json={"message": "Patient not found"})
        )
        with pytest.raises(TransportError, match="Patient not found") as exc_info:
            await api.get("/patients/9")
        assert exc_info.value.status_code == 404

    @respx.mock
    async def test_error_status_without_body(self, api: ClinicApiClient) -> None:
        respx.get(f"{BASE_URL}/roles").mock(return_value=httpx.Response(500))
        with pytest.raises(TransportError, match="HTTP 500"):
            await api.get("/roles")

    @respx.mock
    async def test_network_failure(self, api: ClinicApiClient) -> None:
        respx.get(f"{BASE_URL}/roles").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(TransportError) as exc_info:
            await api.get("/roles")
        assert exc_info.value.status_code is None

    @respx.mock
    async def test_invalid_json(self, api: ClinicApiClient) -> None:
        respx.get(f"{BASE_URL}/roles").mock(
            return_value=httpx.Response(200, content=b"<html>")
        )
        with pytest.raises(ProducerError):
            await api.get("/roles")

    async def test_cancelled_token_aborts(self) -> None:
        """Test that a cancelled token aborts the request."""
        started = asyncio.Event()

        async def slow(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, json=[])

        client = httpx.AsyncClient(
            base_url=BASE_URL, transport=httpx.MockTransport(slow)
        )
        api = ClinicApiClient(BASE_URL, client=client)
        token = CancellationToken()
        task = asyncio.create_task(api.get("/users", cancellation=token))
        await started.wait()
        token.cancel("superseded")
        with pytest.raises(CancellationError):
            await task
        await api.aclose()
