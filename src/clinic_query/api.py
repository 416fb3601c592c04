"""HTTP transport for the clinic API."""

from __future__ import annotations

from typing import Any

import httpx

from clinic_query.cancellation import CancellationToken
from clinic_query.errors import ProducerError, TransportError
from clinic_query.types import QueryParams


class ClinicApiClient:
    """Async client for the clinic REST API.

    Turns transport failures and non-2xx responses into TransportError and
    aborts requests whose CancellationToken fires.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
        )

    async def __aenter__(self) -> ClinicApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        cancellation: CancellationToken | None = None,
    ) -> Any:
        """GET ``path`` and return the decoded JSON body."""
        request = self._client.get(path, params=params)
        try:
            if cancellation is not None:
                response = await cancellation.guard(request)
            else:
                response = await request
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {path} failed: {e}") from e

        if not response.is_success:
            raise TransportError(_error_message(response), response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ProducerError(f"Invalid JSON from {path}") from e

    async def get_page(
        self,
        path: str,
        params: QueryParams,
        *,
        cancellation: CancellationToken | None = None,
    ) -> Any:
        """GET one page; the body is normalized by the paginated query."""
        return await self.get(path, params.to_query(), cancellation=cancellation)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"
