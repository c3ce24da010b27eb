"""
Client for the BIND terminology service (code systems and concepts).

One instance is created at application startup and handed to consumers
through `app.state`; it holds nothing beyond its connection pool.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from bind_playground.config import settings

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


class TerminologyError(Exception):
    """Raised when the terminology service cannot be reached or answers non-2xx."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TerminologyClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.TERMINOLOGY_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self._http = http
        self._owns_http = http is None

    async def connect(self) -> None:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
            self._owns_http = True

    async def close(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "TerminologyClient":
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        await self.connect()
        try:
            response = await self._http.get(f"{self.base_url}{path}", params=params)
        except httpx.HTTPError as exc:
            raise TerminologyError(f"Terminology request failed: {exc}") from exc
        if not response.is_success:
            raise TerminologyError(
                f"Terminology service returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TerminologyError("Malformed terminology response") from exc

    async def list_systems(self) -> list[dict[str, Any]]:
        """All published code systems (summaries)."""
        return await self._get("/systems")

    async def get_system(self, system_id: str) -> dict[str, Any]:
        """One code system including its concepts."""
        return await self._get(f"/systems/{system_id}")

    async def search(self, query: str) -> list[dict[str, Any]]:
        query = query.strip()
        if len(query) < MIN_SEARCH_LENGTH:
            return []
        return await self._get("/search", params={"q": query})
