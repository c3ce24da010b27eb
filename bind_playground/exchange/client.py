"""
Client for the BIND Exchange service.

The service is opaque: it stores the JWE, checks the proof against the BIND
Directory and hands back a retrieval URL, expiry, classification flag and
(optionally) a generated passcode. Its `trusted` flag is authoritative.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from bind_playground.config import settings
from bind_playground.schemas.exchange import CreateExchangeRequest, ExchangeResponse

logger = logging.getLogger(__name__)


class ExchangeError(Exception):
    """Raised when an exchange cannot be created."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ExchangeClient:
    """
    Async Exchange service client.

    Args:
        url:     Exchange endpoint. Defaults to ``settings.EXCHANGE_URL``.
        timeout: HTTP request timeout in seconds.
        http:    Pre-built ``httpx.AsyncClient``; the caller owns its lifecycle.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url or settings.EXCHANGE_URL
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

    async def __aenter__(self) -> "ExchangeClient":
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def create_exchange(self, request: CreateExchangeRequest) -> ExchangeResponse:
        await self.connect()
        try:
            response = await self._http.post(self.url, json=request.to_body())
        except httpx.HTTPError as exc:
            raise ExchangeError(f"Exchange request failed: {exc}") from exc

        if not response.is_success:
            raise ExchangeError(_error_message(response), status_code=response.status_code)

        try:
            result = ExchangeResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ExchangeError(
                "Malformed response from exchange service", status_code=response.status_code
            ) from exc

        logger.info(
            "Exchange created (flag=%s, trusted=%s, expires=%s)",
            result.flag,
            result.trusted,
            result.exp,
        )
        return result


def _error_message(response: httpx.Response) -> str:
    """Prefer the server's `error` member, then the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or f"Exchange failed ({response.status_code})"
