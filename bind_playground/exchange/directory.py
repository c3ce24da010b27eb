"""
BIND Directory lookups.

The directory publishes each registered issuer's public keys at
``{directory}/{slug}/.well-known/jwks.json``. If the local key's `kid` is
among them, the exchange service will classify our exchanges as trusted.

Usage:
    async with DirectoryClient() as directory:
        lookup = DebouncedDirectoryLookup(directory)
        lookup.schedule("https://bindpki.org/acme", kid)
        status = await lookup.wait()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from bind_playground.config import settings
from bind_playground.schemas.documents import JWKS_SCHEMA
from bind_playground.services.validation import validate_against_schema

logger = logging.getLogger(__name__)


class LookupFailure(str, Enum):
    NOT_FOUND = "not-found"
    FETCH_FAILED = "fetch-failed"
    INVALID_JWKS = "invalid-jwks"


class DirectoryLookupError(Exception):
    """Raised when an issuer's key set cannot be obtained."""

    def __init__(self, reason: LookupFailure, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class DirectoryState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    FOUND = "found"
    NOT_FOUND = "not-found"


@dataclass
class DirectoryStatus:
    state: DirectoryState
    keys: list[dict[str, Any]] = field(default_factory=list)
    kid_match: bool = False
    reason: LookupFailure | None = None
    error: str | None = None

    @property
    def trusted(self) -> bool:
        return self.state == DirectoryState.FOUND and self.kid_match

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"state": self.state.value}
        if self.state == DirectoryState.FOUND:
            out["keys"] = self.keys
            out["kidMatch"] = self.kid_match
        if self.state == DirectoryState.NOT_FOUND:
            out["reason"] = self.reason.value if self.reason else None
            out["error"] = self.error
        return out


def extract_issuer_slug(issuer: str) -> str:
    """
    "https://bindpki.org/my-org" -> "my-org"; "my-org" -> "my-org".
    """
    issuer = (issuer or "").strip()
    parsed = urlparse(issuer)
    if parsed.scheme and parsed.netloc:
        return parsed.path.strip("/")
    return issuer.strip("/")


class DirectoryClient:
    """
    Async client for the BIND Directory's well-known key sets.

    Args:
        base_url: Directory origin. Defaults to ``settings.DIRECTORY_URL``.
        timeout:  HTTP request timeout in seconds.
        http:     Pre-built ``httpx.AsyncClient`` (tests inject one with a
                  mock transport). When given, the caller owns its lifecycle.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.DIRECTORY_URL).rstrip("/")
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

    async def __aenter__(self) -> "DirectoryClient":
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    def jwks_url(self, issuer: str) -> str:
        return f"{self.base_url}/{extract_issuer_slug(issuer)}/.well-known/jwks.json"

    async def fetch_issuer_jwks(self, issuer: str) -> list[dict[str, Any]]:
        """Return the issuer's registered public keys or raise DirectoryLookupError."""
        if not extract_issuer_slug(issuer):
            raise ValueError("Empty issuer")
        await self.connect()

        url = self.jwks_url(issuer)
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as exc:
            raise DirectoryLookupError(
                LookupFailure.FETCH_FAILED, f"Failed to fetch JWKS: {exc}"
            ) from exc

        if response.status_code == 404:
            raise DirectoryLookupError(LookupFailure.NOT_FOUND, "Issuer not found in directory")
        if not response.is_success:
            raise DirectoryLookupError(
                LookupFailure.FETCH_FAILED, f"Failed to fetch JWKS ({response.status_code})"
            )

        try:
            document = response.json()
        except ValueError as exc:
            raise DirectoryLookupError(LookupFailure.INVALID_JWKS, "Invalid JWKS format") from exc
        if validate_against_schema(document, JWKS_SCHEMA):
            raise DirectoryLookupError(LookupFailure.INVALID_JWKS, "Invalid JWKS format")

        return document["keys"]


async def lookup_issuer(
    directory: DirectoryClient,
    issuer: str,
    kid: str | None = None,
) -> DirectoryStatus:
    """Resolve an issuer to a DirectoryStatus; failures become NOT_FOUND states."""
    if not extract_issuer_slug(issuer):
        return DirectoryStatus(DirectoryState.IDLE)

    try:
        keys = await directory.fetch_issuer_jwks(issuer)
    except DirectoryLookupError as exc:
        logger.warning("Directory lookup for %s failed: %s", issuer, exc)
        return DirectoryStatus(DirectoryState.NOT_FOUND, reason=exc.reason, error=str(exc))

    kid_match = kid is not None and any(k.get("kid") == kid for k in keys)
    logger.info(
        "Directory lists %d key(s) for %s (kid match: %s)", len(keys), issuer, kid_match
    )
    return DirectoryStatus(DirectoryState.FOUND, keys=keys, kid_match=kid_match)


class DebouncedDirectoryLookup:
    """
    Runs at most one directory lookup per quiet period.

    Each `schedule` cancels the pending lookup (if any) and starts a new one
    that waits `delay` seconds before hitting the network.
    """

    def __init__(self, directory: DirectoryClient, delay: Optional[float] = None) -> None:
        self.directory = directory
        self.delay = settings.DIRECTORY_DEBOUNCE_SECONDS if delay is None else delay
        self.status = DirectoryStatus(DirectoryState.IDLE)
        self._task: asyncio.Task | None = None

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def schedule(self, issuer: str, kid: str | None = None) -> asyncio.Task | None:
        """Must be called from a running event loop."""
        self.cancel()
        if not extract_issuer_slug(issuer):
            self.status = DirectoryStatus(DirectoryState.IDLE)
            return None

        self.status = DirectoryStatus(DirectoryState.LOADING)
        self._task = asyncio.get_running_loop().create_task(self._run(issuer, kid))
        return self._task

    async def _run(self, issuer: str, kid: str | None) -> DirectoryStatus:
        await asyncio.sleep(self.delay)
        self.status = await lookup_issuer(self.directory, issuer, kid)
        return self.status

    async def wait(self) -> DirectoryStatus:
        """Wait for the most recently scheduled lookup to settle."""
        while self._task is not None:
            task = self._task
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                logger.error("Directory lookup crashed: %s", task.exception())
            if self._task is task:
                break
        return self.status
