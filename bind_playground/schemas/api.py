"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class SchemaListResponse(BaseModel):
    resources: list[str]
    supporting: list[str]


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------

class BundleResponse(BaseModel):
    bundle: dict[str, Any]
    count: int
    summary: dict[str, int]


class ImportBundleRequest(BaseModel):
    """Raw Bundle JSON as pasted or read from a file by the user."""
    content: str


class ValidationWarningResponse(BaseModel):
    path: str
    message: str


class ValidationResponse(BaseModel):
    valid: bool
    warnings: list[ValidationWarningResponse]


class ReferenceResponse(BaseModel):
    reference: str
    display: str


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class KeyPairResponse(BaseModel):
    """Only the public half leaves the service."""
    kid: str
    publicKey: dict[str, Any]


class ImportKeyRequest(BaseModel):
    jwk: dict[str, Any] | str


class IssuerRequest(BaseModel):
    issuer: str


class DirectoryStatusResponse(BaseModel):
    state: str
    keys: list[dict[str, Any]] | None = None
    kidMatch: bool | None = None
    reason: str | None = None
    error: str | None = None


class IssuerResponse(BaseModel):
    issuer: str
    slug: str
    directory: DirectoryStatusResponse


# ---------------------------------------------------------------------------
# Exchange
# ---------------------------------------------------------------------------

class ExchangeRunRequest(BaseModel):
    """Sign and send the session Bundle, or a pasted one when `bundle` is given."""
    bundle: dict[str, Any] | None = None
    label: str | None = None
    passcode: str | None = Field(default=None, min_length=4, max_length=16)
    expiry_hours: float | None = Field(default=None, ge=1, le=8760)
    submit: bool = True


class ExchangeRunResponse(BaseModel):
    status: str
    warnings: list[ValidationWarningResponse] = []
    jws: str | None = None
    jwe: str | None = None
    proof: str | None = None
    link: str | None = None
    url: str | None = None
    exp: int | None = None
    flag: str | None = None
    passcode: str | None = None
    trusted: bool | None = None
    iss: str | None = None


class ExchangeRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    exp: int
    flag: str
    trusted: bool
    iss: str | None
    kid: str | None
    label: str | None
    created_at: datetime


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
    schemas: int = 0
