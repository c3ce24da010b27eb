"""Pydantic models for the Exchange service wire format."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreateExchangeRequest(BaseModel):
    """Body of POST /exchange. `exp` is seconds from now."""
    payload: str = Field(..., min_length=1, description="Compact JWE")
    proof: str | None = None
    passcode: str | None = Field(default=None, min_length=4, max_length=16)
    label: str | None = None
    exp: int | None = Field(default=None, gt=0)

    def to_body(self) -> dict:
        """Only the members that carry a value are sent."""
        body = {"payload": self.payload}
        for name in ("proof", "passcode", "label", "exp"):
            value = getattr(self, name)
            if value:
                body[name] = value
        return body


class ExchangeResponse(BaseModel):
    url: str
    exp: int = Field(..., description="Expiry, epoch milliseconds")
    flag: str
    passcode: str | None = None
    trusted: bool = False
    iss: str | None = None
