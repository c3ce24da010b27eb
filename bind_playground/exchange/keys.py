"""
Signing identity: the ES256 key pair and the issuer string.

Generated and imported keys come out in the same shape, `{privateKey,
publicKey, kid}`, with `kid` the RFC 7638 SHA-256 thumbprint of the public
key embedded in both halves. The thumbprint is what the BIND Directory
matches against when deciding whether an exchange is trusted.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec

from bind_playground.exchange.crypto import (
    CryptoError,
    base64url,
    jwk_from_private_key,
    load_signing_key,
)
from bind_playground.schemas.documents import KEY_PAIR_SCHEMA
from bind_playground.services.storage import (
    ISSUER_SLOT,
    KEYS_SLOT,
    KeyValueStore,
    StorageError,
)
from bind_playground.services.validation import validate_against_schema

logger = logging.getLogger(__name__)

# RFC 7638 section 3.2: required members per key type
THUMBPRINT_MEMBERS = {
    "EC": ("crv", "kty", "x", "y"),
    "OKP": ("crv", "kty", "x"),
    "RSA": ("e", "kty", "n"),
    "oct": ("k", "kty"),
}

PRIVATE_MEMBERS = ("d", "p", "q", "dp", "dq", "qi", "oth")


class KeyImportError(CryptoError):
    """Raised when a caller-supplied private JWK cannot be used."""


@dataclass(frozen=True)
class KeyPair:
    private_key: dict[str, Any]
    public_key: dict[str, Any]
    kid: str

    def to_dict(self) -> dict[str, Any]:
        return {"privateKey": self.private_key, "publicKey": self.public_key, "kid": self.kid}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KeyPair:
        return cls(private_key=data["privateKey"], public_key=data["publicKey"], kid=data["kid"])


def compute_kid(jwk: dict[str, Any]) -> str:
    """RFC 7638 JWK thumbprint (SHA-256, base64url)."""
    members = THUMBPRINT_MEMBERS.get(jwk.get("kty"))
    if members is None:
        raise CryptoError(f"Cannot compute thumbprint for key type {jwk.get('kty')!r}")
    missing = [m for m in members if m not in jwk]
    if missing:
        raise CryptoError(f"JWK is missing {', '.join(missing)}")

    canonical = json.dumps({m: jwk[m] for m in members}, separators=(",", ":"), sort_keys=True)
    return base64url(hashlib.sha256(canonical.encode("utf-8")).digest())


def public_jwk_from_private_jwk(jwk: dict[str, Any]) -> dict[str, Any]:
    """Return a public-only JWK (no 'd' or other private members)."""
    return {k: v for k, v in jwk.items() if k not in PRIVATE_MEMBERS}


def _pair_from_private(private_jwk: dict[str, Any]) -> KeyPair:
    public_jwk = public_jwk_from_private_jwk(private_jwk)
    kid = compute_kid(public_jwk)
    return KeyPair(
        private_key={**private_jwk, "kid": kid},
        public_key={**public_jwk, "kid": kid},
        kid=kid,
    )


def generate_key_pair() -> KeyPair:
    """Create a fresh P-256 signing key pair."""
    key = ec.generate_private_key(ec.SECP256R1())
    pair = _pair_from_private(jwk_from_private_key(key))
    logger.info("Generated signing key %s", pair.kid)
    return pair


def import_private_key(jwk: dict[str, Any] | str) -> KeyPair:
    """
    Build a key pair from a private JWK (mapping or JSON text).

    Raises KeyImportError when the JWK lacks `kty`/`d` or its key material is
    unusable for ES256.
    """
    if isinstance(jwk, str):
        try:
            jwk = json.loads(jwk)
        except json.JSONDecodeError as exc:
            raise KeyImportError(f"Invalid JWK JSON: {exc.msg}") from exc

    if not isinstance(jwk, dict) or not jwk.get("kty") or not jwk.get("d"):
        raise KeyImportError("Not a valid private key JWK (missing kty or d)")

    try:
        key = load_signing_key(jwk)
    except CryptoError as exc:
        raise KeyImportError(str(exc)) from exc

    # x/y are re-derived from d so a JWK carrying only the private scalar works
    key_material = {**jwk, **jwk_from_private_key(key)}
    pair = _pair_from_private(key_material)
    logger.info("Imported signing key %s", pair.kid)
    return pair


class KeyStore:
    """Persisted key pair and issuer identity."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    def load_key_pair(self) -> KeyPair | None:
        stored = self._store.load(KEYS_SLOT)
        if stored is None:
            return None
        if validate_against_schema(stored, KEY_PAIR_SCHEMA):
            logger.warning("Ignoring malformed stored key pair")
            return None
        return KeyPair.from_dict(stored)

    def save_key_pair(self, pair: KeyPair) -> None:
        try:
            self._store.save(KEYS_SLOT, pair.to_dict())
        except StorageError as exc:
            logger.warning("Key pair not saved: %s", exc)

    def load_issuer(self) -> str:
        stored = self._store.load(ISSUER_SLOT)
        return stored if isinstance(stored, str) else ""

    def save_issuer(self, issuer: str) -> None:
        try:
            self._store.save(ISSUER_SLOT, issuer)
        except StorageError as exc:
            logger.warning("Issuer not saved: %s", exc)
