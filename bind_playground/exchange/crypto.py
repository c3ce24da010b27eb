"""
Compact JOSE primitives for the BIND exchange.

Only what the exchange needs is implemented:
- ES256 compact JWS (sign, verify)
- `dir` + A256GCM compact JWE (encrypt with a fresh 256-bit key, decrypt)
- SHA-256 proof-of-possession token over the JWE text
- `bindx://` shareable links carrying the content key
"""

from __future__ import annotations

import base64
import hashlib
import json
import secrets
import time
from typing import Any

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

SIGNING_ALG = "ES256"
CONTENT_TYPE = "application/bind+json"
BINDX_SCHEME = "bindx://"

_COORDINATE_SIZE = 32  # P-256
_IV_SIZE = 12
_TAG_SIZE = 16


class CryptoError(Exception):
    """Raised when a signing, encryption or key operation fails."""


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


def base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(text: str) -> bytes:
    pad = "=" * ((4 - len(text) % 4) % 4)
    try:
        return base64.urlsafe_b64decode((text + pad).encode("ascii"))
    except (ValueError, UnicodeEncodeError) as exc:
        raise CryptoError(f"Invalid base64url data: {exc}") from exc


def _compact_json(obj: Any) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")


def _b64_json(obj: Any) -> str:
    return base64url(_compact_json(obj))


def _decode_json_segment(segment: str) -> dict[str, Any]:
    try:
        value = json.loads(base64url_decode(segment))
    except ValueError as exc:
        raise CryptoError("Malformed token segment") from exc
    if not isinstance(value, dict):
        raise CryptoError("Token segment is not a JSON object")
    return value


def sha256_base64url(text: str) -> str:
    return base64url(hashlib.sha256(text.encode("utf-8")).digest())


def _int_to_bytes(value: int) -> bytes:
    return value.to_bytes(_COORDINATE_SIZE, "big")


# ---------------------------------------------------------------------------
# EC P-256 keys <-> JWK
# ---------------------------------------------------------------------------


def _require_p256(jwk: dict[str, Any]) -> None:
    if jwk.get("kty") != "EC" or jwk.get("crv") != "P-256":
        raise CryptoError(
            f"Unsupported key type {jwk.get('kty')}/{jwk.get('crv')}; expected EC/P-256"
        )


def jwk_from_private_key(key: ec.EllipticCurvePrivateKey) -> dict[str, Any]:
    numbers = key.private_numbers()
    public = numbers.public_numbers
    return {
        "kty": "EC",
        "crv": "P-256",
        "x": base64url(_int_to_bytes(public.x)),
        "y": base64url(_int_to_bytes(public.y)),
        "d": base64url(_int_to_bytes(numbers.private_value)),
    }


def load_signing_key(jwk: dict[str, Any]) -> ec.EllipticCurvePrivateKey:
    """Turn a private EC JWK into a key object, checking x/y when present."""
    _require_p256(jwk)
    if not isinstance(jwk.get("d"), str) or not jwk["d"]:
        raise CryptoError("JWK has no private component 'd'")

    private_value = int.from_bytes(base64url_decode(jwk["d"]), "big")
    try:
        key = ec.derive_private_key(private_value, ec.SECP256R1())
    except ValueError as exc:
        raise CryptoError(f"Invalid private key: {exc}") from exc

    derived = jwk_from_private_key(key)
    for member in ("x", "y"):
        if member in jwk and jwk[member] != derived[member]:
            raise CryptoError(f"JWK '{member}' does not match its private component")
    return key


def load_verifying_key(jwk: dict[str, Any]) -> ec.EllipticCurvePublicKey:
    _require_p256(jwk)
    try:
        x = int.from_bytes(base64url_decode(jwk["x"]), "big")
        y = int.from_bytes(base64url_decode(jwk["y"]), "big")
        return ec.EllipticCurvePublicNumbers(x, y, ec.SECP256R1()).public_key()
    except (KeyError, ValueError) as exc:
        raise CryptoError(f"Invalid public key: {exc}") from exc


# ---------------------------------------------------------------------------
# JWS (ES256)
# ---------------------------------------------------------------------------


def sign_jwt(
    claims: dict[str, Any],
    private_jwk: dict[str, Any],
    kid: str,
    iss: str,
) -> str:
    """Sign `claims` plus `iss`/`iat` as a compact ES256 JWS."""
    key = load_signing_key(private_jwk)
    header = {"alg": SIGNING_ALG, "kid": kid}
    payload = {**claims, "iss": iss, "iat": int(time.time())}

    signing_input = f"{_b64_json(header)}.{_b64_json(payload)}"
    der = key.sign(signing_input.encode("ascii"), ec.ECDSA(hashes.SHA256()))
    r, s = decode_dss_signature(der)
    return f"{signing_input}.{base64url(_int_to_bytes(r) + _int_to_bytes(s))}"


def sign_bundle(
    bundle: dict[str, Any],
    private_jwk: dict[str, Any],
    kid: str,
    iss: str,
) -> str:
    return sign_jwt(dict(bundle), private_jwk, kid, iss)


def decode_protected_header(token: str) -> dict[str, Any]:
    return _decode_json_segment(token.split(".", 1)[0])


def verify_jws(token: str, public_jwk: dict[str, Any]) -> dict[str, Any]:
    """Verify an ES256 compact JWS and return its claims."""
    parts = token.split(".")
    if len(parts) != 3:
        raise CryptoError("Compact JWS must have three segments")

    header = _decode_json_segment(parts[0])
    if header.get("alg") != SIGNING_ALG:
        raise CryptoError(f"Unexpected JWS algorithm {header.get('alg')!r}")

    raw = base64url_decode(parts[2])
    if len(raw) != 2 * _COORDINATE_SIZE:
        raise CryptoError("Malformed ES256 signature")
    r = int.from_bytes(raw[:_COORDINATE_SIZE], "big")
    s = int.from_bytes(raw[_COORDINATE_SIZE:], "big")

    key = load_verifying_key(public_jwk)
    try:
        key.verify(
            encode_dss_signature(r, s),
            f"{parts[0]}.{parts[1]}".encode("ascii"),
            ec.ECDSA(hashes.SHA256()),
        )
    except InvalidSignature as exc:
        raise CryptoError("JWS signature verification failed") from exc
    return _decode_json_segment(parts[1])


# ---------------------------------------------------------------------------
# JWE (dir + A256GCM)
# ---------------------------------------------------------------------------


def encrypt_jws(jws: str) -> tuple[str, bytes]:
    """Encrypt a JWS under a fresh random key; returns (compact JWE, key)."""
    key = secrets.token_bytes(32)
    header = {"alg": "dir", "enc": "A256GCM", "cty": CONTENT_TYPE}
    protected = _b64_json(header)
    iv = secrets.token_bytes(_IV_SIZE)

    sealed = AESGCM(key).encrypt(iv, jws.encode("utf-8"), protected.encode("ascii"))
    ciphertext, tag = sealed[:-_TAG_SIZE], sealed[-_TAG_SIZE:]
    # `dir` has no encrypted key, so the second segment is empty
    jwe = ".".join([protected, "", base64url(iv), base64url(ciphertext), base64url(tag)])
    return jwe, key


def decrypt_jwe(jwe: str, key: bytes) -> str:
    parts = jwe.split(".")
    if len(parts) != 5:
        raise CryptoError("Compact JWE must have five segments")

    protected, encrypted_key, iv, ciphertext, tag = parts
    header = _decode_json_segment(protected)
    if header.get("alg") != "dir" or header.get("enc") != "A256GCM":
        raise CryptoError(f"Unsupported JWE header {header}")
    if encrypted_key:
        raise CryptoError("Direct-key JWE must not carry an encrypted key")

    try:
        plaintext = AESGCM(key).decrypt(
            base64url_decode(iv),
            base64url_decode(ciphertext) + base64url_decode(tag),
            protected.encode("ascii"),
        )
    except (InvalidTag, ValueError) as exc:
        raise CryptoError("JWE decryption failed") from exc
    return plaintext.decode("utf-8")


# ---------------------------------------------------------------------------
# Proof of possession
# ---------------------------------------------------------------------------


def create_proof_jwt(
    jwe: str,
    private_jwk: dict[str, Any],
    kid: str,
    iss: str,
) -> str:
    """Sign `{sub: sha256(jwe)}` with the bundle signer's key."""
    return sign_jwt({"sub": sha256_base64url(jwe)}, private_jwk, kid, iss)


# ---------------------------------------------------------------------------
# bindx:// links
# ---------------------------------------------------------------------------


def build_bindx_link(
    url: str,
    key: bytes,
    exp: int,
    flag: str,
    label: str | None = None,
) -> str:
    payload: dict[str, Any] = {"url": url, "key": base64url(key), "exp": exp, "flag": flag}
    if label:
        payload["label"] = label
    return BINDX_SCHEME + base64url(_compact_json(payload))


def parse_bindx_link(link: str) -> dict[str, Any]:
    """Decode a bindx:// link; the returned `key` is the raw key bytes."""
    if not link.startswith(BINDX_SCHEME):
        raise CryptoError(f"Not a {BINDX_SCHEME} link")
    payload = _decode_json_segment(link[len(BINDX_SCHEME):])
    if not {"url", "key", "exp", "flag"} <= payload.keys():
        raise CryptoError("bindx link is missing required members")
    return {**payload, "key": base64url_decode(payload["key"])}
