"""Tests for the JWS/JWE/proof/link primitives."""

import pytest

from bind_playground.exchange.crypto import (
    CONTENT_TYPE,
    CryptoError,
    base64url,
    base64url_decode,
    build_bindx_link,
    create_proof_jwt,
    decode_protected_header,
    decrypt_jwe,
    encrypt_jws,
    parse_bindx_link,
    sha256_base64url,
    sign_bundle,
    verify_jws,
)
from bind_playground.exchange.keys import generate_key_pair

BUNDLE = {
    "resourceType": "Bundle",
    "type": "collection",
    "entry": [{"resource": {"resourceType": "Insured", "name": "Acme Co"}}],
}


def test_base64url_has_no_padding():
    assert base64url(b"\xff\xfe") == "__4"
    assert base64url_decode("__4") == b"\xff\xfe"


def test_sign_bundle_header_and_claims(key_pair):
    jws = sign_bundle(BUNDLE, key_pair.private_key, key_pair.kid, "https://bindpki.org/acme")

    header = decode_protected_header(jws)
    assert header == {"alg": "ES256", "kid": key_pair.kid}

    claims = verify_jws(jws, key_pair.public_key)
    assert claims["entry"] == BUNDLE["entry"]
    assert claims["iss"] == "https://bindpki.org/acme"
    assert isinstance(claims["iat"], int)


def test_verify_rejects_other_key_and_tampering(key_pair):
    jws = sign_bundle(BUNDLE, key_pair.private_key, key_pair.kid, "iss")
    with pytest.raises(CryptoError, match="verification failed"):
        verify_jws(jws, generate_key_pair().public_key)

    header, payload, signature = jws.split(".")
    forged = ".".join([header, base64url(b'{"iss":"evil"}'), signature])
    with pytest.raises(CryptoError):
        verify_jws(forged, key_pair.public_key)


def test_encrypt_then_decrypt(key_pair):
    jws = sign_bundle(BUNDLE, key_pair.private_key, key_pair.kid, "iss")
    jwe, key = encrypt_jws(jws)

    parts = jwe.split(".")
    assert len(parts) == 5
    assert parts[1] == ""
    assert len(key) == 32
    assert len(base64url_decode(parts[2])) == 12
    assert decode_protected_header(jwe) == {"alg": "dir", "enc": "A256GCM", "cty": CONTENT_TYPE}
    assert decrypt_jwe(jwe, key) == jws


def test_each_encryption_uses_a_fresh_key():
    first, key_a = encrypt_jws("a.b.c")
    second, key_b = encrypt_jws("a.b.c")
    assert key_a != key_b
    assert first != second


def test_decrypt_with_wrong_key_fails():
    jwe, _ = encrypt_jws("a.b.c")
    with pytest.raises(CryptoError, match="decryption failed"):
        decrypt_jwe(jwe, bytes(32))


def test_decrypt_rejects_modified_header():
    jwe, key = encrypt_jws("a.b.c")
    parts = jwe.split(".")
    parts[0] = base64url(b'{"alg":"dir","enc":"A256GCM","cty":"text/plain"}')
    with pytest.raises(CryptoError):
        decrypt_jwe(".".join(parts), key)


def test_proof_binds_the_jwe(key_pair):
    jwe, _ = encrypt_jws("a.b.c")
    proof = create_proof_jwt(jwe, key_pair.private_key, key_pair.kid, "iss")

    assert decode_protected_header(proof)["kid"] == key_pair.kid
    claims = verify_jws(proof, key_pair.public_key)
    assert claims["sub"] == sha256_base64url(jwe)


def test_bindx_link_round_trip():
    key = bytes(range(32))
    link = build_bindx_link("https://exchange.example/x/abc", key, 1767225600, "U", label="Acme")

    assert link.startswith("bindx://")
    parsed = parse_bindx_link(link)
    assert parsed == {
        "url": "https://exchange.example/x/abc",
        "key": key,
        "exp": 1767225600,
        "flag": "U",
        "label": "Acme",
    }


def test_bindx_link_omits_empty_label():
    link = build_bindx_link("https://exchange.example/x", bytes(32), 1, "P", label="")
    assert "label" not in parse_bindx_link(link)


def test_parse_bindx_link_errors():
    with pytest.raises(CryptoError, match="Not a bindx"):
        parse_bindx_link("https://example.com")
    with pytest.raises(CryptoError, match="missing required"):
        parse_bindx_link("bindx://" + base64url(b'{"url":"x"}'))
