"""Google ID token verification with the JWKS endpoint served from memory."""

from __future__ import annotations

import io
import json
import time
from types import SimpleNamespace
from urllib.error import HTTPError

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from fancy_todo.infra.oauth.google_verifier import GOOGLE_CERTS_URL, GoogleIdentityVerifier
from fancy_todo.services._shared.ports.identity_verifier import IdentityVerificationError
from jwt.algorithms import RSAAlgorithm

CLIENT_ID = "web-client.apps.googleusercontent.com"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def jwks(signing_key):
    jwk = json.loads(RSAAlgorithm.to_jwk(signing_key.public_key()))
    jwk.update({"kid": "key-1", "alg": "RS256", "use": "sig"})
    return {"keys": [jwk]}


@pytest.fixture()
def certs(monkeypatch, jwks):
    """Serve ``jwks`` for every key fetch and record the requested URLs."""
    calls: list[str] = []
    state = {"status": 200}

    def urlopen(request, timeout=None, context=None):
        calls.append(request.full_url)
        if state["status"] != 200:
            raise HTTPError(request.full_url, state["status"], "unavailable", None, None)
        return io.BytesIO(json.dumps(jwks).encode())

    monkeypatch.setattr("urllib.request.urlopen", urlopen)
    return SimpleNamespace(calls=calls, state=state)


@pytest.fixture()
def verifier() -> GoogleIdentityVerifier:
    return GoogleIdentityVerifier(client_id=CLIENT_ID, timeout=2)


def _id_token(key, *, kid="key-1", **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": CLIENT_ID,
        "sub": "1098765",
        "email": "John@Doe.com",
        "email_verified": True,
        "given_name": "John",
        "family_name": "Doe",
        "picture": "https://example.com/john.png",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm="RS256", headers={"kid": kid})


def test_verifies_valid_token(verifier, signing_key, certs):
    identity = verifier.verify(_id_token(signing_key))

    assert identity.subject == "1098765"
    assert identity.email == "john@doe.com"
    assert identity.given_name == "John"
    assert identity.family_name == "Doe"
    assert identity.picture == "https://example.com/john.png"
    assert certs.calls == [GOOGLE_CERTS_URL]


def test_caches_keys_between_calls(verifier, signing_key, certs):
    verifier.verify(_id_token(signing_key))
    verifier.verify(_id_token(signing_key, sub="other"))

    assert len(certs.calls) == 1


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"aud": "someone-else"}, "audience"),
        ({"iss": "https://evil.example.com"}, "issuer"),
        ({"exp": int(time.time()) - 60}, "expired"),
        ({"email": ""}, "email"),
        ({"email_verified": False}, "unverified"),
    ],
)
def test_rejects_bad_claims(verifier, signing_key, certs, overrides, reason):
    with pytest.raises(IdentityVerificationError):
        verifier.verify(_id_token(signing_key, **overrides))


def test_rejects_foreign_signature(verifier, certs):
    impostor = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    with pytest.raises(IdentityVerificationError):
        verifier.verify(_id_token(impostor))


def test_unknown_kid_refetches_at_most_once_per_window(verifier, signing_key, certs):
    verifier.verify(_id_token(signing_key))

    for _ in range(3):
        with pytest.raises(IdentityVerificationError, match="unknown key"):
            verifier.verify(_id_token(signing_key, kid="rotated"))

    # initial fetch plus a single refetch for the unknown kid
    assert len(certs.calls) == 2


def test_rejects_malformed_token(verifier):
    with pytest.raises(IdentityVerificationError, match="Malformed"):
        verifier.verify("not-a-jwt")


def test_key_endpoint_failure_is_terminal(verifier, signing_key, certs):
    certs.state["status"] = 503

    with pytest.raises(IdentityVerificationError, match="signing keys"):
        verifier.verify(_id_token(signing_key))
    assert len(certs.calls) == 1
