"""Google ID token verification against Google's published signing keys."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import jwt
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientConnectionError, PyJWKClientError

from fancy_todo.services._shared.ports.identity_verifier import (
    IdentityVerificationError,
    IdentityVerifier,
    VerifiedIdentity,
)

log = logging.getLogger(__name__)

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleIdentityVerifier(IdentityVerifier):
    """
    Verify Google-issued ID tokens (RS256) for one OAuth client.

    Signing keys come from a :class:`jwt.PyJWKClient` that fetches the JWKS
    with a bounded timeout and caches it. A failed fetch or a failed
    signature/audience/issuer/expiry check raises
    :class:`IdentityVerificationError`; nothing is retried.

    Parameters
    ----------
    client_id : str
        Expected ``aud`` claim (the web client id).
    timeout : float
        Seconds allowed for the key fetch.
    certs_url : str
        JWKS endpoint.
    cache_seconds : int
        How long fetched keys are trusted before a refetch.
    min_refetch_seconds : int
        Floor between refetches triggered by an unknown ``kid``.
    """

    provider = "google"

    def __init__(
        self,
        *,
        client_id: str,
        timeout: float = 5.0,
        certs_url: str = GOOGLE_CERTS_URL,
        cache_seconds: int = 3600,
        min_refetch_seconds: int = 60,
    ) -> None:
        self.client_id = client_id
        self.min_refetch_seconds = min_refetch_seconds
        self._jwks = PyJWKClient(
            certs_url, cache_jwk_set=True, lifespan=cache_seconds, timeout=timeout
        )
        self._refetched_at: float | None = None
        self._lock = threading.Lock()

    # ----------------------------- keys ------------------------------------

    def _key_for(self, kid: str | None) -> Any:
        if not kid:
            raise IdentityVerificationError("ID token has no key id.")
        try:
            with self._lock:
                key = PyJWKClient.match_kid(self._jwks.get_signing_keys(), kid)
                now = time.monotonic()
                if key is None and (
                    self._refetched_at is None
                    or now - self._refetched_at > self.min_refetch_seconds
                ):
                    # Google rotated its keys; at most one refetch per window.
                    self._refetched_at = now
                    key = PyJWKClient.match_kid(self._jwks.get_signing_keys(refresh=True), kid)
        except PyJWKClientConnectionError as exc:
            log.warning("oauth.jwks_unavailable", extra={"provider": self.provider})
            raise IdentityVerificationError("Unable to fetch Google signing keys.") from exc
        except PyJWKClientError as exc:
            log.warning("oauth.jwks_invalid", extra={"provider": self.provider})
            raise IdentityVerificationError("Unable to read Google signing keys.") from exc
        if key is None:
            raise IdentityVerificationError("ID token signed with an unknown key.")
        return key.key

    # ----------------------------- verify ----------------------------------

    def verify(self, id_token: str) -> VerifiedIdentity:
        try:
            header = jwt.get_unverified_header(id_token)
        except jwt.PyJWTError as exc:
            raise IdentityVerificationError("Malformed ID token.") from exc

        key = self._key_for(header.get("kid"))
        try:
            claims = jwt.decode(
                id_token,
                key,
                algorithms=["RS256"],
                audience=self.client_id,
                options={"require": ["exp", "iat", "iss", "sub", "aud"]},
            )
        except jwt.PyJWTError as exc:
            raise IdentityVerificationError(f"Invalid ID token: {exc}") from exc

        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise IdentityVerificationError("ID token issued by an unexpected issuer.")
        email = str(claims.get("email") or "").strip().lower()
        if not email:
            raise IdentityVerificationError("ID token carries no email.")
        if claims.get("email_verified") is False:
            raise IdentityVerificationError("Google account email is not verified.")

        return VerifiedIdentity(
            subject=str(claims["sub"]),
            email=email,
            given_name=str(claims.get("given_name") or ""),
            family_name=str(claims.get("family_name") or ""),
            picture=claims.get("picture"),
        )
